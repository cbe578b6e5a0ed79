"""
Assets-by-filename server.
Serves host assets by disk filename, title or download filename.
"""

import asyncio
import sys
from collections.abc import AsyncIterator

import uvloop
from aiohttp import web

from .config import EndpointConfiguration, Settings, get_settings
from .errors import ConfigurationError
from .forwarder import ProxyForwarder
from .handlers import HANDLERS_KEY, RequestHandlers, lookup_route
from .http_client import cleanup_http_client, setup_http_client
from .logging import ACCESS_LOG_FORMAT, get_logger, setup_logging
from .middleware import caller_context_middleware
from .records.base_store import FileRecordStore, SchemaProvider
from .records.directus import DirectusFileRecordStore, StaticSchemaProvider
from .resolver import FileResolver

logger = get_logger(__name__)


class AssetsByFilenameServer:
    """Wires configuration, collaborators and routes into an aiohttp application."""

    def __init__(
        self,
        settings: Settings | None = None,
        store: FileRecordStore | None = None,
        schema_provider: SchemaProvider | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        # Raises ConfigurationError before any route exists.
        self.endpoints = EndpointConfiguration.from_settings(self.settings)
        self._store = store
        self._schema_provider = schema_provider or StaticSchemaProvider()

    def setup_routes(self, app: web.Application) -> None:
        """Configure application routes."""
        for route in self.endpoints.routes():
            app.router.add_get(route.path, lookup_route(route.attribute), allow_head=False)
            logger.info(f"Route GET {route.path} -> lookup by {route.attribute.value}")

    async def http_clients(self, app: web.Application) -> AsyncIterator[None]:
        """Own the client sessions for the lifetime of the application."""
        relay_session = await setup_http_client(relay=True)
        records_session = None

        store = self._store
        if store is None:
            records_session = await setup_http_client()
            store = DirectusFileRecordStore(records_session, self.settings.records_url)

        forwarder = ProxyForwarder(
            relay_session,
            canonical_route=self.endpoints.canonical_route,
            default_host=self.settings.default_host,
            default_port=self.settings.default_port,
            scheme=self.settings.upstream_scheme,
        )
        app[HANDLERS_KEY] = RequestHandlers(FileResolver(store, self._schema_provider), forwarder)

        yield

        await cleanup_http_client(records_session)
        await cleanup_http_client(relay_session)

    def create_app(self) -> web.Application:
        """Create and configure the application."""
        app = web.Application(middlewares=[caller_context_middleware])
        app.cleanup_ctx.append(self.http_clients)
        self.setup_routes(app)
        return app

    async def start(self) -> None:
        """Start serving and block until cancelled."""
        app = self.create_app()

        # Handler cancellation carries client disconnects through to the outbound request.
        runner = web.AppRunner(app, handler_cancellation=True, access_log_format=ACCESS_LOG_FORMAT)
        await runner.setup()

        site = web.TCPSite(runner, self.settings.listen_host, self.settings.listen_port)
        await site.start()

        logger.info(
            f"Assets-by-filename server started on http://{self.settings.listen_host}:{self.settings.listen_port}"
            f"{self.endpoints.route_prefix}"
        )

        try:
            await asyncio.Event().wait()
        finally:
            await runner.cleanup()


def main() -> None:
    """Entry point for the server."""
    settings = get_settings()
    setup_logging(settings.log_level, access_log=settings.access_log)

    try:
        server = AssetsByFilenameServer(settings)
    except ConfigurationError as exc:
        logger.critical(str(exc))
        sys.exit(1)

    try:
        uvloop.run(server.start())
    except KeyboardInterrupt:
        logger.info("Server stopped by user")


if __name__ == "__main__":
    main()
