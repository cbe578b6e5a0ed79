"""HTTP request handlers."""

from aiohttp import web

from .errors import FileForbidden, FileNotFound
from .forwarder import ProxyForwarder, route_name
from .logging import get_logger
from .middleware import CALLER_CONTEXT_KEY, caller_context_from
from .models import FileAttribute, LookupRequest
from .resolver import FileResolver

logger = get_logger(__name__)


class RequestHandlers:
    """Lookup-then-proxy handlers for the by-attribute asset routes."""

    def __init__(self, resolver: FileResolver, forwarder: ProxyForwarder) -> None:
        self.resolver = resolver
        self.forwarder = forwarder

    async def handle_file_lookup(self, request: web.Request, attribute: FileAttribute) -> web.StreamResponse:
        """Resolve ``{filename}`` by ``attribute`` and proxy to the asset endpoint."""
        route = route_name(request)
        context = request.get(CALLER_CONTEXT_KEY) or caller_context_from(request)

        lookup = LookupRequest(
            attribute=attribute,
            value=request.match_info.get("filename", ""),
            caller_context=context,
            route=route,
        )

        try:
            resolved = await self.resolver.resolve(lookup)
        except FileForbidden:
            logger.info(f"Lookup by {attribute.value} on {route} denied")
            return web.Response(status=403)
        except FileNotFound as exc:
            logger.debug(f"Lookup by {attribute.value} on {route} found nothing: {exc}")
            return web.Response(status=404)

        return await self.forwarder.forward(resolved, request)


HANDLERS_KEY = web.AppKey("handlers", RequestHandlers)


def lookup_route(attribute: FileAttribute):
    """Route handler for lookups by ``attribute``, bound to the app's RequestHandlers."""

    async def handler(request: web.Request) -> web.StreamResponse:
        return await request.app[HANDLERS_KEY].handle_file_lookup(request, attribute)

    handler.__name__ = f"handle_{attribute.value}"
    return handler
