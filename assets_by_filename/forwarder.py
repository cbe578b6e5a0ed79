"""Reverse-proxy hop to the canonical asset endpoint."""

import asyncio
from collections.abc import Iterable
from urllib.parse import quote

import aiohttp
from aiohttp import hdrs, web
from multidict import CIMultiDict
from yarl import URL

from .errors import UpstreamDispatchError
from .logging import get_logger
from .models import ErrorResponse, InboundRequest, ProxyRequestSpec, ProxyResponse, ResolvedFile

logger = get_logger(__name__)

DEFAULT_HOSTNAME = "localhost"
EXCLUDED_REQUEST_HEADERS = frozenset({"host"})
EXCLUDED_RESPONSE_HEADERS = frozenset({"connection", "transfer-encoding"})

PROXY_ERROR_MESSAGE = "Failed to proxy request to assets endpoint"
PROXY_ERROR_CODE = "INTERNAL_SERVER_ERROR"


def split_host_port(value: str, default_port: int) -> tuple[str, int]:
    """
    Split a ``host[:port]`` value, accepting bracketed IPv6 literals.

    A missing or unusable port yields ``default_port``.
    """
    value = value.strip()
    if value.startswith("["):
        host, _, rest = value[1:].partition("]")
        port_str = rest[1:] if rest.startswith(":") else ""
    else:
        host, _, port_str = value.partition(":")

    port = default_port
    if port_str.isdigit() and 0 < int(port_str) < 65536:
        port = int(port_str)

    return host or DEFAULT_HOSTNAME, port


def inbound_request_from(request: web.Request) -> InboundRequest:
    """Capture method, raw query and headers of an aiohttp request."""
    _, sep, query = request.raw_path.partition("?")
    return InboundRequest(
        method=request.method,
        query=query if sep else None,
        headers=tuple((key, value) for key, value in request.headers.items()),
    )


def filter_response_headers(headers: Iterable[tuple[str, str]]) -> CIMultiDict[str]:
    """Copy upstream headers except the hop-by-hop ones, keeping repeats."""
    relayed: CIMultiDict[str] = CIMultiDict()
    for key, value in headers:
        if key.lower() not in EXCLUDED_RESPONSE_HEADERS:
            relayed.add(key, value)
    return relayed


def route_name(request: web.Request) -> str:
    resource = request.match_info.route.resource
    return resource.canonical if resource is not None else request.path


class ProxyForwarder:
    """
    Forwards a resolved file request to ``/<canonical route>/<id>`` and
    streams the upstream response back to the caller.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        canonical_route: str = "assets",
        default_host: str | None = None,
        default_port: int = 8055,
        scheme: str = "http",
    ):
        """
        Initialize the forwarder.

        Args:
            session: Shared relay session; must not decompress bodies
            canonical_route: First path segment of the asset endpoint
            default_host: ``host[:port]`` used when a request has no Host header
            default_port: Port used when no other source provides one
            scheme: Scheme of the outbound hop
        """
        self._session = session
        self._canonical_route = canonical_route.strip("/")
        self._default_host = default_host
        self._default_port = default_port
        self._scheme = scheme

    def resolve_target(self, inbound: InboundRequest) -> tuple[str, int]:
        """Host header first, then the configured default host, then localhost."""
        host_header = inbound.header(hdrs.HOST)
        if host_header:
            return split_host_port(host_header, self._default_port)
        if self._default_host:
            return split_host_port(self._default_host, self._default_port)
        return DEFAULT_HOSTNAME, self._default_port

    def build_request_spec(self, file: ResolvedFile, inbound: InboundRequest) -> ProxyRequestSpec:
        host, port = self.resolve_target(inbound)

        path = f"/{self._canonical_route}/{quote(file.internal_id, safe='')}"
        if inbound.query is not None:
            path = f"{path}?{inbound.query}"

        return ProxyRequestSpec(
            target_scheme=self._scheme,
            target_host=host,
            target_port=port,
            target_path=path,
            method=inbound.method,
            forwarded_headers=tuple(
                (key, value) for key, value in inbound.headers if key.lower() not in EXCLUDED_REQUEST_HEADERS
            ),
        )

    async def dispatch(self, spec: ProxyRequestSpec) -> aiohttp.ClientResponse:
        """
        Issue the outbound request and return once the status line and headers arrived.

        Raises:
            UpstreamDispatchError: Connection refused, DNS failure, timeout
        """
        headers: CIMultiDict[str] = CIMultiDict(spec.forwarded_headers)
        try:
            return await self._session.request(
                spec.method,
                URL(spec.url, encoded=True),
                headers=headers,
                allow_redirects=False,
                skip_auto_headers=(hdrs.ACCEPT_ENCODING, hdrs.USER_AGENT),
            )
        except (aiohttp.ClientError, TimeoutError, OSError) as exc:
            raise UpstreamDispatchError(f"Could not reach {spec.target_host}:{spec.target_port}: {exc}") from exc

    async def forward(self, file: ResolvedFile, request: web.Request) -> web.StreamResponse:
        """Relay the canonical endpoint's answer for ``file`` to the caller."""
        route = route_name(request)
        spec = self.build_request_spec(file, inbound_request_from(request))

        try:
            upstream = await self.dispatch(spec)
        except UpstreamDispatchError as exc:
            logger.error(f"Error proxying {route} to assets endpoint: {exc}")
            return web.json_response(
                ErrorResponse.single(PROXY_ERROR_MESSAGE, PROXY_ERROR_CODE).model_dump(),
                status=500,
            )

        try:
            head = ProxyResponse(
                status=upstream.status,
                reason=upstream.reason,
                headers=tuple(filter_response_headers(upstream.headers.items()).items()),
            )
            response = web.StreamResponse(
                status=head.status,
                reason=head.reason,
                headers=CIMultiDict(head.headers),
            )

            try:
                await response.prepare(request)
            except ConnectionResetError:
                logger.info(f"Client of {route} went away before the response started")
                upstream.close()
                return response

            await self._relay_body(upstream, response, request, route)
            return response

        except asyncio.CancelledError:
            # Inbound connection aborted: tear the outbound socket down too.
            logger.info(f"Client of {route} aborted, closing upstream request")
            upstream.close()
            raise

        finally:
            upstream.release()

    async def _relay_body(
        self,
        upstream: aiohttp.ClientResponse,
        response: web.StreamResponse,
        request: web.Request,
        route: str,
    ) -> None:
        while True:
            try:
                chunk = await upstream.content.readany()
            except (aiohttp.ClientError, TimeoutError) as exc:
                # Headers are already out, so no error response is possible.
                logger.error(f"Upstream of {route} failed mid-stream: {exc}")
                upstream.close()
                response.force_close()
                if request.transport is not None:
                    request.transport.close()
                return

            if not chunk:
                break

            try:
                await response.write(chunk)
            except ConnectionResetError:
                logger.info(f"Client of {route} went away mid-stream, closing upstream request")
                upstream.close()
                return

        try:
            await response.write_eof()
        except ConnectionResetError:
            logger.info(f"Client of {route} went away before the response completed")
