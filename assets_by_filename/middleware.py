"""Middleware attaching the caller's permission context to each request."""

from aiohttp import hdrs, web

from .logging import get_logger
from .models import CallerContext

logger = get_logger(__name__)

CALLER_CONTEXT_KEY = "caller_context"
ACCESS_TOKEN_PARAM = "access_token"


def caller_context_from(request: web.Request) -> CallerContext:
    """Collect the credentials the host would use to authenticate this caller."""
    return CallerContext(
        authorization=request.headers.get(hdrs.AUTHORIZATION),
        access_token=request.query.get(ACCESS_TOKEN_PARAM),
        cookie=request.headers.get(hdrs.COOKIE),
    )


@web.middleware
async def caller_context_middleware(request: web.Request, handler):
    """Build a fresh CallerContext for every request and store it on the request."""
    context = caller_context_from(request)
    request[CALLER_CONTEXT_KEY] = context

    logger.debug(f"Caller context built (anonymous={context.is_anonymous}) for {request.path}")

    return await handler(request)
