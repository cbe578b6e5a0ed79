"""Shared aiohttp client sessions."""

import aiohttp

from .logging import get_logger

logger = get_logger(__name__)


async def setup_http_client(*, relay: bool = False) -> aiohttp.ClientSession:
    """
    Create a client session backed by its own connection pool.

    Args:
        relay: Build a session for byte-exact relaying: bodies are not
            decompressed and no cookies are kept between requests.
    """
    if relay:
        session = aiohttp.ClientSession(
            auto_decompress=False,
            cookie_jar=aiohttp.DummyCookieJar(),
        )
    else:
        session = aiohttp.ClientSession(cookie_jar=aiohttp.DummyCookieJar())

    logger.info(f"Created HTTP client session (relay={relay})")
    return session


async def cleanup_http_client(session: aiohttp.ClientSession | None):
    """Close a client session and its pooled connections."""
    if session and not session.closed:
        await session.close()
        logger.info("Closed HTTP client session")
