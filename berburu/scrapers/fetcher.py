"""Static HTML fetching for listing pages.

One plain GET per call with browser-like headers and a total timeout. No
retries; the rendering fallback handles pages that need a real browser.
"""

import asyncio
import logging

import aiohttp

from ..config import config
from ..errors import FetchFailed

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)

DEFAULT_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "id-ID,id;q=0.9,en;q=0.8",
}


def create_session(timeout: float | None = None) -> aiohttp.ClientSession:
    """Create an HTTP session configured for marketplace scraping.

    Args:
        timeout: Total request timeout in seconds, defaults to the fetch timeout.

    Returns:
        New aiohttp session; the caller owns and closes it.
    """
    total = timeout if timeout is not None else config.scraping.fetch_timeout
    connector = aiohttp.TCPConnector(limit=20, limit_per_host=6, ttl_dns_cache=300)
    return aiohttp.ClientSession(
        connector=connector,
        timeout=aiohttp.ClientTimeout(total=total),
        headers=DEFAULT_HEADERS,
    )


async def fetch_html(url: str, session: aiohttp.ClientSession) -> str:
    """Download a listing page.

    Args:
        url: Listing URL.
        session: HTTP session for requests.

    Returns:
        Response body decoded as text.

    Raises:
        FetchFailed: On network error, timeout, or an HTTP status of 400 or above.
    """
    timeout = aiohttp.ClientTimeout(total=config.scraping.fetch_timeout)
    try:
        async with session.get(url, headers=DEFAULT_HEADERS, timeout=timeout) as response:
            if response.status >= 400:
                raise FetchFailed(f"HTTP {response.status} for {url}")
            html = await response.text()
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise FetchFailed(f"Request failed for {url}: {e}") from e

    logger.debug(f"Fetched {len(html)} characters from {url}")
    return html
