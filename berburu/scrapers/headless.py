"""Headless browser rendering for listing pages built client-side.

Used as a fallback when the static HTML does not contain a listing title or
price. Each render owns its own Chromium instance inside an async context
manager, so the browser is torn down on every exit path and nothing is shared
between requests.
"""

import asyncio
import logging
from typing import Any

from playwright.async_api import Browser, BrowserContext, Page, Playwright, Route, async_playwright

from ..config import config
from ..errors import RenderFailed
from .fetcher import DEFAULT_HEADERS, USER_AGENT

logger = logging.getLogger(__name__)

CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-blink-features=AutomationControlled",
    "--mute-audio",
]

# Photos are resolved from markup, so the render never needs to load them
BLOCKED_RESOURCE_TYPES = frozenset({"image", "media", "font"})

TRACKER_HOSTS = (
    "google-analytics.com",
    "googletagmanager.com",
    "connect.facebook.net",
    "doubleclick.net",
    "googlesyndication.com",
    "hotjar.com",
    "analytics.tiktok.com",
)


class HeadlessBrowser:
    """One Chromium instance with an Indonesian desktop browsing context.

    Use as ``async with HeadlessBrowser() as browser``; leaving the block
    closes the context, the browser and the Playwright driver.
    """

    def __init__(self) -> None:
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None

    async def __aenter__(self) -> "HeadlessBrowser":
        await self.launch()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def launch(self) -> None:
        """Start Playwright, Chromium and a browsing context.

        Raises:
            Exception: Whatever Playwright raised; partially started
                resources are closed first.
        """
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(headless=True, args=CHROMIUM_ARGS)
            self._context = await self._browser.new_context(
                user_agent=USER_AGENT,
                locale="id-ID",
                timezone_id="Asia/Jakarta",
                viewport={"width": 1366, "height": 768},
                extra_http_headers={"Accept-Language": DEFAULT_HEADERS["Accept-Language"]},
            )
            await self._context.route("**/*", self._filter_request)
        except Exception as e:
            logger.error(f"Chromium launch failed: {e}")
            await self.close()
            raise

        logger.debug("Chromium launched")

    async def close(self) -> None:
        """Release context, browser and driver, in that order."""
        context, browser, driver = self._context, self._browser, self._playwright
        self._context = self._browser = self._playwright = None

        for name, closer in (
            ("context", context.close if context else None),
            ("browser", browser.close if browser else None),
            ("driver", driver.stop if driver else None),
        ):
            if closer is None:
                continue
            try:
                await closer()
            except Exception as e:
                logger.warning(f"Failed to close headless {name}: {e}")

    async def _filter_request(self, route: Route) -> None:
        request = route.request
        if request.resource_type in BLOCKED_RESOURCE_TYPES or any(
            host in request.url for host in TRACKER_HOSTS
        ):
            await route.abort()
            return
        await route.continue_()

    async def new_page(self) -> Page:
        """Open a tab in the browsing context."""
        if self._context is None:
            raise RuntimeError("HeadlessBrowser used outside its async with block")
        return await self._context.new_page()


async def render_page(url: str) -> str:
    """Render a listing page and serialize the live DOM.

    Args:
        url: Listing URL.

    Returns:
        HTML of the page after client-side scripts had time to populate it.

    Raises:
        RenderFailed: If the browser cannot start, navigation fails or times out.
    """
    timeout_ms = int(config.scraping.render_timeout * 1000)
    try:
        async with HeadlessBrowser() as browser:
            page = await browser.new_page()
            logger.debug(f"Rendering {url}")
            await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
            await asyncio.sleep(config.scraping.settle_delay)
            html = await page.content()
    except Exception as e:
        raise RenderFailed(f"Headless rendering failed for {url}: {e}") from e

    logger.info(f"Rendered {len(html)} characters with headless browser: {url}")
    return html
