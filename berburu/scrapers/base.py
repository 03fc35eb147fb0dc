"""Base scraper protocol and abstractions for marketplace listing extraction.

Defines the unified interface all marketplace scrapers implement, the shared
static → headless → degraded scraping flow, and the registry mapping each
ListingSource to its scraper.
"""

import asyncio
import logging
from typing import Protocol

import aiohttp

from .. import messages
from ..config import config
from ..errors import ExtractionError, FetchFailed, RenderFailed
from ..models import (
    CONTACT_SELLER,
    DESCRIPTION_DEGRADED,
    NOT_FOUND,
    Listing,
    ListingSource,
    PartialListing,
)
from ..services.normalizer import normalize_listing
from .extraction import ExtractionProfile, extract_listing
from .fetcher import fetch_html
from .headless import render_page
from .url_classifier import slug_from_url

logger = logging.getLogger(__name__)


class ScraperProtocol(Protocol):
    """Protocol defining the interface for all marketplace scrapers.

    Methods:
        scrape_listing: Produce a Listing for a listing URL, never raising.
        extract: Extract a PartialListing from an HTML document.
        get_source: Get the marketplace identifier.
    """

    async def scrape_listing(self, url: str, session: aiohttp.ClientSession) -> Listing:
        """Scrape a listing URL into a canonical Listing.

        Args:
            url: Validated listing URL.
            session: HTTP session for requests.

        Returns:
            Listing, degraded when every extraction tier failed.
        """
        ...

    def extract(self, html: str) -> PartialListing:
        """Extract listing fields from a document.

        Args:
            html: Static HTML or serialized live DOM.

        Returns:
            PartialListing with whatever could be found.
        """
        ...

    def get_source(self) -> ListingSource:
        """Get the marketplace this scraper handles."""
        ...


class BaseScraper:
    """Base class implementing the shared scraping flow.

    Subclasses provide the marketplace extraction profile. The flow is a
    static fetch, then a headless render when the static result has neither
    title nor price, then a degraded listing built from the URL.
    """

    profile: ExtractionProfile

    def __init__(self, source: ListingSource, profile: ExtractionProfile):
        """Initialize base scraper.

        Args:
            source: Marketplace handled by this scraper.
            profile: Extraction strategies for the marketplace.
        """
        self.source = source
        self.profile = profile
        self.platform_name = source.value
        self.logger = logging.getLogger(f"{__name__}.{self.platform_name}")

    def get_source(self) -> ListingSource:
        """Get the marketplace this scraper handles."""
        return self.source

    def extract(self, html: str) -> PartialListing:
        return extract_listing(html, self.profile)

    async def scrape_listing(self, url: str, session: aiohttp.ClientSession) -> Listing:
        """Scrape a listing, degrading instead of raising.

        Args:
            url: Validated listing URL.
            session: HTTP session for requests.

        Returns:
            Normalized Listing; degraded when nothing could be extracted in time.
        """
        self._log_scraping_start(url)

        try:
            listing = await asyncio.wait_for(
                self._scrape(url, session), timeout=config.scraping.scrape_budget
            )
        except asyncio.TimeoutError:
            self.logger.warning(
                f"Scrape budget of {config.scraping.scrape_budget}s exceeded for {url}"
            )
            listing = self.build_degraded_listing(url)
        except Exception as e:
            self._log_scraping_error(url, e)
            listing = self.build_degraded_listing(url)

        if listing.degraded:
            self.logger.warning(f"Returning degraded listing for {url}")
        else:
            self._log_scraping_success(
                url, f"'{listing.title}' - {listing.price} ({len(listing.images)} images)"
            )
        return listing

    async def _scrape(self, url: str, session: aiohttp.ClientSession) -> Listing:
        partial = await self._extract_static(url, session)

        if (partial is None or partial.is_unresolved) and config.scraping.enable_headless_browser:
            self.logger.info(f"Static extraction unresolved, trying headless browser: {url}")
            rendered = await self._extract_rendered(url)
            if rendered is not None and not rendered.is_unresolved:
                partial = rendered
            elif partial is None:
                partial = rendered

        if partial is None or partial.is_unresolved:
            return self.build_degraded_listing(url)

        return normalize_listing(partial, self.source, url)

    async def _extract_static(
        self, url: str, session: aiohttp.ClientSession
    ) -> PartialListing | None:
        try:
            html = await fetch_html(url, session)
            return self.extract(html)
        except (FetchFailed, ExtractionError) as e:
            self.logger.warning(f"Static extraction failed for {url}: {e}")
            return None

    async def _extract_rendered(self, url: str) -> PartialListing | None:
        try:
            html = await render_page(url)
            return self.extract(html)
        except (RenderFailed, ExtractionError) as e:
            self.logger.warning(f"Rendered extraction failed for {url}: {e}")
            return None

    def build_degraded_listing(self, url: str) -> Listing:
        """Build a listing from the URL alone.

        Args:
            url: Listing URL.

        Returns:
            Listing titled from the URL slug, priced CONTACT_SELLER, without images.
        """
        title = slug_from_url(url) or messages.DEGRADED_TITLE.format(
            platform=self.source.display_name
        )
        partial = PartialListing(
            title=title,
            price=CONTACT_SELLER,
            location=NOT_FOUND,
            description=DESCRIPTION_DEGRADED,
        )
        return normalize_listing(partial, self.source, url, degraded=True)

    def _log_scraping_start(self, url: str) -> None:
        """Log the start of a scraping operation.

        Args:
            url: URL being scraped.
        """
        self.logger.info(f"Starting listing scraping for {self.platform_name}: {url}")

    def _log_scraping_success(self, url: str, result: str) -> None:
        """Log successful scraping operation.

        Args:
            url: URL that was scraped.
            result: Brief description of result.
        """
        self.logger.info(f"Successfully scraped listing from {self.platform_name}: {result}")

    def _log_scraping_error(self, url: str, error: Exception) -> None:
        """Log scraping error.

        Args:
            url: URL that failed to scrape.
            error: Exception that occurred.
        """
        self.logger.error(f"Failed to scrape listing from {self.platform_name} ({url}): {error}")


class ScraperRegistry:
    """Registry for managing marketplace scrapers.

    Provides centralized management of all available scrapers keyed by the
    marketplace the URL classifier reports.
    """

    def __init__(self) -> None:
        """Initialize empty scraper registry."""
        self._scrapers: dict[ListingSource, ScraperProtocol] = {}
        self.logger = logging.getLogger(f"{__name__}.registry")

    def register(self, scraper: ScraperProtocol) -> None:
        """Register a new scraper.

        Args:
            scraper: Scraper instance implementing ScraperProtocol.
        """
        source = scraper.get_source()
        self._scrapers[source] = scraper
        self.logger.info(f"Registered scraper for platform: {source.value}")

    def get_scraper(self, source: ListingSource) -> ScraperProtocol | None:
        """Get scraper by marketplace.

        Args:
            source: Marketplace identifier.

        Returns:
            Scraper instance if registered, None otherwise.
        """
        return self._scrapers.get(source)

    def get_all_platforms(self) -> list[str]:
        """Get list of all registered platform names.

        Returns:
            List of platform names.
        """
        return [source.value for source in self._scrapers]


# Global scraper registry instance
scraper_registry = ScraperRegistry()
