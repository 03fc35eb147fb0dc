"""Web scrapers package.

Contains marketplace-specific scraping for OLX Indonesia and Mobil123 listing
pages behind a unified interface.

Architecture:
- classify_url: URL gate and marketplace detection
- ScraperProtocol / BaseScraper: static fetch, headless fallback, degraded result
- ScraperRegistry: scrapers keyed by ListingSource
- OlxScraper / Mobil123Scraper: marketplace extraction profiles
"""

import aiohttp

from ..models import Listing
from .base import BaseScraper, ScraperProtocol, scraper_registry
from .mobil123_scraper import mobil123_scraper
from .olx_scraper import olx_scraper
from .url_classifier import classify_url

# Auto-register all available scrapers
scraper_registry.register(olx_scraper)
scraper_registry.register(mobil123_scraper)


async def scrape_listing(url: str, session: aiohttp.ClientSession) -> Listing:
    """Classify a listing URL and scrape it with the matching scraper.

    Args:
        url: Raw listing URL.
        session: HTTP session for requests.

    Returns:
        Normalized Listing, degraded when extraction failed.

    Raises:
        UnsupportedUrl: If the URL is not a supported listing detail page.
    """
    url = url.strip()
    source = classify_url(url)
    scraper = scraper_registry.get_scraper(source)
    if scraper is None:
        raise RuntimeError(f"No scraper registered for {source.value}")
    return await scraper.scrape_listing(url, session)


__all__ = [
    "ScraperProtocol",
    "BaseScraper",
    "scraper_registry",
    "olx_scraper",
    "mobil123_scraper",
    "classify_url",
    "scrape_listing",
]
