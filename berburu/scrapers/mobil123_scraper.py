"""Mobil123 scraper implementing the unified ScraperProtocol interface.

Mobil123 pages are server-rendered and usually resolve from static HTML,
including the specification table and lazy-loaded gallery images.
"""

import re

from bs4 import BeautifulSoup

from ..models import ListingSource
from .base import BaseScraper
from .extraction import (
    ExtractionProfile,
    meta_content,
    price_text_scan,
    script_price,
    selector_text,
)
from .images import MOBIL123_IMAGE_PROFILE


def _has_digit(text: str) -> bool:
    return bool(re.search(r"\d", text))


def specs_mileage(soup: BeautifulSoup) -> str | None:
    """Find the first specification item mentioning kilometers."""
    for item in soup.select(".specs li, .listing__specs li, [class*='spec'] li"):
        text = item.get_text(" ", strip=True)
        if "km" in text.lower() and _has_digit(text):
            return text
    return None


MOBIL123_PROFILE = ExtractionProfile(
    name="mobil123",
    title=[
        selector_text("h1", ".listing-title", ".car-title", ".title-txt", '[data-testid="listing-title"]'),
        meta_content(("property", "og:title")),
    ],
    price=[
        selector_text(
            ".price",
            ".listing-price",
            ".car-price",
            ".price-value",
            '[data-testid="listing-price"]',
            accept=_has_digit,
        ),
        script_price(),
        meta_content(("property", "product:price:amount"), ("name", "price"), prefix="Rp "),
        price_text_scan,
    ],
    location=[
        selector_text(
            ".location",
            ".listing-location",
            ".car-location",
            ".dealer-location",
            '[data-testid="dealer-location"]',
        ),
    ],
    description=[
        selector_text(
            ".description",
            ".listing-description",
            ".car-description",
            ".listing-desc",
            '[data-testid="listing-description"]',
        ),
        meta_content(("name", "description")),
    ],
    mileage=[
        selector_text(".specs .mileage", '[data-label="Odometer"]', ".odometer"),
        specs_mileage,
    ],
    transmission=[
        selector_text(".specs .transmission", '[data-label="Transmission"]'),
    ],
    fuel_type=[
        selector_text(".specs .fuel", '[data-label="Fuel Type"]'),
    ],
    color=[
        selector_text(".specs .color", '[data-label="Color"]'),
    ],
    images=MOBIL123_IMAGE_PROFILE,
)


class Mobil123Scraper(BaseScraper):
    """Mobil123 scraper implementing ScraperProtocol.

    Features:
    - Title, price, location, description and mileage from listing pages
    - Transmission, fuel type and color from the specification table
    - Gallery photos from the icarcdn CDN, thumbnails mapped to full size
    """

    def __init__(self) -> None:
        """Initialize Mobil123 scraper."""
        super().__init__(ListingSource.MOBIL123, MOBIL123_PROFILE)


# Global Mobil123 scraper instance
mobil123_scraper = Mobil123Scraper()
