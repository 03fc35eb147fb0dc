"""OLX Indonesia scraper implementing the unified ScraperProtocol interface.

OLX renders most of the listing page client-side; the static HTML usually
carries the hydration JSON with the gallery but often lacks the visible
title and price, which is when the headless fallback kicks in.
"""

import re

from ..models import ListingSource
from .base import BaseScraper
from .extraction import (
    ExtractionProfile,
    document_title,
    meta_content,
    price_text_scan,
    selector_text,
)
from .images import OLX_IMAGE_PROFILE


def _looks_like_rupiah(text: str) -> bool:
    return "Rp" in text and bool(re.search(r"\d", text))


OLX_PROFILE = ExtractionProfile(
    name="olx",
    title=[
        selector_text("h1", '[data-cy="ad_title"]', '[data-aut-id="itemTitle"]', ".ad-title"),
        meta_content(("property", "og:title")),
        document_title("|"),
    ],
    price=[
        selector_text(
            '[data-aut-id="itemPrice"]',
            '[data-testid="ad-price"]',
            '.notranslate[data-aut-id="itemPrice"]',
            '[data-testid="price"]',
            ".rui-2Pidb",
            ".price",
            ".ad-price",
            '[class*="Price"]',
            '[class*="price"]',
            accept=_looks_like_rupiah,
        ),
        meta_content(("property", "product:price:amount"), ("property", "og:price:amount"), prefix="Rp "),
        price_text_scan,
    ],
    location=[
        selector_text('[data-cy="ad_location"]', ".location", ".ad-location", '[class*="location"]'),
    ],
    description=[
        selector_text('[data-cy="ad_description"]', ".description", ".ad-description"),
        meta_content(("property", "og:description")),
    ],
    mileage=[
        selector_text('[data-aut-id="itemAttribute_mileage"]', '[data-aut-id="value_mileage"]'),
    ],
    transmission=[
        selector_text('[data-aut-id="value_transmission"]'),
    ],
    fuel_type=[
        selector_text('[data-aut-id="value_petrol"]'),
    ],
    color=[
        selector_text('[data-aut-id="value_color"]'),
    ],
    images=OLX_IMAGE_PROFILE,
)


class OlxScraper(BaseScraper):
    """OLX Indonesia scraper implementing ScraperProtocol.

    Features:
    - Title, price, location and description from OLX item pages
    - Gallery photos from the apollo CDN at canonical 780px quality
    - Headless fallback for client-rendered pages
    """

    def __init__(self) -> None:
        """Initialize OLX scraper."""
        super().__init__(ListingSource.OLX, OLX_PROFILE)


# Global OLX scraper instance
olx_scraper = OlxScraper()
