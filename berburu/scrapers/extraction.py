"""Field extraction strategies for listing pages.

Each field of a listing is resolved by walking an ordered list of strategies
over the parsed document; the first strategy returning a non-empty value wins.
Strategies are plain callables so marketplace profiles can compose selector
chains, meta tags, embedded script scans and text scans freely.

The same extractor runs over static HTML and over the live DOM serialized by
the rendering fallback.
"""

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from bs4 import BeautifulSoup, Tag

from ..errors import ExtractionError
from ..models import ListingSpecs, PartialListing
from .images import ImageProfile, resolve_images

logger = logging.getLogger(__name__)

FieldStrategy = Callable[[BeautifulSoup], str | None]

PRICE_TEXT_RE = re.compile(r"^(Rp|RP)\s*[\d,.]+")
HAS_DIGIT_RE = re.compile(r"\d")


def _clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    value = re.sub(r"\s+", " ", value).strip()
    return value or None


def selector_text(*selectors: str, accept: Callable[[str], bool] | None = None) -> FieldStrategy:
    """Build a strategy returning the text of the first acceptable element.

    Args:
        *selectors: CSS selectors tried in order.
        accept: Optional predicate the element text must satisfy.

    Returns:
        Strategy callable.
    """

    def strategy(soup: BeautifulSoup) -> str | None:
        for selector in selectors:
            for element in soup.select(selector):
                text = _clean_text(element.get_text(" ", strip=True))
                if text and (accept is None or accept(text)):
                    return text
                if accept is None:
                    # Only the first match per selector counts without a predicate
                    break
        return None

    return strategy


def meta_content(*specs: tuple[str, str], prefix: str = "") -> FieldStrategy:
    """Build a strategy reading the content attribute of a meta tag.

    Args:
        *specs: (attribute, value) pairs such as ("property", "og:title").
        prefix: Text prepended to a found value.

    Returns:
        Strategy callable.
    """

    def strategy(soup: BeautifulSoup) -> str | None:
        for attr, value in specs:
            tag = soup.find("meta", attrs={attr: value})
            if isinstance(tag, Tag):
                content = _clean_text(tag.get("content"))
                if content:
                    return f"{prefix}{content}"
        return None

    return strategy


def document_title(separator: str = "|") -> FieldStrategy:
    """Build a strategy using the <title> tag up to the site-name separator."""

    def strategy(soup: BeautifulSoup) -> str | None:
        if soup.title is None or not soup.title.string:
            return None
        return _clean_text(soup.title.string.split(separator)[0])

    return strategy


def price_text_scan(soup: BeautifulSoup) -> str | None:
    """Last-resort scan of text nodes for a short 'Rp <digits>' string."""
    for node in soup.find_all(string=True):
        if node.parent is not None and node.parent.name in ("script", "style"):
            continue
        text = node.strip()
        if text and len(text) < 50 and "\n" not in text and PRICE_TEXT_RE.match(text):
            return text
    return None


def script_price(pattern: str = r"[\"']price[\"']\s*:\s*[\"']?([\d.,]+)") -> FieldStrategy:
    """Build a strategy scanning inline scripts for a price key."""
    regex = re.compile(pattern, re.IGNORECASE)

    def strategy(soup: BeautifulSoup) -> str | None:
        for script in soup.find_all("script"):
            text = script.string or script.get_text()
            if not text:
                continue
            match = regex.search(text)
            if match and HAS_DIGIT_RE.search(match.group(1)):
                return f"Rp {match.group(1)}"
        return None

    return strategy


def run_strategies(soup: BeautifulSoup, strategies: Sequence[FieldStrategy]) -> str | None:
    """Return the first non-empty value produced by the strategies."""
    for strategy in strategies:
        try:
            value = strategy(soup)
        except (AttributeError, TypeError, ValueError) as e:
            logger.debug(f"Extraction strategy failed: {e}")
            continue
        if value:
            return value
    return None


@dataclass
class ExtractionProfile:
    """Marketplace-specific strategy lists for every listing field.

    Attributes:
        name: Marketplace name for logging.
        title: Strategies for the listing title.
        price: Strategies for the price text.
        location: Strategies for the location.
        description: Strategies for the description.
        mileage: Strategies for the odometer reading.
        transmission: Strategies for the transmission spec.
        fuel_type: Strategies for the fuel type spec.
        color: Strategies for the color spec.
        images: Image candidate resolution profile.
        image_limit: Cap on resolved image URLs.
    """
    name: str
    title: list[FieldStrategy]
    price: list[FieldStrategy]
    location: list[FieldStrategy]
    description: list[FieldStrategy]
    images: ImageProfile
    mileage: list[FieldStrategy] = field(default_factory=list)
    transmission: list[FieldStrategy] = field(default_factory=list)
    fuel_type: list[FieldStrategy] = field(default_factory=list)
    color: list[FieldStrategy] = field(default_factory=list)
    image_limit: int = 20


def extract_listing(html: str, profile: ExtractionProfile) -> PartialListing:
    """Extract every listing field from an HTML document.

    Args:
        html: Static HTML or serialized live DOM.
        profile: Marketplace extraction profile.

    Returns:
        PartialListing with whatever could be found.

    Raises:
        ExtractionError: If the document is empty or cannot be parsed.
    """
    if not html or not html.strip():
        raise ExtractionError(f"Empty document for {profile.name}")

    try:
        soup = BeautifulSoup(html, "lxml")
    except Exception as e:
        raise ExtractionError(f"Unparseable document for {profile.name}: {e}") from e

    partial = PartialListing(
        title=run_strategies(soup, profile.title),
        price=run_strategies(soup, profile.price),
        location=run_strategies(soup, profile.location),
        description=run_strategies(soup, profile.description),
        mileage=run_strategies(soup, profile.mileage),
        images=resolve_images(html, profile.images, limit=profile.image_limit, soup=soup),
        specs=ListingSpecs(
            transmission=run_strategies(soup, profile.transmission),
            fuel_type=run_strategies(soup, profile.fuel_type),
            color=run_strategies(soup, profile.color),
        ),
    )

    logger.debug(
        f"{profile.name} extraction: title={partial.title!r} price={partial.price!r} "
        f"images={len(partial.images)}"
    )
    return partial
