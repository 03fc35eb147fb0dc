"""Field normalization for scraped listings.

All functions are total: they accept None or arbitrary scraped text and
always return a display-ready string, using the sentinels from
berburu.models when nothing usable is left. Price normalization is idempotent
so already-canonical values pass through unchanged.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from ..config import config
from ..models import (
    DESCRIPTION_UNAVAILABLE,
    LOCATION_UNAVAILABLE,
    NOT_FOUND,
    PRICE_UNAVAILABLE,
    TITLE_UNAVAILABLE,
    Listing,
    ListingSource,
    PartialListing,
)

JSON_ARTIFACTS_RE = re.compile(r'[{}"\[\]]')
PRICE_LABEL_RE = re.compile(r"^(?:(?:harga|price)\s*:\s*)+", re.IGNORECASE)
RUPIAH_PREFIX_RE = re.compile(r"^RP\s*", re.IGNORECASE)
NUMBER_RE = re.compile(r"\d[\d.,]*")
YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")
WHITESPACE_RE = re.compile(r"\s+")


def _parse_amount(number: str) -> Decimal | None:
    """Parse a digit run with ambiguous thousands/decimal separators.

    When both separators occur, the later one is the decimal point. With a
    single kind, one separator followed by at most two digits is a decimal
    point; anything else is thousands grouping.
    """
    number = number.rstrip(".,")
    if not number:
        return None

    has_dot = "." in number
    has_comma = "," in number

    if has_dot and has_comma:
        last = max(number.rfind("."), number.rfind(","))
        integer_part = number[:last].replace(".", "").replace(",", "")
        normalized = f"{integer_part}.{number[last + 1:]}"
    elif has_dot or has_comma:
        separator = "." if has_dot else ","
        parts = number.split(separator)
        if len(parts) == 2 and len(parts[1]) <= 2:
            normalized = f"{parts[0]}.{parts[1]}"
        else:
            normalized = number.replace(separator, "")
    else:
        normalized = number

    try:
        return Decimal(normalized)
    except InvalidOperation:
        return None


def format_rupiah(amount: int) -> str:
    """Render an integer amount as 'Rp 175.000.000'."""
    return f"Rp {amount:,}".replace(",", ".")


def normalize_price(raw: str | None) -> str:
    """Normalize scraped price text into canonical Rupiah notation.

    Args:
        raw: Price text as scraped, may be None.

    Returns:
        'Rp 175.000.000' style string, the cleaned text for non-numeric prices
        such as 'Hubungi penjual', or PRICE_UNAVAILABLE.
    """
    if raw is None:
        return PRICE_UNAVAILABLE
    text = raw.strip()
    if not text:
        return PRICE_UNAVAILABLE
    if text == NOT_FOUND:
        return NOT_FOUND

    cleaned = JSON_ARTIFACTS_RE.sub("", text).strip()
    cleaned = PRICE_LABEL_RE.sub("", cleaned).strip()
    cleaned = RUPIAH_PREFIX_RE.sub("Rp ", cleaned).strip()

    match = NUMBER_RE.search(cleaned)
    if match:
        amount = _parse_amount(match.group(0))
        if amount is not None and amount > 0:
            try:
                rounded = int(amount.quantize(Decimal(1), rounding=ROUND_HALF_UP))
            except InvalidOperation:
                # More digits than the decimal context holds; not a real price
                rounded = 0
            if rounded > 0:
                return format_rupiah(rounded)

    lowered = cleaned.lower()
    if "rp" in lowered:
        return WHITESPACE_RE.sub(" ", cleaned).strip()
    if "hubungi" in lowered or "nego" in lowered:
        return cleaned
    return cleaned or PRICE_UNAVAILABLE


def normalize_year(raw: str | None) -> str:
    """Return the first 19xx/20xx token of the text, else NOT_FOUND."""
    if not raw:
        return NOT_FOUND
    match = YEAR_RE.search(raw)
    return match.group(0) if match else NOT_FOUND


def normalize_mileage(raw: str | None) -> str:
    """Clean odometer text and append ' km' when the unit is missing."""
    if not raw:
        return NOT_FOUND
    cleaned = JSON_ARTIFACTS_RE.sub("", raw)
    cleaned = re.sub(r"mileage:|kilometer:", "", cleaned, flags=re.IGNORECASE)
    cleaned = WHITESPACE_RE.sub(" ", cleaned).strip()
    if cleaned and "km" not in cleaned.lower() and re.search(r"\d", cleaned):
        cleaned += " km"
    return cleaned or NOT_FOUND


def _clean_labelled(raw: str | None, labels: str, sentinel: str) -> str:
    if not raw:
        return sentinel
    cleaned = JSON_ARTIFACTS_RE.sub("", raw)
    cleaned = re.sub(rf"(?:{labels})\s*:", "", cleaned, flags=re.IGNORECASE)
    cleaned = WHITESPACE_RE.sub(" ", cleaned).strip()
    return cleaned or sentinel


def normalize_title(raw: str | None) -> str:
    return _clean_labelled(raw, "title|judul", TITLE_UNAVAILABLE)


def normalize_location(raw: str | None) -> str:
    return _clean_labelled(raw, "location|lokasi", LOCATION_UNAVAILABLE)


def normalize_description(raw: str | None, max_length: int | None = None) -> str:
    """Clean description text and bound its length.

    Args:
        raw: Description as scraped.
        max_length: Maximum length, defaults to the configured description length.

    Returns:
        Cleaned description or DESCRIPTION_UNAVAILABLE.
    """
    if max_length is None:
        max_length = config.scraping.description_max_length
    if not raw:
        return DESCRIPTION_UNAVAILABLE
    cleaned = JSON_ARTIFACTS_RE.sub("", raw)
    cleaned = re.sub(r"(?:description|deskripsi)\s*:", "", cleaned, flags=re.IGNORECASE)
    cleaned = cleaned.strip()[:max_length].strip()
    return cleaned or DESCRIPTION_UNAVAILABLE


def normalize_listing(
    partial: PartialListing,
    source: ListingSource,
    url: str,
    degraded: bool = False,
) -> Listing:
    """Turn an extraction result into a canonical Listing.

    Args:
        partial: Raw extraction result.
        source: Marketplace the listing came from.
        url: Listing URL.
        degraded: Whether the listing was synthesized from the URL alone.

    Returns:
        Listing with every text field populated.
    """
    title = normalize_title(partial.title)
    images = list(dict.fromkeys(partial.images))[: config.scraping.max_listing_images]
    return Listing(
        title=title,
        price=normalize_price(partial.price),
        year=normalize_year(partial.title),
        mileage=normalize_mileage(partial.mileage),
        location=normalize_location(partial.location),
        description=normalize_description(partial.description),
        images=images,
        specs=partial.specs,
        source=source,
        url=url,
        degraded=degraded,
    )
