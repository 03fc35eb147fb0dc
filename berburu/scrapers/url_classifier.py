"""Listing URL validation and marketplace detection.

Accepts only HTTPS detail pages on the allow-listed OLX Indonesia and Mobil123
hosts. Every rejection carries a machine-readable reason and an Indonesian
message that can be shown to the user as-is.
"""

import re
from urllib.parse import urlparse

from .. import messages
from ..errors import RejectionReason, UnsupportedUrl
from ..models import ListingSource

ALLOWED_HOSTS: dict[str, ListingSource] = {
    "olx.co.id": ListingSource.OLX,
    "www.olx.co.id": ListingSource.OLX,
    "mobil123.com": ListingSource.MOBIL123,
    "www.mobil123.com": ListingSource.MOBIL123,
}

DETAIL_PATH_PATTERNS: dict[ListingSource, re.Pattern[str]] = {
    ListingSource.OLX: re.compile(r"^/item/.+$", re.IGNORECASE),
    ListingSource.MOBIL123: re.compile(r"^/(dijual|mobil-bekas)/.+$", re.IGNORECASE),
}

REJECTION_MESSAGES = {
    RejectionReason.MALFORMED_URL: messages.URL_MALFORMED,
    RejectionReason.INSECURE_SCHEME: messages.URL_INSECURE_SCHEME,
    RejectionReason.HOST_NOT_ALLOWED: messages.URL_HOST_NOT_ALLOWED,
    RejectionReason.NOT_DETAIL_PAGE: messages.URL_NOT_DETAIL_PAGE,
}


def _reject(reason: RejectionReason, url: str) -> UnsupportedUrl:
    return UnsupportedUrl(reason, url, REJECTION_MESSAGES[reason])


def classify_url(url: str) -> ListingSource:
    """Validate a submitted listing URL and determine its marketplace.

    The hostname gate runs before the scheme gate, so a foreign host is always
    reported as HOST_NOT_ALLOWED whatever its scheme.

    Args:
        url: Raw URL as submitted by the user.

    Returns:
        Marketplace the URL belongs to.

    Raises:
        UnsupportedUrl: If the URL is malformed, insecure, foreign or not a detail page.
    """
    candidate = url.strip() if isinstance(url, str) else ""
    if not candidate:
        raise _reject(RejectionReason.MALFORMED_URL, str(url))

    try:
        parsed = urlparse(candidate)
        host = (parsed.hostname or "").lower()
    except ValueError:
        raise _reject(RejectionReason.MALFORMED_URL, candidate) from None

    if not parsed.scheme or not host:
        raise _reject(RejectionReason.MALFORMED_URL, candidate)

    source = ALLOWED_HOSTS.get(host)
    if source is None:
        raise _reject(RejectionReason.HOST_NOT_ALLOWED, candidate)

    if parsed.scheme.lower() != "https":
        raise _reject(RejectionReason.INSECURE_SCHEME, candidate)

    if not DETAIL_PATH_PATTERNS[source].match(parsed.path or ""):
        raise _reject(RejectionReason.NOT_DETAIL_PAGE, candidate)

    return source


def slug_from_url(url: str) -> str:
    """Derive a readable title from the last path segment of a listing URL.

    Args:
        url: Listing URL.

    Returns:
        Slug with dashes turned into spaces and '.html' removed, may be empty.
    """
    try:
        path = urlparse(url).path
    except ValueError:
        return ""
    segments = [segment for segment in path.split("/") if segment]
    if not segments:
        return ""
    slug = segments[-1].replace(".html", "").replace("-", " ")
    return re.sub(r"\s+", " ", slug).strip()
