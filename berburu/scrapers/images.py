"""Image candidate resolution for listing pages.

Marketplaces expose gallery photos in several places: JSON blobs embedded for
client-side hydration, loose identifier fields, gallery markup and plain CDN
URLs anywhere in the page. Resolution walks these tiers in order of accuracy
and only falls through to the next tier when the previous one found nothing.

Every found reference is reduced to a stable identifier and rebuilt as the
canonical highest-quality CDN URL, so the same photo referenced with different
sizes or query strings is returned once.
"""

import json
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from bs4 import BeautifulSoup

from ..models import ImageCandidate

logger = logging.getLogger(__name__)

IMAGES_BLOB_RE = re.compile(r'"images":\s*\[[^\]]+\]')


@dataclass(frozen=True)
class ImageProfile:
    """How one marketplace references and serves its gallery photos.

    Attributes:
        name: Marketplace name for logging.
        from_url: Turns a found image URL into its canonical URL, None to reject it.
        from_identifier: Turns an embedded identifier into a canonical URL, None to reject it.
        identifier_keys: Keys holding the identifier inside embedded image objects.
        identifier_pattern: Regex with one group matching loose identifier fields.
        gallery_selectors: CSS selectors for gallery image nodes.
        cdn_url_pattern: Regex matching CDN image URLs anywhere in the page.
    """
    name: str
    from_url: Callable[[str], str | None]
    from_identifier: Callable[[str], str | None] | None = None
    identifier_keys: tuple[str, ...] = ()
    identifier_pattern: re.Pattern[str] | None = None
    gallery_selectors: tuple[str, ...] = ()
    cdn_url_pattern: re.Pattern[str] | None = None

    def canonical(self, value: str) -> str | None:
        """Canonical URL for an embedded value that may be an id or a URL."""
        if self.from_identifier is not None and not value.startswith(("http", "//")):
            return self.from_identifier(value)
        return self.from_url(value)


def _candidate(obj: dict, identifier_keys: tuple[str, ...]) -> ImageCandidate:
    def dimension(key: str) -> int:
        try:
            return int(obj.get(key) or 0)
        except (TypeError, ValueError):
            return 0

    identifier = next(
        (obj[key] for key in identifier_keys if isinstance(obj.get(key), str) and obj[key].strip()),
        None,
    )
    return ImageCandidate(
        identifier=identifier,
        width=dimension("width"),
        height=dimension("height"),
    )


def is_accepted_group(candidates: list[ImageCandidate]) -> bool:
    """Decide whether an embedded image array belongs to the car gallery.

    Single-photo arrays are usually avatars or promo banners; only a lone
    landscape photo is kept. Arrays of three or more are gallery data.

    Args:
        candidates: Image metadata of one embedded array.

    Returns:
        True if the array should be used.
    """
    if len(candidates) >= 3:
        return True
    return len(candidates) == 1 and candidates[0].is_landscape


def _from_embedded_groups(content: str, profile: ImageProfile) -> list[str]:
    if not profile.identifier_keys:
        return []

    urls: list[str] = []
    for match in IMAGES_BLOB_RE.finditer(content):
        blob = match.group(0).split(":", 1)[1]
        try:
            objects = json.loads(blob)
        except json.JSONDecodeError:
            continue
        candidates = [
            _candidate(obj, profile.identifier_keys) for obj in objects if isinstance(obj, dict)
        ]
        if not is_accepted_group(candidates):
            continue
        for candidate in candidates:
            if candidate.identifier and (url := profile.canonical(candidate.identifier)):
                urls.append(url)
    return urls


def _from_identifier_fields(content: str, profile: ImageProfile) -> list[str]:
    if profile.identifier_pattern is None or profile.from_identifier is None:
        return []
    urls = []
    for identifier in profile.identifier_pattern.findall(content):
        url = profile.from_identifier(identifier)
        if url:
            urls.append(url)
    return urls


def _from_gallery_markup(soup: BeautifulSoup, profile: ImageProfile) -> list[str]:
    urls = []
    for selector in profile.gallery_selectors:
        for element in soup.select(selector):
            src = element.get("data-src") or element.get("src")
            if not src and element.get("srcset"):
                src = element["srcset"].split(" ")[0]
            if isinstance(src, str) and (url := profile.from_url(src)):
                urls.append(url)
    return urls


def _from_cdn_sweep(content: str, profile: ImageProfile) -> list[str]:
    if profile.cdn_url_pattern is None:
        return []
    urls = []
    for found in profile.cdn_url_pattern.findall(content):
        url = profile.from_url(found)
        if url:
            urls.append(url)
    return urls


def resolve_images(
    content: str,
    profile: ImageProfile,
    limit: int = 20,
    soup: BeautifulSoup | None = None,
) -> list[str]:
    """Resolve the ordered, deduplicated gallery URLs of a listing page.

    Args:
        content: Raw page content (static HTML or serialized live DOM).
        profile: Marketplace image profile.
        limit: Maximum number of URLs returned.
        soup: Already parsed document, parsed from content when omitted.

    Returns:
        Canonical image URLs in first-occurrence order, at most limit entries.
    """
    if not content:
        return []

    if soup is None:
        soup = BeautifulSoup(content, "lxml")

    tiers: list[tuple[str, Callable[[], list[str]]]] = [
        ("embedded groups", lambda: _from_embedded_groups(content, profile)),
        ("identifier fields", lambda: _from_identifier_fields(content, profile)),
        ("gallery markup", lambda: _from_gallery_markup(soup, profile)),
        ("cdn sweep", lambda: _from_cdn_sweep(content, profile)),
    ]

    for tier_name, tier in tiers:
        urls = list(dict.fromkeys(tier()))
        if urls:
            logger.debug(f"{profile.name}: {len(urls)} images from {tier_name}")
            return urls[:limit]

    logger.debug(f"{profile.name}: no images resolved")
    return []


# OLX: apollo CDN, identifiers look like "<hex>-ID"
OLX_FILE_ID_RE = re.compile(r"/files/([a-fA-F0-9\-]+-ID)/")
OLX_CANONICAL_URL = "https://apollo.olx.co.id/v1/files/{identifier}/image;s=780x0;q=60"


def olx_url_from_identifier(identifier: str) -> str | None:
    if "-ID" not in identifier:
        return None
    return OLX_CANONICAL_URL.format(identifier=identifier)


def olx_url_from_url(url: str) -> str | None:
    if "apollo.olx.co.id" not in url:
        return None
    match = OLX_FILE_ID_RE.search(url)
    if not match:
        return None
    return olx_url_from_identifier(match.group(1))


OLX_IMAGE_PROFILE = ImageProfile(
    name="olx",
    from_url=olx_url_from_url,
    from_identifier=olx_url_from_identifier,
    identifier_keys=("external_id",),
    identifier_pattern=re.compile(r'"external_id":\s*"([^"]+)"'),
    gallery_selectors=(
        ".slick-slide figure img",
        ".slick-slide figure source",
        "figure.slick-slide img",
    ),
    cdn_url_pattern=re.compile(
        r"https://apollo\.olx\.co\.id/v1/files/[a-fA-F0-9\-]+(?:-ID)?/image[^\"'\s]*"
    ),
)


# Mobil123: icarcdn CDN, gallery photos carry "gallery_" in the file name
MOBIL123_EXCLUDED_MARKERS = ("logo", "icon", "safety_tips", "profile_pic")


def mobil123_url_from_url(url: str) -> str | None:
    # Script blobs carry JSON-escaped slashes
    url = url.strip().replace("\\/", "/")
    if url.startswith("//"):
        url = "https:" + url
    if "icarcdn.com" not in url or "gallery_" not in url:
        return None
    if any(marker in url for marker in MOBIL123_EXCLUDED_MARKERS):
        return None
    url = url.split("?", 1)[0].split("#", 1)[0]
    base, _, filename = url.rpartition("/")
    if filename.startswith("thumb-"):
        filename = filename[len("thumb-"):]
    return f"{base}/{filename}"


MOBIL123_IMAGE_PROFILE = ImageProfile(
    name="mobil123",
    from_url=mobil123_url_from_url,
    from_identifier=mobil123_url_from_url,
    identifier_keys=("url", "src"),
    identifier_pattern=re.compile(
        r'"(?:url|src|image)"\s*:\s*"((?:https?:)?(?:\\?/){2}[^"]*icarcdn\.com[^"]*gallery_[^"]*)"'
    ),
    gallery_selectors=(
        '[data-src*="gallery_"]',
        'img[src*="gallery_"]',
    ),
    cdn_url_pattern=re.compile(
        r"(?:https:)?//[\w.-]*icarcdn\.com/[^\"'\s()]*gallery_[^\"'\s()]*"
    ),
)
