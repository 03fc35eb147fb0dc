"""Data models for the listing analysis application.

Defines Pydantic models for all data structures used throughout the application
including partially extracted listings, canonical listings, image candidates,
processed images and classifier results. Also holds the sentinel strings used
when a field cannot be resolved, since downstream consumers expect every field
of a Listing to be present.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

# Sentinels for unresolved fields
NOT_FOUND = "Tidak ditemukan"
PRICE_UNAVAILABLE = "Harga tidak tersedia"
CONTACT_SELLER = "Hubungi penjual"
TITLE_UNAVAILABLE = "Judul tidak tersedia"
LOCATION_UNAVAILABLE = "Lokasi tidak tersedia"
DESCRIPTION_UNAVAILABLE = "Deskripsi tidak tersedia"
DESCRIPTION_DEGRADED = "Tidak dapat mengambil deskripsi. Silakan cek link langsung."


class ListingSource(str, Enum):
    """Marketplace a listing URL belongs to."""

    OLX = "olx"
    MOBIL123 = "mobil123"

    @property
    def display_name(self) -> str:
        """Human-readable marketplace name."""
        return {ListingSource.OLX: "OLX", ListingSource.MOBIL123: "Mobil123"}[self]


class ListingSpecs(BaseModel):
    """Optional technical specifications, marketplace dependent.

    Attributes:
        transmission: Gearbox type as shown by the seller.
        fuel_type: Fuel type as shown by the seller.
        color: Exterior color.
    """

    transmission: str | None = None
    fuel_type: str | None = None
    color: str | None = None


class PartialListing(BaseModel):
    """Raw extraction result before normalization.

    Any field may be None when no strategy produced a value.

    Attributes:
        title: Listing headline.
        price: Price text as found on the page.
        location: Seller or car location.
        description: Free-form seller description.
        mileage: Odometer text.
        images: Resolved image URLs in page order.
        specs: Marketplace-specific specifications.
    """

    title: str | None = None
    price: str | None = None
    location: str | None = None
    description: str | None = None
    mileage: str | None = None
    images: list[str] = Field(default_factory=list)
    specs: ListingSpecs = Field(default_factory=ListingSpecs)

    @property
    def is_unresolved(self) -> bool:
        """True when neither title nor price could be extracted."""
        return not self.title and not self.price


class Listing(BaseModel):
    """Canonical normalized car advertisement.

    Every text field always holds a value; absence is expressed with one of
    the module-level sentinel strings.

    Attributes:
        title: Cleaned listing title.
        price: Canonical Rupiah string or a price sentinel.
        year: Four-digit model year or NOT_FOUND.
        mileage: Mileage with unit suffix or NOT_FOUND.
        location: Cleaned location.
        description: Cleaned description, bounded length.
        images: Deduplicated CDN URLs in relevance order.
        specs: Optional technical specifications.
        source: Marketplace the listing came from.
        url: Listing URL that was scraped.
        degraded: True when built from the URL alone after every tier failed.
    """

    title: str
    price: str
    year: str
    mileage: str
    location: str
    description: str
    images: list[str] = Field(default_factory=list)
    specs: ListingSpecs = Field(default_factory=ListingSpecs)
    source: ListingSource
    url: str
    degraded: bool = False


class ImageCandidate(BaseModel):
    """Image metadata object found inside an embedded JSON image array.

    Attributes:
        identifier: Stable per-image identifier (CDN file id or file name).
        width: Declared pixel width, 0 when absent.
        height: Declared pixel height, 0 when absent.
    """

    identifier: str | None = None
    width: int = 0
    height: int = 0

    @property
    def is_landscape(self) -> bool:
        return self.width > self.height


class ProcessedImage(BaseModel):
    """Resized, recompressed JPEG ready for the image classifier.

    Attributes:
        source_url: Original image URL.
        data: Base64-encoded JPEG bytes.
        width: Width after resizing.
        height: Height after resizing.
    """

    source_url: str
    data: str
    width: int
    height: int

    @property
    def data_url(self) -> str:
        return f"data:image/jpeg;base64,{self.data}"


class ClassifierResult(BaseModel):
    """Condition assessment returned by the image classifier.

    The core only produces the classifier input; this model is the pass-through
    shape handed to the HTTP layer.

    Attributes:
        score: Overall condition score (0-100).
        confidence: Confidence in the score (0-100).
        risk_level: LOW, MEDIUM or HIGH.
        findings: Short narrative findings.
        recommendation: Buyer recommendation text.
        detailed_analysis: Per-area analysis, free-form.
        image_count: Number of images the result is based on.
        fallback: True when produced locally instead of by the classifier.
    """

    score: int
    confidence: int
    risk_level: str = "MEDIUM"
    findings: list[str] = Field(default_factory=list)
    recommendation: str = ""
    detailed_analysis: dict[str, Any] = Field(default_factory=dict)
    image_count: int = 0
    fallback: bool = False


class AnalysisResult(BaseModel):
    """Complete response payload for one analysis request.

    Attributes:
        listing: Canonical listing record.
        assessment: Classifier (or fallback) result.
        bucket_key: Archive key the original image URLs were stored under.
        from_cache: Whether the listing came from the cache.
        analyzed_at: When the analysis finished.
        processing_time_ms: Total processing time in milliseconds.
    """

    listing: Listing
    assessment: ClassifierResult
    bucket_key: str | None = None
    from_cache: bool = False
    analyzed_at: datetime = Field(default_factory=datetime.now)
    processing_time_ms: int = 0
