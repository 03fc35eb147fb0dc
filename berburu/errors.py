"""Exception taxonomy for scraping and analysis.

Only UnsupportedUrl is allowed to reach the caller of the scrape entry point.
Every other error is raised inside a single tier and converted into degraded
data by the layer above it.
"""

from enum import Enum


class RejectionReason(str, Enum):
    """Why a submitted URL was refused before any network call."""

    MALFORMED_URL = "malformed_url"
    INSECURE_SCHEME = "insecure_scheme"
    HOST_NOT_ALLOWED = "host_not_allowed"
    NOT_DETAIL_PAGE = "not_detail_page"


class ScrapingError(Exception):
    """Base class for all scraping related failures."""


class UnsupportedUrl(ScrapingError):
    """URL does not point to a supported marketplace detail page.

    Attributes:
        reason: Machine-readable rejection code.
        url: The rejected input.
    """

    def __init__(self, reason: RejectionReason, url: str, message: str):
        super().__init__(message)
        self.reason = reason
        self.url = url
        self.message = message


class FetchFailed(ScrapingError):
    """Listing page could not be downloaded."""


class RenderFailed(ScrapingError):
    """Headless rendering errored or timed out."""


class ExtractionError(ScrapingError):
    """HTML document was empty or could not be parsed."""


class ImageDownloadError(ScrapingError):
    """A single image could not be downloaded or decoded."""


class ClassifierError(Exception):
    """External image classifier returned an error or unusable payload."""
