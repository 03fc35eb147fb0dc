"""Analysis orchestration for a single listing URL.

Coordinates the full request flow: URL gate, listing cache, scraping, image
selection, image acquisition, classification and background archival of the
original photos.
"""

import logging
from datetime import datetime

import aiohttp

from ..config import config
from ..models import AnalysisResult, Listing
from ..scrapers import classify_url, scrape_listing
from ..scrapers.fetcher import create_session
from ..services.archival import BackgroundArchiver, generate_bucket_key
from ..services.cache_service import CacheService
from ..services.classifier import ImageClassifier, assess_condition
from ..services.image_pipeline import ImageAcquisitionPipeline

logger = logging.getLogger(__name__)

EXCLUDED_IMAGE_MARKERS = ("placeholder", "icon", "logo", "avatar", "profile")


def select_analysis_images(images: list[str], limit: int | None = None) -> list[str]:
    """Pick the photos worth sending to the classifier.

    Args:
        images: Listing image URLs in relevance order.
        limit: Maximum number of images, defaults to the configured cap.

    Returns:
        Unique absolute URLs without placeholders, icons, logos or avatars.
    """
    if limit is None:
        limit = config.scraping.max_analysis_images
    valid = [
        url
        for url in images
        if url
        and url.startswith("http")
        and not any(marker in url.lower() for marker in EXCLUDED_IMAGE_MARKERS)
    ]
    return list(dict.fromkeys(valid))[:limit]


class AnalysisOrchestrator:
    """Orchestrates listing analysis requests.

    Responsibilities:
    - Reject unsupported URLs before any network call
    - Serve complete listings from the cache when possible
    - Scrape, select and acquire photos, then classify them
    - Hand the selected original photos to background archival
    """

    def __init__(
        self,
        cache_service: CacheService | None = None,
        image_pipeline: ImageAcquisitionPipeline | None = None,
        classifier: ImageClassifier | None = None,
        archiver: BackgroundArchiver | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            cache_service: Listing cache, optional.
            image_pipeline: Image downloader and recompressor.
            classifier: Vision classifier, fallback assessment when None.
            archiver: Background archiver, archival skipped when None.
        """
        self.cache_service = cache_service
        self.image_pipeline = image_pipeline or ImageAcquisitionPipeline()
        self.classifier = classifier
        self.archiver = archiver
        self.session: aiohttp.ClientSession | None = None

    async def start(self) -> None:
        """Open the shared HTTP session and connect the cache."""
        if self.session is None:
            self.session = create_session()
        if self.cache_service is not None:
            await self.cache_service.connect()

    async def close(self) -> None:
        """Drain archival tasks and release connections."""
        if self.archiver is not None:
            await self.archiver.shutdown()
        if self.cache_service is not None:
            await self.cache_service.close()
        if self.session is not None:
            await self.session.close()
            self.session = None

    async def get_listing(self, url: str, session: aiohttp.ClientSession) -> tuple[Listing, bool]:
        """Get a listing from the cache or by scraping it.

        Args:
            url: Validated listing URL.
            session: HTTP session for requests.

        Returns:
            Tuple of (listing, from_cache).
        """
        if self.cache_service is not None:
            cached = await self.cache_service.get_listing(url)
            if cached is not None:
                logger.info(f"Cache hit for {url}")
                return cached, True

        listing = await scrape_listing(url, session)

        if self.cache_service is not None and not listing.degraded:
            await self.cache_service.set_listing(url, listing)
        return listing, False

    async def analyze(self, url: str) -> AnalysisResult:
        """Run a full analysis for a listing URL.

        Args:
            url: Listing URL as submitted.

        Returns:
            AnalysisResult with listing and assessment.

        Raises:
            UnsupportedUrl: If the URL is not a supported listing detail page.
        """
        start_time = datetime.now()
        url = url.strip()
        classify_url(url)

        if self.session is None:
            await self.start()
        session = self.session

        listing, from_cache = await self.get_listing(url, session)

        selected = select_analysis_images(listing.images)
        processed = await self.image_pipeline.acquire(selected, session)
        assessment = await assess_condition(processed, listing.title, self.classifier)

        bucket_key = generate_bucket_key(listing.title) if selected else None
        processing_time = int((datetime.now() - start_time).total_seconds() * 1000)
        result = AnalysisResult(
            listing=listing,
            assessment=assessment,
            bucket_key=bucket_key,
            from_cache=from_cache,
            processing_time_ms=processing_time,
        )

        if self.archiver is not None and bucket_key and config.archive.enabled:
            self.archiver.submit(selected, bucket_key)

        logger.info(
            f"Analysis finished for {url}: score={assessment.score} "
            f"images={len(processed)}/{len(selected)} ({processing_time}ms)"
        )
        return result
