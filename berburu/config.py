"""Configuration management for the listing analysis service.

Handles all application configuration including environment variables, YAML
config files, and default settings. Provides structured configuration classes
for different aspects of the application (server, scraping, image pipeline,
archival, classifier, cache).
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class ServerConfig(BaseSettings):
    """HTTP entry point configuration.

    Attributes:
        host: Interface the web server binds to.
        port: Server port.
        log_level: Root logging level name.
    """
    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=8000, validation_alias="PORT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")


class ScrapingConfig(BaseSettings):
    """Listing scraping parameters.

    Attributes:
        enable_headless_browser: Whether to use the rendering fallback.
        fetch_timeout: Total timeout for a static page fetch in seconds.
        render_timeout: Navigation timeout for headless rendering in seconds.
        settle_delay: Pause after DOM ready so client scripts can populate the page.
        scrape_budget: Wall-clock budget for a whole scrape in seconds.
        max_listing_images: Cap on image URLs kept per listing.
        max_analysis_images: Cap on images sent for classification.
        description_max_length: Maximum description length after normalization.
        max_url_length: Longer submitted URLs are cut to this length.
    """
    enable_headless_browser: bool = Field(default=True, validation_alias="ENABLE_HEADLESS_BROWSER")
    fetch_timeout: float = Field(default=15.0, validation_alias="FETCH_TIMEOUT")
    render_timeout: float = Field(default=20.0, validation_alias="RENDER_TIMEOUT")
    settle_delay: float = 3.0
    scrape_budget: float = Field(default=45.0, validation_alias="SCRAPE_BUDGET")
    max_listing_images: int = 20
    max_analysis_images: int = 15
    description_max_length: int = 500
    max_url_length: int = 1000


class ImagePipelineConfig(BaseSettings):
    """Image acquisition and recompression parameters.

    Attributes:
        batch_size: Images downloaded concurrently per batch.
        per_image_timeout: Download timeout for one image in seconds.
        inter_batch_delay: Pause between batches in seconds.
        max_width: Width cap after resizing, aspect ratio preserved.
        jpeg_quality: JPEG re-encoding quality.
    """
    batch_size: int = 5
    per_image_timeout: float = 8.0
    inter_batch_delay: float = 0.2
    max_width: int = 600
    jpeg_quality: int = 75


class ArchiveConfig(BaseSettings):
    """Original image archival configuration.

    Attributes:
        enabled: Whether selected images are archived in the background.
        root_dir: Storage root for archived images.
        batch_size: Images downloaded concurrently per batch.
        max_attempts: Download attempts per image.
        timeout: Per-attempt download timeout in seconds.
        shutdown_timeout: How long shutdown waits for pending archival tasks.
    """
    enabled: bool = Field(default=True, validation_alias="ARCHIVE_ENABLED")
    root_dir: str = Field(default="data/car-images", validation_alias="ARCHIVE_DIR")
    batch_size: int = 3
    max_attempts: int = 3
    timeout: float = 15.0
    shutdown_timeout: float = 30.0


class ClassifierConfig(BaseSettings):
    """External image classifier endpoint.

    Attributes:
        url: Endpoint receiving base64 images; fallback results are used when unset.
        timeout: Request timeout in seconds.
    """
    url: str | None = Field(default=None, validation_alias="CLASSIFIER_URL")
    timeout: float = Field(default=60.0, validation_alias="CLASSIFIER_TIMEOUT")


class CacheConfig(BaseSettings):
    """Listing cache configuration.

    Attributes:
        enabled: Whether listings are cached in Redis.
        redis_url: Redis connection URL.
        listing_ttl: Time to live for cached listings in seconds.
    """
    enabled: bool = Field(default=True, validation_alias="CACHE_ENABLED")
    redis_url: str | None = Field(default=None, validation_alias="REDIS_URL")
    listing_ttl: int = 86400


class ConfidenceTier(BaseModel):
    """Confidence band for a minimum number of analyzed images."""
    min_images: int
    confidence: int
    floor: int
    cap: int


class FallbackTier(BaseModel):
    """Fallback score band for a minimum number of images."""
    min_images: int
    base_score: int
    confidence: int


DEFAULT_CONFIDENCE_TIERS = [
    ConfidenceTier(min_images=12, confidence=98, floor=35, cap=98),
    ConfidenceTier(min_images=10, confidence=95, floor=30, cap=95),
    ConfidenceTier(min_images=6, confidence=90, floor=30, cap=90),
    ConfidenceTier(min_images=4, confidence=85, floor=25, cap=85),
    ConfidenceTier(min_images=2, confidence=75, floor=20, cap=80),
    ConfidenceTier(min_images=1, confidence=60, floor=15, cap=70),
]

DEFAULT_FALLBACK_TIERS = [
    FallbackTier(min_images=15, base_score=55, confidence=55),
    FallbackTier(min_images=10, base_score=50, confidence=50),
    FallbackTier(min_images=8, base_score=48, confidence=45),
    FallbackTier(min_images=5, base_score=45, confidence=35),
    FallbackTier(min_images=0, base_score=40, confidence=25),
]


class Config:
    """Application configuration manager.

    Centralizes loading and management of all configuration sources including
    environment variables, YAML files, and default values. Provides typed
    access to configuration sections for different application components.
    """

    def __init__(self, config_dir: Path | None = None):
        """Initialize configuration manager.

        Args:
            config_dir: Path to configuration directory, defaults to berburu/config.
        """
        if config_dir is None:
            config_dir = Path(__file__).parent / "config"

        self.config_dir = Path(config_dir)

        self.server = ServerConfig()
        self.scraping = ScrapingConfig()
        self.images = ImagePipelineConfig()
        self.archive = ArchiveConfig()
        self.classifier = ClassifierConfig()
        self.cache = CacheConfig()

        analysis_data = self._load_analysis_data()
        self.confidence_tiers = self._parse_tiers(
            analysis_data.get("confidence_tiers"), ConfidenceTier, DEFAULT_CONFIDENCE_TIERS
        )
        self.fallback_tiers = self._parse_tiers(
            analysis_data.get("fallback_tiers"), FallbackTier, DEFAULT_FALLBACK_TIERS
        )

    def _load_analysis_data(self) -> dict[str, Any]:
        """Load score and confidence tiers from YAML configuration.

        Returns:
            Parsed YAML mapping, empty if the file is missing.
        """
        analysis_path = self.config_dir / "analysis.yml"
        if not analysis_path.exists():
            return {}

        with open(analysis_path) as f:
            data = yaml.safe_load(f)

        return data or {}

    @staticmethod
    def _parse_tiers(raw: list[dict[str, Any]] | None, model: type, default: list) -> list:
        if not raw:
            return list(default)
        tiers = [model(**item) for item in raw]
        # Highest threshold first so the first match wins
        return sorted(tiers, key=lambda tier: tier.min_images, reverse=True)


# Global configuration instance
config = Config()
