"""Image classifier adapter and count-based confidence scoring.

The vision classifier itself is an external service. This module sends it the
processed photos, clamps its score to what the number of photos can justify,
and produces a deterministic conservative assessment whenever no classifier
result is available.
"""

import asyncio
import logging
from typing import Any, Protocol

import aiohttp
from pydantic import ValidationError

from .. import messages
from ..config import ConfidenceTier, FallbackTier, config
from ..errors import ClassifierError
from ..models import ClassifierResult, ProcessedImage

logger = logging.getLogger(__name__)

RISK_LEVELS = ("LOW", "MEDIUM", "HIGH")
DEFAULT_RAW_SCORE = 65


def confidence_tier(image_count: int, tiers: list[ConfidenceTier] | None = None) -> ConfidenceTier | None:
    """Find the confidence band for a number of analyzed images.

    Args:
        image_count: Images that reached the classifier.
        tiers: Bands ordered by descending min_images, defaults to configuration.

    Returns:
        Matching band, None when the count is below every band.
    """
    for tier in tiers if tiers is not None else config.confidence_tiers:
        if image_count >= tier.min_images:
            return tier
    return None


def fallback_tier(image_count: int, tiers: list[FallbackTier] | None = None) -> FallbackTier:
    candidates = tiers if tiers is not None else config.fallback_tiers
    for tier in candidates:
        if image_count >= tier.min_images:
            return tier
    return candidates[-1]


def confidence_for_image_count(image_count: int) -> int:
    """Default confidence for a classifier result based on photo coverage.

    Non-decreasing in image_count; counts below the lowest band get the
    fallback confidence.
    """
    tier = confidence_tier(image_count)
    if tier is None:
        return fallback_tier(image_count).confidence
    return tier.confidence


def clamp_score(score: int, image_count: int) -> int:
    """Clamp a classifier score to the band justified by the photo count."""
    tier = confidence_tier(image_count)
    if tier is None:
        return max(0, min(100, score))
    return max(tier.floor, min(tier.cap, score))


def fallback_analysis(title: str, image_count: int = 0) -> ClassifierResult:
    """Conservative assessment used when no classifier result is available.

    Args:
        title: Listing title used in the wording.
        image_count: Number of usable photos.

    Returns:
        High-risk, low-confidence ClassifierResult.
    """
    tier = fallback_tier(image_count)
    findings = [finding.format(title=title) for finding in messages.FALLBACK_FINDINGS]
    if image_count == 0:
        findings.append(messages.NO_PHOTOS_FINDING)
    return ClassifierResult(
        score=tier.base_score,
        confidence=tier.confidence,
        risk_level="HIGH",
        findings=findings,
        recommendation=messages.FALLBACK_RECOMMENDATION.format(title=title),
        detailed_analysis=dict(messages.FALLBACK_DETAILED_ANALYSIS),
        image_count=image_count,
        fallback=True,
    )


class ImageClassifier(Protocol):
    """External vision classifier scoring car condition from photos."""

    async def classify(self, images: list[ProcessedImage], title: str) -> ClassifierResult:
        ...


class HttpImageClassifier:
    """Classifier client posting base64 photos to an HTTP endpoint.

    The endpoint receives {"title": ..., "images": [data URLs]} and answers
    with score, confidence, riskLevel, findings, recommendation and
    detailedAnalysis fields.
    """

    def __init__(self, url: str, timeout: float | None = None) -> None:
        self.url = url
        self.timeout = timeout or config.classifier.timeout

    async def classify(self, images: list[ProcessedImage], title: str) -> ClassifierResult:
        """Send photos to the classifier and parse its verdict.

        Args:
            images: Processed photos.
            title: Listing title for context.

        Returns:
            ClassifierResult with the score clamped to the photo-count band.

        Raises:
            ClassifierError: On transport errors, bad status or unusable payload.
        """
        payload = {"title": title, "images": [image.data_url for image in images]}
        try:
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as session:
                async with session.post(self.url, json=payload) as response:
                    if response.status != 200:
                        raise ClassifierError(f"Classifier returned HTTP {response.status}")
                    data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise ClassifierError(f"Classifier request failed: {e}") from e

        if not isinstance(data, dict):
            raise ClassifierError("Classifier payload is not an object")
        return parse_classifier_payload(data, title, len(images))


def _as_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def parse_classifier_payload(data: dict[str, Any], title: str, image_count: int) -> ClassifierResult:
    """Validate a classifier response and apply photo-count banding.

    Args:
        data: Decoded JSON response.
        title: Listing title used in default wording.
        image_count: Number of photos sent.

    Returns:
        ClassifierResult.

    Raises:
        ClassifierError: If the payload still fails validation.
    """
    raw_score = _as_int(data.get("score")) or DEFAULT_RAW_SCORE
    confidence = _as_int(data.get("confidence")) or confidence_for_image_count(image_count)
    risk_level = data.get("riskLevel")
    findings = data.get("findings")
    recommendation = data.get("recommendation")
    detailed = data.get("detailedAnalysis")

    if not isinstance(findings, list):
        findings = []
    findings = [finding for finding in findings if isinstance(finding, str)][:4]
    if not findings:
        findings = list(messages.CLASSIFIER_DEFAULT_FINDINGS)
    if not isinstance(recommendation, str) or not recommendation.strip():
        recommendation = messages.CLASSIFIER_DEFAULT_RECOMMENDATION.format(title=title)

    try:
        return ClassifierResult(
            score=clamp_score(raw_score, image_count),
            confidence=max(1, min(100, confidence)),
            risk_level=risk_level if risk_level in RISK_LEVELS else "MEDIUM",
            findings=findings,
            recommendation=recommendation,
            detailed_analysis=detailed if isinstance(detailed, dict) else {},
            image_count=image_count,
        )
    except ValidationError as e:
        raise ClassifierError(f"Unusable classifier payload: {e}") from e


async def assess_condition(
    images: list[ProcessedImage],
    title: str,
    classifier: ImageClassifier | None,
) -> ClassifierResult:
    """Score a listing from its photos, falling back when needed.

    Args:
        images: Processed photos, possibly empty.
        title: Listing title.
        classifier: Configured classifier, None when unavailable.

    Returns:
        Classifier result, or the fallback assessment when there are no
        photos, no classifier, or the classifier failed.
    """
    if not images:
        logger.warning(f"No usable images for '{title}', using fallback assessment")
        return fallback_analysis(title, 0)

    if classifier is None:
        logger.info("No classifier configured, using fallback assessment")
        return fallback_analysis(title, len(images))

    try:
        return await classifier.classify(images, title)
    except ClassifierError as e:
        logger.error(f"Classifier failed for '{title}': {e}")
        return fallback_analysis(title, len(images))
