"""Tests for confidence banding, fallback assessment and classifier handling."""

from unittest.mock import patch

import pytest

from berburu import messages
from berburu.errors import ClassifierError
from berburu.models import ClassifierResult, ProcessedImage
from berburu.services.classifier import (
    DEFAULT_RAW_SCORE,
    assess_condition,
    clamp_score,
    confidence_for_image_count,
    confidence_tier,
    fallback_analysis,
    parse_classifier_payload,
)


def processed(count: int) -> list[ProcessedImage]:
    return [
        ProcessedImage(source_url=f"https://img/{i}.jpg", data="AAAA", width=600, height=450)
        for i in range(count)
    ]


class StaticClassifier:
    def __init__(self, result: ClassifierResult | None = None, error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls: list[tuple[int, str]] = []

    async def classify(self, images, title):
        self.calls.append((len(images), title))
        if self.error:
            raise self.error
        return self.result


class TestConfidenceBands:
    def test_confidence_strictly_increases_with_coverage(self):
        counts = [1, 2, 4, 6, 10, 12]
        confidences = [confidence_for_image_count(count) for count in counts]
        assert confidences == sorted(confidences)
        assert len(set(confidences)) == len(confidences)

    def test_non_decreasing_over_range(self):
        confidences = [confidence_for_image_count(count) for count in range(0, 21)]
        assert all(a <= b for a, b in zip(confidences, confidences[1:]))

    def test_zero_images_has_no_band(self):
        assert confidence_tier(0) is None

    def test_clamp_to_band(self):
        # 12+ photos allow 35..98
        assert clamp_score(10, 12) == 35
        assert clamp_score(100, 12) == 98
        assert clamp_score(70, 12) == 70
        # a single photo caps at 70
        assert clamp_score(95, 1) == 70
        assert clamp_score(5, 1) == 15

    def test_clamp_without_band(self):
        assert clamp_score(150, 0) == 100
        assert clamp_score(-5, 0) == 0


class TestFallbackAnalysis:
    def test_deterministic(self):
        first = fallback_analysis("Honda Jazz", 6)
        second = fallback_analysis("Honda Jazz", 6)
        assert first == second
        assert first.fallback is True
        assert first.risk_level == "HIGH"

    def test_no_photos_note(self):
        result = fallback_analysis("Honda Jazz", 0)
        assert messages.NO_PHOTOS_FINDING in result.findings
        assert result.image_count == 0
        assert messages.NO_PHOTOS_FINDING not in fallback_analysis("Honda Jazz", 3).findings

    def test_more_photos_never_lower_score(self):
        scores = [fallback_analysis("x", count).score for count in (0, 5, 8, 10, 15)]
        assert scores == sorted(scores)

    def test_title_in_wording(self):
        result = fallback_analysis("Toyota Rush 2020", 2)
        assert any("Toyota Rush 2020" in finding for finding in result.findings)


class TestParsePayload:
    def test_full_payload(self):
        data = {
            "score": 120,
            "confidence": 88,
            "riskLevel": "LOW",
            "findings": ["a", "b", "c", "d", "e"],
            "recommendation": "Layak dibeli",
            "detailedAnalysis": {"exterior": "baik"},
        }

        result = parse_classifier_payload(data, "Honda Jazz", 10)

        assert result.score == 95
        assert result.confidence == 88
        assert result.risk_level == "LOW"
        assert result.findings == ["a", "b", "c", "d"]
        assert result.recommendation == "Layak dibeli"
        assert result.detailed_analysis == {"exterior": "baik"}
        assert result.image_count == 10
        assert result.fallback is False

    def test_defaults_for_missing_fields(self):
        result = parse_classifier_payload({"riskLevel": "UNKNOWN"}, "Honda Jazz", 4)

        assert result.risk_level == "MEDIUM"
        assert result.confidence == confidence_for_image_count(4)
        assert result.findings == list(messages.CLASSIFIER_DEFAULT_FINDINGS)
        assert result.detailed_analysis == {}
        assert 25 <= result.score <= 85

    def test_malformed_fields_replaced_by_defaults(self):
        data = {
            "score": float("inf"),
            "confidence": float("-inf"),
            "riskLevel": ["LOW"],
            "findings": [1, None, {"x": 1}, "Cat mulus"],
            "recommendation": {"text": "beli"},
            "detailedAnalysis": ["exterior"],
        }

        result = parse_classifier_payload(data, "Honda Jazz", 6)

        assert result.score == clamp_score(DEFAULT_RAW_SCORE, 6)
        assert result.confidence == confidence_for_image_count(6)
        assert result.risk_level == "MEDIUM"
        assert result.findings == ["Cat mulus"]
        assert result.recommendation == messages.CLASSIFIER_DEFAULT_RECOMMENDATION.format(title="Honda Jazz")
        assert result.detailed_analysis == {}

    def test_findings_without_text_use_defaults(self):
        result = parse_classifier_payload({"findings": [1, 2, 3]}, "Honda Jazz", 6)
        assert result.findings == list(messages.CLASSIFIER_DEFAULT_FINDINGS)
        assert parse_classifier_payload({"findings": "Cat mulus"}, "Honda Jazz", 6).findings == list(
            messages.CLASSIFIER_DEFAULT_FINDINGS
        )

    def test_huge_numbers_do_not_raise(self):
        result = parse_classifier_payload({"score": 10**400, "confidence": "1e999"}, "Honda Jazz", 12)
        assert result.score == 98
        assert result.confidence == confidence_for_image_count(12)


class PayloadClassifier:
    def __init__(self, payload: dict):
        self.payload = payload

    async def classify(self, images, title):
        return parse_classifier_payload(self.payload, title, len(images))


class TestAssessCondition:
    @pytest.mark.asyncio
    async def test_malformed_payload_returns_result(self):
        classifier = PayloadClassifier({"score": float("nan"), "findings": [None], "recommendation": 7})

        result = await assess_condition(processed(4), "Honda Jazz", classifier)

        assert result.fallback is False
        assert result.findings == list(messages.CLASSIFIER_DEFAULT_FINDINGS)
        assert isinstance(result.recommendation, str)

    @pytest.mark.asyncio
    async def test_invalid_result_uses_fallback(self):
        classifier = PayloadClassifier({"score": 70})

        with patch("berburu.services.classifier.clamp_score", return_value="not a score"):
            result = await assess_condition(processed(4), "Honda Jazz", classifier)

        assert result.fallback is True
        assert result.image_count == 4

    @pytest.mark.asyncio
    async def test_no_images_uses_fallback(self):
        classifier = StaticClassifier()
        result = await assess_condition([], "Honda Jazz", classifier)
        assert result.fallback is True
        assert classifier.calls == []

    @pytest.mark.asyncio
    async def test_no_classifier_uses_fallback(self):
        result = await assess_condition(processed(3), "Honda Jazz", None)
        assert result.fallback is True
        assert result.image_count == 3

    @pytest.mark.asyncio
    async def test_classifier_error_uses_fallback(self):
        classifier = StaticClassifier(error=ClassifierError("boom"))
        result = await assess_condition(processed(5), "Honda Jazz", classifier)
        assert result.fallback is True
        assert classifier.calls == [(5, "Honda Jazz")]

    @pytest.mark.asyncio
    async def test_classifier_result_returned(self):
        expected = ClassifierResult(score=80, confidence=90, image_count=6)
        classifier = StaticClassifier(result=expected)
        assert await assess_condition(processed(6), "Honda Jazz", classifier) == expected
