"""Typed JSON payloads exchanged over the HTTP entry point."""

from __future__ import annotations

from typing import Any, TypedDict

# Keys are the wire format consumed by the frontend, hence the functional syntax.
AnalysisResponse = TypedDict(
    "AnalysisResponse",
    {
        "carInfo": dict[str, Any],
        "score": int,
        "confidence": int,
        "riskLevel": str,
        "findings": list[str],
        "recommendation": str,
        "detailedAnalysis": dict[str, Any],
        "imageCount": int,
        "bucketKey": str | None,
        "processingTimeMs": int,
        "_cached": bool,
    },
)


class ErrorResponse(TypedDict, total=False):
    """Error body returned with 4xx/5xx statuses."""

    error: str
    reason: str
    details: str
