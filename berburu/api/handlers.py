"""HTTP request handlers for the analysis API.

Exposes POST /api/analyze-car taking {"url": "..."} and GET /health. The
handlers only validate input and shape responses; the work happens in the
AnalysisOrchestrator stored on the application.
"""

import json
import logging

from aiohttp import web

from .. import messages
from ..config import config
from ..errors import UnsupportedUrl
from ..models import AnalysisResult
from .analysis_orchestrator import AnalysisOrchestrator
from .types import AnalysisResponse, ErrorResponse

logger = logging.getLogger(__name__)

ORCHESTRATOR_KEY = web.AppKey("orchestrator", AnalysisOrchestrator)


def build_analysis_response(result: AnalysisResult) -> AnalysisResponse:
    """Shape an analysis result into the frontend payload.

    Args:
        result: Completed analysis.

    Returns:
        JSON-serializable response body.
    """
    assessment = result.assessment
    return {
        "carInfo": result.listing.model_dump(mode="json"),
        "score": assessment.score,
        "confidence": assessment.confidence,
        "riskLevel": assessment.risk_level,
        "findings": assessment.findings,
        "recommendation": assessment.recommendation,
        "detailedAnalysis": assessment.detailed_analysis,
        "imageCount": assessment.image_count,
        "bucketKey": result.bucket_key,
        "processingTimeMs": result.processing_time_ms,
        "_cached": result.from_cache,
    }


def _error(status: int, body: ErrorResponse) -> web.Response:
    return web.json_response(body, status=status)


async def analyze_car(request: web.Request) -> web.Response:
    """Analyze a car listing URL."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        body = None

    url = body.get("url") if isinstance(body, dict) else None
    if not isinstance(url, str) or not url.strip():
        return _error(400, {"error": messages.ERROR_URL_REQUIRED})

    url = url.strip()[: config.scraping.max_url_length]
    orchestrator = request.app[ORCHESTRATOR_KEY]

    try:
        result = await orchestrator.analyze(url)
    except UnsupportedUrl as e:
        logger.info(f"Rejected URL ({e.reason.value}): {url}")
        return _error(
            400,
            {
                "error": messages.ERROR_URL_UNSUPPORTED,
                "reason": e.reason.value,
                "details": e.message,
            },
        )
    except Exception as e:
        logger.error(f"Analysis failed for {url}: {e}", exc_info=True)
        return _error(
            500,
            {
                "error": messages.ERROR_ANALYSIS_FAILED,
                "details": messages.ERROR_ANALYSIS_FAILED_DETAILS,
            },
        )

    return web.json_response(build_analysis_response(result))


async def health(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


def create_app(orchestrator: AnalysisOrchestrator) -> web.Application:
    """Build the aiohttp application.

    Args:
        orchestrator: Orchestrator serving analysis requests.

    Returns:
        Configured web application.
    """
    app = web.Application()
    app[ORCHESTRATOR_KEY] = orchestrator
    app.router.add_post("/api/analyze-car", analyze_car)
    app.router.add_get("/health", health)

    async def on_startup(app: web.Application) -> None:
        await app[ORCHESTRATOR_KEY].start()

    async def on_cleanup(app: web.Application) -> None:
        await app[ORCHESTRATOR_KEY].close()

    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_cleanup)
    return app
