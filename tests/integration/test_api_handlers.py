"""Integration tests for the HTTP entry point with a real orchestrator."""

from unittest.mock import AsyncMock, patch

import pytest
from aiohttp import test_utils

from berburu import messages
from berburu.api.analysis_orchestrator import AnalysisOrchestrator
from berburu.api.handlers import create_app
from berburu.config import config
from berburu.models import Listing, ListingSource, ProcessedImage

URL = "https://www.mobil123.com/dijual/honda-jazz-rs-2017-jawa-barat/8812345"


class StubPipeline:
    async def acquire(self, urls, session=None):
        return [ProcessedImage(source_url=url, data="AAAA", width=600, height=450) for url in urls]


class RecordingArchiver:
    def __init__(self):
        self.submitted = []

    def submit(self, urls, bucket_key):
        self.submitted.append((urls, bucket_key))

    async def shutdown(self, timeout=None):
        return None


def honda_listing() -> Listing:
    return Listing(
        title="2017 Honda Jazz RS 1.5",
        price="Rp 189.000.000",
        year="2017",
        mileage="45.000 km",
        location="Bandung, Jawa Barat",
        description="Servis rutin di bengkel resmi.",
        images=[f"https://img1.icarcdn.com/autos/gallery_{i}.jpg" for i in range(4)],
        source=ListingSource.MOBIL123,
        url=URL,
    )


@pytest.fixture
def archiver():
    return RecordingArchiver()


@pytest.fixture
def app(archiver):
    orchestrator = AnalysisOrchestrator(image_pipeline=StubPipeline(), archiver=archiver)
    return create_app(orchestrator)


class TestAnalyzeCarEndpoint:
    @pytest.mark.asyncio
    async def test_missing_url(self, app):
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            response = await client.post("/api/analyze-car", json={})
            body = await response.json()

        assert response.status == 400
        assert body == {"error": messages.ERROR_URL_REQUIRED}

    @pytest.mark.asyncio
    async def test_invalid_json_body(self, app):
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            response = await client.post("/api/analyze-car", data=b"not json")

        assert response.status == 400

    @pytest.mark.asyncio
    async def test_foreign_host_rejected_without_scraping(self, app):
        with patch("berburu.api.analysis_orchestrator.scrape_listing", new=AsyncMock()) as scrape:
            async with test_utils.TestClient(test_utils.TestServer(app)) as client:
                response = await client.post(
                    "/api/analyze-car", json={"url": "https://facebook.com/marketplace/item/123"}
                )
                body = await response.json()

        assert response.status == 400
        assert body["reason"] == "host_not_allowed"
        assert body["error"] == messages.ERROR_URL_UNSUPPORTED
        assert body["details"] == messages.URL_HOST_NOT_ALLOWED
        scrape.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_search_page_rejected(self, app):
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            response = await client.post(
                "/api/analyze-car", json={"url": "https://www.mobil123.com/mobil-dijual/indonesia"}
            )
            body = await response.json()

        assert response.status == 400
        assert body["reason"] == "not_detail_page"

    @pytest.mark.asyncio
    async def test_successful_analysis(self, app, archiver, monkeypatch):
        monkeypatch.setattr(config.archive, "enabled", True)

        with patch(
            "berburu.api.analysis_orchestrator.scrape_listing",
            new=AsyncMock(return_value=honda_listing()),
        ):
            async with test_utils.TestClient(test_utils.TestServer(app)) as client:
                response = await client.post("/api/analyze-car", json={"url": URL})
                body = await response.json()

        assert response.status == 200
        assert body["carInfo"]["title"] == "2017 Honda Jazz RS 1.5"
        assert body["carInfo"]["source"] == "mobil123"
        assert body["imageCount"] == 4
        assert body["riskLevel"] == "HIGH"
        assert 0 <= body["score"] <= 100
        assert body["_cached"] is False
        assert len(body["bucketKey"]) == 16
        assert archiver.submitted[0][1] == body["bucketKey"]
        for key in ("confidence", "findings", "recommendation", "detailedAnalysis", "processingTimeMs"):
            assert key in body

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_500(self, app):
        with patch(
            "berburu.api.analysis_orchestrator.scrape_listing",
            new=AsyncMock(side_effect=RuntimeError("boom")),
        ):
            async with test_utils.TestClient(test_utils.TestServer(app)) as client:
                response = await client.post("/api/analyze-car", json={"url": URL})
                body = await response.json()

        assert response.status == 500
        assert body["error"] == messages.ERROR_ANALYSIS_FAILED


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_health(self, app):
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            response = await client.get("/health")
            assert response.status == 200
            assert await response.json() == {"status": "ok"}
