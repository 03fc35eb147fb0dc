"""Global test configuration and fixtures.

Provides shared fixtures for all test levels: configuration overrides, fake
HTTP sessions, sample listing pages and generated JPEG images. No test touches
the network or starts a browser.
"""

import json
from io import BytesIO
from typing import Any

import pytest
from PIL import Image

from berburu.config import config


@pytest.fixture(autouse=True)
def test_config(monkeypatch):
    """Keep tests offline and fast."""
    monkeypatch.setattr(config.scraping, "enable_headless_browser", False)
    monkeypatch.setattr(config.scraping, "settle_delay", 0.0)
    monkeypatch.setattr(config.images, "inter_batch_delay", 0.0)
    monkeypatch.setattr(config.cache, "redis_url", None)
    yield config


class FakeResponse:
    """Minimal stand-in for aiohttp.ClientResponse used as a context manager."""

    def __init__(
        self,
        status: int = 200,
        body: bytes | str = b"",
        headers: dict[str, str] | None = None,
    ) -> None:
        self.status = status
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        self.headers = headers or {}

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        return None

    async def text(self) -> str:
        return self._body.decode("utf-8")

    async def read(self) -> bytes:
        return self._body

    async def json(self, content_type: str | None = "application/json") -> Any:
        return json.loads(self._body)


class FakeSession:
    """Fake aiohttp session serving canned responses by URL.

    A route value may be a FakeResponse, an exception instance to raise, or a
    list of those consumed one call at a time.
    """

    def __init__(self, routes: dict[str, Any] | None = None, default: Any = None) -> None:
        self.routes = dict(routes or {})
        self.default = default if default is not None else FakeResponse(status=404)
        self.requests: list[tuple[str, dict[str, Any]]] = []

    def _resolve(self, url: str) -> Any:
        route = self.routes.get(url, self.default)
        if isinstance(route, list):
            route = route.pop(0) if len(route) > 1 else route[0]
        return route

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.requests.append((url, kwargs))
        route = self._resolve(url)
        if isinstance(route, BaseException):
            raise route
        return route

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        return self.get(url, **kwargs)

    async def close(self) -> None:
        return None


@pytest.fixture
def fake_session_factory():
    """Build FakeSession instances inside a test."""
    return FakeSession


@pytest.fixture
def fake_response():
    """Build FakeResponse instances inside a test."""
    return FakeResponse


def make_jpeg(width: int = 800, height: int = 600, color: str = "red") -> bytes:
    """Generate an in-memory JPEG."""
    buffer = BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="JPEG")
    return buffer.getvalue()


@pytest.fixture
def jpeg_bytes():
    return make_jpeg()


@pytest.fixture
def jpeg_factory():
    return make_jpeg


@pytest.fixture
def olx_static_html():
    """OLX item page as served before client-side rendering, gallery JSON included."""
    return """<!DOCTYPE html>
<html><head>
<title>Toyota Avanza 1.3 G 2019 | OLX.co.id</title>
<meta property="og:title" content="Toyota Avanza 1.3 G 2019">
<meta property="og:description" content="Mobil terawat, pajak hidup, tangan pertama.">
</head><body>
<h1 data-aut-id="itemTitle">Toyota Avanza 1.3 G 2019</h1>
<span data-aut-id="itemPrice">Rp 175.000.000</span>
<span data-cy="ad_location">Kebayoran Baru, Jakarta Selatan</span>
<div data-cy="ad_description">Mobil terawat, pajak hidup, tangan pertama.</div>
<script>window.__APP = {"ad": {"images": [
{"external_id": "aaa111-ID", "width": 1000, "height": 750},
{"external_id": "bbb222-ID", "width": 1000, "height": 750},
{"external_id": "ccc333-ID", "width": 1000, "height": 750}
]}};</script>
</body></html>"""


@pytest.fixture
def mobil123_static_html():
    """Server-rendered Mobil123 listing page."""
    return """<!DOCTYPE html>
<html><head>
<meta name="description" content="Honda Jazz RS 2017 dijual di Bandung">
</head><body>
<h1 class="listing-title">2017 Honda Jazz RS 1.5</h1>
<div class="listing-price">Rp 189.000.000</div>
<span class="dealer-location">Bandung, Jawa Barat</span>
<div class="listing-description">Servis rutin di bengkel resmi.</div>
<ul class="specs">
  <li class="mileage">45.000 km</li>
  <li class="transmission">Otomatis</li>
  <li class="fuel">Bensin</li>
  <li class="color">Putih</li>
</ul>
<div class="gallery">
  <img data-src="//img1.icarcdn.com/autos/gallery_one.jpg?w=200">
  <img data-src="//img1.icarcdn.com/autos/thumb-gallery_two.jpg">
  <img data-src="//img1.icarcdn.com/autos/logo_dealer_gallery_x.jpg">
</div>
</body></html>"""


@pytest.fixture
def garbage_html():
    return "<html><body><div>Maaf, halaman sedang sibuk</div></body></html>"
