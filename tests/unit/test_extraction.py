"""Tests for field extraction strategies and marketplace profiles."""

import pytest
from bs4 import BeautifulSoup

from berburu.errors import ExtractionError
from berburu.scrapers.extraction import (
    document_title,
    extract_listing,
    meta_content,
    price_text_scan,
    run_strategies,
    script_price,
    selector_text,
)
from berburu.scrapers.mobil123_scraper import MOBIL123_PROFILE, mobil123_scraper
from berburu.scrapers.olx_scraper import OLX_PROFILE, olx_scraper


def soup_of(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


class TestStrategies:
    def test_selector_chain_order(self):
        soup = soup_of('<div class="b">second</div><div class="a">first</div>')
        assert selector_text(".a", ".b")(soup) == "first"

    def test_selector_skips_empty_elements(self):
        soup = soup_of('<h1>  </h1><div class="t">Judul</div>')
        assert selector_text("h1", ".t")(soup) == "Judul"

    def test_selector_accept_predicate(self):
        soup = soup_of('<span class="p">Cicilan</span><span class="p">Rp 100.000</span>')
        assert selector_text(".p", accept=lambda text: "Rp" in text)(soup) == "Rp 100.000"

    def test_meta_content_with_prefix(self):
        soup = soup_of('<meta property="product:price:amount" content="150000000">')
        strategy = meta_content(("property", "product:price:amount"), prefix="Rp ")
        assert strategy(soup) == "Rp 150000000"

    def test_document_title_strips_site_name(self):
        soup = soup_of("<title>Honda Brio 2020 | OLX.co.id</title>")
        assert document_title("|")(soup) == "Honda Brio 2020"

    def test_price_text_scan(self):
        soup = soup_of(
            "<script>var p = 'Rp 1';</script>"
            "<p>Harga spesial</p><span>Rp 99.000.000</span>"
        )
        assert price_text_scan(soup) == "Rp 99.000.000"

    def test_price_text_scan_ignores_long_text(self):
        soup = soup_of(f"<p>Rp 100.000 {'x' * 60}</p>")
        assert price_text_scan(soup) is None

    def test_script_price(self):
        soup = soup_of('<script>var listing = {"price": "185000000", "make": "Honda"};</script>')
        assert script_price()(soup) == "Rp 185000000"

    def test_run_strategies_first_non_empty(self):
        soup = soup_of("<p>x</p>")
        assert run_strategies(soup, [lambda s: None, lambda s: "", lambda s: "hit"]) == "hit"
        assert run_strategies(soup, []) is None


class TestExtractListing:
    def test_empty_document_raises(self):
        with pytest.raises(ExtractionError):
            extract_listing("   ", OLX_PROFILE)

    def test_olx_static_page(self, olx_static_html):
        partial = olx_scraper.extract(olx_static_html)

        assert partial.title == "Toyota Avanza 1.3 G 2019"
        assert partial.price == "Rp 175.000.000"
        assert partial.location == "Kebayoran Baru, Jakarta Selatan"
        assert partial.description == "Mobil terawat, pajak hidup, tangan pertama."
        assert partial.images == [
            "https://apollo.olx.co.id/v1/files/aaa111-ID/image;s=780x0;q=60",
            "https://apollo.olx.co.id/v1/files/bbb222-ID/image;s=780x0;q=60",
            "https://apollo.olx.co.id/v1/files/ccc333-ID/image;s=780x0;q=60",
        ]
        assert partial.is_unresolved is False

    def test_olx_meta_fallbacks(self):
        html = """<html><head>
        <meta property="og:title" content="Suzuki Ertiga GX 2018">
        <meta property="og:price:amount" content="165000000">
        <meta property="og:description" content="Siap pakai">
        </head><body><div class="price">Cicilan ringan</div></body></html>"""

        partial = extract_listing(html, OLX_PROFILE)

        assert partial.title == "Suzuki Ertiga GX 2018"
        assert partial.price == "Rp 165000000"
        assert partial.description == "Siap pakai"

    def test_olx_client_rendered_shell_is_unresolved(self, garbage_html):
        partial = extract_listing(garbage_html, OLX_PROFILE)
        assert partial.title is None
        assert partial.price is None
        assert partial.is_unresolved is True

    def test_mobil123_static_page(self, mobil123_static_html):
        partial = mobil123_scraper.extract(mobil123_static_html)

        assert partial.title == "2017 Honda Jazz RS 1.5"
        assert partial.price == "Rp 189.000.000"
        assert partial.location == "Bandung, Jawa Barat"
        assert partial.description == "Servis rutin di bengkel resmi."
        assert partial.mileage == "45.000 km"
        assert partial.specs.transmission == "Otomatis"
        assert partial.specs.fuel_type == "Bensin"
        assert partial.specs.color == "Putih"
        assert partial.images == [
            "https://img1.icarcdn.com/autos/gallery_one.jpg",
            "https://img1.icarcdn.com/autos/gallery_two.jpg",
        ]

    def test_mobil123_script_price_and_meta_description(self):
        html = """<html><head><meta name="description" content="Dijual cepat"></head>
        <body><h1>Daihatsu Xenia 2016</h1>
        <script>dataLayer.push({'price': '98500000'});</script></body></html>"""

        partial = extract_listing(html, MOBIL123_PROFILE)

        assert partial.title == "Daihatsu Xenia 2016"
        assert partial.price == "Rp 98500000"
        assert partial.description == "Dijual cepat"

    def test_mobil123_mileage_from_spec_list(self):
        html = """<html><body><h1>Mitsubishi Pajero</h1>
        <ul class="specs"><li>Diesel</li><li>120.000 Km</li></ul></body></html>"""
        assert extract_listing(html, MOBIL123_PROFILE).mileage == "120.000 Km"
