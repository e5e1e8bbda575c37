"""Tests for HTML → ProductRecord extraction."""

import pytest

from productqa.scrapers.base import RAW_MARKUP_URL, AcquisitionMethod, ProductRecord
from productqa.scrapers.extractor import (
    DESCRIPTION_SOURCES,
    HEADING_FALLBACK_WARNING,
    SYNTHETIC_TITLE_WARNING,
    TITLE_SOURCES,
    Extractor,
    first_non_empty,
)
from bs4 import BeautifulSoup


BASE_URL = "https://shop.example.jp/items/1"


class TestExtractorFields:
    """Field derivation on a typical product page."""

    def test_extracts_all_fields(self, extractor, product_page):
        record = extractor.extract(product_page, BASE_URL)

        assert record.title == "ランニングシューズ 軽量 Trail Runner X"
        assert record.description == "Lightweight trail running shoe"
        assert record.price == "¥12,800"
        assert record.images == (
            "https://shop.example.jp/images/main.jpg",
            "https://cdn.example.jp/side.jpg",
        )
        assert "Upper: mesh, Sole: rubber, Weight: 220g" in record.details
        assert record.acquisition_method == AcquisitionMethod.DIRECT
        assert record.warning is None

    def test_script_text_not_in_body(self, extractor, product_page):
        record = extractor.extract(product_page, BASE_URL)

        assert "tracking" not in record.body_text
        assert "Trail Runner X" in record.body_text

    def test_raw_markup_scenario(self, extractor):
        html = (
            '<h1>Widget</h1><img src="http://x/a.jpg">'
            '<div class="spec">Material: steel, length 50</div>'
        )

        record = extractor.extract(html, RAW_MARKUP_URL, method=AcquisitionMethod.RAW_MARKUP)

        assert record.title == "Widget"
        assert record.images == ("http://x/a.jpg",)
        assert "Material: steel, length 50" in record.details
        assert record.url == RAW_MARKUP_URL
        assert record.acquisition_method == AcquisitionMethod.RAW_MARKUP

    def test_meta_fallbacks(self, extractor):
        html = """
        <html><head>
          <meta property="og:title" content="OG Product Name">
          <meta property="og:description" content="OG description">
          <meta property="product:price:amount" content="3980">
        </head><body><p>text</p></body></html>
        """

        record = extractor.extract(html, BASE_URL)

        assert record.title == "OG Product Name"
        assert record.description == "OG description"
        assert record.price == "3980"

    def test_title_element_beats_og_title(self, extractor):
        html = """
        <html><head><title>Page Title</title>
        <meta property="og:title" content="OG Title"></head><body></body></html>
        """

        assert extractor.extract(html, BASE_URL).title == "Page Title"

    def test_bytes_markup_uses_meta_charset(self, extractor):
        html = '<html><head><meta charset="shift_jis"></head><body><h1>靴下セット</h1></body></html>'

        record = extractor.extract(html.encode("shift_jis"), BASE_URL)

        assert record.title == "靴下セット"

    def test_first_non_empty_respects_order(self):
        soup = BeautifulSoup(
            '<meta name="description" content="meta">'
            '<div class="description">block text</div>',
            "html.parser",
        )

        assert first_non_empty(soup, DESCRIPTION_SOURCES) == "meta"
        assert first_non_empty(BeautifulSoup("", "html.parser"), TITLE_SOURCES) == ""


class TestExtractorImages:
    """Image list resolution, filtering and caps."""

    def test_relative_sources_are_resolved(self, extractor):
        html = '<img src="../img/p.jpg"><img src="//cdn.example.jp/q.jpg">'

        record = extractor.extract(html, "https://shop.example.jp/items/1")

        assert record.images == (
            "https://shop.example.jp/img/p.jpg",
            "https://cdn.example.jp/q.jpg",
        )

    def test_lazy_load_attributes(self, extractor):
        html = (
            '<img data-lazy-src="https://x.jp/1.jpg">'
            '<img data-original="https://x.jp/2.jpg">'
        )

        record = extractor.extract(html, BASE_URL)

        assert record.images == ("https://x.jp/1.jpg", "https://x.jp/2.jpg")

    def test_icons_logos_and_sprites_are_excluded(self, extractor):
        html = (
            '<img src="https://x.jp/icon-cart.png">'
            '<img src="https://x.jp/LOGO.svg">'
            '<img src="https://x.jp/sprite.png">'
            '<img src="https://x.jp/item.jpg">'
        )

        assert extractor.extract(html, BASE_URL).images == ("https://x.jp/item.jpg",)

    def test_images_capped_and_unique(self):
        extractor = Extractor(max_images=15)
        html = "".join(f'<img src="https://x.jp/{i % 20}.jpg">' for i in range(60))

        images = extractor.extract(html, BASE_URL).images

        assert len(images) == 15
        assert len(set(images)) == len(images)
        assert images[0] == "https://x.jp/0.jpg"

    def test_relative_source_dropped_without_base(self, extractor):
        html = '<h1>Widget</h1><img src="/a.jpg">'

        assert extractor.extract(html, RAW_MARKUP_URL).images == ()

    def test_zero_image_limit_is_honoured(self):
        extractor = Extractor(max_images=0)

        assert extractor.extract('<h1>W</h1><img src="https://x.jp/a.jpg">', BASE_URL).images == ()

    def test_relative_source_resolves_against_base_not_page_url(self, extractor):
        record = extractor.extract(
            '<h1>W</h1><img src="img/a.jpg">',
            "https://shop.example.jp/v2/items/1/",
            page_url=BASE_URL,
        )

        assert record.url == BASE_URL
        assert record.images == ("https://shop.example.jp/v2/items/1/img/a.jpg",)


class TestExtractorBounds:
    """Detail fragment and body text limits."""

    def test_detail_fragments_within_bounds(self):
        extractor = Extractor(detail_min_chars=10, detail_max_chars=5000)
        html = (
            '<div class="info">short</div>'
            f'<div class="detail">{"a" * 5001}</div>'
            '<div class="spec">Exactly ten</div>'
            f'<div class="description">{"b" * 5000}</div>'
        )

        details = extractor.extract(html, BASE_URL).details

        fragments = details.split("\n\n")
        assert fragments == ["Exactly ten", "b" * 5000]
        assert all(10 <= len(f) <= 5000 for f in fragments)

    def test_body_text_is_collapsed_and_capped(self):
        extractor = Extractor(max_body_chars=50)
        html = "<body><p>word   word\n\n word</p>" + "<p>filler text</p>" * 20 + "</body>"

        body = extractor.extract(html, BASE_URL).body_text

        assert len(body) <= 50
        assert body.startswith("word word word")

    def test_extract_is_idempotent(self, extractor, product_page):
        first = extractor.extract(product_page, BASE_URL)
        second = extractor.extract(product_page, BASE_URL)

        assert first == second


class TestTitleFallbackLadder:
    """Degraded extraction when no usable title exists."""

    def test_heading_fallback(self, extractor):
        html = "<h1>ab</h1><h3>Secondary heading</h3><p>body</p>"

        record = extractor.extract(html, BASE_URL)

        assert record.title == "Secondary heading"
        assert record.warning == HEADING_FALLBACK_WARNING
        assert record.is_degraded

    def test_synthetic_title_from_host(self, extractor):
        html = "<body><p>Some product copy without any heading at all.</p></body>"

        record = extractor.extract(html, BASE_URL)

        assert record.title == "shop.example.jp product"
        assert record.warning == SYNTHETIC_TITLE_WARNING
        assert record.description == "Some product copy without any heading at all."

    def test_synthetic_title_keeps_existing_description(self, extractor):
        html = '<meta name="description" content="Meta text"><p>body copy</p>'

        record = extractor.extract(html, BASE_URL)

        assert record.warning == SYNTHETIC_TITLE_WARNING
        assert record.description == "Meta text"

    def test_synthetic_title_without_host(self, extractor):
        record = extractor.extract("<p>nothing</p>", RAW_MARKUP_URL)

        assert record.title == "Untitled product"
        assert record.warning is not None


class TestProductRecord:
    def test_title_required_without_warning(self):
        with pytest.raises(ValueError):
            ProductRecord(url=BASE_URL, title="")

    def test_to_dict_uses_wire_names(self, product_record):
        data = product_record.to_dict()

        assert data["bodyText"] == ""
        assert data["method"] == "direct"
        assert data["images"] == ["https://shop.example.jp/a.jpg"]
