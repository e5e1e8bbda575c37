"""Tests for the PDF, Word and RTF Q&A documents."""

import io
from datetime import datetime

import pytest
from docx import Document

from productqa.core.exceptions import ValidationError
from productqa.documents import (
    SOURCE_LABELS,
    DocxRenderer,
    PdfRenderer,
    QADocument,
    RtfRenderer,
    attachment_filename,
    escape_rtf,
    get_renderer,
)
from productqa.services.generation import GeneratedItem, SourceTag


@pytest.fixture
def document(three_items):
    return QADocument(
        title="ランニングシューズ 軽量",
        url="https://shop.example.jp/items/1",
        items=three_items,
        include_source_labels=True,
        generated_at=datetime(2024, 5, 1, 9, 30, 0),
    )


# ============================================================================
# DOCUMENT MODEL
# ============================================================================


class TestQADocument:
    def test_empty_items_rejected(self):
        with pytest.raises(ValidationError):
            QADocument(title="t", url="u", items=[])

    def test_header_texts(self, document):
        assert document.generated_at_text == "生成日時: 2024/05/01 09:30:00"
        assert document.count_text == "質問数: 3問"

    def test_labels_follow_the_toggle(self, three_items):
        labelled = QADocument("t", "u", three_items, include_source_labels=True)
        plain = QADocument("t", "u", three_items)

        assert labelled.label_for(three_items[0]) == "ソース: 指定されたページ"
        assert plain.label_for(three_items[0]) is None

    def test_untagged_item_has_no_label(self):
        item = GeneratedItem("Q", "A", None)

        assert QADocument("t", "u", [item], include_source_labels=True).label_for(item) is None

    def test_attachment_filename(self):
        assert attachment_filename("pdf", now=1714555800.5) == "product-qa-1714555800500.pdf"


# ============================================================================
# RENDERER LOOKUP
# ============================================================================


class TestGetRenderer:
    @pytest.mark.parametrize(
        "fmt,renderer_type",
        [("pdf", PdfRenderer), ("DOCX", DocxRenderer), ("rtf", RtfRenderer)],
    )
    def test_known_formats(self, fmt, renderer_type):
        assert isinstance(get_renderer(fmt), renderer_type)

    def test_unknown_format(self):
        with pytest.raises(ValidationError, match="Unsupported"):
            get_renderer("odt")


# ============================================================================
# RTF
# ============================================================================


class TestEscapeRtf:
    def test_control_characters(self):
        assert escape_rtf("a{b}\\c\r\nd") == "a\\{b\\}\\\\c\\line d"

    def test_japanese_uses_unicode_escapes(self):
        # 商 is U+5546
        assert escape_rtf("商") == "\\u21830?"

    def test_high_code_units_are_signed(self):
        # U+FF01 FULLWIDTH EXCLAMATION MARK
        assert escape_rtf("！") == "\\u-255?"

    def test_astral_characters_use_surrogate_pairs(self):
        assert escape_rtf("😀") == "\\u-10179?\\u-8704?"

    def test_empty(self):
        assert escape_rtf("") == ""


class TestRtfRenderer:
    def test_structure(self, document):
        content = RtfRenderer().render(document)
        text = content.decode("ascii")

        assert text.startswith("{\\rtf1\\ansi")
        assert text.endswith("}")
        assert "\\colortbl" in text
        assert escape_rtf("商品Q&A集") in text
        assert escape_rtf(document.items[0].question) in text
        assert "Q3." in text

    def test_labels_only_when_enabled(self, three_items):
        label = escape_rtf(SOURCE_LABELS[SourceTag.EXTERNAL])

        labelled = RtfRenderer().render(
            QADocument("t", "u", three_items, include_source_labels=True)
        ).decode("ascii")
        plain = RtfRenderer().render(QADocument("t", "u", three_items)).decode("ascii")

        assert label in labelled
        assert label not in plain


# ============================================================================
# PDF AND WORD
# ============================================================================


class TestPdfRenderer:
    def test_renders_pdf(self, document):
        content = PdfRenderer().render(document)

        assert content.startswith(b"%PDF")
        assert len(content) > 1000

    def test_markup_characters_in_text(self, three_items):
        items = three_items + [GeneratedItem("A < B & C?", "<b>yes</b>", SourceTag.EXTERNAL)]

        content = PdfRenderer().render(QADocument("t & co", "", items))

        assert content.startswith(b"%PDF")


class TestDocxRenderer:
    def test_renders_docx(self, document):
        content = DocxRenderer().render(document)

        assert content.startswith(b"PK")
        text = "\n".join(p.text for p in Document(io.BytesIO(content)).paragraphs)
        assert "商品Q&A集" in text
        assert "Q1. サイズ感は？" in text
        assert "[ソース: 指定サイト内の別ページ]" in text
        assert "質問数: 3問" in text

    def test_no_labels_when_disabled(self, three_items):
        content = DocxRenderer().render(QADocument("t", "u", three_items))

        text = "\n".join(p.text for p in Document(io.BytesIO(content)).paragraphs)
        assert "ソース:" not in text
