"""Word (.docx) renderer built with python-docx."""

import io

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml.ns import qn
from docx.shared import Pt, RGBColor

from productqa.documents.base import (
    DOCUMENT_HEADING,
    FOOTER_NOTES,
    LABEL_LEGEND,
    SOURCE_COLORS,
    QADocument,
)

JAPANESE_FONT = "MS Gothic"
_BRAND = RGBColor.from_string("0066CC")
_MUTED = RGBColor.from_string("999999")


def _add_text(paragraph, text: str, size: int, bold: bool = False, color: RGBColor = None):
    run = paragraph.add_run(text)
    run.font.size = Pt(size)
    run.bold = bold
    if color is not None:
        run.font.color.rgb = color
    return run


def _centered(document, text: str, size: int, bold: bool = False, color: RGBColor = None):
    paragraph = document.add_paragraph()
    paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
    _add_text(paragraph, text, size, bold=bold, color=color)
    return paragraph


class DocxRenderer:
    media_type = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    extension = "docx"

    def render(self, document: QADocument) -> bytes:
        doc = Document()
        normal = doc.styles["Normal"]
        normal.font.name = JAPANESE_FONT
        # East Asian text ignores font.name unless eastAsia is set too
        normal.element.rPr.rFonts.set(qn("w:eastAsia"), JAPANESE_FONT)
        doc.core_properties.title = DOCUMENT_HEADING
        doc.core_properties.subject = "Product Q&A Collection"

        _centered(doc, DOCUMENT_HEADING, 24, bold=True, color=RGBColor.from_string("333333"))
        if document.title:
            _centered(doc, document.title, 16, bold=True, color=RGBColor.from_string("666666"))
        if document.url:
            _centered(doc, document.url, 10, color=_BRAND).runs[0].underline = True
        _centered(doc, document.generated_at_text, 10, color=_MUTED)
        _centered(doc, document.count_text, 10, color=_MUTED)
        doc.add_paragraph()

        for index, item in enumerate(document.items, start=1):
            label = document.label_for(item)
            if label:
                _add_text(
                    doc.add_paragraph(),
                    f"[{label}]",
                    9,
                    bold=True,
                    color=RGBColor.from_string(SOURCE_COLORS[item.source_tag]),
                )
            question = doc.add_paragraph()
            _add_text(question, f"Q{index}. ", 11, bold=True, color=_BRAND)
            _add_text(question, item.question, 11, bold=True)

            answer = doc.add_paragraph()
            _add_text(answer, "A. ", 10, bold=True, color=RGBColor.from_string("333333"))
            _add_text(answer, item.answer, 10)

        doc.add_paragraph()
        for note in FOOTER_NOTES:
            _centered(doc, note, 9, color=_MUTED)
        if document.include_source_labels:
            _centered(doc, LABEL_LEGEND, 9, color=_MUTED)

        buffer = io.BytesIO()
        doc.save(buffer)
        return buffer.getvalue()
