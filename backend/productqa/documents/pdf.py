"""PDF renderer (fixed layout) built with reportlab platypus."""

import io
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.platypus import HRFlowable, Paragraph, SimpleDocTemplate, Spacer

from productqa.documents.base import (
    DOCUMENT_HEADING,
    FOOTER_NOTES,
    LABEL_LEGEND,
    SOURCE_COLORS,
    QADocument,
)

# Built-in Japanese CID font; needs no font files on disk
JAPANESE_FONT = "HeiseiKakuGo-W5"
pdfmetrics.registerFont(UnicodeCIDFont(JAPANESE_FONT))


def _markup(text: str) -> str:
    return escape(text or "").replace("\n", "<br/>")


class PdfRenderer:
    media_type = "application/pdf"
    extension = "pdf"

    def __init__(self):
        self.brand_color = colors.HexColor("#0066cc")
        self.muted_color = colors.HexColor("#666666")

    def render(self, document: QADocument) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=20 * mm,
            leftMargin=20 * mm,
            topMargin=20 * mm,
            bottomMargin=20 * mm,
            title=DOCUMENT_HEADING,
        )

        styles = getSampleStyleSheet()
        for style_name in styles.byName:
            styles[style_name].fontName = JAPANESE_FONT

        heading = ParagraphStyle(
            "QAHeading", parent=styles["Title"], fontSize=22, leading=28, alignment=TA_CENTER
        )
        product = ParagraphStyle(
            "QAProduct", parent=styles["Heading2"], alignment=TA_CENTER, leading=20
        )
        meta = ParagraphStyle(
            "QAMeta", parent=styles["Normal"], fontSize=9, alignment=TA_CENTER,
            textColor=self.muted_color,
        )
        body = ParagraphStyle("QABody", parent=styles["Normal"], fontSize=10, leading=15)
        question = ParagraphStyle(
            "QAQuestion", parent=body, fontSize=11, leading=16, spaceBefore=2
        )
        label = ParagraphStyle("QALabel", parent=body, fontSize=8, leading=11)

        story = [Paragraph(_markup(DOCUMENT_HEADING), heading)]
        if document.title:
            story.append(Paragraph(_markup(document.title), product))
        if document.url:
            story.append(Paragraph(
                f'<font color="#0066cc">{_markup(document.url)}</font>', meta
            ))
        story.append(Paragraph(_markup(document.generated_at_text), meta))
        story.append(Paragraph(_markup(document.count_text), meta))
        story.append(Spacer(1, 10 * mm))

        for index, item in enumerate(document.items, start=1):
            item_label = document.label_for(item)
            if item_label:
                color = SOURCE_COLORS[item.source_tag]
                story.append(Paragraph(
                    f'<font color="#{color}">[{_markup(item_label)}]</font>', label
                ))
            story.append(Paragraph(
                f'<font color="#0066cc">Q{index}.</font> {_markup(item.question)}', question
            ))
            story.append(Paragraph(f"A. {_markup(item.answer)}", body))
            story.append(Spacer(1, 3 * mm))
            story.append(HRFlowable(width="100%", thickness=0.5, color=colors.lightgrey))
            story.append(Spacer(1, 3 * mm))

        story.append(Spacer(1, 8 * mm))
        for note in FOOTER_NOTES:
            story.append(Paragraph(_markup(note), meta))
        if document.include_source_labels:
            story.append(Paragraph(_markup(LABEL_LEGEND), meta))

        doc.build(story)
        pdf_bytes = buffer.getvalue()
        buffer.close()

        return pdf_bytes
