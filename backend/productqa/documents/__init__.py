"""Downloadable Q&A documents (PDF, Word, RTF)."""

from typing import Dict

from productqa.core.exceptions import ValidationError
from productqa.documents.base import (
    SOURCE_LABELS,
    DocumentRenderer,
    QADocument,
    attachment_filename,
)
from productqa.documents.word import DocxRenderer
from productqa.documents.pdf import PdfRenderer
from productqa.documents.rtf import RtfRenderer, escape_rtf

RENDERERS: Dict[str, DocumentRenderer] = {
    "pdf": PdfRenderer(),
    "docx": DocxRenderer(),
    "rtf": RtfRenderer(),
}


def get_renderer(fmt: str) -> DocumentRenderer:
    """Look up a renderer by format name (pdf, docx, rtf)."""
    try:
        return RENDERERS[fmt.lower()]
    except KeyError:
        raise ValidationError(f"Unsupported document format: {fmt}")


__all__ = [
    "SOURCE_LABELS",
    "DocumentRenderer",
    "QADocument",
    "attachment_filename",
    "DocxRenderer",
    "PdfRenderer",
    "RtfRenderer",
    "escape_rtf",
    "RENDERERS",
    "get_renderer",
]
