"""RTF renderer, readable by Word, Pages and TextEdit alike."""

from typing import List

from productqa.documents.base import (
    DOCUMENT_HEADING,
    FOOTER_NOTES,
    LABEL_LEGEND,
    SOURCE_COLORS,
    QADocument,
)
from productqa.services.generation import SourceTag

# \colortbl indices (1-based; 0 is the auto colour)
_COLOR_INDEX = {
    SourceTag.SPECIFIED_PAGE: 1,
    SourceTag.SAME_DOMAIN: 2,
    SourceTag.EXTERNAL: 3,
}
_TEXT_GREY = 4
_MUTED_GREY = 5

_SEPARATOR = "─" * 31


def _color_table() -> str:
    entries = [SOURCE_COLORS[tag] for tag in _COLOR_INDEX] + ["333333", "666666"]
    rgb = "".join(
        f"\\red{int(h[0:2], 16)}\\green{int(h[2:4], 16)}\\blue{int(h[4:6], 16)};"
        for h in entries
    )
    return "{\\colortbl;" + rgb + "}"


def escape_rtf(text: str) -> str:
    """Escape text for an RTF body.

    Control characters are backslash-escaped, newlines become ``\\line`` and
    every non-ASCII UTF-16 code unit becomes a signed ``\\uN?`` escape, so
    characters outside the BMP are written as surrogate pairs.
    """
    if not text:
        return ""
    out: List[str] = []
    for char in text:
        if char in "\\{}":
            out.append("\\" + char)
        elif char == "\n":
            out.append("\\line ")
        elif char == "\r":
            continue
        elif ord(char) < 128:
            out.append(char)
        else:
            encoded = char.encode("utf-16-le")
            for i in range(0, len(encoded), 2):
                unit = int.from_bytes(encoded[i:i + 2], "little")
                if unit > 32767:
                    unit -= 65536
                out.append(f"\\u{unit}?")
    return "".join(out)


class RtfRenderer:
    media_type = "application/rtf"
    extension = "rtf"

    def render(self, document: QADocument) -> bytes:
        parts = [
            "{\\rtf1\\ansi\\deff0\n",
            "{\\fonttbl{\\f0\\fnil\\fcharset128 MS Gothic;}{\\f1\\fnil\\fcharset0 Arial;}}\n",
            _color_table() + "\n",
            f"\\viewkind4\\uc1\\pard\\qc\\f0\\fs36\\b {escape_rtf(DOCUMENT_HEADING)}"
            "\\b0\\fs20\\line\\line\n",
        ]
        if document.title:
            parts.append(f"\\fs28\\b {escape_rtf(document.title)}\\b0\\fs20\\line\\line\n")
        if document.url:
            parts.append(f"\\cf1 {escape_rtf(document.url)}\\cf0\\line\\line\n")
        parts.append(f"\\cf{_MUTED_GREY}\\fs16 {escape_rtf(document.generated_at_text)}\\line\n")
        parts.append(f"{escape_rtf(document.count_text)}\\cf0\\fs20\\line\\line\\line\n")

        parts.append("\\pard\\ql\n")
        last = len(document.items) - 1
        for index, item in enumerate(document.items):
            label = document.label_for(item)
            if label:
                color = _COLOR_INDEX[item.source_tag]
                parts.append(
                    f"\\fs16\\b\\cf{color}[{escape_rtf(label)}]\\cf0\\b0\\fs20\\line\n"
                )
            parts.append(f"\\cf1\\b Q{index + 1}.\\cf0\\b0\\line\n")
            parts.append(f"\\b {escape_rtf(item.question)}\\b0\\line\\line\n")
            parts.append(f"\\cf{_TEXT_GREY}\\b A.\\cf0\\b0\\line\n")
            parts.append(f"{escape_rtf(item.answer)}\\line\\line\n")
            if index < last:
                parts.append(f"\\line {escape_rtf(_SEPARATOR)}\\line\\line\n")

        parts.append(f"\\line\\line\\pard\\qc\\cf{_MUTED_GREY}\\fs16\n")
        for note in FOOTER_NOTES:
            parts.append(f"{escape_rtf(note)}\\line\n")
        if document.include_source_labels:
            parts.append(f"\\line\\cf1 {escape_rtf(LABEL_LEGEND)}\\cf0\\line\n")
        parts.append("\\cf0\\fs20\n}")

        # Everything non-ASCII is escaped, so the output is pure ASCII
        return "".join(parts).encode("ascii")
