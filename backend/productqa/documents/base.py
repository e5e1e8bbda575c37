"""Shared document model for the Q&A download formats."""

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Protocol

from productqa.core.exceptions import ValidationError
from productqa.services.generation import GeneratedItem, SourceTag

DOCUMENT_HEADING = "商品Q&A集"

SOURCE_LABELS: Dict[SourceTag, str] = {
    SourceTag.SPECIFIED_PAGE: "ソース: 指定されたページ",
    SourceTag.SAME_DOMAIN: "ソース: 指定サイト内の別ページ",
    SourceTag.EXTERNAL: "ソース: AIからの提案（回答内容は仮）",
}

# Hex RGB per source tag: blue, orange, red
SOURCE_COLORS: Dict[SourceTag, str] = {
    SourceTag.SPECIFIED_PAGE: "0066CC",
    SourceTag.SAME_DOMAIN: "FFA500",
    SourceTag.EXTERNAL: "FF0000",
}

FOOTER_NOTES = [
    "※ このQ&A集はAI技術を用いて自動生成されています",
    "※ 最新情報は必ず商品ページでご確認ください",
]

LABEL_LEGEND = "青: 指定されたページの情報 / オレンジ: 同サイト内の別ページ / 赤: 外部情報"


@dataclass
class QADocument:
    """Input shared by every renderer."""

    title: str
    url: str
    items: List[GeneratedItem]
    include_source_labels: bool = False
    generated_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        """Validate data after initialization."""
        if not self.items:
            raise ValidationError("No Q&A items to render; generate Q&A first")

    @property
    def generated_at_text(self) -> str:
        return f"生成日時: {self.generated_at.strftime('%Y/%m/%d %H:%M:%S')}"

    @property
    def count_text(self) -> str:
        return f"質問数: {len(self.items)}問"

    def label_for(self, item: GeneratedItem) -> Optional[str]:
        """Source label for an item, or None when labels are off or it has no tag."""
        if not self.include_source_labels or item.source_tag is None:
            return None
        return SOURCE_LABELS[item.source_tag]


class DocumentRenderer(Protocol):
    media_type: str
    extension: str

    def render(self, document: QADocument) -> bytes:
        ...


def attachment_filename(extension: str, now: Optional[float] = None) -> str:
    """``product-qa-<epoch millis>.<ext>``"""
    millis = int((time.time() if now is None else now) * 1000)
    return f"product-qa-{millis}.{extension}"
