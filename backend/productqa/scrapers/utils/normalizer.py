"""Text/URL normalization helpers and keyword-based category classification."""

import re
from enum import Enum
from typing import List, Optional, Tuple
from urllib.parse import urljoin, urlparse

import structlog

from productqa.scrapers.base import ProductRecord

logger = structlog.get_logger()

_WHITESPACE = re.compile(r"\s+")


class Category(str, Enum):
    """Product domains that select a generation template."""

    FOOTWEAR = "footwear"
    APPAREL = "apparel"
    GOLF = "golf"
    BAG = "bag"
    WATCH = "watch"
    ACCESSORY = "accessory"
    BEAUTY_APPLIANCE = "beauty_appliance"
    HOME_APPLIANCE = "home_appliance"
    COSMETICS = "cosmetics"
    SUPPLEMENT = "supplement"
    FOOD = "food"
    GENERAL = "general"


# Tested top to bottom; the first group with any hit wins, so order matters
# where groups overlap (a "golf shoe" page is footwear, not golf).
CATEGORY_KEYWORDS: List[Tuple[Category, List[str]]] = [
    (Category.FOOTWEAR, [
        "靴", "シューズ", "ブーツ", "スニーカー", "サンダル", "パンプス",
        "shoes", "sneaker", "boots", "sandal", "footwear",
    ]),
    (Category.APPAREL, [
        "服", "シャツ", "パンツ", "スカート", "ワンピース", "ジャケット",
        "コート", "ニット", "カーディガン",
        "shirt", "jacket", "trousers", "skirt", "dress", "hoodie", "apparel",
    ]),
    (Category.GOLF, [
        "ゴルフ", "クラブ", "ドライバー", "アイアン", "パター", "ウッド", "ボール",
        "golf", "putter",
    ]),
    (Category.BAG, [
        "バッグ", "鞄", "かばん", "リュック", "トート", "ショルダー",
        "backpack", "handbag", "tote",
    ]),
    (Category.WATCH, [
        "時計", "ウォッチ", "腕時計",
        "watch",
    ]),
    (Category.ACCESSORY, [
        "アクセサリー", "ネックレス", "ピアス", "リング", "指輪", "ブレスレット",
        "necklace", "earring", "bracelet", "jewelry",
    ]),
    (Category.BEAUTY_APPLIANCE, [
        "美容家電", "ドライヤー", "美顔器", "脱毛器",
        "hair dryer", "epilator",
    ]),
    (Category.HOME_APPLIANCE, [
        "家電", "電化製品", "冷蔵庫", "洗濯機", "エアコン", "テレビ",
        "refrigerator", "washing machine", "air conditioner",
    ]),
    (Category.COSMETICS, [
        "化粧品", "コスメ", "スキンケア", "ファンデーション", "口紅", "美容液",
        "cosmetics", "skincare", "lipstick", "serum",
    ]),
    (Category.SUPPLEMENT, [
        "サプリ", "サプリメント", "健康食品", "栄養補助",
        "supplement", "vitamin",
    ]),
    (Category.FOOD, [
        "食品", "食材", "飲料", "お菓子", "スイーツ", "グルメ",
        "snack", "beverage", "gourmet",
    ]),
]


def _keyword_pattern(keyword: str) -> "re.Pattern[str]":
    """Compile a keyword matcher.

    Japanese keywords match anywhere in the text. Latin keywords match whole
    words only (plural forms included), so "dress" does not hit "address".
    """
    if keyword.isascii():
        return re.compile(rf"\b{re.escape(keyword)}(?:e?s)?\b", re.IGNORECASE)
    return re.compile(re.escape(keyword))


_CATEGORY_PATTERNS: List[Tuple[Category, List["re.Pattern[str]"]]] = [
    (category, [_keyword_pattern(kw) for kw in keywords])
    for category, keywords in CATEGORY_KEYWORDS
]


class CategoryClassifier:
    """Keyword-based product classification.

    Pure and deterministic: unmatched input falls back to GENERAL.
    """

    @staticmethod
    def classify_text(text: str) -> Category:
        """Classify free text into a category.

        Args:
            text: Any product text

        Returns:
            First matching category in CATEGORY_KEYWORDS order, else GENERAL
        """
        if not text:
            return Category.GENERAL

        for category, patterns in _CATEGORY_PATTERNS:
            if any(pattern.search(text) for pattern in patterns):
                return category
        return Category.GENERAL

    @classmethod
    def classify(cls, record: ProductRecord) -> Category:
        """Classify a product record from its title, description and details."""
        text = " ".join((record.title or "", record.description or "", record.details or ""))
        category = cls.classify_text(text)
        logger.debug("category_classified", url=record.url, category=category.value)
        return category


def collapse_whitespace(text: Optional[str]) -> str:
    """Collapse runs of whitespace into single spaces and trim."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def is_absolute_http_url(url: Optional[str]) -> bool:
    """True for absolute http(s) URLs with a host."""
    if not url:
        return False
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def resolve_url(src: str, base_url: Optional[str]) -> Optional[str]:
    """Resolve an attribute URL against the page URL.

    Args:
        src: Raw src attribute value (absolute, relative or protocol-relative)
        base_url: Page URL, or a non-URL sentinel for pasted markup

    Returns:
        Absolute http(s) URL, or None when it cannot be resolved
    """
    src = (src or "").strip()
    if not src or src.startswith("data:"):
        return None
    if is_absolute_http_url(src):
        return src
    if is_absolute_http_url(base_url):
        resolved = urljoin(base_url, src)
        return resolved if is_absolute_http_url(resolved) else None
    return None


def get_host(url: str) -> str:
    """Hostname of a URL, or empty string if it has none."""
    try:
        return urlparse(url).hostname or ""
    except ValueError:
        return ""


def get_origin(url: str) -> str:
    """Origin root (``scheme://host/``) of a URL, used as a synthetic referrer."""
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}/"

