"""Pytest configuration and shared fixtures."""

import random
from typing import List, Optional

import pytest

from productqa.scrapers.base import AcquisitionMethod, FetchResponse, ProductRecord
from productqa.scrapers.extractor import Extractor
from productqa.scrapers.utils.user_agents import IdentityRotator
from productqa.services.generation import GeneratedItem, SourceTag


@pytest.fixture
def anyio_backend():
    """Use asyncio as the async backend for tests."""
    return "asyncio"


# ============================================================================
# SAMPLE DATA
# ============================================================================

PRODUCT_PAGE = """
<html>
<head>
  <title>Trail Runner X | Example Shop</title>
  <meta name="description" content="Lightweight trail running shoe">
  <meta property="og:price:amount" content="12800">
</head>
<body>
  <h1 class="product-title">ランニングシューズ 軽量 Trail Runner X</h1>
  <div class="price">¥12,800</div>
  <img src="/images/main.jpg">
  <img src="/images/main.jpg">
  <img data-src="https://cdn.example.jp/side.jpg" src="data:image/gif;base64,R0lGOD">
  <img src="/static/logo.png">
  <div class="product-spec">Upper: mesh, Sole: rubber, Weight: 220g</div>
  <script>var tracking = "should not appear";</script>
</body>
</html>
"""


@pytest.fixture
def product_page() -> str:
    return PRODUCT_PAGE


@pytest.fixture
def extractor() -> Extractor:
    return Extractor(max_images=15, max_body_chars=10000, detail_min_chars=10, detail_max_chars=5000)


@pytest.fixture
def seeded_rotator() -> IdentityRotator:
    return IdentityRotator(rng=random.Random(42))


@pytest.fixture
def product_record() -> ProductRecord:
    return ProductRecord(
        url="https://shop.example.jp/items/1",
        title="ランニングシューズ 軽量",
        description="Lightweight trail running shoe",
        images=("https://shop.example.jp/a.jpg",),
        details="Upper: mesh",
    )


@pytest.fixture
def rendered_record() -> ProductRecord:
    return ProductRecord(
        url="https://shop.example.jp/items/1",
        title="Rendered product",
        acquisition_method=AcquisitionMethod.RENDERED,
    )


@pytest.fixture
def three_items() -> List[GeneratedItem]:
    return [
        GeneratedItem("サイズ感は？", "普段通りで問題ありません。", SourceTag.SPECIFIED_PAGE),
        GeneratedItem("手入れ方法は？", "柔らかいブラシで汚れを落としてください。", SourceTag.EXTERNAL),
        GeneratedItem("防水ですか？", "撥水加工です。", SourceTag.SAME_DOMAIN),
    ]


# ============================================================================
# STUBS
# ============================================================================


def html_response(body: str, status_code: int = 200, url: str = "https://shop.example.jp/items/1") -> FetchResponse:
    return FetchResponse(
        status_code=status_code,
        content=body.encode("utf-8"),
        url=url,
        charset="utf-8",
    )


class StubHttpFetcher:
    """Replays a scripted list of responses or exceptions, recording every call."""

    def __init__(self, script: List):
        self.script = list(script)
        self.calls: List[dict] = []

    async def fetch(self, url, headers, timeout):
        self.calls.append({"url": url, "headers": dict(headers), "timeout": timeout})
        outcome = self.script[min(len(self.calls), len(self.script)) - 1]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class StubBrowserFetcher:
    def __init__(self, record: Optional[ProductRecord] = None, error: Optional[Exception] = None):
        self.record = record
        self.error = error
        self.calls: List[str] = []

    async def render_and_extract(self, url):
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return self.record


class RecordingSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
