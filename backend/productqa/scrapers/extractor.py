"""HTML → ProductRecord extraction.

Each field is derived from a prioritized list of small source functions;
the first one returning a non-empty trimmed string wins. Keeping the lists
explicit makes the priority order easy to read and to test.

Used for all three acquisition paths: direct fetch, rendered DOM and
markup pasted by the caller.
"""

from typing import Callable, List, Optional, Sequence, Union

import structlog
from bs4 import BeautifulSoup, Tag

from productqa.config import settings
from productqa.scrapers.base import AcquisitionMethod, ProductRecord
from productqa.scrapers.utils.normalizer import collapse_whitespace, get_host, resolve_url

logger = structlog.get_logger()

FieldSource = Callable[[BeautifulSoup], str]

MIN_TITLE_LENGTH = 3
SYNTHETIC_DESCRIPTION_CHARS = 200

# Asset markers that never identify product imagery
_IMAGE_EXCLUDE_MARKERS = ("icon", "logo", "sprite")
_IMAGE_SRC_ATTRS = ("src", "data-src", "data-lazy-src", "data-original")

_DETAIL_SELECTOR = (
    '[class*="detail"], [class*="spec"], [class*="description"], [class*="info"]'
)
_INVISIBLE_TAGS = ["script", "style", "noscript", "template", "svg"]

HEADING_FALLBACK_WARNING = "Title was taken from a generic page heading"
SYNTHETIC_TITLE_WARNING = (
    "No product title found; continuing with limited data and a generated title"
)


def _text_of(selector: str) -> FieldSource:
    def source(soup: BeautifulSoup) -> str:
        element = soup.select_one(selector)
        return collapse_whitespace(element.get_text(" ")) if element else ""

    source.__name__ = f"text_of({selector})"
    return source


def _meta_content(selector: str) -> FieldSource:
    def source(soup: BeautifulSoup) -> str:
        element = soup.select_one(selector)
        if element is None:
            return ""
        return collapse_whitespace(element.get("content") or "")

    source.__name__ = f"meta_content({selector})"
    return source


def _title_element(soup: BeautifulSoup) -> str:
    element = soup.find("title")
    return collapse_whitespace(element.get_text()) if element else ""


TITLE_SOURCES: Sequence[FieldSource] = (
    _text_of("h1"),
    _text_of('h1[class*="title"]'),
    _text_of('h1[class*="name"]'),
    _text_of('[class*="product-title"]'),
    _text_of('[class*="productName"]'),
    _title_element,
    _meta_content('meta[property="og:title"]'),
    _meta_content('meta[name="title"]'),
)

DESCRIPTION_SOURCES: Sequence[FieldSource] = (
    _meta_content('meta[name="description"]'),
    _meta_content('meta[property="og:description"]'),
    _text_of('[class*="description"]'),
)

PRICE_SOURCES: Sequence[FieldSource] = (
    _text_of('[class*="price"], [id*="price"], [class*="Price"]'),
    _meta_content('meta[property="og:price:amount"]'),
    _meta_content('meta[property="product:price:amount"]'),
)


def first_non_empty(soup: BeautifulSoup, sources: Sequence[FieldSource]) -> str:
    """Evaluate sources in priority order and return the first non-empty value."""
    for source in sources:
        value = source(soup)
        if value:
            return value
    return ""


class Extractor:
    """Turns raw HTML into a canonical ProductRecord.

    Pure: no I/O, and the same markup always yields the same record.
    """

    def __init__(
        self,
        max_images: Optional[int] = None,
        max_body_chars: Optional[int] = None,
        detail_min_chars: Optional[int] = None,
        detail_max_chars: Optional[int] = None,
    ):
        self.max_images = max_images if max_images is not None else settings.EXTRACT_MAX_IMAGES
        self.max_body_chars = (
            max_body_chars if max_body_chars is not None else settings.EXTRACT_MAX_BODY_CHARS
        )
        self.detail_min_chars = (
            detail_min_chars if detail_min_chars is not None else settings.EXTRACT_DETAIL_MIN_CHARS
        )
        self.detail_max_chars = (
            detail_max_chars if detail_max_chars is not None else settings.EXTRACT_DETAIL_MAX_CHARS
        )

    def extract(
        self,
        markup: Union[str, bytes],
        base_url: str,
        method: AcquisitionMethod = AcquisitionMethod.DIRECT,
        page_url: Optional[str] = None,
    ) -> ProductRecord:
        """Extract a product record from page markup.

        Args:
            markup: HTML as text, or raw bytes to let the parser sniff the charset
            base_url: URL the markup was served from, used to resolve relative
                image sources (may be the raw-markup sentinel)
            method: How the markup was acquired
            page_url: URL stored on the record; defaults to ``base_url``.
                Differs from it when the request was redirected.

        Returns:
            ProductRecord; ``warning`` is set when the title fallback ladder
            had to be used
        """
        soup = BeautifulSoup(markup or "", "html.parser")
        for tag in soup(_INVISIBLE_TAGS):
            tag.decompose()

        title = first_non_empty(soup, TITLE_SOURCES)
        description = first_non_empty(soup, DESCRIPTION_SOURCES)
        price = first_non_empty(soup, PRICE_SOURCES)
        images = self._extract_images(soup, base_url)
        details = self._extract_details(soup)
        body_text = self._extract_body_text(soup)
        warning = None

        if len(title) < MIN_TITLE_LENGTH:
            heading = self._first_heading(soup)
            if heading:
                title = heading
                warning = HEADING_FALLBACK_WARNING
            else:
                host = get_host(base_url)
                title = f"{host} product" if host else "Untitled product"
                warning = SYNTHETIC_TITLE_WARNING
                if not description:
                    description = body_text[:SYNTHETIC_DESCRIPTION_CHARS]
            logger.warning(
                "title_fallback_used",
                url=page_url or base_url,
                title=title[:80],
                warning=warning,
            )

        return ProductRecord(
            url=page_url or base_url,
            title=title,
            description=description,
            price=price,
            images=tuple(images),
            details=details,
            body_text=body_text,
            acquisition_method=method,
            warning=warning,
        )

    def _extract_images(self, soup: BeautifulSoup, base_url: str) -> List[str]:
        """Product image URLs in first-seen order, de-duplicated and capped."""
        images: List[str] = []
        for img in soup.find_all("img"):
            if len(images) >= self.max_images:
                break
            src = self._image_source(img)
            if not src:
                continue
            url = resolve_url(src, base_url)
            if not url:
                continue
            lowered = url.lower()
            if any(marker in lowered for marker in _IMAGE_EXCLUDE_MARKERS):
                continue
            if url not in images:
                images.append(url)
        return images

    @staticmethod
    def _image_source(img: Tag) -> str:
        # Lazy-loaders often put a placeholder data: URI in src
        for attr in _IMAGE_SRC_ATTRS:
            value = (img.get(attr) or "").strip()
            if value and not value.startswith("data:"):
                return value
        return ""

    def _extract_details(self, soup: BeautifulSoup) -> str:
        fragments = []
        for element in soup.select(_DETAIL_SELECTOR):
            text = element.get_text(" ").strip()
            if self.detail_min_chars <= len(text) <= self.detail_max_chars:
                fragments.append(text)
        return "\n\n".join(fragments)

    def _extract_body_text(self, soup: BeautifulSoup) -> str:
        root = soup.body or soup
        return collapse_whitespace(root.get_text(" "))[: self.max_body_chars]

    @staticmethod
    def _first_heading(soup: BeautifulSoup) -> str:
        for heading in soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6"]):
            text = collapse_whitespace(heading.get_text(" "))
            if len(text) >= MIN_TITLE_LENGTH:
                return text
        return ""
