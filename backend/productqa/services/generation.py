"""Image analysis and Q&A generation capabilities.

The pipeline only depends on the ImageAnalyzer and QAGenerator protocols.
The Claude* classes are the default implementations, calling the Anthropic
Messages API.
"""

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Optional, Protocol, Sequence

import anthropic
import structlog

from productqa.config import settings
from productqa.core.exceptions import GenerationError
from productqa.scrapers.base import ProductRecord
from productqa.scrapers.utils.normalizer import Category
from productqa.services import prompts

logger = structlog.get_logger(__name__)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class SourceTag(str, Enum):
    """Provenance of a generated Q&A item, assigned by the generator."""

    SPECIFIED_PAGE = "specified_page"
    SAME_DOMAIN = "same_domain"
    EXTERNAL = "external"


class SourceScope(str, Enum):
    """Which provenances the caller wants in the output."""

    SPECIFIED_URL = "specified_url"
    EXTERNAL = "external"
    BOTH = "both"

    @property
    def allowed_tags(self) -> FrozenSet[SourceTag]:
        if self is SourceScope.SPECIFIED_URL:
            return frozenset({SourceTag.SPECIFIED_PAGE, SourceTag.SAME_DOMAIN})
        if self is SourceScope.EXTERNAL:
            return frozenset({SourceTag.EXTERNAL})
        return frozenset(SourceTag)


@dataclass(frozen=True)
class GeneratedItem:
    """One question/answer pair."""

    question: str
    answer: str
    source_tag: Optional[SourceTag] = None

    def to_dict(self) -> dict:
        return {
            "question": self.question,
            "answer": self.answer,
            "sourceType": self.source_tag.value if self.source_tag else None,
        }


@dataclass(frozen=True)
class ImageAnalysis:
    """Free-text findings from the product images."""

    summary_text: str = ""
    features: List[str] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "ImageAnalysis":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.summary_text and not self.features


class ImageAnalyzer(Protocol):
    async def analyze(
        self, image_urls: Sequence[str], title: str, api_key: Optional[str] = None
    ) -> ImageAnalysis:
        ...


class QAGenerator(Protocol):
    async def generate(
        self,
        record: ProductRecord,
        analysis: ImageAnalysis,
        category: Category,
        count: int,
        scope: SourceScope,
        api_key: Optional[str] = None,
    ) -> List[GeneratedItem]:
        ...


def _client(api_key: Optional[str]) -> Optional[anthropic.AsyncAnthropic]:
    key = api_key or settings.ANTHROPIC_API_KEY
    if not key:
        return None
    return anthropic.AsyncAnthropic(api_key=key)


def _response_text(response) -> str:
    return "".join(
        block.text for block in response.content if getattr(block, "type", None) == "text"
    )


class ClaudeImageAnalyzer:
    """Describes product images (size, material, colour, cautions) with Claude vision."""

    def __init__(self, model: Optional[str] = None, max_images: Optional[int] = None):
        self.model = model or settings.ANTHROPIC_MODEL
        self.max_images = (
            max_images if max_images is not None else settings.IMAGE_ANALYSIS_MAX_IMAGES
        )

    async def analyze(
        self, image_urls: Sequence[str], title: str, api_key: Optional[str] = None
    ) -> ImageAnalysis:
        """Analyze the first few product images.

        Returns:
            ImageAnalysis; empty when there are no images, no API key, or the
            call fails. Image analysis never fails a run.
        """
        urls = list(image_urls)[: self.max_images]
        if not urls:
            return ImageAnalysis.empty()

        client = _client(api_key)
        if client is None:
            logger.warning("image_analysis_skipped", reason="no_api_key")
            return ImageAnalysis.empty()

        content = [
            {"type": "image", "source": {"type": "url", "url": url}} for url in urls
        ]
        content.append({"type": "text", "text": prompts.image_analysis_prompt(title)})

        try:
            response = await client.messages.create(
                model=self.model,
                max_tokens=settings.IMAGE_ANALYSIS_MAX_TOKENS,
                temperature=0.3,
                system=prompts.IMAGE_ANALYSIS_SYSTEM_PROMPT,
                messages=[{"role": "user", "content": content}],
            )
        except anthropic.APIError as e:
            logger.warning("image_analysis_failed", error=str(e), images=len(urls))
            return ImageAnalysis.empty()

        text = _response_text(response)
        features = [line.strip() for line in text.splitlines() if line.strip()]
        logger.info("image_analysis_complete", images=len(urls), features=len(features))
        return ImageAnalysis(summary_text=text, features=features)


def parse_generated_items(text: str) -> List[GeneratedItem]:
    """Parse the generator's ``{"qa": [...]}`` answer.

    The first JSON object in the text is used, so prose or code fences around
    it are tolerated. Missing or unknown source tags are kept as None, so
    only the ``both`` scope lets such items through. Entries missing a
    question or answer are dropped.

    Raises:
        GenerationError: No JSON object, invalid JSON, or no ``qa`` list
    """
    match = _JSON_OBJECT.search(text or "")
    if not match:
        raise GenerationError("Generator response contained no JSON object")
    try:
        payload = json.loads(match.group())
    except json.JSONDecodeError as e:
        raise GenerationError(f"Generator returned invalid JSON: {e.msg}") from e

    entries = payload.get("qa") if isinstance(payload, dict) else None
    if not isinstance(entries, list):
        raise GenerationError("Generator response has no 'qa' list")

    items = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        question = str(entry.get("q") or "").strip()
        answer = str(entry.get("a") or "").strip()
        if not question or not answer:
            continue
        try:
            tag = SourceTag(entry.get("sourceType"))
        except ValueError:
            tag = None
        items.append(GeneratedItem(question=question, answer=answer, source_tag=tag))
    return items


class ClaudeQAGenerator:
    """Generates category-aware, compliance-checked Q&A with Claude."""

    def __init__(self, model: Optional[str] = None, max_tokens: Optional[int] = None):
        self.model = model or settings.ANTHROPIC_MODEL
        self.max_tokens = (
            max_tokens if max_tokens is not None else settings.GENERATION_MAX_TOKENS
        )

    async def generate(
        self,
        record: ProductRecord,
        analysis: ImageAnalysis,
        category: Category,
        count: int,
        scope: SourceScope,
        api_key: Optional[str] = None,
    ) -> List[GeneratedItem]:
        """Generate ``count`` Q&A items (the model may return more or fewer).

        Raises:
            GenerationError: Missing API key, API failure, or unparseable output
        """
        client = _client(api_key)
        if client is None:
            raise GenerationError("Anthropic API key is not configured")

        log = logger.bind(category=category.value, count=count, scope=scope.value)
        log.info("generation_started", model=self.model)
        try:
            response = await client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=0.7,
                system=prompts.generation_system_prompt(category, count, scope.value),
                messages=[
                    {
                        "role": "user",
                        "content": prompts.generation_user_prompt(
                            record, analysis.summary_text, count, scope.value
                        ),
                    }
                ],
            )
        except anthropic.APIError as e:
            log.error("generation_failed", error=str(e))
            raise GenerationError(f"Q&A generation failed: {e}") from e

        items = parse_generated_items(_response_text(response))
        log.info("generation_complete", items=len(items))
        return items

    async def research(self, query: str, api_key: Optional[str] = None) -> GeneratedItem:
        """Answer a free-form product question from general knowledge.

        The answer is always tagged ``external``: nothing from the product
        page is given to the model.

        Raises:
            GenerationError: Missing API key, API failure, or empty answer
        """
        client = _client(api_key)
        if client is None:
            raise GenerationError("Anthropic API key is not configured")

        logger.info("research_started", model=self.model, query_length=len(query))
        try:
            response = await client.messages.create(
                model=self.model,
                max_tokens=settings.RESEARCH_MAX_TOKENS,
                temperature=0.7,
                system=prompts.RESEARCH_SYSTEM_PROMPT,
                messages=[{"role": "user", "content": query}],
            )
        except anthropic.APIError as e:
            logger.error("research_failed", error=str(e))
            raise GenerationError(f"External research failed: {e}") from e

        answer = _response_text(response).strip()
        if not answer:
            raise GenerationError("External research returned an empty answer")
        logger.info("research_complete", answer_length=len(answer))
        return GeneratedItem(question=query, answer=answer, source_tag=SourceTag.EXTERNAL)
