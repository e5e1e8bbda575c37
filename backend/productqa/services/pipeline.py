"""Staged Q&A generation pipeline.

One run walks Acquiring → Analyzing → Classifying → Generating → Filtering →
Emitting and yields typed events in order. Any failure ends the run with a
single ErrorEvent; nothing is yielded after the terminal event. Cancelling
the consuming task cancels whichever stage call is suspended.
"""

import math
import traceback
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Union

import structlog

from productqa.config import settings
from productqa.core.exceptions import AcquisitionError, RenderError, ValidationError
from productqa.scrapers.base import RAW_MARKUP_URL, AcquisitionMethod, ProductRecord
from productqa.scrapers.extractor import Extractor
from productqa.scrapers.orchestrator import RetryOrchestrator
from productqa.scrapers.utils.normalizer import CategoryClassifier, is_absolute_http_url
from productqa.services.generation import (
    ClaudeImageAnalyzer,
    ClaudeQAGenerator,
    GeneratedItem,
    ImageAnalysis,
    ImageAnalyzer,
    QAGenerator,
    SourceScope,
)

logger = structlog.get_logger(__name__)

TRACE_LINES = 3


class PipelineState(str, Enum):
    ACQUIRING = "acquiring"
    ANALYZING = "analyzing"
    CLASSIFYING = "classifying"
    GENERATING = "generating"
    FILTERING = "filtering"
    EMITTING = "emitting"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PipelineRequest:
    """Validated input of one run.

    ``url == RAW_MARKUP_URL`` switches to raw-markup mode, where
    ``source_code`` is parsed instead of fetching a page. Otherwise ``url``
    must be an absolute http(s) URL.

    Raises:
        ValidationError: From ``__post_init__`` on a bad request
    """

    url: str
    qa_count: Optional[int] = None
    scope: Union[SourceScope, str] = SourceScope.BOTH
    source_code: Optional[str] = None
    api_key: Optional[str] = None
    max_attempts: Optional[int] = None

    def __post_init__(self):
        """Validate data after initialization."""
        if not self.url or not self.url.strip():
            raise ValidationError("A URL is required")
        self.url = self.url.strip()

        if self.qa_count is None:
            self.qa_count = settings.QA_COUNT_DEFAULT
        if not settings.QA_COUNT_MIN <= self.qa_count <= settings.QA_COUNT_MAX:
            raise ValidationError(
                f"qa_count must be between {settings.QA_COUNT_MIN} and {settings.QA_COUNT_MAX}"
            )

        try:
            self.scope = SourceScope(self.scope)
        except ValueError:
            allowed = ", ".join(s.value for s in SourceScope)
            raise ValidationError(f"source_type must be one of: {allowed}")

        if self.is_raw_markup:
            if not self.source_code:
                raise ValidationError("source_code is required for raw markup input")
            if len(self.source_code) > settings.MARKUP_MAX_CHARS:
                raise ValidationError(
                    f"source_code is too large (max {settings.MARKUP_MAX_CHARS} characters)"
                )
        elif not is_absolute_http_url(self.url):
            raise ValidationError("url must be an absolute http(s) URL")

    @property
    def is_raw_markup(self) -> bool:
        return self.url == RAW_MARKUP_URL


@dataclass(frozen=True)
class ProgressEvent:
    percent: int
    message: str
    type: str = field(default="progress", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "progress": self.percent, "message": self.message}


@dataclass(frozen=True)
class ItemEvent:
    item: GeneratedItem
    type: str = field(default="item", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "data": self.item.to_dict()}


@dataclass(frozen=True)
class ErrorEvent:
    message: str
    detail: Dict[str, Any]
    type: str = field(default="error", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "message": self.message, "details": self.detail}


@dataclass(frozen=True)
class CompleteEvent:
    type: str = field(default="complete", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type}


PipelineEvent = Union[ProgressEvent, ItemEvent, ErrorEvent, CompleteEvent]


def filter_items(
    items: Sequence[GeneratedItem], scope: SourceScope, count: int
) -> List[GeneratedItem]:
    """Drop items outside the requested scope, then truncate to ``count``.

    Untagged items survive only the ``both`` scope.
    """
    if scope is SourceScope.BOTH:
        return list(items)[:count]
    allowed = scope.allowed_tags
    return [item for item in items if item.source_tag in allowed][:count]


def emission_progress(index: int, total: int) -> int:
    """Progress shown before item ``index`` (0-based) of ``total``: 50..89."""
    return 50 + math.floor(index / total * 40)


def error_detail(error: Exception, state: PipelineState) -> Dict[str, Any]:
    """Best-effort diagnostic payload for an ErrorEvent."""
    detail: Dict[str, Any] = {
        "message": getattr(error, "message", None) or str(error),
        "context": state.value,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "type": type(error).__name__,
    }
    if isinstance(error, AcquisitionError):
        detail["kind"] = error.kind.value
        if error.status_code is not None:
            detail["http_status"] = error.status_code
        if error.attempts:
            detail["attempts"] = [attempt.to_dict() for attempt in error.attempts]
    if isinstance(error, RenderError) and error.original_error is not None:
        detail["original_error"] = {
            "kind": error.original_error.kind.value,
            "message": error.original_error.message,
        }

    # Innermost frames and the message
    formatted = "".join(
        traceback.format_exception(type(error), error, error.__traceback__)
    ).strip()
    detail["trace"] = formatted.splitlines()[-TRACE_LINES:]
    return detail


class PipelineCoordinator:
    """Runs the stages for one request and yields PipelineEvents.

    Holds no per-run state, so one coordinator serves concurrent requests.
    """

    def __init__(
        self,
        orchestrator: Optional[RetryOrchestrator] = None,
        extractor: Optional[Extractor] = None,
        analyzer: Optional[ImageAnalyzer] = None,
        generator: Optional[QAGenerator] = None,
    ):
        self.extractor = extractor or Extractor()
        self.orchestrator = orchestrator or RetryOrchestrator(extractor=self.extractor)
        self.analyzer = analyzer or ClaudeImageAnalyzer()
        self.generator = generator or ClaudeQAGenerator()

    async def run(self, request: PipelineRequest) -> AsyncIterator[PipelineEvent]:
        """Execute one pipeline run.

        Yields progress events, one ItemEvent per surviving Q&A and a final
        CompleteEvent, or stops at the first failure with one ErrorEvent.
        """
        log = logger.bind(
            run_id=uuid.uuid4().hex[:8],
            url=request.url,
            qa_count=request.qa_count,
            scope=request.scope.value,
        )
        state = PipelineState.ACQUIRING
        log.info("pipeline_started", raw_markup=request.is_raw_markup)

        try:
            if request.is_raw_markup:
                yield ProgressEvent(10, "ステップ1: HTMLソースコードを解析中...")
                record = self.extractor.extract(
                    request.source_code, RAW_MARKUP_URL, method=AcquisitionMethod.RAW_MARKUP
                )
            else:
                yield ProgressEvent(10, "ステップ1: 商品ページを取得中...")
                record = await self.orchestrator.acquire(
                    request.url, max_attempts=request.max_attempts
                )

            if record.warning:
                yield ProgressEvent(15, f"警告: {record.warning}")

            state = self._transition(log, state, PipelineState.ANALYZING)
            yield ProgressEvent(30, "ステップ2: 画像を分析中...")
            analysis = await self._analyze(log, record, request.api_key)

            state = self._transition(log, state, PipelineState.CLASSIFYING)
            category = CategoryClassifier.classify(record)

            state = self._transition(log, state, PipelineState.GENERATING)
            yield ProgressEvent(50, f"ステップ3: {request.qa_count}問のQ&Aを生成中...")
            generated = await self.generator.generate(
                record,
                analysis,
                category,
                request.qa_count,
                request.scope,
                api_key=request.api_key,
            )

            state = self._transition(log, state, PipelineState.FILTERING)
            items = filter_items(generated, request.scope, request.qa_count)
            log.info(
                "items_filtered",
                generated=len(generated),
                kept=len(items),
                category=category.value,
            )

            state = self._transition(log, state, PipelineState.EMITTING)
            total = len(items)
            for index, item in enumerate(items):
                yield ProgressEvent(
                    emission_progress(index, total), f"Q&A {index + 1}/{total} 生成完了"
                )
                yield ItemEvent(item)

            yield ProgressEvent(100, f"{total}問のQ&A生成完了")
            state = self._transition(log, state, PipelineState.DONE)
            yield CompleteEvent()

        except Exception as e:
            # The run ends here with exactly one error event
            detail = error_detail(e, state)
            log.error(
                "pipeline_failed",
                state=state.value,
                error_type=detail["type"],
                error=detail["message"],
            )
            self._transition(log, state, PipelineState.FAILED)
            yield ErrorEvent(detail["message"], detail)

    async def _analyze(self, log, record: ProductRecord, api_key: Optional[str]) -> ImageAnalysis:
        try:
            return await self.analyzer.analyze(list(record.images), record.title, api_key=api_key)
        except Exception as e:
            # Image analysis is enrichment only
            log.warning("image_analysis_degraded", error=str(e), error_type=type(e).__name__)
            return ImageAnalysis.empty()

    @staticmethod
    def _transition(log, current: PipelineState, new: PipelineState) -> PipelineState:
        log.debug("pipeline_state_changed", previous=current.value, state=new.value)
        return new
