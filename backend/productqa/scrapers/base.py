"""Core acquisition data structures.

The extractor produces a ProductRecord regardless of how the page was
obtained; FetchAttempt records are only kept for logging and diagnostics.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple, Union

# URL value used when the caller pastes page markup instead of a URL
RAW_MARKUP_URL = "source_code_input"


class AcquisitionMethod(str, Enum):
    """How the page content was obtained."""

    DIRECT = "direct"
    RENDERED = "rendered"
    RAW_MARKUP = "raw_markup"


class FetchOutcome(str, Enum):
    """Result classification of a single fetch attempt."""

    SUCCESS = "success"
    RETRYABLE_FAILURE = "retryable_failure"
    FATAL_FAILURE = "fatal_failure"


@dataclass(frozen=True)
class ProductRecord:
    """Canonical product data extracted from one page."""

    url: str
    title: str
    description: str = ""
    price: str = ""
    images: Tuple[str, ...] = ()
    details: str = ""
    body_text: str = ""
    acquisition_method: AcquisitionMethod = AcquisitionMethod.DIRECT
    warning: Optional[str] = None

    def __post_init__(self):
        """Validate data after initialization."""
        if not self.title and not self.warning:
            raise ValueError("title is required unless a warning is set")

    @property
    def is_degraded(self) -> bool:
        return self.warning is not None

    def to_dict(self) -> Dict:
        """Convert to a JSON-friendly dictionary."""
        return {
            "url": self.url,
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "images": list(self.images),
            "details": self.details,
            "bodyText": self.body_text,
            "method": self.acquisition_method.value,
            "warning": self.warning,
        }


@dataclass
class FetchAttempt:
    """One iteration of the retry loop."""

    index: int
    timeout: float
    user_agent: str
    outcome: FetchOutcome
    elapsed: float
    status_code: Optional[int] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "attempt": self.index,
            "timeout": self.timeout,
            "outcome": self.outcome.value,
            "elapsed_ms": round(self.elapsed * 1000),
            "status_code": self.status_code,
            "error": self.error,
        }


@dataclass
class FetchResponse:
    """Raw HTTP response handed from the fetcher to the extractor.

    ``charset`` is only set when the server declared one; otherwise the raw
    bytes go to the HTML parser so it can honour ``<meta charset>``.
    """

    status_code: int
    content: bytes
    url: str
    charset: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def markup(self) -> Union[str, bytes]:
        if self.charset:
            try:
                return self.content.decode(self.charset, errors="replace")
            except LookupError:
                return self.content
        return self.content
