"""Page acquisition for product Q&A generation.

This package provides:
- Direct HTTP fetcher and Playwright rendering fallback
- Retry orchestrator tying them together
- Extractor turning markup into a ProductRecord
"""

from .base import (
    RAW_MARKUP_URL,
    AcquisitionMethod,
    FetchAttempt,
    FetchOutcome,
    FetchResponse,
    ProductRecord,
)
from .browser_fetcher import BrowserFetcher
from .extractor import Extractor
from .http_fetcher import FetchTransportError, HttpFetcher
from .orchestrator import RetryOrchestrator

__all__ = [
    # Data structures
    "RAW_MARKUP_URL",
    "AcquisitionMethod",
    "FetchAttempt",
    "FetchOutcome",
    "FetchResponse",
    "ProductRecord",
    # Fetchers
    "BrowserFetcher",
    "FetchTransportError",
    "HttpFetcher",
    # Extraction
    "Extractor",
    # Orchestration
    "RetryOrchestrator",
]
