"""Scraper utilities for identity rotation, retry policy, and classification."""

from .user_agents import (
    CRAWLER_USER_AGENT,
    USER_AGENTS,
    Identity,
    IdentityRotator,
)
from .normalizer import (
    CATEGORY_KEYWORDS,
    Category,
    CategoryClassifier,
    collapse_whitespace,
    get_host,
    get_origin,
    resolve_url,
)
from .retry import (
    STATUS_DECISIONS,
    RetryableFetchError,
    StatusAction,
    StatusDecision,
    decide,
    escalating_backoff,
)


__all__ = [
    # Identities
    "CRAWLER_USER_AGENT",
    "USER_AGENTS",
    "Identity",
    "IdentityRotator",
    # Classification and URL helpers
    "CATEGORY_KEYWORDS",
    "Category",
    "CategoryClassifier",
    "collapse_whitespace",
    "get_host",
    "get_origin",
    "resolve_url",
    # Retry policy
    "STATUS_DECISIONS",
    "RetryableFetchError",
    "StatusAction",
    "StatusDecision",
    "decide",
    "escalating_backoff",
]
