"""Retry policy for direct page fetches.

The status handling is a plain lookup table so the policy can be read and
tested on its own; the orchestrator drives it with tenacity.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Type

import structlog
from tenacity import RetryCallState

from productqa.core.exceptions import (
    AccessDeniedError,
    AcquisitionError,
    HttpStatusError,
    RateLimitedError,
    UpstreamUnavailableError,
)


logger = structlog.get_logger(__name__)


class StatusAction(str, Enum):
    """What to do with an HTTP status."""

    EXTRACT = "extract"
    RETRY = "retry"
    FAIL = "fail"


@dataclass(frozen=True)
class StatusDecision:
    """One row of the status decision table."""

    action: StatusAction
    error_class: Optional[Type[AcquisitionError]] = None
    message: str = ""
    use_rate_limit_cooldown: bool = False


STATUS_DECISIONS: Dict[int, StatusDecision] = {
    429: StatusDecision(
        StatusAction.RETRY,
        RateLimitedError,
        "Rate limited by the server (429); try again in a few minutes",
        use_rate_limit_cooldown=True,
    ),
    403: StatusDecision(
        StatusAction.RETRY,
        AccessDeniedError,
        "Access denied (403); the site likely has strong bot protection",
    ),
    502: StatusDecision(
        StatusAction.RETRY,
        UpstreamUnavailableError,
        "Server error (502): the server is temporarily unavailable",
    ),
    503: StatusDecision(
        StatusAction.RETRY,
        UpstreamUnavailableError,
        "Server error (503): the server is temporarily unavailable",
    ),
}

_EXTRACT = StatusDecision(StatusAction.EXTRACT)
_FAIL = StatusDecision(StatusAction.FAIL, HttpStatusError)


def decide(status_code: int) -> StatusDecision:
    """Look up how to handle an HTTP status.

    Args:
        status_code: Response status

    Returns:
        StatusDecision: extract for < 400, a table row for special-cased
        statuses, otherwise a non-retryable failure
    """
    if status_code < 400:
        return _EXTRACT
    return STATUS_DECISIONS.get(status_code, _FAIL)


class RetryableFetchError(Exception):
    """Internal signal that an attempt failed in a way worth retrying.

    Wraps the AcquisitionError that is surfaced if the budget runs out.
    """

    def __init__(self, error: AcquisitionError, cooldown: float = 0.0):
        super().__init__(error.message)
        self.error = error
        self.cooldown = cooldown


def escalating_backoff(
    base_delay: float, delay_cap: float
) -> Callable[[RetryCallState], float]:
    """Build a tenacity wait strategy.

    Sleep before attempt ``i`` is ``min(i * base_delay, delay_cap)``, plus the
    cooldown carried by the failure (used for 429 responses).
    """

    def wait(retry_state: RetryCallState) -> float:
        next_attempt = retry_state.attempt_number + 1
        delay = min(next_attempt * base_delay, delay_cap)
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(exc, RetryableFetchError):
            delay += exc.cooldown
        return delay

    return wait


def log_before_retry(retry_state: RetryCallState) -> None:
    """tenacity ``before_sleep`` hook logging the pending retry."""
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "fetch_retry_scheduled",
        attempt=retry_state.attempt_number,
        sleep_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
        error=str(exc) if exc else None,
    )
