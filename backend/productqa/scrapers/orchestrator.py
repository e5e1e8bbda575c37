"""Retry orchestration for page acquisition.

Drives the direct HTTP fetcher through a bounded number of attempts with
escalating timeouts, identity rotation, synthetic referrers and backoff,
then escalates once to the browser renderer when the budget runs out.
"""

import asyncio
import time
from typing import Awaitable, Callable, List, Optional

import structlog
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from productqa.config import settings
from productqa.core.exceptions import (
    AcquisitionError,
    HttpStatusError,
    NetworkError,
    RenderError,
)
from productqa.scrapers.base import AcquisitionMethod, FetchAttempt, FetchOutcome, ProductRecord
from productqa.scrapers.browser_fetcher import BrowserFetcher
from productqa.scrapers.extractor import Extractor
from productqa.scrapers.http_fetcher import FetchTransportError, HttpFetcher
from productqa.scrapers.utils.normalizer import get_origin
from productqa.scrapers.utils.retry import (
    RetryableFetchError,
    StatusAction,
    decide,
    escalating_backoff,
    log_before_retry,
)
from productqa.scrapers.utils.user_agents import Identity, IdentityRotator

logger = structlog.get_logger(__name__)


class RetryOrchestrator:
    """Acquires a product record for a URL, recovering from flaky servers.

    Policy per attempt ``i`` (1-based):
    - sleep ``min(i * base_delay, delay_cap)`` before every retry, plus a
      cooldown after a 429
    - timeout ``base_timeout + (i - 1) * timeout_step``
    - fresh identity every attempt; ``Referer`` set to the site root from
      attempt 2 on
    - 429/403/502/503 and network errors are retried, other >= 400 statuses
      fail immediately
    - a page whose title needed the fallback ladder is returned as a partial
      success with its warning instead of being retried
    - when retries are exhausted, the browser renderer gets exactly one try
    """

    def __init__(
        self,
        http_fetcher: Optional[HttpFetcher] = None,
        browser_fetcher: Optional[BrowserFetcher] = None,
        extractor: Optional[Extractor] = None,
        identity_rotator: Optional[IdentityRotator] = None,
        base_timeout: Optional[float] = None,
        timeout_step: Optional[float] = None,
        base_delay: Optional[float] = None,
        delay_cap: Optional[float] = None,
        rate_limit_cooldown: Optional[float] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        self.extractor = extractor or Extractor()
        self.identity_rotator = identity_rotator or IdentityRotator()
        self.http_fetcher = http_fetcher or HttpFetcher()
        self.browser_fetcher = browser_fetcher or BrowserFetcher(
            extractor=self.extractor, identity_rotator=self.identity_rotator
        )
        self.base_timeout = (
            base_timeout if base_timeout is not None else settings.FETCH_BASE_TIMEOUT_SECONDS
        )
        self.timeout_step = (
            timeout_step if timeout_step is not None else settings.FETCH_TIMEOUT_STEP_SECONDS
        )
        self.base_delay = (
            base_delay if base_delay is not None else settings.FETCH_BASE_DELAY_SECONDS
        )
        self.delay_cap = (
            delay_cap if delay_cap is not None else settings.FETCH_DELAY_CAP_SECONDS
        )
        self.rate_limit_cooldown = (
            rate_limit_cooldown
            if rate_limit_cooldown is not None
            else settings.FETCH_RATE_LIMIT_COOLDOWN_SECONDS
        )
        self._sleep = sleep or asyncio.sleep

    def timeout_for(self, attempt: int) -> float:
        """Timeout for the 1-based attempt number."""
        return self.base_timeout + (attempt - 1) * self.timeout_step

    async def acquire(self, url: str, max_attempts: Optional[int] = None) -> ProductRecord:
        """Fetch and extract a product page.

        Args:
            url: Absolute page URL
            max_attempts: Direct-fetch budget (defaults to FETCH_MAX_ATTEMPTS)

        Returns:
            ProductRecord, possibly carrying a degraded-extraction warning

        Raises:
            HttpStatusError: Non-retryable HTTP status
            NetworkError: Non-retryable transport failure
            RenderError: Budget exhausted and the browser fallback failed too
            ValueError: max_attempts below 1
        """
        if max_attempts is None:
            max_attempts = settings.FETCH_MAX_ATTEMPTS
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        log = logger.bind(url=url, max_attempts=max_attempts)
        attempts: List[FetchAttempt] = []
        previous: List[Identity] = []
        record: Optional[ProductRecord] = None

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(max_attempts),
                wait=escalating_backoff(self.base_delay, self.delay_cap),
                retry=retry_if_exception_type(RetryableFetchError),
                before_sleep=log_before_retry,
                sleep=self._sleep,
                reraise=True,
            ):
                with attempt:
                    record = await self._attempt(
                        url, attempt.retry_state.attempt_number, attempts, previous
                    )
        except RetryableFetchError as exhausted:
            error = exhausted.error
            error.attempts = attempts
            log.warning(
                "direct_fetch_exhausted",
                kind=error.kind.value,
                error=error.message,
                attempts=len(attempts),
            )
            return await self._escalate(url, error, attempts)
        except AcquisitionError as e:
            e.attempts = attempts
            log.error("direct_fetch_failed", kind=e.kind.value, error=e.message)
            raise

        log.info(
            "direct_fetch_succeeded",
            attempts=len(attempts),
            title=record.title[:80],
            degraded=record.is_degraded,
        )
        return record

    async def _attempt(
        self,
        url: str,
        index: int,
        attempts: List[FetchAttempt],
        previous: List[Identity],
    ) -> ProductRecord:
        timeout = self.timeout_for(index)
        identity = self.identity_rotator.next_identity(previous[-1] if previous else None)
        previous.append(identity)

        headers = identity.headers()
        if index > 1:
            # Looks like organic navigation from the site's own home page
            headers["Referer"] = get_origin(url)

        started = time.monotonic()
        try:
            response = await self.http_fetcher.fetch(url, headers=headers, timeout=timeout)
        except FetchTransportError as e:
            outcome = (
                FetchOutcome.RETRYABLE_FAILURE if e.retryable else FetchOutcome.FATAL_FAILURE
            )
            self._record(attempts, index, timeout, identity, outcome, started, error=str(e))
            error = NetworkError(str(e))
            if e.retryable:
                raise RetryableFetchError(error)
            raise error

        decision = decide(response.status_code)
        if decision.action is StatusAction.FAIL:
            self._record(
                attempts, index, timeout, identity, FetchOutcome.FATAL_FAILURE,
                started, status_code=response.status_code,
            )
            raise HttpStatusError(response.status_code)

        if decision.action is StatusAction.RETRY:
            self._record(
                attempts, index, timeout, identity, FetchOutcome.RETRYABLE_FAILURE,
                started, status_code=response.status_code,
            )
            cooldown = self.rate_limit_cooldown if decision.use_rate_limit_cooldown else 0.0
            raise RetryableFetchError(
                decision.error_class(decision.message, status_code=response.status_code),
                cooldown=cooldown,
            )

        self._record(
            attempts, index, timeout, identity, FetchOutcome.SUCCESS,
            started, status_code=response.status_code,
        )
        # A degraded record is returned as-is: retrying will not add title markup.
        # Relative sources resolve against the post-redirect URL.
        return self.extractor.extract(
            response.markup,
            response.url or url,
            method=AcquisitionMethod.DIRECT,
            page_url=url,
        )

    async def _escalate(
        self, url: str, error: AcquisitionError, attempts: List[FetchAttempt]
    ) -> ProductRecord:
        logger.info("escalating_to_browser", url=url, cause=error.kind.value)
        try:
            return await self.browser_fetcher.render_and_extract(url)
        except RenderError as render_error:
            raise RenderError(
                render_error.message, original_error=error, attempts=attempts
            ) from render_error

    @staticmethod
    def _record(
        attempts: List[FetchAttempt],
        index: int,
        timeout: float,
        identity: Identity,
        outcome: FetchOutcome,
        started: float,
        status_code: Optional[int] = None,
        error: Optional[str] = None,
    ) -> None:
        attempt = FetchAttempt(
            index=index,
            timeout=timeout,
            user_agent=identity.user_agent,
            outcome=outcome,
            elapsed=time.monotonic() - started,
            status_code=status_code,
            error=error,
        )
        attempts.append(attempt)
        logger.info("fetch_attempt_finished", **attempt.to_dict())
