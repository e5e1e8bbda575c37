"""Direct HTTP page fetcher (the cheap acquisition path)."""

import asyncio
from typing import Dict, Optional

import httpx
import structlog

from productqa.config import settings
from productqa.scrapers.base import FetchResponse


logger = structlog.get_logger(__name__)


class FetchTransportError(Exception):
    """Network-level failure: DNS, connect, reset, timeout, undecodable body.

    Attributes:
        retryable: False for failures a retry cannot fix (oversized body)
    """

    def __init__(self, message: str, retryable: bool = True):
        super().__init__(message)
        self.retryable = retryable


class HttpFetcher:
    """Performs a single GET with a hard deadline and a payload bound.

    Any HTTP status is returned to the caller; status policy lives in the
    orchestrator.
    """

    def __init__(
        self,
        max_redirects: Optional[int] = None,
        max_bytes: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize fetcher.

        Args:
            max_redirects: Redirect hops followed before giving up
            max_bytes: Body size limit
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.max_redirects = (
            max_redirects if max_redirects is not None else settings.FETCH_MAX_REDIRECTS
        )
        self.max_bytes = max_bytes if max_bytes is not None else settings.FETCH_MAX_BYTES
        self._transport = transport

    async def fetch(
        self, url: str, headers: Dict[str, str], timeout: float
    ) -> FetchResponse:
        """GET a page.

        Args:
            url: Absolute page URL
            headers: Request headers (identity + optional Referer)
            timeout: Hard deadline in seconds for the whole request

        Returns:
            FetchResponse for any HTTP status

        Raises:
            FetchTransportError: On network failure, deadline, or oversized body
        """
        try:
            return await asyncio.wait_for(self._get(url, headers, timeout), timeout)
        except asyncio.TimeoutError:
            raise FetchTransportError(f"Request timed out after {timeout:.0f}s")
        except httpx.TooManyRedirects:
            raise FetchTransportError(
                f"More than {self.max_redirects} redirects", retryable=False
            )
        except httpx.InvalidURL as e:
            raise FetchTransportError(f"Invalid URL: {e}", retryable=False) from e
        except httpx.RequestError as e:
            # Transport failures and undecodable bodies (e.g. corrupt gzip)
            raise FetchTransportError(f"{type(e).__name__}: {e}") from e

    async def _get(
        self, url: str, headers: Dict[str, str], timeout: float
    ) -> FetchResponse:
        async with httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            max_redirects=self.max_redirects,
            transport=self._transport,
        ) as client:
            async with client.stream("GET", url, headers=headers) as response:
                body = bytearray()
                async for chunk in response.aiter_bytes():
                    body.extend(chunk)
                    if len(body) > self.max_bytes:
                        raise FetchTransportError(
                            f"Response body exceeds {self.max_bytes} bytes",
                            retryable=False,
                        )

                logger.debug(
                    "http_fetch_complete",
                    url=url,
                    final_url=str(response.url),
                    status=response.status_code,
                    bytes=len(body),
                )
                return FetchResponse(
                    status_code=response.status_code,
                    content=bytes(body),
                    url=str(response.url),
                    charset=response.charset_encoding,
                    headers=dict(response.headers),
                )
