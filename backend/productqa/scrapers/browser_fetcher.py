"""Playwright rendering fallback.

Launches a private headless Chromium per call, loads the page with heavy
subresources blocked, waits for client-side rendering to settle, then runs
the regular Extractor over the rendered DOM. The browser is always closed
before returning, including on timeout and cancellation.
"""

import asyncio
from typing import Optional, Tuple

import structlog
from playwright.async_api import Browser, Route, async_playwright
from playwright.async_api import Error as PlaywrightError

from productqa.config import settings
from productqa.core.exceptions import RenderError
from productqa.scrapers.base import AcquisitionMethod, ProductRecord
from productqa.scrapers.extractor import Extractor
from productqa.scrapers.utils.user_agents import IdentityRotator

logger = structlog.get_logger(__name__)

BLOCKED_RESOURCE_TYPES = frozenset({"image", "stylesheet", "font", "media"})

CHROMIUM_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--no-zygote",
    "--disable-setuid-sandbox",
    "--disable-software-rasterizer",
]


async def block_heavy_resources(route: Route) -> None:
    """Route handler aborting images, stylesheets and fonts to bound memory."""
    if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
        await route.abort()
    else:
        await route.continue_()


class BrowserFetcher:
    """Single-attempt browser rendering fetcher."""

    def __init__(
        self,
        extractor: Optional[Extractor] = None,
        identity_rotator: Optional[IdentityRotator] = None,
        navigation_timeout: Optional[float] = None,
        settle_seconds: Optional[float] = None,
        close_grace_seconds: Optional[float] = None,
        headless: Optional[bool] = None,
    ):
        self.extractor = extractor or Extractor()
        self.identity_rotator = identity_rotator or IdentityRotator()
        self.navigation_timeout = (
            navigation_timeout
            if navigation_timeout is not None
            else settings.RENDER_NAVIGATION_TIMEOUT_SECONDS
        )
        self.settle_seconds = (
            settle_seconds if settle_seconds is not None else settings.RENDER_SETTLE_SECONDS
        )
        self.close_grace_seconds = (
            close_grace_seconds
            if close_grace_seconds is not None
            else settings.RENDER_CLOSE_GRACE_SECONDS
        )
        self.headless = settings.RENDER_HEADLESS if headless is None else headless
        # Budget for launching Chromium on top of navigation and settle time
        self.launch_allowance = 10.0
        self.logger = logger.bind(fetcher="browser")

    @property
    def deadline(self) -> float:
        """Hard limit for the whole render, launch and teardown included."""
        return (
            self.launch_allowance
            + self.navigation_timeout
            + self.settle_seconds
            + self.close_grace_seconds
        )

    async def render_and_extract(self, url: str) -> ProductRecord:
        """Render a page in a headless browser and extract the product record.

        Args:
            url: Page URL

        Returns:
            ProductRecord with acquisition_method RENDERED

        Raises:
            RenderError: Launch, navigation, or deadline failure
        """
        self.logger.info("render_started", url=url)
        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            html, final_url = await asyncio.wait_for(self._render(url), self.deadline)
        except asyncio.TimeoutError:
            raise RenderError(f"Browser rendering timed out after {self.deadline:.0f}s")
        except PlaywrightError as e:
            raise RenderError(f"Browser rendering failed: {e.message}") from e

        record = self.extractor.extract(
            html, final_url or url, method=AcquisitionMethod.RENDERED, page_url=url
        )
        self.logger.info(
            "render_complete",
            url=url,
            final_url=final_url,
            title=record.title[:80],
            images=len(record.images),
            elapsed=round(loop.time() - started, 2),
        )
        return record

    async def _render(self, url: str) -> Tuple[str, str]:
        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(
                headless=self.headless,
                args=CHROMIUM_ARGS,
            )
            try:
                return await self._load(browser, url)
            finally:
                await self._release(browser)

    async def _load(self, browser: Browser, url: str) -> Tuple[str, str]:
        identity = self.identity_rotator.crawler_identity()
        context = await browser.new_context(
            user_agent=identity.user_agent,
            viewport={"width": 1280, "height": 720},
            ignore_https_errors=True,
            extra_http_headers={
                "Accept-Language": identity.accept_language,
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            },
        )
        page = await context.new_page()
        await page.route("**/*", block_heavy_resources)

        self.logger.debug("render_navigating", url=url)
        await page.goto(
            url,
            wait_until="domcontentloaded",
            timeout=self.navigation_timeout * 1000,
        )
        # Let client-side scripts populate the DOM
        await asyncio.sleep(self.settle_seconds)
        return await page.content(), page.url

    async def _release(self, browser: Browser) -> None:
        """Close the browser within the grace period, even while being cancelled."""
        try:
            await asyncio.wait_for(
                asyncio.shield(browser.close()), self.close_grace_seconds
            )
            self.logger.debug("browser_closed")
        except (PlaywrightError, asyncio.TimeoutError) as e:
            # async_playwright's exit still kills the driver and its children
            self.logger.warning("browser_close_failed", error=str(e))
