"""
Remote browser rendering for webpage to PDF conversion.

Connects to a Browserless-style remote Chromium over CDP using Playwright,
drives a single page through navigation and readiness heuristics, and
renders it to PDF. Every step is bounded; readiness and image waits are
best-effort and never fail a request on their own.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from playwright.async_api import Browser, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from .config import PDFSettings
from .errors import (
    BrowserConnectionError,
    GenerationError,
    NavigationError,
    RenderTimeoutError,
)

logger = logging.getLogger(__name__)

PDF_FORMAT = "A4"
PDF_MARGIN = {"top": "20px", "right": "20px", "bottom": "20px", "left": "20px"}

# Extra time the Python side allows the in-page image wait before giving up
IMAGE_WAIT_GRACE_MS = 1000

# Resolves once every <img> has loaded or errored, or after timeoutMs.
WAIT_FOR_IMAGES_SCRIPT = """
(timeoutMs) => new Promise((resolve) => {
    const images = Array.from(document.querySelectorAll("img"));
    const total = images.length;
    if (total === 0 || images.every((img) => img.complete)) {
        resolve({ total, settled: total, timedOut: false });
        return;
    }

    let settled = 0;
    const timer = setTimeout(() => {
        resolve({ total, settled, timedOut: true });
    }, timeoutMs);

    const onSettled = () => {
        settled += 1;
        if (settled === total) {
            clearTimeout(timer);
            resolve({ total, settled, timedOut: false });
        }
    };

    images.forEach((img) => {
        if (img.complete) {
            onSettled();
        } else {
            img.addEventListener("load", onSettled, { once: true });
            img.addEventListener("error", onSettled, { once: true });
        }
    });
})
"""


class BrowserSession:
    """
    One remote browser connection and one page, scoped to a single request.

    Use as an async context manager. The session is closed exactly once
    on every exit path, including cancellation by an outer deadline.
    Errors while closing are logged, never raised.
    """

    def __init__(self, settings: PDFSettings):
        self._settings = settings
        self._playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.page: Optional[Page] = None
        self.closed = False

    async def __aenter__(self) -> "BrowserSession":
        try:
            await self._open()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _open(self) -> None:
        settings = self._settings
        self._playwright = await async_playwright().start()

        logger.info(f"Connecting to remote browser at {settings.redacted_ws_endpoint}")
        try:
            self.browser = await self._playwright.chromium.connect_over_cdp(
                settings.browser_ws_endpoint,
                timeout=settings.connect_timeout_ms,
            )
        except PlaywrightError as e:
            raise BrowserConnectionError(f"Could not connect to browser service: {e}") from e

        try:
            self.page = await self.browser.new_page(
                viewport={"width": settings.viewport_width, "height": settings.viewport_height}
            )
        except PlaywrightError as e:
            raise BrowserConnectionError(f"Could not open a browser page: {e}") from e

    async def close(self) -> None:
        """Close the browser connection and stop Playwright (idempotent)."""
        if self.closed:
            return
        self.closed = True

        if self.browser is not None:
            try:
                await asyncio.wait_for(
                    self.browser.close(),
                    timeout=self._settings.close_timeout_ms / 1000,
                )
                logger.info("Browser session closed")
            except Exception as e:
                logger.warning(f"Browser close warning: {e!r}")

        if self._playwright is not None:
            try:
                await asyncio.wait_for(
                    self._playwright.stop(),
                    timeout=self._settings.close_timeout_ms / 1000,
                )
            except Exception as e:
                logger.warning(f"Playwright stop warning: {e!r}")


async def navigate(page: Page, url: str, timeout_ms: int) -> None:
    """
    Navigate to ``url``, tolerating partial loads.

    A navigation error is recoverable when the page already holds
    root markup; otherwise it is raised as NavigationError.
    """
    logger.info(f"Navigating to {url}...")
    try:
        response = await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
    except PlaywrightError as nav_error:
        logger.warning(f"Navigation error: {nav_error}")
        try:
            content = await page.content()
        except PlaywrightError as e:
            logger.warning(f"Could not read page content after navigation error: {e}")
            content = ""
        # about:blank and Chromium error pages both serialize with <html, so this
        # only rejects a page whose content cannot be read at all.
        if "<html" not in content.lower():
            raise NavigationError(f"Navigation to {url} failed: {nav_error}") from nav_error
        logger.info("Page partially loaded, continuing anyway")
        return

    if response is not None and not response.ok:
        logger.warning(f"Page responded with HTTP {response.status}, rendering anyway")


async def wait_for_document_ready(page: Page, timeout_ms: int) -> bool:
    """Wait for document.readyState to reach 'complete'. Best-effort."""
    logger.info("Page loaded, waiting for content...")
    try:
        await page.wait_for_function(
            "() => document.readyState === 'complete'",
            timeout=timeout_ms,
        )
        return True
    except PlaywrightError as e:
        logger.warning(f"Page didn't reach 'complete' state: {e}")
        return False


async def wait_for_images(page: Page, timeout_ms: int) -> Optional[Dict[str, Any]]:
    """
    Wait for every image on the page to load or error. Best-effort.

    Returns the in-page summary ``{total, settled, timedOut}``, or None
    when the check itself failed.
    """
    logger.info("Checking for images...")
    try:
        summary = await asyncio.wait_for(
            page.evaluate(WAIT_FOR_IMAGES_SCRIPT, timeout_ms),
            timeout=(timeout_ms + IMAGE_WAIT_GRACE_MS) / 1000,
        )
    except asyncio.TimeoutError:
        logger.warning(f"Image loading check did not return within {timeout_ms}ms, continuing anyway")
        return None
    except PlaywrightError as e:
        logger.warning(f"Image loading check failed: {e}")
        return None

    if summary and summary.get("timedOut"):
        logger.warning(
            f"Image loading timed out ({summary.get('settled')}/{summary.get('total')} settled), "
            "continuing anyway"
        )
    elif summary:
        logger.info(f"All images settled. Total: {summary.get('total')}")
    return summary


async def generate_pdf(page: Page, timeout_ms: int) -> bytes:
    """Render the page to PDF, racing against ``timeout_ms``."""
    logger.info("Generating PDF...")
    try:
        pdf_bytes = await asyncio.wait_for(
            page.pdf(format=PDF_FORMAT, print_background=True, margin=PDF_MARGIN),
            timeout=timeout_ms / 1000,
        )
    except asyncio.TimeoutError:
        raise RenderTimeoutError("PDF generation timed out") from None
    except PlaywrightError as e:
        raise GenerationError(f"PDF rendering failed: {e}") from e

    if not pdf_bytes:
        raise GenerationError("PDF generation returned empty result")

    logger.info(f"PDF generated ({len(pdf_bytes)} bytes)")
    return pdf_bytes


async def render_url_to_pdf(url: str, settings: PDFSettings) -> bytes:
    """Open a browser session, load ``url`` and return it as PDF bytes."""
    async with BrowserSession(settings) as session:
        page = session.page
        page.set_default_navigation_timeout(settings.navigation_timeout_ms)

        await navigate(page, url, settings.navigation_timeout_ms)
        await wait_for_document_ready(page, settings.navigation_timeout_ms)
        await wait_for_images(page, settings.image_timeout_ms)
        return await generate_pdf(page, settings.pdf_timeout_ms)


async def generate_webpage_pdf(url: str, settings: PDFSettings) -> bytes:
    """
    Render ``url`` to PDF under the whole-request deadline.

    When the deadline expires the in-flight work is cancelled, which
    closes the browser session before RenderTimeoutError is raised.

    Args:
        url: Absolute URL to render
        settings: Service settings (token, endpoint, timeouts)

    Returns:
        PDF bytes

    Raises:
        BrowserConnectionError, NavigationError, RenderTimeoutError, GenerationError
    """
    try:
        return await asyncio.wait_for(
            render_url_to_pdf(url, settings),
            timeout=settings.total_timeout_ms / 1000,
        )
    except asyncio.TimeoutError:
        logger.error(f"PDF generation for {url} exceeded {settings.total_timeout_ms}ms")
        raise RenderTimeoutError(
            f"PDF generation timed out after {settings.total_timeout_ms}ms"
        ) from None
