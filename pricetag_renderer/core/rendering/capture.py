"""
Price Tag Capture
=================

Playwright-based screenshot capture of rendered price tag pages.
Owns one browser per capturer and writes each capture as a WebP file.
"""

from typing import Any, AsyncGenerator, Callable, List, Optional
from contextlib import asynccontextmanager
from pathlib import Path
import io

from playwright.async_api import async_playwright, Page
from PIL import Image  # type: ignore

from pricetag_renderer.config.logging import get_logger
from pricetag_renderer.models.schemas import CaptureOptions, WorkItem

logger = get_logger(__name__)

BROWSER_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]


class CaptureError(Exception):
    """Exception raised when capturing a price tag fails."""

    pass


class PriceTagCapturer:
    """Captures price tag pages served at ``base_url`` into WebP files."""

    def __init__(self, base_url: str, options: CaptureOptions):
        self.base_url = base_url.rstrip("/")
        self.options = options
        self.logger: Any = logger.bind(component="capturer")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[Page, None]:
        """
        Launch a browser with one page sized to the capture viewport.

        The browser and the Playwright driver are released on every exit path.
        """
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(
                headless=self.options.headless, args=BROWSER_ARGS
            )
            try:
                context = await browser.new_context(
                    viewport={
                        "width": self.options.viewport_width,
                        "height": self.options.viewport_height,
                    },
                    device_scale_factor=self.options.device_scale_factor,
                )
                page = await context.new_page()
                page.set_default_timeout(self.options.timeout)
                self.logger.debug(
                    "Browser session started",
                    width=self.options.viewport_width,
                    height=self.options.viewport_height,
                )
                yield page
            finally:
                await browser.close()
                self.logger.debug("Browser closed")
        finally:
            await playwright.stop()

    def output_path(self, item: WorkItem) -> Path:
        return self.options.output_dir / f"{item.product.image_stem}.webp"

    async def capture(self, page: Page, item: WorkItem) -> Path:
        """
        Navigate to the item's page and save a full-page capture.

        Args:
            page: Page from :meth:`session`
            item: Work item to capture

        Returns:
            Path of the written WebP file
        """
        url = f"{self.base_url}{item.page_path}"
        # networkidle: the product photo has loaded, not just the HTML
        await page.goto(url, wait_until="networkidle")

        screenshot_bytes = await page.screenshot(type="png", full_page=True, omit_background=True)

        path = self.output_path(item)
        self._save_webp(screenshot_bytes, path)
        self.logger.debug("Captured price tag", url=url, path=str(path))
        return path

    def _save_webp(self, png_bytes: bytes, path: Path) -> None:
        """Convert a PNG capture to WebP, keeping transparency."""
        image = Image.open(io.BytesIO(png_bytes))
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        image.save(path, format="WEBP", quality=self.options.webp_quality)


async def capture_items(
    base_url: str,
    items: List[WorkItem],
    options: CaptureOptions,
    on_status: Optional[Callable[[str], None]] = None,
    on_captured: Optional[Callable[[WorkItem, Path], None]] = None,
) -> List[Path]:
    """
    Capture every item in order with a single browser.

    The first failure propagates as :class:`CaptureError`; the items after it
    are not attempted.

    Args:
        base_url: Page server root URL
        items: Work items, processed in order
        options: Capture options
        on_status: Called with a progress message before each item
        on_captured: Called after each successful capture

    Returns:
        Paths of the written files
    """
    capturer = PriceTagCapturer(base_url, options)
    written: List[Path] = []
    options.output_dir.mkdir(parents=True, exist_ok=True)

    try:
        async with capturer.session() as page:
            for item in items:
                if on_status:
                    on_status(
                        f"Processing product {item.index + 1}: "
                        f"Product Code {item.product.image_stem}"
                    )
                path = await capturer.capture(page, item)
                written.append(path)
                if on_captured:
                    on_captured(item, path)
    except Exception as e:
        raise CaptureError(f"Capture failed after {len(written)} of {len(items)} items: {e}")

    return written
