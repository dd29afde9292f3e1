"""
PNG Generator
=============

Playwright-based PNG screenshot generation from HTML documents.
Manages the browser pool and renders at the requested device scale factor.
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Any, List, AsyncGenerator
import asyncio
import time
from contextlib import asynccontextmanager

from playwright.async_api import async_playwright, Browser, BrowserContext, Page

from ...config.logging import get_logger
from ...config.settings import get_settings
from ..errors import RenderEngineFailure

logger = get_logger(__name__)


class PNGGenerationError(RenderEngineFailure):
    """Exception raised when PNG generation fails."""

    pass


class RenderEngine(ABC):
    """Turns an HTML document into PNG bytes."""

    @abstractmethod
    async def render_png(self, html_content: str, width: int, height: int, scale_factor: int = 1) -> bytes:
        """
        Render HTML to PNG.

        Args:
            html_content: Complete HTML document
            width: Viewport width in CSS pixels
            height: Viewport height in CSS pixels
            scale_factor: Device scale factor; output is width*scale x height*scale

        Returns:
            PNG bytes
        """
        pass


class BrowserPool:
    """Browser instance pool for efficient resource management."""

    def __init__(self, pool_size: int = 2):
        self.pool_size = pool_size
        self.browsers: List[Browser] = []
        self._semaphore = asyncio.Semaphore(pool_size)
        self._playwright: Any = None
        self.settings = get_settings()
        self.logger: Any = logger.bind(component="browser_pool")

    @property
    def ready(self) -> bool:
        return bool(self.browsers) or self._semaphore.locked()

    async def initialize(self) -> None:
        """Launch the pool's browsers."""
        try:
            self._playwright = await async_playwright().start()

            for _ in range(self.pool_size):
                browser = await self._playwright.chromium.launch(
                    headless=self.settings.playwright_headless,
                    args=[
                        "--no-sandbox",
                        "--disable-setuid-sandbox",
                        "--disable-dev-shm-usage",
                        "--font-render-hinting=none",
                        "--disable-lcd-text",
                    ],
                )
                self.browsers.append(browser)

            self.logger.info("Browser pool initialized", pool_size=self.pool_size)
        except Exception as e:
            self.logger.error("Failed to initialize browser pool", error=str(e))
            raise PNGGenerationError(f"Browser pool initialization failed: {e}", "png") from e

    async def close(self) -> None:
        """Close all browsers in the pool."""
        for browser in self.browsers:
            await browser.close()
        self.browsers.clear()

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        self.logger.info("Browser pool closed")

    @asynccontextmanager
    async def get_browser(self) -> AsyncGenerator[Browser, None]:
        """Get a browser instance from the pool."""
        async with self._semaphore:
            if not self.browsers:
                raise PNGGenerationError("Browser pool not initialized", "png")

            browser = self.browsers.pop()
            try:
                yield browser
            finally:
                self.browsers.append(browser)


class PlaywrightPNGGenerator(RenderEngine):
    """Playwright-based PNG generator implementation."""

    def __init__(self, browser_pool: Optional[BrowserPool] = None):
        self.settings = get_settings()
        self.logger: Any = logger.bind(generator="playwright")
        self.browser_pool = browser_pool

    async def render_png(self, html_content: str, width: int, height: int, scale_factor: int = 1) -> bytes:
        """
        Render an HTML document with a pooled browser.

        Raises:
            PNGGenerationError: If the pool is unavailable or the browser fails
        """
        pool = self.browser_pool or get_browser_pool()
        if pool is None:
            raise PNGGenerationError("Browser pool not available", "png")

        start_time = time.time()
        try:
            async with pool.get_browser() as browser:
                context = await self._create_browser_context(browser, width, height, scale_factor)
                try:
                    page = await context.new_page()
                    await self._configure_page(page)
                    await page.set_content(html_content, wait_until="load")

                    screenshot_bytes = await page.screenshot(
                        type="png",
                        clip={"x": 0, "y": 0, "width": width, "height": height},
                    )
                finally:
                    await context.close()
        except PNGGenerationError:
            raise
        except Exception as e:
            error_msg = f"PNG generation failed: {e}"
            self.logger.error("PNG generation error", error=error_msg)
            raise PNGGenerationError(error_msg, "png") from e

        self.logger.debug(
            "PNG generation completed",
            width=width,
            height=height,
            scale_factor=scale_factor,
            file_size=len(screenshot_bytes),
            duration=round(time.time() - start_time, 3),
        )
        return screenshot_bytes

    async def _create_browser_context(
        self, browser: Browser, width: int, height: int, scale_factor: int
    ) -> BrowserContext:
        context_options: Dict[str, Any] = {
            "viewport": {"width": width, "height": height},
            "device_scale_factor": scale_factor,
        }
        return await browser.new_context(**context_options)

    async def _configure_page(self, page: Page) -> None:
        page.set_default_timeout(self.settings.playwright_timeout)


# Global browser pool instance
_global_browser_pool: Optional[BrowserPool] = None


def get_browser_pool() -> Optional[BrowserPool]:
    return _global_browser_pool


async def initialize_browser_pool() -> None:
    """Initialize global browser pool."""
    global _global_browser_pool
    settings = get_settings()
    _global_browser_pool = BrowserPool(settings.browser_pool_size)
    await _global_browser_pool.initialize()


async def close_browser_pool() -> None:
    """Close global browser pool."""
    global _global_browser_pool
    if _global_browser_pool:
        await _global_browser_pool.close()
        _global_browser_pool = None
