"""
Manages Playwright browser instances for PDF rendering.

This module provides the `PlaywrightManager` class, an asynchronous context manager
that owns one Playwright engine and one browser process. Each PDF request enters
its own manager, so no browser state is shared between requests. Inside the
context it opens a page with a fixed viewport, navigates, waits for the page to
settle and prints it to PDF.
"""
import asyncio
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from playwright.async_api import (
    async_playwright,
    Browser,
    Error as PlaywrightError,
    Page,
    Playwright,
    Response,
    TimeoutError as PlaywrightTimeoutError,
)

from pdf_render_service.core.exceptions import (
    ExportFailedError,
    NavigationTimeoutError,
    RendererError,
    UpstreamPageError,
)
from pdf_render_service.core.logger import get_logger

if TYPE_CHECKING:
    from pdf_render_service.core.config import ConfigurationManager

logger = get_logger(__name__)

CONFIG_PREFIX = "components.playwright_manager"


class PlaywrightManager:
    """
    Asynchronous context manager for a single-use Playwright browser.

    `__aenter__` starts Playwright and launches the browser; `__aexit__` closes
    both. Teardown errors are logged and never re-raised, so the exit path of
    the caller is never replaced by a cleanup failure.

    Attributes:
        browser_type (str): The type of browser to launch. Only 'chromium' can print PDFs.
        playwright (Optional[Playwright]): The Playwright engine instance.
        browser (Optional[Browser]): The launched browser instance.
    """
    DEFAULT_BROWSER_TYPE = 'chromium'
    SUPPORTED_BROWSER_TYPES = ('chromium',)
    DEFAULT_HEADLESS = True
    DEFAULT_LAUNCH_ARGS = [
        '--no-sandbox',
        '--disable-setuid-sandbox',
        '--disable-dev-shm-usage',
        '--font-render-hinting=none',
    ]
    DEFAULT_VIEWPORT = {'width': 1200, 'height': 1800, 'device_scale_factor': 0.8}
    DEFAULT_NAVIGATION_TIMEOUT_MS = 60000
    DEFAULT_READINESS_SELECTOR = 'body'
    DEFAULT_READINESS_TIMEOUT_MS = 10000
    DEFAULT_SETTLE_DELAY_SECONDS = 3.0
    DEFAULT_EXPORT_TIMEOUT_SECONDS = 60.0
    DEFAULT_PDF_OPTIONS = {
        'format': 'A4',
        'print_background': True,
        'scale': 1,
        'prefer_css_page_size': True,
        'margin': {'top': '20px', 'right': '20px', 'bottom': '20px', 'left': '20px'},
    }

    def __init__(self, config: Optional['ConfigurationManager'] = None):
        """
        Initializes the PlaywrightManager.

        Args:
            config (Optional[ConfigurationManager]): Source of the
                `components.playwright_manager.*` settings. If None, defaults are used.

        Raises:
            RendererError: If an unsupported browser type is configured.
        """
        self._config = config

        self.browser_type: str = self._setting('browser_type', self.DEFAULT_BROWSER_TYPE)
        if self.browser_type not in self.SUPPORTED_BROWSER_TYPES:
            logger.error(f"Unsupported browser type configured: {self.browser_type}")
            raise RendererError(
                f"Unsupported browser type: {self.browser_type}. PDF export requires 'chromium'."
            )

        self.headless: bool = bool(self._setting('headless', self.DEFAULT_HEADLESS))
        self.launch_args: List[str] = list(self._setting('launch_args', self.DEFAULT_LAUNCH_ARGS))
        self.viewport: Dict[str, Any] = {**self.DEFAULT_VIEWPORT, **(self._setting('viewport', {}) or {})}
        self.navigation_timeout_ms: int = int(self._setting('navigation_timeout_ms', self.DEFAULT_NAVIGATION_TIMEOUT_MS))
        self.readiness_selector: str = self._setting('readiness_selector', self.DEFAULT_READINESS_SELECTOR)
        self.readiness_timeout_ms: int = int(self._setting('readiness_timeout_ms', self.DEFAULT_READINESS_TIMEOUT_MS))
        self.settle_delay_seconds: float = float(self._setting('settle_delay_seconds', self.DEFAULT_SETTLE_DELAY_SECONDS))
        self.export_timeout_seconds: float = float(self._setting('export_timeout_seconds', self.DEFAULT_EXPORT_TIMEOUT_SECONDS))
        self.pdf_options: Dict[str, Any] = {**self.DEFAULT_PDF_OPTIONS, **(self._setting('pdf', {}) or {})}

        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None

    def _setting(self, key: str, default: Any) -> Any:
        if self._config is None:
            return default
        return self._config.get(f"{CONFIG_PREFIX}.{key}", default)

    async def __aenter__(self) -> 'PlaywrightManager':
        """
        Starts the Playwright engine and launches a fresh browser process.

        Raises:
            RendererError: If Playwright fails to start or the browser fails to launch
                           (typically missing browser binaries).
        """
        logger.debug(f"Starting Playwright and launching {self.browser_type} (headless={self.headless}).")
        try:
            self.playwright = await async_playwright().start()
            browser_launcher = getattr(self.playwright, self.browser_type)
            self.browser = await browser_launcher.launch(headless=self.headless, args=self.launch_args)
            logger.info(f"{self.browser_type} browser launched successfully.")
        except Exception as e:
            logger.error(f"Failed to initialize Playwright or launch browser {self.browser_type}: {e}", exc_info=True)
            if self.playwright:
                try:
                    await self.playwright.stop()
                except Exception as stop_e:
                    logger.error(f"Error stopping Playwright during __aenter__ cleanup: {stop_e}", exc_info=True)
                self.playwright = None
            raise RendererError(f"Failed to initialize Playwright or launch browser {self.browser_type}: {e}")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """
        Closes the browser and stops the Playwright engine.

        Runs on every exit path of the `async with` block and never raises.
        """
        if self.browser:
            logger.info("[CLEANUP] Closing browser...")
            try:
                await self.browser.close()
                logger.info("[CLEANUP] Browser closed")
            except Exception as e:
                logger.error(f"[CLEANUP ERROR] Failed to close browser: {e}", exc_info=True)
        if self.playwright:
            try:
                await self.playwright.stop()
            except Exception as e:
                logger.error(f"[CLEANUP ERROR] Failed to stop Playwright: {e}", exc_info=True)

        self.browser = None
        self.playwright = None

    async def new_page(self) -> Page:
        """
        Opens a page with the configured fixed viewport and pixel density.

        Raises:
            RendererError: If the manager has not been entered.
        """
        if not self.browser:
            logger.error("new_page called but browser is not initialized.")
            raise RendererError("Browser is not initialized. Ensure PlaywrightManager is used within an 'async with' statement.")

        return await self.browser.new_page(
            viewport={'width': int(self.viewport['width']), 'height': int(self.viewport['height'])},
            device_scale_factor=float(self.viewport['device_scale_factor']),
        )

    async def navigate(self, page: Page, url: str) -> Optional[Response]:
        """
        Navigates `page` to `url` and waits for the network to go idle.

        'networkidle' is only reached after the DOM is parsed and the load event
        has fired, so it covers all three readiness signals.

        Returns:
            Optional[Response]: The main resource response. None for navigations
                                without an HTTP response (e.g. data: URLs).

        Raises:
            NavigationTimeoutError: If navigation does not finish within `navigation_timeout_ms`.
            UpstreamPageError: If the page answered with a non-2xx status.
        """
        try:
            response = await page.goto(url, wait_until='networkidle', timeout=self.navigation_timeout_ms)
        except PlaywrightTimeoutError as e:
            logger.error(f"Navigation to {url} timed out after {self.navigation_timeout_ms}ms: {e}")
            raise NavigationTimeoutError(
                f"Navigation to {url} timed out after {self.navigation_timeout_ms}ms"
            )

        if response is None:
            logger.warning(f"Navigation to {url} produced no HTTP response; skipping status check.")
            return None

        logger.info(f"Page loaded with status: {response.status}")
        if not response.ok:
            logger.error(f"Failed to load page: {response.status}")
            raise UpstreamPageError(response.status)
        return response

    async def wait_until_ready(self, page: Page) -> bool:
        """
        Best-effort wait for client-side rendering to finish.

        Waits for `readiness_selector`, then sleeps `settle_delay_seconds`. If the
        selector does not appear in time the wait is abandoned and the page is
        printed as it is.

        Returns:
            bool: True if the selector was observed, False otherwise.
        """
        try:
            await page.wait_for_selector(self.readiness_selector, timeout=self.readiness_timeout_ms)
        except PlaywrightError as e:
            logger.warning(f"Timeout waiting for content ('{self.readiness_selector}'), proceeding anyway: {e}")
            return False

        if self.settle_delay_seconds > 0:
            await asyncio.sleep(self.settle_delay_seconds)
        return True

    async def export_pdf(self, page: Page, path: str) -> None:
        """
        Prints the current page state to a PDF file at `path`.

        Raises:
            ExportFailedError: If printing fails or exceeds `export_timeout_seconds`.
        """
        logger.debug(f"Exporting PDF to '{path}' with options {self.pdf_options}.")
        try:
            await asyncio.wait_for(page.pdf(path=path, **self.pdf_options), timeout=self.export_timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(f"PDF export timed out after {self.export_timeout_seconds}s.")
            raise ExportFailedError(f"PDF export timed out after {self.export_timeout_seconds}s")
        except Exception as e:
            logger.error(f"PDF export failed: {e}", exc_info=True)
            raise ExportFailedError(f"PDF export failed: {e}")
