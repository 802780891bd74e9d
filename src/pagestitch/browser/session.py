"""Shared browser lifecycle for a batch run.

One Chromium process is launched per run and shared by every job. Each URL
gets its own fresh ``BrowserContext`` (cookies, storage and injected scripts
are never carried from one URL to the next) which is closed when the job ends.

Usage::

    with BrowserSession(settings.browser) as session:
        with session.page(**context_args) as page:
            ...
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from playwright.sync_api import Browser, Page, Playwright, sync_playwright

from pagestitch.exceptions import BrowserLaunchError
from pagestitch.settings.config import BrowserSettings

logger = logging.getLogger(__name__)


class BrowserSession:
    """Owns the Playwright driver and the shared browser for one run.

    Args:
        settings: Browser section of the run settings.
        playwright_factory: Returns an unstarted Playwright context manager.
            Defaults to ``sync_playwright``; injectable for tests.
    """

    def __init__(
        self,
        settings: BrowserSettings,
        *,
        playwright_factory: Callable[[], Any] = sync_playwright,
    ) -> None:
        self._settings = settings
        self._playwright_factory = playwright_factory
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self.pages_opened = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def launch_args(self) -> dict[str, Any]:
        args = list(self._settings.extra_args)
        if not self._settings.sandbox:
            args += ["--no-sandbox", "--disable-setuid-sandbox"]
        return {"headless": self._settings.headless, "args": args}

    def acquire(self) -> Browser:
        """Launch the browser if needed and return the shared handle.

        Raises:
            BrowserLaunchError: If Playwright or Chromium fails to start.
        """
        if self._browser is not None:
            return self._browser
        try:
            self._playwright = self._playwright_factory().start()
            self._browser = self._playwright.chromium.launch(**self.launch_args())
        except Exception as e:
            logger.error("Browser launch failed: %s", e)
            self._stop_driver()
            raise BrowserLaunchError(f"Could not launch browser: {e}") from e
        logger.info("Browser started (headless=%s)", self._settings.headless)
        return self._browser

    def release(self) -> None:
        """Close the browser and stop the driver. Safe to call repeatedly."""
        if self._browser is not None:
            try:
                self._browser.close()
            except Exception as e:
                logger.warning("Browser close error (non-fatal): %s", e)
            finally:
                self._browser = None
            logger.info("Browser stopped after %d page(s)", self.pages_opened)
        self._stop_driver()

    def _stop_driver(self) -> None:
        if self._playwright is not None:
            try:
                self._playwright.stop()
            except Exception as e:
                logger.warning("Playwright stop error (non-fatal): %s", e)
            finally:
                self._playwright = None

    @property
    def active(self) -> bool:
        return self._browser is not None

    def __enter__(self) -> "BrowserSession":
        self.acquire()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()

    # ------------------------------------------------------------------
    # Per-URL contexts
    # ------------------------------------------------------------------

    @contextmanager
    def page(self, **context_args: Any) -> Iterator[Page]:
        """Yield a page in a brand-new browser context, closed on exit."""
        if self._browser is None:
            raise RuntimeError("Browser not started. Call acquire() first.")
        context = self._browser.new_context(**context_args)
        self.pages_opened += 1
        try:
            page = context.new_page()
            page.set_default_timeout(self._settings.page_timeout_ms)
            page.set_default_navigation_timeout(self._settings.page_timeout_ms)
            yield page
        finally:
            try:
                context.close()
            except Exception as e:
                logger.warning("Context close error (non-fatal): %s", e)
