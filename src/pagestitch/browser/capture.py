"""Full-page snapshot capture for one prepared page.

Sequence: navigate (all load signals) -> wait for readiness -> settle ->
normalize layout -> short settle -> full-page PNG screenshot.

:func:`capture_page` never raises. Any navigation, evaluation or screenshot
error is logged and reported as ``False`` so the batch can move on.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from playwright.sync_api import Page

from pagestitch.browser.navigation import navigate
from pagestitch.browser.overlays import OverlaySuppressor
from pagestitch.browser.readiness import page_sleep, wait_until_ready
from pagestitch.exceptions import CaptureError
from pagestitch.settings.config import Settings

logger = logging.getLogger(__name__)

_NORMALIZE_LAYOUT_JS = """
({ selectors, headerSelector, pinHeader }) => {
  let removed = 0;
  for (const selector of selectors) {
    document.querySelectorAll(selector).forEach((el) => {
      el.remove();
      removed += 1;
    });
  }

  window.scrollTo(0, 0);

  if (pinHeader) {
    const header = document.querySelector(headerSelector);
    if (header) {
      header.style.position = 'fixed';
      header.style.top = '0';
      header.style.left = '0';
      header.style.right = '0';
      header.style.zIndex = '1000';
    }
  }

  for (const el of [document.body, document.documentElement]) {
    if (!el) continue;
    el.style.overflow = 'visible';
    el.style.position = 'static';
  }
  return removed;
}
"""


def normalize_layout(page: Page, settings: Settings) -> int:
    """Strip leftover overlays, scroll to origin, pin the header, unlock scrolling.

    Returns:
        Number of overlay elements removed.
    """
    overlay = settings.overlay
    selectors = [overlay.primary_selector, *overlay.selectors] if overlay.primary_selector else list(overlay.selectors)
    removed = page.evaluate(
        _NORMALIZE_LAYOUT_JS,
        {
            "selectors": selectors,
            "headerSelector": settings.readiness.header_selector,
            "pinHeader": overlay.pin_header,
        },
    )
    return removed or 0


def take_snapshot(page: Page, output_path: Path) -> Path:
    """Write a lossless full-page PNG at the viewport width.

    Raises:
        CaptureError: If the browser reported success but no image was written.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    page.screenshot(path=str(output_path), full_page=True, type="png")
    if not output_path.is_file() or output_path.stat().st_size == 0:
        raise CaptureError(f"No snapshot written to {output_path}")
    return output_path


def capture_page(
    page: Page,
    url: str,
    output_path: Path,
    settings: Settings,
    *,
    suppressor: OverlaySuppressor | None = None,
    sleep: Callable[[float], None] | None = None,
) -> bool:
    """Navigate to *url* and save a full-page snapshot to *output_path*.

    Args:
        page: A page already configured by ``prepare_page``.
        url: The URL to capture.
        output_path: Destination PNG path.
        settings: Run settings.
        suppressor: Overlay suppressor installed on *page*. Its change
            subscription is stopped before layout normalization so the two
            do not fight over ``<body>`` styles.
        sleep: Settle-delay sleep; defaults to ``page.wait_for_timeout``.

    Returns:
        ``True`` if the snapshot file was written.
    """
    sleep = sleep or page_sleep(page)
    readiness = settings.readiness
    try:
        logger.info("Navigating to %s", url)
        navigate(
            page,
            url,
            timeout_ms=settings.browser.navigation_bound_ms,
            wait_for_network_idle=settings.browser.wait_for_network_idle,
        )

        logger.info("Waiting for content to be fully loaded...")
        wait_until_ready(page, readiness, sleep=sleep)
        sleep(readiness.settle_seconds)

        if suppressor is not None:
            suppressor.stop()
        removed = normalize_layout(page, settings)
        if removed:
            logger.info("Removed %d leftover overlay element(s) before capture", removed)
        sleep(readiness.layout_settle_seconds)

        take_snapshot(page, output_path)
        logger.info("Snapshot saved: %s", output_path)
        return True
    except Exception as e:
        logger.error("Error capturing %s: %s", url, e)
        return False
