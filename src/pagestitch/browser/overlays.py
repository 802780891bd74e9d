"""Page preparation: fixed identity, fixed viewport and overlay suppression.

Overlays (cookie banners, popup modals) are suppressed in two layers:

1. A stylesheet injected into every document the page loads, hiding each
   configured selector.
2. A removal pass that deletes matching elements and clears scroll locks on
   ``<body>``. It runs once immediately and again for every batch of
   structural or ``class``/``style`` changes, because most overlays are
   inserted by delayed scripts well after the initial load.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from playwright.sync_api import Page

from pagestitch.browser.observer import DomChangeSubscription
from pagestitch.settings.config import BrowserSettings, OverlaySettings

logger = logging.getLogger(__name__)

_STYLE_ID = "pagestitch-overlay-suppression"

_HIDE_DECLARATIONS = """\
  display: none !important;
  visibility: hidden !important;
  opacity: 0 !important;
  pointer-events: none !important;
  position: fixed !important;
  z-index: -99999 !important;
  max-height: 0 !important;
  max-width: 0 !important;
  transform: scale(0) !important;
  clip: rect(0, 0, 0, 0) !important;
  margin: -1px !important;
  padding: 0 !important;
  border: 0 !important;
  overflow: hidden !important;
"""

_BODY_UNLOCK_RULE = """\
body {
  overflow: auto !important;
  position: static !important;
}
"""

_STYLE_INIT_SCRIPT = """
(() => {
  const id = %(id)s;
  const css = %(css)s;
  const install = () => {
    if (document.getElementById(id)) return;
    const style = document.createElement('style');
    style.id = id;
    style.textContent = css;
    (document.head || document.documentElement).appendChild(style);
  };
  if (document.documentElement) {
    install();
  } else {
    document.addEventListener('DOMContentLoaded', install, { once: true });
  }
})()
"""

# Writes only when a value actually changes so the pass does not feed its
# own attribute observer.
_REMOVE_OVERLAYS_JS = """
(selectors) => {
  let removed = 0;
  for (const selector of selectors) {
    document.querySelectorAll(selector).forEach((el) => {
      el.remove();
      removed += 1;
    });
  }
  const body = document.body;
  if (body) {
    if (body.style.overflow !== 'auto') body.style.overflow = 'auto';
    if (body.style.position !== 'static') body.style.position = 'static';
    for (const cls of ['elementor-popup-modal', 'dialog-prevent-scroll']) {
      if (body.classList.contains(cls)) body.classList.remove(cls);
    }
  }
  return removed;
}
"""


def build_context_args(settings: BrowserSettings) -> dict[str, Any]:
    """Return ``browser.new_context()`` kwargs for the fixed identity and viewport."""
    return {
        "user_agent": settings.user_agent,
        "viewport": {"width": settings.viewport_width, "height": settings.viewport_height},
        "device_scale_factor": settings.device_scale_factor,
        "is_mobile": False,
        "has_touch": False,
    }


def build_overlay_css(selectors: list[str]) -> str:
    """Stylesheet hiding every selector plus the body scroll unlock."""
    if not selectors:
        return _BODY_UNLOCK_RULE
    return ",\n".join(selectors) + " {\n" + _HIDE_DECLARATIONS + "}\n\n" + _BODY_UNLOCK_RULE


class OverlaySuppressor:
    """Keeps configured overlay elements out of a page for its lifetime."""

    def __init__(self, page: Page, settings: OverlaySettings) -> None:
        self._page = page
        self._selectors = list(settings.selectors)
        self._subscription = DomChangeSubscription(
            page,
            self._on_change,
            name="overlays",
            attributes=True,
            attribute_filter=["class", "style"],
        )
        self.removed = 0

    def style_script(self) -> str:
        return _STYLE_INIT_SCRIPT % {
            "id": json.dumps(_STYLE_ID),
            "css": json.dumps(build_overlay_css(self._selectors)),
        }

    def install(self) -> None:
        self._page.add_init_script(script=self.style_script())
        self._subscription.start(persist=True)
        self.remove_now()
        logger.debug("Overlay suppression installed (%d selectors)", len(self._selectors))

    def remove_now(self) -> int:
        """Run one removal pass on the current document."""
        count = self._page.evaluate(_REMOVE_OVERLAYS_JS, self._selectors) or 0
        if count:
            self.removed += count
            logger.info("Removed %d overlay element(s)", count)
        return count

    def stop(self) -> None:
        """Stop re-running the removal pass (the stylesheet stays)."""
        self._subscription.stop()

    @property
    def active(self) -> bool:
        return self._subscription.active

    def _on_change(self, count: int) -> None:
        logger.debug("Overlay pass after %d mutation(s)", count)
        self.remove_now()


def prepare_page(
    page: Page,
    browser_settings: BrowserSettings,
    overlay_settings: OverlaySettings,
) -> OverlaySuppressor:
    """Pin viewport and media emulation, then install overlay suppression.

    The identity string is applied at context creation via
    :func:`build_context_args`.
    """
    page.set_viewport_size(
        {"width": browser_settings.viewport_width, "height": browser_settings.viewport_height}
    )
    page.emulate_media(media=browser_settings.emulate_media)
    suppressor = OverlaySuppressor(page, overlay_settings)
    suppressor.install()
    return suppressor
