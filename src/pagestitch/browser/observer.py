"""Structural-change subscriptions for a Playwright page.

A :class:`DomChangeSubscription` watches a page's document with a
``MutationObserver`` and forwards every batch of mutations to a Python
callback through an exposed binding. Mutations are coalesced per browser
task, so the callback receives one call per change batch with the number of
mutation records in it.

The callback runs on the Playwright dispatcher, i.e. whenever the sync API
is waiting on the browser (``goto``, ``evaluate``, ``wait_for_timeout``...).
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any

from playwright.sync_api import Page

logger = logging.getLogger(__name__)

_BINDING_PREFIX = "__pagestitch_"

# Formatted with a JSON options object. Safe to run more than once per
# document: a second install for the same binding is a no-op.
_OBSERVER_SCRIPT = """
(() => {
  const opts = %(options)s;
  const registry = (window.__pagestitchObservers = window.__pagestitchObservers || {});
  if (registry[opts.binding]) return;
  let pending = 0;
  let scheduled = false;
  const flush = () => {
    scheduled = false;
    const count = pending;
    pending = 0;
    const notify = window[opts.binding];
    if (typeof notify === 'function') {
      Promise.resolve(notify(count)).catch(() => {});
    }
  };
  const observer = new MutationObserver((mutations) => {
    pending += mutations.length;
    if (!scheduled) {
      scheduled = true;
      setTimeout(flush, 0);
    }
  });
  observer.observe(document, opts.init);
  registry[opts.binding] = observer;
})()
"""

_DISCONNECT_SCRIPT = """
(binding) => {
  const registry = window.__pagestitchObservers || {};
  if (registry[binding]) {
    registry[binding].disconnect();
    registry[binding] = null;
  }
}
"""


class DomChangeSubscription:
    """Invoke *callback* for every batch of structural changes on *page*.

    Args:
        page: Playwright page to observe.
        callback: Called with the number of mutation records in the batch.
        name: Unique subscription name on this page.
        attributes: Also report attribute mutations.
        attribute_filter: Restrict attribute mutations to these names.
    """

    def __init__(
        self,
        page: Page,
        callback: Callable[[int], Any],
        *,
        name: str,
        attributes: bool = False,
        attribute_filter: list[str] | None = None,
    ) -> None:
        self._page = page
        self._callback = callback
        self.binding = f"{_BINDING_PREFIX}{name}"
        self._attributes = attributes
        self._attribute_filter = attribute_filter
        self.active = False
        self.batches = 0

    def observer_options(self) -> dict[str, Any]:
        init: dict[str, Any] = {"childList": True, "subtree": True}
        if self._attributes:
            init["attributes"] = True
            if self._attribute_filter:
                init["attributeFilter"] = list(self._attribute_filter)
        return {"binding": self.binding, "init": init}

    def script(self) -> str:
        return _OBSERVER_SCRIPT % {"options": json.dumps(self.observer_options())}

    def start(self, *, persist: bool = False) -> None:
        """Expose the binding and attach the observer.

        With ``persist=True`` the observer is also registered as an init
        script, so every document the page loads for the rest of its
        lifetime is observed. Otherwise only the current document is.
        """
        self._page.expose_function(self.binding, self._dispatch)
        self.active = True
        if persist:
            self._page.add_init_script(script=self.script())
        self._page.evaluate(self.script())
        logger.debug("Subscription %s started (persist=%s)", self.binding, persist)

    def stop(self) -> None:
        """Stop delivering callbacks and disconnect the current observer."""
        if not self.active:
            return
        self.active = False
        try:
            self._page.evaluate(_DISCONNECT_SCRIPT, self.binding)
        except Exception as e:
            logger.debug("Disconnect of %s failed (page gone?): %s", self.binding, e)
        logger.debug("Subscription %s stopped after %d batch(es)", self.binding, self.batches)

    def _dispatch(self, count: int) -> None:
        if not self.active:
            return
        self.batches += 1
        try:
            self._callback(count)
        except Exception as e:
            logger.warning("Change callback %s failed (non-fatal): %s", self.binding, e)
