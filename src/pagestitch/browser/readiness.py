"""Readiness detection for pages with asynchronously rendered content.

A page counts as ready when all three signals hold at once:

- every ``<img>`` in the document reports ``complete``
- the primary content region exists and has a non-zero rendered height
- the header region exists and has a non-zero rendered height

The check runs immediately. If it fails, it is re-run after every batch of
DOM changes and on a periodic tick, until it passes or the safety ceiling is
reached. Hitting the ceiling is not an error: a page with no ``<header>`` is
captured anyway, just without the readiness guarantee.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from playwright.sync_api import Page

from pagestitch.browser.observer import DomChangeSubscription
from pagestitch.settings.config import ReadinessSettings

logger = logging.getLogger(__name__)

_READINESS_PROBE = """
({ contentSelector, headerSelector }) => {
  const images = Array.from(document.images);
  const content = document.querySelector(contentSelector);
  const header = document.querySelector(headerSelector);
  return {
    images_total: images.length,
    images_loaded: images.every((img) => img.complete),
    content_height: content ? content.offsetHeight : 0,
    header_height: header ? header.offsetHeight : 0,
  };
}
"""

# Longest single sleep between checks, so change notifications are acted on promptly.
_MAX_SLICE_SECONDS = 0.05


class WaitOutcome(str, Enum):
    """How a :class:`ConditionWait` resolved."""

    MET = "met"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


class ConditionWait:
    """Single-use, time-bounded wait for a predicate to become true.

    The predicate is checked once up front, then again whenever
    :meth:`notify` has been called since the last check, and at least every
    ``tick`` seconds. The wait resolves exactly once.

    Args:
        predicate: Zero-argument condition check.
        timeout: Safety ceiling in seconds.
        tick: Fallback re-check interval in seconds.
        sleep: Blocking sleep in seconds. For Playwright pages this must
            keep the event dispatcher running (``page.wait_for_timeout``).
        clock: Monotonic clock in seconds.
    """

    def __init__(
        self,
        predicate: Callable[[], bool],
        *,
        timeout: float,
        tick: float = 0.25,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._predicate = predicate
        self._timeout = timeout
        self._tick = tick
        self._slice = min(tick, _MAX_SLICE_SECONDS)
        self._sleep = sleep
        self._clock = clock
        self._dirty = False
        self._cancelled = False
        self.outcome: WaitOutcome | None = None
        self.checks = 0

    @property
    def done(self) -> bool:
        return self.outcome is not None

    def notify(self, *_: object) -> None:
        """Mark that something changed; the predicate is re-checked next slice."""
        self._dirty = True

    def cancel(self) -> None:
        self._cancelled = True

    def _check(self) -> bool:
        self.checks += 1
        self._dirty = False
        return bool(self._predicate())

    def wait(self) -> WaitOutcome:
        if self.outcome is not None:
            return self.outcome

        deadline = self._clock() + self._timeout
        if self._check():
            self.outcome = WaitOutcome.MET
            return self.outcome

        last_check = self._clock()
        while True:
            if self._cancelled:
                self.outcome = WaitOutcome.CANCELLED
                break
            remaining = deadline - self._clock()
            if remaining <= 0:
                self.outcome = WaitOutcome.TIMED_OUT
                break
            self._sleep(min(self._slice, remaining))
            if self._dirty or self._clock() - last_check >= self._tick:
                last_check = self._clock()
                if self._check():
                    self.outcome = WaitOutcome.MET
                    break
        return self.outcome


@dataclass(frozen=True)
class ReadinessState:
    """One evaluation of the readiness probe."""

    images_total: int = 0
    images_loaded: bool = False
    content_height: float = 0
    header_height: float = 0

    @property
    def has_content(self) -> bool:
        return self.content_height > 0

    @property
    def has_header(self) -> bool:
        return self.header_height > 0

    @property
    def ready(self) -> bool:
        return self.images_loaded and self.has_content and self.has_header


@dataclass(frozen=True)
class ReadinessResult:
    outcome: WaitOutcome
    state: ReadinessState
    elapsed_seconds: float
    checks: int

    @property
    def ready(self) -> bool:
        return self.outcome is WaitOutcome.MET


def probe_readiness(page: Page, settings: ReadinessSettings) -> ReadinessState:
    raw = page.evaluate(
        _READINESS_PROBE,
        {"contentSelector": settings.content_selector, "headerSelector": settings.header_selector},
    )
    return ReadinessState(**raw)


def page_sleep(page: Page) -> Callable[[float], None]:
    """A sleep that keeps Playwright dispatching events (bindings, dialogs)."""

    def _sleep(seconds: float) -> None:
        page.wait_for_timeout(seconds * 1000)

    return _sleep


def wait_until_ready(
    page: Page,
    settings: ReadinessSettings,
    *,
    sleep: Callable[[float], None] | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> ReadinessResult:
    """Block until the page is ready or the safety ceiling is reached."""
    state = ReadinessState()
    started = clock()

    def predicate() -> bool:
        nonlocal state
        state = probe_readiness(page, settings)
        return state.ready

    waiter = ConditionWait(
        predicate,
        timeout=settings.ceiling_seconds,
        tick=settings.tick_seconds,
        sleep=sleep or page_sleep(page),
        clock=clock,
    )

    if predicate():
        elapsed = clock() - started
        logger.debug("Page ready on first check (%.1fs)", elapsed)
        return ReadinessResult(outcome=WaitOutcome.MET, state=state, elapsed_seconds=elapsed, checks=1)

    subscription = DomChangeSubscription(page, waiter.notify, name="readiness", attributes=True)
    subscription.start()
    try:
        outcome = waiter.wait()
    finally:
        subscription.stop()

    elapsed = clock() - started
    if outcome is WaitOutcome.MET:
        logger.debug("Page ready after %.1fs (%d checks)", elapsed, waiter.checks + 1)
    else:
        logger.warning(
            "Readiness ceiling reached after %.1fs (images_loaded=%s, content=%s, header=%s); capturing anyway",
            elapsed,
            state.images_loaded,
            state.has_content,
            state.has_header,
        )
    return ReadinessResult(outcome=outcome, state=state, elapsed_seconds=elapsed, checks=waiter.checks + 1)
