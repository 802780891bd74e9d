"""Unit tests for pagestitch.browser.readiness.

Time is simulated: the injected ``sleep`` advances a fake clock, so the
safety-ceiling tests run instantly.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from pagestitch.browser.readiness import (
    ConditionWait,
    ReadinessState,
    WaitOutcome,
    probe_readiness,
    wait_until_ready,
)
from pagestitch.settings.config import ReadinessSettings


class FakeClock:
    """Monotonic clock advanced only by ``sleep``."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


READY = {"images_total": 2, "images_loaded": True, "content_height": 800, "header_height": 90}
NO_HEADER = {"images_total": 2, "images_loaded": True, "content_height": 800, "header_height": 0}
IMAGES_PENDING = {"images_total": 2, "images_loaded": False, "content_height": 800, "header_height": 90}


# ---------------------------------------------------------------------------
# ConditionWait
# ---------------------------------------------------------------------------


class TestConditionWait:
    def test_resolves_immediately_when_true(self) -> None:
        clock = FakeClock()
        waiter = ConditionWait(lambda: True, timeout=15, sleep=clock.sleep, clock=clock)
        assert waiter.wait() is WaitOutcome.MET
        assert clock.sleeps == []
        assert waiter.checks == 1

    def test_times_out_within_ceiling(self) -> None:
        clock = FakeClock()
        waiter = ConditionWait(lambda: False, timeout=15, tick=0.25, sleep=clock.sleep, clock=clock)
        assert waiter.wait() is WaitOutcome.TIMED_OUT
        assert clock.now == pytest.approx(15.0)
        assert clock.now <= 15.0 + 1e-9

    def test_periodic_tick_rechecks(self) -> None:
        clock = FakeClock()
        waiter = ConditionWait(lambda: clock.now >= 1.0, timeout=15, tick=0.25, sleep=clock.sleep, clock=clock)
        assert waiter.wait() is WaitOutcome.MET
        assert 1.0 <= clock.now <= 1.5

    def test_notification_triggers_recheck_before_tick(self) -> None:
        clock = FakeClock()
        calls: list[float] = []

        def predicate() -> bool:
            calls.append(clock.now)
            return len(calls) > 1

        def sleep(seconds: float) -> None:
            clock.sleep(seconds)
            waiter.notify(1)

        waiter = ConditionWait(predicate, timeout=15, tick=10, sleep=sleep, clock=clock)
        assert waiter.wait() is WaitOutcome.MET
        # Second check happened after one slice, well before the 10s tick
        assert calls[1] <= 0.05 + 1e-9

    def test_without_notification_waits_for_tick(self) -> None:
        clock = FakeClock()
        checks: list[float] = []

        def predicate() -> bool:
            checks.append(clock.now)
            return False

        ConditionWait(predicate, timeout=1, tick=0.5, sleep=clock.sleep, clock=clock).wait()
        # One check up front plus one per elapsed tick, not one per slice
        assert 2 <= len(checks) <= 3
        assert len(clock.sleeps) >= 19

    def test_cancel(self) -> None:
        clock = FakeClock()

        def sleep(seconds: float) -> None:
            clock.sleep(seconds)
            waiter.cancel()

        waiter = ConditionWait(lambda: False, timeout=15, sleep=sleep, clock=clock)
        assert waiter.wait() is WaitOutcome.CANCELLED
        assert clock.now < 1

    def test_resolves_once(self) -> None:
        clock = FakeClock()
        results = iter([True, False])
        waiter = ConditionWait(lambda: next(results), timeout=1, sleep=clock.sleep, clock=clock)
        assert waiter.wait() is WaitOutcome.MET
        assert waiter.wait() is WaitOutcome.MET
        assert waiter.done
        assert waiter.checks == 1


# ---------------------------------------------------------------------------
# ReadinessState / probe
# ---------------------------------------------------------------------------


class TestReadinessState:
    def test_all_three_signals_required(self) -> None:
        assert ReadinessState(**READY).ready
        assert not ReadinessState(**NO_HEADER).ready
        assert not ReadinessState(**IMAGES_PENDING).ready
        assert not ReadinessState(images_loaded=True, content_height=0, header_height=10).ready

    def test_probe_passes_selectors(self, mock_page: MagicMock) -> None:
        mock_page.evaluate.return_value = READY
        settings = ReadinessSettings(content_selector="#app", header_selector=".top")

        state = probe_readiness(mock_page, settings)

        assert state.ready
        assert mock_page.evaluate.call_args.args[1] == {"contentSelector": "#app", "headerSelector": ".top"}


# ---------------------------------------------------------------------------
# wait_until_ready
# ---------------------------------------------------------------------------


class TestWaitUntilReady:
    def test_ready_on_first_check_skips_subscription(self, mock_page: MagicMock) -> None:
        mock_page.evaluate.return_value = READY
        clock = FakeClock()

        result = wait_until_ready(mock_page, ReadinessSettings(), sleep=clock.sleep, clock=clock)

        assert result.ready
        assert result.checks == 1
        mock_page.expose_function.assert_not_called()

    def test_page_without_header_resolves_at_ceiling(self, mock_page: MagicMock) -> None:
        mock_page.evaluate.return_value = NO_HEADER
        clock = FakeClock()
        settings = ReadinessSettings(ceiling_seconds=15)

        result = wait_until_ready(mock_page, settings, sleep=clock.sleep, clock=clock)

        assert result.outcome is WaitOutcome.TIMED_OUT
        assert not result.ready
        assert result.elapsed_seconds <= 15.0 + 1e-9
        assert result.state.has_content and not result.state.has_header

    def test_subscribes_then_unsubscribes(self, mock_page: MagicMock) -> None:
        states = iter([IMAGES_PENDING, IMAGES_PENDING, READY])

        def evaluate(expression, arg=None):
            if isinstance(arg, dict) and "contentSelector" in arg:
                return next(states)
            return None

        mock_page.evaluate.side_effect = evaluate
        clock = FakeClock()

        result = wait_until_ready(mock_page, ReadinessSettings(), sleep=clock.sleep, clock=clock)

        assert result.ready
        mock_page.expose_function.assert_called_once()
        assert mock_page.expose_function.call_args.args[0] == "__pagestitch_readiness"
        # The last evaluate disconnects the readiness observer
        assert mock_page.evaluate.call_args.args[1] == "__pagestitch_readiness"

    def test_default_sleep_uses_page_timer(self, mock_page: MagicMock) -> None:
        mock_page.evaluate.return_value = NO_HEADER
        clock = FakeClock()

        def wait_for_timeout(ms: float) -> None:
            clock.now += ms / 1000

        mock_page.wait_for_timeout.side_effect = wait_for_timeout

        result = wait_until_ready(mock_page, ReadinessSettings(ceiling_seconds=1), clock=clock)

        assert result.outcome is WaitOutcome.TIMED_OUT
        assert mock_page.wait_for_timeout.called
