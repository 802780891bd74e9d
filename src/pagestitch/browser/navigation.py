"""Page navigation that waits for every load signal.

A capture only starts once ``DOMContentLoaded``, ``load`` and (optionally)
network idle have all been reached. Playwright's ``networkidle`` already
implies ``load``; the remaining states are confirmed with
``wait_for_load_state`` under the same bound. There is no fallback to a
weaker strategy: a timeout fails the job.
"""

from __future__ import annotations

import logging
from typing import Literal

from playwright.sync_api import Error as PlaywrightError, Page, Response, TimeoutError as PlaywrightTimeout

from pagestitch.exceptions import NavigationError

logger = logging.getLogger(__name__)

# Playwright error substrings that mean the site could not be reached at all.
_UNREACHABLE_ERRORS: tuple[str, ...] = (
    "ERR_NAME_NOT_RESOLVED",
    "ERR_CONNECTION_REFUSED",
    "ERR_CONNECTION_RESET",
    "ERR_CONNECTION_CLOSED",
    "ERR_SSL_PROTOCOL_ERROR",
    "ERR_CERT_AUTHORITY_INVALID",
    "ERR_CERT_COMMON_NAME_INVALID",
    "ERR_ADDRESS_UNREACHABLE",
    "ERR_INTERNET_DISCONNECTED",
)

LoadState = Literal["domcontentloaded", "load", "networkidle"]


def required_load_states(wait_for_network_idle: bool) -> list[LoadState]:
    """Load states that must all hold, strictest first."""
    states: list[LoadState] = ["networkidle"] if wait_for_network_idle else []
    return states + ["load", "domcontentloaded"]


def navigate(
    page: Page,
    url: str,
    *,
    timeout_ms: int = 50_000,
    wait_for_network_idle: bool = True,
) -> Response | None:
    """Navigate to *url* and wait for all required load states.

    Args:
        page: Playwright page instance.
        url: Target URL.
        timeout_ms: Bound for the navigation and for each extra load-state wait.
        wait_for_network_idle: Also require network idle.

    Returns:
        The main-frame ``Response``, or ``None`` if the page produced none.

    Raises:
        NavigationError: On timeout or any browser-level navigation failure.
    """
    first, *rest = required_load_states(wait_for_network_idle)
    try:
        logger.debug("goto %s (wait_until=%s, timeout=%dms)", url, first, timeout_ms)
        response = page.goto(url, wait_until=first, timeout=timeout_ms)
        for state in rest:
            page.wait_for_load_state(state, timeout=timeout_ms)
    except PlaywrightTimeout as exc:
        logger.warning("Navigation to %s timed out after %dms", url, timeout_ms)
        raise NavigationError(url, f"timed out after {timeout_ms}ms") from exc
    except PlaywrightError as exc:
        raise NavigationError(url, _classify(exc)) from exc

    if response is not None and response.status >= 400:
        logger.warning("Navigation to %s returned HTTP %d", url, response.status)
    return response


def _classify(exc: PlaywrightError) -> str:
    error_msg = str(exc)
    for pattern in _UNREACHABLE_ERRORS:
        if pattern in error_msg:
            reason = pattern.replace("ERR_", "").replace("_", " ").lower()
            logger.warning("Navigation failed (unreachable): %s", pattern)
            return reason
    return error_msg.splitlines()[0] if error_msg else type(exc).__name__
