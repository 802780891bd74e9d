"""PageStitch test configuration — shared fixtures for unit and integration tests."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from PIL import Image


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Clear the settings LRU cache between tests."""
    from pagestitch.settings.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def settings(tmp_path: Path):
    """Fresh ``Settings`` writing under ``tmp_path`` with no settle delays."""
    from pagestitch.settings.config import Settings

    return Settings(
        batch={"output_root": str(tmp_path / "output"), "inter_job_delay_seconds": 0},
        readiness={"settle_seconds": 0, "layout_settle_seconds": 0, "ceiling_seconds": 1},
    )


# ---------------------------------------------------------------------------
# Fake Playwright page
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_page() -> MagicMock:
    """Return a ``MagicMock`` standing in for a Playwright ``Page``.

    ``evaluate`` returns ``0`` by default (overlay passes remove nothing).
    ``screenshot`` writes a placeholder file to the requested path.
    """
    page = MagicMock(name="page")
    page.evaluate.return_value = 0
    page.goto.return_value = MagicMock(status=200)

    def _screenshot(path=None, **kwargs) -> bytes:
        if path:
            Path(path).write_bytes(b"png")
        return b"png"

    page.screenshot.side_effect = _screenshot
    return page


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_png(tmp_path: Path):
    """Factory writing a solid-colour PNG and returning its path."""

    def _make(name: str, size: tuple[int, int] = (40, 30), color=(200, 30, 30), mode: str = "RGB") -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        fill = (*color, 255) if mode == "RGBA" else color
        Image.new(mode, size, fill).save(path, format="PNG")
        return path

    return _make


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests that require a real browser")
    config.addinivalue_line("markers", "slow: marks tests that take more than a few seconds")
