"""End-to-end run against local HTML pages in a real headless Chromium.

Skipped when the Playwright browser binaries are not installed.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image
from pypdf import PdfReader

from pagestitch.browser.session import BrowserSession
from pagestitch.exceptions import BrowserLaunchError
from pagestitch.pipeline import convert_urls

pytestmark = [pytest.mark.integration, pytest.mark.slow]

_PAGE = """<!doctype html>
<html>
<head><style>body {{ margin: 0; background: #fff; overflow: hidden; }}</style></head>
<body>
  <header style="height: 80px; background: #eee;">{title}</header>
  <main style="height: 2000px;">Body text for {title}</main>
  <div class="elementor-popup-modal"
       style="position: fixed; inset: 0; background: rgb(255, 0, 0); z-index: 9999;"></div>
</body>
</html>
"""


@pytest.fixture(scope="module")
def chromium_available() -> None:
    from pagestitch.settings.config import Settings

    session = BrowserSession(Settings().browser)
    try:
        session.acquire()
    except BrowserLaunchError as e:
        pytest.skip(f"Chromium not available: {e}")
    finally:
        session.release()


@pytest.fixture()
def site(tmp_path: Path) -> list[str]:
    urls = []
    for title in ("first", "second"):
        path = tmp_path / "site" / f"{title}.html"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(_PAGE.format(title=title), encoding="utf-8")
        urls.append(path.as_uri())
    return urls


@pytest.mark.usefixtures("chromium_available")
class TestBrowserPipeline:
    def test_pages_captured_and_merged(self, site: list[str], settings) -> None:
        run = convert_urls(site, settings=settings)

        assert run.succeeded == 2
        reader = PdfReader(run.merged_path)
        assert len(reader.pages) == 2
        assert float(reader.pages[0].mediabox.width) == settings.browser.viewport_width
        assert float(reader.pages[0].mediabox.height) >= 2000

    def test_popup_not_in_snapshot(self, site: list[str], settings) -> None:
        run = convert_urls(site[:1], settings=settings)

        with Image.open(run.jobs[0].snapshot_path) as img:
            assert img.convert("RGB").getpixel((960, 600)) != (255, 0, 0)
