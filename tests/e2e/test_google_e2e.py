"""
End-to-end search against google.com with a real Chromium.

Skipped unless pytest runs with --e2e. Requires `playwright install chromium`.
A first run without saved state may open a browser window for verification.
"""

from pathlib import Path

import pytest

from src.serpwright.core.config import Settings
from src.serpwright.schemas.search import SearchRequest
from src.serpwright.services.serp import BrowserController, SearchEngine, SharedBrowser
from src.serpwright.services.serp.config import ConfigLoader


@pytest.fixture
def query(request: pytest.FixtureRequest) -> str:
    return request.config.getoption("--query")


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_one_shot_search(query: str, tmp_path: Path) -> None:
    settings = Settings(SERP_STATE_FILE=str(tmp_path / "browser-state.json"))
    engine = SearchEngine(settings)

    response = await engine.search(SearchRequest(query=query, limit=3, locale="en-US"))

    assert response.query == query
    assert 0 < len(response.results) <= 3
    assert all(r.link.startswith(("http://", "https://")) for r in response.results)
    assert (tmp_path / "browser-state.json").exists()


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_shared_browser_html_capture(query: str, tmp_path: Path) -> None:
    settings = Settings(SERP_STATE_FILE=str(tmp_path / "browser-state.json"))
    config = ConfigLoader.from_default_file()

    async with SharedBrowser(BrowserController(config.launch)) as shared:
        engine = SearchEngine(settings, shared_browser=shared, config=config)
        capture = await engine.capture_html(
            SearchRequest(query=query, locale="en-US", saveHtml=True, htmlOutputPath=str(tmp_path / "serp.html"))
        )

    assert capture.sanitized_html_length <= capture.raw_html_length
    assert capture.saved_path == str(tmp_path / "serp.html")
    assert shared.is_running is False
