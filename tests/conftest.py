from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.serpwright.services.serp.browser import BrowserHandle, BrowserMode, BrowserSession
from src.serpwright.services.serp.config import SerpConfig

RESULTS_URL = "https://www.google.com/search?q=climate+report+2024+site%3Agov+-opinion&hl=en&gl=US"
SORRY_URL = "https://www.google.com/sorry/index?continue=https://www.google.com/search%3Fq%3Dtest"

RESULTS_HTML = """
<html>
<head>
  <style>body { color: red; }</style>
  <link rel="stylesheet" href="/xjs/main.css">
  <script>window.google = {};</script>
</head>
<body>
  <div id="search">
    <div id="rso">
      <div class="g">
        <a href="https://www.epa.gov/climate-report-2024"><h3>EPA Climate Report 2024</h3></a>
        <div class="VwiC3b">Annual greenhouse gas   inventory and indicators.</div>
      </div>
      <div class="g">
        <a href="/url?q=https://www.noaa.gov/climate-2024&amp;sa=U&amp;ved=abc"><h3>NOAA State of the Climate</h3></a>
        <div class="VwiC3b">Global climate summary for 2024.</div>
      </div>
      <div class="g">
        <a href="https://www.epa.gov/climate-report-2024"><h3>EPA Climate Report 2024 (duplicate)</h3></a>
      </div>
      <div class="g">
        <div class="VwiC3b">Entry without a title is skipped.</div>
        <a href="https://www.example.gov/untitled">link</a>
      </div>
      <div class="g">
        <a href="/search?q=related"><h3>Related searches</h3></a>
      </div>
      <div class="g">
        <a href="https://www.nasa.gov/climate"><h3>NASA Climate</h3></a>
        <span data-sncf="1">Vital signs of the planet.</span>
      </div>
      <div class="g">
        <a href="https://www.globalchange.gov/nca5"><h3>Fifth National Climate Assessment</h3></a>
      </div>
      <div class="g">
        <a href="https://www.energy.gov/climate"><h3>DOE Climate</h3></a>
      </div>
      <div class="g">
        <a href="https://www.usda.gov/climate"><h3>USDA Climate Hubs</h3></a>
      </div>
    </div>
  </div>
  <noscript><img src="/tracker.gif"></noscript>
</body>
</html>
"""

SORRY_HTML = """
<html><body>
  <div id="captcha-form">
    <p>Our systems have detected unusual traffic from your computer network.</p>
    <div class="g-recaptcha" data-sitekey="abc"></div>
  </div>
</body></html>
"""


@pytest.fixture
def serp_config() -> SerpConfig:
    """Model defaults (independent of the shipped data bank)."""
    return SerpConfig()


@pytest.fixture
def results_html() -> str:
    return RESULTS_HTML


@pytest.fixture
def sorry_html() -> str:
    return SORRY_HTML


@pytest.fixture
def make_session() -> Callable[..., MagicMock]:
    """Factory for mocked BrowserSession objects."""

    def _make(
        mode: BrowserMode = BrowserMode.HEADLESS,
        url: str = RESULTS_URL,
        markers_found: bool = True,
        content: str = RESULTS_HTML,
    ) -> MagicMock:
        session = MagicMock(spec=BrowserSession)
        session.mode = mode
        session.url = url
        session.navigate = AsyncMock()
        session.wait_for_any = AsyncMock(return_value=markers_found)
        session.wait_for_network_idle = AsyncMock(return_value=True)
        session.content = AsyncMock(return_value=content)
        session.screenshot = AsyncMock()
        session.storage_state = AsyncMock(return_value={"cookies": [{"name": "NID", "value": "1"}], "origins": []})
        session.close = AsyncMock()
        return session

    return _make


@pytest.fixture
def make_handle() -> Callable[..., BrowserHandle]:
    """Factory for BrowserHandle objects around a mocked browser."""

    def _make(mode: BrowserMode = BrowserMode.HEADLESS, owned: bool = True) -> BrowserHandle:
        browser = MagicMock()
        browser.close = AsyncMock()
        browser.new_context = AsyncMock()
        playwright = MagicMock()
        playwright.stop = AsyncMock()
        return BrowserHandle(mode=mode, browser=browser, owned=owned, playwright=playwright)

    return _make
