"""Unit tests for HTML capture."""

from datetime import datetime
from pathlib import Path

import pytest

from src.serpwright.schemas.search import HTML_PREVIEW_LENGTH
from src.serpwright.services.serp.capture import HtmlCapturer, byte_length, sanitize_html
from src.serpwright.services.serp.config import HtmlCaptureConfig


@pytest.fixture
def capturer(tmp_path: Path) -> HtmlCapturer:
    return HtmlCapturer(HtmlCaptureConfig(), network_idle_timeout_ms=1000, output_dir=str(tmp_path / "html"))


class TestSanitize:
    def test_strips_scripts_styles_and_stylesheets(self, results_html: str) -> None:
        cleaned = sanitize_html(results_html)

        assert "<script" not in cleaned
        assert "<style" not in cleaned
        assert "<noscript" not in cleaned
        assert 'rel="stylesheet"' not in cleaned
        assert "EPA Climate Report 2024" in cleaned

    def test_multiline_and_attributes(self) -> None:
        html = '<div>a</div><SCRIPT type="module">\nlet x = "</div>";\n</SCRIPT ><p>b</p>'
        assert sanitize_html(html) == "<div>a</div><p>b</p>"

    def test_other_links_kept(self) -> None:
        html = '<link rel="icon" href="/favicon.ico"><link rel=stylesheet href="/a.css">'
        assert sanitize_html(html) == '<link rel="icon" href="/favicon.ico">'

    def test_never_longer(self, results_html: str) -> None:
        assert byte_length(sanitize_html(results_html)) <= byte_length(results_html)

    def test_byte_length_counts_utf8(self) -> None:
        assert byte_length("김치") == 6


class TestCapture:
    @pytest.mark.asyncio
    async def test_capture_without_saving(self, capturer: HtmlCapturer, make_session, results_html: str) -> None:
        session = make_session()

        capture = await capturer.capture(session, "climate report")

        session.wait_for_network_idle.assert_awaited_once_with(1000)
        assert capture.raw_html_length == byte_length(results_html)
        assert capture.sanitized_html_length <= capture.raw_html_length
        assert capture.saved_path is None
        assert capture.screenshot_path is None
        session.screenshot.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_save_to_explicit_path(
        self, capturer: HtmlCapturer, make_session, tmp_path: Path
    ) -> None:
        session = make_session()
        target = tmp_path / "out" / "page.html"

        capture = await capturer.capture(session, "climate report", save_html=True, html_output_path=str(target))

        assert capture.saved_path == str(target)
        assert target.read_text(encoding="utf-8") == capture.sanitized_html
        assert capture.screenshot_path == str(tmp_path / "out" / "page.png")
        session.screenshot.assert_awaited_once_with(str(tmp_path / "out" / "page.png"))

    @pytest.mark.asyncio
    async def test_save_to_default_location(self, capturer: HtmlCapturer, make_session, tmp_path: Path) -> None:
        capture = await capturer.capture(make_session(), "climate report", save_html=True, save_screenshot=False)

        assert capture.saved_path is not None
        saved = Path(capture.saved_path)
        assert saved.parent == tmp_path / "html"
        assert saved.name.startswith("climate_report-")
        assert capture.screenshot_path is None

    @pytest.mark.asyncio
    async def test_unwritable_path_still_returns_html(
        self, capturer: HtmlCapturer, make_session, tmp_path: Path
    ) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x", encoding="utf-8")

        capture = await capturer.capture(
            make_session(),
            "climate report",
            save_html=True,
            html_output_path=str(blocker / "page.html"),
            save_screenshot=False,
        )

        assert capture.saved_path is None
        assert "EPA Climate Report 2024" in capture.sanitized_html

    @pytest.mark.asyncio
    async def test_screenshot_failure_gives_no_path(
        self, capturer: HtmlCapturer, make_session, tmp_path: Path
    ) -> None:
        session = make_session()
        session.screenshot.side_effect = RuntimeError("Target closed")

        capture = await capturer.capture(
            session,
            "climate report",
            save_html=True,
            html_output_path=str(tmp_path / "page.html"),
        )

        assert capture.saved_path == str(tmp_path / "page.html")
        assert capture.screenshot_path is None

    @pytest.mark.asyncio
    async def test_screenshot_only(self, capturer: HtmlCapturer, make_session, tmp_path: Path) -> None:
        shot = tmp_path / "shots" / "serp.png"

        capture = await capturer.capture(make_session(), "q", save_screenshot=True, screenshot_path=str(shot))

        assert capture.saved_path is None
        assert capture.screenshot_path == str(shot)
        assert shot.parent.is_dir()


class TestPreview:
    @pytest.mark.asyncio
    async def test_preview_truncated(self, capturer: HtmlCapturer, make_session) -> None:
        session = make_session(content="<p>" + "x" * 2000 + "</p>")

        summary = (await capturer.capture(session, "q")).summary()

        assert len(summary.html_preview) == HTML_PREVIEW_LENGTH + 3
        assert summary.html_preview.endswith("...")
        assert summary.cleaned_html_length <= summary.original_html_length

    @pytest.mark.asyncio
    async def test_short_page_not_truncated(self, capturer: HtmlCapturer, make_session) -> None:
        summary = (await capturer.capture(make_session(content="<p>short</p>"), "q")).summary()
        assert summary.html_preview == "<p>short</p>"

    def test_summary_wire_names(self) -> None:
        from src.serpwright.schemas.search import HtmlCapture

        capture = HtmlCapture(
            query="q",
            url="https://www.google.com/search?q=q",
            sanitized_html="<p>x</p>",
            raw_html_length=100,
            sanitized_html_length=8,
        )
        data = capture.summary().model_dump(by_alias=True, exclude_none=True)
        assert data == {
            "query": "q",
            "url": "https://www.google.com/search?q=q",
            "originalHtmlLength": 100,
            "cleanedHtmlLength": 8,
            "htmlPreview": "<p>x</p>",
        }


def test_default_output_path(capturer: HtmlCapturer, tmp_path: Path) -> None:
    path = capturer.default_output_path('"site:gov" climate/report', now=datetime(2024, 5, 1, 12, 30, 45, 123456))
    assert path == tmp_path / "html" / "site_gov_climate_report-20240501-123045-123456.html"
