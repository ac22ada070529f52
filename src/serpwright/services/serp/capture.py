"""
SERP Engine - HTML Capture

Captures the rendered results page for callers that want the markup rather
than parsed results. The page is stripped of <script>, <style>, <noscript>
blocks and stylesheet <link> tags. Stripping only ever removes text, so the
cleaned length can never exceed the original.

Saving the HTML and the screenshot are both best-effort: a failure leaves the
corresponding path empty and the capture is still returned.
"""

import asyncio
import logging
import re
from datetime import datetime
from pathlib import Path

from ...schemas.search import HtmlCapture
from .browser import BrowserSession
from .config import ConfigLoader, HtmlCaptureConfig

logger = logging.getLogger(__name__)

_STRIP_PATTERNS = (
    re.compile(r"<script\b[^>]*>.*?</script\s*>", re.IGNORECASE | re.DOTALL),
    re.compile(r"<style\b[^>]*>.*?</style\s*>", re.IGNORECASE | re.DOTALL),
    re.compile(r"<noscript\b[^>]*>.*?</noscript\s*>", re.IGNORECASE | re.DOTALL),
    re.compile(r"<link\b[^>]*\brel\s*=\s*[\"']?stylesheet[\"']?[^>]*>", re.IGNORECASE),
)

_FILENAME_UNSAFE = re.compile(r"[^\w\-]+")


def sanitize_html(html: str) -> str:
    """Remove script/style/noscript blocks and stylesheet links."""
    for pattern in _STRIP_PATTERNS:
        html = pattern.sub("", html)
    return html


def byte_length(text: str) -> int:
    return len(text.encode("utf-8"))


def _write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


class HtmlCapturer:
    """
    Captures, cleans and optionally saves result pages.

    Usage:
        capturer = HtmlCapturer()
        capture = await capturer.capture(session, query, save_html=True)
    """

    def __init__(
        self,
        config: HtmlCaptureConfig | None = None,
        network_idle_timeout_ms: int = 10_000,
        output_dir: str | None = None,
    ) -> None:
        if config is None:
            config = ConfigLoader.from_default_file().html_capture
        self.config = config
        self.network_idle_timeout_ms = network_idle_timeout_ms
        self.output_dir = Path(output_dir or config.output_dir).expanduser()

    def default_output_path(self, query: str, now: datetime | None = None) -> Path:
        """Timestamped file in the output directory, named after the query."""
        now = now or datetime.now()
        slug = _FILENAME_UNSAFE.sub("_", query).strip("_")[:50] or "search"
        return self.output_dir / f"{slug}-{now.strftime('%Y%m%d-%H%M%S-%f')}.html"

    async def capture(
        self,
        session: BrowserSession,
        query: str,
        save_html: bool = False,
        html_output_path: str | None = None,
        save_screenshot: bool | None = None,
        screenshot_path: str | None = None,
    ) -> HtmlCapture:
        """
        Capture the current page.

        Args:
            session: Session sitting on a resolved results page
            query: Query that produced the page
            save_html: Write the cleaned HTML to disk
            html_output_path: Explicit HTML path (default: timestamped file)
            save_screenshot: Take a full-page screenshot; None follows save_html
            screenshot_path: Explicit screenshot path (default: HTML path with .png)
        """
        await session.wait_for_network_idle(self.network_idle_timeout_ms)

        raw_html = await session.content()
        url = session.url
        cleaned = sanitize_html(raw_html)

        raw_len = byte_length(raw_html)
        cleaned_len = byte_length(cleaned)
        logger.info(f"Captured HTML: {raw_len} bytes, {cleaned_len} after cleaning")

        html_path = Path(html_output_path).expanduser() if html_output_path else self.default_output_path(query)

        saved_path = None
        if save_html:
            saved_path = await self._save_html(html_path, cleaned)

        take_screenshot = save_html if save_screenshot is None else save_screenshot

        shot_path = None
        if take_screenshot:
            target = Path(screenshot_path).expanduser() if screenshot_path else html_path.with_suffix(".png")
            shot_path = await self._save_screenshot(session, target)

        return HtmlCapture(
            query=query,
            url=url,
            sanitized_html=cleaned,
            raw_html_length=raw_len,
            sanitized_html_length=cleaned_len,
            saved_path=saved_path,
            screenshot_path=shot_path,
        )

    async def _save_html(self, path: Path, html: str) -> str | None:
        try:
            await asyncio.to_thread(_write_text, path, html)
        except OSError as e:
            logger.error(f"Failed to save HTML to {path}: {e}")
            return None
        logger.info(f"Saved HTML to {path}")
        return str(path)

    async def _save_screenshot(self, session: BrowserSession, path: Path) -> str | None:
        try:
            await asyncio.to_thread(path.parent.mkdir, parents=True, exist_ok=True)
            await session.screenshot(str(path))
        except Exception as e:
            logger.error(f"Failed to save screenshot to {path}: {e}")
            return None
        logger.info(f"Saved screenshot to {path}")
        return str(path)


__all__ = [
    "HtmlCapturer",
    "byte_length",
    "sanitize_html",
]
