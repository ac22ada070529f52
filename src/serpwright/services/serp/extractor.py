"""
SERP Engine - Result Extractor

Parses a rendered Google results page into ordered SearchResult entries.

Strategy:
1. Organic result containers (div.g and its current variants)
2. Fallback when no container matches: anchors wrapping an <h3> inside
   #search / #rso

An entry needs a title and an absolute http(s) link; Google's /url?q=
redirects are unwrapped. Entries failing either check, and repeated links,
are skipped.
"""

import logging
from urllib.parse import parse_qs, urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from ...schemas.search import SearchResult
from .config import ConfigLoader, SelectorsConfig
from .exceptions import ExtractionError

logger = logging.getLogger(__name__)

_REDIRECT_PATHS = ("/url", "/interstitial")
_REDIRECT_PARAMS = ("q", "url")


def _clean_text(text: str) -> str:
    return " ".join(text.split())


def normalize_link(href: str | None) -> str | None:
    """
    Absolute http(s) URL for a result href, or None.

    Examples:
        "/url?q=https://example.gov/a&sa=U" -> "https://example.gov/a"
        "https://example.gov/a"             -> "https://example.gov/a"
        "/search?q=more"                    -> None
        "javascript:void(0)"                -> None
    """
    if not href:
        return None
    href = href.strip()

    parsed = urlparse(urljoin("https://www.google.com", href) if href.startswith("/") else href)
    if parsed.path in _REDIRECT_PATHS and "google." in parsed.netloc:
        query = parse_qs(parsed.query)
        for param in _REDIRECT_PARAMS:
            target = query.get(param)
            if target:
                return normalize_link(target[0])
        return None

    if href.startswith("/"):
        return None
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return href


class ResultExtractor:
    """
    BeautifulSoup based result parser.

    Usage:
        extractor = ResultExtractor()
        results = extractor.extract(html, limit=10)
    """

    def __init__(self, selectors: SelectorsConfig | None = None) -> None:
        if selectors is None:
            selectors = ConfigLoader.from_default_file().selectors
        self.selectors = selectors

    def extract(self, html: str, limit: int, url: str | None = None) -> list[SearchResult]:
        """
        Parse up to ``limit`` results in page order.

        Raises:
            ExtractionError: Parsing broke part way; carries the results parsed so far
        """
        if limit <= 0:
            return []

        results: list[SearchResult] = []
        seen: set[str] = set()

        try:
            soup = BeautifulSoup(html or "", "html.parser")

            containers = soup.select(", ".join(self.selectors.result_containers))
            for container in containers:
                if len(results) >= limit:
                    break
                self._add(results, seen, self._safe_parse(container))

            if not results:
                if containers:
                    logger.debug("Result containers matched but yielded nothing, trying fallback")
                for entry in self._fallback_entries(soup):
                    if len(results) >= limit:
                        break
                    self._add(results, seen, entry)
        except Exception as e:
            raise ExtractionError(f"Result parsing failed: {e}", url=url, partial_results=results) from e

        logger.info(f"Extracted {len(results)} results (limit={limit})")
        return results

    @staticmethod
    def _add(results: list[SearchResult], seen: set[str], entry: SearchResult | None) -> None:
        if entry is None or entry.link in seen:
            return
        seen.add(entry.link)
        results.append(entry)

    def _safe_parse(self, container: Tag) -> SearchResult | None:
        try:
            return self.parse_container(container)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.debug(f"Skipping malformed result entry: {e}")
            return None

    def parse_container(self, container: Tag) -> SearchResult | None:
        """One result from a container element, or None if title/link is missing."""
        title_el = container.select_one(self.selectors.title)
        if title_el is None:
            return None

        title = _clean_text(title_el.get_text(" "))
        if not title:
            return None

        anchor = title_el.find_parent("a", href=True) or container.select_one(self.selectors.link)
        link = normalize_link(anchor.get("href")) if anchor is not None else None
        if not link:
            return None

        return SearchResult(title=title, link=link, snippet=self._snippet(container))

    def _snippet(self, container: Tag) -> str:
        for selector in self.selectors.snippets:
            element = container.select_one(selector)
            if element is not None:
                text = _clean_text(element.get_text(" "))
                if text:
                    return text
        return ""

    def _fallback_entries(self, soup: BeautifulSoup) -> list[SearchResult]:
        scope = None
        for selector in self.selectors.fallback_scopes:
            scope = soup.select_one(selector)
            if scope is not None:
                break
        if scope is None:
            return []

        entries: list[SearchResult] = []
        for title_el in scope.select(f"a[href] {self.selectors.title}"):
            anchor = title_el.find_parent("a", href=True)
            title = _clean_text(title_el.get_text(" "))
            link = normalize_link(anchor.get("href")) if anchor is not None else None
            if not title or not link:
                continue
            entries.append(SearchResult(title=title, link=link))

        if entries:
            logger.debug(f"Fallback scan found {len(entries)} candidate results")
        return entries


__all__ = [
    "ResultExtractor",
    "normalize_link",
]
