"""
SERP Engine - Search Engine Facade

Single entry point used by both outer surfaces (CLI and HTTP service):

    request → Locale Resolver → fingerprint/domain → Query Executor
            → Escalation Runner (Browser Controller + Session Store)
            → Result Extractor | HTML Capture → response

One-shot use (CLI): no shared browser, every request launches and closes its
own. Service use: a SharedBrowser is passed in and reused for the headless
attempt; escalation always launches a separate headed browser.
"""

import logging
from typing import TYPE_CHECKING

from ...schemas.search import HtmlCapture, SearchRequest, SearchResponse, SearchResult
from .browser import BrowserController, BrowserSession, SharedBrowser
from .capture import HtmlCapturer
from .challenge import ChallengeDetector
from .config import ConfigLoader, SerpConfig
from .escalation import EscalationJob, EscalationRunner
from .exceptions import ExtractionError
from .executor import QueryExecutor
from .extractor import ResultExtractor
from .fingerprint import resolve_fingerprint
from .locale_resolver import LocaleResolver
from .session_store import SessionStore

if TYPE_CHECKING:
    from ...core.config import Settings

logger = logging.getLogger(__name__)

NO_STATE_WARNING = (
    "No saved browser state was found. If Google asks for verification, "
    "a browser window opens and must be completed by hand."
)


class SearchEngine:
    """
    Google search with headless-to-headed challenge escalation.

    Usage:
        engine = SearchEngine(settings)
        response = await engine.search(SearchRequest(query="rust async"))

    Service usage:
        engine = SearchEngine(settings, shared_browser=shared, default_state_file=path)
    """

    def __init__(
        self,
        settings: "Settings | None" = None,
        shared_browser: SharedBrowser | None = None,
        config: SerpConfig | None = None,
        controller: BrowserController | None = None,
        store: SessionStore | None = None,
        default_state_file: str | None = None,
    ) -> None:
        if settings is None:
            from ...core.config import settings as default_settings

            settings = default_settings

        self.settings = settings
        self.config = config or ConfigLoader.from_default_file()
        self.shared_browser = shared_browser

        if controller is None:
            controller = (
                shared_browser.controller
                if shared_browser is not None
                else BrowserController(self.config.launch, channel=settings.SERP_BROWSER_CHANNEL)
            )
        self.controller = controller
        self.store = store or SessionStore()

        self.resolver = LocaleResolver(self.config.locale)
        self.detector = ChallengeDetector(self.config.challenge_detection)
        self.executor = QueryExecutor(self.config.selectors, self.detector, self.resolver)
        self.extractor = ResultExtractor(self.config.selectors)
        self.capturer = HtmlCapturer(
            self.config.html_capture,
            network_idle_timeout_ms=self.config.timeouts.network_idle,
            output_dir=settings.SERP_HTML_OUTPUT_DIR,
        )
        self.runner = EscalationRunner(self.controller, self.executor, self.store)

        self.default_state_file = default_state_file or settings.SERP_STATE_FILE
        if settings.SERP_HEADED_TIMEOUT_MS is not None:
            self.headed_timeout_ms = settings.SERP_HEADED_TIMEOUT_MS
        else:
            self.headed_timeout_ms = self.config.timeouts.headed_challenge

    def state_path_for(self, request: SearchRequest) -> str:
        return request.state_file_path or self.default_state_file

    def no_state_warning(self, request: SearchRequest) -> str | None:
        """Warning for callers when no saved state exists yet."""
        if self.store.exists(self.state_path_for(request)):
            return None
        return NO_STATE_WARNING

    async def _build_job(self, request: SearchRequest, work) -> EscalationJob:
        locale = self.resolver.resolve(request.locale)
        state_path = self.state_path_for(request)

        fingerprint, _ = await resolve_fingerprint(
            self.store,
            state_path,
            locale,
            self.config.fingerprint,
            self.resolver,
        )
        url = self.executor.build_search_url(request.query, locale, fingerprint.google_domain)

        return EscalationJob(
            url=url,
            timeout_ms=request.timeout_ms,
            work=work,
            headed_timeout_ms=self.headed_timeout_ms,
            state_path=state_path,
            persist_session=request.persist_session,
            fingerprint=fingerprint,
            shared_handle=self.shared_browser.handle if self.shared_browser is not None else None,
            legacy_headless=request.headless,
        )

    async def search(self, request: SearchRequest) -> SearchResponse:
        """
        Run a search and parse the organic results.

        Raises:
            NavigationError, NavigationTimeoutError, ChallengeUnresolvedError,
            BrowserLaunchError (see exceptions module)
        """
        warning = self.no_state_warning(request)
        logger.info(f"Search: {request.query!r} (limit={request.limit}, locale={request.locale})")

        if request.limit <= 0:
            logger.info("Non-positive limit, returning no results")
            return SearchResponse(query=request.query, results=[], warning=warning)

        async def extract(session: BrowserSession) -> list[SearchResult]:
            return self.extractor.extract(await session.content(), request.limit, url=session.url)

        job = await self._build_job(request, extract)
        try:
            results = await self.runner.run(job)
        except ExtractionError as e:
            logger.warning(f"Returning partial results: {e}")
            results = list(e.partial_results)

        return SearchResponse(query=request.query, results=results, warning=warning)

    async def capture_html(self, request: SearchRequest) -> HtmlCapture:
        """Run a search and capture the rendered results page."""
        logger.info(f"HTML capture: {request.query!r} (save_html={request.save_html})")

        async def capture(session: BrowserSession) -> HtmlCapture:
            return await self.capturer.capture(
                session,
                request.query,
                save_html=request.save_html,
                html_output_path=request.html_output_path,
                save_screenshot=request.save_screenshot,
                screenshot_path=request.screenshot_path,
            )

        job = await self._build_job(request, capture)
        return await self.runner.run(job)


async def google_search(
    query: str,
    settings: "Settings | None" = None,
    **options,
) -> SearchResponse:
    """Convenience function for one-off searches.

    Args:
        query: Search query (sent verbatim)
        settings: Application settings
        **options: Any SearchRequest field (limit, timeout_ms, locale, ...)

    Returns:
        SearchResponse with results in page order
    """
    engine = SearchEngine(settings)
    return await engine.search(SearchRequest(query=query, **options))


__all__ = [
    "NO_STATE_WARNING",
    "SearchEngine",
    "google_search",
]
