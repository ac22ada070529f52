"""
SERP Engine - Query Executor

Turns a query into a Google results URL and drives one navigation on a
BrowserSession, reporting whether results are ready or a challenge is in the
way. Whether to escalate is the escalation machine's decision, not ours.

Outcomes per mode:
    headless: RESULTS_READY | CHALLENGE | NavigationTimeoutError | NavigationError
    headed:   RESULTS_READY | ChallengeUnresolvedError | NavigationTimeoutError | NavigationError
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from urllib.parse import quote_plus, urlencode

from .browser import BrowserMode, BrowserSession
from .challenge import ChallengeDetector
from .config import ConfigLoader, SelectorsConfig
from .exceptions import ChallengeUnresolvedError, NavigationTimeoutError
from .locale_resolver import LocaleResolver

logger = logging.getLogger(__name__)

DEFAULT_GOOGLE_DOMAIN = "www.google.com"


class NavigationStatus(str, Enum):
    RESULTS_READY = "results_ready"
    CHALLENGE = "challenge"


@dataclass
class NavigationOutcome:
    """Result of one navigation attempt."""

    status: NavigationStatus
    url: str
    mode: BrowserMode
    challenge_type: str | None = None
    elapsed_ms: float = 0.0

    @property
    def should_escalate(self) -> bool:
        return self.status is NavigationStatus.CHALLENGE


class QueryExecutor:
    """
    Builds search URLs and runs navigations against them.

    Usage:
        executor = QueryExecutor()
        url = executor.build_search_url("rust async", "en-US")
        outcome = await executor.navigate(session, url, timeout_ms=30000, headed_timeout_ms=600000)
    """

    def __init__(
        self,
        selectors: SelectorsConfig | None = None,
        detector: ChallengeDetector | None = None,
        resolver: LocaleResolver | None = None,
    ) -> None:
        if selectors is None:
            selectors = ConfigLoader.from_default_file().selectors
        self.selectors = selectors
        self.detector = detector or ChallengeDetector()
        self.resolver = resolver or LocaleResolver()

    def build_search_url(self, query: str, locale: str, google_domain: str = DEFAULT_GOOGLE_DOMAIN) -> str:
        """
        Results URL for ``query``.

        The query is URL-encoded exactly as given; operators (site:, -term,
        quotes, OR) reach Google untouched.
        """
        params = {"q": query}
        params.update(self.resolver.params(locale))
        return f"https://{google_domain}/search?{urlencode(params, quote_via=quote_plus)}"

    async def navigate(
        self,
        session: BrowserSession,
        url: str,
        timeout_ms: int,
        headed_timeout_ms: int | None,
    ) -> NavigationOutcome:
        """
        Navigate and wait for result markers.

        Args:
            session: Open browser session
            url: Search URL
            timeout_ms: Page load ceiling, and marker wait ceiling in headless mode
            headed_timeout_ms: Marker wait ceiling in headed mode (None/0 = unbounded)

        Raises:
            NavigationError: Network-level failure
            NavigationTimeoutError: No markers and no challenge within the ceiling
            ChallengeUnresolvedError: Headed mode still challenged at the ceiling
        """
        mode = session.mode
        start = time.monotonic()
        logger.info(f"Navigating ({mode.value}): {url}")

        try:
            await session.navigate(url, timeout_ms)
        except NavigationTimeoutError:
            if mode is not BrowserMode.HEADLESS:
                raise
            # A slow-loading challenge page still escalates
            challenge = self.detector.detect(session.url, await self._page_content(session))
            if not challenge:
                raise
            logger.warning(f"Challenge page behind a load timeout: {challenge} ({session.url})")
            return NavigationOutcome(
                status=NavigationStatus.CHALLENGE,
                url=session.url,
                mode=mode,
                challenge_type=challenge,
                elapsed_ms=(time.monotonic() - start) * 1000,
            )

        # In headed mode the human is expected to clear the challenge, so go straight to waiting
        if mode is BrowserMode.HEADLESS:
            challenge = self.detector.detect_url(session.url)
            if challenge:
                logger.warning(f"Challenge page after navigation: {challenge} ({session.url})")
                return NavigationOutcome(
                    status=NavigationStatus.CHALLENGE,
                    url=session.url,
                    mode=mode,
                    challenge_type=challenge,
                    elapsed_ms=(time.monotonic() - start) * 1000,
                )
            wait_ms: int | None = timeout_ms
        else:
            wait_ms = headed_timeout_ms
            logger.warning(
                "Waiting for verification to be completed in the browser window "
                f"({'no time limit' if not wait_ms else f'up to {wait_ms}ms'})"
            )

        if await session.wait_for_any(self.selectors.result_markers, wait_ms):
            elapsed = (time.monotonic() - start) * 1000
            logger.info(f"Results ready ({mode.value}) in {elapsed:.0f}ms")
            return NavigationOutcome(
                status=NavigationStatus.RESULTS_READY,
                url=session.url,
                mode=mode,
                elapsed_ms=elapsed,
            )

        # Markers never appeared: a challenge escalates, anything else is a timeout
        current_url = session.url
        challenge = self.detector.detect(current_url, await session.content())

        if challenge and mode is BrowserMode.HEADLESS:
            logger.warning(f"Challenge detected after waiting for results: {challenge}")
            return NavigationOutcome(
                status=NavigationStatus.CHALLENGE,
                url=current_url,
                mode=mode,
                challenge_type=challenge,
                elapsed_ms=(time.monotonic() - start) * 1000,
            )

        if challenge:
            raise ChallengeUnresolvedError(
                "Verification was not completed in time",
                url=current_url,
                challenge_type=challenge,
                timeout_ms=wait_ms,
            )

        raise NavigationTimeoutError(
            "Search results did not appear",
            url=current_url,
            timeout_ms=wait_ms,
            mode=mode.value,
        )

    @staticmethod
    async def _page_content(session: BrowserSession) -> str | None:
        try:
            return await session.content()
        except Exception as e:
            logger.debug(f"Page content unavailable after timeout: {e}")
            return None


__all__ = [
    "DEFAULT_GOOGLE_DOMAIN",
    "NavigationOutcome",
    "NavigationStatus",
    "QueryExecutor",
]
