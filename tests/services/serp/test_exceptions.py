"""
Unit tests for SERP engine exceptions.

Covers:
- Kind tags used by the CLI/HTTP adapters
- String representation with context
- Hierarchy (NavigationTimeoutError is a NavigationError)
- ExtractionError partial results
"""

import pytest

from src.serpwright.services.serp.exceptions import (
    BrowserLaunchError,
    ChallengeUnresolvedError,
    EscalationError,
    ExtractionError,
    NavigationError,
    NavigationTimeoutError,
    SerpException,
    SessionLoadError,
    SessionSaveError,
)


# =============================================================================
# BASE EXCEPTION TESTS
# =============================================================================
class TestSerpException:
    """Tests for base SerpException."""

    def test_message_only(self) -> None:
        exc = SerpException("Test error")
        assert str(exc) == "Test error"
        assert exc.message == "Test error"
        assert exc.url is None

    def test_with_url(self) -> None:
        exc = SerpException("Test error", url="https://www.google.com/search?q=x")
        assert "https://www.google.com/search?q=x" in str(exc)

    def test_to_dict(self) -> None:
        exc = SerpException("Boom")
        assert exc.to_dict() == {"kind": "serp_error", "message": "Boom"}


# =============================================================================
# KIND TAGS
# =============================================================================
@pytest.mark.parametrize(
    ("exc", "kind"),
    [
        (SessionLoadError("bad", path="/tmp/s.json"), "session_load"),
        (SessionSaveError("bad", path="/tmp/s.json"), "session_save"),
        (NavigationError("net::ERR_NAME_NOT_RESOLVED"), "navigation"),
        (NavigationTimeoutError("slow", timeout_ms=5000), "navigation_timeout"),
        (ChallengeUnresolvedError("still challenged"), "challenge_unresolved"),
        (BrowserLaunchError("no chromium", headless=True), "browser_launch"),
        (ExtractionError("parser broke"), "extraction"),
        (EscalationError("illegal", "headed", "headless"), "escalation"),
    ],
)
def test_kind_tags(exc: SerpException, kind: str) -> None:
    assert exc.kind == kind
    assert exc.to_dict()["kind"] == kind
    assert isinstance(exc, SerpException)


# =============================================================================
# CONTEXT IN STRING FORM
# =============================================================================
class TestStringContext:
    def test_session_errors_include_path(self) -> None:
        assert "path=/tmp/s.json" in str(SessionLoadError("Corrupt", path="/tmp/s.json"))
        assert "path=/tmp/s.json" in str(SessionSaveError("Read-only", path="/tmp/s.json"))

    def test_navigation_error_parts(self) -> None:
        exc = NavigationError("Navigation failed", url="https://www.google.com/search?q=x", mode="headless")
        assert str(exc) == "Navigation failed | mode=headless | url=https://www.google.com/search?q=x"

    def test_navigation_timeout_includes_timeout(self) -> None:
        exc = NavigationTimeoutError("Search results did not appear", timeout_ms=30000, mode="headless")
        assert "timeout=30000ms" in str(exc)
        assert "mode=headless" in str(exc)

    def test_navigation_timeout_is_navigation_error(self) -> None:
        assert issubclass(NavigationTimeoutError, NavigationError)

    def test_challenge_unresolved_includes_type(self) -> None:
        exc = ChallengeUnresolvedError("Not completed", challenge_type="recaptcha", timeout_ms=600000)
        assert "challenge=recaptcha" in str(exc)
        assert "timeout=600000ms" in str(exc)

    def test_browser_launch_includes_mode(self) -> None:
        assert str(BrowserLaunchError("No display", headless=False)) == "No display (headless=False)"

    def test_escalation_error_shows_transition(self) -> None:
        assert str(EscalationError("Illegal escalation transition", "headed", "headless")) == (
            "Illegal escalation transition (headed -> headless)"
        )


class TestExtractionError:
    def test_partial_results_default_empty(self) -> None:
        assert ExtractionError("broke").partial_results == []

    def test_partial_results_counted_in_message(self) -> None:
        exc = ExtractionError("broke", partial_results=["a", "b"])
        assert exc.partial_results == ["a", "b"]
        assert str(exc).endswith("(partial=2)")
