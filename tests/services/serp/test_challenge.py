"""Unit tests for challenge detection."""

import pytest

from src.serpwright.services.serp.challenge import (
    CHALLENGE_CAPTCHA,
    CHALLENGE_RECAPTCHA,
    CHALLENGE_SORRY_PAGE,
    CHALLENGE_UNUSUAL_TRAFFIC,
    ChallengeDetector,
)
from src.serpwright.services.serp.config import ChallengeDetectionConfig


@pytest.fixture
def detector() -> ChallengeDetector:
    return ChallengeDetector(ChallengeDetectionConfig())


class TestDetectUrl:
    @pytest.mark.parametrize(
        "url",
        [
            "https://www.google.com/sorry/index?continue=x",
            "https://www.google.co.uk/sorry/index",
            "https://ipv4.google.com/sorry/Index?q=abc",
        ],
    )
    def test_sorry_pages(self, detector: ChallengeDetector, url: str) -> None:
        assert detector.detect_url(url) == CHALLENGE_SORRY_PAGE

    def test_results_page(self, detector: ChallengeDetector) -> None:
        assert detector.detect_url("https://www.google.com/search?q=sorry") is None

    def test_empty(self, detector: ChallengeDetector) -> None:
        assert detector.detect_url(None) is None
        assert detector.detect_url("") is None


class TestDetectContent:
    def test_unusual_traffic(self, detector: ChallengeDetector) -> None:
        html = "<p>Our systems have detected unusual traffic from your computer network.</p>"
        assert detector.detect_content(html) == CHALLENGE_UNUSUAL_TRAFFIC

    def test_recaptcha(self, detector: ChallengeDetector) -> None:
        html = '<script src="https://www.google.com/recaptcha/api.js"></script>'
        assert detector.detect_content(html) == CHALLENGE_RECAPTCHA

    def test_captcha_form(self, detector: ChallengeDetector) -> None:
        assert detector.detect_content('<form id="captcha-form"></form>') == CHALLENGE_CAPTCHA

    def test_results_markup(self, detector: ChallengeDetector, results_html: str) -> None:
        assert detector.detect_content(results_html) is None


class TestDetect:
    def test_url_checked_first(self, detector: ChallengeDetector, sorry_html: str) -> None:
        assert detector.detect("https://www.google.com/sorry/index", sorry_html) == CHALLENGE_SORRY_PAGE

    def test_content_when_url_clean(self, detector: ChallengeDetector, sorry_html: str) -> None:
        assert detector.detect("https://www.google.com/search?q=x", sorry_html) is not None

    def test_clean(self, detector: ChallengeDetector, results_html: str) -> None:
        assert detector.detect("https://www.google.com/search?q=x", results_html) is None

    def test_custom_signatures(self) -> None:
        detector = ChallengeDetector(ChallengeDetectionConfig(url_patterns=[], content_signatures=["verify you are human"]))
        assert detector.detect("https://www.google.com/sorry/index") is None
        assert detector.detect("https://x", "Please VERIFY you are human") == CHALLENGE_CAPTCHA
