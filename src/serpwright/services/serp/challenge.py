"""
Verification challenge detection for Google result pages.

Google answers suspected automation with a redirect to /sorry/index
("Our systems have detected unusual traffic...") carrying a reCAPTCHA.
Detection looks at the final URL first (cheap, unambiguous), then at the DOM.
"""

import logging
import re

from .config import ChallengeDetectionConfig, ConfigLoader

logger = logging.getLogger(__name__)

CHALLENGE_SORRY_PAGE = "sorry_page"
CHALLENGE_RECAPTCHA = "recaptcha"
CHALLENGE_UNUSUAL_TRAFFIC = "unusual_traffic"
CHALLENGE_CAPTCHA = "captcha"


def _compile(patterns: list[str]) -> re.Pattern[str] | None:
    if not patterns:
        return None
    return re.compile("|".join(re.escape(p) for p in patterns), re.IGNORECASE)


class ChallengeDetector:
    """Matches URLs and page content against known challenge signatures."""

    def __init__(self, config: ChallengeDetectionConfig | None = None) -> None:
        if config is None:
            config = ConfigLoader.from_default_file().challenge_detection
        self.config = config
        self._url_regex = _compile(config.url_patterns)
        self._content_regex = _compile(config.content_signatures)

    def detect_url(self, url: str | None) -> str | None:
        if not url or self._url_regex is None:
            return None
        if self._url_regex.search(url):
            return CHALLENGE_SORRY_PAGE
        return None

    def detect_content(self, content: str | None) -> str | None:
        if not content or self._content_regex is None:
            return None

        match = self._content_regex.search(content)
        if match is None:
            return None

        signature = match.group(0).lower()
        if "recaptcha" in signature:
            return CHALLENGE_RECAPTCHA
        if "unusual traffic" in signature:
            return CHALLENGE_UNUSUAL_TRAFFIC
        return CHALLENGE_CAPTCHA

    def detect(self, url: str | None, content: str | None = None) -> str | None:
        """
        Detect a verification challenge.

        Args:
            url: Current page URL
            content: Rendered HTML (optional)

        Returns:
            Challenge type string or None
        """
        challenge = self.detect_url(url) or self.detect_content(content)
        if challenge:
            logger.debug(f"Challenge signature matched: {challenge} (url={url})")
        return challenge


__all__ = [
    "CHALLENGE_CAPTCHA",
    "CHALLENGE_RECAPTCHA",
    "CHALLENGE_SORRY_PAGE",
    "CHALLENGE_UNUSUAL_TRAFFIC",
    "ChallengeDetector",
]
