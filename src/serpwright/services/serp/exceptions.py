"""SERP Engine Custom Exceptions.

Hierarchy:
    SerpException (base)
    ├── SessionLoadError          - state file missing/corrupt (absorbed, fresh session)
    ├── SessionSaveError          - state file write failed (absorbed, logged only)
    ├── NavigationError           - destination unreachable, network failure
    │   └── NavigationTimeoutError - results marker never appeared in time
    ├── ChallengeUnresolvedError  - headed mode never got past the verification page
    ├── BrowserLaunchError        - Chromium could not be started
    ├── ExtractionError           - result parsing broke part way (carries partial results)
    └── EscalationError           - illegal state machine transition

Every exception carries a ``kind`` tag so adapters (CLI, HTTP) can map it to
their own surface without isinstance ladders.
"""

from typing import Any


class SerpException(Exception):
    """Base exception for all SERP engine errors."""

    kind: str = "serp_error"

    def __init__(self, message: str, url: str | None = None) -> None:
        self.message = message
        self.url = url
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.url:
            return f"{self.message} (URL: {self.url})"
        return self.message

    def to_dict(self) -> dict[str, str]:
        """Tagged error envelope handed to external adapters."""
        return {"kind": self.kind, "message": str(self)}


class SessionLoadError(SerpException):
    """Raised inside the session store when a state file cannot be read.

    Never escapes SessionStore.load(); the caller just gets a fresh session.
    """

    kind = "session_load"

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} (path={self.path})"
        return self.message


class SessionSaveError(SerpException):
    """Raised inside the session store when a state file cannot be written."""

    kind = "session_save"

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} (path={self.path})"
        return self.message


class NavigationError(SerpException):
    """Raised when the destination cannot be reached at all.

    Examples: DNS failure, connection refused, net::ERR_* from the browser.
    Never triggers escalation.
    """

    kind = "navigation"

    def __init__(
        self,
        message: str,
        url: str | None = None,
        mode: str | None = None,
    ) -> None:
        super().__init__(message, url)
        self.mode = mode  # "headless" or "headed"

    def __str__(self) -> str:
        parts = [self.message]
        if self.mode:
            parts.append(f"mode={self.mode}")
        if self.url:
            parts.append(f"url={self.url}")
        return " | ".join(parts)


class NavigationTimeoutError(NavigationError):
    """Raised when the results container did not appear within the timeout.

    Fatal to the current attempt. Only escalates when the page shows a
    challenge signature instead of results.
    """

    kind = "navigation_timeout"

    def __init__(
        self,
        message: str,
        url: str | None = None,
        timeout_ms: int | None = None,
        mode: str | None = None,
    ) -> None:
        super().__init__(message, url, mode)
        self.timeout_ms = timeout_ms

    def __str__(self) -> str:
        parts = [self.message]
        if self.timeout_ms:
            parts.append(f"timeout={self.timeout_ms}ms")
        if self.mode:
            parts.append(f"mode={self.mode}")
        if self.url:
            parts.append(f"url={self.url}")
        return " | ".join(parts)


class ChallengeUnresolvedError(SerpException):
    """Raised when the headed attempt hits its ceiling while still challenged."""

    kind = "challenge_unresolved"

    def __init__(
        self,
        message: str,
        url: str | None = None,
        challenge_type: str | None = None,
        timeout_ms: int | None = None,
    ) -> None:
        super().__init__(message, url)
        self.challenge_type = challenge_type
        self.timeout_ms = timeout_ms

    def __str__(self) -> str:
        parts = [self.message]
        if self.challenge_type:
            parts.append(f"challenge={self.challenge_type}")
        if self.timeout_ms:
            parts.append(f"timeout={self.timeout_ms}ms")
        if self.url:
            parts.append(f"url={self.url}")
        return " | ".join(parts)


class BrowserLaunchError(SerpException):
    """Raised when the Chromium process cannot be started or connected to.

    Aborts the request. In service mode the shared browser is untouched.
    """

    kind = "browser_launch"

    def __init__(
        self,
        message: str,
        headless: bool | None = None,
    ) -> None:
        super().__init__(message)
        self.headless = headless

    def __str__(self) -> str:
        if self.headless is not None:
            return f"{self.message} (headless={self.headless})"
        return self.message


class ExtractionError(SerpException):
    """Raised when result parsing fails part way through the page.

    Carries whatever valid entries were parsed before the failure.
    """

    kind = "extraction"

    def __init__(
        self,
        message: str,
        url: str | None = None,
        partial_results: list[Any] | None = None,
    ) -> None:
        super().__init__(message, url)
        self.partial_results = partial_results or []

    def __str__(self) -> str:
        base = super().__str__()
        return f"{base} (partial={len(self.partial_results)})"


class EscalationError(SerpException):
    """Raised on an illegal escalation state transition."""

    kind = "escalation"

    def __init__(self, message: str, from_state: str | None = None, to_state: str | None = None) -> None:
        super().__init__(message)
        self.from_state = from_state
        self.to_state = to_state

    def __str__(self) -> str:
        if self.from_state and self.to_state:
            return f"{self.message} ({self.from_state} -> {self.to_state})"
        return self.message


__all__ = [
    "SerpException",
    "SessionLoadError",
    "SessionSaveError",
    "NavigationError",
    "NavigationTimeoutError",
    "ChallengeUnresolvedError",
    "BrowserLaunchError",
    "ExtractionError",
    "EscalationError",
]
