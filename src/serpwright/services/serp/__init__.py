# ============================================
# SERP - Google Search Automation Engine
# ============================================
#
# Runs Google searches in a hardened headless Chromium and, when Google
# answers with a verification challenge, escalates once to a visible
# browser so a human can complete it. Verified sessions are persisted
# and reused by later searches.
#
# Flow:
#   Locale Resolver → Query Executor → Escalation State Machine
#   (Browser Controller + Session Store) → Result Extractor | HTML Capture
#
# Escalation:
#   HEADLESS → CHALLENGE_DETECTED → HEADED → RESOLVED
#   (at most once per request, never two browsers at a time)
# ============================================

# Engine facade
from .engine import NO_STATE_WARNING, SearchEngine, google_search

# Browser lifecycle
from .browser import BrowserController, BrowserHandle, BrowserMode, BrowserSession, SharedBrowser

# Building blocks
from .capture import HtmlCapturer, sanitize_html
from .challenge import ChallengeDetector
from .escalation import ALLOWED_TRANSITIONS, EscalationJob, EscalationMachine, EscalationRunner, EscalationState
from .executor import NavigationOutcome, NavigationStatus, QueryExecutor
from .extractor import ResultExtractor
from .locale_resolver import LocaleResolver
from .session_store import HostFingerprint, SavedFingerprint, SessionStore

# Exceptions
from .exceptions import (
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

__all__ = [
    # Engine
    "SearchEngine",
    "google_search",
    "NO_STATE_WARNING",
    # Browser
    "BrowserController",
    "BrowserHandle",
    "BrowserMode",
    "BrowserSession",
    "SharedBrowser",
    # Components
    "ChallengeDetector",
    "EscalationJob",
    "EscalationMachine",
    "EscalationRunner",
    "EscalationState",
    "ALLOWED_TRANSITIONS",
    "HtmlCapturer",
    "sanitize_html",
    "LocaleResolver",
    "NavigationOutcome",
    "NavigationStatus",
    "QueryExecutor",
    "ResultExtractor",
    "HostFingerprint",
    "SavedFingerprint",
    "SessionStore",
    # Exceptions
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
