"""
SERP Engine - Configuration Models

Pydantic models for the search engine data bank.
Covers browser launch hardening, result/challenge selectors,
locales, host fingerprint profiles and HTML capture settings.
"""

from pydantic import BaseModel, Field


class LaunchConfig(BaseModel):
    """
    Chromium launch configuration.

    The argument set strips the usual automation tells:
    - AutomationControlled blink feature
    - sandbox restrictions that break inside containers
    - GPU usage
    - the "Chrome is being controlled by automated software" banner
    """

    args: list[str] = Field(
        default_factory=lambda: [
            "--disable-blink-features=AutomationControlled",
            "--disable-features=IsolateOrigins,site-per-process",
            "--disable-site-isolation-trials",
            "--disable-web-security",
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--disable-dev-shm-usage",
            "--disable-accelerated-2d-canvas",
            "--no-first-run",
            "--no-zygote",
            "--disable-gpu",
            "--hide-scrollbars",
            "--mute-audio",
            "--disable-background-networking",
            "--disable-background-timer-throttling",
            "--disable-backgrounding-occluded-windows",
            "--disable-breakpad",
            "--disable-component-extensions-with-background-pages",
            "--disable-extensions",
            "--disable-features=TranslateUI",
            "--disable-ipc-flooding-protection",
            "--disable-renderer-backgrounding",
            "--enable-features=NetworkService,NetworkServiceInProcess",
            "--force-color-profile=srgb",
            "--metrics-recording-only",
        ]
    )
    ignore_default_args: list[str] = Field(default_factory=lambda: ["--enable-automation"])
    channel: str | None = None  # "chrome", "msedge"; None = bundled Chromium


class TimeoutsConfig(BaseModel):
    """Operation timeouts (milliseconds)."""

    # Ceiling for the human to clear the challenge in headed mode.
    # None or 0 = wait indefinitely.
    headed_challenge: int | None = 600_000
    network_idle: int = 10_000


class SelectorsConfig(BaseModel):
    """Google result page selectors."""

    # Any of these appearing means the result page rendered
    result_markers: list[str] = Field(
        default_factory=lambda: [
            "#search",
            "#rso",
            "#botstuff",
            "[data-sokoban-container]",
            "div.g",
        ]
    )

    # One element per organic result, in document order
    result_containers: list[str] = Field(
        default_factory=lambda: [
            "#search div.g",
            "#rso div.g",
            "#rso div[data-sokoban-container]",
            "#rso div.MjjYud",
        ]
    )

    title: str = "h3"
    link: str = "a[href]"

    snippets: list[str] = Field(
        default_factory=lambda: [
            ".VwiC3b",
            "[data-sncf]",
            "[data-content-feature='1']",
            "div[style*='webkit-line-clamp']",
            ".IsZvec",
        ]
    )

    # Scanned for <a><h3/></a> when no container matches
    fallback_scopes: list[str] = Field(default_factory=lambda: ["#search", "#rso", "body"])


class ChallengeDetectionConfig(BaseModel):
    """Google verification ("unusual traffic") page signatures."""

    url_patterns: list[str] = Field(
        default_factory=lambda: [
            "/sorry/index",
            "/sorry/",
            "google.com/sorry",
        ]
    )

    content_signatures: list[str] = Field(
        default_factory=lambda: [
            "unusual traffic from your computer network",
            "our systems have detected unusual traffic",
            "captcha-form",
            "g-recaptcha",
            "recaptcha/api",
            "i'm not a robot",
        ]
    )


class LocaleConfig(BaseModel):
    """Supported search locales and derived defaults."""

    default: str = "en-US"

    supported: list[str] = Field(
        default_factory=lambda: [
            "en-US",
            "en-GB",
            "en-CA",
            "en-AU",
            "ko-KR",
            "ja-JP",
            "zh-CN",
            "zh-TW",
            "de-DE",
            "fr-FR",
            "es-ES",
            "it-IT",
            "pt-BR",
            "ru-RU",
            "nl-NL",
            "pl-PL",
            "tr-TR",
            "vi-VN",
            "id-ID",
            "hi-IN",
        ]
    )

    # hl values Google expects in full (language-region) form
    full_hl: list[str] = Field(default_factory=lambda: ["zh-CN", "zh-TW", "pt-BR", "pt-PT"])

    timezones: dict[str, str] = Field(
        default_factory=lambda: {
            "en-US": "America/New_York",
            "en-GB": "Europe/London",
            "en-CA": "America/Toronto",
            "en-AU": "Australia/Sydney",
            "ko-KR": "Asia/Seoul",
            "ja-JP": "Asia/Tokyo",
            "zh-CN": "Asia/Shanghai",
            "zh-TW": "Asia/Taipei",
            "de-DE": "Europe/Berlin",
            "fr-FR": "Europe/Paris",
            "es-ES": "Europe/Madrid",
            "it-IT": "Europe/Rome",
            "pt-BR": "America/Sao_Paulo",
            "ru-RU": "Europe/Moscow",
            "nl-NL": "Europe/Amsterdam",
            "pl-PL": "Europe/Warsaw",
            "tr-TR": "Europe/Istanbul",
            "vi-VN": "Asia/Ho_Chi_Minh",
            "id-ID": "Asia/Jakarta",
            "hi-IN": "Asia/Kolkata",
        }
    )


class FingerprintConfig(BaseModel):
    """Host fingerprint defaults (Playwright device descriptor names)."""

    devices: dict[str, str] = Field(
        default_factory=lambda: {
            "darwin": "Desktop Chrome",
            "win32": "Desktop Edge",
            "linux": "Desktop Chrome",
        }
    )
    default_device: str = "Desktop Chrome"

    google_domains: list[str] = Field(
        default_factory=lambda: [
            "www.google.com",
            "www.google.co.uk",
            "www.google.ca",
            "www.google.com.au",
        ]
    )

    # Local hours (inclusive start, exclusive end) rendered with a dark scheme
    dark_hours_start: int = 19
    dark_hours_end: int = 7


class HtmlCaptureConfig(BaseModel):
    """HTML capture defaults."""

    output_dir: str = "./google-search-html"
    preview_length: int = 500


__all__ = [
    "LaunchConfig",
    "TimeoutsConfig",
    "SelectorsConfig",
    "ChallengeDetectionConfig",
    "LocaleConfig",
    "FingerprintConfig",
    "HtmlCaptureConfig",
]
