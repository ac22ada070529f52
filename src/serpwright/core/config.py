import os
from pathlib import Path

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    APP_NAME: str = "serpwright"
    APP_DESCRIPTION: str | None = "Google search automation with headless-to-headed challenge escalation"
    APP_VERSION: str | None = "0.3.0"


class LoggingSettings(BaseSettings):
    LOG_LEVEL: str = "INFO"
    # Rotating log file; None = console only
    LOG_FILE: str | None = None
    LOG_MAX_BYTES: int = 10 * 1024 * 1024
    LOG_BACKUP_COUNT: int = 5


class ServerSettings(BaseSettings):
    SERVER_HOST: str = "127.0.0.1"
    SERVER_PORT: int = 8000


class SerpSettings(BaseSettings):
    """Configuration for the SERP engine.

    Request defaults (limit, timeout, locale) apply when a caller omits them.
    Selectors, challenge signatures and launch args live in the engine data bank
    (services/serp/config/databank.json), not here.
    """

    # ============================================
    # Request Defaults
    # ============================================
    SERP_DEFAULT_LIMIT: int = 10
    SERP_DEFAULT_TIMEOUT_MS: int = 30000
    SERP_DEFAULT_LOCALE: str = "auto"

    # ============================================
    # Session Persistence
    # ============================================
    # One-shot CLI default (relative to cwd)
    SERP_STATE_FILE: str = "./browser-state.json"

    # Long-lived service default (per user)
    SERP_SERVICE_STATE_FILE: str | None = None

    SERP_PERSIST_SESSION: bool = True

    # ============================================
    # Escalation
    # ============================================
    # Ceiling for human challenge resolution in headed mode (ms).
    # None = use the data bank value; 0 = wait indefinitely.
    SERP_HEADED_TIMEOUT_MS: int | None = None

    # ============================================
    # Browser
    # ============================================
    # "chrome" / "msedge" to drive an installed browser instead of bundled Chromium
    SERP_BROWSER_CHANNEL: str | None = None

    # ============================================
    # HTML Capture
    # ============================================
    SERP_HTML_OUTPUT_DIR: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def SERP_SERVICE_STATE_PATH(self) -> str:
        if self.SERP_SERVICE_STATE_FILE:
            return self.SERP_SERVICE_STATE_FILE
        return str(Path.home() / ".google-search-browser-state.json")


class Settings(
    AppSettings,
    LoggingSettings,
    ServerSettings,
    SerpSettings,
):
    model_config = SettingsConfigDict(
        env_file=os.path.join(os.path.dirname(os.path.realpath(__file__)), "..", "..", ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
