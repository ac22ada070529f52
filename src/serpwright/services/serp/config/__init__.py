"""
SERP Engine - Data Bank

Static engine data read from ``databank.json``: launch hardening, timeouts,
result selectors, challenge signatures, locales, fingerprint profiles and
HTML capture rules. Every section falls back to the model defaults when
missing from the file.
"""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from .engine import (
    ChallengeDetectionConfig,
    FingerprintConfig,
    HtmlCaptureConfig,
    LaunchConfig,
    LocaleConfig,
    SelectorsConfig,
    TimeoutsConfig,
)

logger = logging.getLogger(__name__)

DATABANK_PATH = Path(__file__).parent / "databank.json"


class SerpConfig(BaseModel):
    """Complete search engine data bank."""

    version: str = "1.0.0"
    launch: LaunchConfig = Field(default_factory=LaunchConfig)
    timeouts: TimeoutsConfig = Field(default_factory=TimeoutsConfig)
    selectors: SelectorsConfig = Field(default_factory=SelectorsConfig)
    challenge_detection: ChallengeDetectionConfig = Field(default_factory=ChallengeDetectionConfig)
    locale: LocaleConfig = Field(default_factory=LocaleConfig)
    fingerprint: FingerprintConfig = Field(default_factory=FingerprintConfig)
    html_capture: HtmlCaptureConfig = Field(default_factory=HtmlCaptureConfig)


class ConfigLoader:
    """Reads the data bank; the shipped file is parsed once per process."""

    _cached_config: SerpConfig | None = None

    @classmethod
    def from_file(cls, path: str | Path) -> SerpConfig:
        """
        Raises:
            FileNotFoundError: ``path`` does not exist
            ValueError: Bad JSON or a section failed validation
        """
        path = Path(path)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise FileNotFoundError(f"Data bank not found: {path}") from None

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in data bank {path}: {e}") from e

        config = cls.from_dict(data)
        logger.info(f"Loaded data bank {path} (version {config.version})")
        return config

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SerpConfig:
        # "_comment"-style keys document the JSON file only
        sections = {key: value for key, value in data.items() if not key.startswith("_")}
        try:
            return SerpConfig.model_validate(sections)
        except ValidationError as e:
            raise ValueError(f"Data bank validation failed: {e}") from e

    @classmethod
    def from_default_file(cls) -> SerpConfig:
        if cls._cached_config is None:
            if DATABANK_PATH.exists():
                cls._cached_config = cls.from_file(DATABANK_PATH)
            else:
                logger.warning(f"No data bank at {DATABANK_PATH}, using built-in defaults")
                cls._cached_config = SerpConfig()
        return cls._cached_config

    @classmethod
    def clear_cache(cls) -> None:
        cls._cached_config = None


__all__ = [
    "DATABANK_PATH",
    "SerpConfig",
    "ConfigLoader",
    "LaunchConfig",
    "TimeoutsConfig",
    "SelectorsConfig",
    "ChallengeDetectionConfig",
    "LocaleConfig",
    "FingerprintConfig",
    "HtmlCaptureConfig",
]
