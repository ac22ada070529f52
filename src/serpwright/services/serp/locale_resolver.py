"""
Locale Resolver.

Explicit locales ("ko-KR", "en-US", ...) are used verbatim. "auto" reads the
host language setting, normalizes it ("ko_KR.UTF-8" -> "ko-KR") and maps it
onto a locale Google understands, falling back to a fixed default.

The locale only ever turns into language/region request parameters (hl/gl)
and browser context settings; the query text is never touched.
"""

import locale as _stdlib_locale
import logging
import os
from collections.abc import Mapping

from .config import ConfigLoader, LocaleConfig

logger = logging.getLogger(__name__)

AUTO = "auto"

# Checked in POSIX precedence order
_LOCALE_ENV_VARS = ("LC_ALL", "LC_MESSAGES", "LANG")


def normalize_locale_token(raw: str | None) -> str | None:
    """
    Normalize a host locale string to ``xx-YY`` form.

    Examples:
        "ko_KR.UTF-8" -> "ko-KR"
        "de_DE@euro"  -> "de-DE"
        "en"          -> "en"
        "C", "POSIX"  -> None
    """
    if not raw:
        return None

    token = raw.strip().split(".", 1)[0].split("@", 1)[0]
    if not token or token.upper() in ("C", "POSIX"):
        return None

    parts = token.replace("_", "-").split("-")
    language = parts[0].lower()
    if not language.isalpha():
        return None
    if len(parts) > 1 and parts[1]:
        return f"{language}-{parts[1].upper()}"
    return language


def detect_host_locale(environ: Mapping[str, str] | None = None) -> str | None:
    """Best-effort host locale, normalized, or None when nothing usable is set."""
    env = os.environ if environ is None else environ

    for var in _LOCALE_ENV_VARS:
        token = normalize_locale_token(env.get(var))
        if token:
            return token

    # GNU LANGUAGE is a colon separated priority list
    for candidate in (env.get("LANGUAGE") or "").split(":"):
        token = normalize_locale_token(candidate)
        if token:
            return token

    if environ is None:
        try:
            lang, _ = _stdlib_locale.getlocale()
        except ValueError:
            lang = None
        return normalize_locale_token(lang)

    return None


class LocaleResolver:
    """Resolves the search locale for a request."""

    def __init__(self, config: LocaleConfig | None = None) -> None:
        if config is None:
            config = ConfigLoader.from_default_file().locale
        self.config = config
        self._supported = {loc.lower(): loc for loc in config.supported}

    def match(self, token: str | None) -> str | None:
        """Map a normalized host token onto a supported locale."""
        if not token:
            return None

        exact = self._supported.get(token.lower())
        if exact:
            return exact

        language = token.split("-", 1)[0].lower()
        for supported in self.config.supported:
            if supported.split("-", 1)[0].lower() == language:
                return supported
        return None

    def resolve(self, requested: str | None, environ: Mapping[str, str] | None = None) -> str:
        """
        Resolve the locale for a request.

        Args:
            requested: Caller value; None, "" and "auto" trigger detection
            environ: Environment override (tests)

        Returns:
            Locale token such as "en-US"
        """
        if requested and requested.strip().lower() != AUTO:
            return requested.strip()

        host = detect_host_locale(environ)
        resolved = self.match(host)
        if resolved is None:
            logger.info(f"Host locale {host!r} not recognized, using {self.config.default}")
            return self.config.default

        logger.debug(f"Auto-detected locale {resolved} (host={host})")
        return resolved

    def params(self, locale: str) -> dict[str, str]:
        """
        Google language/region parameters for a locale.

        Returns:
            {"hl": ..., "gl": ...}; gl omitted when the locale has no region
        """
        parts = locale.replace("_", "-").split("-")
        language = parts[0].lower()
        region = parts[1].upper() if len(parts) > 1 and parts[1] else None

        full = f"{language}-{region}" if region else language
        hl = full if full in self.config.full_hl else language

        result = {"hl": hl}
        if region:
            result["gl"] = region
        return result

    def timezone_for(self, locale: str) -> str:
        """Typical IANA timezone for a locale (used when the host zone is unknown)."""
        matched = self.match(normalize_locale_token(locale))
        if matched and matched in self.config.timezones:
            return self.config.timezones[matched]
        return self.config.timezones.get(self.config.default, "UTC")


__all__ = [
    "AUTO",
    "LocaleResolver",
    "detect_host_locale",
    "normalize_locale_token",
]
