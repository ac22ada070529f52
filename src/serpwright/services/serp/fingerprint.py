"""
Host fingerprint for browser contexts.

A context that looks like the machine it runs on (device, timezone, colour
scheme) draws fewer challenges than a stock automation profile. The
fingerprint and the chosen Google domain are saved next to the state file so
that a resumed session keeps presenting the same identity.
"""

import logging
import os
import random
import sys
from collections.abc import Mapping
from datetime import datetime
from pathlib import Path

from .config import FingerprintConfig
from .locale_resolver import LocaleResolver
from .session_store import HostFingerprint, SavedFingerprint, SessionStore

logger = logging.getLogger(__name__)

_ZONEINFO_MARKER = "zoneinfo/"


def detect_host_timezone(environ: Mapping[str, str] | None = None) -> str | None:
    """IANA name of the host timezone, or None if it cannot be determined."""
    env = os.environ if environ is None else environ

    tz = (env.get("TZ") or "").lstrip(":").strip()
    if tz and "/" in tz:
        return tz

    if environ is not None:
        return None

    try:
        timezone_file = Path("/etc/timezone")
        if timezone_file.exists():
            name = timezone_file.read_text(encoding="utf-8").strip()
            if name:
                return name

        localtime = Path("/etc/localtime")
        if localtime.is_symlink():
            target = os.readlink(localtime)
            if _ZONEINFO_MARKER in target:
                return target.split(_ZONEINFO_MARKER, 1)[1]
    except OSError as e:
        logger.debug(f"Could not read host timezone: {e}")

    return None


def pick_color_scheme(config: FingerprintConfig, hour: int) -> str:
    """Dark in the evening/night, light otherwise."""
    if hour >= config.dark_hours_start or hour < config.dark_hours_end:
        return "dark"
    return "light"


def build_host_fingerprint(
    locale: str,
    config: FingerprintConfig,
    resolver: LocaleResolver,
    platform: str | None = None,
    now: datetime | None = None,
    environ: Mapping[str, str] | None = None,
) -> HostFingerprint:
    platform = platform or sys.platform
    now = now or datetime.now()

    device_name = config.devices.get(platform, config.default_device)
    timezone_id = detect_host_timezone(environ) or resolver.timezone_for(locale)

    return HostFingerprint(
        device_name=device_name,
        locale=locale,
        timezone_id=timezone_id,
        color_scheme=pick_color_scheme(config, now.hour),
    )


def pick_google_domain(config: FingerprintConfig, rng: random.Random | None = None) -> str:
    rng = rng or random.Random()
    return rng.choice(config.google_domains)


async def resolve_fingerprint(
    store: SessionStore,
    state_path: str | None,
    locale: str,
    config: FingerprintConfig,
    resolver: LocaleResolver,
) -> tuple[SavedFingerprint, bool]:
    """
    Reuse the saved fingerprint for ``state_path`` or build a new one.

    The locale always follows the current request.

    Returns:
        (fingerprint, is_new)
    """
    saved = await store.load_fingerprint(state_path) if state_path else None
    if saved is not None:
        saved.fingerprint.locale = locale
        logger.debug(f"Reusing saved fingerprint ({saved.fingerprint.device_name}, {saved.google_domain})")
        return saved, False

    fingerprint = build_host_fingerprint(locale, config, resolver)
    saved = SavedFingerprint(fingerprint=fingerprint, google_domain=pick_google_domain(config))
    logger.info(
        f"New fingerprint: device={fingerprint.device_name}, tz={fingerprint.timezone_id}, "
        f"scheme={fingerprint.color_scheme}, domain={saved.google_domain}"
    )
    return saved, True


__all__ = [
    "build_host_fingerprint",
    "detect_host_timezone",
    "pick_color_scheme",
    "pick_google_domain",
    "resolve_fingerprint",
]
