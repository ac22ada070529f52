"""
Session Store for the SERP engine.

Persists the browser identity (Playwright storage_state: cookies + origin
storage) that lets a fresh browser resume a previously verified session, plus
a companion fingerprint file so the resumed identity keeps the same device,
timezone and Google domain.

Files:
    <state>.json              - storage_state snapshot
    <state>-fingerprint.json  - {"fingerprint": {...}, "google_domain": "..."}

Rules:
1. A missing or corrupt file is never an error for the caller: load() returns
   None and logs a warning, the search proceeds with a fresh session.
2. save() is best-effort: failures are logged and reported as False.
3. Writes go to a temp file in the same directory and are swapped in with
   os.replace(), serialized per path, so concurrent readers never see a torn
   file and overlapping saves cannot interleave.
"""

import asyncio
import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .exceptions import SessionLoadError, SessionSaveError

logger = logging.getLogger(__name__)

FINGERPRINT_SUFFIX = "-fingerprint.json"


@dataclass
class HostFingerprint:
    """Browser context fingerprint derived from the host machine."""

    device_name: str
    locale: str
    timezone_id: str
    color_scheme: str = "light"  # "light" or "dark"
    reduced_motion: str = "no-preference"
    forced_colors: str = "none"

    def to_dict(self) -> dict[str, Any]:
        return {
            "device_name": self.device_name,
            "locale": self.locale,
            "timezone_id": self.timezone_id,
            "color_scheme": self.color_scheme,
            "reduced_motion": self.reduced_motion,
            "forced_colors": self.forced_colors,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HostFingerprint":
        return cls(
            device_name=data["device_name"],
            locale=data["locale"],
            timezone_id=data["timezone_id"],
            color_scheme=data.get("color_scheme", "light"),
            reduced_motion=data.get("reduced_motion", "no-preference"),
            forced_colors=data.get("forced_colors", "none"),
        )


@dataclass
class SavedFingerprint:
    """Contents of the fingerprint companion file."""

    fingerprint: HostFingerprint
    google_domain: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "fingerprint": self.fingerprint.to_dict(),
            "google_domain": self.google_domain,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SavedFingerprint":
        return cls(
            fingerprint=HostFingerprint.from_dict(data["fingerprint"]),
            google_domain=data["google_domain"],
        )


def fingerprint_path(state_path: str | Path) -> Path:
    """Companion fingerprint file for a state file path."""
    state_path = Path(state_path)
    stem = state_path.name[:-5] if state_path.name.endswith(".json") else state_path.name
    return state_path.with_name(f"{stem}{FINGERPRINT_SUFFIX}")


def _read_json(path: Path) -> Any:
    if not path.exists():
        raise SessionLoadError("State file not found", path=str(path))
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise SessionLoadError(f"State file is not valid JSON: {e}", path=str(path)) from e
    except (OSError, UnicodeDecodeError) as e:
        raise SessionLoadError(f"State file unreadable: {e}", path=str(path)) from e


def _write_json_atomic(path: Path, data: Any) -> None:
    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_name = tmp.name
            json.dump(data, tmp, indent=2, ensure_ascii=False)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, path)
        tmp_name = None
    except (OSError, TypeError, ValueError) as e:
        raise SessionSaveError(f"Could not write state file: {e}", path=str(path)) from e
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass


def validate_storage_state(data: Any, path: str | None = None) -> dict[str, Any]:
    """Check that ``data`` looks like a Playwright storage_state snapshot."""
    if not isinstance(data, dict):
        raise SessionLoadError("State file does not contain an object", path=path)
    cookies = data.get("cookies")
    origins = data.get("origins", [])
    if not isinstance(cookies, list):
        raise SessionLoadError("State file has no cookies list", path=path)
    if not isinstance(origins, list):
        raise SessionLoadError("State file has malformed origins", path=path)

    for i, cookie in enumerate(cookies):
        if not isinstance(cookie, dict):
            raise SessionLoadError(f"cookies[{i}] is not an object", path=path)
        if not isinstance(cookie.get("name"), str) or not isinstance(cookie.get("value"), str):
            raise SessionLoadError(f"cookies[{i}] needs string name and value", path=path)
    for i, origin in enumerate(origins):
        if not isinstance(origin, dict) or not isinstance(origin.get("origin"), str):
            raise SessionLoadError(f"origins[{i}] has no origin", path=path)

    state = dict(data)
    state["origins"] = origins
    return state


class SessionStore:
    """
    File-backed store for browser session state.

    One instance should be shared by every request in a process so that
    per-path write locks actually serialize overlapping saves.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, path: Path) -> asyncio.Lock:
        key = str(path.expanduser().resolve())
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @staticmethod
    def exists(path: str | Path) -> bool:
        return Path(path).expanduser().exists()

    async def load(self, path: str | Path) -> dict[str, Any] | None:
        """
        Load a storage_state snapshot.

        Returns:
            The snapshot, or None when the file is missing or corrupt.
        """
        path = Path(path).expanduser()
        try:
            data = await asyncio.to_thread(_read_json, path)
            state = validate_storage_state(data, str(path))
        except SessionLoadError as e:
            logger.warning(f"No usable browser state, starting fresh: {e}")
            return None

        logger.info(f"Loaded browser state from {path} ({len(state['cookies'])} cookies)")
        return state

    async def save(self, path: str | Path, state: dict[str, Any]) -> bool:
        """
        Persist a storage_state snapshot atomically.

        Returns:
            True on success. Failures are logged, never raised.
        """
        path = Path(path).expanduser()
        async with self._lock_for(path):
            try:
                await asyncio.to_thread(_write_json_atomic, path, state)
            except SessionSaveError as e:
                logger.error(f"Failed to save browser state: {e}")
                return False

        logger.info(f"Saved browser state to {path}")
        return True

    async def load_fingerprint(self, state_path: str | Path) -> SavedFingerprint | None:
        """Load the fingerprint companion of ``state_path`` (None if absent/corrupt)."""
        path = fingerprint_path(Path(state_path).expanduser())
        try:
            data = await asyncio.to_thread(_read_json, path)
            saved = SavedFingerprint.from_dict(data)
        except SessionLoadError as e:
            logger.debug(f"No saved fingerprint: {e}")
            return None
        except (KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Ignoring malformed fingerprint file {path}: {e}")
            return None

        logger.debug(f"Loaded fingerprint from {path} (domain={saved.google_domain})")
        return saved

    async def save_fingerprint(self, state_path: str | Path, saved: SavedFingerprint) -> bool:
        path = fingerprint_path(Path(state_path).expanduser())
        async with self._lock_for(path):
            try:
                await asyncio.to_thread(_write_json_atomic, path, saved.to_dict())
            except SessionSaveError as e:
                logger.error(f"Failed to save fingerprint: {e}")
                return False

        logger.debug(f"Saved fingerprint to {path}")
        return True


__all__ = [
    "HostFingerprint",
    "SavedFingerprint",
    "SessionStore",
    "fingerprint_path",
    "validate_storage_state",
]
