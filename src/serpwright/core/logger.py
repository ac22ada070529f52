"""
Process logging setup.

Call ``setup_logging()`` once from an entry point (CLI, server). Library
modules only ever do ``logger = logging.getLogger(__name__)``.

Console output goes to stderr so the CLI can keep stdout for JSON.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_logging_configured = False


def setup_logging(level: str | None = None, log_file: str | None = None) -> None:
    """Configure the root logger.

    Args:
        level: Log level name. Defaults to settings.LOG_LEVEL.
        log_file: Optional rotating log file. Defaults to settings.LOG_FILE.
    """
    global _logging_configured

    if _logging_configured:
        return

    level = level or settings.LOG_LEVEL
    log_level = getattr(logging, level.upper(), logging.INFO)
    log_file = log_file or settings.LOG_FILE

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            handlers.append(
                RotatingFileHandler(
                    log_file,
                    maxBytes=settings.LOG_MAX_BYTES,
                    backupCount=settings.LOG_BACKUP_COUNT,
                    encoding="utf-8",
                )
            )
        except OSError as e:
            print(f"Could not open log file {log_file}: {e}", file=sys.stderr)

    logging.basicConfig(level=log_level, format=LOG_FORMAT, datefmt=DATE_FORMAT, handlers=handlers, force=True)

    # Playwright's driver and asyncio are chatty at DEBUG
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    _logging_configured = True
