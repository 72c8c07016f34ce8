"""Centralized logging bootstrap for the watchdog runtime.

// [LAW:single-enforcer] Logger handler wiring is enforced in this module only.
// [LAW:one-source-of-truth] Runtime log path/level are derived here and returned to callers.

Leak warnings and per-interval counts go through these handlers, so the
rotating file doubles as the session's leak history.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOGGER_NAME = "vibe_watchdog"
CONSOLE_RECORD_ATTR = "vibe_watchdog_console"
_DEFAULT_LOG_DIR = "~/.local/share/vibe-watchdog/logs"


@dataclass(frozen=True)
class LoggingRuntime:
    """Resolved runtime logging configuration."""

    level_name: str
    level: int
    file_path: str | None


_RUNTIME: LoggingRuntime | None = None


def _parse_level(raw: str | None) -> tuple[str, int]:
    normalized = str(raw or "INFO").strip().upper()
    level = logging.getLevelName(normalized)
    # getLevelName() maps unknown names to the string "Level X".
    if not isinstance(level, int):
        level = logging.INFO
    return logging.getLevelName(level), level


def _log_file_stem(session_name: str) -> str:
    stem = "".join(ch if (ch.isalnum() or ch in {"-", "_"}) else "-" for ch in session_name)
    return stem.strip("-_") or "watchdog"


def _default_log_path(session_name: str) -> Path:
    log_dir = Path(os.environ.get("VIBE_WATCHDOG_LOG_DIR", _DEFAULT_LOG_DIR)).expanduser()
    ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    return log_dir / f"{_log_file_stem(session_name)}-{ts}-{os.getpid()}.log"


def _console_filter(record: logging.LogRecord) -> bool:
    # Records already rendered by the rich console are file-only.
    return not getattr(record, CONSOLE_RECORD_ATTR, False)


def _make_stream_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter("%(asctime)s [%(name)s] %(levelname)s %(message)s", datefmt="%H:%M:%S")
    )
    handler.addFilter(_console_filter)
    return handler


def _make_file_handler(level: int, file_path: Path) -> logging.Handler:
    handler = RotatingFileHandler(
        file_path,
        maxBytes=20 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    return handler


def configure(
    session_name: str = "watchdog",
    *,
    level: str | None = None,
    log_to_file: bool = True,
    log_to_stderr: bool = True,
) -> LoggingRuntime:
    """Configure the vibe_watchdog logger hierarchy.

    Level comes from *level*, else VIBE_WATCHDOG_LOG_LEVEL, else INFO. The
    file handler writes to VIBE_WATCHDOG_LOG_FILE or a per-run file under
    VIBE_WATCHDOG_LOG_DIR; an unwritable log directory degrades to stderr only.
    Full-screen callers pass log_to_stderr=False so records never hit the terminal.

    Idempotent: repeated calls return the originally configured runtime.
    """
    global _RUNTIME
    if _RUNTIME is not None:
        return _RUNTIME

    level_name, level_value = _parse_level(level or os.environ.get("VIBE_WATCHDOG_LOG_LEVEL"))

    # [LAW:single-enforcer] All vibe_watchdog module loggers propagate to this one logger.
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level_value)
    logger.propagate = False
    logger.handlers.clear()
    if log_to_stderr:
        logger.addHandler(_make_stream_handler(level_value))

    file_path: Path | None = None
    if log_to_file:
        file_path = Path(os.environ.get("VIBE_WATCHDOG_LOG_FILE") or _default_log_path(session_name))
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            logger.addHandler(_make_file_handler(level_value, file_path))
        except OSError as e:
            logger.warning("file logging disabled, cannot write %s: %s", file_path, e)
            file_path = None

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    # Keep third-party logging quiet unless it is warning+.
    root = logging.getLogger()
    if root.level > logging.WARNING:
        root.setLevel(logging.WARNING)

    logging.captureWarnings(True)

    _RUNTIME = LoggingRuntime(
        level_name=level_name,
        level=level_value,
        file_path=str(file_path) if file_path else None,
    )
    return _RUNTIME


def get_runtime() -> LoggingRuntime | None:
    """Return configured logging runtime, if configure() has run."""
    return _RUNTIME
