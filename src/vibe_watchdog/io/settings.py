"""Settings file I/O for the watchdog.

Manages a JSON settings file at XDG_CONFIG_HOME/vibe-watchdog/settings.json.
Keys mirror the long CLI flags with underscores (interval, threshold,
max_reports, port, host, reports_dir, excludes_file, strategy); app.config
layers CLI flags on top of whatever this module returns.

Import as: import vibe_watchdog.io.settings
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from types import MappingProxyType

logger = logging.getLogger(__name__)

# [LAW:one-source-of-truth] Recognized settings keys and their value types.
SETTING_TYPES = MappingProxyType({
    "interval": int,
    "threshold": int,
    "max_reports": int,
    "port": int,
    "host": str,
    "reports_dir": str,
    "snapshots_dir": str,
    "excludes_file": str,
    "strategy": str,
})


def get_config_path() -> Path:
    """Return path to settings file.

    Uses XDG_CONFIG_HOME (default ~/.config) / vibe-watchdog / settings.json.
    """
    config_home = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return Path(config_home) / "vibe-watchdog" / "settings.json"


def load_settings(path: Path | None = None) -> dict:
    """Load the raw settings dict. Returns empty dict on missing/corrupt file."""
    path = path or get_config_path()
    # [LAW:dataflow-not-control-flow] Always attempt read; empty dict is the "no data" value.
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("ignoring unreadable settings file %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("ignoring settings file %s: top level is not an object", path)
        return {}
    return data


def load_watchdog_settings(path: Path | None = None) -> dict:
    """Load recognized settings, coerced to their declared types.

    Unknown keys and values that cannot be coerced are dropped with a warning
    so a typo never overrides a default with garbage.
    """
    settings = {}
    for key, value in load_settings(path).items():
        expected = SETTING_TYPES.get(key)
        if expected is None:
            logger.warning("ignoring unknown setting %r", key)
            continue
        if isinstance(value, bool) or value is None:
            logger.warning("ignoring setting %r: invalid value %r", key, value)
            continue
        try:
            settings[key] = expected(value)
        except (TypeError, ValueError):
            logger.warning("ignoring setting %r: invalid value %r", key, value)
    return settings


def save_settings(data: dict, path: Path | None = None) -> None:
    """Atomic write of settings dict to JSON file.

    Creates parent directories if needed. Writes to temp file then renames
    to avoid partial writes on crash.
    """
    path = path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    # Atomic: write temp → rename
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
        os.replace(tmp_path, path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def save_setting(key: str, value, path: Path | None = None) -> None:
    """Save a single setting by key (merge into existing settings)."""
    if key not in SETTING_TYPES:
        raise KeyError(f"unknown setting: {key}")
    data = load_settings(path)
    data[key] = value
    save_settings(data, path)
