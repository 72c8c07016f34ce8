"""Runtime configuration for a watchdog run.

Resolution order: built-in defaults < settings file < CLI flags.

// [LAW:one-source-of-truth] Every runtime knob lives on WatchdogConfig.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Mapping

from vibe_watchdog.core.analysis import STRATEGIES, STRATEGY_OWNER
from vibe_watchdog.core.classifier import DEFAULT_EXCLUDES_FILENAME
from vibe_watchdog.core.trend import DEFAULT_THRESHOLD
from vibe_watchdog.io.reports import DEFAULT_MAX_REPORTS

DEFAULT_INTERVAL_MS = 10_000
DEFAULT_SERVER_PORT = 1109
DEFAULT_HOST = "127.0.0.1"
DEFAULT_SNAPSHOTS_DIR = "snapshots"
DEFAULT_REPORTS_DIR = "reports"


@dataclass(frozen=True)
class WatchdogConfig:
    """Resolved settings for one watchdog process."""

    interval: int = DEFAULT_INTERVAL_MS  # milliseconds between snapshots
    threshold: int = DEFAULT_THRESHOLD  # consecutive increases before warning
    max_reports: int = DEFAULT_MAX_REPORTS
    port: int = DEFAULT_SERVER_PORT  # 0 disables the report server
    host: str = DEFAULT_HOST
    reports_dir: str = DEFAULT_REPORTS_DIR
    snapshots_dir: str = DEFAULT_SNAPSHOTS_DIR
    excludes_file: str = DEFAULT_EXCLUDES_FILENAME
    strategy: str = STRATEGY_OWNER
    clear_reports: bool = False

    @property
    def interval_seconds(self) -> float:
        return self.interval / 1000.0

    @property
    def server_enabled(self) -> bool:
        return self.port > 0

    @classmethod
    def field_names(cls) -> frozenset[str]:
        return frozenset(f.name for f in dataclasses.fields(cls))

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> WatchdogConfig:
        """Defaults overlaid with recognized keys from a settings dict."""
        known = cls.field_names()
        return cls(**{k: v for k, v in settings.items() if k in known})

    def with_overrides(self, **overrides: Any) -> WatchdogConfig:
        """Copy with every non-None override applied."""
        known = self.field_names()
        changes = {k: v for k, v in overrides.items() if v is not None and k in known}
        return dataclasses.replace(self, **changes)

    def validate(self) -> list[str]:
        """Return human-readable problems; empty list means valid."""
        errors = []
        if self.interval <= 0:
            errors.append(f"interval must be positive (got {self.interval}ms)")
        if self.threshold < 1:
            errors.append(f"threshold must be at least 1 (got {self.threshold})")
        if self.max_reports < 1:
            errors.append(f"max-reports must be at least 1 (got {self.max_reports})")
        if not 0 <= self.port <= 65535:
            errors.append(f"port must be between 0 and 65535 (got {self.port})")
        if self.strategy not in STRATEGIES:
            errors.append(
                f"strategy must be one of {', '.join(STRATEGIES)} (got {self.strategy!r})"
            )
        return errors

    def to_settings(self) -> dict:
        """Persistable subset (run-scoped flags like clear_reports excluded)."""
        data = dataclasses.asdict(self)
        data.pop("clear_reports")
        return data
