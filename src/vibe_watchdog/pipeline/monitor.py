"""Monitor session and watchdog loop.

MonitorSession is the per-source state machine: analysis, delta against the
previous snapshot, report assembly, trend detection. Watchdog drives one
session from a SnapshotSource on a fixed interval and persists each report.
SessionRegistry hands the report server one session per pushing source.

// [LAW:single-enforcer] Report assembly happens only in MonitorSession.process().
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from vibe_watchdog.app.config import WatchdogConfig
from vibe_watchdog.core.analysis import (
    STRATEGY_OWNER,
    AnalysisResult,
    NodeCounts,
    analyze_snapshot,
)
from vibe_watchdog.core.classifier import TypeClassifier
from vibe_watchdog.core.delta import compute_constructor_delta
from vibe_watchdog.core.trend import DEFAULT_THRESHOLD, LeakWarning, TrendDetector
from vibe_watchdog.io.reports import ReportStore
from vibe_watchdog.pipeline.sources import (
    FileSnapshotSource,
    SnapshotSource,
    SnapshotSourceError,
    watch_snapshot_files,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CycleOutcome:
    """Everything one processed snapshot produced."""

    result: AnalysisResult
    report: dict
    warnings: list[LeakWarning] = field(default_factory=list)
    previous_node_counts: NodeCounts | None = None
    report_path: Path | None = None


def build_report(result: AnalysisResult, previous: AnalysisResult | None) -> dict:
    """Report JSON for *result*: nodeCounts, constructorCounts, constructorCountsDelta."""
    report = result.to_dict()
    report["constructorCountsDelta"] = compute_constructor_delta(
        result.constructor_counts,
        previous.constructor_counts if previous is not None else None,
    )
    return report


class MonitorSession:
    """Trend state and previous result for exactly one snapshot source."""

    def __init__(
        self,
        classifier: TypeClassifier | None = None,
        threshold: int = DEFAULT_THRESHOLD,
        strategy: str = STRATEGY_OWNER,
    ):
        self.classifier = classifier or TypeClassifier()
        self.strategy = strategy
        self.detector = TrendDetector(threshold)
        self.cycles = 0

    @property
    def previous(self) -> AnalysisResult | None:
        return self.detector.previous

    def process(self, snapshot: str | bytes) -> CycleOutcome:
        previous = self.detector.previous
        result = analyze_snapshot(snapshot, self.classifier, strategy=self.strategy)
        report = build_report(result, previous)
        warnings = self.detector.observe(result)
        self.cycles += 1
        return CycleOutcome(
            result=result,
            report=report,
            warnings=warnings,
            previous_node_counts=previous.node_counts if previous is not None else None,
        )

    def skip(self, reason: str = "") -> None:
        """Record an interval with no snapshot; streaks and previous are kept."""
        if reason:
            logger.error("no snapshot this interval: %s", reason)
        self.detector.observe(None)


class SessionRegistry:
    """Lazily created MonitorSession + lock per source id."""

    def __init__(self, factory: Callable[[], MonitorSession]):
        self._factory = factory
        self._lock = threading.Lock()
        self._sessions: dict[str, tuple[MonitorSession, threading.Lock]] = {}

    def get(self, source_id: str) -> tuple[MonitorSession, threading.Lock]:
        with self._lock:
            entry = self._sessions.get(source_id)
            if entry is None:
                logger.info("new monitor session for source %r", source_id)
                entry = (self._factory(), threading.Lock())
                self._sessions[source_id] = entry
            return entry

    def source_ids(self) -> list[str]:
        with self._lock:
            return sorted(self._sessions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


# ─── Watchdog loop ───────────────────────────────────────────────────────────


class Watchdog:
    """Acquire → analyze → save, once per interval."""

    def __init__(
        self,
        config: WatchdogConfig,
        source: SnapshotSource,
        store: ReportStore,
        classifier: TypeClassifier | None = None,
        on_cycle: Callable[[CycleOutcome], None] | None = None,
    ):
        self.config = config
        self.source = source
        self.store = store
        self.on_cycle = on_cycle
        self.session = MonitorSession(classifier, config.threshold, config.strategy)

    def _cycle(self, acquire: Callable[[], str | None]) -> CycleOutcome | None:
        try:
            snapshot = acquire()
        except (SnapshotSourceError, OSError) as e:
            self.session.skip(str(e))
            return None
        if snapshot is None:
            return None
        if not snapshot:
            # Zero-byte file caught mid-write: no comparison, streaks kept.
            self.session.skip("empty snapshot payload")
            return None

        outcome = self.session.process(snapshot)
        path = self.store.save_report(outcome.report, self.config.max_reports)
        outcome = dataclasses.replace(outcome, report_path=path)
        if self.on_cycle is not None:
            self.on_cycle(outcome)
        return outcome

    def run_once(self) -> CycleOutcome | None:
        """One interval. None when nothing was analyzed."""
        return self._cycle(self.source.take_snapshot)

    def process_file(self, path: str | Path) -> CycleOutcome | None:
        return self._cycle(FileSnapshotSource(path).take_snapshot)

    def run(self, stop_event: threading.Event) -> None:
        """Immediate first cycle, then one per interval until *stop_event* is set."""
        logger.info(
            "starting watchdog: interval %dms, threshold %d",
            self.config.interval, self.config.threshold,
        )
        while not stop_event.is_set():
            try:
                self.run_once()
            except Exception:
                # [LAW:single-enforcer] One bad cycle never stops the loop.
                logger.exception("unexpected error in watchdog cycle")
            if stop_event.wait(self.config.interval_seconds):
                break
        logger.info("watchdog stopped after %d cycle(s)", self.session.cycles)

    def watch(self, stop_event: threading.Event | None = None) -> None:
        """Process each snapshot file written to the snapshots directory."""
        directory = self.config.snapshots_dir
        logger.info("watching %s for new snapshots", directory)
        for path in watch_snapshot_files(directory, stop_event):
            try:
                self.process_file(path)
            except Exception:
                logger.exception("unexpected error processing %s", path)
