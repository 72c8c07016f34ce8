"""Test harness for vibe-watchdog.

Re-exports the public API for convenient imports:
    from tests.harness import SnapshotBuilder, make_snapshot, run_app, ...
"""

from tests.harness.app_runner import run_app
from tests.harness.reports import make_report, write_report
from tests.harness.snapshots import (
    EDGE_FIELDS,
    NODE_FIELDS,
    SnapshotBuilder,
    make_snapshot,
    make_snapshot_json,
)

__all__ = [
    "EDGE_FIELDS",
    "NODE_FIELDS",
    "SnapshotBuilder",
    "make_report",
    "make_snapshot",
    "make_snapshot_json",
    "run_app",
    "write_report",
]
