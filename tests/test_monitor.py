"""Tests for MonitorSession, SessionRegistry and the Watchdog loop."""

import json
import threading

from tests.harness import make_snapshot_json
from vibe_watchdog.core.analysis import NodeCounts
from vibe_watchdog.pipeline.monitor import (
    MonitorSession,
    SessionRegistry,
    Watchdog,
    build_report,
)
from vibe_watchdog.pipeline.sources import SnapshotSourceError


class ScriptedSource:
    """Returns queued payloads; an exception instance in the queue is raised."""

    def __init__(self, *payloads):
        self.payloads = list(payloads)

    def take_snapshot(self):
        if not self.payloads:
            return None
        item = self.payloads.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


# ─── MonitorSession ──────────────────────────────────────────────────────────


def test_first_report_delta_equals_counts():
    session = MonitorSession()
    outcome = session.process(make_snapshot_json({"Enemy": 2, "Mesh": 1}))
    report = outcome.report

    assert set(report) == {"nodeCounts", "constructorCounts", "constructorCountsDelta"}
    assert report["constructorCountsDelta"] == report["constructorCounts"]
    assert outcome.previous_node_counts is None
    assert outcome.warnings == []


def test_delta_against_previous_snapshot():
    session = MonitorSession()
    session.process(make_snapshot_json({"Enemy": 2}))
    outcome = session.process(make_snapshot_json({"Enemy": 5, "Bullet": 1}))

    assert outcome.report["constructorCountsDelta"]["game"] == {"Bullet": 1, "Enemy": 3}
    assert outcome.previous_node_counts == NodeCounts()


def test_session_warns_after_threshold():
    session = MonitorSession(threshold=2)
    outcomes = [session.process(make_snapshot_json({"Mesh": n})) for n in (1, 2, 3)]
    assert [len(o.warnings) for o in outcomes] == [0, 0, 1]
    assert outcomes[-1].warnings[0].resource == "Mesh"
    assert session.cycles == 3


def test_skip_keeps_previous():
    session = MonitorSession()
    session.process(make_snapshot_json({"Mesh": 1}))
    previous = session.previous
    session.skip("browser went away")
    assert session.previous is previous


def test_build_report_is_json_serializable():
    session = MonitorSession()
    outcome = session.process(make_snapshot_json({"Scene": 1}))
    assert json.loads(json.dumps(build_report(outcome.result, None))) == outcome.report


def test_registry_isolates_sources():
    registry = SessionRegistry(MonitorSession)
    a, lock_a = registry.get("tab-a")
    b, _lock_b = registry.get("tab-b")
    again, lock_again = registry.get("tab-a")

    assert a is again and lock_a is lock_again
    assert a is not b
    assert registry.source_ids() == ["tab-a", "tab-b"]
    assert len(registry) == 2


# ─── Watchdog ────────────────────────────────────────────────────────────────


def test_run_once_saves_report(config, store, reports_dir):
    seen = []
    source = ScriptedSource(make_snapshot_json({"Mesh": 2}))
    watchdog = Watchdog(config, source, store, on_cycle=seen.append)

    outcome = watchdog.run_once()
    assert outcome.report_path is not None
    assert outcome.report_path.parent == reports_dir
    assert json.loads(outcome.report_path.read_text())["nodeCounts"]["meshCount"] == 2
    assert seen == [outcome]


def test_run_once_nothing_new(config, store):
    watchdog = Watchdog(config, ScriptedSource(), store)
    assert watchdog.run_once() is None
    assert store.list_reports() == []


def test_acquisition_failure_skips_cycle(config, store, caplog):
    source = ScriptedSource(
        make_snapshot_json({"Mesh": 1}),
        SnapshotSourceError("tab crashed"),
        OSError("disk gone"),
        make_snapshot_json({"Mesh": 2}),
    )
    watchdog = Watchdog(config, source, store)

    results = [watchdog.run_once() for _ in range(4)]
    assert [r is None for r in results] == [False, True, True, False]
    assert "tab crashed" in caplog.text
    assert results[-1].previous_node_counts.mesh_count == 1


def test_empty_payload_skips_cycle_and_keeps_streaks(config, store, caplog):
    payloads = [make_snapshot_json({"Mesh": n}) for n in (1, 2, 3)]
    source = ScriptedSource(*payloads, "", b"", make_snapshot_json({"Mesh": 4}))
    watchdog = Watchdog(config, source, store)

    results = [watchdog.run_once() for _ in range(6)]
    assert [r is None for r in results] == [False, False, False, True, True, False]
    assert "empty snapshot payload" in caplog.text
    assert len(store.list_reports()) == 4
    assert results[-1].previous_node_counts.mesh_count == 3
    assert watchdog.session.detector.streaks["mesh_count"] == 3


def test_process_empty_file_is_skipped(config, store, snapshots_dir):
    path = snapshots_dir / "partial.heapsnapshot"
    path.write_text("")
    assert Watchdog(config, ScriptedSource(), store).process_file(path) is None
    assert store.list_reports() == []


def test_process_file(config, store, snapshots_dir):
    path = snapshots_dir / "manual.heapsnapshot"
    path.write_text(make_snapshot_json({"Group": 3}))
    outcome = Watchdog(config, ScriptedSource(), store).process_file(path)
    assert outcome.result.node_counts.group_count == 3


def test_run_stops_on_event(config, store):
    stop_event = threading.Event()
    cycles = []

    def on_cycle(outcome):
        cycles.append(outcome)
        if len(cycles) == 3:
            stop_event.set()

    payloads = [make_snapshot_json({"Mesh": n}) for n in (1, 2, 3, 4, 5)]
    watchdog = Watchdog(config, ScriptedSource(*payloads), store, on_cycle=on_cycle)

    thread = threading.Thread(target=watchdog.run, args=(stop_event,), daemon=True)
    thread.start()
    thread.join(timeout=5)

    assert not thread.is_alive()
    assert len(cycles) == 3
    assert len(store.list_reports()) >= 1


def test_run_survives_unexpected_errors(config, store, caplog):
    stop_event = threading.Event()
    calls = []

    class FlakySource:
        def take_snapshot(self):
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("unexpected")
            stop_event.set()
            return None

    Watchdog(config, FlakySource(), store).run(stop_event)
    assert len(calls) == 2
    assert "unexpected error in watchdog cycle" in caplog.text
