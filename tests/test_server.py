"""Live HTTP tests for the report server."""

from datetime import datetime, timedelta, timezone

import pytest
import requests

from tests.harness import make_report, make_snapshot_json, write_report
from vibe_watchdog.pipeline.monitor import MonitorSession, SessionRegistry
from vibe_watchdog.pipeline.server import make_handler_class, start_server, stop_server

T0 = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def server(store, config):
    cycles = []
    sessions = SessionRegistry(lambda: MonitorSession(threshold=config.threshold))
    handler_class = make_handler_class(store, config, sessions, on_cycle=cycles.append)
    srv, port, _thread = start_server("127.0.0.1", 0, handler_class)
    srv.cycles = cycles
    srv.sessions = sessions
    srv.base_url = f"http://127.0.0.1:{port}"
    yield srv
    stop_server(srv)


def test_index_lists_endpoints(server):
    resp = requests.get(server.base_url + "/", timeout=5)
    assert resp.status_code == 200
    assert resp.json()["endpoints"]["reports"] == "/api/reports"


def test_config_endpoint(server, config):
    resp = requests.get(server.base_url + "/api/config", timeout=5)
    assert resp.json() == {"snapshotInterval": config.interval, "threshold": config.threshold}
    assert resp.headers["Access-Control-Allow-Origin"] == "*"


def test_reports_newest_first(server, reports_dir):
    write_report(reports_dir, T0, make_report(mesh_count=1))
    write_report(reports_dir, T0 + timedelta(minutes=1), make_report(mesh_count=2))

    reports = requests.get(server.base_url + "/api/reports", timeout=5).json()
    assert [r["nodeCounts"]["meshCount"] for r in reports] == [2, 1]
    assert reports[0]["timestamp"] == "2026-10-19T12:01:00.000Z"


def test_reports_empty(server):
    assert requests.get(server.base_url + "/api/reports", timeout=5).json() == []


def test_latest_report(server, reports_dir):
    assert requests.get(server.base_url + "/api/reports/latest", timeout=5).status_code == 404
    write_report(reports_dir, T0, make_report(geometry_count=4))
    resp = requests.get(server.base_url + "/api/reports/latest", timeout=5)
    assert resp.status_code == 200
    assert resp.json()["nodeCounts"]["geometryCount"] == 4


def test_unknown_route(server):
    resp = requests.get(server.base_url + "/api/nothing", timeout=5)
    assert resp.status_code == 404
    assert "error" in resp.json()


def test_options_preflight(server):
    resp = requests.options(server.base_url + "/api/snapshots", timeout=5)
    assert resp.status_code == 204
    assert "POST" in resp.headers["Access-Control-Allow-Methods"]


def test_push_snapshot_saves_report(server, store):
    resp = requests.post(
        server.base_url + "/api/snapshots?source=tab-1",
        data=make_snapshot_json({"Mesh": 2, "Enemy": 1}),
        timeout=5,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["source"] == "tab-1"
    assert body["report"]["nodeCounts"]["meshCount"] == 2
    assert body["report"]["constructorCounts"]["game"] == {"Enemy": 1}
    assert body["warnings"] == []
    assert body["saved"].startswith("report-")
    assert len(store.list_reports()) == 1
    assert len(server.cycles) == 1
    assert server.cycles[0].report_path.name == body["saved"]


def test_push_empty_body_rejected(server):
    resp = requests.post(server.base_url + "/api/snapshots", data=b"", timeout=5)
    assert resp.status_code == 400


def test_push_sessions_are_per_source(server):
    def push(source, meshes):
        return requests.post(
            f"{server.base_url}/api/snapshots?source={source}",
            data=make_snapshot_json({"Mesh": meshes}),
            timeout=5,
        ).json()

    # tab-a grows steadily; tab-b interleaves with smaller counts.
    push("tab-a", 1)
    push("tab-b", 100)
    push("tab-a", 2)
    push("tab-b", 50)
    push("tab-a", 3)
    push("tab-b", 10)
    warnings = push("tab-a", 4)["warnings"]

    assert [w["resource"] for w in warnings] == ["Mesh"]
    assert warnings[0]["streak"] == 3
    assert server.sessions.source_ids() == ["tab-a", "tab-b"]


def test_push_sources_keep_separate_reports(server, store):
    for source_id, meshes in (("tab-a", 1), ("tab-b", 2)):
        resp = requests.post(
            server.base_url + f"/api/snapshots?source={source_id}",
            data=make_snapshot_json({"Mesh": meshes}),
            timeout=5,
        )
        assert resp.status_code == 200

    saved = {c.report_path for c in server.cycles}
    assert len(saved) == 2
    assert all(path.exists() for path in saved)
    assert sorted(r["nodeCounts"]["meshCount"] for r in store.list_reports()) == [1, 2]


def test_push_default_source(server):
    body = requests.post(
        server.base_url + "/api/snapshots", data=make_snapshot_json({"Group": 1}), timeout=5
    ).json()
    assert body["source"] == "default"


def test_push_garbage_still_answers(server):
    resp = requests.post(server.base_url + "/api/snapshots", data=b"{not json", timeout=5)
    assert resp.status_code == 200
    assert resp.json()["report"]["nodeCounts"]["meshCount"] == 0
