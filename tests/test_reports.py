"""Tests for report persistence and rotation."""

import json
import threading
from datetime import datetime, timedelta, timezone

from tests.harness import make_report, write_report
from vibe_watchdog.io.reports import (
    ReportStore,
    format_timestamp,
    parse_report_timestamp,
    report_filename,
)

T0 = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


def test_report_filename_format():
    assert report_filename(T0) == "report-2026-10-19T12-00-00Z.json"


def test_report_filename_naive_is_utc():
    assert report_filename(T0.replace(tzinfo=None)) == report_filename(T0)


def test_parse_report_timestamp_roundtrip():
    assert parse_report_timestamp(report_filename(T0)) == T0


def test_parse_report_timestamp_rejects_other_names():
    assert parse_report_timestamp("notes.json") is None
    assert parse_report_timestamp("report-yesterday.json") is None
    assert parse_report_timestamp("report-2026-13-45T99-00-00Z.json") is None


def test_format_timestamp():
    assert format_timestamp(T0) == "2026-10-19T12:00:00.000Z"


def test_initialize_creates_directory(tmp_path):
    store = ReportStore(tmp_path / "a" / "b")
    store.initialize()
    assert store.reports_dir.is_dir()


def test_save_report_writes_indented_json(store):
    path = store.save_report(make_report(mesh_count=3), max_reports=5, now=T0)
    assert path.name == "report-2026-10-19T12-00-00Z.json"
    text = path.read_text()
    assert text.startswith('{\n  "nodeCounts"')
    assert json.loads(text)["nodeCounts"]["meshCount"] == 3


def test_save_report_failure_returns_none(tmp_path, caplog):
    store = ReportStore(tmp_path / "missing")
    assert store.save_report(make_report(), now=T0) is None
    assert "error saving report" in caplog.text


def test_rotation_keeps_newest(store, reports_dir):
    for i in range(5):
        store.save_report(make_report(mesh_count=i), max_reports=3, now=T0 + timedelta(seconds=i))

    names = sorted(p.name for p in reports_dir.iterdir())
    assert names == [report_filename(T0 + timedelta(seconds=i)) for i in (2, 3, 4)]


def test_rotate_ignores_foreign_files(store, reports_dir):
    (reports_dir / "notes.txt").write_text("keep me")
    for i in range(3):
        write_report(reports_dir, T0 + timedelta(minutes=i))

    result = store.rotate(1)
    assert result["removed"] == 2
    assert result["kept"] == 1
    assert (reports_dir / "notes.txt").exists()


def test_list_reports_newest_first_with_timestamp(store, reports_dir):
    write_report(reports_dir, T0, make_report(mesh_count=1))
    write_report(reports_dir, T0 + timedelta(hours=1), make_report(mesh_count=2))

    reports = store.list_reports()
    assert [r["nodeCounts"]["meshCount"] for r in reports] == [2, 1]
    assert reports[0]["timestamp"] == "2026-10-19T13:00:00.000Z"
    assert store.latest_report()["nodeCounts"]["meshCount"] == 2


def test_list_reports_skips_unreadable(store, reports_dir, caplog):
    write_report(reports_dir, T0)
    (reports_dir / report_filename(T0 + timedelta(seconds=1))).write_text("{broken")
    (reports_dir / report_filename(T0 + timedelta(seconds=2))).write_text("[1, 2]")

    assert len(store.list_reports()) == 1
    assert "failed to read or parse" in caplog.text


def test_list_reports_missing_dir(tmp_path):
    store = ReportStore(tmp_path / "nothing")
    assert store.list_reports() == []
    assert store.latest_report() is None


def test_clear_reports(store, reports_dir):
    write_report(reports_dir, T0)
    write_report(reports_dir, T0 + timedelta(seconds=1))
    (reports_dir / "other.json").write_text("{}")

    assert store.clear_reports() == 2
    assert [p.name for p in reports_dir.iterdir()] == ["other.json"]


def test_clear_reports_missing_dir(tmp_path):
    assert ReportStore(tmp_path / "nothing").clear_reports() == 0


def test_same_second_saves_are_all_kept(store, reports_dir):
    first = store.save_report(make_report(mesh_count=1), max_reports=5, now=T0)
    second = store.save_report(make_report(mesh_count=2), max_reports=5, now=T0)
    third = store.save_report(make_report(mesh_count=3), max_reports=5, now=T0)

    assert [p.name for p in (first, second, third)] == [
        "report-2026-10-19T12-00-00Z.json",
        "report-2026-10-19T12-00-00Z-1.json",
        "report-2026-10-19T12-00-00Z-2.json",
    ]
    assert parse_report_timestamp(third.name) == T0
    assert [r["nodeCounts"]["meshCount"] for r in store.list_reports()] == [3, 2, 1]


def test_same_second_rotation_drops_lowest_sequence(store, reports_dir):
    for i in range(3):
        store.save_report(make_report(mesh_count=i), max_reports=2, now=T0)
    assert sorted(p.name for p in reports_dir.iterdir()) == [
        "report-2026-10-19T12-00-00Z-1.json",
        "report-2026-10-19T12-00-00Z-2.json",
    ]


def test_concurrent_saves_never_overwrite(store, reports_dir):
    barrier = threading.Barrier(8)

    def save(n):
        barrier.wait()
        store.save_report(make_report(mesh_count=n), max_reports=20, now=T0)

    threads = [threading.Thread(target=save, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)

    counts = sorted(r["nodeCounts"]["meshCount"] for r in store.list_reports())
    assert counts == list(range(8))
