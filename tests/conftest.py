"""Pytest configuration and shared fixtures for vibe-watchdog tests."""

import logging
from pathlib import Path

import pytest

from tests.harness import SnapshotBuilder, make_snapshot
from vibe_watchdog.app.config import WatchdogConfig
from vibe_watchdog.io import logging_setup
from vibe_watchdog.core.classifier import TypeClassifier
from vibe_watchdog.io.reports import ReportStore


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep settings and log files out of the real home directory."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("VIBE_WATCHDOG_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("VIBE_WATCHDOG_LOG_FILE", raising=False)
    monkeypatch.delenv("VIBE_WATCHDOG_LOG_LEVEL", raising=False)


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo logging_setup.configure() so caplog sees records in later tests."""
    yield
    logger = logging.getLogger(logging_setup.LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    logging.captureWarnings(False)
    logging_setup._RUNTIME = None


# ---------------------------------------------------------------------------
# Snapshot fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def snapshot_builder():
    return SnapshotBuilder()


@pytest.fixture
def scene_snapshot():
    """Small scene: a geometry, a material, a game controller, engine noise."""
    return make_snapshot({
        "BufferGeometry": 1,
        "MeshStandardMaterial": 1,
        "PlayerController": 1,
        "Object": 4,
        "(system)": 2,
    })


@pytest.fixture
def classifier():
    return TypeClassifier()


# ---------------------------------------------------------------------------
# Report / config fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def reports_dir(tmp_path) -> Path:
    path = tmp_path / "reports"
    path.mkdir()
    return path


@pytest.fixture
def store(reports_dir):
    return ReportStore(reports_dir)


@pytest.fixture
def snapshots_dir(tmp_path) -> Path:
    path = tmp_path / "snapshots"
    path.mkdir()
    return path


@pytest.fixture
def config(reports_dir, snapshots_dir):
    return WatchdogConfig(
        interval=50,
        threshold=3,
        max_reports=5,
        port=0,
        reports_dir=str(reports_dir),
        snapshots_dir=str(snapshots_dir),
    )
