"""CLI entry points for vibe-watchdog."""

import argparse
import json
import logging
import signal
import sys
import threading
from pathlib import Path

import vibe_watchdog.io.logging_setup
import vibe_watchdog.io.settings
from vibe_watchdog.app.config import WatchdogConfig
from vibe_watchdog.core.analysis import STRATEGIES
from vibe_watchdog.core.classifier import TypeClassifier
from vibe_watchdog.display import ConsoleDisplay
from vibe_watchdog.io.reports import ReportStore
from vibe_watchdog.pipeline.monitor import MonitorSession, SessionRegistry, Watchdog
from vibe_watchdog.pipeline.server import make_handler_class, start_server, stop_server
from vibe_watchdog.pipeline.sources import (
    DirectorySnapshotSource,
    FileSnapshotSource,
    SnapshotSourceError,
)
from vibe_watchdog.tui.app import ReportViewerApp

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    # Option defaults are None so the settings file can fill them in.
    parser = argparse.ArgumentParser(
        description="Heap snapshot leak watchdog for WebGL / Three.js applications"
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--once",
        metavar="FILE",
        default=None,
        help="Analyze one .heapsnapshot file, print the report and exit",
    )
    mode.add_argument(
        "--watch",
        action="store_true",
        default=False,
        help="Analyze snapshot files as they are written instead of polling",
    )
    mode.add_argument(
        "--view",
        action="store_true",
        default=False,
        help="Open the terminal report viewer on the reports directory and exit",
    )
    parser.add_argument(
        "--snapshots",
        dest="snapshots_dir",
        metavar="DIR",
        default=None,
        help="Directory polled for .heapsnapshot files (default: ./snapshots)",
    )
    parser.add_argument(
        "--interval", type=int, default=None, help="Snapshot interval in ms (default: 10000)"
    )
    parser.add_argument(
        "--threshold",
        type=int,
        default=None,
        help="Consecutive increases before a leak warning (default: 3)",
    )
    parser.add_argument(
        "--max-reports",
        dest="max_reports",
        type=int,
        default=None,
        help="Report files to keep (default: 20)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Report server port, 0 disables the server (default: 1109)",
    )
    parser.add_argument(
        "--host", type=str, default=None, help="Report server bind address (default: 127.0.0.1)"
    )
    parser.add_argument(
        "--reports-dir", dest="reports_dir", default=None, help="Report directory (default: ./reports)"
    )
    parser.add_argument(
        "--clear-reports",
        dest="clear_reports",
        action="store_true",
        default=None,
        help="Delete existing reports before starting",
    )
    parser.add_argument(
        "--excludes",
        dest="excludes_file",
        metavar="FILE",
        default=None,
        help="Comma-separated constructor names to leave out of reports "
        "(default: manual-excludes.txt)",
    )
    parser.add_argument(
        "--strategy",
        choices=STRATEGIES,
        default=None,
        help="Classify objects by their own name (owner) or their constructor edge",
    )
    parser.add_argument(
        "--json",
        dest="as_json",
        action="store_true",
        default=False,
        help="With --once, print the report as JSON",
    )
    parser.add_argument(
        "--save-settings",
        action="store_true",
        default=False,
        help="Persist the resolved options to the settings file",
    )
    return parser


def resolve_config(args: argparse.Namespace, settings: dict | None = None) -> WatchdogConfig:
    """Defaults < settings file < command-line flags."""
    if settings is None:
        settings = vibe_watchdog.io.settings.load_watchdog_settings()
    overrides = {name: getattr(args, name, None) for name in WatchdogConfig.field_names()}
    return WatchdogConfig.from_settings(settings).with_overrides(**overrides)


def run_once(path: str, config: WatchdogConfig, classifier: TypeClassifier, as_json: bool = False) -> int:
    """Analyze a single snapshot file. Returns a process exit code."""
    try:
        snapshot = FileSnapshotSource(path).take_snapshot()
    except SnapshotSourceError as e:
        logger.error("%s", e)
        return 1

    session = MonitorSession(classifier, config.threshold, config.strategy)
    outcome = session.process(snapshot)
    if as_json:
        print(json.dumps(outcome.report, indent=2))
    else:
        ConsoleDisplay().show(outcome)
    return 0


def run_viewer(store: ReportStore, refresh_seconds: float | None) -> None:
    ReportViewerApp(store, refresh_interval=refresh_seconds).run()


def _install_stop_handlers(stop_event: threading.Event) -> None:
    def _stop(signum, _frame):
        logger.info("received %s, shutting down watchdog", signal.Signals(signum).name)
        stop_event.set()

    signal.signal(signal.SIGINT, _stop)
    signal.signal(signal.SIGTERM, _stop)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # [LAW:single-enforcer] Runtime logger configuration is centralized in io.logging_setup.
    log_runtime = vibe_watchdog.io.logging_setup.configure(
        session_name="viewer" if args.view else "watchdog",
        log_to_stderr=not args.view,
    )
    logger.info(
        "logging configured level=%s file=%s", log_runtime.level_name, log_runtime.file_path
    )

    config = resolve_config(args)
    errors = config.validate()
    if errors:
        parser.error("; ".join(errors))

    if args.save_settings:
        vibe_watchdog.io.settings.save_settings(config.to_settings())
        print(f"Settings saved to {vibe_watchdog.io.settings.get_config_path()}")

    store = ReportStore(config.reports_dir)
    if args.view:
        run_viewer(store, config.interval_seconds)
        return 0

    classifier = TypeClassifier.from_excludes_file(config.excludes_file)
    if args.once:
        return run_once(args.once, config, classifier, as_json=args.as_json)

    try:
        store.initialize()
    except OSError as e:
        print(f"Cannot create reports directory {store.reports_dir}: {e}", file=sys.stderr)
        return 1
    if config.clear_reports:
        store.clear_reports()

    display = ConsoleDisplay()
    server = None
    if config.server_enabled:
        sessions = SessionRegistry(
            lambda: MonitorSession(classifier, config.threshold, config.strategy)
        )
        handler_class = make_handler_class(store, config, sessions, on_cycle=display)
        try:
            server, actual_port, _thread = start_server(config.host, config.port, handler_class)
        except OSError as e:
            print(f"Cannot start report server on {config.host}:{config.port}: {e}", file=sys.stderr)
            return 1
        print(f"📡 Report server: http://{config.host}:{actual_port}/api/reports")

    Path(config.snapshots_dir).mkdir(parents=True, exist_ok=True)
    source = DirectorySnapshotSource(config.snapshots_dir)
    watchdog = Watchdog(config, source, store, classifier, on_cycle=display)

    stop_event = threading.Event()
    _install_stop_handlers(stop_event)
    print(f"🐶 Watching {config.snapshots_dir} (reports in {store.reports_dir})")
    try:
        if args.watch:
            watchdog.watch(stop_event)
        else:
            watchdog.run(stop_event)
    finally:
        if server is not None:
            stop_server(server)
    return 0


def view_main(argv: list[str] | None = None) -> int:
    """Entry point for vibe-watchdog-view."""
    parser = argparse.ArgumentParser(description="Browse vibe-watchdog reports")
    parser.add_argument(
        "reports_dir", nargs="?", default=None, help="Report directory (default: from settings)"
    )
    parser.add_argument(
        "--refresh",
        type=float,
        default=None,
        help="Auto-refresh period in seconds, 0 disables (default: snapshot interval)",
    )
    args = parser.parse_args(argv)

    vibe_watchdog.io.logging_setup.configure(session_name="viewer", log_to_stderr=False)
    config = WatchdogConfig.from_settings(vibe_watchdog.io.settings.load_watchdog_settings())
    config = config.with_overrides(reports_dir=args.reports_dir)
    refresh = config.interval_seconds if args.refresh is None else args.refresh
    run_viewer(ReportStore(config.reports_dir), refresh or None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
