"""Report server: JSON API over saved reports plus a snapshot push endpoint.

Routes:
    GET  /                      endpoint index
    GET  /api/reports           all reports, newest first
    GET  /api/reports/latest    newest report (404 when none)
    GET  /api/config            {"snapshotInterval": ms, "threshold": n}
    POST /api/snapshots?source= analyze the request body as a heap snapshot
    OPTIONS *                   CORS preflight
"""

import dataclasses
import http.server
import json
import logging
import threading
from collections.abc import Callable
from urllib.parse import parse_qs, urlparse

from vibe_watchdog.app.config import WatchdogConfig
from vibe_watchdog.io.reports import ReportStore
from vibe_watchdog.pipeline.monitor import CycleOutcome, SessionRegistry

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_ID = "default"
MAX_SNAPSHOT_BYTES = 1024 * 1024 * 1024

_CORS_HEADERS = (
    ("Access-Control-Allow-Origin", "*"),
    ("Access-Control-Allow-Methods", "GET, POST, OPTIONS"),
    ("Access-Control-Allow-Headers", "Content-Type"),
)

ENDPOINTS = {
    "reports": "/api/reports",
    "latestReport": "/api/reports/latest",
    "config": "/api/config",
    "pushSnapshot": "/api/snapshots?source=<id>",
}


class ReportHandler(http.server.BaseHTTPRequestHandler):
    store: ReportStore | None = None  # set by make_handler_class
    config: WatchdogConfig | None = None
    sessions: SessionRegistry | None = None
    on_cycle: Callable[[CycleOutcome], None] | None = None

    server_version = "vibe-watchdog"

    def log_message(self, fmt, *args):
        logger.debug("%s %s", self.address_string(), fmt % args)

    # ─── Response helpers ────────────────────────────────────────────────

    def _send_json(self, status: int, payload) -> None:
        body = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        for name, value in _CORS_HEADERS:
            self.send_header(name, value)
        self.end_headers()
        self.wfile.write(body)

    def _send_error_json(self, status: int, message: str) -> None:
        self._send_json(status, {"error": message})

    # ─── GET ─────────────────────────────────────────────────────────────

    def do_OPTIONS(self):
        self.send_response(204)
        for name, value in _CORS_HEADERS:
            self.send_header(name, value)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def do_GET(self):
        path = urlparse(self.path).path.rstrip("/") or "/"
        routes = {
            "/": self._get_index,
            "/api/reports": self._get_reports,
            "/api/reports/latest": self._get_latest_report,
            "/api/config": self._get_config,
        }
        handler = routes.get(path)
        if handler is None:
            self._send_error_json(404, f"not found: {path}")
            return
        handler()

    def _get_index(self):
        self._send_json(200, {"name": "vibe-watchdog", "endpoints": ENDPOINTS})

    def _get_reports(self):
        try:
            reports = self.store.list_reports()
        except OSError as e:
            logger.error("error reading reports directory: %s", e)
            self._send_error_json(500, "failed to read reports")
            return
        self._send_json(200, reports)

    def _get_latest_report(self):
        try:
            report = self.store.latest_report()
        except OSError as e:
            logger.error("error reading reports directory: %s", e)
            self._send_error_json(500, "failed to read reports")
            return
        if report is None:
            self._send_error_json(404, "no reports yet")
            return
        self._send_json(200, report)

    def _get_config(self):
        self._send_json(200, {
            "snapshotInterval": self.config.interval,
            "threshold": self.config.threshold,
        })

    # ─── POST ────────────────────────────────────────────────────────────

    def do_POST(self):
        parsed = urlparse(self.path)
        if parsed.path.rstrip("/") != "/api/snapshots":
            self._send_error_json(404, f"not found: {parsed.path}")
            return

        try:
            length = int(self.headers.get("Content-Length", 0))
        except ValueError:
            self._send_error_json(400, "invalid Content-Length")
            return
        if length <= 0:
            self._send_error_json(400, "empty snapshot body")
            return
        if length > MAX_SNAPSHOT_BYTES:
            self._send_error_json(413, "snapshot too large")
            return
        body = self.rfile.read(length)

        source_id = parse_qs(parsed.query).get("source", [DEFAULT_SOURCE_ID])[0] or DEFAULT_SOURCE_ID
        session, lock = self.sessions.get(source_id)
        try:
            # [LAW:single-enforcer] Analyses for one source never interleave.
            with lock:
                outcome = session.process(body)
                path = self.store.save_report(outcome.report, self.config.max_reports)
            outcome = dataclasses.replace(outcome, report_path=path)
        except Exception:
            logger.exception("error processing snapshot from source %r", source_id)
            self._send_error_json(500, "snapshot processing failed")
            return

        if self.on_cycle is not None:
            self.on_cycle(outcome)
        self._send_json(200, {
            "source": source_id,
            "report": outcome.report,
            "warnings": [w.to_dict() for w in outcome.warnings],
            "saved": path.name if path is not None else None,
        })


def make_handler_class(
    store: ReportStore,
    config: WatchdogConfig,
    sessions: SessionRegistry,
    on_cycle: Callable[[CycleOutcome], None] | None = None,
) -> type[ReportHandler]:
    """Create a ReportHandler subclass bound to one store, config and session registry."""
    return type(
        "BoundReportHandler",
        (ReportHandler,),
        {
            "store": store,
            "config": config,
            "sessions": sessions,
            "on_cycle": staticmethod(on_cycle) if on_cycle is not None else None,
        },
    )


def start_server(
    host: str,
    port: int,
    handler_class: type[http.server.BaseHTTPRequestHandler],
) -> tuple[http.server.ThreadingHTTPServer, int, threading.Thread]:
    """Create and start the report server. Returns (server, actual_port, thread)."""
    srv = http.server.ThreadingHTTPServer((host, port), handler_class)
    srv.daemon_threads = True
    actual_port = srv.server_address[1]
    t = threading.Thread(target=srv.serve_forever, name="report-server", daemon=True)
    t.start()
    logger.info("report server listening on http://%s:%d", host, actual_port)
    return srv, actual_port, t


def stop_server(server: http.server.ThreadingHTTPServer, timeout: float = 3.0) -> bool:
    """Shut down *server*, waiting up to *timeout* seconds. Returns True on a clean stop."""
    shutdown_thread = threading.Thread(target=server.shutdown, daemon=True)
    shutdown_thread.start()
    try:
        shutdown_thread.join(timeout=timeout)
    except KeyboardInterrupt:
        pass  # forced quit during shutdown

    clean = not shutdown_thread.is_alive()
    if clean:
        logger.info("report server stopped")
    else:
        logger.warning("timeout during report server shutdown - forcing close")
    server.server_close()
    return clean
