"""Terminal report viewer using Textual.

// [LAW:locality-or-seam] Thin coordinator; formatting lives in panel_renderers.
// [LAW:one-source-of-truth] The report directory is the only state; every refresh re-reads it.
"""

import logging
from datetime import datetime

from rich.text import Text
from textual.app import App, ComposeResult
from textual.widgets import DataTable, Footer, Header, Static

from vibe_watchdog.io.reports import ReportStore
from vibe_watchdog.tui import panel_renderers

logger = logging.getLogger(__name__)


class ReportViewerApp(App):
    """Browse saved watchdog reports."""

    TITLE = "vibe-watchdog reports"

    CSS = """
    #reports {
        height: 2fr;
    }
    #detail {
        height: 3fr;
        border-top: solid $accent;
        padding: 0 1;
    }
    #status {
        height: 1;
        padding: 0 1;
    }
    """

    BINDINGS = [
        ("r", "reload", "Refresh"),
        ("q", "quit", "Quit"),
    ]

    def __init__(self, store: ReportStore, refresh_interval: float | None = 10.0):
        super().__init__()
        self._store = store
        self._refresh_interval = refresh_interval
        self._reports: list[dict] = []
        self._detail = panel_renderers.render_report_detail(None)

    @property
    def reports(self) -> list[dict]:
        return list(self._reports)

    @property
    def detail_text(self) -> Text:
        return self._detail

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static(id="status")
        yield DataTable(id="reports", cursor_type="row", zebra_stripes=True)
        yield Static(id="detail")
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#reports", DataTable)
        table.add_columns(*panel_renderers.REPORT_COLUMNS)
        self.action_reload()
        if self._refresh_interval:
            self.set_interval(self._refresh_interval, self.action_reload)

    def action_reload(self) -> None:
        self._reports = self._store.list_reports()
        logger.debug("viewer loaded %d report(s)", len(self._reports))

        table = self.query_one("#reports", DataTable)
        selected = table.cursor_row
        table.clear()
        for report in self._reports:
            table.add_row(*panel_renderers.report_row(report))
        if self._reports:
            table.move_cursor(row=min(selected, len(self._reports) - 1))

        self.query_one("#status", Static).update(
            panel_renderers.render_status_line(
                len(self._reports),
                str(self._store.reports_dir),
                datetime.now().strftime("%H:%M:%S"),
            )
        )
        self._show_detail(table.cursor_row if self._reports else None)

    def _show_detail(self, row: int | None) -> None:
        report = self._reports[row] if row is not None and 0 <= row < len(self._reports) else None
        self._detail = panel_renderers.render_report_detail(report)
        self.query_one("#detail", Static).update(self._detail)

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        self._show_detail(event.cursor_row)
