"""Console display: rich rendering of one monitor cycle.

Pure render_* functions build renderables; ConsoleDisplay prints them and is
the on_cycle callback the CLI hands to the watchdog and the report server.
"""

import logging
import threading

from rich.console import Console, Group
from rich.table import Table
from rich.text import Text

from vibe_watchdog.core.analysis import NODE_COUNT_FIELDS, NodeCounts
from vibe_watchdog.core.classifier import CATEGORY_GAME, CATEGORY_THREEJS
from vibe_watchdog.core.trend import LANE_LABELS, LeakWarning
from vibe_watchdog.io.logging_setup import CONSOLE_RECORD_ATTR
from vibe_watchdog.pipeline.monitor import CycleOutcome

logger = logging.getLogger(__name__)

CATEGORY_TITLES = {
    CATEGORY_THREEJS: "Three.js constructors",
    CATEGORY_GAME: "Game constructors",
}


def _fmt_change(diff: int) -> Text:
    # [LAW:dataflow-not-control-flow] Style picked from the sign, not branches per caller.
    style = "red" if diff > 0 else "green" if diff < 0 else "dim"
    return Text(f"{diff:+d}" if diff else "0", style=style)


def render_node_counts(counts: NodeCounts, previous: NodeCounts | None = None) -> Table:
    """Six resource counts, with the change since *previous* when there is one."""
    table = Table(title="Resource counts", title_justify="left")
    table.add_column("Resource")
    table.add_column("Count", justify="right")
    if previous is not None:
        table.add_column("Change", justify="right")

    for field_name in NODE_COUNT_FIELDS:
        value = getattr(counts, field_name)
        row = [LANE_LABELS[field_name], str(value)]
        if previous is not None:
            row.append(_fmt_change(value - getattr(previous, field_name)))
        table.add_row(*row)
    return table


def render_constructor_listing(
    category: str,
    counts: dict[str, int],
    delta: dict[str, int] | None = None,
) -> Table | Text:
    """Name-sorted listing for one category; empty categories collapse to one line."""
    title = CATEGORY_TITLES.get(category, category)
    if not counts:
        return Text(f"{title}: none", style="dim")

    table = Table(title=title, title_justify="left")
    table.add_column("Constructor")
    table.add_column("Count", justify="right")
    table.add_column("Δ", justify="right")
    delta = delta or {}
    for name in sorted(counts):
        table.add_row(name, str(counts[name]), _fmt_change(delta.get(name, 0)))
    return table


def render_warnings(warnings: list[LeakWarning]) -> Text:
    text = Text()
    for warning in warnings:
        text.append(f"*** {warning.message} ***", style="bold red")
        text.append(f" ({warning.resource}: {warning.count})\n", style="red")
    return text


def render_report(report: dict, previous: NodeCounts | None = None) -> Group:
    """Renderable for a report dict (as saved, served or read back)."""
    parts = []
    if "timestamp" in report:
        parts.append(Text(report["timestamp"], style="bold"))
    parts.append(render_node_counts(NodeCounts.from_dict(report.get("nodeCounts", {})), previous))

    constructor_counts = report.get("constructorCounts", {})
    deltas = report.get("constructorCountsDelta", {})
    for category in CATEGORY_TITLES:
        parts.append(
            render_constructor_listing(
                category, constructor_counts.get(category, {}), deltas.get(category)
            )
        )
    return Group(*parts)


def render_cycle(outcome: CycleOutcome) -> Group:
    parts = [render_report(outcome.report, outcome.previous_node_counts)]
    if outcome.warnings:
        parts.append(render_warnings(outcome.warnings))
    return Group(*parts)


class ConsoleDisplay:
    """Prints each cycle; safe to call from server handler threads."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()
        self._lock = threading.Lock()

    def __call__(self, outcome: CycleOutcome) -> None:
        self.show(outcome)

    def show(self, outcome: CycleOutcome) -> None:
        with self._lock:
            self.console.rule()
            self.console.print(render_cycle(outcome))
        # Already on screen; keep a copy in the log file only.
        logger.info(
            "cycle counts - %s", outcome.result.node_counts.summary(),
            extra={CONSOLE_RECORD_ATTR: True},
        )
