"""Report viewer rendering logic - pure functions for building display text.

Kept apart from the widgets so they can be tested without running an app.
"""

from rich.text import Text

from vibe_watchdog.core.analysis import NODE_COUNT_FIELDS
from vibe_watchdog.core.classifier import CONSTRUCTOR_CATEGORIES
from vibe_watchdog.core.trend import LANE_LABELS

TIMESTAMP_COLUMN = "Timestamp"

# [LAW:one-source-of-truth] Table columns derive from the count fields.
REPORT_COLUMNS: tuple[str, ...] = (TIMESTAMP_COLUMN,) + tuple(
    LANE_LABELS[field_name] for field_name in NODE_COUNT_FIELDS
)


def format_timestamp_cell(timestamp: str) -> str:
    """2026-10-19T12:00:05.000Z -> 2026-10-19 12:00:05"""
    if not timestamp:
        return "?"
    return timestamp.replace("T", " ").split(".")[0].rstrip("Z")


def report_row(report: dict) -> tuple[str, ...]:
    """One DataTable row: timestamp then the six resource counts."""
    counts = report.get("nodeCounts") or {}
    return (format_timestamp_cell(report.get("timestamp", "")),) + tuple(
        str(counts.get(key, 0)) for key in NODE_COUNT_FIELDS.values()
    )


def _delta_style(diff: int) -> str:
    if diff > 0:
        return "red"
    if diff < 0:
        return "green"
    return "dim"


def render_report_detail(report: dict | None) -> Text:
    """Constructor deltas for the selected report, grouped by category.

    Names sort by descending delta so growth is at the top of each group.
    """
    text = Text()
    if not report:
        text.append("No report selected", style="dim")
        return text

    text.append(f"Report {format_timestamp_cell(report.get('timestamp', ''))}\n", style="bold")
    deltas = report.get("constructorCountsDelta") or {}
    counts = report.get("constructorCounts") or {}

    for category in CONSTRUCTOR_CATEGORIES:
        category_delta = deltas.get(category) or {}
        category_counts = counts.get(category) or {}
        text.append(f"\n{category}", style="bold underline")
        text.append(f" ({len(category_counts)} constructors)\n")
        if not category_delta:
            text.append("  no changes\n", style="dim")
            continue
        ordered = sorted(category_delta.items(), key=lambda item: (-item[1], item[0]))
        for name, diff in ordered:
            text.append(f"  {name:<32}")
            text.append(f"{category_counts.get(name, 0):>6}")
            text.append(f"  {diff:+d}\n", style=_delta_style(diff))
    return text


def render_status_line(report_count: int, reports_dir: str, refreshed_at: str | None = None) -> Text:
    text = Text()
    text.append(f"{report_count} report(s)", style="bold")
    text.append(f" in {reports_dir}")
    if refreshed_at:
        text.append(f" · refreshed {refreshed_at}", style="dim")
    return text
