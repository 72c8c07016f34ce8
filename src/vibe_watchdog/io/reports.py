"""Report persistence: timestamped JSON report files with keep-newest-N rotation.

Report files are named report-YYYY-MM-DDTHH-MM-SSZ.json (UTC, colons
replaced by dashes). A save that lands on a name already taken in the same
second gets a -N sequence suffix (report-...Z-1.json), so concurrent sources
never overwrite each other. The file name is the only source of a report's
timestamp; files whose names do not parse are ignored by rotation and
listing.
"""

import json
import logging
import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, TypedDict

logger = logging.getLogger(__name__)

REPORT_PREFIX = "report-"
REPORT_SUFFIX = ".json"
DEFAULT_MAX_REPORTS = 20

_FILENAME_TS_FORMAT = "%Y-%m-%dT%H-%M-%SZ"
_REPORT_NAME_RE = re.compile(
    r"^report-(\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}Z)(?:-(\d+))?\.json$"
)


class RotationResult(TypedDict):
    kept: int
    removed: int
    removed_paths: list[str]


def get_default_reports_dir() -> str:
    """Default reports directory: ./reports relative to the working directory."""
    return os.path.join(os.getcwd(), "reports")


def report_filename(when: datetime, seq: int = 0) -> str:
    """File name for a report saved at *when* (naive datetimes are taken as UTC).

    *seq* > 0 adds the same-second collision suffix.
    """
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    stamp = when.astimezone(timezone.utc).strftime(_FILENAME_TS_FORMAT)
    if seq:
        stamp = f"{stamp}-{seq}"
    return REPORT_PREFIX + stamp + REPORT_SUFFIX


def _parse_report_name(filename: str) -> Optional[tuple[datetime, int]]:
    match = _REPORT_NAME_RE.match(filename)
    if match is None:
        return None
    try:
        parsed = datetime.strptime(match.group(1), _FILENAME_TS_FORMAT)
    except ValueError:
        return None
    return parsed.replace(tzinfo=timezone.utc), int(match.group(2) or 0)


def parse_report_timestamp(filename: str) -> Optional[datetime]:
    """Parse the UTC timestamp encoded in a report file name, or None."""
    parsed = _parse_report_name(filename)
    return parsed[0] if parsed is not None else None


def format_timestamp(when: datetime) -> str:
    """ISO-8601 UTC with a trailing Z, e.g. 2026-10-19T12:00:05.000Z."""
    return when.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.000Z")


class ReportStore:
    """Reads and writes report files in one directory."""

    def __init__(self, reports_dir: Optional[str | Path] = None):
        self.reports_dir = Path(reports_dir or get_default_reports_dir())

    def initialize(self) -> None:
        """Create the reports directory. Failure is fatal for the caller."""
        try:
            self.reports_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("error creating reports directory %s: %s", self.reports_dir, e)
            raise

    def _report_files(self) -> list[tuple[datetime, Path]]:
        """(timestamp, path) for every report file with a parsable name, oldest first."""
        if not self.reports_dir.is_dir():
            return []
        found = []
        for path in self.reports_dir.iterdir():
            if not path.is_file():
                continue
            parsed = _parse_report_name(path.name)
            if parsed is None:
                if path.name.startswith(REPORT_PREFIX) and path.name.endswith(REPORT_SUFFIX):
                    logger.warning("ignoring report file with unparsable timestamp: %s", path.name)
                continue
            found.append((parsed[0], parsed[1], path))
        found.sort()
        return [(ts, path) for ts, _seq, path in found]

    def _create_report_file(self, when: datetime):
        """Open a fresh report file for *when*, stepping the sequence suffix on collision."""
        seq = 0
        while True:
            path = self.reports_dir / report_filename(when, seq)
            try:
                # [LAW:single-enforcer] Exclusive create is the only guard between concurrent savers.
                return path, open(path, "x", encoding="utf-8")
            except FileExistsError:
                seq += 1

    def save_report(
        self,
        report: dict,
        max_reports: int = DEFAULT_MAX_REPORTS,
        *,
        now: Optional[datetime] = None,
    ) -> Optional[Path]:
        """Write *report* and rotate. Returns the written path, or None on failure.

        Saves within the same second never replace one another.
        """
        try:
            path, f = self._create_report_file(now or datetime.now(timezone.utc))
        except OSError as e:
            logger.error("error saving report to %s: %s", self.reports_dir, e)
            return None
        try:
            with f:
                json.dump(report, f, indent=2)
        except (OSError, TypeError, ValueError) as e:
            logger.error("error saving report %s to %s: %s", path.name, self.reports_dir, e)
            path.unlink(missing_ok=True)
            return None
        logger.info("report saved: %s", path.name)
        self.rotate(max_reports)
        return path

    def rotate(self, max_reports: int) -> RotationResult:
        """Delete the oldest report files beyond the newest *max_reports*."""
        keep = max(max_reports, 0)
        files = self._report_files()
        to_remove = files[: max(len(files) - keep, 0)]

        removed_paths: list[str] = []
        if to_remove:
            logger.info(
                "rotating reports: keeping %d, removing %d oldest", keep, len(to_remove)
            )
        for _ts, path in to_remove:
            try:
                path.unlink()
                removed_paths.append(str(path))
            except OSError as e:
                logger.warning("failed to delete old report %s: %s", path.name, e)

        return {
            "kept": len(files) - len(removed_paths),
            "removed": len(removed_paths),
            "removed_paths": removed_paths,
        }

    def clear_reports(self) -> int:
        """Delete every report file. Returns the number deleted."""
        if not self.reports_dir.is_dir():
            logger.info("reports directory does not exist yet, nothing to clear")
            return 0
        deleted = 0
        for path in self.reports_dir.iterdir():
            if not (path.name.startswith(REPORT_PREFIX) and path.name.endswith(REPORT_SUFFIX)):
                continue
            try:
                path.unlink()
                deleted += 1
            except OSError as e:
                logger.warning("failed to delete report %s: %s", path.name, e)
        logger.info("deleted %d report file(s) from %s", deleted, self.reports_dir)
        return deleted

    def list_reports(self) -> list[dict]:
        """All readable reports, newest first, each with a `timestamp` key added."""
        reports = []
        for ts, path in reversed(self._report_files()):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    report = json.load(f)
            except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
                logger.warning("failed to read or parse report file %s: %s", path.name, e)
                continue
            if not isinstance(report, dict):
                logger.warning("skipping report file %s: not a JSON object", path.name)
                continue
            report["timestamp"] = format_timestamp(ts)
            reports.append(report)
        return reports

    def latest_report(self) -> Optional[dict]:
        """Newest readable report, or None."""
        reports = self.list_reports()
        return reports[0] if reports else None
