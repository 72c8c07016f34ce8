"""Snapshot sources: where heap snapshot text comes from.

A source hands the monitor one complete snapshot payload per call. Browser
automation is not implemented here; anything that can produce snapshot text
(DevTools "Save profile", a CDP client, a test fixture) satisfies the
SnapshotSource protocol. Sources shipped here read .heapsnapshot files.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Iterator, Protocol

import watchfiles

logger = logging.getLogger(__name__)

SNAPSHOT_SUFFIX = ".heapsnapshot"


class SnapshotSourceError(Exception):
    """A snapshot could not be acquired for this interval."""


class SnapshotSource(Protocol):
    def take_snapshot(self) -> str | None:
        """Return one complete snapshot payload, or None when nothing new is available.

        Raises SnapshotSourceError when acquisition fails.
        """
        ...


def _read_snapshot(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SnapshotSourceError(f"could not read snapshot {path}: {e}") from e


class FileSnapshotSource:
    """Re-reads the same snapshot file on every call."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def take_snapshot(self) -> str | None:
        text = _read_snapshot(self.path)
        logger.info("read snapshot %s (%d KB)", self.path.name, len(text) // 1024)
        return text


class DirectorySnapshotSource:
    """Yields the newest snapshot file not yet consumed from a directory.

    A file counts as new when its (mtime, size) differs from the last time it
    was consumed, so overwriting a fixed file name is picked up too. When
    several files arrived since the last call only the newest is analyzed;
    the older ones are marked consumed.
    """

    def __init__(self, directory: str | Path, suffix: str = SNAPSHOT_SUFFIX):
        self.directory = Path(directory)
        self.suffix = suffix
        self._consumed: dict[Path, tuple[float, int]] = {}

    def _stamp(self, path: Path) -> tuple[float, int] | None:
        try:
            stat = path.stat()
        except OSError:
            return None
        return (stat.st_mtime, stat.st_size)

    def pending(self) -> list[Path]:
        """Unconsumed snapshot files, oldest first (mtime, then name)."""
        if not self.directory.is_dir():
            raise SnapshotSourceError(f"snapshot directory not found: {self.directory}")
        candidates = []
        for path in self.directory.iterdir():
            if path.suffix != self.suffix or not path.is_file():
                continue
            stamp = self._stamp(path)
            if stamp is None or self._consumed.get(path) == stamp:
                continue
            candidates.append((stamp[0], path.name, path, stamp))
        candidates.sort()
        return [path for _mtime, _name, path, _stamp in candidates]

    def mark_consumed(self, path: Path) -> None:
        stamp = self._stamp(path)
        if stamp is not None:
            self._consumed[path] = stamp

    def take_snapshot(self) -> str | None:
        pending = self.pending()
        if not pending:
            logger.info("no new snapshot in %s", self.directory)
            return None

        newest = pending[-1]
        for stale in pending[:-1]:
            logger.info("skipping superseded snapshot %s", stale.name)
            self.mark_consumed(stale)

        text = _read_snapshot(newest)
        self.mark_consumed(newest)
        logger.info("received snapshot data %s: %d KB", newest.name, len(text) // 1024)
        return text


def _is_snapshot_change(change: watchfiles.Change, path: str) -> bool:
    return change != watchfiles.Change.deleted and path.endswith(SNAPSHOT_SUFFIX)


def watch_snapshot_files(
    directory: str | Path,
    stop_event: threading.Event | None = None,
) -> Iterator[Path]:
    """Yield snapshot files as they are added or rewritten under *directory*.

    Blocks between batches; returns once *stop_event* is set. watchfiles
    debounces bursts of writes, so a file is normally yielded once it has
    been fully written.
    """
    for changes in watchfiles.watch(
        directory,
        watch_filter=_is_snapshot_change,
        stop_event=stop_event,
        recursive=False,
    ):
        for path in sorted({Path(p) for _change, p in changes}):
            if path.is_file():
                yield path
