"""Type classifier: maps a heap object's name to resource and report categories.

The classifier is a frozen value holding every table it consults. Build it
once at startup (operator excludes file path injected) and pass it into
analysis.analyze_snapshot(); nothing here reads module-level mutable state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, NamedTuple

from vibe_watchdog.core.type_tables import (
    BROAD_EXCLUSIONS,
    BROAD_TARGET_TYPES,
    BUILTIN_DENYLISTS,
    EXACT_TARGET_TYPES,
    INTERNAL_NAME_PREFIXES,
    KNOWN_THREEJS_TYPES,
    TYPE_TO_COUNT_KEY,
)

logger = logging.getLogger(__name__)

CATEGORY_THREEJS = "threejs"
CATEGORY_GAME = "game"
CATEGORY_MISC = "misc"

# [LAW:one-source-of-truth] Report category order, used for every output map.
CONSTRUCTOR_CATEGORIES: tuple[str, ...] = (CATEGORY_THREEJS, CATEGORY_GAME, CATEGORY_MISC)

DEFAULT_EXCLUDES_FILENAME = "manual-excludes.txt"


class Classification(NamedTuple):
    """Outcome of classifying one object name.

    resource: matched base type (e.g. "Mesh") or None
    count_key: NodeCounts field for the resource, or None
    category: constructor report category, or None when not reported
    """

    resource: str | None
    count_key: str | None
    category: str | None


def parse_excludes(text: str) -> frozenset[str]:
    """Parse a comma-separated exclude list. Blank entries are dropped."""
    return frozenset(item.strip() for item in text.split(",") if item.strip())


def load_manual_excludes(path: str | Path | None) -> frozenset[str]:
    """Read the operator exclude list. Missing/unreadable file yields an empty set."""
    if path is None:
        return frozenset()
    excludes_path = Path(path)
    try:
        text = excludes_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(
            "could not read manual exclusions file %s (%s); proceeding without manual exclusions",
            excludes_path,
            e,
        )
        return frozenset()
    excludes = parse_excludes(text)
    logger.info("loaded %d manual exclusions from %s", len(excludes), excludes_path)
    return excludes


@dataclass(frozen=True)
class TypeClassifier:
    """All classification tables plus the operator-supplied denylist."""

    manual_excludes: frozenset[str] = frozenset()
    known_library_types: frozenset[str] = KNOWN_THREEJS_TYPES
    denylists: tuple[frozenset[str], ...] = field(default=BUILTIN_DENYLISTS)

    @classmethod
    def from_excludes_file(
        cls,
        path: str | Path | None,
        extra_excludes: Iterable[str] = (),
    ) -> TypeClassifier:
        """Build a classifier with excludes loaded from *path* plus *extra_excludes*."""
        excludes = load_manual_excludes(path) | frozenset(extra_excludes)
        return cls(manual_excludes=excludes)

    # ─── Resource categories ─────────────────────────────────────────────

    def match_resource(self, name: str) -> str | None:
        """Return the tracked base type *name* belongs to, or None."""
        if name in EXACT_TARGET_TYPES:
            return name
        for base_type in BROAD_TARGET_TYPES:
            if base_type not in name:
                continue
            exclusions = BROAD_EXCLUSIONS.get(base_type, ())
            if not any(ex in name for ex in exclusions):
                return base_type
        return None

    # ─── Constructor report ──────────────────────────────────────────────

    def is_relevant(self, name: str) -> bool:
        """True when *name* should appear in the constructor report."""
        if name.startswith(INTERNAL_NAME_PREFIXES):
            return False
        if any(name in table for table in self.denylists):
            return False
        if len(name) <= 2 and name != "_":
            return False
        if name in self.manual_excludes:
            return False
        if " " in name or "/" in name:
            return False
        return True

    def constructor_category(self, name: str) -> str | None:
        """Report category for a relevant name: library allowlist or application."""
        if not self.is_relevant(name):
            return None
        if name in self.known_library_types:
            return CATEGORY_THREEJS
        return CATEGORY_GAME

    def classify(self, name: str) -> Classification:
        """Classify one object-typed node name.

        Names matching a tracked resource are counted there and never
        double-reported under the constructor categories.
        """
        resource = self.match_resource(name)
        if resource is not None:
            return Classification(resource, TYPE_TO_COUNT_KEY[resource], None)
        return Classification(None, None, self.constructor_category(name))
