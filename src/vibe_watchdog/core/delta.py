"""Per-constructor count deltas between two snapshots. Pure, no I/O."""

from __future__ import annotations

from typing import Mapping

from vibe_watchdog.core.classifier import CONSTRUCTOR_CATEGORIES

ConstructorCountsDelta = dict[str, dict[str, int]]


def compute_constructor_delta(
    current: Mapping[str, Mapping[str, int]] | None,
    previous: Mapping[str, Mapping[str, int]] | None,
) -> ConstructorCountsDelta:
    """Signed current - previous per name, per category.

    A name is kept when its delta is nonzero or it is still live in current,
    so unchanged live instances stay visible in the report. With no previous
    counts every current name appears with its full count.
    """
    current = current or {}
    previous = previous or {}
    delta: ConstructorCountsDelta = {}

    for category in CONSTRUCTOR_CATEGORIES:
        current_counts = current.get(category) or {}
        previous_counts = previous.get(category) or {}
        category_delta: dict[str, int] = {}

        for name in current_counts.keys() | previous_counts.keys():
            current_value = current_counts.get(name, 0)
            diff = current_value - previous_counts.get(name, 0)
            if diff != 0 or current_value > 0:
                category_delta[name] = diff

        # Sorted for stable report output; order carries no meaning.
        delta[category] = dict(sorted(category_delta.items()))

    return delta
