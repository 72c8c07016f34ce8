"""Leak trend detection over successive analysis results.

One TrendDetector per monitored source. Each NodeCounts field is an
independent lane holding a streak of consecutive strict increases; a lane at
or above the threshold warns on every observation until its streak breaks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from vibe_watchdog.core.analysis import NODE_COUNT_FIELDS, AnalysisResult

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 3

# Display label per lane.
LANE_LABELS = MappingProxyType({
    "geometry_count": "Geometry",
    "material_count": "Material",
    "texture_count": "Texture",
    "render_target_count": "RenderTarget",
    "mesh_count": "Mesh",
    "group_count": "Group",
})


@dataclass(frozen=True)
class LeakWarning:
    """A lane whose count has grown for `streak` consecutive snapshots."""

    resource: str
    count_key: str
    streak: int
    count: int

    @property
    def message(self) -> str:
        return (
            f"Potential {self.resource} Leak Detected! "
            f"Count increased for {self.streak} consecutive snapshots."
        )

    def to_dict(self) -> dict:
        return {
            "resource": self.resource,
            "countKey": NODE_COUNT_FIELDS[self.count_key],
            "streak": self.streak,
            "count": self.count,
        }


class TrendDetector:
    """Streak counters for the six resource lanes plus the previous result."""

    def __init__(self, threshold: int = DEFAULT_THRESHOLD):
        if threshold < 1:
            raise ValueError(f"threshold must be >= 1, got {threshold}")
        self.threshold = threshold
        self._streaks: dict[str, int] = dict.fromkeys(NODE_COUNT_FIELDS, 0)
        self._previous: AnalysisResult | None = None

    @property
    def streaks(self) -> Mapping[str, int]:
        return MappingProxyType(self._streaks)

    @property
    def previous(self) -> AnalysisResult | None:
        return self._previous

    def reset(self) -> None:
        self._streaks = dict.fromkeys(NODE_COUNT_FIELDS, 0)
        self._previous = None

    def observe(self, result: AnalysisResult | None) -> list[LeakWarning]:
        """Compare *result* against the previous one and return any leak warnings.

        A None result (failed snapshot) leaves streaks and the previous result
        untouched. The first available result only seeds the comparison.
        """
        if result is None:
            logger.warning("skipping trend comparison: no snapshot result for this interval")
            return []

        previous = self._previous
        self._previous = result
        if previous is None:
            logger.info("initial counts - %s", result.node_counts.summary())
            return []

        warnings: list[LeakWarning] = []
        for count_key, label in LANE_LABELS.items():
            before = getattr(previous.node_counts, count_key)
            after = getattr(result.node_counts, count_key)

            if after > before:
                self._streaks[count_key] += 1
                logger.info(
                    "%s count increased (%d -> %d). streak: %d",
                    label, before, after, self._streaks[count_key],
                )
            else:
                if self._streaks[count_key] > 0:
                    logger.info("%s count did not increase, resetting streak", label)
                self._streaks[count_key] = 0

            streak = self._streaks[count_key]
            if streak >= self.threshold:
                warning = LeakWarning(resource=label, count_key=count_key, streak=streak, count=after)
                logger.warning("*** %s ***", warning.message)
                warnings.append(warning)

        return warnings
