"""Snapshot analysis: one pass over a heap snapshot into categorized counts.

analyze_snapshot() never raises for data-quality reasons: undecodable or
structurally invalid input, and any failure during traversal, all produce
the zeroed result. Only a wrong argument type fails fast.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from vibe_watchdog.core.classifier import CONSTRUCTOR_CATEGORIES, TypeClassifier
from vibe_watchdog.core.snapshot_graph import OBJECT_NODE_TYPE, SnapshotGraph

logger = logging.getLogger(__name__)

ConstructorCounts = dict[str, dict[str, int]]

STRATEGY_OWNER = "owner"
STRATEGY_CONSTRUCTOR = "constructor"
STRATEGIES: tuple[str, ...] = (STRATEGY_OWNER, STRATEGY_CONSTRUCTOR)

# [LAW:one-source-of-truth] NodeCounts field -> report JSON key.
NODE_COUNT_FIELDS = MappingProxyType({
    "geometry_count": "geometryCount",
    "material_count": "materialCount",
    "texture_count": "textureCount",
    "render_target_count": "renderTargetCount",
    "mesh_count": "meshCount",
    "group_count": "groupCount",
})


# ─── Result Types ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class NodeCounts:
    """Live instance counts of the six tracked resource types."""

    geometry_count: int = 0
    material_count: int = 0
    texture_count: int = 0
    render_target_count: int = 0
    mesh_count: int = 0
    group_count: int = 0

    def to_dict(self) -> dict[str, int]:
        return {NODE_COUNT_FIELDS[name]: value for name, value in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> NodeCounts:
        """Build from report JSON (camelCase keys); missing keys count as 0."""
        return cls(**{name: int(data.get(key, 0) or 0) for name, key in NODE_COUNT_FIELDS.items()})

    def summary(self) -> str:
        return (
            f"Geo: {self.geometry_count}, Mat: {self.material_count}, "
            f"Tex: {self.texture_count}, RT: {self.render_target_count}, "
            f"Mesh: {self.mesh_count}, Grp: {self.group_count}"
        )


def empty_constructor_counts() -> ConstructorCounts:
    return {category: {} for category in CONSTRUCTOR_CATEGORIES}


@dataclass(frozen=True)
class AnalysisResult:
    """What one snapshot contained: resource counts plus the constructor breakdown."""

    node_counts: NodeCounts = field(default_factory=NodeCounts)
    constructor_counts: ConstructorCounts = field(default_factory=empty_constructor_counts)

    @property
    def is_empty(self) -> bool:
        return self.node_counts == NodeCounts() and not any(self.constructor_counts.values())

    def to_dict(self) -> dict:
        return {
            "nodeCounts": self.node_counts.to_dict(),
            "constructorCounts": {
                category: dict(counts) for category, counts in self.constructor_counts.items()
            },
        }


# ─── Analysis ────────────────────────────────────────────────────────────────


def _decode(snapshot: str | bytes | bytearray | dict) -> Any:
    if isinstance(snapshot, dict):
        return snapshot
    return json.loads(snapshot)


def _count_nodes(
    graph: SnapshotGraph, classifier: TypeClassifier, strategy: str
) -> AnalysisResult:
    counts = dict.fromkeys(NODE_COUNT_FIELDS, 0)
    constructor_counts = empty_constructor_counts()

    logger.debug("iterating through %d nodes", graph.node_count)
    for record in graph.iter_nodes():
        if record.type_name != OBJECT_NODE_TYPE:
            continue

        name = record.name
        if strategy == STRATEGY_CONSTRUCTOR:
            name = graph.constructor_name(record) or record.name

        classification = classifier.classify(name)
        if classification.count_key is not None:
            counts[classification.count_key] += 1
        elif classification.category is not None:
            bucket = constructor_counts[classification.category]
            bucket[name] = bucket.get(name, 0) + 1

    return AnalysisResult(NodeCounts(**counts), constructor_counts)


def _log_constructors(result: AnalysisResult) -> None:
    if not logger.isEnabledFor(logging.DEBUG):
        return
    for category, counts in result.constructor_counts.items():
        for name in sorted(counts):
            logger.debug("%s constructor %s: %d", category, name, counts[name])


def analyze_snapshot(
    snapshot: str | bytes | bytearray | dict | None,
    classifier: TypeClassifier | None = None,
    *,
    strategy: str = STRATEGY_OWNER,
) -> AnalysisResult:
    """Analyze one heap snapshot.

    Args:
        snapshot: Raw snapshot JSON (str/bytes) or an already-decoded dict.
        classifier: Classification tables; defaults to built-ins with no
            operator excludes.
        strategy: "owner" classifies by each object's own name;
            "constructor" follows its "constructor" property edge first.

    Returns:
        AnalysisResult. Zeroed when the input is empty, undecodable,
        structurally invalid, or traversal fails.

    Raises:
        TypeError: snapshot is not text, bytes, a dict, or None.
        ValueError: unknown strategy.
    """
    if strategy not in STRATEGIES:
        raise ValueError(f"unknown analysis strategy: {strategy!r}")
    if snapshot is not None and not isinstance(snapshot, (str, bytes, bytearray, dict)):
        raise TypeError(
            f"snapshot must be str, bytes or dict, not {type(snapshot).__name__}"
        )
    if not snapshot:
        logger.warning("cannot analyze empty snapshot data")
        return AnalysisResult()
    if classifier is None:
        classifier = TypeClassifier()

    try:
        data = _decode(snapshot)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("could not decode snapshot JSON: %s", e)
        return AnalysisResult()

    try:
        graph = SnapshotGraph.from_decoded(data)
        if graph is None:
            return AnalysisResult()
        result = _count_nodes(graph, classifier, strategy)
    except Exception:
        # [LAW:single-enforcer] The monitor loop must never see a data-quality crash.
        logger.exception("error during snapshot analysis")
        return AnalysisResult()

    _log_constructors(result)
    logger.info("analysis complete (node counts) - %s", result.node_counts.summary())
    return result
