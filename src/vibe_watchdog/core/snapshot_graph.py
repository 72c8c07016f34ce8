"""Read-only view over a decoded V8 heap snapshot.

The snapshot format is flat: `nodes` and `edges` are integer arrays laid out
as fixed-size records whose field order is declared in `snapshot.meta`.
SnapshotSchema resolves those field offsets once per snapshot; SnapshotGraph
walks the node records with every index bounds-checked.

Pure computation module with no I/O.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterator

logger = logging.getLogger(__name__)

OBJECT_NODE_TYPE = "object"
PROPERTY_EDGE_TYPE = "property"
CONSTRUCTOR_EDGE_NAME = "constructor"


def _in_range(value: Any, size: int) -> bool:
    # bool is an int subclass; a True/False index is corrupt data, not 1/0.
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < size


def _field_offset(fields: list, name: str) -> int:
    try:
        return fields.index(name)
    except ValueError:
        return -1


def _meta_of(data: dict) -> dict | None:
    snapshot = data.get("snapshot")
    if not isinstance(snapshot, dict):
        return None
    meta = snapshot.get("meta")
    return meta if isinstance(meta, dict) else None


def _first_type_table(meta: dict, key: str) -> list | None:
    tables = meta.get(key)
    if not isinstance(tables, list) or not tables:
        return None
    first = tables[0]
    return first if isinstance(first, list) else None


def structure_error(data: Any) -> str | None:
    """Describe why *data* is not a structurally valid snapshot, or None if it is."""
    if not isinstance(data, dict):
        return "snapshot root is not an object"
    for key in ("nodes", "edges", "strings"):
        if not isinstance(data.get(key), list):
            return f"missing or non-list '{key}'"
    meta = _meta_of(data)
    if meta is None:
        return "missing 'snapshot.meta'"
    for key in ("node_fields", "edge_fields"):
        if not isinstance(meta.get(key), list):
            return f"missing or non-list 'snapshot.meta.{key}'"
    for key in ("node_types", "edge_types"):
        if _first_type_table(meta, key) is None:
            return f"missing or non-list 'snapshot.meta.{key}[0]'"
    return None


@dataclass(frozen=True)
class SnapshotSchema:
    """Integer field offsets resolved from snapshot metadata.

    Edge `type`/`name_or_index` offsets are optional (-1 when absent); only the
    constructor-edge lookup needs them.
    """

    node_stride: int
    edge_stride: int
    name_offset: int
    type_offset: int
    edge_count_offset: int
    to_node_offset: int
    edge_type_offset: int = -1
    edge_name_offset: int = -1

    @classmethod
    def resolve(cls, node_fields: list, edge_fields: list) -> SnapshotSchema | None:
        """Resolve offsets, or None if a required field is not declared."""
        name_offset = _field_offset(node_fields, "name")
        type_offset = _field_offset(node_fields, "type")
        edge_count_offset = _field_offset(node_fields, "edge_count")
        to_node_offset = _field_offset(edge_fields, "to_node")

        if -1 in (name_offset, type_offset, edge_count_offset, to_node_offset):
            logger.error(
                "could not find required fields in snapshot meta "
                "(node: name, type, edge_count; edge: to_node)"
            )
            return None

        return cls(
            node_stride=len(node_fields),
            edge_stride=len(edge_fields),
            name_offset=name_offset,
            type_offset=type_offset,
            edge_count_offset=edge_count_offset,
            to_node_offset=to_node_offset,
            edge_type_offset=_field_offset(edge_fields, "type"),
            edge_name_offset=_field_offset(edge_fields, "name_or_index"),
        )


@dataclass(frozen=True)
class NodeRecord:
    """One bounds-checked node record.

    offset is the record's position in the nodes array (what edges' to_node
    fields point at); edge_offset is the position of its first edge record.
    """

    index: int
    offset: int
    type_name: str
    name: str
    edge_count: int
    edge_offset: int


class SnapshotGraph:
    """Index-based access to nodes, edges and strings of one snapshot."""

    def __init__(
        self,
        nodes: list,
        edges: list,
        strings: list,
        node_types: list,
        edge_types: list,
        schema: SnapshotSchema,
    ):
        self._nodes = nodes
        self._edges = edges
        self._strings = strings
        self._node_types = node_types
        self._edge_types = edge_types
        self.schema = schema

    @classmethod
    def from_decoded(cls, data: Any) -> SnapshotGraph | None:
        """Validate a decoded snapshot. Returns None (logged) when invalid."""
        problem = structure_error(data)
        if problem is not None:
            logger.warning("snapshot parsed, but essential structure is invalid: %s", problem)
            return None

        meta = _meta_of(data)
        schema = SnapshotSchema.resolve(meta["node_fields"], meta["edge_fields"])
        if schema is None:
            return None

        return cls(
            nodes=data["nodes"],
            edges=data["edges"],
            strings=data["strings"],
            node_types=_first_type_table(meta, "node_types"),
            edge_types=_first_type_table(meta, "edge_types"),
            schema=schema,
        )

    @property
    def node_count(self) -> int:
        """Number of complete node records."""
        return len(self._nodes) // self.schema.node_stride

    def iter_nodes(self) -> Iterator[NodeRecord]:
        """Yield node records in order, skipping any with an invalid type or name index.

        The edge cursor advances for every record, skipped or not, so
        edge_offset always stays aligned with the edges array.
        """
        nodes = self._nodes
        strings = self._strings
        node_types = self._node_types
        schema = self.schema
        stride = schema.node_stride
        limit = len(nodes) - len(nodes) % stride

        edge_cursor = 0
        for ordinal, offset in enumerate(range(0, limit, stride)):
            type_index = nodes[offset + schema.type_offset]
            name_index = nodes[offset + schema.name_offset]
            edge_count = nodes[offset + schema.edge_count_offset]
            if not _in_range(edge_count, len(self._edges) + 1):
                edge_count = 0

            edge_offset = edge_cursor
            edge_cursor += edge_count * schema.edge_stride

            if not _in_range(type_index, len(node_types)):
                continue
            if not _in_range(name_index, len(strings)):
                continue
            type_name = node_types[type_index]
            name = strings[name_index]
            if not isinstance(type_name, str) or not isinstance(name, str):
                continue

            yield NodeRecord(
                index=ordinal,
                offset=offset,
                type_name=type_name,
                name=name,
                edge_count=edge_count,
                edge_offset=edge_offset,
            )

    def constructor_name(self, record: NodeRecord) -> str | None:
        """Name of the node reached through *record*'s "constructor" property edge.

        Returns None when the snapshot lacks edge type/name fields, the node has
        no such edge, or the edge points outside the nodes array.
        """
        schema = self.schema
        if schema.edge_type_offset < 0 or schema.edge_name_offset < 0:
            return None

        edges = self._edges
        strings = self._strings
        stride = schema.edge_stride
        stop = min(record.edge_offset + record.edge_count * stride, len(edges) - stride + 1)

        for pos in range(record.edge_offset, stop, stride):
            edge_type_index = edges[pos + schema.edge_type_offset]
            if not _in_range(edge_type_index, len(self._edge_types)):
                continue
            if self._edge_types[edge_type_index] != PROPERTY_EDGE_TYPE:
                continue
            edge_name_index = edges[pos + schema.edge_name_offset]
            if not _in_range(edge_name_index, len(strings)):
                continue
            if strings[edge_name_index] != CONSTRUCTOR_EDGE_NAME:
                continue

            to_node = edges[pos + schema.to_node_offset]
            if not _in_range(to_node, len(self._nodes)) or to_node % schema.node_stride:
                return None
            target_name_index = self._nodes[to_node + schema.name_offset]
            if not _in_range(target_name_index, len(strings)):
                return None
            target_name = strings[target_name_index]
            return target_name if isinstance(target_name, str) else None
        return None
