"""Editing-surface graph records.

The canvas owns these; the core only reads them as an immutable snapshot
per call. Nodes and edges are flat ordered sequences. Lookups by id are
built on demand by whoever needs them.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from toucan.contracts.types import NodeID, NodeTypeName, WidgetValue


@dataclass(frozen=True, slots=True)
class GraphNode:
    """One node on the canvas.

    Attributes:
        id: Unique within the graph
        node_type: Schema catalog key; None while the node is untyped
        widget_values: Stored literal per slot name, before any connection override
        control_modes: Stored control mode per control slot name. Values come
            straight from the editing surface and may be invalid; they are
            normalized when used.
    """

    id: NodeID
    node_type: NodeTypeName | None = None
    widget_values: Mapping[str, WidgetValue] = field(default_factory=dict)
    control_modes: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class GraphEdge:
    """A directed connection between an output handle and an input handle.

    Any field may be None while the user is still dragging; such edges are
    dropped by every consumer rather than reported.
    """

    source: NodeID | None
    source_handle: str | None
    target: NodeID | None
    target_handle: str | None


def index_nodes(nodes: Iterable[GraphNode]) -> dict[NodeID, GraphNode]:
    """Build an id -> node lookup. Later duplicates win, as on the canvas."""
    return {node.id: node for node in nodes}
