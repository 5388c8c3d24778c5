# src/toucan/core/connections.py
"""Connection validation for the editing surface.

Decides whether a proposed edge may be added to the graph: both endpoints
must resolve to declared slots, the slot types must match exactly, and the
edge must not close a cycle. Called on every drag over a handle, so it is
side-effect free and builds nothing it does not need.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

import networkx as nx

from toucan.contracts.graph import GraphEdge, GraphNode, index_nodes
from toucan.contracts.handles import INPUT_HANDLE_PREFIX, OUTPUT_HANDLE_PREFIX, parse_handle_slot_name
from toucan.contracts.schema import InputSlot, NodeSchema, OutputSlot


@dataclass(frozen=True, slots=True)
class ResolvedConnection:
    """Both endpoints of a candidate edge, resolved against the catalog."""

    source_node: GraphNode
    target_node: GraphNode
    source_schema: NodeSchema
    target_schema: NodeSchema
    source_slot: OutputSlot
    target_slot: InputSlot


def resolve_connection_slots(
    connection: GraphEdge,
    nodes: Iterable[GraphNode],
    catalog: Mapping[str, NodeSchema],
) -> ResolvedConnection | None:
    """Resolve a candidate edge's nodes, schemas and slots.

    Returns None when any part is missing: an endpoint, a decodable handle,
    a node, a schema, or a slot.
    """
    if not connection.source or not connection.target:
        return None

    source_slot_name = parse_handle_slot_name(connection.source_handle, OUTPUT_HANDLE_PREFIX)
    target_slot_name = parse_handle_slot_name(connection.target_handle, INPUT_HANDLE_PREFIX)
    if source_slot_name is None or target_slot_name is None:
        return None

    nodes_by_id = index_nodes(nodes)
    source_node = nodes_by_id.get(connection.source)
    target_node = nodes_by_id.get(connection.target)
    if source_node is None or target_node is None:
        return None

    source_schema = catalog.get(source_node.node_type) if source_node.node_type else None
    target_schema = catalog.get(target_node.node_type) if target_node.node_type else None
    if source_schema is None or target_schema is None:
        return None

    source_slot = source_schema.get_output(source_slot_name)
    target_slot = target_schema.get_input(target_slot_name)
    if source_slot is None or target_slot is None:
        return None

    return ResolvedConnection(
        source_node=source_node,
        target_node=target_node,
        source_schema=source_schema,
        target_schema=target_schema,
        source_slot=source_slot,
        target_slot=target_slot,
    )


def is_type_compatible(resolved: ResolvedConnection) -> bool:
    """Exact type match. An untyped target accepts nothing."""
    target_type = resolved.target_slot.value_type
    if not target_type:
        return False
    return resolved.source_slot.type == target_type


def creates_cycle(connection: GraphEdge, edges: Iterable[GraphEdge]) -> bool:
    """Whether adding the connection would close a directed cycle.

    A connection with a missing endpoint is treated as cyclic so callers can
    never accept it by accident.
    """
    source, target = connection.source, connection.target
    if not source or not target:
        return True
    if source == target:
        return True

    graph: nx.DiGraph[str] = nx.DiGraph()
    graph.add_edges_from((edge.source, edge.target) for edge in edges if edge.source and edge.target)
    if not graph.has_node(target) or not graph.has_node(source):
        return False
    return nx.has_path(graph, target, source)


def is_valid_connection(
    connection: GraphEdge,
    nodes: Iterable[GraphNode],
    edges: Iterable[GraphEdge],
    catalog: Mapping[str, NodeSchema],
) -> bool:
    """Whether the candidate edge may be added to the graph."""
    resolved = resolve_connection_slots(connection, nodes, catalog)
    if resolved is None:
        return False
    if not is_type_compatible(resolved):
        return False
    return not creates_cycle(connection, edges)
