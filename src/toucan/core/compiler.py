# src/toucan/core/compiler.py
"""Graph -> execution request compiler.

Turns the canvas snapshot (nodes, edges) plus the schema catalog into the
request graph handed to the dispatcher, in three phases:

1. Field resolution: every non-hidden, widget-backed input is resolved from
   the node's stored value (or the schema default) via the widget resolver.
2. Edge wiring: each edge becomes a ConnectionRef merged into the target's
   inputs. Connections replace literals; repeated connections to one slot
   accumulate into a list in edge-arrival order.
3. Required-input validation: runs last so connections can satisfy slots
   that field resolution alone could not.

Nothing is raised. Anomalies are collected as CompileIssue records: errors
block submission, warnings need confirmation. Edges that are only partially
drawn are dropped without a diagnostic because they are normal mid-edit.
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping, Sequence

from toucan.contracts.enums import IssueCode, IssueSeverity, SlotGroup
from toucan.contracts.graph import GraphEdge, GraphNode
from toucan.contracts.handles import INPUT_HANDLE_PREFIX, OUTPUT_HANDLE_PREFIX, parse_handle_slot_name
from toucan.contracts.request import (
    CompileIssue,
    CompileResult,
    ConnectionRef,
    RequestGraph,
    RequestInputValue,
    RequestNode,
)
from toucan.contracts.schema import NodeSchema
from toucan.contracts.types import NodeID, NodeTypeName
from toucan.core.logging import get_logger
from toucan.core.widgets import resolve_widget_value

logger = get_logger(__name__)


def _is_connection_list(value: RequestInputValue) -> bool:
    return isinstance(value, list) and len(value) > 0 and all(isinstance(item, ConnectionRef) for item in value)


def merge_connection(existing: RequestInputValue | None, connection: ConnectionRef) -> RequestInputValue:
    """Merge a new connection into a slot's current value.

    - nothing yet -> the connection itself
    - a single connection -> ``[existing, connection]``
    - a list of connections -> a new list with the connection appended
    - a literal -> replaced by the connection
    """
    if existing is None:
        return connection
    if isinstance(existing, ConnectionRef):
        return [existing, connection]
    if _is_connection_list(existing):
        return [*existing, connection]  # type: ignore[misc]
    return connection


class _IssueCollector:
    """Accumulates diagnostics, dropping repeats of the same dedupe key."""

    def __init__(self) -> None:
        self.issues: list[CompileIssue] = []
        self._seen: set[Hashable] = set()

    def add(
        self,
        severity: IssueSeverity,
        code: IssueCode,
        message: str,
        node_id: NodeID,
        *,
        dedupe_key: Hashable | None = None,
    ) -> None:
        if dedupe_key is not None:
            if dedupe_key in self._seen:
                return
            self._seen.add(dedupe_key)
        self.issues.append(CompileIssue(severity=severity, code=code, message=message, node_id=node_id))

    def missing_schema(self, node_type: NodeTypeName, node_id: NodeID) -> None:
        self.add(
            IssueSeverity.WARNING,
            IssueCode.MISSING_SCHEMA,
            f"Missing schema for {node_type} ({node_id}).",
            node_id,
            dedupe_key=(IssueCode.MISSING_SCHEMA, node_id),
        )


def _resolve_fields(node: GraphNode, schema: NodeSchema) -> dict[str, RequestInputValue]:
    inputs: dict[str, RequestInputValue] = {}
    for slot in schema.inputs:
        if slot.group == SlotGroup.HIDDEN or not slot.is_widget_backed:
            continue
        # The default is only consulted when the node has never stored a value
        if slot.name in node.widget_values:
            resolved = resolve_widget_value(slot, node.widget_values[slot.name])
        else:
            resolved = resolve_widget_value(slot, None, slot.config.default)
        if resolved is not None:
            inputs[slot.name] = resolved
    return inputs


def compile_request(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    catalog: Mapping[str, NodeSchema],
) -> CompileResult:
    """Compile a graph snapshot into an execution request.

    Pure: inputs are never mutated and a fresh request graph is returned.

    Args:
        nodes: Canvas nodes, in canvas order
        edges: Canvas edges, in arrival order
        catalog: Node type name -> schema

    Returns:
        CompileResult with the request graph and all diagnostics
    """
    collector = _IssueCollector()
    request_graph: RequestGraph = {}
    nodes_by_id: dict[NodeID, GraphNode] = {}

    # Phase 1: field resolution
    for node in nodes:
        nodes_by_id[node.id] = node
        if not node.node_type:
            collector.add(
                IssueSeverity.WARNING,
                IssueCode.MISSING_TYPE,
                f"Node {node.id} is missing a type.",
                node.id,
                dedupe_key=(IssueCode.MISSING_TYPE, node.id),
            )
            continue

        schema = catalog.get(node.node_type)
        if schema is not None:
            inputs = _resolve_fields(node, schema)
        else:
            collector.missing_schema(node.node_type, node.id)
            inputs = {key: value for key, value in node.widget_values.items() if value is not None}

        request_graph[node.id] = RequestNode(class_type=node.node_type, inputs=inputs)

    # Phase 2: edge wiring
    for edge in edges:
        if not edge.source or not edge.target:
            continue

        source_slot_name = parse_handle_slot_name(edge.source_handle, OUTPUT_HANDLE_PREFIX)
        target_slot_name = parse_handle_slot_name(edge.target_handle, INPUT_HANDLE_PREFIX)
        if source_slot_name is None or target_slot_name is None:
            continue

        source_node = nodes_by_id.get(edge.source)
        target_node = nodes_by_id.get(edge.target)
        if source_node is None or target_node is None or not source_node.node_type:
            continue

        source_schema = catalog.get(source_node.node_type)
        if source_schema is None:
            collector.missing_schema(source_node.node_type, source_node.id)
            continue

        output_index = source_schema.output_index(source_slot_name)
        if output_index is None:
            collector.add(
                IssueSeverity.WARNING,
                IssueCode.UNKNOWN_OUTPUT,
                f"Unknown output {source_slot_name} on {source_node.node_type} ({source_node.id}).",
                source_node.id,
                dedupe_key=(IssueCode.UNKNOWN_OUTPUT, source_node.id, source_slot_name),
            )
            continue

        target_request = request_graph.get(target_node.id)
        if target_request is None:
            continue

        connection = ConnectionRef(source_node.id, output_index)
        target_request.inputs[target_slot_name] = merge_connection(
            target_request.inputs.get(target_slot_name),
            connection,
        )

    # Phase 3: required inputs (schema-scoped, so schema-less nodes never error here)
    for node in nodes:
        request_node = request_graph.get(node.id)
        if request_node is None:
            continue
        schema = catalog.get(request_node.class_type)
        if schema is None:
            continue
        for slot in schema.inputs:
            if slot.group != SlotGroup.REQUIRED:
                continue
            if slot.name not in request_node.inputs:
                collector.add(
                    IssueSeverity.ERROR,
                    IssueCode.MISSING_INPUT,
                    f"Missing required input {slot.name} on {schema.label} ({node.id}).",
                    node.id,
                )

    result = CompileResult(request_graph=request_graph, issues=tuple(collector.issues))
    logger.debug(
        "compile.completed",
        nodes=len(request_graph),
        edges=len(edges),
        errors=len(result.errors),
        warnings=len(result.warnings),
    )
    return result
