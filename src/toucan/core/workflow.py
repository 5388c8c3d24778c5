"""Workflow documents as written by the editing surface.

Two shapes are accepted: a saved snapshot
``{"version": 1, "savedAt": ..., "graph": {"nodes": [...], "edges": [...], "viewport": ...}}``
and a bare ``{"nodes": [...], "edges": [...]}`` graph. Node records keep their
editor state under ``data`` (``nodeType``, ``widgetValues``,
``widgetControlValues``); everything else (positions, viewport, styling) is
ignored on read and preserved on write-back.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final

from pydantic import BaseModel, Field, ValidationError

from toucan.contracts.errors import WorkflowFormatError
from toucan.contracts.graph import GraphEdge, GraphNode
from toucan.contracts.types import NodeID, NodeTypeName

WORKFLOW_SNAPSHOT_VERSION: Final = 1


class _NodeData(BaseModel):
    model_config = {"extra": "ignore", "populate_by_name": True}

    node_type: str | None = Field(default=None, alias="nodeType")
    widget_values: dict[str, str | int | float | bool | None] = Field(default_factory=dict, alias="widgetValues")
    widget_control_values: dict[str, Any] = Field(default_factory=dict, alias="widgetControlValues")


class _NodeRecord(BaseModel):
    model_config = {"extra": "ignore"}

    id: str
    data: _NodeData = Field(default_factory=_NodeData)


class _EdgeRecord(BaseModel):
    model_config = {"extra": "ignore", "populate_by_name": True}

    source: str | None = None
    target: str | None = None
    source_handle: str | None = Field(default=None, alias="sourceHandle")
    target_handle: str | None = Field(default=None, alias="targetHandle")


class _GraphRecord(BaseModel):
    model_config = {"extra": "ignore"}

    nodes: list[_NodeRecord] = Field(default_factory=list)
    edges: list[_EdgeRecord] = Field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Workflow:
    """Nodes and edges read from a workflow document."""

    nodes: tuple[GraphNode, ...]
    edges: tuple[GraphEdge, ...]


def _graph_section(raw: Any) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise WorkflowFormatError(f"Workflow must be a JSON object, got {type(raw).__name__}")
    if "graph" not in raw:
        return raw
    version = raw.get("version")
    if version != WORKFLOW_SNAPSHOT_VERSION:
        raise WorkflowFormatError(f"Unsupported workflow snapshot version: {version!r}")
    graph = raw["graph"]
    if not isinstance(graph, Mapping):
        raise WorkflowFormatError("Workflow snapshot 'graph' must be a JSON object")
    return graph


def load_workflow(raw: Any) -> Workflow:
    """Read nodes and edges from a workflow document.

    Raises:
        WorkflowFormatError: If the document is not a readable workflow
    """
    try:
        record = _GraphRecord.model_validate(_graph_section(raw))
    except ValidationError as e:
        raise WorkflowFormatError(f"Invalid workflow document: {e.error_count()} problem(s)\n{e}") from e

    nodes = tuple(
        GraphNode(
            id=NodeID(node.id),
            node_type=NodeTypeName(node.data.node_type) if node.data.node_type else None,
            widget_values=dict(node.data.widget_values),
            control_modes={k: v for k, v in node.data.widget_control_values.items() if isinstance(v, str)},
        )
        for node in record.nodes
    )
    edges = tuple(
        GraphEdge(
            source=NodeID(edge.source) if edge.source else None,
            source_handle=edge.source_handle,
            target=NodeID(edge.target) if edge.target else None,
            target_handle=edge.target_handle,
        )
        for edge in record.edges
    )
    return Workflow(nodes=nodes, edges=edges)


def apply_widget_values(raw: Mapping[str, Any], nodes: Sequence[GraphNode]) -> dict[str, Any]:
    """Copy of ``raw`` with each node's ``data.widgetValues`` replaced from ``nodes``.

    Node records not present in ``nodes`` are left untouched.
    """
    updated = copy.deepcopy(dict(raw))
    graph = updated["graph"] if "graph" in updated else updated
    values_by_id = {node.id: dict(node.widget_values) for node in nodes}

    for record in graph.get("nodes", []):
        if not isinstance(record, dict) or record.get("id") not in values_by_id:
            continue
        data = record.setdefault("data", {})
        data["widgetValues"] = values_by_id[record["id"]]
    return updated
