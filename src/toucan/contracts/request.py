"""Execution request contracts produced by the request compiler.

The request graph maps node id -> RequestNode. Each input value is a
literal, a single ConnectionRef, or an ordered list of ConnectionRefs in
edge-arrival order. The order of such lists is passed through untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, NamedTuple, TypeAlias

from toucan.contracts.enums import IssueCode, IssueSeverity
from toucan.contracts.types import NodeID, NodeTypeName, WidgetValue


class ConnectionRef(NamedTuple):
    """Pointer to output ``output_index`` of node ``node_id``.

    A NamedTuple so it serializes as the two-element list the backend expects.
    """

    node_id: NodeID
    output_index: int


RequestInputValue: TypeAlias = WidgetValue | ConnectionRef | list[ConnectionRef]


@dataclass(slots=True)
class RequestNode:
    """Backend-facing representation of one graph node."""

    class_type: NodeTypeName
    inputs: dict[str, RequestInputValue] = field(default_factory=dict)


RequestGraph: TypeAlias = dict[NodeID, RequestNode]


@dataclass(frozen=True, slots=True)
class CompileIssue:
    """One diagnostic accumulated while compiling a graph.

    Attributes:
        severity: ERROR blocks submission, WARNING is advisory
        code: Kind of problem
        message: Human-readable text shown to the user
        node_id: Node the problem belongs to
    """

    severity: IssueSeverity
    code: IssueCode
    message: str
    node_id: NodeID


@dataclass(frozen=True, slots=True)
class CompileResult:
    """Request graph plus every diagnostic from one compile pass."""

    request_graph: RequestGraph
    issues: tuple[CompileIssue, ...] = ()

    @property
    def errors(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == IssueSeverity.ERROR]

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == IssueSeverity.WARNING]

    @property
    def is_submittable(self) -> bool:
        """True when no blocking error was found (warnings still need confirmation)."""
        return not any(issue.severity == IssueSeverity.ERROR for issue in self.issues)


def request_graph_payload(request_graph: RequestGraph) -> dict[str, dict[str, Any]]:
    """Render a request graph as plain JSON-ready dicts.

    Connection references become ``[node_id, output_index]`` lists.
    """
    payload: dict[str, dict[str, Any]] = {}
    for node_id, request_node in request_graph.items():
        inputs: dict[str, Any] = {}
        for slot_name, value in request_node.inputs.items():
            if isinstance(value, ConnectionRef):
                inputs[slot_name] = list(value)
            elif isinstance(value, list):
                inputs[slot_name] = [list(ref) for ref in value]
            else:
                inputs[slot_name] = value
        payload[node_id] = {"class_type": request_node.class_type, "inputs": inputs}
    return payload
