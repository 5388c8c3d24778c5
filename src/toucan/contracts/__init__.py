"""Shared contracts for cross-boundary data types.

All dataclasses, enums, NewTypes and protocols that cross subsystem
boundaries are defined here. This package is a LEAF MODULE with no
outbound dependencies to core/engine.

Import patterns:
    from toucan.contracts import GraphNode, GraphEdge, NodeSchema
    from toucan.core.compiler import compile_request
"""

from toucan.contracts.enums import (
    ControlMode,
    ControlPhase,
    IssueCode,
    IssueSeverity,
    SlotGroup,
    SubmissionStatus,
    WidgetKind,
)
from toucan.contracts.errors import CatalogError, WorkflowFormatError
from toucan.contracts.graph import GraphEdge, GraphNode, index_nodes
from toucan.contracts.handles import (
    INPUT_HANDLE_PREFIX,
    OUTPUT_HANDLE_PREFIX,
    encode_input_handle,
    encode_output_handle,
    parse_handle_slot_name,
)
from toucan.contracts.request import (
    CompileIssue,
    CompileResult,
    ConnectionRef,
    RequestGraph,
    RequestInputValue,
    RequestNode,
    request_graph_payload,
)
from toucan.contracts.schema import InputSlot, NodeSchema, OutputSlot, SlotConfig, WidgetSpec
from toucan.contracts.submission import (
    DispatchRequest,
    DispatchResult,
    Dispatcher,
    SubmissionOutcome,
)
from toucan.contracts.types import ControlKey, NodeID, NodeTypeName, SlotName, WidgetValue

__all__ = [
    # enums
    "ControlMode",
    "ControlPhase",
    "IssueCode",
    "IssueSeverity",
    "SlotGroup",
    "SubmissionStatus",
    "WidgetKind",
    # errors
    "CatalogError",
    "WorkflowFormatError",
    # graph
    "GraphEdge",
    "GraphNode",
    "index_nodes",
    # handles
    "INPUT_HANDLE_PREFIX",
    "OUTPUT_HANDLE_PREFIX",
    "encode_input_handle",
    "encode_output_handle",
    "parse_handle_slot_name",
    # request
    "CompileIssue",
    "CompileResult",
    "ConnectionRef",
    "RequestGraph",
    "RequestInputValue",
    "RequestNode",
    "request_graph_payload",
    # schema
    "InputSlot",
    "NodeSchema",
    "OutputSlot",
    "SlotConfig",
    "WidgetSpec",
    # submission
    "DispatchRequest",
    "DispatchResult",
    "Dispatcher",
    "SubmissionOutcome",
    # types
    "ControlKey",
    "NodeID",
    "NodeTypeName",
    "SlotName",
    "WidgetValue",
]
