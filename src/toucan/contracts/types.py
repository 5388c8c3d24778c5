"""Semantic type aliases for compile-time type safety.

NewType creates distinct types that mypy treats as incompatible,
preventing accidental misuse of semantically different string values.
"""

from typing import NewType, TypeAlias

NodeID = NewType("NodeID", str)
"""Canvas node identifier, unique within one graph (e.g., a UUID)"""

SlotName = NewType("SlotName", str)
"""Input or output slot name declared by a node schema (e.g., 'seed', 'IMAGE')"""

NodeTypeName = NewType("NodeTypeName", str)
"""Key into the schema catalog (e.g., 'KSampler', 'CheckpointLoaderSimple')"""

WidgetValue: TypeAlias = str | int | float | bool | None
"""Literal field value stored by the editing surface for one input slot."""

ControlKey: TypeAlias = tuple[NodeID, SlotName]
"""(node_id, slot_name) entry in the control idempotency record."""
