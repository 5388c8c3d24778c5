"""Node schema contracts supplied by the schema catalog.

A NodeSchema describes one node type: its ordered input slots (with widget
configuration) and its ordered output slots. Schemas are read-only to the
rest of the system; output positions are part of the wire contract because
connection references address outputs by index.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from toucan.contracts.enums import SlotGroup, WidgetKind
from toucan.contracts.errors import CatalogError
from toucan.contracts.types import NodeTypeName, SlotName, WidgetValue


@dataclass(frozen=True, slots=True)
class SlotConfig:
    """Widget configuration declared for an input slot.

    Attributes:
        default: Value used when the node has no stored value for the slot
        min: Lower bound for numeric widgets
        max: Upper bound for numeric widgets
        step: Increment for numeric widgets
        control_after_generate: True (or a mode name) when the slot is a
            control field; None when the schema says nothing
    """

    default: WidgetValue = None
    min: float | None = None
    max: float | None = None
    step: float | None = None
    control_after_generate: bool | str | None = None


@dataclass(frozen=True, slots=True)
class InputSlot:
    """A named input port on a node type."""

    name: SlotName
    group: SlotGroup
    value_type: str
    supports_widget: bool = False
    force_input: bool = False
    options: tuple[str, ...] = ()
    config: SlotConfig = field(default_factory=SlotConfig)

    @property
    def is_widget_backed(self) -> bool:
        """Whether the slot takes a literal value typed into the node."""
        return self.supports_widget and not self.force_input


@dataclass(frozen=True, slots=True)
class OutputSlot:
    """A named output port on a node type."""

    name: SlotName
    type: str


@dataclass(frozen=True, slots=True)
class WidgetSpec:
    """Inline editor derived from an input slot's declared type."""

    kind: WidgetKind
    default_value: WidgetValue = None
    options: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class NodeSchema:
    """Schema record for one node type.

    Slot names must be unique within inputs and within outputs (the two
    lists are independent namespaces).
    """

    name: NodeTypeName
    inputs: tuple[InputSlot, ...] = ()
    outputs: tuple[OutputSlot, ...] = ()
    display_name: str = ""
    category: str = ""
    description: str = ""
    output_node: bool = False

    def __post_init__(self) -> None:
        for kind, slots in (("input", self.inputs), ("output", self.outputs)):
            seen: set[str] = set()
            for slot in slots:
                if slot.name in seen:
                    raise CatalogError(f"Duplicate {kind} slot '{slot.name}' in schema '{self.name}'")
                seen.add(slot.name)

    @property
    def label(self) -> str:
        """Human-facing name used in diagnostics."""
        return self.display_name or self.name

    def get_input(self, slot_name: str) -> InputSlot | None:
        for slot in self.inputs:
            if slot.name == slot_name:
                return slot
        return None

    def get_output(self, slot_name: str) -> OutputSlot | None:
        index = self.output_index(slot_name)
        return None if index is None else self.outputs[index]

    def output_index(self, slot_name: str) -> int | None:
        """Position of an output slot, as addressed by connection references."""
        for index, slot in enumerate(self.outputs):
            if slot.name == slot_name:
                return index
        return None
