"""Schema catalog: read-only lookup from node type name to NodeSchema.

The catalog is fetched by an external collaborator; this module only turns
the backend's ``object_info`` document into NodeSchema records and wraps
them in an immutable mapping. Node "type" is just a lookup key, so there is
no class hierarchy behind it.
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any, Final

from toucan.contracts.enums import SlotGroup
from toucan.contracts.errors import CatalogError
from toucan.contracts.schema import InputSlot, NodeSchema, OutputSlot, SlotConfig
from toucan.contracts.types import NodeTypeName, SlotName, WidgetValue
from toucan.core.logging import get_logger

logger = get_logger(__name__)

# Declared types the backend renders with an inline widget
WIDGET_VALUE_TYPES: Final[frozenset[str]] = frozenset({"INT", "FLOAT", "STRING", "BOOLEAN"})

# Declared type recorded for enumerated slots/outputs given as an option list
COMBO_TYPE: Final = "COMBO"


class SchemaCatalog(Mapping[str, NodeSchema]):
    """Immutable mapping of node type name -> NodeSchema."""

    __slots__ = ("_schemas",)

    def __init__(self, schemas: Mapping[str, NodeSchema] | None = None) -> None:
        self._schemas: MappingProxyType[str, NodeSchema] = MappingProxyType(dict(schemas or {}))

    def __getitem__(self, node_type: str) -> NodeSchema:
        return self._schemas[node_type]

    def __iter__(self) -> Iterator[str]:
        return iter(self._schemas)

    def __len__(self) -> int:
        return len(self._schemas)

    def __repr__(self) -> str:
        return f"SchemaCatalog({len(self._schemas)} node types)"

    @classmethod
    def from_schemas(cls, *schemas: NodeSchema) -> SchemaCatalog:
        """Build a catalog keyed by each schema's own name."""
        return cls({schema.name: schema for schema in schemas})

    @classmethod
    def from_object_info(cls, raw: Mapping[str, Any]) -> SchemaCatalog:
        """Parse a backend ``object_info`` document.

        A malformed node entry is logged and left out, so compiling a graph
        that uses it reports the usual missing-schema warning instead of the
        whole catalog failing to load.

        Raises:
            CatalogError: If the document itself is not a JSON object
        """
        if not isinstance(raw, Mapping):
            raise CatalogError(f"object_info must be a JSON object, got {type(raw).__name__}")

        schemas: dict[str, NodeSchema] = {}
        for node_type, entry in raw.items():
            try:
                schemas[str(node_type)] = parse_node_schema(str(node_type), entry)
            except CatalogError as e:
                logger.warning("catalog.node_skipped", node_type=str(node_type), reason=str(e))

        logger.debug("catalog.loaded", node_types=len(schemas), skipped=len(raw) - len(schemas))
        return cls(schemas)


def parse_node_schema(node_type: str, entry: Any) -> NodeSchema:
    """Parse one ``object_info`` entry into a NodeSchema.

    Raises:
        CatalogError: If the entry is malformed
    """
    if not isinstance(entry, Mapping):
        raise CatalogError(f"Schema for '{node_type}' must be an object")

    input_section = entry.get("input") or {}
    if not isinstance(input_section, Mapping):
        raise CatalogError(f"Schema for '{node_type}' has a non-object 'input' section")
    input_order = entry.get("input_order") or {}
    if not isinstance(input_order, Mapping):
        input_order = {}

    inputs: list[InputSlot] = []
    for group in SlotGroup:
        group_entries = input_section.get(group.value) or {}
        if not isinstance(group_entries, Mapping):
            raise CatalogError(f"Schema for '{node_type}' has a non-object '{group.value}' input group")
        for slot_name in _ordered_names(group_entries, input_order.get(group.value)):
            inputs.append(_parse_input_slot(node_type, slot_name, group, group_entries[slot_name]))

    return NodeSchema(
        name=NodeTypeName(node_type),
        inputs=tuple(inputs),
        outputs=_parse_outputs(node_type, entry),
        display_name=str(entry.get("display_name") or ""),
        category=str(entry.get("category") or ""),
        description=str(entry.get("description") or ""),
        output_node=entry.get("output_node") is True,
    )


def _ordered_names(group_entries: Mapping[str, Any], declared_order: Any) -> list[str]:
    """Slot names in declared order; undeclared names keep document order."""
    names = [str(name) for name in group_entries]
    if not isinstance(declared_order, list):
        return names
    ordered = [name for name in declared_order if isinstance(name, str) and name in group_entries]
    ordered.extend(name for name in names if name not in ordered)
    return ordered


def _parse_input_slot(node_type: str, slot_name: str, group: SlotGroup, raw: Any) -> InputSlot:
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, (list, tuple)) or not raw:
        raise CatalogError(f"Input '{slot_name}' on '{node_type}' must be a non-empty list")

    type_spec = raw[0]
    config_raw = raw[1] if len(raw) > 1 else {}
    if config_raw is None:
        config_raw = {}
    if not isinstance(config_raw, Mapping):
        raise CatalogError(f"Input '{slot_name}' on '{node_type}' has a non-object config")

    options: tuple[str, ...] = ()
    if isinstance(type_spec, list):
        value_type = COMBO_TYPE
        options = tuple(str(option) for option in type_spec)
    elif isinstance(type_spec, str):
        value_type = type_spec
        if type_spec == COMBO_TYPE:
            raw_options = config_raw.get("options")
            if isinstance(raw_options, list):
                options = tuple(str(option) for option in raw_options)
    else:
        raise CatalogError(f"Input '{slot_name}' on '{node_type}' has an unreadable type {type_spec!r}")

    return InputSlot(
        name=SlotName(slot_name),
        group=group,
        value_type=value_type,
        supports_widget=bool(options) or value_type in WIDGET_VALUE_TYPES,
        force_input=config_raw.get("forceInput") is True,
        options=options,
        config=SlotConfig(
            default=_literal(config_raw.get("default")),
            min=_finite(config_raw.get("min")),
            max=_finite(config_raw.get("max")),
            step=_finite(config_raw.get("step")),
            control_after_generate=_control_flag(config_raw.get("control_after_generate")),
        ),
    )


def _parse_outputs(node_type: str, entry: Mapping[str, Any]) -> tuple[OutputSlot, ...]:
    types = entry.get("output") or []
    names = entry.get("output_name") or []
    if not isinstance(types, list) or not isinstance(names, list):
        raise CatalogError(f"Schema for '{node_type}' has non-list 'output'/'output_name'")

    outputs: list[OutputSlot] = []
    for index, raw_type in enumerate(types):
        output_type = COMBO_TYPE if isinstance(raw_type, list) else str(raw_type)
        name = names[index] if index < len(names) and isinstance(names[index], str) else output_type
        outputs.append(OutputSlot(name=SlotName(name), type=output_type))
    return tuple(outputs)


def _literal(value: Any) -> WidgetValue:
    if isinstance(value, (str, int, float, bool)):
        return value
    return None


def _finite(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value if math.isfinite(value) else None


def _control_flag(value: Any) -> bool | str | None:
    if isinstance(value, (bool, str)):
        return value
    return None
