"""Widget value resolution.

Coerces a node's stored field value (or the slot's declared default) into
the canonical typed value the backend expects for that slot. Used by the
request compiler for every widget-backed input, and by the editing surface
to render the same value the compiler will send.

Resolution never raises: a value that cannot be coerced is "unresolved"
(returned as None) and the slot is simply left out of the request, where
the required-input check will catch it if it matters.
"""

from __future__ import annotations

import math
import re
from typing import Final

from toucan.contracts.enums import SlotGroup, WidgetKind
from toucan.contracts.schema import InputSlot, NodeSchema, WidgetSpec
from toucan.contracts.types import WidgetValue

# Declared value types that render as an inline widget (enumerated slots are
# detected by their options, whatever their declared type).
_WIDGET_KINDS: Final[dict[str, WidgetKind]] = {
    "STRING": WidgetKind.STRING,
    "INT": WidgetKind.NUMBER,
    "FLOAT": WidgetKind.NUMBER,
    "BOOLEAN": WidgetKind.BOOLEAN,
}

# Numeric text as the editing surface reads it (ASCII digits only)
_DECIMAL_LITERAL: Final = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_RADIX_LITERAL: Final = re.compile(r"0(?:[xX][0-9a-fA-F]+|[bB][01]+|[oO][0-7]+)")

# Value shown by an editor when neither the node nor the schema has one
_EMPTY_WIDGET_VALUES: Final[dict[WidgetKind, WidgetValue]] = {
    WidgetKind.STRING: "",
    WidgetKind.NUMBER: 0,
    WidgetKind.BOOLEAN: False,
}


def get_widget_spec(slot: InputSlot) -> WidgetSpec | None:
    """Derive the inline editor for a slot, or None if it has none."""
    if not slot.supports_widget:
        return None
    if slot.options:
        return WidgetSpec(kind=WidgetKind.SELECT, default_value=slot.config.default, options=slot.options)
    kind = _WIDGET_KINDS.get(slot.value_type)
    if kind is None:
        return None
    return WidgetSpec(kind=kind, default_value=slot.config.default)


def is_number(value: object) -> bool:
    """True for finite ints and floats. Booleans are not numbers here."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def parse_numeric_text(text: str) -> int | float | None:
    """Parse text with the editing surface's numeric grammar.

    Accepts signed decimal and exponent forms, and unsigned ``0x`` / ``0b`` /
    ``0o`` integer literals, after trimming whitespace. Blank text reads as 0.
    Digit separators, ``inf`` and ``nan`` spellings are not numbers.
    """
    stripped = text.strip()
    if not stripped:
        return 0
    if _RADIX_LITERAL.fullmatch(stripped):
        return int(stripped, 0)
    if not _DECIMAL_LITERAL.fullmatch(stripped):
        return None
    parsed = float(stripped)
    return parsed if math.isfinite(parsed) else None


def parse_finite_number(value: WidgetValue, *, blank: int | None = None) -> int | float | None:
    """Read a finite number from a stored value.

    Numbers pass through and numeric strings are parsed with
    parse_numeric_text(). Blank strings give ``blank``; anything else that is
    not a finite number gives None.
    """
    if is_number(value):
        return value  # type: ignore[return-value]
    if not isinstance(value, str):
        return None
    if not value.strip():
        return blank
    return parse_numeric_text(value)


def truncate(value: int | float) -> int:
    """Truncate toward zero, keeping ints exact."""
    return value if isinstance(value, int) else math.trunc(value)


def stringify(value: WidgetValue) -> str:
    """String form of a literal, as the editing surface would display it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _resolve_number(value: WidgetValue, *, is_integer: bool) -> int | float | None:
    parsed = parse_finite_number(value)
    if parsed is None:
        return None
    return truncate(parsed) if is_integer else parsed


def resolve_widget_value(
    slot: InputSlot,
    raw_value: WidgetValue = None,
    fallback_value: WidgetValue = None,
) -> WidgetValue:
    """Resolve the canonical value for one slot.

    Args:
        slot: Input slot the value belongs to
        raw_value: Value stored on the node (None when absent)
        fallback_value: Declared default, consulted only when raw_value is absent

    Returns:
        The coerced value, or None when the slot is unresolved.
    """
    value = raw_value if raw_value is not None else fallback_value
    if value is None:
        return None

    if slot.options or slot.value_type == "STRING":
        return value if isinstance(value, str) else stringify(value)

    if slot.value_type == "BOOLEAN":
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.lower()
            if lowered == "true":
                return True
            if lowered == "false":
                return False
        return None

    if slot.value_type == "INT":
        return _resolve_number(value, is_integer=True)

    if slot.value_type == "FLOAT":
        return _resolve_number(value, is_integer=False)

    return value


def build_widget_defaults(schema: NodeSchema | None) -> dict[str, WidgetValue]:
    """Initial widget values for a freshly created node of this type.

    Covers every non-hidden, widget-backed slot: the declared default when
    there is one, otherwise the first option (selects) or the editor's
    empty value.
    """
    if schema is None:
        return {}

    values: dict[str, WidgetValue] = {}
    for slot in schema.inputs:
        if slot.group == SlotGroup.HIDDEN or not slot.is_widget_backed:
            continue
        spec = get_widget_spec(slot)
        if spec is None:
            continue
        if spec.default_value is not None:
            values[slot.name] = spec.default_value
        elif spec.kind == WidgetKind.SELECT:
            values[slot.name] = spec.options[0]
        else:
            values[slot.name] = _EMPTY_WIDGET_VALUES[spec.kind]
    return values
