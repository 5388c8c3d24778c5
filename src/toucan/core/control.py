# src/toucan/core/control.py
"""Control-field engine ("control after generate").

The backend caches executions keyed on exact input values, so queueing the
same graph twice would silently return the cached result. Control fields
(seeds and similar) are advanced between runs to prevent that. Each eligible
slot carries its own ControlMode; numbers step or re-roll inside their
declared bounds, selects move through their option list.

The engine is copy-on-write: it returns a new node sequence in which only
changed nodes are rebuilt, and returns the input sequence itself when
nothing changed.
"""

from __future__ import annotations

import math
import random as random_module
from collections.abc import Mapping, MutableSet, Sequence
from dataclasses import dataclass, replace
from typing import Final

from toucan.contracts.enums import ControlMode, ControlPhase, WidgetKind
from toucan.contracts.graph import GraphNode
from toucan.contracts.schema import InputSlot, NodeSchema, WidgetSpec
from toucan.contracts.types import ControlKey, WidgetValue
from toucan.core.logging import get_logger
from toucan.core.widgets import get_widget_spec, is_number, parse_finite_number, truncate

logger = get_logger(__name__)

CONTROL_MODES: Final[tuple[ControlMode, ...]] = tuple(ControlMode)
DEFAULT_CONTROL_MODE: Final = ControlMode.RANDOMIZE

# Slot names treated as control fields when the schema does not say either way
CONTROL_FALLBACK_NAMES: Final[frozenset[str]] = frozenset({"seed", "noise_seed"})

# Symmetric bound on randomized values (2**50) so an unbounded slot cannot
# produce magnitudes the backend's number handling would mangle
MAX_RANDOM_RANGE: Final = 1125899906842624

_MUTABLE_WIDGET_KINDS: Final = frozenset({WidgetKind.NUMBER, WidgetKind.SELECT})


@dataclass(frozen=True, slots=True)
class ControlResult:
    """Outcome of one engine pass.

    Attributes:
        nodes: Node sequence to adopt; the input sequence itself when nothing changed
        did_mutate: Whether any widget value changed
    """

    nodes: Sequence[GraphNode]
    did_mutate: bool


def normalize_control_mode(value: object) -> ControlMode:
    """Stored mode -> ControlMode, falling back to RANDOMIZE for unset/invalid."""
    if isinstance(value, str):
        try:
            return ControlMode(value)
        except ValueError:
            pass
    return DEFAULT_CONTROL_MODE


def is_control_enabled(slot: InputSlot) -> bool:
    """Whether a slot is a control field.

    The schema's control flag decides when present (True or a mode name
    enables, False disables); otherwise conventional seed names qualify.
    """
    if not slot.is_widget_backed:
        return False
    flag = slot.config.control_after_generate
    if flag is True or isinstance(flag, str):
        return True
    if flag is False:
        return False
    return slot.name in CONTROL_FALLBACK_NAMES


def _is_mutable_widget(spec: WidgetSpec | None) -> bool:
    return spec is not None and spec.kind in _MUTABLE_WIDGET_KINDS


def build_control_defaults(schema: NodeSchema | None) -> dict[str, ControlMode]:
    """Initial control modes for a freshly created node of this type."""
    if schema is None:
        return {}
    return {
        slot.name: DEFAULT_CONTROL_MODE
        for slot in schema.inputs
        if is_control_enabled(slot) and _is_mutable_widget(get_widget_spec(slot))
    }


def _resolve_step(slot: InputSlot) -> float:
    step = slot.config.step
    if step is None or not math.isfinite(step) or step == 0:
        return 1
    return abs(step)


def _resolve_bounds(slot: InputSlot, fallback: float, step: float) -> tuple[float, float]:
    low = slot.config.min if is_number(slot.config.min) else fallback
    high = slot.config.max if is_number(slot.config.max) else low + step
    if high < low:
        low, high = high, low

    low = max(-MAX_RANDOM_RANGE, low)
    high = min(MAX_RANDOM_RANGE, high)
    if high < low:
        high = low
    return low, high


def _apply_number_control(
    mode: ControlMode,
    slot: InputSlot,
    spec: WidgetSpec,
    raw_value: WidgetValue,
    rng: random_module.Random,
) -> int | float | None:
    if mode == ControlMode.FIXED:
        return None

    is_integer = slot.value_type == "INT"
    default = spec.default_value if is_number(spec.default_value) else 0
    step = _resolve_step(slot)
    low, high = _resolve_bounds(slot, default, step)  # type: ignore[arg-type]

    current = parse_finite_number(raw_value, blank=0)
    if current is None:
        current = default  # type: ignore[assignment]
    if is_integer:
        current = truncate(current)  # type: ignore[arg-type]

    if mode == ControlMode.INCREMENT:
        next_value = current + step  # type: ignore[operator]
    elif mode == ControlMode.DECREMENT:
        next_value = current - step  # type: ignore[operator]
    else:
        span = (high - low) / step
        roll = math.floor(rng.random() * span) if span > 0 else 0
        next_value = roll * step + low

    next_value = min(max(next_value, low), high)
    return truncate(next_value) if is_integer else next_value


def _apply_select_control(
    mode: ControlMode,
    spec: WidgetSpec,
    raw_value: WidgetValue,
    rng: random_module.Random,
) -> str | None:
    if mode == ControlMode.FIXED or not spec.options:
        return None

    options = spec.options
    fallback = spec.default_value if isinstance(spec.default_value, str) else options[0]
    current = raw_value if isinstance(raw_value, str) else fallback
    index = options.index(current) if current in options else 0

    if mode == ControlMode.INCREMENT:
        index += 1
    elif mode == ControlMode.DECREMENT:
        index -= 1
    else:
        index = math.floor(rng.random() * len(options))

    index = max(0, min(len(options) - 1, index))
    return options[index]


def _same_value(left: WidgetValue, right: WidgetValue) -> bool:
    if is_number(left) and is_number(right):
        return left == right
    return type(left) is type(right) and left == right


def apply_control_after_generate(
    nodes: Sequence[GraphNode],
    catalog: Mapping[str, NodeSchema],
    phase: ControlPhase,
    *,
    executed_controls: MutableSet[ControlKey] | None = None,
    rng: random_module.Random | None = None,
) -> ControlResult:
    """Advance every eligible control field on the given nodes.

    Args:
        nodes: Current node collection (never modified)
        catalog: Node type name -> schema
        phase: AFTER mutates unconditionally. BEFORE skips (and records) the
            first sighting of each (node_id, slot_name) in executed_controls,
            so the very first run uses the author's value.
        executed_controls: Idempotency record owned by the caller; only ever
            added to
        rng: Random source; inject a seeded random.Random() for deterministic tests

    Returns:
        ControlResult with the (possibly) updated node sequence
    """
    rng = rng if rng is not None else random_module.Random()
    next_nodes: list[GraphNode] | None = None
    mutated_fields = 0

    for position, node in enumerate(nodes):
        if not node.node_type:
            continue
        schema = catalog.get(node.node_type)
        if schema is None:
            continue

        next_values: dict[str, WidgetValue] | None = None
        for slot in schema.inputs:
            if not is_control_enabled(slot):
                continue

            key: ControlKey = (node.id, slot.name)
            if phase == ControlPhase.BEFORE and executed_controls is not None and key not in executed_controls:
                executed_controls.add(key)
                continue

            spec = get_widget_spec(slot)
            if spec is None or not _is_mutable_widget(spec):
                continue

            mode = normalize_control_mode(node.control_modes.get(slot.name))
            raw_value = node.widget_values.get(slot.name)
            if spec.kind == WidgetKind.NUMBER:
                next_value: WidgetValue = _apply_number_control(mode, slot, spec, raw_value, rng)
            else:
                next_value = _apply_select_control(mode, spec, raw_value, rng)

            if next_value is None or _same_value(next_value, raw_value):
                continue
            if next_values is None:
                next_values = dict(node.widget_values)
            next_values[slot.name] = next_value
            mutated_fields += 1

        if next_values is not None:
            if next_nodes is None:
                next_nodes = list(nodes)
            next_nodes[position] = replace(node, widget_values=next_values)

    logger.debug("controls.applied", phase=str(phase), mutated_fields=mutated_fields)
    if next_nodes is None:
        return ControlResult(nodes=nodes, did_mutate=False)
    return ControlResult(nodes=next_nodes, did_mutate=True)
