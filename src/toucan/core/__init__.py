"""Core: catalog, widget resolution, connection validation, compilation, control fields."""

from toucan.core.catalog import SchemaCatalog
from toucan.core.compiler import compile_request
from toucan.core.connections import is_valid_connection, resolve_connection_slots
from toucan.core.control import ControlResult, apply_control_after_generate
from toucan.core.widgets import resolve_widget_value

__all__ = [
    "ControlResult",
    "SchemaCatalog",
    "apply_control_after_generate",
    "compile_request",
    "is_valid_connection",
    "resolve_connection_slots",
    "resolve_widget_value",
]
