"""Connection-endpoint (handle) encoding shared with the editing surface.

Every edge endpoint is carried as ``<direction-marker><slot name>``:
``out-IMAGE`` on the producing side, ``in-image`` on the consuming side.
Changing these markers is a breaking change for stored workflows.
"""

from __future__ import annotations

from typing import Final, Literal, TypeAlias

OUTPUT_HANDLE_PREFIX: Final = "out-"
INPUT_HANDLE_PREFIX: Final = "in-"

HandlePrefix: TypeAlias = Literal["out-", "in-"]


def parse_handle_slot_name(handle_id: str | None, prefix: HandlePrefix) -> str | None:
    """Decode the slot name from a handle id.

    Returns None when the handle is absent, carries the other direction's
    marker, or has nothing after the marker.
    """
    if not handle_id or not handle_id.startswith(prefix):
        return None
    slot_name = handle_id[len(prefix) :]
    return slot_name or None


def encode_output_handle(slot_name: str) -> str:
    return f"{OUTPUT_HANDLE_PREFIX}{slot_name}"


def encode_input_handle(slot_name: str) -> str:
    return f"{INPUT_HANDLE_PREFIX}{slot_name}"
