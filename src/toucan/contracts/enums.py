"""Status codes, modes, and kinds used across subsystem boundaries."""

from enum import StrEnum


class SlotGroup(StrEnum):
    """Group an input slot is declared in by the backend schema.

    Hidden slots are filled in by the backend itself and never compiled.
    """

    REQUIRED = "required"
    OPTIONAL = "optional"
    HIDDEN = "hidden"


class WidgetKind(StrEnum):
    """Kind of inline editor an input slot is rendered with."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    SELECT = "select"


class ControlMode(StrEnum):
    """How a control field is advanced between runs.

    FIXED: Leave the value as the author set it
    INCREMENT: Step up (numbers) or move to the next option (selects)
    DECREMENT: Step down (numbers) or move to the previous option (selects)
    RANDOMIZE: Draw a new value inside the slot's bounds
    """

    FIXED = "fixed"
    INCREMENT = "increment"
    DECREMENT = "decrement"
    RANDOMIZE = "randomize"


class ControlPhase(StrEnum):
    """When control fields are advanced relative to dispatch.

    AFTER: Mutate the live node state once a run has been queued
    BEFORE: Mutate just before compiling, skipping the first sighting of each field
    """

    BEFORE = "before"
    AFTER = "after"


class IssueSeverity(StrEnum):
    """Severity of a compile diagnostic.

    ERROR blocks submission. WARNING needs explicit confirmation.
    """

    ERROR = "error"
    WARNING = "warning"


class IssueCode(StrEnum):
    """Machine-readable kind of a compile diagnostic."""

    MISSING_TYPE = "missing-type"
    MISSING_SCHEMA = "missing-schema"
    UNKNOWN_OUTPUT = "unknown-output"
    MISSING_INPUT = "missing-input"


class SubmissionStatus(StrEnum):
    """Outcome of one submission attempt.

    BLOCKED: Compile errors, nothing dispatched
    DECLINED: Warnings were not confirmed, nothing dispatched
    FAILED: Dispatcher reported a failure
    QUEUED: Request accepted by the backend
    """

    BLOCKED = "blocked"
    DECLINED = "declined"
    FAILED = "failed"
    QUEUED = "queued"
