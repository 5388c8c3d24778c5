# src/toucan/contracts/submission.py
"""Dispatch boundary contracts.

The core never talks to the backend itself. A Dispatcher is injected into
the submission session and receives the compiled request; whatever
transport it uses (HTTP, websocket, a test double) is its own business.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from toucan.contracts.enums import SubmissionStatus
from toucan.contracts.graph import GraphNode


@dataclass(frozen=True, slots=True)
class DispatchRequest:
    """Everything handed to the dispatcher for one run.

    Attributes:
        prompt: Request graph rendered by request_graph_payload()
        client_id: Stable per-session id so the backend can route progress events
    """

    prompt: dict[str, dict[str, Any]]
    client_id: str


@dataclass(frozen=True, slots=True)
class DispatchResult:
    """Dispatcher response.

    Attributes:
        ok: Whether the backend accepted the request
        payload: Decoded response body, if any
        message: Failure description shown to the user when ok is False
    """

    ok: bool
    payload: Any = None
    message: str = ""


class Dispatcher(Protocol):
    """Callable that hands a compiled request to the backend."""

    def __call__(self, request: DispatchRequest) -> DispatchResult: ...


@dataclass(frozen=True, slots=True)
class SubmissionOutcome:
    """Result of SubmissionSession.submit().

    Attributes:
        status: What happened
        nodes: Node collection the caller should adopt (identity-preserving
            when nothing was mutated)
        errors: Blocking compile errors
        warnings: Advisory compile warnings
        prompt_id: Backend-assigned id when queued and reported
        message: Dispatcher failure message
    """

    status: SubmissionStatus
    nodes: Sequence[GraphNode]
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    prompt_id: str | None = None
    message: str = ""
