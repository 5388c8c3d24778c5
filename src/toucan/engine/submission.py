# src/toucan/engine/submission.py
"""Submission orchestration for one editing session.

SubmissionSession sequences a run the way the canvas "Queue" action does:

1. BEFORE phase only: advance control fields against a *staged* copy of the
   session's idempotency record
2. compile; blocking errors stop here with nothing committed
3. ask the caller to confirm warnings; a refusal stops here
4. commit the staged idempotency record
5. dispatch through the injected Dispatcher
6. AFTER phase only: advance control fields on the dispatched nodes

Staging matters: a run that is blocked or declined must not consume the
"first sighting" of a control field, otherwise the author's original seed
would be skipped on the next attempt.
"""

from __future__ import annotations

import random as random_module
import uuid
from collections.abc import Callable, Mapping, Sequence
from typing import Any, TypeAlias

from toucan.contracts.enums import ControlPhase, SubmissionStatus
from toucan.contracts.graph import GraphEdge, GraphNode
from toucan.contracts.request import request_graph_payload
from toucan.contracts.schema import NodeSchema
from toucan.contracts.submission import DispatchRequest, Dispatcher, SubmissionOutcome
from toucan.contracts.types import ControlKey
from toucan.core.compiler import compile_request
from toucan.core.control import apply_control_after_generate
from toucan.core.logging import get_logger, session_context

logger = get_logger(__name__)

WarningConfirmer: TypeAlias = Callable[[list[str]], bool]


def create_client_id() -> str:
    """New client id for routing backend progress events to this session."""
    return str(uuid.uuid4())


def extract_prompt_id(payload: Any) -> str | None:
    """Backend-assigned prompt id from a dispatch response, if present."""
    if not isinstance(payload, Mapping):
        return None
    prompt_id = payload.get("prompt_id")
    return prompt_id if isinstance(prompt_id, str) else None


def _decline_warnings(warnings: list[str]) -> bool:
    return False


class SubmissionSession:
    """Owns the per-session state needed to queue runs.

    The idempotency record for BEFORE-phase control fields lives here and is
    only ever grown, never cleared, for the lifetime of the session.
    """

    def __init__(
        self,
        catalog: Mapping[str, NodeSchema],
        dispatcher: Dispatcher,
        *,
        phase: ControlPhase = ControlPhase.AFTER,
        confirm_warnings: WarningConfirmer | None = None,
        rng: random_module.Random | None = None,
        client_id: str | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            catalog: Node type name -> schema
            dispatcher: Hands compiled requests to the backend
            phase: When control fields are advanced
            confirm_warnings: Asked whether to proceed despite warnings.
                Defaults to declining, so warnings block unattended sessions.
            rng: Random source for control fields; inject a seeded
                random.Random() for deterministic tests
            client_id: Backend client id (default: a new UUID4)
        """
        self._catalog = catalog
        self._dispatcher = dispatcher
        self._phase = phase
        self._confirm_warnings = confirm_warnings if confirm_warnings is not None else _decline_warnings
        self._rng = rng if rng is not None else random_module.Random()
        self._executed_controls: set[ControlKey] = set()
        self.client_id = client_id if client_id is not None else create_client_id()

    @property
    def phase(self) -> ControlPhase:
        return self._phase

    @property
    def executed_controls(self) -> frozenset[ControlKey]:
        """Read-only view of the (node_id, slot_name) keys seen so far."""
        return frozenset(self._executed_controls)

    def submit(self, nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]) -> SubmissionOutcome:
        """Compile and dispatch the graph.

        Returns:
            SubmissionOutcome whose ``nodes`` the caller should adopt as the
            new canvas state (unchanged unless control fields moved)
        """
        with session_context(self.client_id):
            return self._submit(nodes, edges)

    def _submit(self, nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]) -> SubmissionOutcome:
        nodes_for_prompt = nodes
        staged_controls: set[ControlKey] | None = None

        if self._phase == ControlPhase.BEFORE:
            staged_controls = set(self._executed_controls)
            before = apply_control_after_generate(
                nodes,
                self._catalog,
                ControlPhase.BEFORE,
                executed_controls=staged_controls,
                rng=self._rng,
            )
            nodes_for_prompt = before.nodes

        result = compile_request(nodes_for_prompt, edges, self._catalog)

        if result.errors:
            logger.info("submission.blocked", errors=len(result.errors))
            return SubmissionOutcome(
                status=SubmissionStatus.BLOCKED,
                nodes=nodes,
                errors=result.errors,
                warnings=result.warnings,
            )

        if result.warnings and not self._confirm_warnings(result.warnings):
            logger.info("submission.declined", warnings=len(result.warnings))
            return SubmissionOutcome(
                status=SubmissionStatus.DECLINED,
                nodes=nodes,
                warnings=result.warnings,
            )

        if staged_controls is not None:
            self._executed_controls = staged_controls

        dispatch_result = self._dispatcher(
            DispatchRequest(prompt=request_graph_payload(result.request_graph), client_id=self.client_id)
        )
        if not dispatch_result.ok:
            logger.warning("submission.failed", message=dispatch_result.message)
            return SubmissionOutcome(
                status=SubmissionStatus.FAILED,
                nodes=nodes_for_prompt,
                warnings=result.warnings,
                message=dispatch_result.message,
            )

        prompt_id = extract_prompt_id(dispatch_result.payload)
        final_nodes = nodes_for_prompt
        if self._phase == ControlPhase.AFTER:
            final_nodes = apply_control_after_generate(
                nodes_for_prompt,
                self._catalog,
                ControlPhase.AFTER,
                rng=self._rng,
            ).nodes

        logger.info("submission.queued", prompt_id=prompt_id, nodes=len(result.request_graph))
        return SubmissionOutcome(
            status=SubmissionStatus.QUEUED,
            nodes=final_nodes,
            warnings=result.warnings,
            prompt_id=prompt_id,
        )
