"""Hand-authored draft review workflow.

Used when a draft is not bound to a persisted schema. Shows how to build a
definition in code rather than from a schema document.

    CREATED --SUBMIT--> IN_REVIEW --APPROVE--> APPROVED --RESET--> CREATED
                        IN_REVIEW --REJECT--> REJECTED --RESUBMIT--> IN_REVIEW
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from workflow_engine.engine.definition import WorkflowDefinition

logger = logging.getLogger(__name__)

MIN_CONTENT_LENGTH = 10


def _draft(ctx: Mapping[str, Any]) -> Mapping[str, Any]:
    draft = ctx.get("draft")
    return draft if isinstance(draft, Mapping) else ctx


def _announce(message: str):
    def hook(ctx: Mapping[str, Any]) -> None:
        logger.info(message, extra={"draft_id": _draft(ctx).get("id")})

    return hook


def content_long_enough(ctx: Mapping[str, Any]) -> bool:
    content = _draft(ctx).get("content") or ""
    ok = len(str(content)) > MIN_CONTENT_LENGTH
    if not ok:
        logger.info("Draft content too short to submit", extra={"draft_id": _draft(ctx).get("id")})
    return ok


def build_draft_workflow() -> WorkflowDefinition[Mapping[str, Any]]:
    definition: WorkflowDefinition[Mapping[str, Any]] = WorkflowDefinition("CREATED")
    (
        definition.add_state("CREATED", on_enter=[_announce("Draft entered CREATED")])
        .add_state("IN_REVIEW", on_enter=[_announce("Draft is under review")])
        .add_state("APPROVED", on_enter=[_announce("Draft approved")])
        .add_state("REJECTED", on_enter=[_announce("Draft rejected; needs changes")])
    )
    (
        definition.add_transition(
            "CREATED", "IN_REVIEW", "SUBMIT", guards=[content_long_enough]
        )
        .add_transition("IN_REVIEW", "APPROVED", "APPROVE")
        .add_transition("IN_REVIEW", "REJECTED", "REJECT")
        .add_transition("REJECTED", "IN_REVIEW", "RESUBMIT")
        .add_transition("APPROVED", "CREATED", "RESET")
    )
    return definition.freeze()


draft_workflow = build_draft_workflow()
