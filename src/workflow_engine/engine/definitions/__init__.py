"""Hand-authored workflow definitions."""

from workflow_engine.engine.definitions.draft import build_draft_workflow, draft_workflow

__all__ = ["build_draft_workflow", "draft_workflow"]
