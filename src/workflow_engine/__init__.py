"""Workflow engine.

Provides:
- a schema-drivable finite-state-machine engine (`workflow_engine.engine`)
- configuration loaded from `.env`
- structured logging
- a thin FastAPI surface over in-memory drafts and workflow schemas
"""

__version__ = "0.1.0"

from workflow_engine.config import WorkflowSettings

__all__ = ["__version__", "WorkflowSettings"]
