"""FastAPI server adapter for the workflow engine.

This module exposes a REST API over the engine.

Design intent:
- Keep state machine logic in `workflow_engine.engine.*`
- Keep server-specific concerns (routing, CORS, in-memory stores) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from workflow_engine.server.app import create_app
