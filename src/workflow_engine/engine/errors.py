from __future__ import annotations

from .types import Event, State


class WorkflowError(Exception):
    pass


class WorkflowConfigurationError(WorkflowError):
    """Raised when no workflow definition can be resolved for an instance."""


class SchemaValidationError(WorkflowError, ValueError):
    pass


class TransitionHookError(WorkflowError):
    """A hook or effect raised while a transition was being applied.

    The instance is restored to `from_state` before this propagates; hooks that
    already ran are not undone.
    """

    def __init__(self, *, phase: str, from_state: State, to_state: State, event: Event) -> None:
        self.phase = phase
        self.from_state = from_state
        self.to_state = to_state
        self.event = event
        super().__init__(
            f"{phase} hook failed during transition {from_state} -> {to_state} on {event!r}"
        )
