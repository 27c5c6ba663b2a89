from __future__ import annotations

from datetime import UTC, datetime

from .definition import WorkflowDefinition
from .state_machine import StateMachine
from .types import ContextT, Event, State, TransitionRecord


class WorkflowInstance(StateMachine[ContextT]):
    """A state machine bound to one context, with an audit trail.

    `can_transition` and `available_events` only check that a transition
    exists from the current state. Guards are not evaluated, so `trigger` may
    still reject an event reported here.
    """

    def __init__(
        self,
        definition: WorkflowDefinition[ContextT],
        current_state: State | None,
        context: ContextT,
    ) -> None:
        super().__init__(definition, current_state, context)
        self._history: list[TransitionRecord] = []

    @property
    def history(self) -> tuple[TransitionRecord, ...]:
        return tuple(self._history)

    def _on_committed(self, source: State, target: State, event: Event) -> None:
        self._history.append(
            TransitionRecord(
                from_state=source,
                to_state=target,
                event=event,
                timestamp=datetime.now(tz=UTC),
            )
        )

    def can_transition(self, event: Event) -> bool:
        return self._definition.get_transition(self._current_state, event) is not None

    def available_events(self) -> list[Event]:
        events: list[Event] = []
        for t in self._definition.get_transitions(self._current_state):
            if t.event not in events:
                events.append(t.event)
        return events
