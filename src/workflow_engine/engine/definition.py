"""Workflow definition builder.

A definition is a lookup table of states (with ordered enter/exit hooks) and
transitions (with ordered guards and effects). It is assembled once, then
shared read-only by every instance built from it.

Transition lookup is first-match in insertion order. Registering a second
transition for the same `(source, event)` pair is allowed, but the later one
can never be selected; a warning is logged and the pair is reported by
:meth:`WorkflowDefinition.duplicate_transitions`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Generic

from .errors import WorkflowError
from .types import ContextT, Effect, Event, Predicate, State, StateDefinition, Transition

logger = logging.getLogger(__name__)


class WorkflowDefinition(Generic[ContextT]):
    def __init__(self, initial_state: State) -> None:
        self._initial_state = initial_state
        self._states: dict[State, StateDefinition] = {}
        self._transitions: list[Transition] = []
        self._frozen = False
        self.add_state(initial_state)

    @property
    def initial_state(self) -> State:
        return self._initial_state

    @property
    def states(self) -> Mapping[State, StateDefinition]:
        return dict(self._states)

    @property
    def transitions(self) -> tuple[Transition, ...]:
        return tuple(self._transitions)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> WorkflowDefinition[ContextT]:
        """Reject further mutation. Used for definitions shared via a cache."""

        self._frozen = True
        return self

    def _check_mutable(self) -> None:
        if self._frozen:
            raise WorkflowError("Workflow definition is frozen")

    def add_state(
        self,
        name: State,
        *,
        on_enter: Iterable[Effect] | None = None,
        on_exit: Iterable[Effect] | None = None,
    ) -> WorkflowDefinition[ContextT]:
        """Register a state.

        Re-adding a known state without hooks is a no-op; passing hooks replaces
        the existing hook lists.
        """

        self._check_mutable()
        existing = self._states.get(name)
        if existing is not None and on_enter is None and on_exit is None:
            return self

        self._states[name] = StateDefinition(
            name=name,
            on_enter=tuple(on_enter or ()),
            on_exit=tuple(on_exit or ()),
        )
        return self

    def add_transition(
        self,
        source: State,
        target: State,
        event: Event,
        *,
        guards: Iterable[Predicate] | None = None,
        effects: Iterable[Effect] | None = None,
    ) -> WorkflowDefinition[ContextT]:
        self._check_mutable()
        if source not in self._states:
            self.add_state(source)
        if target not in self._states:
            self.add_state(target)

        if self.get_transition(source, event) is not None:
            logger.warning(
                "Duplicate transition registered; it will never be selected",
                extra={"state": source, "event": event, "target": target},
            )

        self._transitions.append(
            Transition(
                source=source,
                target=target,
                event=event,
                guards=tuple(guards or ()),
                effects=tuple(effects or ()),
            )
        )
        return self

    def get_transition(self, state: State, event: Event) -> Transition | None:
        for t in self._transitions:
            if t.source == state and t.event == event:
                return t
        return None

    def get_transitions(self, state: State) -> list[Transition]:
        return [t for t in self._transitions if t.source == state]

    def get_state_definition(self, state: State) -> StateDefinition | None:
        return self._states.get(state)

    def duplicate_transitions(self) -> list[tuple[State, Event]]:
        """Return `(source, event)` pairs that have unreachable transitions."""

        seen: set[tuple[State, Event]] = set()
        dupes: list[tuple[State, Event]] = []
        for t in self._transitions:
            key = (t.source, t.event)
            if key in seen and key not in dupes:
                dupes.append(key)
            seen.add(key)
        return dupes
