"""Guarded single-step transition engine.

`trigger(event)` runs, in order, each step gating the next:

1. look up the first transition for `(current_state, event)`
2. evaluate its guards in order, stopping at the first false one
3. run the exit hooks of the current state
4. run the transition effects
5. move to the target state
6. run the enter hooks of the target state

Steps 1 and 2 reject by returning ``False`` with nothing run and nothing
changed. Once the guards pass, a hook that raises in steps 3, 4 or 6 restores
the source state and surfaces as :class:`TransitionHookError`. Cancellation
while a hook is awaited also restores the source state and propagates as-is.
The new state is only final once every hook has completed.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Iterable
from typing import Any, Generic

from .definition import WorkflowDefinition
from .errors import TransitionHookError
from .types import ContextT, Effect, Event, State

logger = logging.getLogger(__name__)


async def _settle(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


class StateMachine(Generic[ContextT]):
    def __init__(
        self,
        definition: WorkflowDefinition[ContextT],
        current_state: State | None,
        context: ContextT,
    ) -> None:
        self._definition = definition
        # The context is shared by reference with the caller; never copied.
        self._context = context
        self._current_state: State = current_state or definition.initial_state

    @property
    def definition(self) -> WorkflowDefinition[ContextT]:
        return self._definition

    @property
    def current_state(self) -> State:
        return self._current_state

    @property
    def context(self) -> ContextT:
        return self._context

    async def _run_hooks(self, hooks: Iterable[Effect]) -> None:
        for hook in hooks:
            await _settle(hook(self._context))

    def _on_committed(self, source: State, target: State, event: Event) -> None:
        """Called once per successful transition, after every hook has run."""

    async def trigger(self, event: Event) -> bool:
        source = self._current_state
        transition = self._definition.get_transition(source, event)
        if transition is None:
            logger.warning(
                "No transition found for event",
                extra={"state": source, "event": event},
            )
            return False

        for idx, guard in enumerate(transition.guards):
            if not await _settle(guard(self._context)):
                logger.info(
                    "Transition guard failed",
                    extra={"state": source, "event": event, "guard_index": idx},
                )
                return False

        target = transition.target
        source_def = self._definition.get_state_definition(source)
        target_def = self._definition.get_state_definition(target)

        phase = "exit"
        try:
            if source_def is not None:
                await self._run_hooks(source_def.on_exit)
            phase = "transition"
            await self._run_hooks(transition.effects)
            phase = "enter"
            self._current_state = target
            if target_def is not None:
                await self._run_hooks(target_def.on_enter)
        except Exception as e:
            self._current_state = source
            logger.error(
                "Transition hook failed; state restored",
                extra={"phase": phase, "from_state": source, "to_state": target, "event": event},
            )
            raise TransitionHookError(
                phase=phase, from_state=source, to_state=target, event=event
            ) from e
        except BaseException:
            # Cancellation (or interpreter exit) mid-hook: restore and re-raise unchanged.
            self._current_state = source
            logger.warning(
                "Transition interrupted; state restored",
                extra={"phase": phase, "from_state": source, "to_state": target, "event": event},
            )
            raise

        self._on_committed(source, target, event)
        logger.info(
            "Transitioned",
            extra={"from_state": source, "to_state": target, "event": event},
        )
        return True
