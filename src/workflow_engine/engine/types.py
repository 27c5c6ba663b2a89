from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeAlias, TypeVar

State: TypeAlias = str
Event: TypeAlias = str

Context: TypeAlias = Mapping[str, Any]
ContextT = TypeVar("ContextT", bound=Mapping[str, Any])

# A guard may be a plain function or a coroutine function.
Predicate: TypeAlias = Callable[[Any], bool | Awaitable[bool]]
# Hooks and transition effects share one shape.
Effect: TypeAlias = Callable[[Any], None | Awaitable[None]]


@dataclass(frozen=True, slots=True)
class StateDefinition:
    name: State
    on_enter: tuple[Effect, ...] = ()
    on_exit: tuple[Effect, ...] = ()


@dataclass(frozen=True, slots=True)
class Transition:
    """Edge `source -> target` taken on `event`.

    Guards are ANDed in order. Effects run between the exit hooks of `source`
    and the enter hooks of `target`.
    """

    source: State
    target: State
    event: Event
    guards: tuple[Predicate, ...] = ()
    effects: tuple[Effect, ...] = ()


@dataclass(frozen=True, slots=True)
class TransitionRecord:
    from_state: State
    to_state: State
    event: Event
    timestamp: datetime

    def to_json(self) -> dict[str, object]:
        return {
            "from": self.from_state,
            "to": self.to_state,
            "event": self.event,
            "timestamp": self.timestamp.isoformat(),
        }
