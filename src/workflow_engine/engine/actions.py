"""Action registry and effect compilation.

The registry is the only place side-effect code lives. Schema action configs
name a registry entry by `type`; the factory resolves that name once, at
compile time, into an :data:`Effect`.

Two execution modes exist:

- ``sync``: the handler is awaited inline, so the transition does not proceed
  until it settles and failures propagate to the caller.
- ``async``: the handler is spawned as a background task on an
  :class:`EffectRunner` and never joined by the transition. Failures are logged
  and recorded on the runner only.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from .schema import ActionConfig
from .types import Effect

logger = logging.getLogger(__name__)

ActionHandler = Callable[[Any, Any], None | Awaitable[None]]


class ActionRegistry:
    """Named table of effect implementations.

    Built explicitly at startup and passed to the factory.
    """

    def __init__(self, handlers: dict[str, ActionHandler] | None = None) -> None:
        self._handlers: dict[str, ActionHandler] = dict(handlers or {})

    def register(self, name: str, handler: ActionHandler) -> None:
        self._handlers[name] = handler

    def get(self, name: str) -> ActionHandler | None:
        return self._handlers.get(name)

    def names(self) -> list[str]:
        return sorted(self._handlers)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)


def _param(params: Any, key: str, default: Any = None) -> Any:
    if isinstance(params, dict):
        return params.get(key, default)
    return default


def log_action(_context: Any, params: Any) -> None:
    message = _param(params, "message") or "No message"
    logger.info(f"[Action: LOG] Message: {message}", extra={"action": "log"})


def make_log_delayed_action(default_delay_ms: int = 2000) -> ActionHandler:
    async def log_delayed(_context: Any, params: Any) -> None:
        delay_ms = _param(params, "delay") or default_delay_ms
        logger.info(
            f"[Action: LOG_DELAYED] Starting wait of {delay_ms}ms",
            extra={"action": "logDelayed"},
        )
        await asyncio.sleep(float(delay_ms) / 1000.0)
        message = _param(params, "message") or "No message"
        logger.info(
            f"[Action: LOG_DELAYED] Finished waiting. Message: {message}",
            extra={"action": "logDelayed"},
        )

    return log_delayed


def default_registry(*, log_delayed_default_ms: int = 2000) -> ActionRegistry:
    """Registry pre-populated with the built-in `log` and `logDelayed` handlers."""

    return ActionRegistry(
        {
            "log": log_action,
            "logDelayed": make_log_delayed_action(log_delayed_default_ms),
        }
    )


@dataclass(frozen=True, slots=True)
class EffectFailure:
    action_type: str
    error: BaseException


@dataclass
class EffectRunner:
    """Owns fire-and-forget effect tasks and observes their failures.

    Tasks are held until they finish so they are not garbage collected
    mid-flight. Nothing in the transition path waits on them; :meth:`drain` is
    for shutdown and tests.
    """

    errors: list[EffectFailure] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, action_type: str, run: Callable[[], Awaitable[None]]) -> asyncio.Task[None]:
        async def _wrapped() -> None:
            await run()

        task = asyncio.get_running_loop().create_task(
            _wrapped(), name=f"effect-{action_type}"
        )
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._on_done(action_type, t))
        return task

    def _on_done(self, action_type: str, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning("Async action cancelled", extra={"action": action_type})
            return
        exc = task.exception()
        if exc is None:
            return
        self.errors.append(EffectFailure(action_type=action_type, error=exc))
        logger.error(
            "Async action failed",
            extra={"action": action_type},
            exc_info=(type(exc), exc, exc.__traceback__),
        )

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


async def _invoke(handler: ActionHandler, context: Any, params: Any) -> None:
    result = handler(context, params)
    if inspect.isawaitable(result):
        await result


def compile_action(config: ActionConfig, registry: ActionRegistry, runner: EffectRunner) -> Effect:
    handler = registry.get(config.type)
    if handler is None:
        logger.warning("Action type not found in registry", extra={"action": config.type})

        async def noop(_context: Any) -> None:
            return None

        return noop

    if config.mode == "async":

        async def detached(context: Any) -> None:
            runner.spawn(config.type, lambda: _invoke(handler, context, config.params))

        return detached

    async def inline(context: Any) -> None:
        await _invoke(handler, context, config.params)

    return inline


def compile_actions(
    configs: Sequence[ActionConfig] | None, registry: ActionRegistry, runner: EffectRunner
) -> list[Effect]:
    return [compile_action(c, registry, runner) for c in configs or ()]
