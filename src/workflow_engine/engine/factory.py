"""Build workflow instances from a persisted schema or a default definition.

Compiled definitions are cached by `(schema id, content fingerprint)`. Editing a
schema changes its fingerprint, so a stale compilation is never reused; stores
should still call :meth:`DefinitionCache.invalidate` on update or delete to
release the old entry.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from .actions import ActionRegistry, EffectRunner, compile_actions, default_registry
from .conditions import compile_conditions
from .definition import WorkflowDefinition
from .errors import SchemaValidationError, WorkflowConfigurationError
from .instance import WorkflowInstance
from .schema import WorkflowSchema
from .types import State

logger = logging.getLogger(__name__)


class DefinitionCache:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[tuple[str, str], WorkflowDefinition[Any]] = {}

    def get(self, schema_id: str, fingerprint: str) -> WorkflowDefinition[Any] | None:
        with self._lock:
            return self._entries.get((schema_id, fingerprint))

    def put(self, schema_id: str, fingerprint: str, definition: WorkflowDefinition[Any]) -> None:
        with self._lock:
            # Only the latest version of a schema is kept.
            for key in [k for k in self._entries if k[0] == schema_id]:
                del self._entries[key]
            self._entries[(schema_id, fingerprint)] = definition

    def invalidate(self, schema_id: str) -> None:
        with self._lock:
            for key in [k for k in self._entries if k[0] == schema_id]:
                del self._entries[key]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def parse_schema(raw: Mapping[str, Any]) -> WorkflowSchema:
    try:
        return WorkflowSchema.model_validate(raw)
    except ValidationError as e:
        raise SchemaValidationError(str(e)) from e


class WorkflowFactory:
    def __init__(
        self,
        *,
        registry: ActionRegistry | None = None,
        runner: EffectRunner | None = None,
        cache: DefinitionCache | None = None,
    ) -> None:
        self.registry = registry if registry is not None else default_registry()
        self.runner = runner if runner is not None else EffectRunner()
        # None disables caching: every call compiles afresh.
        self.cache = cache

    def create_definition(self, schema: WorkflowSchema) -> WorkflowDefinition[Any]:
        """Compile a schema into a new, frozen definition."""

        definition: WorkflowDefinition[Any] = WorkflowDefinition(schema.initial_state)
        for state in schema.states:
            definition.add_state(
                state.name,
                on_enter=compile_actions(state.on_enter, self.registry, self.runner),
                on_exit=compile_actions(state.on_exit, self.registry, self.runner),
            )
        for t in schema.transitions:
            definition.add_transition(
                t.source,
                t.target,
                t.event,
                guards=compile_conditions(t.conditions),
                effects=compile_actions(t.actions, self.registry, self.runner),
            )
        logger.debug(
            "Compiled workflow schema",
            extra={
                "schema_id": schema.id,
                "states": len(definition.states),
                "transitions": len(definition.transitions),
            },
        )
        return definition.freeze()

    def resolve_definition(self, schema: WorkflowSchema) -> WorkflowDefinition[Any]:
        if self.cache is None:
            return self.create_definition(schema)

        fingerprint = schema.fingerprint()
        cached = self.cache.get(schema.id, fingerprint)
        if cached is not None:
            return cached
        definition = self.create_definition(schema)
        self.cache.put(schema.id, fingerprint, definition)
        return definition

    def create_instance(
        self,
        *,
        schema: WorkflowSchema | Mapping[str, Any] | None,
        default_definition: WorkflowDefinition[Any] | None,
        current_state: State | None,
        context: Any,
    ) -> WorkflowInstance[Any]:
        """Return a fresh instance bound to `context` at `current_state`.

        A schema, when given, always wins over `default_definition`.
        """

        definition = default_definition
        if schema is not None:
            if not isinstance(schema, WorkflowSchema):
                schema = parse_schema(schema)
            definition = self.resolve_definition(schema)

        if definition is None:
            raise WorkflowConfigurationError("No workflow definition provided")

        return WorkflowInstance(definition, current_state, context)
