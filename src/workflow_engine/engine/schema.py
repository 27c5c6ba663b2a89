"""Serialized workflow schema documents.

A schema is the data-only form of a workflow definition: guards and effects are
declarative configs that the factory compiles into callables.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

ActionMode = Literal["sync", "async"]


class _SchemaModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ActionConfig(_SchemaModel):
    type: str
    mode: ActionMode = "sync"
    params: Any = None


class ConditionConfig(_SchemaModel):
    field: str
    # Unknown operators are accepted here and evaluate to False at runtime.
    operator: str
    value: Any = None


class SerializedState(_SchemaModel):
    name: str
    on_enter: list[ActionConfig] = Field(default_factory=list, alias="onEnter")
    on_exit: list[ActionConfig] = Field(default_factory=list, alias="onExit")


class SerializedTransition(_SchemaModel):
    source: str = Field(alias="from")
    target: str = Field(alias="to")
    event: str
    conditions: list[ConditionConfig] = Field(default_factory=list)
    actions: list[ActionConfig] = Field(default_factory=list)


class WorkflowSchemaBody(_SchemaModel):
    name: str
    initial_state: str = Field(alias="initialState")
    states: list[SerializedState] = Field(default_factory=list)
    transitions: list[SerializedTransition] = Field(default_factory=list)


class WorkflowSchema(WorkflowSchemaBody):
    id: str

    def fingerprint(self) -> str:
        """Content hash; changes whenever the schema is edited."""

        canonical = json.dumps(
            self.model_dump(mode="json", by_alias=True), sort_keys=True, separators=(",", ":")
        )
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
