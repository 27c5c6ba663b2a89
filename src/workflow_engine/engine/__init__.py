"""Finite-state-machine workflow engine.

This package provides first-class types for:
- Definitions (states with enter/exit hooks, guarded transitions with effects)
- An execution engine that advances a context exactly one step per event
- Instances with an audit history
- Compilation of persisted schemas into definitions via an action registry
"""

from workflow_engine.engine.actions import (
    ActionRegistry,
    EffectFailure,
    EffectRunner,
    default_registry,
)
from workflow_engine.engine.definition import WorkflowDefinition
from workflow_engine.engine.errors import (
    SchemaValidationError,
    TransitionHookError,
    WorkflowConfigurationError,
    WorkflowError,
)
from workflow_engine.engine.factory import DefinitionCache, WorkflowFactory, parse_schema
from workflow_engine.engine.instance import WorkflowInstance
from workflow_engine.engine.schema import (
    ActionConfig,
    ConditionConfig,
    SerializedState,
    SerializedTransition,
    WorkflowSchema,
)
from workflow_engine.engine.state_machine import StateMachine
from workflow_engine.engine.types import StateDefinition, Transition, TransitionRecord

__all__ = [
    "ActionConfig",
    "ActionRegistry",
    "ConditionConfig",
    "DefinitionCache",
    "EffectFailure",
    "EffectRunner",
    "SchemaValidationError",
    "SerializedState",
    "SerializedTransition",
    "StateDefinition",
    "StateMachine",
    "Transition",
    "TransitionHookError",
    "TransitionRecord",
    "WorkflowConfigurationError",
    "WorkflowDefinition",
    "WorkflowError",
    "WorkflowFactory",
    "WorkflowInstance",
    "WorkflowSchema",
    "default_registry",
    "parse_schema",
]
