"""Test configuration and fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from workflow_engine.engine.actions import ActionRegistry, EffectRunner, default_registry
from workflow_engine.engine.factory import WorkflowFactory
from workflow_engine.engine.schema import WorkflowSchema


def _append_log(ctx: dict[str, Any], params: dict[str, Any]) -> None:
    ctx["logs"].append(params["msg"])


@pytest.fixture
def registry() -> ActionRegistry:
    """Built-in handlers plus a `testLog` handler that appends to `ctx["logs"]`."""
    reg = default_registry(log_delayed_default_ms=0)
    reg.register("testLog", _append_log)
    return reg


@pytest.fixture
def runner() -> EffectRunner:
    return EffectRunner()


@pytest.fixture
def factory(registry: ActionRegistry, runner: EffectRunner) -> WorkflowFactory:
    return WorkflowFactory(registry=registry, runner=runner)


@pytest.fixture
def order_schema_raw() -> dict[str, Any]:
    """START -> END on NEXT, guarded by `data == "valid"`, with one hook per phase."""
    return {
        "id": "test-schema",
        "name": "Test Workflow",
        "initialState": "START",
        "states": [
            {
                "name": "START",
                "onExit": [{"type": "testLog", "mode": "sync", "params": {"msg": "Exiting Start"}}],
            },
            {
                "name": "END",
                "onEnter": [{"type": "testLog", "mode": "sync", "params": {"msg": "Entering End"}}],
            },
        ],
        "transitions": [
            {
                "from": "START",
                "to": "END",
                "event": "NEXT",
                "conditions": [{"field": "data", "operator": "eq", "value": "valid"}],
                "actions": [
                    {"type": "testLog", "mode": "sync", "params": {"msg": "Transition Action"}}
                ],
            }
        ],
    }


@pytest.fixture
def order_schema(order_schema_raw: dict[str, Any]) -> WorkflowSchema:
    return WorkflowSchema.model_validate(order_schema_raw)
