"""CLI entrypoint for the workflow engine.

Commands operate on a workflow schema stored as a JSON file:
- `validate` compiles it and prints a summary
- `run` triggers a sequence of events against a context and prints the outcome
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from workflow_engine import __version__
from workflow_engine.config import WorkflowSettings
from workflow_engine.engine.actions import default_registry
from workflow_engine.engine.errors import SchemaValidationError, TransitionHookError
from workflow_engine.engine.factory import WorkflowFactory, parse_schema
from workflow_engine.engine.schema import WorkflowSchema
from workflow_engine.logging import configure_logging

logger = logging.getLogger(__name__)


def _load_schema(path: Path) -> WorkflowSchema:
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise SchemaValidationError(f"{path}: expected a JSON object")
    raw.setdefault("id", path.stem)
    return parse_schema(raw)


def _parse_context(value: str | None) -> dict[str, Any]:
    if not value:
        return {}
    parsed = json.loads(value)
    if not isinstance(parsed, dict):
        raise ValueError("--context must be a JSON object")
    return parsed


def _unknown_action_types(schema: WorkflowSchema, factory: WorkflowFactory) -> list[str]:
    configs = [a for s in schema.states for a in (*s.on_enter, *s.on_exit)]
    configs += [a for t in schema.transitions for a in t.actions]
    return sorted({a.type for a in configs if a.type not in factory.registry})


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="workflow-engine",
        description="Schema-driven finite-state-machine workflow engine",
    )
    parser.add_argument("--version", action="version", version=f"workflow-engine {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser("validate", help="Compile a workflow schema JSON file")
    validate.add_argument("schema", type=Path, help="Path to the workflow schema JSON file")

    run = subparsers.add_parser("run", help="Trigger events against a workflow schema")
    run.add_argument("schema", type=Path, help="Path to the workflow schema JSON file")
    run.add_argument(
        "--event",
        dest="events",
        action="append",
        required=True,
        help="Event to trigger; repeat to trigger several in order",
    )
    run.add_argument(
        "--state",
        default=None,
        help="Starting state (defaults to the schema's initialState)",
    )
    run.add_argument(
        "--context",
        default=None,
        help="Context as a JSON object, e.g. '{\"data\": \"valid\"}'",
    )
    run.add_argument(
        "--stop-on-reject",
        action="store_true",
        help="Stop at the first rejected event instead of trying the rest",
    )

    return parser


async def _run_events(
    factory: WorkflowFactory,
    schema: WorkflowSchema,
    *,
    state: str | None,
    context: dict[str, Any],
    events: list[str],
    stop_on_reject: bool,
) -> dict[str, object]:
    instance = factory.create_instance(
        schema=schema, default_definition=None, current_state=state, context=context
    )
    results: list[dict[str, object]] = []
    for event in events:
        ok = await instance.trigger(event)
        results.append({"event": event, "success": ok, "state": instance.current_state})
        if not ok and stop_on_reject:
            break
    await factory.runner.drain()
    return {
        "state": instance.current_state,
        "results": results,
        "history": [r.to_json() for r in instance.history],
        "asyncFailures": [
            {"action": f.action_type, "error": str(f.error)} for f in factory.runner.errors
        ],
    }


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = WorkflowSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    factory = WorkflowFactory(
        registry=default_registry(log_delayed_default_ms=settings.log_delayed_default_ms)
    )

    try:
        schema = _load_schema(args.schema)
    except (OSError, json.JSONDecodeError, SchemaValidationError) as e:
        logger.error("Invalid workflow schema", extra={"path": str(args.schema)})
        print(f"Invalid workflow schema: {e}", file=sys.stderr)
        return 2

    try:
        if args.command == "validate":
            definition = factory.create_definition(schema)
            unknown = _unknown_action_types(schema, factory)
            summary = {
                "id": schema.id,
                "name": schema.name,
                "initialState": definition.initial_state,
                "states": sorted(definition.states),
                "transitions": len(definition.transitions),
                "duplicateTransitions": [
                    {"from": s, "event": e} for s, e in definition.duplicate_transitions()
                ],
                "unknownActions": unknown,
            }
            print(json.dumps(summary, indent=2))
            return 0

        if args.command == "run":
            context = _parse_context(args.context)
            outcome = asyncio.run(
                _run_events(
                    factory,
                    schema,
                    state=args.state,
                    context=context,
                    events=args.events,
                    stop_on_reject=args.stop_on_reject,
                )
            )
            print(json.dumps(outcome, indent=2, ensure_ascii=False))
            all_ok = all(r["success"] for r in outcome["results"])  # type: ignore[union-attr]
            return 0 if all_ok else 1

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except TransitionHookError as e:
        logger.warning(str(e), extra={"phase": e.phase, "event": e.event})
        print(str(e), file=sys.stderr)
        return 3

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
