#!/usr/bin/env python3
"""Programmatic workflow example.

This demonstrates using the engine components directly:

* load settings from `.env`
* compile `review_workflow.json` into a definition
* trigger events against a context and print the audit history

Events are passed as arguments.
"""

from __future__ import annotations

import argparse
import asyncio
import json
from collections.abc import Sequence
from pathlib import Path

from workflow_engine.config import WorkflowSettings
from workflow_engine.engine.actions import default_registry
from workflow_engine.engine.factory import WorkflowFactory, parse_schema
from workflow_engine.logging import configure_logging

SCHEMA_PATH = Path(__file__).with_name("review_workflow.json")


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Drive the article review workflow.")
    parser.add_argument("events", nargs="+", help="Events to trigger, e.g. SUBMIT APPROVE")
    parser.add_argument("--words", type=int, default=500, help="Article length in words")
    return parser.parse_args(argv)


async def _run(events: list[str], words: int) -> None:
    settings = WorkflowSettings()
    configure_logging(settings.log_level)

    raw = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    schema = parse_schema({"id": "review", **raw})
    factory = WorkflowFactory(
        registry=default_registry(log_delayed_default_ms=settings.log_delayed_default_ms)
    )
    instance = factory.create_instance(
        schema=schema,
        default_definition=None,
        current_state=None,
        context={"article": {"words": words}},
    )

    for event in events:
        ok = await instance.trigger(event)
        print(f"{event}: {'ok' if ok else 'rejected'} -> {instance.current_state}")

    # Async actions are not joined by trigger(); wait for them before exiting.
    await factory.runner.drain()
    print(json.dumps([r.to_json() for r in instance.history], indent=2))


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    asyncio.run(_run(args.events, args.words))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
