"""JSON log lines for the engine, the CLI and the HTTP service.

Engine modules log with ``extra={...}`` keys describing the transition being
attempted (``state``, ``event``, ``from_state``, ``to_state``, ``phase``,
``action``, ``guard_index``) and the HTTP service adds ``schema_id`` and
``draft_id``. Those keys are grouped under ``"workflow"`` so a
log shipper can filter on them; any other ``extra`` keys land under
``"extra"``.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import IO, Any

# Attributes every LogRecord carries; anything else came in through `extra=`.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

WORKFLOW_FIELDS: tuple[str, ...] = (
    "schema_id",
    "draft_id",
    "state",
    "event",
    "from_state",
    "to_state",
    "phase",
    "action",
    "guard_index",
)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (record)
        line: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        workflow: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key.startswith("_"):
                continue
            (workflow if key in WORKFLOW_FIELDS else extra)[key] = value
        if workflow:
            line["workflow"] = workflow
        if extra:
            line["extra"] = extra

        if record.exc_info:
            line["exception"] = self.formatException(record.exc_info)

        # Contexts and action params are user JSON; fall back to str() for the rest.
        return json.dumps(line, ensure_ascii=False, default=str)


def configure_logging(level: str, *, stream: IO[str] | None = None) -> None:
    """Send every log record as one JSON line to `stream` (stdout by default).

    Replaces any handlers already on the root logger, so calling it twice does
    not duplicate lines.
    """

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)

    handler = logging.StreamHandler(stream=stream or sys.stdout)
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)
    root.setLevel(level.upper())

    # Per-request access lines drown out transition logs at INFO.
    logging.getLogger("uvicorn.access").setLevel(max(root.level, logging.WARNING))
