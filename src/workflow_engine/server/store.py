"""In-memory stores for drafts and workflow schemas.

Both are unordered key-value maps with short random ids. Nothing is persisted
across restarts.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field

from pydantic import BaseModel, Field

from workflow_engine.engine.factory import DefinitionCache
from workflow_engine.engine.schema import WorkflowSchema, WorkflowSchemaBody


def _new_id() -> str:
    return uuid.uuid4().hex[:8]


class DraftRecord(BaseModel):
    id: str
    title: str
    content: str
    status: str
    workflow_id: str | None = Field(default=None)


class StatusConflict(Exception):
    """The stored status changed between reading a draft and writing it back."""

    def __init__(self, draft_id: str, *, expected: str, actual: str) -> None:
        self.draft_id = draft_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Draft {draft_id} status is {actual!r}, expected {expected!r}"
        )


@dataclass
class DraftStore:
    _drafts: dict[str, DraftRecord] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._lock = threading.Lock()

    def list(self) -> list[DraftRecord]:
        with self._lock:
            return list(self._drafts.values())

    def get(self, draft_id: str) -> DraftRecord | None:
        with self._lock:
            return self._drafts.get(draft_id)

    def create(
        self, *, title: str, content: str, status: str, workflow_id: str | None = None
    ) -> DraftRecord:
        with self._lock:
            record = DraftRecord(
                id=_new_id(),
                title=title,
                content=content,
                status=status,
                workflow_id=workflow_id,
            )
            self._drafts[record.id] = record
            return record

    def update_status(self, draft_id: str, *, status: str, expected: str) -> DraftRecord:
        """Compare-and-set the status; raises StatusConflict on a lost update."""

        with self._lock:
            current = self._drafts.get(draft_id)
            if current is None:
                raise KeyError(draft_id)
            if current.status != expected:
                raise StatusConflict(draft_id, expected=expected, actual=current.status)
            updated = current.model_copy(update={"status": status})
            self._drafts[draft_id] = updated
            return updated


@dataclass
class SchemaStore:
    cache: DefinitionCache | None = None
    _schemas: dict[str, WorkflowSchema] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._lock = threading.Lock()

    def list(self) -> list[WorkflowSchema]:
        with self._lock:
            return list(self._schemas.values())

    def get(self, schema_id: str) -> WorkflowSchema | None:
        with self._lock:
            return self._schemas.get(schema_id)

    def create(self, body: WorkflowSchemaBody) -> WorkflowSchema:
        with self._lock:
            schema = WorkflowSchema(id=_new_id(), **body.model_dump(by_alias=True))
            self._schemas[schema.id] = schema
            return schema

    def update(self, schema_id: str, body: WorkflowSchemaBody) -> WorkflowSchema:
        with self._lock:
            if schema_id not in self._schemas:
                raise KeyError(schema_id)
            schema = WorkflowSchema(id=schema_id, **body.model_dump(by_alias=True))
            self._schemas[schema_id] = schema
        if self.cache is not None:
            self.cache.invalidate(schema_id)
        return schema

    def delete(self, schema_id: str) -> bool:
        with self._lock:
            removed = self._schemas.pop(schema_id, None) is not None
        if removed and self.cache is not None:
            self.cache.invalidate(schema_id)
        return removed
