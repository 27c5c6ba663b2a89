"""Pydantic models for the REST server."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CreateDraftRequest(_ApiModel):
    title: str
    content: str = ""
    workflow_id: str | None = Field(default=None, alias="workflowId")


class ApiDraft(_ApiModel):
    id: str
    title: str
    content: str
    status: str
    workflow_id: str | None = Field(default=None, alias="workflowId")
    available_events: list[str] = Field(default_factory=list, alias="availableEvents")


class TransitionRequest(_ApiModel):
    event: str = Field(min_length=1)


class TransitionSucceeded(_ApiModel):
    success: bool = True
    entity: ApiDraft
    allowed_events: list[str] = Field(default_factory=list, alias="allowedEvents")
    history: list[dict[str, object]] = Field(default_factory=list)


class TransitionRejected(_ApiModel):
    success: bool = False
    message: str
    current_status: str = Field(alias="currentStatus")
