"""FastAPI app factory.

Endpoints are intentionally thin wrappers over the workflow engine: load a
draft, build an instance for its status, trigger one event, write the new
status back.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from workflow_engine import __version__
from workflow_engine.config import WorkflowSettings
from workflow_engine.engine.actions import ActionRegistry, EffectRunner, default_registry
from workflow_engine.engine.definitions.draft import draft_workflow
from workflow_engine.engine.errors import TransitionHookError
from workflow_engine.engine.factory import DefinitionCache, WorkflowFactory
from workflow_engine.engine.instance import WorkflowInstance
from workflow_engine.engine.schema import WorkflowSchema, WorkflowSchemaBody
from workflow_engine.server.models import (
    ApiDraft,
    CreateDraftRequest,
    TransitionRejected,
    TransitionRequest,
    TransitionSucceeded,
)
from workflow_engine.server.store import DraftRecord, DraftStore, SchemaStore, StatusConflict

logger = logging.getLogger(__name__)


def draft_context(record: DraftRecord) -> dict[str, Any]:
    """Context handed to guards and hooks.

    Fields are exposed both at top level and under `draft`, so schema guards may
    use either `content` or `draft.content`.
    """

    fields = record.model_dump(mode="json")
    return {"draft": fields, **fields}


def create_app(
    settings: WorkflowSettings | None = None,
    *,
    registry: ActionRegistry | None = None,
) -> FastAPI:
    settings = settings if settings is not None else WorkflowSettings()

    registry = (
        registry
        if registry is not None
        else default_registry(log_delayed_default_ms=settings.log_delayed_default_ms)
    )
    runner = EffectRunner()
    cache = DefinitionCache() if settings.definition_cache_enabled else None
    factory = WorkflowFactory(registry=registry, runner=runner, cache=cache)
    drafts = DraftStore()
    schemas = SchemaStore(cache=cache)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        yield
        if runner.pending:
            logger.info("Waiting for async actions", extra={"pending": runner.pending})
        await runner.drain()

    app = FastAPI(
        title="Workflow Engine",
        version=__version__,
        description="REST API over the schema-driven workflow engine.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    # Expose collaborators for request handlers and tests that want to read them.
    app.state.settings = settings
    app.state.factory = factory
    app.state.runner = runner
    app.state.drafts = drafts
    app.state.schemas = schemas

    # Minimal dev-friendly CORS so a Vite dev server (schema editor) can call the API.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _schema_or_404(schema_id: str) -> WorkflowSchema:
        schema = schemas.get(schema_id)
        if schema is None:
            raise HTTPException(status_code=404, detail="Workflow schema not found")
        return schema

    def _instance_for(record: DraftRecord) -> WorkflowInstance[Any]:
        schema = None
        if record.workflow_id:
            schema = schemas.get(record.workflow_id)
            if schema is None:
                raise HTTPException(
                    status_code=409,
                    detail=f"Draft is bound to missing workflow schema {record.workflow_id!r}",
                )
        return factory.create_instance(
            schema=schema,
            default_definition=draft_workflow,
            current_state=record.status,
            context=draft_context(record),
        )

    def _to_api_draft(record: DraftRecord) -> ApiDraft:
        instance = _instance_for(record)
        return ApiDraft(
            id=record.id,
            title=record.title,
            content=record.content,
            status=record.status,
            workflow_id=record.workflow_id,
            available_events=instance.available_events(),
        )

    @app.get("/api/health")
    def health() -> dict[str, object]:
        return {"status": "ok", "ok": True, "version": __version__}

    @app.post("/api/workflows", response_model=WorkflowSchema, status_code=201)
    def create_workflow(body: WorkflowSchemaBody) -> WorkflowSchema:
        schema = schemas.create(body)
        # Compile once up front so unknown actions are reported at save time.
        factory.resolve_definition(schema)
        logger.info("Workflow schema created", extra={"schema_id": schema.id})
        return schema

    @app.get("/api/workflows", response_model=list[WorkflowSchema])
    def list_workflows() -> list[WorkflowSchema]:
        return schemas.list()

    @app.get("/api/workflows/{schema_id}", response_model=WorkflowSchema)
    def get_workflow(schema_id: str) -> WorkflowSchema:
        return _schema_or_404(schema_id)

    @app.put("/api/workflows/{schema_id}", response_model=WorkflowSchema)
    def update_workflow(schema_id: str, body: WorkflowSchemaBody) -> WorkflowSchema:
        _schema_or_404(schema_id)
        schema = schemas.update(schema_id, body)
        logger.info("Workflow schema updated", extra={"schema_id": schema_id})
        return schema

    @app.delete("/api/workflows/{schema_id}", status_code=204)
    def delete_workflow(schema_id: str) -> None:
        if not schemas.delete(schema_id):
            raise HTTPException(status_code=404, detail="Workflow schema not found")

    @app.post("/api/drafts", response_model=ApiDraft, status_code=201)
    def create_draft(req: CreateDraftRequest) -> ApiDraft:
        status = settings.default_status
        if req.workflow_id:
            status = _schema_or_404(req.workflow_id).initial_state
        record = drafts.create(
            title=req.title, content=req.content, status=status, workflow_id=req.workflow_id
        )
        logger.info("Draft created", extra={"draft_id": record.id, "status": status})
        return _to_api_draft(record)

    @app.get("/api/drafts", response_model=list[ApiDraft])
    def list_drafts() -> list[ApiDraft]:
        return [_to_api_draft(r) for r in drafts.list()]

    @app.get("/api/drafts/{draft_id}", response_model=ApiDraft)
    def get_draft(draft_id: str) -> ApiDraft:
        record = drafts.get(draft_id)
        if record is None:
            raise HTTPException(status_code=404, detail="Draft not found")
        return _to_api_draft(record)

    @app.post(
        "/api/drafts/{draft_id}/transition",
        response_model=TransitionSucceeded,
        responses={400: {"model": TransitionRejected}},
    )
    async def transition_draft(
        draft_id: str, req: TransitionRequest
    ) -> TransitionSucceeded | JSONResponse:
        record = drafts.get(draft_id)
        if record is None:
            raise HTTPException(status_code=404, detail="Draft not found")

        instance = _instance_for(record)
        try:
            ok = await instance.trigger(req.event)
        except TransitionHookError as e:
            logger.exception(
                "Transition failed in a hook", extra={"draft_id": draft_id, "phase": e.phase}
            )
            raise HTTPException(status_code=500, detail=str(e)) from e

        if not ok:
            rejected = TransitionRejected(
                message=f"Transition {req.event!r} not allowed from state {record.status!r}",
                current_status=record.status,
            )
            return JSONResponse(status_code=400, content=rejected.model_dump(by_alias=True))

        try:
            updated = drafts.update_status(
                draft_id, status=instance.current_state, expected=record.status
            )
        except StatusConflict as e:
            raise HTTPException(status_code=409, detail=str(e)) from e

        return TransitionSucceeded(
            entity=_to_api_draft(updated),
            allowed_events=instance.available_events(),
            history=[r.to_json() for r in instance.history],
        )

    return app
