from __future__ import annotations

from typing import Any

import pytest
from fastapi.testclient import TestClient

from workflow_engine.config import WorkflowSettings
from workflow_engine.engine.actions import default_registry
from workflow_engine.server.app import create_app


@pytest.fixture
def client(monkeypatch) -> TestClient:
    monkeypatch.setenv("WORKFLOW_DEFAULT_STATUS", "CREATED")
    return TestClient(create_app(WorkflowSettings(_env_file=None)))


def _review_schema() -> dict[str, Any]:
    return {
        "name": "Review",
        "initialState": "DRAFT",
        "states": [
            {"name": "DRAFT"},
            {"name": "REVIEW", "onEnter": [{"type": "log", "params": {"message": "in review"}}]},
            {"name": "DONE"},
        ],
        "transitions": [
            {
                "from": "DRAFT",
                "to": "REVIEW",
                "event": "SUBMIT",
                "conditions": [{"field": "draft.content", "operator": "contains", "value": "ready"}],
            },
            {"from": "REVIEW", "to": "DONE", "event": "APPROVE"},
            {"from": "REVIEW", "to": "DRAFT", "event": "REJECT"},
        ],
    }


def test_health(client: TestClient) -> None:
    body = client.get("/api/health").json()
    assert body["status"] == "ok"
    assert body["ok"] is True
    assert "version" in body


def test_create_and_list_workflows(client: TestClient) -> None:
    created = client.post("/api/workflows", json=_review_schema())
    assert created.status_code == 201
    schema = created.json()
    assert schema["id"]
    assert schema["initialState"] == "DRAFT"
    assert schema["transitions"][0]["from"] == "DRAFT"

    listed = client.get("/api/workflows").json()
    assert [s["id"] for s in listed] == [schema["id"]]
    assert client.get(f"/api/workflows/{schema['id']}").json()["name"] == "Review"
    assert client.get("/api/workflows/missing").status_code == 404


def test_invalid_workflow_is_rejected(client: TestClient) -> None:
    resp = client.post("/api/workflows", json={"name": "No initial state"})
    assert resp.status_code == 422


def test_default_workflow_draft_lifecycle(client: TestClient) -> None:
    draft = client.post("/api/drafts", json={"title": "T", "content": "long enough content"}).json()
    assert draft["status"] == "CREATED"
    assert draft["workflowId"] is None
    assert draft["availableEvents"] == ["SUBMIT"]

    resp = client.post(f"/api/drafts/{draft['id']}/transition", json={"event": "SUBMIT"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["entity"]["status"] == "IN_REVIEW"
    assert body["allowedEvents"] == ["APPROVE", "REJECT"]
    assert body["history"][0]["from"] == "CREATED"
    assert body["history"][0]["to"] == "IN_REVIEW"

    fetched = client.get(f"/api/drafts/{draft['id']}").json()
    assert fetched["status"] == "IN_REVIEW"
    assert fetched["availableEvents"] == ["APPROVE", "REJECT"]


def test_rejected_transition_returns_400_and_keeps_status(client: TestClient) -> None:
    draft = client.post("/api/drafts", json={"title": "T", "content": "short"}).json()

    resp = client.post(f"/api/drafts/{draft['id']}/transition", json={"event": "SUBMIT"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["currentStatus"] == "CREATED"
    assert "SUBMIT" in body["message"]

    unknown = client.post(f"/api/drafts/{draft['id']}/transition", json={"event": "APPROVE"})
    assert unknown.status_code == 400
    assert client.get(f"/api/drafts/{draft['id']}").json()["status"] == "CREATED"


def test_schema_bound_draft(client: TestClient) -> None:
    schema = client.post("/api/workflows", json=_review_schema()).json()
    draft = client.post(
        "/api/drafts", json={"title": "T", "content": "ready to go", "workflowId": schema["id"]}
    ).json()
    assert draft["status"] == "DRAFT"
    assert draft["workflowId"] == schema["id"]

    ok = client.post(f"/api/drafts/{draft['id']}/transition", json={"event": "SUBMIT"}).json()
    assert ok["success"] is True
    assert ok["entity"]["status"] == "REVIEW"
    assert ok["allowedEvents"] == ["APPROVE", "REJECT"]


def test_schema_guard_blocks(client: TestClient) -> None:
    schema = client.post("/api/workflows", json=_review_schema()).json()
    draft = client.post(
        "/api/drafts", json={"title": "T", "content": "not yet", "workflowId": schema["id"]}
    ).json()

    resp = client.post(f"/api/drafts/{draft['id']}/transition", json={"event": "SUBMIT"})
    assert resp.status_code == 400
    assert resp.json()["currentStatus"] == "DRAFT"


def test_unknown_schema_or_draft_is_404(client: TestClient) -> None:
    assert client.post("/api/drafts", json={"title": "T", "workflowId": "nope"}).status_code == 404
    assert client.get("/api/drafts/nope").status_code == 404
    assert (
        client.post("/api/drafts/nope/transition", json={"event": "SUBMIT"}).status_code == 404
    )


def test_updating_schema_applies_to_existing_drafts(client: TestClient) -> None:
    schema = client.post("/api/workflows", json=_review_schema()).json()
    draft = client.post(
        "/api/drafts", json={"title": "T", "content": "not yet", "workflowId": schema["id"]}
    ).json()

    relaxed = _review_schema()
    relaxed["transitions"][0]["conditions"] = []
    updated = client.put(f"/api/workflows/{schema['id']}", json=relaxed)
    assert updated.status_code == 200

    resp = client.post(f"/api/drafts/{draft['id']}/transition", json={"event": "SUBMIT"})
    assert resp.status_code == 200
    assert resp.json()["entity"]["status"] == "REVIEW"


def test_deleted_schema_makes_bound_drafts_conflict(client: TestClient) -> None:
    schema = client.post("/api/workflows", json=_review_schema()).json()
    draft = client.post(
        "/api/drafts", json={"title": "T", "content": "ready", "workflowId": schema["id"]}
    ).json()

    assert client.delete(f"/api/workflows/{schema['id']}").status_code == 204
    assert client.delete(f"/api/workflows/{schema['id']}").status_code == 404
    resp = client.post(f"/api/drafts/{draft['id']}/transition", json={"event": "SUBMIT"})
    assert resp.status_code == 409


def test_hook_failure_returns_500_and_status_is_not_written() -> None:
    registry = default_registry()

    def boom(_ctx: Any, _params: Any) -> None:
        raise RuntimeError("notify failed")

    registry.register("notify", boom)
    client = TestClient(
        create_app(WorkflowSettings(_env_file=None), registry=registry),
        raise_server_exceptions=False,
    )
    schema = _review_schema()
    schema["transitions"][0]["conditions"] = []
    schema["transitions"][0]["actions"] = [{"type": "notify", "mode": "sync"}]
    schema_id = client.post("/api/workflows", json=schema).json()["id"]
    draft = client.post("/api/drafts", json={"title": "T", "workflowId": schema_id}).json()

    resp = client.post(f"/api/drafts/{draft['id']}/transition", json={"event": "SUBMIT"})
    assert resp.status_code == 500
    assert client.get(f"/api/drafts/{draft['id']}").json()["status"] == "DRAFT"


def test_status_written_with_compare_and_set(client: TestClient) -> None:
    from workflow_engine.server.store import StatusConflict

    drafts = client.app.state.drafts
    record = drafts.create(title="T", content="x", status="A")
    drafts.update_status(record.id, status="B", expected="A")

    with pytest.raises(StatusConflict):
        drafts.update_status(record.id, status="B", expected="A")
    assert drafts.get(record.id).status == "B"


def test_async_actions_drained_on_shutdown() -> None:
    app = create_app(WorkflowSettings(_env_file=None))
    schema = _review_schema()
    schema["transitions"][0]["conditions"] = []
    schema["transitions"][0]["actions"] = [
        {"type": "logDelayed", "mode": "async", "params": {"delay": 5, "message": "later"}}
    ]
    with TestClient(app) as client:
        schema_id = client.post("/api/workflows", json=schema).json()["id"]
        draft = client.post("/api/drafts", json={"title": "T", "workflowId": schema_id}).json()
        resp = client.post(f"/api/drafts/{draft['id']}/transition", json={"event": "SUBMIT"})
        assert resp.status_code == 200

    assert app.state.runner.pending == 0
    assert app.state.runner.errors == []
