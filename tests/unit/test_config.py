"""Unit tests for configuration."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from workflow_engine.config import WorkflowSettings


def test_settings_defaults(monkeypatch) -> None:
    for name in [
        "LOG_LEVEL",
        "WORKFLOW_DEFAULT_STATUS",
        "WORKFLOW_DEFINITION_CACHE",
        "WORKFLOW_LOG_DELAYED_DEFAULT_MS",
        "WORKFLOW_CORS_ORIGINS",
    ]:
        monkeypatch.delenv(name, raising=False)

    settings = WorkflowSettings(_env_file=None)

    assert settings.log_level == "INFO"
    assert settings.default_status == "CREATED"
    assert settings.definition_cache_enabled is True
    assert settings.log_delayed_default_ms == 2000
    assert settings.parsed_cors_origins() == ["http://localhost:5173", "http://127.0.0.1:5173"]


def test_settings_from_env(monkeypatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("WORKFLOW_DEFAULT_STATUS", "NEW")
    monkeypatch.setenv("WORKFLOW_DEFINITION_CACHE", "false")
    monkeypatch.setenv("WORKFLOW_CORS_ORIGINS", "http://a, ,http://b")

    settings = WorkflowSettings(_env_file=None)

    assert settings.log_level == "DEBUG"
    assert settings.default_status == "NEW"
    assert settings.definition_cache_enabled is False
    assert settings.parsed_cors_origins() == ["http://a", "http://b"]


def test_settings_from_env_file(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.delenv("WORKFLOW_LOG_DELAYED_DEFAULT_MS", raising=False)
    env = tmp_path / ".env"
    env.write_text("WORKFLOW_LOG_DELAYED_DEFAULT_MS=50\n", encoding="utf-8")

    assert WorkflowSettings(_env_file=env).log_delayed_default_ms == 50


def test_negative_delay_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("WORKFLOW_LOG_DELAYED_DEFAULT_MS", "-1")
    with pytest.raises(ValidationError):
        WorkflowSettings(_env_file=None)
