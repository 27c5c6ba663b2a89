"""Configuration for the workflow engine and its REST surface.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class WorkflowSettings(BaseSettings):
    """Settings for the workflow engine.

    Environment variables:
    - LOG_LEVEL                        (optional)
    - WORKFLOW_DEFAULT_STATUS          (optional)
    - WORKFLOW_DEFINITION_CACHE        (optional)
    - WORKFLOW_LOG_DELAYED_DEFAULT_MS  (optional)
    - WORKFLOW_CORS_ORIGINS            (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `WorkflowSettings(_env_file=path_to_env)`.
    """

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    default_status: str = Field(
        default="CREATED",
        validation_alias="WORKFLOW_DEFAULT_STATUS",
        description="Status given to drafts that are not bound to a workflow schema",
    )

    definition_cache_enabled: bool = Field(
        default=True,
        validation_alias="WORKFLOW_DEFINITION_CACHE",
        description="Reuse compiled definitions until their schema changes",
    )

    log_delayed_default_ms: int = Field(
        default=2000,
        validation_alias="WORKFLOW_LOG_DELAYED_DEFAULT_MS",
        description="Delay used by the built-in logDelayed action when params.delay is absent",
        ge=0,
    )

    # Dev-friendly CORS (Vite). Override via WORKFLOW_CORS_ORIGINS=...
    cors_origins: str = Field(
        default="http://localhost:5173,http://127.0.0.1:5173",
        validation_alias="WORKFLOW_CORS_ORIGINS",
        description="Comma-separated list of allowed CORS origins.",
    )

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    def parsed_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
