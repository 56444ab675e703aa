from __future__ import annotations

import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DocumentFlowSettings(BaseSettings):
    """Unified configuration for the document flow service.

    Environment variables are prefixed with DOCUMENT_FLOW_.
    """

    model_config = SettingsConfigDict(env_prefix="DOCUMENT_FLOW_", extra="ignore")

    # --- Core ---
    log_level: str = Field(default="INFO", description="Python logging level")

    # --- Relationship API ---
    api_base_url: str = Field(default="http://localhost:8080")
    api_path: str = Field(default="/sap/c4c/api/v1/document-flow-service/documentflow")
    api_username: str | None = None
    api_password: str | None = None
    api_timeout: float = Field(default=30.0, description="Read timeout per request, seconds")
    api_max_attempts: int = Field(default=5, description="Attempts per fetch on timeouts and network errors")

    # Opportunity
    default_source_type: str = "72"

    # --- HTTP ---
    bind_host: str = "0.0.0.0"
    bind_port: int = 8090
    max_flows: int = Field(default=256, description="Flow sessions kept in memory; least recently used are dropped")
    settle_timeout: float = Field(default=5.0, description="Upper bound for ?settle=true waits, seconds")


settings = DocumentFlowSettings()


def configure_logging(level: str | None = None) -> None:
    level = (level or settings.log_level or "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
