"""Configuration management using Pydantic Settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

SERVER_NAME = "zerops-mcp"
SERVER_VERSION = "1.0.0"

# Newest first; the first entry is offered when the client asks for an unknown version.
SUPPORTED_PROTOCOL_VERSIONS = ("2025-06-18", "2025-03-26", "2024-11-05")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Credential for the pipe transport. HTTP callers send their own.
    zerops_api_key: str = ""

    # Upstream services
    zerops_api_url: str = "https://api.app-prg1.zerops.io"
    knowledge_api_url: str = "https://kbapi-167b-8080.prg1.zerops.app"
    guides_base_url: str = "https://raw.githubusercontent.com/zeropsio/zagent-knowledge/main"

    # Transport
    mcp_transport: str = "stdio"  # stdio | http
    mcp_host: str = "0.0.0.0"
    mcp_port: int = 8080
    # Local testing only: start the pipe transport without a credential
    mcp_skip_api_key_validation: bool = False

    # Fallback project for tools that take an optional project_id
    default_project_id: str = Field(
        default="",
        validation_alias=AliasChoices("projectId", "ZEROPS_PROJECT_ID", "default_project_id"),
    )

    # Timeouts (seconds)
    upstream_timeout: float = 10.0
    deploy_timeout: float = 600.0

    # Platform guides are refetched after this many seconds
    guide_cache_ttl: int = 600

    # Deployment CLI
    zcli_path: str = "zcli"

    log_level: str = "info"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
