"""Common schemas used across services."""

from __future__ import annotations

from pydantic import BaseModel

from shared.config import SERVER_NAME


class HealthResponse(BaseModel):
    """Standard health check response."""

    status: str = "healthy"
    service: str = SERVER_NAME
    transport: str = "http"
