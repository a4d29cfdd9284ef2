"""Health check data models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class HealthStatus(str, Enum):
    """Health status values.

    DEGRADED means the server runs but chats cannot answer yet, e.g. no
    provider has been configured.
    """

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """Health of one checked component (provider configuration, sessions)."""

    model_config = ConfigDict(use_enum_values=True)

    status: HealthStatus
    error: str | None = None
    message: str | None = None


class HealthResponse(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    status: HealthStatus
    version: str
    timestamp: datetime
    checks: dict[str, ComponentHealth]
