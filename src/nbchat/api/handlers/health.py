"""Health check endpoint handler."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Response

from nbchat import __version__
from nbchat.api.deps import Services, ServicesDep
from nbchat.models.health import ComponentHealth, HealthResponse, HealthStatus

logger = logging.getLogger(__name__)

router = APIRouter()


def check_providers(services: Services) -> ComponentHealth:
    """Check that a usable default provider is configured.

    No network call is made; a chat is usable as soon as its provider
    entry names a registered provider type.

    Args:
        services: Application services.

    Returns:
        ComponentHealth for the provider configuration.
    """
    settings_model = services.settings_model
    provider_id = settings_model.default_provider
    config = settings_model.get_provider(provider_id)

    if config is None:
        return ComponentHealth(
            status=HealthStatus.DEGRADED,
            message="No AI provider configured",
        )

    if config.provider not in services.provider_registry:
        return ComponentHealth(
            status=HealthStatus.UNHEALTHY,
            error=f"Unknown provider type: {config.provider}",
        )

    return ComponentHealth(
        status=HealthStatus.HEALTHY,
        message=f"Default provider: {config.id}",
    )


def check_sessions(services: Services) -> ComponentHealth:
    chats = services.sessions.list()
    generating = sum(1 for presenter in chats if presenter.model.is_generating)
    return ComponentHealth(
        status=HealthStatus.HEALTHY,
        message=f"{len(chats)} open, {generating} generating",
    )


def determine_overall_status(checks: dict[str, ComponentHealth]) -> HealthStatus:
    """Determine overall health status from component checks.

    Args:
        checks: Dictionary of component health results.

    Returns:
        Overall health status.
    """
    if not checks:
        return HealthStatus.HEALTHY

    statuses = [check.status for check in checks.values()]

    if any(s == HealthStatus.UNHEALTHY for s in statuses):
        return HealthStatus.UNHEALTHY
    elif any(s == HealthStatus.DEGRADED for s in statuses):
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY


@router.get("/health", response_model=HealthResponse)
async def health_check(services: ServicesDep, response: Response) -> HealthResponse:
    """Report provider configuration and open chat sessions.

    - HTTP 200: Service is healthy or degraded (no provider yet)
    - HTTP 503: Service is unhealthy
    """
    checks = {
        "providers": check_providers(services),
        "sessions": check_sessions(services),
    }
    overall_status = determine_overall_status(checks)

    if overall_status == HealthStatus.UNHEALTHY:
        response.status_code = 503

    return HealthResponse(
        status=overall_status,
        version=__version__,
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> dict:
    """Liveness probe - checks if process is running."""
    return {"status": "alive"}


@router.get("/health/ready", response_model=HealthResponse)
async def readiness_check(services: ServicesDep, response: Response) -> HealthResponse:
    """Readiness probe - same as the main health check."""
    return await health_check(services, response)
