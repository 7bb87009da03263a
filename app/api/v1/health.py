"""Health check endpoint with a local (no network) Jira configuration check."""

from fastapi import APIRouter

from app.core.config import get_settings
from app.schemas.health import HealthResponse
from app.services.config_validator import jira_config_from_settings, validate_config

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health() -> HealthResponse:
    """
    Return service health status and whether Jira export is configured.
    Used by load balancers and monitoring.
    """
    settings = get_settings()
    config = jira_config_from_settings(settings)
    jira_status = (
        "configured" if validate_config(config, settings.JIRA_HOST_SUFFIX) else "not_configured"
    )

    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        jira=jira_status,
    )
