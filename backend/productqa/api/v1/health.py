"""Health check endpoint."""

from fastapi import APIRouter

from productqa.config import settings
from productqa.schemas import HealthCheckResponse

router = APIRouter()

API_VERSION = "0.1.0"


@router.get("/health", response_model=HealthCheckResponse)
async def health_check():
    """Return service health status.

    The service has no backing stores; ``generator_configured`` reports
    whether a server-side Anthropic key is set (requests may still pass
    their own key).
    """
    return HealthCheckResponse(
        status="ok",
        version=API_VERSION,
        environment=settings.ENVIRONMENT,
        generator_configured=bool(settings.ANTHROPIC_API_KEY),
    )
