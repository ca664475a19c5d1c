"""
Health check endpoint.

Reports the active provider and which integrations have credentials
configured. Only presence flags are returned, never the values.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from providers.factory import DatabaseClientFactory
from shared.config import get_settings
from shared.models import utc_now

from ..dependencies import get_factory

router = APIRouter()


class EnvironmentFlags(BaseModel):
    """Credential presence per integration."""

    hasFirebase: bool
    hasSupabase: bool
    hasResend: bool
    hasStripe: bool


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    timestamp: str
    environment: str
    provider: str
    version: str
    env: EnvironmentFlags


@router.get("/health", response_model=HealthResponse)
async def health_check(
    factory: DatabaseClientFactory = Depends(get_factory),
) -> HealthResponse:
    """
    Basic health check endpoint.

    Returns 200 if the API is running. Does not construct a provider adapter.
    """
    settings = get_settings()
    return HealthResponse(
        status="healthy",
        timestamp=utc_now().isoformat(),
        environment=settings.environment,
        provider=factory.current_provider().value,
        version=settings.app_version,
        env=EnvironmentFlags(
            hasFirebase=bool(settings.firebase_api_key and settings.firebase_project_id),
            hasSupabase=bool(settings.supabase_url and settings.supabase_anon_key),
            hasResend=bool(settings.resend_api_key),
            hasStripe=bool(settings.stripe_secret_key),
        ),
    )
