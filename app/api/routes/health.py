from fastapi import APIRouter, Response

from app.core.config import settings


router = APIRouter()


@router.get("/health")
def health() -> dict:
    """Liveness probe - always returns 200 if app is running."""
    return {"status": "ok"}


@router.get("/ready")
def readiness(response: Response) -> dict:
    """Readiness probe - returns 503 if the provider credential is missing."""
    if not settings.fal_key_configured:
        response.status_code = 503
        return {"status": "not_ready", "error": "FAL_KEY is not configured"}
    return {"status": "ready"}
