"""Health check endpoint for the File Drop relay."""

from fastapi import APIRouter

from filedrop.core.config import settings

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint.

    Returns service status, name, and version information without touching
    storage or consumers.
    """
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
    }
