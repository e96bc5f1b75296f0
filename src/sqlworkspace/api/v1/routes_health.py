"""Health check endpoint for SQL Workspace."""

from fastapi import APIRouter

from sqlworkspace.core.config import settings

router = APIRouter()


def _configured(flag: bool) -> str:
    return "configured" if flag else "missing"


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint.

    Reports configuration only; no database or LLM round trip is made, so
    the check stays fast during startup.

    Returns:
        dict: status, service, version, database and llm fields
    """
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "database": _configured(settings.database_configured),
        "llm": _configured(settings.llm_configured),
    }
