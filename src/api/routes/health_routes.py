"""
Health check route - public, does not touch the spreadsheet store.
"""
from fastapi import APIRouter

router = APIRouter()


@router.get(
    "",
    summary="System health check",
)
async def health_check():
    """
    Check system health status.

    Reports whether configuration is loadable and complete.
    """
    health = {
        "status": "healthy",
        "service": "Branch Order Portal API",
        "version": "1.0.0",
        "components": {}
    }

    import config
    health["environment"] = config.RUNTIME_ENVIRONMENT
    if config.GOOGLE_CREDENTIALS_SHEET_ID:
        health["components"]["config"] = "ok"
    else:
        health["components"]["config"] = "missing GOOGLE_CREDENTIALS_SHEET_ID"
        health["status"] = "degraded"

    return health
