"""Service-level routes (health)."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from aitwy.api.dependencies import get_database, get_email_service
from aitwy.database import Database
from aitwy.services.email_service import EmailService

router = APIRouter()


@router.get("/health")
async def health_check(
    db: Database = Depends(get_database),
    email_service: EmailService = Depends(get_email_service),
) -> dict:
    """Health check endpoint.

    Returns:
        Status and timestamp in ISO8601 format, plus dependency states
    """
    health_status = {
        "success": True,
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    if db.is_connected:
        health_status["database"] = "healthy" if await db.health_check() else "unhealthy"
    else:
        health_status["database"] = "unavailable"

    health_status["email"] = "configured" if email_service.transport else "unavailable"

    return health_status
