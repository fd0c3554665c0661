"""Health check endpoints."""
import logging
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from barista.db.database import get_db

router = APIRouter()
logger = logging.getLogger(__name__)


async def database_available(db: AsyncSession) -> bool:
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"[HEALTH] Database check failed: {type(e).__name__}: {e}", exc_info=True)
        return False
    return True


@router.get("/health")
async def health_check(request: Request, db: AsyncSession = Depends(get_db)):
    """Report whether the service and its database are reachable."""
    logger.debug(
        f"[HEALTH] Health check requested - Client: {request.client.host if request.client else 'unknown'}"
    )
    database = "ok" if await database_available(db) else "unavailable"
    return {
        "status": "healthy" if database == "ok" else "degraded",
        "database": database,
    }


@router.get("/health/live")
async def liveness():
    """The process is up; no dependencies are checked."""
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness(response: Response, db: AsyncSession = Depends(get_db)):
    """Ready to take traffic once the database answers."""
    if not await database_available(db):
        response.status_code = 503
        return {"status": "not_ready", "reason": "Database is not available"}
    return {"status": "ready"}
