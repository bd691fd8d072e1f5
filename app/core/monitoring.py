"""Health checks for the booking API"""
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from app.config.database import get_db
from app.config.redis import ping_broker

logger = logging.getLogger(__name__)

health_router = APIRouter()


@health_router.get("/")
async def health_check():
    """Liveness only"""
    return {"status": "healthy", "service": "slotbook-api"}


@health_router.get("/detailed")
async def detailed_health_check(db: Session = Depends(get_db)):
    """
    Readiness: the booking ledger database must answer; the notification
    broker being down only degrades the service.
    """
    checks = {"api": "healthy", "database": "unknown", "broker": "unknown"}

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        checks["database"] = f"unhealthy: {e}"

    checks["broker"] = await ping_broker()

    if checks["database"] != "healthy":
        checks["overall"] = "unhealthy"
    elif checks["broker"] != "healthy":
        checks["overall"] = "degraded"
    else:
        checks["overall"] = "healthy"

    return checks
