"""
Health check endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db import get_db
from src.models import CommissionSchemaRecord

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """
    Basic health check.

    Returns 200 if the service is running.
    """
    return {"status": "healthy", "service": "commissions"}


@router.get("/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)):
    """
    Readiness check with database connectivity.

    Ready means the catalog tables are reachable and hold at least one schema.
    """
    try:
        schema_count = await db.scalar(
            select(func.count()).select_from(CommissionSchemaRecord)
        )
    except Exception as e:
        return {
            "status": "not_ready",
            "database": f"error: {str(e)}",
        }

    return {
        "status": "ready" if schema_count else "not_ready",
        "database": "connected",
        "catalog_schemas": schema_count or 0,
    }


@router.get("/live")
async def liveness_check():
    """
    Liveness check.

    Returns 200 if the service is alive.
    """
    return {"status": "alive"}
