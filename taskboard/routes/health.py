"""
Health Route

Reports database reachability and round-trip latency. Driver errors are
logged, never returned.
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.config import settings
from taskboard.database import get_db

router = APIRouter(tags=["Monitoring"])
logger = logging.getLogger(__name__)


class HealthStatus(BaseModel):
    status: str
    database: str
    latency_ms: float | None
    timestamp: str
    version: str


@router.get("/health", response_model=HealthStatus)
async def health_check(db: AsyncSession = Depends(get_db)):
    start = time.perf_counter()
    try:
        await db.execute(text("SELECT 1"))
    except (SQLAlchemyError, TimeoutError) as e:
        logger.error(f"Health check database probe failed: {str(e)}")
        body = HealthStatus(
            status="unhealthy",
            database="disconnected",
            latency_ms=None,
            timestamp=datetime.now(timezone.utc).isoformat(),
            version=settings.app_version,
        )
        return JSONResponse(status_code=503, content=body.model_dump())

    return HealthStatus(
        status="healthy",
        database="connected",
        latency_ms=round((time.perf_counter() - start) * 1000, 2),
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=settings.app_version,
    )
