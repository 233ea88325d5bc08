"""
Health API Routes
"""
import asyncio
import logging

from fastapi import APIRouter, Depends, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from app.config import settings
from app.database import SessionProvider, database_health, get_session_provider

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(provider: SessionProvider = Depends(get_session_provider)) -> JSONResponse:
    """Application and database health"""
    try:
        db = await asyncio.wait_for(
            run_in_threadpool(database_health, provider),
            timeout=settings.health_check_timeout,
        )
    except asyncio.TimeoutError:
        logger.error(f"Health check timed out after {settings.health_check_timeout}s")
        db = {"ok": False, "error": "database check timed out"}

    ok = bool(db.get("ok"))
    return JSONResponse(
        status_code=status.HTTP_200_OK if ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if ok else "degraded",
            "database": db,
        },
    )
