"""Liveness, readiness and version probes."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from storytrail.cache import get_redis
from storytrail.config import get_settings
from storytrail.database import get_session

router = APIRouter()


async def _database_status(db: AsyncSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
    except Exception as exc:  # noqa: BLE001
        return f"error: {exc}"
    return "ok"


async def _redis_status() -> str:
    try:
        await get_redis().ping()
    except Exception as exc:  # noqa: BLE001
        return f"error: {exc}"
    return "ok"


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe — returns 200 if the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """Readiness probe. Redis is only checked when one is configured."""
    checks: dict[str, str] = {"database": await _database_status(db)}
    if get_settings().redis_url:
        checks["redis"] = await _redis_status()

    degraded = any(status != "ok" for status in checks.values())
    return {"status": "degraded" if degraded else "ready", "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {"version": settings.app_version, "environment": settings.environment}
