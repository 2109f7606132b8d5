"""
Chow Service - Health endpoint

Probes the SQL store, and Redis when the eatery cache is enabled. Any
failing probe turns the response into 503 "degraded".
"""
import asyncio
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text

from chowdown.api.deps import get_app_settings, get_repositories
from chowdown.core.config import Settings
from chowdown.db.repositories import Repositories

router = APIRouter(tags=["health"])


async def _probe(check: Callable[[], Awaitable[None]], timeout: float) -> str:
    try:
        await asyncio.wait_for(check(), timeout=timeout)
    except Exception as e:
        return f"error: {str(e)[:100]}"
    return "ok"


@router.get("/health")
async def health_check(
    repositories: Repositories = Depends(get_repositories),
    settings: Settings = Depends(get_app_settings),
):
    async def ping_database() -> None:
        async with repositories.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    probes = {"database": ping_database}
    if repositories.cache is not None:
        probes["redis"] = repositories.cache.ping

    deps = {name: await _probe(check, settings.HEALTH_CHECK_TIMEOUT) for name, check in probes.items()}
    healthy = all(state == "ok" for state in deps.values())

    return JSONResponse(
        content={
            "status": "healthy" if healthy else "degraded",
            "service": settings.SERVICE_NAME,
            "version": settings.SERVICE_VERSION,
            "dependencies": deps,
        },
        status_code=200 if healthy else 503,
    )
