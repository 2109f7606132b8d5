"""
Chow Service - FastAPI application factory
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from chowdown.api import eateries, health, orders
from chowdown.api.errors import register_error_handlers
from chowdown.core.config import Settings, get_settings
from chowdown.core.errors import Err
from chowdown.db.repositories import Repositories


def create_app(settings: Settings | None = None, repositories: Repositories | None = None) -> FastAPI:
    settings = settings or get_settings()
    repositories = repositories or Repositories.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup: create tables and indexes that do not exist yet
        result = await repositories.init()
        if isinstance(result, Err):
            raise RuntimeError("; ".join(e.message for e in result.errors))
        yield
        # Shutdown: release the connection pool (and Redis)
        await repositories.close()

    app = FastAPI(
        title="Chow Service",
        description="Locate eateries by cuisine and manage food orders against their menus.",
        version=settings.SERVICE_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url=None,
    )
    app.state.settings = settings
    app.state.repositories = repositories

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Location"],
    )

    if settings.METRICS_ENABLED:
        Instrumentator().instrument(app).expose(app, endpoint="/metrics")

    register_error_handlers(app)

    app.include_router(eateries.router, prefix=settings.API_BASE_PATH)
    app.include_router(orders.router, prefix=settings.API_BASE_PATH)
    app.include_router(health.router)

    @app.get("/")
    async def root():
        return {"service": settings.SERVICE_NAME, "version": settings.SERVICE_VERSION}

    return app
