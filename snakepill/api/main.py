"""
Main FastAPI application for the SNAKEPILL backend.
Configures the API server with routes, middleware and background scheduling.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, status
from fastapi.responses import JSONResponse

import structlog

from snakepill.core.config import Settings, get_settings
from snakepill.core.logging import setup_logging
from snakepill.api.middleware import add_exception_handlers, add_middleware
from snakepill.api.schemas.common import HealthCheckResponse
from snakepill.api.routes import admin, cron, eligibility, game, leaderboard, shop
from snakepill.api.routes import status as status_routes
from snakepill.scheduler import TaskScheduler, register_default_tasks
from snakepill.services.container import ServiceContainer


logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    services: ServiceContainer = app.state.services
    settings = services.settings

    logger.info("Starting SNAKEPILL API server", environment=settings.environment)
    await services.start()

    scheduler: Optional[TaskScheduler] = None
    if settings.scheduler_enabled:
        scheduler = register_default_tasks(TaskScheduler(), services)
        scheduler.start_background()
        logger.info("Background scheduler started")
    app.state.scheduler = scheduler

    yield

    logger.info("Shutting down SNAKEPILL API server")
    try:
        if scheduler is not None:
            await scheduler.stop()
    except Exception as e:
        logger.error("Error stopping scheduler", error=str(e))
    await services.close()


def create_app(
    settings: Optional[Settings] = None,
    services: Optional[ServiceContainer] = None
) -> FastAPI:
    """Create and configure FastAPI application."""
    if services is not None:
        settings = services.settings
    settings = settings or get_settings()
    services = services or ServiceContainer(settings)

    setup_logging(settings)

    app = FastAPI(
        title="SNAKEPILL API",
        description="""
        Backend API for SNAKEPILL, a Snake game whose players earn a share of
        token trading taxes.

        * **Game** - sessions, points, skins and online presence
        * **Eligibility** - players with enough playtime and a large enough
          token holding are paid from the distribution pool
        * **Admin** - tax distribution, protected by a bearer secret

        Errors are returned as `{"error": <message>, "code": <CODE>}`.
        """,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.services = services
    app.state.scheduler = None

    add_middleware(app, settings)
    add_exception_handlers(app)

    @app.get(
        "/health",
        response_model=HealthCheckResponse,
        tags=["System"],
        summary="Health Check",
        description="Check API server health and database connectivity"
    )
    async def health_check():
        healthy = await services.database.health_check()
        if healthy:
            return HealthCheckResponse(version=settings.app_version)

        logger.error("Health check failed")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=HealthCheckResponse(
                status="unhealthy",
                version=settings.app_version,
                services={"database": "unhealthy", "api": "healthy"}
            ).model_dump(mode="json")
        )

    prefix = settings.api_prefix
    app.include_router(status_routes.router, prefix=prefix)
    app.include_router(leaderboard.router, prefix=f"{prefix}/leaderboard")
    app.include_router(shop.router, prefix=prefix)
    app.include_router(eligibility.router, prefix=f"{prefix}/eligible")
    app.include_router(game.router, prefix=f"{prefix}/game")
    app.include_router(cron.router, prefix=f"{prefix}/cron")
    app.include_router(admin.router, prefix=f"{prefix}/admin")

    logger.debug("FastAPI application created")
    return app


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "snakepill.api.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.api_port,
        reload=settings.is_development,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    run()
