"""Switchboard - Provider Gateway & Chat Dispatch
Main FastAPI application

Local single-operator hub: provider configuration, model catalog refresh and
chat dispatch to either the sandboxed agent runtime or an OpenAI-compatible
endpoint.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
from fastapi import FastAPI

from switchboard.api import router as api_router
from switchboard.api.errors import register_error_handlers
from switchboard.config import Settings, get_settings
from switchboard.middleware.logging import request_logging_middleware
from switchboard.services.agent_bridge import check_container_runtime
from switchboard.services.container import Services, create_services
from switchboard.utils.logging import setup_logging

logger = structlog.get_logger()


async def start_services(settings: Settings) -> Services:
    """Build services, seed presets and probe the container runtime"""
    services = await create_services(settings)
    await services.admin.ensure_presets()

    ready, error = await check_container_runtime(settings.container_runtime)
    services.runtime.ready = ready
    services.runtime.error = error
    if not ready:
        logger.error("Container runtime is not ready", error=error)
    return services


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    """Build the application

    When ``services`` is given the caller owns their lifecycle; otherwise
    they are created on startup and closed on shutdown.
    """
    settings = settings or (services.settings if services else get_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        owned = services is None
        if owned:
            logger.info("Starting Switchboard", version=settings.app_version,
                        host=settings.api_host, port=settings.api_port)
            try:
                app.state.services = await start_services(settings)
            except Exception as e:
                logger.error("Failed to initialize Switchboard", error=str(e),
                             error_type=type(e).__name__)
                raise
            logger.info("Switchboard startup complete",
                        runtime_ready=app.state.services.runtime.ready)

        yield

        if owned:
            logger.info("Shutting down Switchboard...")
            await app.state.services.close()
            logger.info("Switchboard shutdown complete")

    app = FastAPI(
        title=settings.app_name,
        description="Provider gateway and chat dispatch hub",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    if services is not None:
        app.state.services = services

    app.middleware("http")(request_logging_middleware)
    register_error_handlers(app)
    app.include_router(api_router, prefix="/api")

    @app.get("/health", tags=["status"])
    async def health():
        return {"status": "healthy", "service": settings.app_name, "version": settings.app_version}

    return app


def run() -> None:
    """Run the server with uvicorn; SIGINT/SIGTERM drain in-flight requests"""
    import uvicorn

    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    uvicorn.run(
        create_app(settings),
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,
    )


if __name__ == "__main__":
    run()
