"""ASGI entry point: ``uvicorn gtm_workspace.main:app``."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gtm_workspace.api.v1 import router as api_v1_router
from gtm_workspace.core.config import get_settings
from gtm_workspace.core.database import db_manager
from gtm_workspace.core.errors import register_exception_handlers
from gtm_workspace.core.logging import get_logger, setup_logging
from gtm_workspace.core.middleware import REQUEST_ID_HEADER, RequestLoggingMiddleware
from gtm_workspace.integrations.claude import close_claude, get_claude, init_claude

setup_logging()
logger = get_logger(__name__)

health_router = APIRouter(prefix="/health", tags=["Health"])


@health_router.get("")
async def health_check() -> dict[str, str]:
    return {"status": "ok"}


@health_router.get("/db")
async def database_health() -> dict[str, str | bool]:
    reachable = await db_manager.check_connection()
    return {"status": "ok" if reachable else "error", "database": reachable}


@health_router.get("/integrations")
async def integrations_health() -> dict[str, Any]:
    """Generation provider status; ``available`` is False without an API key."""
    claude = await get_claude()
    return {
        "claude": {
            "api_key_set": bool(get_settings().anthropic_api_key),
            "available": claude.available,
            "model": claude.model,
            "circuit_breaker": claude.circuit_breaker.state.value,
        },
    }


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    logger.info(
        f"Starting {settings.app_name} {settings.app_version}",
        extra={"environment": settings.environment},
    )
    db_manager.init_db()
    claude = await init_claude()
    if not claude.available:
        logger.warning(
            "ANTHROPIC_API_KEY not set; AI endpoints will return submitted values unchanged"
        )
    try:
        yield
    finally:
        await close_claude()
        await db_manager.close()
        logger.info("Shutdown complete")


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url] if settings.frontend_url else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    # Added last: wraps CORS and the exception handlers
    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(api_v1_router, prefix="/api/v1")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "gtm_workspace.main:app", host=settings.host, port=settings.port, reload=settings.debug
    )
