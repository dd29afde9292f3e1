"""
FastAPI Application
===================

Main FastAPI application serving device bitmaps, mixup composites, recipe
previews and health information.
"""

from contextlib import asynccontextmanager
import uuid
from typing import AsyncGenerator, Any, Dict, Optional, Tuple, Type

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from ..config.settings import get_settings, Settings
from ..config.logging import get_logger
from ..config.database import initialize_databases, close_databases
from ..core.errors import (
    DitherInputInvalid,
    InkRecipesError,
    InvalidLayout,
    MixupNotFound,
    PersistenceUnavailable,
    RenderEngineFailure,
)
from ..core.rendering import close_browser_pool, initialize_browser_pool
from ..models.schemas import ErrorResponse
from ..recipes.data_sources import close_data_client
from .dependencies import Services, build_services
from .routes import bitmap_router, health_router, recipes_router

logger = get_logger(__name__)

ERROR_STATUS: Dict[Type[InkRecipesError], Tuple[int, str]] = {
    MixupNotFound: (404, "MIXUP_NOT_FOUND"),
    InvalidLayout: (400, "INVALID_LAYOUT"),
    DitherInputInvalid: (400, "INVALID_GRAYSCALE"),
    PersistenceUnavailable: (503, "PERSISTENCE_UNAVAILABLE"),
    RenderEngineFailure: (503, "RENDER_ENGINE_UNAVAILABLE"),
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    if getattr(app.state, "services", None) is not None:
        # Services were supplied by the caller, which owns their resources
        yield
        return

    settings: Settings = app.state.settings
    logger.info("Starting FastAPI application", environment=settings.environment)

    if settings.mixup_store == "redis":
        try:
            await initialize_databases()
            logger.info("Databases initialized")
        except Exception as e:
            logger.error("Failed to initialize databases, mixups unavailable", error=str(e))

    try:
        await initialize_browser_pool()
        logger.info("Browser pool initialized")
    except Exception as e:
        logger.error("Browser pool initialization failed", error=str(e))
        raise RuntimeError(f"Browser pool initialization failed: {e}")

    app.state.services = build_services(settings)

    try:
        yield
    finally:
        logger.info("Shutting down FastAPI application")

        try:
            await close_browser_pool()
            logger.info("Browser pool closed")
        except Exception as e:
            logger.error("Error closing browser pool", error=str(e))

        try:
            await close_data_client()
        except Exception as e:
            logger.error("Error closing data client", error=str(e))

        try:
            await close_databases()
            logger.info("Databases closed")
        except Exception as e:
            logger.error("Error closing databases", error=str(e))

        app.state.services = None


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


async def add_request_id(request: Request, call_next: Any) -> Any:
    """Add request ID to all requests."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """HTTP exception handler with structured error response."""
    error_response = ErrorResponse(
        error=str(exc.detail),
        error_code=str(exc.status_code),
        request_id=_request_id(request),
    )
    logger.warning(
        "HTTP exception",
        status_code=exc.status_code,
        detail=exc.detail,
        request_id=error_response.request_id,
    )
    return JSONResponse(status_code=exc.status_code, content=error_response.model_dump(mode="json"))


async def domain_exception_handler(request: Request, exc: InkRecipesError) -> JSONResponse:
    """Map pipeline errors that reach the API to status codes."""
    status_code, error_code = 500, "INTERNAL_ERROR"
    for error_type, mapping in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            status_code, error_code = mapping
            break

    error_response = ErrorResponse(
        error=str(exc),
        error_code=error_code,
        details={"type": type(exc).__name__},
        request_id=_request_id(request),
    )
    logger.error(
        "Request failed",
        error_code=error_code,
        error_message=str(exc),
        request_id=error_response.request_id,
    )
    return JSONResponse(status_code=status_code, content=error_response.model_dump(mode="json"))


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    """
    Application factory.

    Args:
        settings: Settings to use, defaults to the global settings
        services: Pre-built services; when given, startup does not open the
            browser pool or Redis

    Returns:
        FastAPI application instance
    """
    settings = settings or get_settings()
    application = FastAPI(
        title=settings.app_name,
        description="Render recipes and mixups to dithered bitmaps for e-ink displays",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.enable_docs else None,
        redoc_url="/redoc" if settings.enable_docs else None,
    )
    application.state.settings = settings
    application.state.services = services

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_hosts,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    application.add_middleware(GZipMiddleware, minimum_size=1000)
    application.middleware("http")(add_request_id)

    application.add_exception_handler(HTTPException, http_exception_handler)
    application.add_exception_handler(InkRecipesError, domain_exception_handler)

    application.include_router(health_router)
    application.include_router(bitmap_router)
    application.include_router(recipes_router)

    @application.get("/", tags=["General"])
    async def root() -> Dict[str, Any]:
        """Root endpoint with basic API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs_url": "/docs" if settings.enable_docs else None,
            "health_check": "/health",
            "endpoints": {
                "bitmap": "GET /api/bitmap/{slug}",
                "mixup_bitmap": "GET /api/bitmap/mixup/{mixup_id}",
                "recipes": "GET /api/recipes",
                "recipe_preview": "GET /api/recipes/{slug}/render",
            },
        }

    return application


app = create_app()


def run_development_server() -> None:
    """Run development server with auto-reload."""
    settings = get_settings()
    uvicorn.run(
        "inkrecipes.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    run_development_server()
