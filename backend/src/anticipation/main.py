"""
FastAPI application entry point.

This is the main application that ties together all components:
- API routes for anticipation requests
- Database lifecycle management
- CORS configuration for frontend access
- Error handling and logging
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from anticipation import __version__
from anticipation.api.routes import anticipations, health, maintenance
from anticipation.api.schemas import ApiResponse
from anticipation.config import get_settings
from anticipation.domain.exceptions import AnticipationError
from anticipation.infrastructure.database import close_db, init_db

# Configure logging
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger(__name__)

GENERIC_ERROR = "Internal server error."


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Creates the tables on startup and disposes the engine on shutdown.
    """
    settings = get_settings()

    logger.info(f"Starting Anticipation API v{__version__}")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"Cleanup endpoint enabled: {settings.cleanup_enabled}")

    await init_db()

    yield  # Application runs here

    logger.info("Shutting down Anticipation API")
    await close_db()


def _envelope(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ApiResponse.fail(error).model_dump(),
    )


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance ready to serve requests.
    """
    settings = get_settings()

    app = FastAPI(
        title="Anticipation API",
        description=(
            "Early payment requests for creators.\n\n"
            "Creators request an anticipation of a gross amount, a fixed "
            "fee is retained and operators approve or reject the request."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else settings.cors_origins,
        allow_credentials=not settings.debug,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers (maintenance only when cleanup is enabled)
    app.include_router(health.router)
    if settings.cleanup_enabled:
        app.include_router(maintenance.router, prefix="/api/v1")
    app.include_router(anticipations.router, prefix="/api/v1")

    @app.exception_handler(AnticipationError)
    async def domain_exception_handler(request: Request, exc: AnticipationError):
        """Business rule violations are the caller's to fix."""
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
        return _envelope(400, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
        else:
            message = "Invalid request."
        return _envelope(400, message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _envelope(exc.status_code, str(exc.detail))

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch-all exception handler for unhandled errors."""
        logger.exception(f"Unhandled error: {exc}")

        # Don't expose internal errors in production
        detail = f"{GENERIC_ERROR} {exc}" if settings.debug else GENERIC_ERROR
        return _envelope(500, detail)

    return app


# Create the application instance
app = create_app()


# Development server entry point
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "anticipation.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
