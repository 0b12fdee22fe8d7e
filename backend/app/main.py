"""
Main FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.env_validation import validate_environment, validate_or_exit
from app.core.exceptions import ContentPilotError
from app.core.logging import get_logger, setup_logging
from app.db.session import check_db_health, check_vector_extension, close_db, init_db
from app.services.embedder import shutdown_embedding_service
from app.services.generation import shutdown_generation_client

# Setup logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan events.
    Handles startup and shutdown tasks.
    """
    # Startup
    logger.info(
        "starting_application",
        app_name=settings.APP_NAME,
        environment=settings.APP_ENV,
        version=settings.VERSION,
    )

    if settings.is_production:
        validate_or_exit()
    else:
        is_valid, errors = validate_environment()
        if not is_valid:
            logger.warning("environment_incomplete", errors=errors)

    # Initialize database connection pool
    await init_db()

    yield

    # Shutdown
    logger.info("shutting_down_application")

    await shutdown_generation_client()
    await shutdown_embedding_service()
    await close_db()


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="Marketing content generation with retrieval-augmented style references",
    version=settings.VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)


# Health check endpoint
@app.get("/health", tags=["health"])
async def health_check() -> JSONResponse:
    """
    Health check endpoint for monitoring.
    Includes database, pgvector and provider configuration checks.
    """
    db_healthy = await check_db_health()
    vector_ready = await check_vector_extension() if db_healthy else False

    generation_key = (
        settings.ANTHROPIC_API_KEY
        if settings.GENERATION_PROVIDER == "anthropic"
        else settings.OPENAI_API_KEY
    )
    embedding_ready = settings.EMBEDDING_PROVIDER == "local" or bool(settings.OPENAI_API_KEY)

    return JSONResponse(
        status_code=200 if db_healthy else 503,
        content={
            "status": "healthy" if db_healthy else "unhealthy",
            "app_name": settings.APP_NAME,
            "environment": settings.APP_ENV,
            "version": settings.VERSION,
            "database": "connected" if db_healthy else "disconnected",
            "vector_extension": "installed" if vector_ready else "missing",
            "providers": {
                "generation": {
                    "provider": settings.GENERATION_PROVIDER,
                    "configured": bool(generation_key),
                },
                "embedding": {
                    "provider": settings.EMBEDDING_PROVIDER,
                    "configured": embedding_ready,
                },
            },
        }
    )


@app.get("/", tags=["root"])
async def root() -> JSONResponse:
    """
    Root endpoint.
    """
    return JSONResponse(
        content={
            "message": f"Welcome to {settings.APP_NAME} API",
            "version": settings.VERSION,
            "docs": "/docs" if settings.DEBUG else "Documentation disabled in production",
        }
    )


# Include API routers
from app.api import api_router
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


# ========================================
# Exception Handlers
# ========================================

@app.exception_handler(ContentPilotError)
async def content_pilot_exception_handler(request: Request, exc: ContentPilotError) -> JSONResponse:
    """
    Map domain errors onto their HTTP status and the error envelope.
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "request_failed",
        error=exc.message,
        error_type=type(exc).__name__,
        status_code=exc.status_code,
        path=request.url.path,
        method=request.method,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Request-shape errors (missing fields, wrong types) as a 422 envelope.
    """
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))

    return JSONResponse(
        status_code=422,
        content={"success": False, "error": "; ".join(messages) or "Invalid request"},
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler for unhandled errors.
    """
    logger.error(
        "unhandled_exception",
        error=str(exc),
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "An unexpected error occurred. Please try again later.",
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
