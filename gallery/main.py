"""Main FastAPI application for the video gallery."""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import DBAPIError
from prometheus_client import make_asgi_app
from gallery import __version__
from gallery.config import IntroConfig, settings
from gallery.db import AsyncSessionLocal, init_db, close_db
from gallery.errors import GalleryError, SchemaDriftError, remediation_for
from gallery.logging_config import logger, redact_validation_errors
from gallery.rate_limit import limiter
from gallery.video.schema import CatalogSchema
# Import routers
from gallery.auth.routes import router as auth_router
from gallery.intro.routes import router as intro_router
from gallery.video.routes import router as video_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting video gallery API", version=__version__)
    app.state.intro_config = IntroConfig.from_settings(settings)
    await init_db()
    async with AsyncSessionLocal() as session:
        try:
            await CatalogSchema.columns(session)
        except SchemaDriftError as e:
            # Not fatal: requests retry detection and report the drift
            CatalogSchema.reset()
            logger.error("Catalog schema check failed", error=e.message, details=e.details)
    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down video gallery API")
    await close_db()
    logger.info("Application shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Video Gallery API",
    description="Video catalog with blob storage sync and admin visibility control",
    version=__version__,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# Add rate limiter to app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_body(message: str, detail=None, exc: Exception = None) -> dict:
    body = {"error": message, "detail": detail}
    hint = remediation_for(exc) if exc is not None else None
    if hint:
        body["hint"] = hint
    return body


# Exception handlers
@app.exception_handler(GalleryError)
async def gallery_exception_handler(request: Request, exc: GalleryError):
    """Map the gallery error taxonomy onto HTTP responses."""
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "Request failed",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=exc.message,
        details=exc.details,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, exc.details, exc),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors."""
    logger.warning(
        "Validation error",
        path=request.url.path,
        errors=redact_validation_errors(exc.errors()),
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.errors()},
    )


@app.exception_handler(DBAPIError)
async def database_exception_handler(request: Request, exc: DBAPIError):
    """Database errors, with remediation text for permission problems."""
    detail = str(exc.orig) if exc.orig is not None else str(exc)
    logger.error(
        "Database error",
        path=request.url.path,
        error=detail,
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Database error", detail, exc),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions."""
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        error=str(exc),
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Internal server error", str(exc)),
    )


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint for container orchestration."""
    columns = CatalogSchema.cached()
    return {
        "status": "healthy",
        "version": __version__,
        "catalog_columns": sorted(columns) if columns is not None else None,
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Video Gallery API",
        "version": __version__,
        "docs": "/docs" if settings.debug else None,
    }


# Mount Prometheus metrics endpoint
if settings.enable_prometheus:
    metrics_app = make_asgi_app()
    app.mount("/metrics", metrics_app)


# Include routers
app.include_router(auth_router, prefix="/admin", tags=["Admin"])
app.include_router(video_router, prefix="/videos", tags=["Videos"])
app.include_router(intro_router, prefix="/intro-video", tags=["Intro"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "gallery.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )
