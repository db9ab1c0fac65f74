from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from app.core.config import settings
from app.core.exceptions import PreviewGuardError, error_response
from app.core.logging_config import logger
from app.core.middleware import (
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    RequestSizeLimitMiddleware,
)
from app.api.v1.router import api_router
from app.modules.sandbox import sandbox_manager


async def validate_config():
    """Log configuration problems at startup; monitoring works without an API key"""
    warnings = []

    if not settings.ANTHROPIC_API_KEY:
        warnings.append("ANTHROPIC_API_KEY is not set - auto-fix will NOT work")

    if settings.RUNTIME_PAGE_LOAD_WAIT_MS >= settings.RUNTIME_MONITOR_TIMEOUT_MS:
        warnings.append(
            f"RUNTIME_PAGE_LOAD_WAIT_MS ({settings.RUNTIME_PAGE_LOAD_WAIT_MS}) "
            f">= RUNTIME_MONITOR_TIMEOUT_MS ({settings.RUNTIME_MONITOR_TIMEOUT_MS})"
        )

    for warn in warnings:
        logger.warning(f"[Startup] WARNING: {warn}")

    logger.info(
        f"[Startup] Browser mode: {'serverless' if settings.use_serverless_browser else 'local'}"
    )
    return not warnings


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME}...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"API Version: {settings.API_VERSION}")
    logger.info("=" * 60)

    await validate_config()

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")
    sandbox_manager.clear()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Runtime error monitoring and AI auto-fix for sandboxed app previews",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    redirect_slashes=False
)

# Add middleware (order matters - last added runs first)
# 1. Request logging (runs first for all requests)
app.add_middleware(RequestLoggingMiddleware)

# 2. Security headers
app.add_middleware(SecurityHeadersMiddleware)

# 3. Request size limit (10MB default)
app.add_middleware(RequestSizeLimitMiddleware, max_size=10 * 1024 * 1024)

# 4. CORS - Origins from CORS_ORIGINS_STR in .env
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)


# Exception handlers
@app.exception_handler(PreviewGuardError)
async def previewguard_exception_handler(request: Request, exc: PreviewGuardError):
    logger.warning(f"{exc.code}: {exc.message}")
    if exc.code.endswith("NOT_FOUND"):
        status_code = 404
    elif exc.code in ("VALIDATION_ERROR", "FORBIDDEN_PATH"):
        status_code = 400
    else:
        status_code = 500
    return JSONResponse(status_code=status_code, content=error_response(exc))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "message": str(exc) if settings.DEBUG else "An error occurred"
        }
    )


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "app_name": settings.APP_NAME,
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT
    }


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """Root endpoint"""
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }


# Include API router
app.include_router(api_router, prefix=f"/api/{settings.API_VERSION}")


def run():
    """Console entry point: serve the API with uvicorn"""
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.DEBUG
    )


if __name__ == "__main__":
    run()
