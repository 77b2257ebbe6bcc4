"""
Docshelf - Main Application
Documentation authoring and publishing backend
"""

import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from app.core.config import settings
from app.core.logging import logger, log_request, log_response
from app.api.v1 import api_v1_router
from app.db import create_supabase_client, create_supabase_admin_client
from app.services.storage_service import build_storage_backend, create_upload_relays


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    app.state.supabase = create_supabase_client(settings)
    app.state.supabase_admin = create_supabase_admin_client(settings)

    backend = build_storage_backend(settings, app.state.supabase_admin)
    if backend is None:
        logger.warning("No storage backend configured, uploads will fail with SERVER_MISCONFIGURED")
    app.state.storage_backend = backend
    app.state.upload_relays = create_upload_relays(settings, backend)

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}")


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Block-based documentation authoring and publishing",
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every HTTP request and its outcome"""
    start = time.perf_counter()
    log_request(request.method, request.url.path)
    response = await call_next(request)
    duration_ms = round((time.perf_counter() - start) * 1000, 2)
    log_response(request.method, request.url.path, response.status_code, duration_ms)
    return response


# Include API v1 router
app.include_router(api_v1_router)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "environment": settings.ENVIRONMENT
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "storage": app.state.storage_backend.name if getattr(app.state, "storage_backend", None) else None
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
