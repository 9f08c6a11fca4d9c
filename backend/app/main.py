"""
FastAPI application for video concept publishing.

Provides HTTP API for publishing and browsing video concepts with
WebSocket progress updates.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import concept_routes, routes, websocket
from app.config import get_settings
from app.logging_config import setup_logging
from app.services.stores import StoreError, create_object_store, create_record_store

# Configure logging before anything else
settings = get_settings()
setup_logging(settings)
logger = logging.getLogger(__name__)


async def check_services() -> dict:
    """Check storage collaborators availability."""
    settings = get_settings()
    object_store = create_object_store(settings)
    record_store = create_record_store(settings)
    try:
        return {
            "object_store": await object_store.check_health(),
            "record_store": await record_store.check_health(),
        }
    finally:
        await object_store.close()
        await record_store.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Logs startup info and checks storage availability.
    """
    logger.info("Starting Video Concept API")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Storage backend: {settings.storage_backend}")
    logger.info(f"SFX failure policy: {settings.sfx_failure_policy}")

    status = await check_services()
    logger.info(
        f"Storage - objects: {status['object_store']}, records: {status['record_store']}"
    )

    yield

    logger.info("Shutting down Video Concept API")


app = FastAPI(
    title="Video Concept API",
    description="API for publishing video concepts with sound-effect assets",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(routes.router)
app.include_router(concept_routes.router)
app.include_router(websocket.router)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    """Report record store failures on read endpoints as 502."""
    logger.error(f"Record store error on {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"detail": "Record store unavailable"})


@app.get("/health")
async def health_check() -> dict:
    """
    Health check endpoint.

    Returns:
        Basic health status
    """
    return {"status": "ok"}


@app.get("/health/services")
async def services_health() -> dict:
    """
    Check storage services availability.

    Returns:
        Status of object and record stores
    """
    settings = get_settings()
    status = await check_services()
    return {
        **status,
        "storage_backend": settings.storage_backend,
        "object_store_url": settings.object_store_url,
        "record_store_url": settings.record_store_url,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8801,
        reload=True,
    )
