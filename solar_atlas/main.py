"""
FastAPI application entry point.

This module initializes the FastAPI application, configures middleware,
and registers the API routers.
"""
import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from solar_atlas import __version__
from solar_atlas.api.routers import admin, imports
from solar_atlas.core.config import settings
from solar_atlas.core.logging_config import configure_logging

# Ensure logging is configured before the application starts serving requests.
configure_logging(settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the store tables on startup unless SKIP_DB_INIT=1."""
    if os.getenv("SKIP_DB_INIT") == "1":
        logger.info("SKIP_DB_INIT=1 detected; skipping database bootstrap during startup")
        yield
        return

    from solar_atlas.db.models import create_store_tables

    try:
        create_store_tables()
        logger.info("solar_installations, pir_installations and admin_sessions tables ready")
    except Exception:
        logger.exception("Failed to initialize database tables; the application cannot start")
        raise

    if not settings.admin_password_hash:
        logger.warning("ADMIN_PASSWORD_HASH is not set; privileged import endpoints are unreachable")

    yield


app = FastAPI(
    title="Solar Atlas API",
    version=__version__,
    description="CSV column mapping and batched import of solar permit and interconnection data",
    lifespan=lifespan,
)

allowed_origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
allowed_origins = [origin.strip() for origin in allowed_origins]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(imports.router)
app.include_router(admin.router)


@app.get("/")
async def root():
    """Root endpoint returning API information."""
    return {
        "message": "Solar Atlas API",
        "version": __version__,
    }


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "service": "solar-atlas-api",
    }
