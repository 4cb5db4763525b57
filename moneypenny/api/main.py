"""
FastAPI Application — Pinecone Assistant Proxy

Forwards assistant actions to the Pinecone Assistant API with API-key
injection, host discovery/caching, 429 retry and error normalization.

CORS: Configured via ALLOWED_ORIGINS.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from moneypenny.config import settings
from .cors import DefaultOriginCORSMiddleware
from .routes import router


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info(f"🚀 Starting {settings.PROJECT_NAME}")
    logger.info(f"📍 Running in {settings.ENVIRONMENT} mode")
    logger.info(f"🔗 Control plane: {settings.PINECONE_CONTROL_PLANE_URL} (API {settings.PINECONE_API_VERSION})")
    if not settings.PINECONE_API_KEY:
        logger.warning("⚠️ PINECONE_API_KEY is not set; upstream calls will be rejected")
    yield
    # Shutdown
    logger.info(f"👋 Shutting down {settings.PROJECT_NAME}")


# Application metadata
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Serverless proxy for the Pinecone Assistant API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


# CORS Configuration — loaded from settings; first origin is the default
app.add_middleware(
    DefaultOriginCORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


# Include API routes
app.include_router(router)


@app.get("/", include_in_schema=False)
async def root():
    """Root endpoint — service banner."""
    return {
        "message": settings.PROJECT_NAME,
        "endpoint": "/api/pinecone-assistant",
        "docs": "/docs",
    }


@app.get("/ping", tags=["Health"])
async def ping():
    """Lightweight heartbeat — no upstream calls."""
    return {"status": "ok"}
