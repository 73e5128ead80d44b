"""
FastAPI application for the PDF field extraction service.

Provides endpoints for:
- Single-document extraction against a caller-supplied config
- Managing extraction configs and their fields
- Queueing PDFs and running extraction passes over the queue
- Viewing results as a table and exporting them
"""

import logging

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from . import __version__
from .config import DEFAULT_CORS_ORIGINS, get_settings
from .models import HealthResponse
from .routers import configs, extraction, queue, results
from .services.ai import get_ai_service

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting PDF Field Extraction Service...")
    try:
        settings = get_settings()
    except ValidationError:
        logger.critical("Invalid configuration: OPENAI_API_KEY must be set")
        raise
    if settings.debug:
        logging.getLogger().setLevel(logging.DEBUG)
    get_ai_service()
    logger.info("Services initialized (model: %s)", settings.openai_model)
    yield
    logger.info("Shutting down PDF Field Extraction Service...")


def _cors_origins() -> list[str]:
    try:
        return get_settings().cors_origins
    except ValidationError:
        # Startup fails in the lifespan hook
        return list(DEFAULT_CORS_ORIGINS)


# Create FastAPI application
app = FastAPI(
    title="PDF Field Extraction API",
    description="Configurable field extraction from PDF documents using AI",
    version=__version__,
    lifespan=lifespan,
)

# Configure CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Health Endpoints
# =============================================================================


@app.get("/", response_model=HealthResponse)
async def root() -> HealthResponse:
    """Root endpoint - health check."""
    return HealthResponse(status="healthy", message="PDF Field Extraction API is running", version=__version__)


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy", message="Service is healthy", version=__version__)


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(extraction.router)
app.include_router(configs.router)
app.include_router(queue.router)
app.include_router(results.router)

