"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from formcoach import __version__
from formcoach.config import get_settings
from formcoach.api import api_router

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(f"Starting {settings.app_name}")
    yield
    logger.info(f"Shutting down {settings.app_name}")


app = FastAPI(
    title=settings.app_name,
    description="""
    Cycling & Running Form Analysis API

    Upload a short side-view video and get biomechanical feedback computed from
    MoveNet pose estimates on evenly spaced frames.

    ## Key Features

    - **Sport Detection**: Cycling vs running from keypoint geometry
    - **Bike Fit**: Knee, hip, back and elbow angles with saddle/handlebar advice
    - **Running Form**: Body lean, knee lift, hip extension, arm swing, foot strike
    - **Statistics**: Per-angle consistency and left/right asymmetry
    - **Prioritized Feedback**: Severity, impact and corrective drills

    Every analysis is stateless: uploads are deleted once analyzed.
    """,
    version=__version__,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": __version__
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": settings.app_name,
        "docs": "/docs",
        "health": "/health"
    }
