"""
Main FastAPI application for the Image Studio API.
Serves health, generate-image, and metrics.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.logging import configure_logging
from app.api.routes import health, generate_image
from app.api.routes.generate_image import build_generation_service
from app.utils.metrics import router as metrics_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    if not settings.fal_key_configured:
        logger.error("FAL_KEY environment variable is not set; generate-image requests will fail")
    else:
        logger.info("startup", extra={"provider": settings.image_provider, "fal_key_configured": True})
    app.state.generation_service = build_generation_service()
    yield


app = FastAPI(
    title="Image Studio API",
    description="Text-to-image and image editing via fal.ai",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
origins = settings.cors_origins_list
if not origins:
    origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(health.router, tags=["health"])
app.include_router(generate_image.router)
app.include_router(metrics_router)
