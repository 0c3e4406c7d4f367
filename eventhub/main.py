"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles

from eventhub.api import auth, events
from eventhub.api.errors import register_error_handlers
from eventhub.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.is_development else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    if settings.media_backend == "local":
        Path(settings.media_root).mkdir(parents=True, exist_ok=True)
    logger.info(f"EventHub API starting ({settings.environment}, media: {settings.media_backend})")
    yield


app = FastAPI(
    title="EventHub API",
    description="Event listings with owner-only editing and image uploads",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

register_error_handlers(app)

# Register routers
app.include_router(auth.router)
app.include_router(events.router)

# Locally hosted images
if settings.media_backend == "local":
    app.mount(
        settings.media_url_prefix,
        StaticFiles(directory=settings.media_root, check_dir=False),
        name="uploads",
    )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}


@app.get("/ping", response_class=PlainTextResponse)
async def ping():
    """Liveness probe kept for older clients."""
    return "PONG"
