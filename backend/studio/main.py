"""FastAPI application entry point."""
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from studio.core.config import get_settings
from studio.core.logging import setup_logging

# Setup logging
logger = setup_logging("main")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialize services at startup, clean up at shutdown."""
    settings = get_settings()
    try:
        from studio.services.dispatcher import GenerationDispatcher
        from studio.services.genai_client import GenAIClient
        from studio.services.media import MediaStore
        from studio.services.presets import PresetCatalogs
        from studio.services.variations import VariationGenerator

        catalogs = PresetCatalogs.load(settings.presets_dir)
        media_store = MediaStore(settings.media_dir, delivery=settings.media_delivery)
        client = GenAIClient(settings, media_store)

        app.state.catalogs = catalogs
        app.state.dispatcher = GenerationDispatcher(
            client=client,
            catalogs=catalogs,
            variation_generator=VariationGenerator(client),
        )
        logger.info(
            "Services initialized successfully (%d image / %d video presets)",
            len(catalogs.image),
            len(catalogs.video),
        )
    except Exception as exc:
        logger.error(
            "Service initialization failed, running in degraded mode",
            exc_info=True,
            extra={"service": "main", "error_type": type(exc).__name__},
        )
        # Continue without services; endpoints return 503 until fixed

    yield


# Create FastAPI app
app = FastAPI(
    title="Trend Studio",
    description="Brand-aware image and video generation with streamed progress",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configuration
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=[f"http://localhost:{settings.frontend_port}"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
from studio.api.generate import router as generate_router  # noqa: E402
from fastapi.staticfiles import StaticFiles  # noqa: E402

app.include_router(generate_router)

# Serve generated media from the media directory at /media
_media_dir = Path(settings.media_dir)
_media_dir.mkdir(parents=True, exist_ok=True)
app.mount("/media", StaticFiles(directory=str(_media_dir)), name="media")


@app.get("/health")
async def health_check(request: Request) -> dict:
    """Health check endpoint.

    Always returns HTTP 200; check `services` for actual status.
    """
    dispatcher = getattr(request.app.state, "dispatcher", None)
    catalogs = getattr(request.app.state, "catalogs", None)

    logger.info("Health check requested")
    return {
        "status": "ok",
        "version": app.version,
        "services": {
            "generation": "ok" if dispatcher is not None else "unavailable",
            "presets": "ok" if catalogs is not None else "unavailable",
        },
    }
