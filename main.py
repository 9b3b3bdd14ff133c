import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from dal.record_store import FlatFileRecordStore
from routes.image_route import router as image_router
from utils.logging_config import setup_logging
from utils.orphan_cleaner import OrphanCleaner
from utils.settings import GallerySettings

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present

LOGGER = logging.getLogger(__name__)


def create_app(settings: Optional[GallerySettings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    Args:
        settings: Explicit settings (tests pass a temporary images directory);
            read from the environment when omitted.
    """
    settings = settings or GallerySettings.from_env()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Attach the settings and the flat-file record store to `app.state`,
        optionally sweeping binaries left behind by failed uploads.
        """
        app.state.settings = settings
        app.state.record_store = FlatFileRecordStore(settings.images_dir, settings.url_prefix)

        if settings.sweep_on_startup:
            removed = await OrphanCleaner(settings.images_dir).prune_orphans()
            LOGGER.info("Startup sweep removed %d orphaned files", len(removed))

        LOGGER.info("Serving gallery from %s", settings.images_dir)
        yield

    app = FastAPI(lifespan=lifespan)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        """Render every HTTP error, including 404/405 from routing, as `{"error": ...}`."""
        if exc.status_code >= 500:
            LOGGER.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Malformed bodies are client errors, reported like a missing title."""
        return JSONResponse({"error": "Invalid request body"}, status_code=400)

    # Serve the stored binaries at the web paths written into metadata documents.
    app.mount(settings.url_prefix, StaticFiles(directory=settings.images_dir), name="images")

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that reports whether the record store is configured.
        """
        has_store = getattr(request.app.state, "record_store", None) is not None
        return {"ok": True, "store_initialized": has_store, "images_dir": str(settings.images_dir)}

    # Register application routers
    app.include_router(image_router)

    return app


app = create_app()
