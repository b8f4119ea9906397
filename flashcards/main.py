"""FastAPI entry point for the flashcards service."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from flashcards.api import api_router, router
from flashcards.core.config import settings
from flashcards.core.database import async_session_maker, engine
from flashcards.models.base import Base
from flashcards.services.auth import ensure_bootstrap_admin
from flashcards.services.dictionary import AUDIO_SUBDIR

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


def audio_dir() -> Path:
    return Path(settings.static_dir) / AUDIO_SUBDIR


class AudioFiles(StaticFiles):
    """Serves downloaded pronunciations from the currently configured static dir."""

    def __init__(self):
        super().__init__(directory=audio_dir(), check_dir=False)

    async def check_config(self) -> None:
        # The directory appears with the first download; until then every file is a 404.
        self.directory = audio_dir()
        if self.directory.is_dir():
            await super().check_config()

    def lookup_path(self, path: str):
        self.all_directories = [audio_dir()]
        return super().lookup_path(path)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create database tables and the bootstrap admin on startup."""
    # Import models to register them with Base
    from flashcards import models  # noqa: F401

    logger.info("Starting %s v%s", settings.app_name, settings.version)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_maker() as db:
        await ensure_bootstrap_admin(db)

    audio_dir().mkdir(parents=True, exist_ok=True)
    logger.info("Database initialized")
    yield
    await engine.dispose()
    logger.info("Shutting down")


app = FastAPI(
    lifespan=lifespan,
    title=settings.app_name,
    description="Vocabulary flashcards with wordbooks, mistake review and dictionary lookups",
    version=settings.version,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected failures and answer with a generic message."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# Include API routes
app.include_router(router)
app.include_router(api_router)

# Downloaded pronunciations, referenced as /audio/<word>.mp3
app.mount("/audio", AudioFiles(), name="audio")


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": settings.app_name,
        "version": settings.version,
        "docs": "/docs",
        "health": "/health",
    }
