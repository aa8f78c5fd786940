"""FastAPI application for the vision relay"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from .routes import analyze
from .shared.config import Settings, get_settings
from .shared.constants import MODES, MP3_ROUTE, SERVICE_NAME, SERVICE_VERSION
from .shared.errors import RelayError
from .shared.prompts import load_templates
from .shared.schemas import HealthResponse

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Fail at startup on a bad PROMPTS_FILE rather than on the first request
    settings = app.state.settings
    templates = load_templates(settings.prompts_file)
    app.state.templates = templates
    logger.info(
        f"{SERVICE_NAME} ready: model={settings.gemini_model}, "
        f"variant={settings.deployment_variant}, prompts={templates.version}"
    )
    yield


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(
        title=SERVICE_NAME,
        description="Answers exercises shown in images with Gemini, optionally transcribing and speaking",
        version=SERVICE_VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(analyze.router, tags=["analyze"])
    if settings.audio_enabled:
        app.include_router(analyze.audio_router, tags=["analyze"])

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError):
        logger.error(f"{exc.code}: {exc.message}")
        if request.url.path == MP3_ROUTE:
            return PlainTextResponse(exc.message, status_code=500)
        return JSONResponse(status_code=500, content={"error": exc.message, "success": False})

    @app.get("/")
    async def root():
        """Service banner"""
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
        }

    @app.get("/health", response_model=HealthResponse, response_model_exclude_none=True)
    async def health():
        """Health check endpoint"""
        return HealthResponse(
            status="ok",
            model=settings.gemini_model,
            modes=MODES,
            tts=None if settings.audio_enabled else "browser",
        )

    return app


app = create_app()
