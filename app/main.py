from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from audio_extraction import ExtractionService
from app.api.routes import ENDPOINTS, api_router
from app.core.config import Settings, get_settings
from app.core.logging_config import configure_logging
from app.dependencies import set_job_manager
from app.services.artifact_store import ArtifactStore
from app.services.job_manager import JobManager

logger = logging.getLogger(__name__)


def build_job_manager(settings: Settings) -> JobManager:
    extractor = ExtractionService(
        command=settings.ytdlp_command,
        audio_format=settings.audio_format,
        audio_quality=settings.audio_quality,
        conversion_timeout=settings.conversion_timeout,
        info_timeout=settings.info_timeout,
    )
    return JobManager(
        store=ArtifactStore(settings.downloads_dir),
        extractor=extractor,
        allowed_hosts=settings.allowed_hosts,
        cleanup_interval=settings.cleanup_interval,
        max_artifact_age=settings.max_artifact_age,
        post_download_delay=settings.post_download_delay,
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title=settings.app_name, version="1.0.0")
    job_manager = build_job_manager(settings)
    set_job_manager(app, job_manager)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def request_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse({"error": "Invalid request body"}, status_code=status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(Exception)
    async def server_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            {"error": f"Server error: {exc}"}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    @app.on_event("startup")
    async def on_startup() -> None:
        await job_manager.initialize()
        logger.info("%s ready, artifacts in %s", settings.app_name, settings.downloads_dir)
        for name, route in ENDPOINTS.items():
            logger.info("  %-24s %s", route, name)

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        logger.info("Stopping server...")
        await job_manager.shutdown()

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(api_router)

    # Mounted last so the API routes, including the status at /, take precedence
    if settings.static_dir.exists():
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")
    else:
        logger.debug("Static directory '%s' does not exist.", settings.static_dir)
    return app


app = create_app()
