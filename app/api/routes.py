from __future__ import annotations

import logging
import mimetypes
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from fastapi.responses import FileResponse
from starlette.background import BackgroundTask

from audio_extraction import ArtifactNotFoundError, ParsingError, ToolExecutionError, ValidationError
from app.dependencies import get_job_manager
from app.schemas import (
    ConvertResponse,
    ErrorResponse,
    FileEntry,
    FilesResponse,
    InfoResponse,
    ServiceStatusResponse,
    UrlRequest,
)
from app.services.job_manager import JobManager

logger = logging.getLogger(__name__)

api_router = APIRouter(tags=["conversion"])

ENDPOINTS = {
    "convert": "POST /convert",
    "download": "GET /download/:filename",
    "info": "POST /info",
    "files": "GET /files",
}

_error_responses = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


@api_router.get("/", response_model=ServiceStatusResponse, name="service_status")
async def service_status(request: Request) -> ServiceStatusResponse:
    return ServiceStatusResponse(
        message=f"{request.app.title} is running!",
        status="active",
        endpoints=ENDPOINTS,
    )


@api_router.post("/convert", response_model=ConvertResponse, responses=_error_responses, name="convert")
async def convert(
    request: Request,
    payload: Optional[UrlRequest] = Body(None),
    job_manager: JobManager = Depends(get_job_manager),
) -> ConvertResponse:
    url = payload.url if payload else None
    try:
        artifact = await job_manager.convert(url)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except ToolExecutionError as exc:
        logger.error("Conversion error for %s: %s", url, exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Conversion error: {exc}")
    except ArtifactNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"{job_manager.extractor.audio_format.upper()} file not found",
        )

    download_url = request.app.url_path_for("download_file", filename=artifact.name)
    return ConvertResponse(success=True, download_url=str(download_url), filename=artifact.name)


@api_router.get(
    "/download/{filename}",
    response_class=FileResponse,
    responses={status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}},
    name="download_file",
)
async def download_file(filename: str, job_manager: JobManager = Depends(get_job_manager)) -> FileResponse:
    logger.info("Download request for: %s", filename)
    try:
        path = job_manager.resolve_artifact(filename)
        # The sweep or a post-download timer may remove the file at any point
        stat_result = path.stat()
    except (ArtifactNotFoundError, FileNotFoundError):
        logger.warning("File does not exist: %s", filename)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File does not exist")

    media_type, _ = mimetypes.guess_type(path.name)
    return FileResponse(
        path,
        media_type=media_type or "application/octet-stream",
        filename=path.name,
        stat_result=stat_result,
        background=BackgroundTask(job_manager.schedule_deletion, path.name),
    )


@api_router.post("/info", response_model=InfoResponse, responses=_error_responses, name="media_info")
async def media_info(
    payload: Optional[UrlRequest] = Body(None),
    job_manager: JobManager = Depends(get_job_manager),
) -> InfoResponse:
    url = payload.url if payload else None
    try:
        info = await job_manager.fetch_info(url)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except ToolExecutionError as exc:
        logger.error("Info retrieval error for %s: %s", url, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not retrieve information"
        )
    except ParsingError as exc:
        logger.error("JSON parsing error for %s: %s", url, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Information processing error"
        )

    return InfoResponse(**info.to_dict())


@api_router.get("/files", response_model=FilesResponse, name="list_files")
async def list_files(job_manager: JobManager = Depends(get_job_manager)) -> FilesResponse:
    artifacts = await job_manager.list_artifacts()
    return FilesResponse(
        files=[FileEntry(name=item.name, size=item.size, created=item.created_at) for item in artifacts]
    )
