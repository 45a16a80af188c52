from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class UrlRequest(BaseModel):
    url: Optional[str] = None


class ServiceStatusResponse(BaseModel):
    message: str
    status: str
    endpoints: Dict[str, str]


class ConvertResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    download_url: str = Field(alias="downloadUrl")
    filename: str


class InfoResponse(BaseModel):
    title: Optional[str] = None
    duration: Optional[float] = None
    uploader: Optional[str] = None
    thumbnail: Optional[str] = None


class FileEntry(BaseModel):
    name: str
    size: int
    created: datetime


class FilesResponse(BaseModel):
    files: List[FileEntry]


class ErrorResponse(BaseModel):
    error: str
