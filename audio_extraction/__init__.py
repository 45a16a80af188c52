"""Public API for the audio extraction package."""

from .exceptions import (
    ArtifactNotFoundError,
    AudioExtractionError,
    FilesystemError,
    ParsingError,
    ToolExecutionError,
    ToolTimeoutError,
    ValidationError,
)
from .service import ConversionJob, ExtractionService, MediaInfo, ToolResult
from . import utils

__all__ = [
    "ArtifactNotFoundError",
    "AudioExtractionError",
    "ConversionJob",
    "ExtractionService",
    "FilesystemError",
    "MediaInfo",
    "ParsingError",
    "ToolExecutionError",
    "ToolResult",
    "ToolTimeoutError",
    "ValidationError",
    "utils",
]
