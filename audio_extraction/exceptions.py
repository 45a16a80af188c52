"""Custom exceptions for the audio extraction service."""

from __future__ import annotations


class AudioExtractionError(Exception):
    """Base exception for all audio extraction related errors."""


class ValidationError(AudioExtractionError):
    """Raised when a source URL is missing or not from a supported site."""


class ToolExecutionError(AudioExtractionError):
    """Raised when the external tool cannot be spawned or exits with an error."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class ToolTimeoutError(ToolExecutionError):
    """Raised when the external tool exceeds its execution timeout and is killed."""


class ArtifactNotFoundError(AudioExtractionError):
    """Raised when an expected output file is not present in the artifact store."""


class ParsingError(AudioExtractionError):
    """Raised when the external tool emits output that cannot be parsed."""


class FilesystemError(AudioExtractionError):
    """Raised for listing or cleanup failures in the artifact store."""
