"""Audio extraction service wrapping the yt-dlp command line tool."""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import suppress
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Sequence

from .exceptions import ParsingError, ToolExecutionError, ToolTimeoutError
from .utils import new_job_id, normalize_extension

logger = logging.getLogger(__name__)

DEFAULT_COMMAND = ("yt-dlp",)


@dataclass(slots=True)
class ConversionJob:
    """A single conversion request and the output file it is expected to produce."""

    job_id: str
    url: str
    output_dir: Path
    extension: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    process: Optional[asyncio.subprocess.Process] = field(default=None, repr=False, compare=False)

    @property
    def output_template(self) -> Path:
        # yt-dlp substitutes %(ext)s with the final container extension
        return self.output_dir / f"{self.job_id}.%(ext)s"

    @property
    def expected_path(self) -> Path:
        return self.output_dir / f"{self.job_id}{self.extension}"


@dataclass(slots=True)
class MediaInfo:
    """Metadata reported by the extraction tool for a source URL."""

    title: str | None = None
    duration: float | None = None
    uploader: str | None = None
    thumbnail: str | None = None

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "duration": self.duration,
            "uploader": self.uploader,
            "thumbnail": self.thumbnail,
        }

    @classmethod
    def from_tool_output(cls, raw: str) -> "MediaInfo":
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise ParsingError(f"Tool output is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ParsingError("Tool output is not a JSON object")
        return cls(
            title=data.get("title"),
            duration=data.get("duration"),
            uploader=data.get("uploader"),
            thumbnail=data.get("thumbnail"),
        )


@dataclass(slots=True)
class ToolResult:
    returncode: int
    stdout: str
    stderr: str


class ExtractionService:
    """Runs the external extraction tool as a child process.

    Arguments are always passed as an argument vector, never through a shell,
    and every invocation is bounded by a timeout after which the child process
    is killed.
    """

    def __init__(
        self,
        command: Sequence[str] = DEFAULT_COMMAND,
        audio_format: str = "mp3",
        audio_quality: str = "0",
        conversion_timeout: float = 900,
        info_timeout: float = 60,
    ) -> None:
        if not command:
            raise ValueError("An extraction command is required")
        self.command = list(command)
        self.audio_format = audio_format
        self.audio_quality = audio_quality
        self.conversion_timeout = conversion_timeout
        self.info_timeout = info_timeout

    @property
    def extension(self) -> str:
        return normalize_extension(self.audio_format)

    def new_job(self, url: str, output_dir: str | Path) -> ConversionJob:
        return ConversionJob(
            job_id=new_job_id(),
            url=url,
            output_dir=Path(output_dir),
            extension=self.extension,
        )

    def build_extract_args(self, job: ConversionJob) -> list[str]:
        return [
            *self.command,
            "-x",
            "--audio-format",
            self.audio_format,
            "--audio-quality",
            self.audio_quality,
            "--no-playlist",
            "-o",
            str(job.output_template),
            "--",
            job.url,
        ]

    def build_info_args(self, url: str) -> list[str]:
        return [*self.command, "-j", "--no-playlist", "--", url]

    async def extract_audio(self, job: ConversionJob) -> ToolResult:
        """Run the conversion for ``job`` and wait for the tool to exit.

        Raises
        ------
        ToolExecutionError
            If the tool cannot be started or exits with a nonzero status.
        ToolTimeoutError
            If the tool runs longer than ``conversion_timeout``.
        """

        logger.info("Starting conversion job=%s url=%s", job.job_id, job.url)
        result = await self._run(
            self.build_extract_args(job),
            self.conversion_timeout,
            on_spawn=lambda process: setattr(job, "process", process),
        )
        if result.stdout:
            logger.debug("Tool output job=%s: %s", job.job_id, result.stdout)
        return result

    async def fetch_info(self, url: str) -> MediaInfo:
        """Query the tool for metadata of ``url`` without producing a file."""

        logger.info("Retrieving information for url=%s", url)
        result = await self._run(self.build_info_args(url), self.info_timeout)
        return MediaInfo.from_tool_output(result.stdout)

    async def terminate(self, job: ConversionJob) -> None:
        """Kill and reap the child process of a running ``job``, if any."""
        if job.process is not None and job.process.returncode is None:
            logger.warning("Killing conversion job=%s", job.job_id)
            await self._kill(job.process)

    async def _run(
        self,
        args: Sequence[str],
        timeout: float,
        on_spawn: Optional[Callable[[asyncio.subprocess.Process], None]] = None,
    ) -> ToolResult:
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ToolExecutionError(f"Could not start {args[0]}: {exc}") from exc
        if on_spawn is not None:
            on_spawn(process)

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            await self._kill(process)
            raise ToolTimeoutError(f"{Path(args[0]).name} timed out after {timeout:g} seconds") from None
        except asyncio.CancelledError:
            await self._kill(process)
            raise

        result = ToolResult(
            returncode=process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )
        if result.returncode != 0:
            message = result.stderr.strip() or f"{Path(args[0]).name} exited with status {result.returncode}"
            logger.error("Tool failed status=%s stderr=%s", result.returncode, result.stderr.strip())
            raise ToolExecutionError(message, returncode=result.returncode, stderr=result.stderr)
        return result

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        with suppress(ProcessLookupError):
            process.kill()
        await process.wait()
