from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from pathlib import Path
from typing import Iterable, List, Optional, Set

from audio_extraction import (
    ArtifactNotFoundError,
    ConversionJob,
    ExtractionService,
    FilesystemError,
    MediaInfo,
)
from audio_extraction.utils import validate_source_url
from app.models import ArtifactRecord
from app.services.artifact_store import ArtifactStore

logger = logging.getLogger(__name__)


class JobManager:
    """Owns conversion jobs and the retention of the files they produce."""

    def __init__(
        self,
        store: ArtifactStore,
        extractor: ExtractionService,
        allowed_hosts: Optional[Iterable[str]] = None,
        cleanup_interval: float = 60 * 5,
        max_artifact_age: float = 60 * 10,
        post_download_delay: float = 5,
    ) -> None:
        self.store = store
        self.extractor = extractor
        self.allowed_hosts = tuple(allowed_hosts) if allowed_hosts else None
        self.cleanup_interval = cleanup_interval
        self.max_artifact_age = max_artifact_age
        self.post_download_delay = post_download_delay
        self._jobs: dict[str, ConversionJob] = {}
        self._cleanup_task: Optional[asyncio.Task[None]] = None
        self._pending_deletions: Set[asyncio.Task[None]] = set()

    async def initialize(self) -> None:
        await asyncio.to_thread(self.store.ensure_exists)
        self._cleanup_task = asyncio.create_task(self._periodic_cleanup_loop())

    async def shutdown(self) -> None:
        if self._cleanup_task:
            self._cleanup_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._cleanup_task
            self._cleanup_task = None
        for task in list(self._pending_deletions):
            task.cancel()
        for task in list(self._pending_deletions):
            with suppress(asyncio.CancelledError):
                await task
        # Reap running conversions first so none writes into the purged store
        for job in self.active_jobs:
            await self.extractor.terminate(job)
        removed = await self.purge_artifacts()
        logger.info("Temporary files deleted: %d", len(removed))

    @property
    def active_jobs(self) -> List[ConversionJob]:
        return list(self._jobs.values())

    async def convert(self, url: Optional[str]) -> Path:
        """Convert ``url`` to audio and return the path of the resulting artifact.

        The job is registered in the in-memory table only while the external
        tool runs and its output is located.
        """

        url = validate_source_url(url, self.allowed_hosts)
        await asyncio.to_thread(self.store.ensure_exists)

        job = self.extractor.new_job(url, self.store.root)
        self._jobs[job.job_id] = job
        try:
            await self.extractor.extract_audio(job)
            artifact = await asyncio.to_thread(self._locate_artifact, job)
        finally:
            self._jobs.pop(job.job_id, None)

        logger.info("Conversion successful job=%s file=%s", job.job_id, artifact.name)
        return artifact

    async def fetch_info(self, url: Optional[str]) -> MediaInfo:
        url = validate_source_url(url, self.allowed_hosts)
        return await self.extractor.fetch_info(url)

    async def list_artifacts(self) -> List[ArtifactRecord]:
        try:
            return await asyncio.to_thread(self.store.list_artifacts)
        except FilesystemError:
            logger.exception("File listing error")
            return []

    def resolve_artifact(self, filename: str) -> Path:
        return self.store.resolve(filename)

    async def schedule_deletion(self, filename: str, delay: Optional[float] = None) -> None:
        delay = self.post_download_delay if delay is None else delay
        task = asyncio.create_task(self._delete_later(filename, delay))
        self._pending_deletions.add(task)
        task.add_done_callback(self._pending_deletions.discard)

    async def sweep_expired(self) -> List[str]:
        removed = await asyncio.to_thread(self.store.sweep, self.max_artifact_age)
        for name in removed:
            logger.info("Deleted old file: %s", name)
        return removed

    async def purge_artifacts(self) -> List[str]:
        try:
            return await asyncio.to_thread(self.store.purge)
        except FilesystemError:
            logger.exception("Final cleanup error")
            return []

    def _locate_artifact(self, job: ConversionJob) -> Path:
        if job.expected_path.is_file():
            return job.expected_path
        found = self.store.find_by_prefix(job.job_id, job.extension)
        if found is None:
            logger.error("%s file not found for job=%s in %s", job.extension, job.job_id, self.store.root)
            raise ArtifactNotFoundError(f"No {job.extension} output for job {job.job_id}")
        return found

    async def _delete_later(self, filename: str, delay: float) -> None:
        await asyncio.sleep(delay)
        await asyncio.to_thread(self.store.delete_if_exists, filename)

    async def _periodic_cleanup_loop(self) -> None:
        try:
            while True:
                await asyncio.sleep(self.cleanup_interval)
                try:
                    await self.sweep_expired()
                except Exception:
                    logger.exception("Cleanup error")
        except asyncio.CancelledError:
            return
