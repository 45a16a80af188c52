from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.main import create_app
from app.services.artifact_store import ArtifactStore
from app.services.job_manager import JobManager
from audio_extraction import ExtractionService

FAKE_TOOL = Path(__file__).resolve().parent / "fake_ytdlp.py"
FAKE_COMMAND = [sys.executable, str(FAKE_TOOL)]


@pytest.fixture
def downloads_dir(tmp_path: Path) -> Path:
    return tmp_path / "downloads"


@pytest.fixture
def settings(tmp_path: Path, downloads_dir: Path) -> Settings:
    return Settings(
        downloads_dir=downloads_dir,
        static_dir=tmp_path / "public",
        ytdlp_command=FAKE_COMMAND,
        conversion_timeout=10,
        info_timeout=10,
        cleanup_interval=3600,
        max_artifact_age=600,
        post_download_delay=0.05,
    )


@pytest.fixture
def extractor() -> ExtractionService:
    return ExtractionService(command=FAKE_COMMAND, conversion_timeout=10, info_timeout=10)


@pytest.fixture
def job_manager(downloads_dir: Path, extractor: ExtractionService) -> JobManager:
    return JobManager(store=ArtifactStore(downloads_dir), extractor=extractor, post_download_delay=0.05)


@pytest.fixture
def application(settings: Settings):
    return create_app(settings)


@pytest.fixture
def client(application):
    with TestClient(application) as test_client:
        yield test_client


@pytest.fixture
def fake_command() -> list[str]:
    return list(FAKE_COMMAND)
