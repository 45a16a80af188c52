from __future__ import annotations

import asyncio
import time
from pathlib import Path

import pytest

from audio_extraction import (
    ExtractionService,
    MediaInfo,
    ParsingError,
    ToolExecutionError,
    ToolTimeoutError,
    ValidationError,
)
from audio_extraction.utils import new_job_id, validate_source_url


def test_validate_source_url_accepts_youtube_hosts() -> None:
    assert validate_source_url(" https://www.youtube.com/watch?v=abc ") == "https://www.youtube.com/watch?v=abc"
    assert validate_source_url("https://youtu.be/abc") == "https://youtu.be/abc"


@pytest.mark.parametrize("url", [None, "", "   "])
def test_validate_source_url_rejects_missing(url) -> None:
    with pytest.raises(ValidationError, match="URL is missing"):
        validate_source_url(url)


def test_validate_source_url_rejects_other_hosts() -> None:
    with pytest.raises(ValidationError, match="YouTube only"):
        validate_source_url("https://vimeo.com/12345")


def test_validate_source_url_custom_hosts() -> None:
    assert validate_source_url("https://vimeo.com/1", allowed_hosts=["vimeo.com"]) == "https://vimeo.com/1"


def test_job_ids_are_unique() -> None:
    ids = {new_job_id() for _ in range(1000)}
    assert len(ids) == 1000
    assert all(job_id.startswith("audio_") for job_id in ids)


def test_extract_args_pass_url_as_single_argument(tmp_path: Path) -> None:
    service = ExtractionService(command=["yt-dlp"])
    url = 'https://youtube.com/watch?v=x" && rm -rf / "'
    job = service.new_job(url, tmp_path)

    args = service.build_extract_args(job)

    assert args[0] == "yt-dlp"
    assert args[-2:] == ["--", url]
    assert args[args.index("-o") + 1] == str(tmp_path / f"{job.job_id}.%(ext)s")
    assert job.expected_path == tmp_path / f"{job.job_id}.mp3"


def test_extract_audio_writes_expected_file(tmp_path: Path, fake_command: list[str]) -> None:
    service = ExtractionService(command=fake_command)
    job = service.new_job("https://www.youtube.com/watch?v=abc", tmp_path)

    result = asyncio.run(service.extract_audio(job))

    assert result.returncode == 0
    assert job.expected_path.exists()


def test_shell_metacharacters_are_not_interpreted(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, fake_command: list[str]
) -> None:
    monkeypatch.chdir(tmp_path)
    service = ExtractionService(command=fake_command)
    job = service.new_job('https://youtube.com/watch?v=x"; touch pwned; echo "', tmp_path)

    asyncio.run(service.extract_audio(job))

    assert job.expected_path.exists()
    assert not (tmp_path / "pwned").exists()


def test_nonzero_exit_raises_with_tool_error_text(tmp_path: Path, fake_command: list[str]) -> None:
    service = ExtractionService(command=fake_command)
    job = service.new_job("https://www.youtube.com/watch?v=fail", tmp_path)

    with pytest.raises(ToolExecutionError) as excinfo:
        asyncio.run(service.extract_audio(job))

    assert excinfo.value.returncode == 1
    assert "Video unavailable" in str(excinfo.value)


def test_missing_binary_raises_tool_error(tmp_path: Path) -> None:
    service = ExtractionService(command=[str(tmp_path / "no-such-tool")])
    job = service.new_job("https://www.youtube.com/watch?v=abc", tmp_path)

    with pytest.raises(ToolExecutionError, match="Could not start"):
        asyncio.run(service.extract_audio(job))


def test_hung_tool_is_killed_after_timeout(tmp_path: Path, fake_command: list[str]) -> None:
    service = ExtractionService(command=fake_command, conversion_timeout=0.5)
    job = service.new_job("https://www.youtube.com/watch?v=hang", tmp_path)

    started = time.monotonic()
    with pytest.raises(ToolTimeoutError, match="timed out"):
        asyncio.run(service.extract_audio(job))

    assert time.monotonic() - started < 10


def test_fetch_info_returns_selected_fields(fake_command: list[str]) -> None:
    service = ExtractionService(command=fake_command)

    info = asyncio.run(service.fetch_info("https://www.youtube.com/watch?v=abc"))

    assert info == MediaInfo(
        title="Sample Track",
        duration=212,
        uploader="Sample Uploader",
        thumbnail="https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg",
    )


def test_fetch_info_malformed_output_raises_parsing_error(fake_command: list[str]) -> None:
    service = ExtractionService(command=fake_command)

    with pytest.raises(ParsingError):
        asyncio.run(service.fetch_info("https://www.youtube.com/watch?v=malformed"))


def test_media_info_rejects_non_object_json() -> None:
    with pytest.raises(ParsingError, match="not a JSON object"):
        MediaInfo.from_tool_output("[1, 2, 3]")
