from __future__ import annotations

from fastapi import Request

from app.services.job_manager import JobManager


def set_job_manager(app, manager: JobManager) -> None:
    app.state.job_manager = manager


def get_job_manager(request: Request) -> JobManager:
    manager = getattr(request.app.state, "job_manager", None)
    if manager is None:
        raise RuntimeError("Job manager not initialized")
    return manager
