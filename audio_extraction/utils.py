"""Utility helpers for the audio extraction service."""

from __future__ import annotations

from typing import Iterable
from uuid import uuid4

from .exceptions import ValidationError

ALLOWED_HOSTS = ("youtube.com", "youtu.be")
JOB_ID_PREFIX = "audio"


def validate_source_url(url: str | None, allowed_hosts: Iterable[str] | None = None) -> str:
    """Validate that ``url`` is present and points at a supported site.

    The check is a plain substring match against the allowed hosts, no
    scheme or host parsing is performed.

    Raises
    ------
    ValidationError
        If the URL is missing, blank, or matches none of the allowed hosts.
    """

    if url is None or not url.strip():
        raise ValidationError("URL is missing")

    url = url.strip()
    hosts = tuple(allowed_hosts or ALLOWED_HOSTS)
    if not any(host in url for host in hosts):
        raise ValidationError("Invalid URL - YouTube only")
    return url


def new_job_id(prefix: str = JOB_ID_PREFIX) -> str:
    """Return a collision-resistant identifier used as an artifact name prefix."""
    return f"{prefix}_{uuid4().hex}"


def normalize_extension(extension: str) -> str:
    """Return ``extension`` lowercased with exactly one leading dot."""
    return "." + extension.lower().lstrip(".")
