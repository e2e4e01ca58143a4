from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel

from app.schemas.responses import IngestionResult

_RETRYABLE_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"timeout",
        r"timed out",
        r"network",
        r"econnrefused",
        r"connection refused",
        r"etimedout",
        r"rate limit",
        r"too many requests",
        r"\b50[234]\b",
        r"temporary",
    )
]


def is_retryable_error(message: str) -> bool:
    return any(pattern.search(message) for pattern in _RETRYABLE_PATTERNS)


def backoff_delay(attempt: int) -> float:
    """Seconds to wait before retrying after the given (1-based) failed attempt."""
    return float(min(2 ** (attempt - 1), 30))


class JobStatus(StrEnum):
    pending = "pending"
    running = "running"
    completed = "completed"
    failed = "failed"


class Job(BaseModel):
    job_id: str
    url: str
    status: JobStatus
    created_at: datetime
    finished_at: datetime | None = None
    attempts: int = 0
    result: IngestionResult | None = None
    error: str | None = None


class JobStore:
    def __init__(self, max_jobs: int = 1000) -> None:
        self._jobs: dict[str, Job] = {}
        self._max_jobs = max_jobs

    def _evict(self) -> None:
        if len(self._jobs) <= self._max_jobs:
            return
        # Remove oldest completed/failed jobs first
        candidates = sorted(
            (j for j in self._jobs.values() if j.status in (JobStatus.completed, JobStatus.failed)),
            key=lambda j: j.created_at,
        )
        while len(self._jobs) > self._max_jobs and candidates:
            self._jobs.pop(candidates.pop(0).job_id, None)

    def create_job(self, url: str) -> Job:
        job = Job(
            job_id=uuid.uuid4().hex[:12],
            url=url,
            status=JobStatus.pending,
            created_at=datetime.now(timezone.utc),
        )
        self._jobs[job.job_id] = job
        self._evict()
        return job

    def get_job(self, job_id: str) -> Job | None:
        return self._jobs.get(job_id)

    def has_active_job(self, url: str) -> Job | None:
        for job in self._jobs.values():
            if job.url == url and job.status in (JobStatus.pending, JobStatus.running):
                return job
        return None

    def mark_running(self, job_id: str) -> None:
        if job := self._jobs.get(job_id):
            job.status = JobStatus.running
            job.attempts += 1

    def mark_retrying(self, job_id: str, error: str) -> None:
        if job := self._jobs.get(job_id):
            job.status = JobStatus.pending
            job.error = error

    def mark_completed(self, job_id: str, result: IngestionResult) -> None:
        if job := self._jobs.get(job_id):
            job.status = JobStatus.completed
            job.result = result
            job.error = None
            job.finished_at = datetime.now(timezone.utc)

    def mark_failed(self, job_id: str, error: str) -> None:
        if job := self._jobs.get(job_id):
            job.status = JobStatus.failed
            job.error = error
            job.finished_at = datetime.now(timezone.utc)
