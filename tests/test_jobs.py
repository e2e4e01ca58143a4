"""Tests for JobStore and the retry helpers."""

from datetime import datetime, timedelta, timezone

from app.jobs import JobStatus, JobStore, backoff_delay, is_retryable_error
from app.schemas.responses import IngestionResult


def _result(job_id: str) -> IngestionResult:
    return IngestionResult(job_id=job_id, source_url="https://agency.test/tour", source_type="direct")


def test_create_job_starts_pending():
    store = JobStore()
    job = store.create_job(url="https://agency.test/tour")

    assert job.status == JobStatus.pending
    assert job.attempts == 0
    assert store.get_job(job.job_id) is job


def test_get_job_unknown_returns_none():
    assert JobStore().get_job("missing") is None


def test_mark_running_counts_attempts():
    store = JobStore()
    job = store.create_job(url="https://agency.test/tour")
    store.mark_running(job.job_id)
    store.mark_retrying(job.job_id, "Retry 1/3: timeout")
    store.mark_running(job.job_id)

    assert job.status == JobStatus.running
    assert job.attempts == 2
    assert job.error == "Retry 1/3: timeout"


def test_mark_completed_clears_error():
    store = JobStore()
    job = store.create_job(url="https://agency.test/tour")
    store.mark_running(job.job_id)
    store.mark_retrying(job.job_id, "Retry 1/3: timeout")
    store.mark_completed(job.job_id, _result(job.job_id))

    assert job.status == JobStatus.completed
    assert job.error is None
    assert job.result.source_type == "direct"
    assert job.finished_at is not None


def test_mark_failed_records_error():
    store = JobStore()
    job = store.create_job(url="https://agency.test/tour")
    store.mark_failed(job.job_id, "boom")

    assert job.status == JobStatus.failed
    assert job.error == "boom"
    assert job.finished_at is not None


def test_has_active_job_per_url():
    store = JobStore()
    job = store.create_job(url="https://agency.test/a")

    assert store.has_active_job("https://agency.test/a") is job
    assert store.has_active_job("https://agency.test/b") is None

    store.mark_completed(job.job_id, _result(job.job_id))
    assert store.has_active_job("https://agency.test/a") is None


def test_eviction_drops_oldest_finished_jobs():
    store = JobStore(max_jobs=2)
    old = store.create_job(url="https://agency.test/1")
    store.mark_failed(old.job_id, "x")
    old.created_at = datetime.now(timezone.utc) - timedelta(hours=1)
    active = store.create_job(url="https://agency.test/2")
    newest = store.create_job(url="https://agency.test/3")

    assert store.get_job(old.job_id) is None
    assert store.get_job(active.job_id) is active
    assert store.get_job(newest.job_id) is newest


def test_eviction_never_drops_active_jobs():
    store = JobStore(max_jobs=1)
    first = store.create_job(url="https://agency.test/1")
    second = store.create_job(url="https://agency.test/2")

    assert store.get_job(first.job_id) is first
    assert store.get_job(second.job_id) is second


def test_is_retryable_error():
    assert is_retryable_error("Request timed out")
    assert is_retryable_error("connect ECONNREFUSED 127.0.0.1:443")
    assert is_retryable_error("Rate limit exceeded for LLM")
    assert is_retryable_error("Storage upload failed (503): unavailable")
    assert is_retryable_error("Temporary failure in name resolution")
    assert not is_retryable_error("Could not extract any text from the PDF")
    assert not is_retryable_error("Storage upload failed (400): bad request")
    assert not is_retryable_error("HTTP error 5030 bytes")


def test_backoff_delay_is_exponential_and_capped():
    assert backoff_delay(1) == 1.0
    assert backoff_delay(2) == 2.0
    assert backoff_delay(3) == 4.0
    assert backoff_delay(10) == 30.0
