import asyncio
import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from app.dependencies import IngestionDep, JobStoreDep, MaxRetriesDep
from app.jobs import JobStore, backoff_delay, is_retryable_error
from app.schemas.responses import IngestionResult, JobStatusResponse, JobSubmittedResponse
from app.services.ingestion import IngestionService

logger = logging.getLogger(__name__)

router = APIRouter()


class IngestRequest(BaseModel):
    url: str


async def _run_ingestion(
    job_id: str,
    url: str,
    service: IngestionService,
    store: JobStore,
    max_retries: int,
) -> None:
    attempt = 0
    while True:
        attempt += 1
        store.mark_running(job_id)
        try:
            result = await service.run(url, job_id)
        except Exception as exc:
            message = str(exc)
            if attempt <= max_retries and is_retryable_error(message):
                delay = backoff_delay(attempt)
                logger.warning(
                    "Ingestion job %s attempt %d failed (%s), retrying in %.0fs",
                    job_id, attempt, message, delay,
                )
                store.mark_retrying(job_id, f"Retry {attempt}/{max_retries}: {message}")
                await asyncio.sleep(delay)
                continue
            logger.exception("Ingestion job %s failed", job_id)
            store.mark_failed(job_id, message)
            return

        store.mark_completed(job_id, result)
        return


@router.post("/ingest", response_model=JobSubmittedResponse, status_code=202)
async def ingest(
    request: IngestRequest,
    service: IngestionDep,
    store: JobStoreDep,
    max_retries: MaxRetriesDep,
) -> JobSubmittedResponse:
    existing = store.has_active_job(request.url)
    if existing:
        raise HTTPException(
            status_code=409,
            detail=f"An ingestion job for this URL is already active (job_id={existing.job_id})",
        )

    job = store.create_job(url=request.url)
    asyncio.create_task(_run_ingestion(job.job_id, request.url, service, store, max_retries))
    return JobSubmittedResponse(
        job_id=job.job_id,
        status=job.status,
        message="Ingestion job submitted",
    )


@router.get("/jobs/{job_id}", response_model=JobStatusResponse)
async def get_job_status(job_id: str, store: JobStoreDep) -> JobStatusResponse:
    job = store.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return JobStatusResponse(**job.model_dump())


@router.post("/ingest/sync", response_model=IngestionResult)
async def ingest_sync(
    request: IngestRequest,
    service: IngestionDep,
    store: JobStoreDep,
) -> IngestionResult:
    job = store.create_job(url=request.url)
    store.mark_running(job.job_id)
    try:
        result = await service.run(request.url, job.job_id)
    except Exception as exc:
        store.mark_failed(job.job_id, str(exc))
        raise
    store.mark_completed(job.job_id, result)
    return result
