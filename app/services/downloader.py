import asyncio
import logging
import time

import httpx

from app.exceptions.custom import StorageError
from app.schemas.documents import StoredDocument
from app.services.fetcher import USER_AGENT
from app.services.storage import StorageService

logger = logging.getLogger(__name__)

_TIMEOUT = 60.0


def document_key(job_id: str, timestamp_ms: int | None = None) -> str:
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"pdfs/job-{job_id}-{timestamp_ms}.pdf"


class DocumentDownloader:
    def __init__(self, client: httpx.AsyncClient, storage: StorageService, delay: float = 1.0):
        self._client = client
        self._storage = storage
        self._delay = delay

    async def download(self, url: str, job_id: str) -> StoredDocument:
        """Download a PDF and persist it. Item failures are returned, not raised.

        An unreachable storage backend still raises StorageError.
        """
        try:
            resp = await self._client.get(
                url,
                follow_redirects=True,
                timeout=_TIMEOUT,
                headers={"User-Agent": USER_AGENT},
            )
        except httpx.HTTPError as exc:
            logger.warning("PDF download failed for %s: %s", url, exc)
            return StoredDocument(source_url=url, success=False, error=f"Download failed: {exc}")

        if not resp.is_success:
            logger.warning("PDF download failed for %s (status=%s)", url, resp.status_code)
            return StoredDocument(
                source_url=url, success=False, error=f"HTTP error! status: {resp.status_code}"
            )

        content_type = resp.headers.get("content-type")
        if content_type and "pdf" not in content_type.lower():
            logger.warning("Content-Type for %s is %s, expected PDF", url, content_type)

        key = document_key(job_id)
        try:
            stored = await self._storage.put(key, resp.content, "application/pdf")
        except StorageError as exc:
            if exc.status_code is None:
                raise
            return StoredDocument(source_url=url, success=False, error=exc.message)
        logger.info("Stored PDF %s as %s (%d bytes)", url, key, len(resp.content))
        return StoredDocument(
            source_url=url, storage_key=stored.key, storage_url=stored.url, success=True
        )

    async def download_many(self, urls: list[str], job_id: str) -> list[StoredDocument]:
        results: list[StoredDocument] = []
        for index, url in enumerate(urls):
            if index > 0:
                await asyncio.sleep(self._delay)
            results.append(await self.download(url, job_id))
        return results
