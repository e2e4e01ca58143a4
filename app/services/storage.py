import logging

import httpx

from app.exceptions.custom import StorageError
from app.schemas.storage import DeleteResult, StoredObject

logger = logging.getLogger(__name__)

UPLOAD_PATH = "/v1/storage/upload"
DELETE_PATH = "/v1/storage/delete"

_TIMEOUT = 60.0


class StorageService:
    """Object storage behind an HTTP upload proxy."""

    def __init__(self, client: httpx.AsyncClient, base_url: str, api_key: str = ""):
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}

    async def put(self, key: str, data: bytes, content_type: str) -> StoredObject:
        key = key.lstrip("/")
        try:
            resp = await self._client.post(
                f"{self._base_url}{UPLOAD_PATH}",
                params={"path": key},
                files={"file": (key.rsplit("/", 1)[-1], data, content_type)},
                headers=self._headers,
                timeout=_TIMEOUT,
            )
        except httpx.TransportError as exc:
            raise StorageError(f"Storage backend unreachable: {exc}") from exc

        if resp.status_code >= 400:
            raise StorageError(
                f"Storage upload failed ({resp.status_code}): {resp.text}",
                status_code=resp.status_code,
            )

        try:
            body = resp.json()
        except ValueError as exc:
            raise StorageError(
                f"Storage upload returned a non-JSON body ({resp.status_code})",
                status_code=resp.status_code,
            ) from exc

        url = body.get("url") if isinstance(body, dict) else None
        if not url:
            raise StorageError("Storage upload response has no url", status_code=resp.status_code)
        logger.debug("Stored %s (%d bytes)", key, len(data))
        return StoredObject(key=key, url=url)

    async def delete(self, key: str) -> DeleteResult:
        """Delete an object. A missing object counts as deleted."""
        key = key.lstrip("/")
        try:
            resp = await self._client.delete(
                f"{self._base_url}{DELETE_PATH}",
                params={"path": key},
                headers=self._headers,
                timeout=_TIMEOUT,
            )
        except httpx.TransportError as exc:
            raise StorageError(f"Storage backend unreachable: {exc}") from exc

        if resp.status_code == 404:
            logger.info("Storage object %s already absent", key)
            return DeleteResult(success=True)
        if resp.status_code >= 400:
            logger.warning("Storage delete failed for %s (%s)", key, resp.status_code)
            return DeleteResult(success=False, error=f"Storage delete failed ({resp.status_code})")
        return DeleteResult(success=True)
