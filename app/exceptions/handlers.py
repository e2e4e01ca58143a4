import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from .custom import (
    BrowserLaunchError,
    FetchError,
    LLMError,
    RateLimitError,
    StorageError,
    TextExtractionError,
)

logger = logging.getLogger(__name__)


async def fetch_error_handler(_request: Request, exc: FetchError) -> JSONResponse:
    logger.error("Fetch error: %s (status=%s)", exc.message, exc.status_code)
    return JSONResponse(
        status_code=502,
        content={"detail": f"Fetch error: {exc.message}"},
    )


async def browser_launch_error_handler(_request: Request, exc: BrowserLaunchError) -> JSONResponse:
    logger.error("Browser launch error: %s", exc.message)
    return JSONResponse(
        status_code=503,
        content={"detail": f"Browser unavailable: {exc.message}"},
    )


async def storage_error_handler(_request: Request, exc: StorageError) -> JSONResponse:
    logger.error("Storage error: %s (status=%s)", exc.message, exc.status_code)
    return JSONResponse(
        status_code=502,
        content={"detail": f"Storage error: {exc.message}"},
    )


async def text_extraction_error_handler(_request: Request, exc: TextExtractionError) -> JSONResponse:
    logger.error("Text extraction error for %s: %s", exc.source_document, exc.message)
    return JSONResponse(
        status_code=422,
        content={"detail": f"Text extraction error: {exc.message}"},
    )


async def llm_error_handler(_request: Request, exc: LLMError) -> JSONResponse:
    logger.error("LLM error: %s (status=%s)", exc.message, exc.status_code)
    return JSONResponse(
        status_code=502,
        content={"detail": f"LLM error: {exc.message}"},
    )


async def rate_limit_error_handler(_request: Request, exc: RateLimitError) -> JSONResponse:
    logger.warning("Rate limit hit for %s", exc.service)
    return JSONResponse(
        status_code=429,
        content={"detail": f"Rate limit exceeded for {exc.service}"},
    )
