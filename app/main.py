import logging
import sys
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from app.config import Settings
from app.exceptions.custom import (
    BrowserLaunchError,
    FetchError,
    LLMError,
    RateLimitError,
    StorageError,
    TextExtractionError,
)
from app.exceptions.handlers import (
    browser_launch_error_handler,
    fetch_error_handler,
    llm_error_handler,
    rate_limit_error_handler,
    storage_error_handler,
    text_extraction_error_handler,
)
from app.jobs import JobStore
from app.routers.contacts import router as contacts_router
from app.routers.documents import router as documents_router
from app.routers.ingestion import router as ingestion_router
from app.services.contact_extractor import ContactExtractorService
from app.services.downloader import DocumentDownloader
from app.services.fetcher import FetchService
from app.services.ingestion import IngestionService
from app.services.link_discovery import LinkDiscoveryService
from app.services.llm import LLMService
from app.services.pdf_rasterizer import PdfRasterizer
from app.services.storage import StorageService
from app.services.text_extraction import TextExtractionService
from app.services.tour_extraction import TourExtractionService


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)

    # Brochure hosts often have broken certificate chains, so PDF text
    # extraction downloads through a client that skips verification.
    async with (
        httpx.AsyncClient(timeout=30.0) as client,
        httpx.AsyncClient(timeout=60.0, verify=False) as document_client,
    ):
        llm = LLMService(settings.anthropic_api_key, model=settings.llm_model)
        storage = StorageService(client, settings.storage_api_url, settings.storage_api_key)

        fetcher = FetchService(
            client,
            min_html_chars=settings.fetch_min_html_chars,
            navigation_timeout=settings.navigation_timeout,
            settle_delay=settings.render_settle_delay,
        )
        discovery = LinkDiscoveryService(
            fetcher,
            detail_delay=settings.detail_page_delay,
            max_detail_pages=settings.max_detail_links,
        )
        downloader = DocumentDownloader(client, storage, delay=settings.download_delay)
        text_extraction = TextExtractionService(
            document_client,
            PdfRasterizer(storage),
            llm,
            min_text_chars=settings.ocr_min_text_chars,
            max_ocr_pages=settings.ocr_max_pages,
        )
        contact_extractor = ContactExtractorService(llm)

        app.state.ingestion_service = IngestionService(
            fetcher,
            discovery,
            text_extraction,
            TourExtractionService(llm, max_content_chars=settings.max_content_chars),
            contact_extractor,
            downloader,
        )
        app.state.link_discovery_service = discovery
        app.state.downloader = downloader
        app.state.text_extraction_service = text_extraction
        app.state.contact_extractor = contact_extractor
        app.state.job_store = JobStore()
        app.state.max_retries = settings.max_retries

        yield


app = FastAPI(title="Tour Ingest", lifespan=lifespan)

app.add_exception_handler(FetchError, fetch_error_handler)
app.add_exception_handler(BrowserLaunchError, browser_launch_error_handler)
app.add_exception_handler(StorageError, storage_error_handler)
app.add_exception_handler(TextExtractionError, text_extraction_error_handler)
app.add_exception_handler(LLMError, llm_error_handler)
app.add_exception_handler(RateLimitError, rate_limit_error_handler)

app.include_router(ingestion_router)
app.include_router(documents_router)
app.include_router(contacts_router)
