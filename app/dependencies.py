from typing import Annotated

from fastapi import Depends, Request

from app.jobs import JobStore
from app.services.contact_extractor import ContactExtractorService
from app.services.downloader import DocumentDownloader
from app.services.ingestion import IngestionService
from app.services.link_discovery import LinkDiscoveryService
from app.services.text_extraction import TextExtractionService


def get_ingestion_service(request: Request) -> IngestionService:
    return request.app.state.ingestion_service


def get_job_store(request: Request) -> JobStore:
    return request.app.state.job_store


def get_link_discovery_service(request: Request) -> LinkDiscoveryService:
    return request.app.state.link_discovery_service


def get_downloader(request: Request) -> DocumentDownloader:
    return request.app.state.downloader


def get_text_extraction_service(request: Request) -> TextExtractionService:
    return request.app.state.text_extraction_service


def get_contact_extractor(request: Request) -> ContactExtractorService:
    return request.app.state.contact_extractor


def get_max_retries(request: Request) -> int:
    return request.app.state.max_retries


IngestionDep = Annotated[IngestionService, Depends(get_ingestion_service)]
JobStoreDep = Annotated[JobStore, Depends(get_job_store)]
LinkDiscoveryDep = Annotated[LinkDiscoveryService, Depends(get_link_discovery_service)]
DownloaderDep = Annotated[DocumentDownloader, Depends(get_downloader)]
TextExtractionDep = Annotated[TextExtractionService, Depends(get_text_extraction_service)]
ContactExtractorDep = Annotated[ContactExtractorService, Depends(get_contact_extractor)]
MaxRetriesDep = Annotated[int, Depends(get_max_retries)]
