from fastapi import APIRouter
from pydantic import BaseModel

from app.dependencies import DownloaderDep, LinkDiscoveryDep, TextExtractionDep
from app.schemas.documents import ExtractedText, StoredDocument
from app.schemas.links import DocumentLink

router = APIRouter(prefix="/documents")


class DiscoverRequest(BaseModel):
    url: str
    max_detail_pages: int | None = None


class DownloadRequest(BaseModel):
    urls: list[str]
    job_id: str


class ExtractTextRequest(BaseModel):
    url: str


@router.post("/discover", response_model=list[DocumentLink])
async def discover_documents(
    request: DiscoverRequest, discovery: LinkDiscoveryDep
) -> list[DocumentLink]:
    return await discovery.discover_pdfs_from_listing(
        request.url, max_detail_pages=request.max_detail_pages
    )


@router.post("/download", response_model=list[StoredDocument])
async def download_documents(
    request: DownloadRequest, downloader: DownloaderDep
) -> list[StoredDocument]:
    return await downloader.download_many(request.urls, request.job_id)


@router.post("/extract-text", response_model=ExtractedText)
async def extract_text(
    request: ExtractTextRequest, text_extraction: TextExtractionDep
) -> ExtractedText:
    return await text_extraction.extract_from_url(request.url)
