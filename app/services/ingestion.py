import logging

from pydantic import BaseModel

from app.exceptions.custom import FetchError
from app.mappers.html_text import html_to_text
from app.mappers.tour_records import apply_contact
from app.schemas.contact import ContactInfo
from app.schemas.documents import ExtractionMethod
from app.schemas.responses import IngestionResult
from app.services.contact_extractor import ContactExtractorService
from app.services.downloader import DocumentDownloader
from app.services.fetcher import FetchService
from app.services.link_discovery import LinkDiscoveryService, is_pdf_url
from app.services.text_extraction import TextExtractionService
from app.services.tour_extraction import TourExtractionService

logger = logging.getLogger(__name__)

_LISTING_MARKERS = ("/tour-line/", "/tours", "/list")
_LISTING_DETAIL_PAGES = 5


def is_listing_url(url: str) -> bool:
    return any(marker in url for marker in _LISTING_MARKERS)


class AcquiredContent(BaseModel):
    content: str
    source_type: str
    is_html: bool = False
    document_url: str | None = None
    extraction_method: ExtractionMethod | None = None


class IngestionService:
    """Run one job: acquire content for a URL, extract tours, enrich contacts."""

    def __init__(
        self,
        fetcher: FetchService,
        discovery: LinkDiscoveryService,
        text_extraction: TextExtractionService,
        tour_extractor: TourExtractionService,
        contact_extractor: ContactExtractorService,
        downloader: DocumentDownloader,
    ):
        self._fetcher = fetcher
        self._discovery = discovery
        self._text_extraction = text_extraction
        self._tour_extractor = tour_extractor
        self._contact_extractor = contact_extractor
        self._downloader = downloader

    async def run(self, url: str, job_id: str) -> IngestionResult:
        acquired = await self.acquire(url)
        text = html_to_text(acquired.content, preserve_lines=True) if acquired.is_html else acquired.content
        logger.info(
            "Job %s: acquired %d chars via %s from %s", job_id, len(text), acquired.source_type, url
        )

        tours = await self._tour_extractor.extract(text, acquired.source_type)

        contact = ContactInfo()
        if tours:
            contact = await self._contact_extractor.extract(text)
            tours = [apply_contact(tour, contact) for tour in tours]

        stored = None
        if acquired.document_url:
            stored = await self._downloader.download(acquired.document_url, job_id)
            if not stored.success:
                logger.error("Job %s: failed to persist PDF %s: %s", job_id, acquired.document_url, stored.error)

        return IngestionResult(
            job_id=job_id,
            source_url=url,
            source_type=acquired.source_type,
            extraction_method=acquired.extraction_method,
            document_url=acquired.document_url,
            stored_document=stored,
            tours=tours,
            tours_found=len(tours),
            contact=contact,
            extracted_length=len(text),
        )

    async def acquire(self, url: str) -> AcquiredContent:
        if is_pdf_url(url):
            return await self._from_pdf(url, source_type="pdf")
        if is_listing_url(url):
            return await self._from_listing(url)
        return await self._from_page(url)

    async def _from_pdf(self, pdf_url: str, source_type: str) -> AcquiredContent:
        extracted = await self._text_extraction.extract_from_url(pdf_url)
        return AcquiredContent(
            content=extracted.text,
            source_type=source_type,
            document_url=pdf_url,
            extraction_method=extracted.method,
        )

    async def _from_page(self, url: str) -> AcquiredContent:
        result = await self._fetcher.fetch(url)
        return AcquiredContent(content=result.html, source_type=result.method.value, is_html=True)

    async def _from_listing(self, url: str) -> AcquiredContent:
        """Detail pages first, then the first discovered PDF, then the listing itself."""
        scrape = None
        try:
            scrape = await self._discovery.scrape_listing_with_details(
                url, max_detail_pages=_LISTING_DETAIL_PAGES
            )
        except FetchError as exc:
            logger.warning("Deep scrape failed for %s: %s, trying PDF discovery", url, exc.message)

        if scrape is not None and scrape.detail_pages:
            return AcquiredContent(
                content=scrape.combined_content, source_type="deep_scrape", is_html=True
            )

        pdf_links = await self._discovery.discover_pdfs_from_listing(
            url,
            max_detail_pages=_LISTING_DETAIL_PAGES,
            listing_html=scrape.listing_html if scrape else None,
        )
        if pdf_links:
            return await self._from_pdf(pdf_links[0].url, source_type="pdf_discovered")

        if scrape is not None:
            return AcquiredContent(
                content=scrape.listing_html, source_type=scrape.listing_method.value, is_html=True
            )
        return await self._from_page(url)
