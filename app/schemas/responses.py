from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from app.schemas.contact import ContactInfo
from app.schemas.documents import ExtractionMethod, StoredDocument
from app.schemas.tours import TourRecord


class IngestionResult(BaseModel):
    job_id: str
    source_url: str
    source_type: str  # "pdf" | "pdf_discovered" | "deep_scrape" | "direct" | "rendered"
    extraction_method: ExtractionMethod | None = None  # set for PDF sources
    document_url: str | None = None  # original PDF URL when the source is a PDF
    stored_document: StoredDocument | None = None
    tours: list[TourRecord] = []
    tours_found: int = 0
    contact: ContactInfo = ContactInfo()
    extracted_length: int = 0


class JobSubmittedResponse(BaseModel):
    job_id: str
    status: str
    message: str


class JobStatusResponse(BaseModel):
    job_id: str
    status: str
    url: str
    attempts: int = 0
    created_at: datetime
    finished_at: datetime | None = None
    result: IngestionResult | None = None
    error: str | None = None
