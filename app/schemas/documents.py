from enum import StrEnum

from pydantic import BaseModel, field_validator


class ExtractionMethod(StrEnum):
    text_layer = "text_layer"
    ocr = "ocr"


class StoredDocument(BaseModel):
    source_url: str
    storage_key: str | None = None
    storage_url: str | None = None
    success: bool
    error: str | None = None


class ExtractedText(BaseModel):
    text: str
    method: ExtractionMethod
    source_document: str
    ocr_pages: int = 0

    @field_validator("text")
    @classmethod
    def _not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("extracted text must not be empty")
        return value
