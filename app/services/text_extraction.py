import asyncio
import logging

import fitz
import httpx

from app.exceptions.custom import (
    LLMError,
    RasterizationError,
    RateLimitError,
    StorageError,
    TextExtractionError,
)
from app.schemas.documents import ExtractedText, ExtractionMethod
from app.services.fetcher import USER_AGENT
from app.services.llm import LLMService, image_block, text_block
from app.services.pdf_rasterizer import PdfRasterizer

logger = logging.getLogger(__name__)

_TIMEOUT = 60.0

PAGE_BREAK = "\n\n--- Page Break ---\n\n"

_OCR_SYSTEM_PROMPT = (
    "You are a helpful assistant that extracts text from images. "
    "Extract all visible text from the image, preserving the layout and "
    "structure as much as possible."
)
_OCR_USER_PROMPT = (
    "Please extract all text from this image. Include tour titles, destinations, "
    "prices, dates, and any other relevant information."
)


def extract_text_layer(data: bytes) -> str:
    """Embedded text of every page, trimmed."""
    with fitz.open(stream=data, filetype="pdf") as doc:
        return "\n".join(page.get_text("text") for page in doc).strip()


class TextExtractionService:
    """PDF to text: text layer first, vision-model OCR when that looks incomplete."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        rasterizer: PdfRasterizer,
        llm: LLMService,
        min_text_chars: int = 100,
        max_ocr_pages: int = 15,
    ):
        # client skips TLS verification
        self._client = client
        self._rasterizer = rasterizer
        self._llm = llm
        self._min_text_chars = min_text_chars
        self._max_ocr_pages = max_ocr_pages

    async def extract_from_url(self, pdf_url: str) -> ExtractedText:
        data = await self._download(pdf_url)
        return await self.extract_from_bytes(data, source_document=pdf_url)

    async def _download(self, pdf_url: str) -> bytes:
        try:
            resp = await self._client.get(
                pdf_url,
                follow_redirects=True,
                timeout=_TIMEOUT,
                headers={"User-Agent": USER_AGENT},
            )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise TextExtractionError(f"PDF download failed: {exc}", source_document=pdf_url) from exc
        return resp.content

    async def extract_from_bytes(self, data: bytes, source_document: str) -> ExtractedText:
        try:
            text = await asyncio.to_thread(extract_text_layer, data)
        except (RuntimeError, ValueError) as exc:
            logger.warning("Text-layer extraction failed for %s: %s", source_document, exc)
            text = ""

        if len(text) >= self._min_text_chars:
            return ExtractedText(
                text=text, method=ExtractionMethod.text_layer, source_document=source_document
            )

        logger.info(
            "Text layer of %s has %d chars (< %d), falling back to OCR",
            source_document, len(text), self._min_text_chars,
        )
        ocr_text, pages = await self._ocr(data, source_document)

        if len(ocr_text) > len(text):
            logger.info("Using OCR text for %s (%d chars from %d page(s))", source_document, len(ocr_text), pages)
            return ExtractedText(
                text=ocr_text,
                method=ExtractionMethod.ocr,
                source_document=source_document,
                ocr_pages=pages,
            )

        if not text:
            raise TextExtractionError(
                "Could not extract any text from the PDF: both text-layer extraction and OCR "
                "failed (the file may be encrypted, corrupt, or image-only)",
                source_document=source_document,
            )
        return ExtractedText(
            text=text, method=ExtractionMethod.text_layer, source_document=source_document
        )

    async def _ocr(self, data: bytes, source_document: str) -> tuple[str, int]:
        """Transcribe rendered pages in order. Returns (text, pages rendered)."""
        try:
            image_urls = await self._rasterizer.rasterize(data, max_pages=self._max_ocr_pages)
        except RasterizationError as exc:
            logger.warning("OCR fallback unavailable for %s: %s", source_document, exc.message)
            return "", 0
        except StorageError as exc:
            if exc.status_code is None:
                raise
            logger.warning("OCR page upload rejected for %s: %s", source_document, exc.message)
            return "", 0

        page_texts: list[str] = []
        for page_number, url in enumerate(image_urls, start=1):
            try:
                page_text = await self._llm.complete(
                    _OCR_SYSTEM_PROMPT, [text_block(_OCR_USER_PROMPT), image_block(url)]
                )
            except (LLMError, RateLimitError) as exc:
                logger.warning("OCR failed for page %d of %s: %s", page_number, source_document, exc)
                page_text = ""
            page_texts.append(page_text.strip())

        if not any(page_texts):
            return "", len(image_urls)
        return PAGE_BREAK.join(page_texts).strip(), len(image_urls)
