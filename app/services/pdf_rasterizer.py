import asyncio
import logging
import tempfile
import time
from pathlib import Path

import fitz

from app.exceptions.custom import RasterizationError
from app.services.storage import StorageService

logger = logging.getLogger(__name__)

DPI = 100


def _render_page(doc: fitz.Document, index: int, workdir: Path, dpi: int) -> bytes:
    page = doc.load_page(index)
    pix = page.get_pixmap(dpi=dpi, alpha=False)
    image_path = workdir / f"page-{index + 1}.png"
    pix.save(image_path)
    return image_path.read_bytes()


class PdfRasterizer:
    """Render PDF pages to PNG and publish each page image to object storage."""

    def __init__(self, storage: StorageService, dpi: int = DPI):
        self._storage = storage
        self._dpi = dpi

    async def rasterize(self, data: bytes, max_pages: int = 15) -> list[str]:
        """Return public URLs of the rendered pages, in page order.

        Rendering stops at the first page that fails to convert. The working
        directory is removed on every exit path.
        """
        urls: list[str] = []
        with tempfile.TemporaryDirectory(prefix="pdf-") as tmp:
            workdir = Path(tmp)
            pdf_path = workdir / "input.pdf"
            pdf_path.write_bytes(data)

            try:
                doc = await asyncio.to_thread(fitz.open, pdf_path)
            except (RuntimeError, ValueError) as exc:
                raise RasterizationError(f"Could not open PDF for rendering: {exc}") from exc

            with doc:
                batch = int(time.time() * 1000)
                for index in range(min(doc.page_count, max_pages)):
                    try:
                        image = await asyncio.to_thread(
                            _render_page, doc, index, workdir, self._dpi
                        )
                    except (RuntimeError, ValueError, IndexError) as exc:
                        logger.warning("Stopping rasterization at page %d: %s", index + 1, exc)
                        break

                    stored = await self._storage.put(
                        f"pdf-images/{batch}-page-{index + 1}.png", image, "image/png"
                    )
                    urls.append(stored.url)

        if not urls:
            raise RasterizationError("PDF rendering produced no page images")
        logger.info("Rendered %d page image(s)", len(urls))
        return urls
