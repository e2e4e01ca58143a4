"""Tests for PdfRasterizer."""

import tempfile
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import fitz
import pytest

from app.exceptions.custom import RasterizationError, StorageError
from app.schemas.storage import StoredObject
from app.services import pdf_rasterizer
from app.services.pdf_rasterizer import PdfRasterizer


def _pdf(page_count: int) -> bytes:
    doc = fitz.open()
    for i in range(page_count):
        doc.new_page().insert_text((72, 72), f"Page {i + 1}")
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def storage():
    storage = MagicMock()
    storage.put = AsyncMock(
        side_effect=lambda key, data, content_type: StoredObject(key=key, url=f"https://cdn.test/{key}")
    )
    return storage


async def test_uploads_one_png_per_page(storage):
    urls = await PdfRasterizer(storage).rasterize(_pdf(2))

    assert len(urls) == 2
    assert urls[0].endswith("-page-1.png")
    assert urls[1].endswith("-page-2.png")
    key, data, content_type = storage.put.await_args_list[0].args
    assert key.startswith("pdf-images/")
    assert data.startswith(b"\x89PNG")
    assert content_type == "image/png"


async def test_respects_max_pages(storage):
    urls = await PdfRasterizer(storage).rasterize(_pdf(4), max_pages=2)

    assert len(urls) == 2


async def test_unreadable_pdf_raises(storage):
    with pytest.raises(RasterizationError):
        await PdfRasterizer(storage).rasterize(b"this is not a pdf")

    storage.put.assert_not_awaited()


async def test_stops_at_first_page_that_fails_to_render(storage, monkeypatch):
    render = pdf_rasterizer._render_page

    def _fail_on_second_page(doc, index, workdir, dpi):
        if index == 1:
            raise RuntimeError("cannot render page")
        return render(doc, index, workdir, dpi)

    monkeypatch.setattr("app.services.pdf_rasterizer._render_page", _fail_on_second_page)

    urls = await PdfRasterizer(storage).rasterize(_pdf(3))

    assert len(urls) == 1
    assert urls[0].endswith("-page-1.png")
    assert storage.put.await_count == 1


async def test_working_directory_removed_after_upload_failure(storage, monkeypatch):
    created: list[Path] = []
    real_tempdir = tempfile.TemporaryDirectory

    def _tracking_tempdir(*args, **kwargs):
        tmp = real_tempdir(*args, **kwargs)
        created.append(Path(tmp.name))
        return tmp

    monkeypatch.setattr("app.services.pdf_rasterizer.tempfile.TemporaryDirectory", _tracking_tempdir)
    storage.put.side_effect = StorageError("Storage upload failed (500): disk full", status_code=500)

    with pytest.raises(StorageError):
        await PdfRasterizer(storage).rasterize(_pdf(2))

    assert len(created) == 1
    assert not created[0].exists()


async def test_working_directory_removed_after_success(storage, monkeypatch):
    created: list[Path] = []
    real_tempdir = tempfile.TemporaryDirectory

    def _tracking_tempdir(*args, **kwargs):
        tmp = real_tempdir(*args, **kwargs)
        created.append(Path(tmp.name))
        return tmp

    monkeypatch.setattr("app.services.pdf_rasterizer.tempfile.TemporaryDirectory", _tracking_tempdir)

    await PdfRasterizer(storage).rasterize(_pdf(1))

    assert not created[0].exists()
