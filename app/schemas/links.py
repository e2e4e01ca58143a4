from enum import StrEnum

from pydantic import BaseModel

from app.schemas.fetch import FetchMethod


class LinkSource(StrEnum):
    listing = "listing"
    detail = "detail"


class DetailLink(BaseModel):
    url: str
    title: str | None = None


class DocumentLink(BaseModel):
    url: str
    text: str | None = None
    source: LinkSource = LinkSource.detail
    owner_detail_id: str | None = None  # trailing segment of the detail page URL


class ScrapedDetailPage(BaseModel):
    url: str
    html: str
    title: str | None = None


class ListingScrape(BaseModel):
    listing_html: str
    listing_method: FetchMethod
    detail_pages: list[ScrapedDetailPage] = []
    combined_content: str
