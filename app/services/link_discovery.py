import asyncio
import logging
import re
from collections.abc import AsyncIterator, Callable
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from app.exceptions.custom import FetchError
from app.schemas.fetch import FetchResult
from app.schemas.links import DetailLink, DocumentLink, LinkSource, ListingScrape, ScrapedDetailPage
from app.services.fetcher import FetchService

logger = logging.getLogger(__name__)

# (raw href, visible label)
Candidate = tuple[str, str | None]

_SKIPPED_SCHEMES = ("javascript:", "mailto:", "tel:", "data:")

_DETAIL_PATH_PATTERNS = ("/tour/", "/product/", "/detail/", "/package/")
_CARD_SELECTOR = (
    '.tour-item a, .tour-card a, .product-item a, .package-item a, [class*="tour"] a'
)
_NON_DETAIL_MARKERS = ("/category", "/list")

_PDF_KEYWORDS = ("pdf", "download", "itinerary", "下載", "行程表", "詳細行程")
_ONCLICK_PDF_RE = re.compile(r"""['"]([^'"]*\.pdf[^'"]*)['"]""", re.IGNORECASE)
_PDF_DATA_ATTRS = ("data-pdf", "data-file", "data-url")


def is_pdf_url(url: str) -> bool:
    lower = url.lower()
    if ".pdf?" in lower or lower.endswith(".pdf"):
        return True
    try:
        return urlparse(lower).path.endswith(".pdf")
    except ValueError:
        return False


def _resolve(href: str, base_url: str) -> str | None:
    """Absolute http(s) URL without fragment, or None for unusable hrefs."""
    href = href.strip()
    if not href or href.startswith("#") or href.lower().startswith(_SKIPPED_SCHEMES):
        return None
    try:
        url, _fragment = urldefrag(urljoin(base_url, href))
        parsed = urlparse(url)
    except ValueError:
        logger.warning("Skipping malformed href %r on %s", href, base_url)
        return None
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return url


def _label(el: Tag) -> str | None:
    return el.get_text(" ", strip=True) or el.get("title") or None


def trailing_segment(url: str) -> str | None:
    path = urlparse(url).path.rstrip("/")
    return path.rsplit("/", 1)[-1] or None


# --- Detail-link heuristics ---


def _itinerary_anchors(soup: BeautifulSoup) -> list[Candidate]:
    return [
        (a["href"], _label(a))
        for a in soup.find_all("a", href=True)
        if "/itinerary/" in a["href"].lower()
    ]


def _path_pattern_anchors(soup: BeautifulSoup) -> list[Candidate]:
    return [
        (a["href"], _label(a))
        for a in soup.find_all("a", href=True)
        if any(pattern in a["href"] for pattern in _DETAIL_PATH_PATTERNS)
    ]


def _tour_card_anchors(soup: BeautifulSoup) -> list[Candidate]:
    return [(a["href"], _label(a)) for a in soup.select(_CARD_SELECTOR) if a.get("href")]


def _is_probable_detail(url: str) -> bool:
    return not url.endswith("/") and not any(marker in url for marker in _NON_DETAIL_MARKERS)


# (strategy, apply the broader non-detail filter)
_DETAIL_STRATEGIES: list[tuple[Callable[[BeautifulSoup], list[Candidate]], bool]] = [
    (_itinerary_anchors, False),
    (_path_pattern_anchors, False),
    (_tour_card_anchors, True),
]


def discover_detail_links(html: str, base_url: str, max_links: int = 10) -> list[DetailLink]:
    """Ordered, deduplicated detail-page links found on a listing page."""
    soup = BeautifulSoup(html, "html.parser")
    seen: set[str] = set()
    links: list[DetailLink] = []

    for strategy, filter_non_detail in _DETAIL_STRATEGIES:
        for href, title in strategy(soup):
            if len(links) >= max_links:
                return links
            url = _resolve(href, base_url)
            if url is None or url in seen:
                continue
            if filter_non_detail and not _is_probable_detail(url):
                continue
            seen.add(url)
            links.append(DetailLink(url=url, title=title))

    return links


# --- PDF-link heuristics ---


def _pdf_href_anchors(soup: BeautifulSoup) -> list[Candidate]:
    return [
        (a["href"], a.get_text(" ", strip=True) or None)
        for a in soup.find_all("a", href=True)
        if is_pdf_url(a["href"].strip())
    ]


def _pdf_keyword_anchors(soup: BeautifulSoup) -> list[Candidate]:
    candidates = []
    for a in soup.find_all("a", href=True):
        text = a.get_text(" ", strip=True)
        if "pdf" not in a["href"].lower():
            continue
        if any(keyword in text.lower() for keyword in _PDF_KEYWORDS):
            candidates.append((a["href"], text or None))
    return candidates


def _pdf_onclick_handlers(soup: BeautifulSoup) -> list[Candidate]:
    candidates = []
    for el in soup.find_all(onclick=True):
        match = _ONCLICK_PDF_RE.search(el["onclick"])
        if match:
            candidates.append((match.group(1), el.get_text(" ", strip=True) or None))
    return candidates


def _pdf_data_attributes(soup: BeautifulSoup) -> list[Candidate]:
    candidates = []
    for el in soup.select("[data-pdf], [data-file], [data-url]"):
        value = next((el[attr] for attr in _PDF_DATA_ATTRS if el.get(attr)), "")
        if ".pdf" in value.lower():
            candidates.append((value, el.get_text(" ", strip=True) or None))
    return candidates


_PDF_STRATEGIES: list[Callable[[BeautifulSoup], list[Candidate]]] = [
    _pdf_href_anchors,
    _pdf_keyword_anchors,
    _pdf_onclick_handlers,
    _pdf_data_attributes,
]


def search_pdf_links(
    html: str,
    base_url: str,
    source: LinkSource = LinkSource.detail,
    owner_detail_id: str | None = None,
) -> list[DocumentLink]:
    soup = BeautifulSoup(html, "html.parser")
    seen: set[str] = set()
    links: list[DocumentLink] = []

    for strategy in _PDF_STRATEGIES:
        for href, text in strategy(soup):
            url = _resolve(href, base_url)
            if url is None or url in seen:
                continue
            seen.add(url)
            links.append(
                DocumentLink(url=url, text=text, source=source, owner_detail_id=owner_detail_id)
            )

    return links


class LinkDiscoveryService:
    """Two-hop crawls over a listing page and its detail pages."""

    def __init__(self, fetcher: FetchService, detail_delay: float = 1.0, max_detail_pages: int = 10):
        self._fetcher = fetcher
        self._detail_delay = detail_delay
        self._max_detail_pages = max_detail_pages

    async def _visit_detail_pages(
        self, links: list[DetailLink]
    ) -> AsyncIterator[tuple[DetailLink, FetchResult]]:
        """Fetch detail pages one at a time, pausing between requests."""
        for index, link in enumerate(links):
            if index > 0:
                await asyncio.sleep(self._detail_delay)
            try:
                result = await self._fetcher.fetch(link.url)
            except FetchError as exc:
                logger.warning("Skipping detail page %s: %s", link.url, exc.message)
                continue
            yield link, result

    async def discover_pdfs_from_listing(
        self,
        listing_url: str,
        max_detail_pages: int | None = None,
        listing_html: str | None = None,
    ) -> list[DocumentLink]:
        if listing_html is None:
            listing_html = (await self._fetcher.fetch(listing_url)).html

        pdf_links = search_pdf_links(listing_html, listing_url, source=LinkSource.listing)
        if max_detail_pages is None:
            max_detail_pages = self._max_detail_pages
        detail_links = discover_detail_links(listing_html, listing_url, max_detail_pages)

        async for link, page in self._visit_detail_pages(detail_links):
            found = search_pdf_links(
                page.html,
                link.url,
                source=LinkSource.detail,
                owner_detail_id=trailing_segment(link.url),
            )
            logger.debug("Found %d PDF link(s) on %s", len(found), link.url)
            pdf_links.extend(found)

        logger.info(
            "Discovered %d PDF link(s) from %s (%d detail page(s) scanned)",
            len(pdf_links), listing_url, len(detail_links),
        )
        return pdf_links

    async def scrape_listing_with_details(
        self, listing_url: str, max_detail_pages: int = 5
    ) -> ListingScrape:
        listing = await self._fetcher.fetch(listing_url)
        detail_links = discover_detail_links(listing.html, listing_url, max_detail_pages)

        pages = [
            ScrapedDetailPage(url=link.url, html=page.html, title=link.title)
            async for link, page in self._visit_detail_pages(detail_links)
        ]

        sections = [f"=== LISTING PAGE ===\n{listing.html}\n\n"]
        sections.extend(
            f"=== DETAIL PAGE {index}: {page.url} ===\n{page.html}\n\n"
            for index, page in enumerate(pages, start=1)
        )
        return ListingScrape(
            listing_html=listing.html,
            listing_method=listing.method,
            detail_pages=pages,
            combined_content="".join(sections),
        )
