import logging

from app.mappers.json_repair import parse_json_with_fallback
from app.mappers.tour_records import validate_tour_data
from app.schemas.tours import TourRecord
from app.services.llm import LLMService

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = """You are a tour information extraction assistant. Extract tour package \
information from content in various formats (HTML text, PDF text, OCR text) and return structured JSON.

IMPORTANT:
- The content may come from OCR, so formatting can be imperfect
- Look for tour information even if the text structure is messy
- Be flexible with date and number formats
- Contact information (WhatsApp, phone) may appear anywhere in the content

For each tour found, extract:
- title: tour title/name (required)
- destination: destination country/city
- days: number of days (integer)
- nights: number of nights (integer)
- price: price in HKD (number only, no currency symbol)
- departureDate: departure date as YYYY-MM-DD, or empty string
- highlights: list of highlights, key attractions and special activities
- itinerary: day-by-day itinerary
- inclusions: what the price includes (flights, hotels, meals, tickets...)
- exclusions: what the price does not include (visa fees, tips, optional activities...)
- hotels: hotel arrangements (names, star ratings, locations)
- meals: meal arrangements
- imageUrl: image URL, or empty string
- whatsapp: WhatsApp contact number, or empty string
- phone: phone contact number, or empty string

Use empty strings for text you cannot find. Return ONLY a JSON array of tour \
objects, no markdown fences, no explanation. If no tours are found, return []."""


class TourExtractionService:
    def __init__(self, llm: LLMService, max_content_chars: int = 50_000):
        self._llm = llm
        self._max_content_chars = max_content_chars

    async def extract(self, content: str, source_type: str) -> list[TourRecord]:
        """Ask the model for tour records and repair its output into validated records.

        Model call failures propagate; unparseable output yields no records.
        """
        raw = await self._llm.complete(
            _SYSTEM_PROMPT,
            f"Extract tour information from this content ({source_type}):\n\n"
            f"{content[:self._max_content_chars]}",
        )

        parsed = parse_json_with_fallback(raw)
        if parsed is None:
            logger.warning("Could not parse tour extraction output: %.500s", raw)
            return []

        tours = validate_tour_data(parsed)
        if not tours:
            logger.warning("No tours extracted from %s content", source_type)
        return tours
