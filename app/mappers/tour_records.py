import logging
import math
import re
from typing import Any

from app.schemas.contact import ContactInfo
from app.schemas.tours import TourRecord

logger = logging.getLogger(__name__)

_LEADING_INT_RE = re.compile(r"^\s*([-+]?\d+)")
_NUMBER_RE = re.compile(r"[-+]?\d*\.?\d+")

# Model output mixes camelCase and snake_case keys
_ALIASES: dict[str, tuple[str, ...]] = {
    "departure_date": ("departure_date", "departureDate"),
    "image_url": ("image_url", "imageUrl"),
}

_TEXT_FIELDS = (
    "destination", "departure_date", "itinerary", "inclusions", "exclusions",
    "hotels", "meals", "phone", "whatsapp", "image_url",
)


def _get(item: dict, field: str) -> Any:
    for key in _ALIASES.get(field, (field,)):
        if key in item:
            return item[key]
    return None


def _to_str(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        return "\n".join(s for s in (_to_str(v) for v in value) if s)
    return ""


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, str):
        match = _LEADING_INT_RE.match(value)
        if not match:
            return 0
        try:
            return int(match.group(1))
        except ValueError:
            # exceeds the interpreter's int string-conversion limit
            return 0
    return 0


def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, int):
        try:
            return float(value)
        except OverflowError:
            return 0.0
    if isinstance(value, float):
        return value if math.isfinite(value) else 0.0
    if isinstance(value, str):
        match = _NUMBER_RE.search(value.replace(",", ""))
        if not match:
            return 0.0
        number = float(match.group(0))
        return number if math.isfinite(number) else 0.0
    return 0.0


def _to_list(value: Any) -> list[str]:
    if isinstance(value, list):
        return [s for s in (_to_str(v) for v in value) if s]
    if isinstance(value, str) and value.strip():
        return [value.strip()]
    return []


def _has_title(item: Any) -> bool:
    return (
        isinstance(item, dict)
        and isinstance(item.get("title"), str)
        and bool(item["title"].strip())
    )


def sanitize_tour(item: dict) -> TourRecord:
    fields: dict[str, Any] = {field: _to_str(_get(item, field)) for field in _TEXT_FIELDS}
    return TourRecord(
        title=item["title"].strip(),
        days=_to_int(item.get("days")),
        nights=_to_int(item.get("nights")),
        price=_to_float(item.get("price")),
        highlights=_to_list(item.get("highlights")),
        **fields,
    )


def validate_tour_data(data: Any) -> list[TourRecord]:
    """Keep items with a non-empty title and coerce every other field to a safe default."""
    if isinstance(data, dict):
        tours = data.get("tours")
        data = tours if isinstance(tours, list) else [data]
    if not isinstance(data, list):
        return []

    records = [sanitize_tour(item) for item in data if _has_title(item)]
    dropped = len(data) - len(records)
    if dropped:
        logger.info("Dropped %d candidate tour(s) without a title", dropped)
    return records


def apply_contact(tour: TourRecord, contact: ContactInfo) -> TourRecord:
    """Fill empty phone/whatsapp fields from page-level contact info."""
    updates = {
        field: value
        for field, value in (("phone", contact.phone), ("whatsapp", contact.whatsapp))
        if value and not getattr(tour, field)
    }
    return tour.model_copy(update=updates) if updates else tour
