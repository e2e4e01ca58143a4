from pydantic import BaseModel


class TourRecord(BaseModel):
    title: str
    destination: str = ""
    days: int = 0
    nights: int = 0
    price: float = 0.0
    departure_date: str = ""  # YYYY-MM-DD when known
    highlights: list[str] = []
    itinerary: str = ""
    inclusions: str = ""
    exclusions: str = ""
    hotels: str = ""
    meals: str = ""
    phone: str = ""
    whatsapp: str = ""
    image_url: str = ""
