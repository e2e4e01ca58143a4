from app.mappers.tour_records import apply_contact, sanitize_tour, validate_tour_data
from app.schemas.contact import ContactInfo
from app.schemas.tours import TourRecord


def test_drops_items_without_title():
    data = [
        {"title": "Kyoto Autumn", "days": 5},
        {"title": "   "},
        {"destination": "Osaka"},
        "not a dict",
        {"title": 42},
    ]
    tours = validate_tour_data(data)

    assert [t.title for t in tours] == ["Kyoto Autumn"]


def test_accepts_tours_envelope_and_single_object():
    assert [t.title for t in validate_tour_data({"tours": [{"title": "A"}]})] == ["A"]
    assert [t.title for t in validate_tour_data({"title": "B"})] == ["B"]


def test_non_collection_returns_empty():
    assert validate_tour_data("Kyoto") == []
    assert validate_tour_data(None) == []


def test_coerces_numbers_from_strings():
    tour = sanitize_tour({"title": "Hokkaido", "days": "6天", "nights": "5 nights", "price": "HK$12,999起"})

    assert tour.days == 6
    assert tour.nights == 5
    assert tour.price == 12999.0


def test_invalid_numbers_default_to_zero():
    tour = sanitize_tour({"title": "X", "days": "several", "nights": True, "price": "TBC"})

    assert tour.days == 0
    assert tour.nights == 0
    assert tour.price == 0.0


def test_text_fields_default_to_empty_string():
    tour = sanitize_tour({"title": " Seoul ", "destination": None, "hotels": ["Lotte", "Shilla"]})

    assert tour.title == "Seoul"
    assert tour.destination == ""
    assert tour.hotels == "Lotte\nShilla"
    assert tour.itinerary == ""


def test_highlights_normalized_to_list():
    assert sanitize_tour({"title": "A", "highlights": "Night market"}).highlights == ["Night market"]
    assert sanitize_tour({"title": "A", "highlights": ["Temple", "", None]}).highlights == ["Temple"]
    assert sanitize_tour({"title": "A", "highlights": 7}).highlights == []


def test_accepts_camel_case_keys():
    tour = sanitize_tour({
        "title": "Taipei",
        "departureDate": "2024-12-20",
        "imageUrl": "https://agency.test/taipei.jpg",
    })

    assert tour.departure_date == "2024-12-20"
    assert tour.image_url == "https://agency.test/taipei.jpg"


def test_apply_contact_fills_only_empty_fields():
    tour = TourRecord(title="Bali", phone="21234567")
    contact = ContactInfo(whatsapp="+85291234567", phone="29998888")

    updated = apply_contact(tour, contact)

    assert updated.phone == "21234567"
    assert updated.whatsapp == "+85291234567"


def test_apply_contact_without_numbers_is_noop():
    tour = TourRecord(title="Bali")
    assert apply_contact(tour, ContactInfo()) is tour


def test_oversized_numbers_default_to_zero():
    tours = validate_tour_data([
        {"title": "A", "days": "9" * 5000, "nights": "8" * 5000, "price": "9" * 400},
        {"title": "B", "price": 10 ** 400},
    ])

    assert [(t.days, t.nights, t.price) for t in tours] == [(0, 0, 0.0), (0, 0, 0.0)]


def test_non_finite_prices_default_to_zero():
    assert sanitize_tour({"title": "A", "price": float("inf")}).price == 0.0
    assert sanitize_tour({"title": "A", "price": float("nan")}).price == 0.0
