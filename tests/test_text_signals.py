import pytest

from services import text_signals


def test_amenities_from_description():
    flags = text_signals.parse_amenities("Lovely flat with a Roof Terrace, 24hr concierge and lift. Unfurnished.")
    assert flags["has_roof_terrace"] == 1
    assert flags["has_terrace"] == 0
    assert flags["has_porter"] == 1
    assert flags["has_lift"] == 1
    assert flags["has_furnished"] == 0
    assert flags["has_gym"] == 0


@pytest.mark.parametrize("text", ["", None])
def test_amenities_without_text_are_zero(text):
    flags = text_signals.parse_amenities(text)
    assert len(flags) == 15
    assert not any(flags.values())


@pytest.mark.parametrize("description, expected", [
    ("Available unfurnished", {"furnished": 0, "unfurnished": 1, "part_furnished": 0}),
    ("Offered part-furnished", {"furnished": 0, "unfurnished": 0, "part_furnished": 1}),
    ("Fully furnished", {"furnished": 1, "unfurnished": 0, "part_furnished": 0}),
    ("", {"furnished": 0, "unfurnished": 0, "part_furnished": 0}),
])
def test_furnished_status(description, expected):
    assert text_signals.detect_furnished_status(description) == expected


def test_agent_and_source():
    assert text_signals.is_premium_agent("Knight Frank Chelsea", "") == 1
    assert text_signals.is_premium_agent("", "https://www.savills.com/x") == 1
    assert text_signals.is_premium_agent("Local Lettings", "https://rightmove.co.uk") == 0
    assert text_signals.source_quality("https://www.knightfrank.co.uk/p/1") == 4
    assert text_signals.source_quality("https://www.foxtons.co.uk/p/1") == 2
    assert text_signals.source_quality("https://example.com") == 1
    assert text_signals.source_quality("") == 1


def test_short_let_and_refurb():
    assert text_signals.is_short_let("Serviced apartment in Mayfair", "") == 1
    assert text_signals.is_short_let("", "https://x.com/short-let/123") == 1
    assert text_signals.is_short_let("Long let", "") == 0
    assert text_signals.has_refurb_keywords("Newly Renovated throughout") == 1


def test_address_prestige():
    address = "Flat 4, 12 Belgrave Square, London SW1X"
    garden = text_signals.is_garden_square(address)
    ultra = text_signals.is_ultra_prime_address(address)
    prime = text_signals.is_prime_street(address)
    assert (garden, ultra, prime) == (1, 1, 0)
    assert text_signals.address_prestige(garden, ultra, prime) == 5
    assert text_signals.address_prestige(1, 1, 1) == 6
    assert text_signals.address_prestige(0, 0, 0) == 0


def test_flat_position_from_address():
    assert text_signals.is_garden_flat("Garden Flat, 3 Oakley Street") == 1
    assert text_signals.is_basement_flat("Basement Apartment, 9 Elm Park") == 1
    assert text_signals.is_basement_flat("") == 0


def test_social_housing_by_estate_name():
    assert text_signals.is_social_housing("World's End Estate, SW10", None, "SW10") == 1
    assert text_signals.is_social_housing("Trellick Tower, Golborne Road", 10.0, "W10") == 1


def test_social_housing_by_price_per_sqft():
    assert text_signals.is_social_housing("", 3.0, "SW3") == 1
    assert text_signals.is_social_housing("", 3.0, "E14") == 0
    assert text_signals.is_social_housing("", 5.0, "SW3") == 0
    assert text_signals.is_social_housing("", None, "SW3") == 0


def test_ocr_normalization():
    assert text_signals.normalize_ocr_text("Ground Flocr") == "Ground floor"
    assert text_signals.normalize_ocr_text(None) == ""


def test_exclusion_lines_are_dropped():
    text = "Ground Floor\nExcluding Basement\nFirst Floor"
    assert text_signals.filter_exclusion_lines(text) == "Ground Floor\nFirst Floor"


def test_floors_two_storeys():
    floors = text_signals.extract_floors("Ground Floor\nFirst Floor\nApprox 1,200 sq ft")
    assert floors["has_ground"] == 1
    assert floors["has_first_floor"] == 1
    assert floors["has_basement"] == 0
    assert floors["floor_count"] == 2
    assert floors["is_multi_floor"] == 1


def test_lower_ground_is_not_ground():
    floors = text_signals.extract_floors("Lower Ground Floor\nFirst Floor")
    assert floors["has_basement"] == 1
    assert floors["has_ground"] == 0
    assert floors["has_first_floor"] == 1
    assert floors["floor_count"] == 2
    assert floors["floors_detected"] == ["lower_ground", "first"]


def test_excluded_basement_is_not_counted():
    floors = text_signals.extract_floors("Ground Floor\nTotal area excluding basement storage")
    assert floors["has_basement"] == 0
    assert floors["floor_count"] == 1
    assert floors["is_multi_floor"] == 0


def test_upper_floors_collapse():
    floors = text_signals.extract_floors("Sixth Floor\nPenthouse level\nRoof Terrace")
    assert floors["has_fourth_plus"] == 1
    assert floors["has_roof_terrace"] == 1
    # sixth and penthouse are separate floors; the roof terrace is not
    assert floors["floor_count"] == 2


@pytest.mark.parametrize("text", ["", None])
def test_no_transcript_no_floors(text):
    floors = text_signals.extract_floors(text)
    assert floors["floor_count"] == 0
    assert floors["is_multi_floor"] == 0
    assert floors["floors_detected"] == []


@pytest.mark.parametrize("text", ["Lower  Ground Floor\nFirst Floor", "Lower\tGround Floor\nFirst Floor"])
def test_lower_ground_with_extra_whitespace(text):
    floors = text_signals.extract_floors(text)
    assert floors["has_basement"] == 1
    assert floors["has_ground"] == 0
    assert floors["floor_count"] == 2
    assert floors["floors_detected"] == ["lower_ground", "first"]


def test_excluded_basement_line():
    floors = text_signals.extract_floors("Excluding basement\nFirst Floor")
    assert floors["has_basement"] == 0
    assert floors["has_first_floor"] == 1
    assert floors["floor_count"] == 1
