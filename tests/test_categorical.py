import pytest

from services import categorical


@pytest.mark.parametrize("postcode, district", [
    ("SW1X 7LY", "SW1X"),
    ("sw3 2ab", "SW3"),
    ("W8", "W8"),
    ("NW10 1AA", "NW10"),
    ("", "SW3"),
    (None, "SW3"),
    ("LONDON", "LONDON"),
])
def test_extract_postcode_district(postcode, district):
    assert categorical.extract_postcode_district(postcode) == district


@pytest.mark.parametrize("district", ["SW3", "W10", "SW1X", "E14", "ZZ9"])
def test_postcode_one_hot_has_at_most_one_flag(district):
    one_hot = categorical.postcode_one_hot(district)
    assert list(one_hot) == list(categorical.POSTCODE_FEATURES)
    expected = 1 if f"pc_{district}" in categorical.POSTCODE_FEATURES else 0
    assert sum(one_hot.values()) == expected


def test_postcode_frequencies():
    assert categorical.postcode_frequency("SW3") == 0.074
    assert categorical.postcode_frequency("E14") == 0.015
    assert categorical.postcode_area_frequency("NW8") == 0.15
    assert categorical.postcode_area_frequency("SE1") == 0.02
    assert categorical.postcode_area_frequency("BR1") == 0.01


def test_prime_postcode_uses_prefix():
    assert categorical.is_prime_postcode("SW1X") == 1
    assert categorical.is_prime_postcode("W1K") == 1
    assert categorical.is_prime_postcode("SW6") == 0
    # Prefix match, as at training time
    assert categorical.is_prime_postcode("W10") == 1


def test_good_coverage():
    assert categorical.has_good_coverage("sw3")
    assert categorical.has_good_coverage("W1K")
    assert categorical.has_good_coverage("SW1X")
    assert not categorical.has_good_coverage("E14")
    assert not categorical.has_good_coverage("")
    assert not categorical.has_good_coverage(None)


@pytest.mark.parametrize("text, feature", [
    ("End of Terrace House", "type_end of terrace"),
    ("Penthouse", "type_penthouse"),
    ("Semi-Detached House", "type_semi-detached"),
    ("Detached house", "type_detached"),
    ("Terraced house", "type_terraced"),
    ("Ground Floor Flat", "type_ground flat"),
    ("Houseboat", "type_house boat"),
    ("Mews House", "type_mews"),
    ("House", "type_house"),
    ("Apartment", "type_apartment"),
    ("Castle", "type_flat"),
    ("", "type_flat"),
    (None, "type_flat"),
])
def test_classify_property_type(text, feature):
    assert categorical.classify_property_type(text) == feature


@pytest.mark.parametrize("text", ["End of Terrace House", "Penthouse", "Castle", None])
def test_property_type_one_hot_exactly_one(text):
    one_hot = categorical.property_type_one_hot(text)
    assert list(one_hot) == list(categorical.PROPERTY_TYPE_FEATURES)
    assert sum(one_hot.values()) == 1


def test_property_type_num():
    assert categorical.property_type_num("Studio") == 0
    assert categorical.property_type_num("Town House") == 3
    assert categorical.property_type_num("Penthouse") == 4
    assert categorical.property_type_num("Castle") == 1
    assert categorical.property_type_num(None) == 1


def test_mews_is_not_a_house():
    assert categorical.is_mews("Mews House", "") == 1
    assert categorical.is_house_type("Mews House") == 0
    assert categorical.is_mews("House", "3 Kynance Mews") == 1
    assert categorical.is_house_type("Town House") == 1


def test_type_flags():
    assert categorical.is_flat_type("Ground Flat") == 1
    assert categorical.is_flat_type("") == 0
    assert categorical.is_terraced("Town House") == 1
    assert categorical.is_houseboat("House Boat") == 1
    assert categorical.is_duplex_maisonette("Maisonette") == 1
    assert categorical.is_penthouse("Flat", "Penthouse, 1 Hyde Park") == 1
    assert categorical.is_penthouse("Penthouse apartment", "") == 0
