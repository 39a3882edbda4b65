"""
Closed vocabularies for postcode districts and property types.

These tables are frozen to the training run of the deployed model. Districts
and types outside them are not errors: they fall through to the documented
defaults (no one-hot flag, default frequency, type_flat).
"""
import re
from typing import Dict, Optional, Tuple

DEFAULT_DISTRICT = "SW3"

POSTCODE_DISTRICT_RE = re.compile(r"^([A-Z]{1,2}[0-9]{1,2}[A-Z]?)$")
POSTCODE_AREA_RE = re.compile(r"^([A-Z]+)", re.IGNORECASE)

# Prime Central London
PRIME_POSTCODES: Tuple[str, ...] = ("SW1", "SW3", "SW7", "SW10", "W1", "W8", "W11", "NW3", "NW8")

POSTCODE_FEATURES: Tuple[str, ...] = (
    "pc_SW3", "pc_SW7", "pc_W8", "pc_W2", "pc_SW5", "pc_SW11", "pc_SW10",
    "pc_NW8", "pc_W11", "pc_SW1X", "pc_NW3", "pc_SW1W", "pc_W14", "pc_NW1", "pc_W10",
)

POSTCODE_FREQ: Dict[str, float] = {
    "SW3": 0.074, "SW7": 0.068, "W8": 0.055, "W2": 0.052, "SW5": 0.048,
    "SW11": 0.045, "SW10": 0.044, "NW8": 0.042, "W11": 0.041, "SW1X": 0.038,
    "NW3": 0.036, "SW1W": 0.034, "W14": 0.032, "NW1": 0.030, "W10": 0.028,
    "SW6": 0.025, "W1": 0.024, "SW1": 0.022, "EC1": 0.020, "WC1": 0.018,
    "default": 0.015,
}

POSTCODE_AREA_FREQ: Dict[str, float] = {
    "SW": 0.44, "W": 0.28, "NW": 0.15, "EC": 0.04, "WC": 0.03,
    "E": 0.02, "SE": 0.02, "N": 0.01, "default": 0.01,
}

# Districts with 100+ training listings
WELL_COVERED_POSTCODES: Tuple[str, ...] = (
    "SW1", "SW1A", "SW1E", "SW1H", "SW1P", "SW1V", "SW1W", "SW1X", "SW1Y",
    "SW3", "SW5", "SW6", "SW7", "SW10", "SW11",
    "W1", "W1B", "W1C", "W1D", "W1F", "W1G", "W1H", "W1J", "W1K", "W1S", "W1T", "W1U", "W1W",
    "W2", "W8", "W11",
    "NW1", "NW3", "NW8",
)

PROPERTY_TYPE_FEATURES: Tuple[str, ...] = (
    "type_apartment", "type_detached", "type_duplex",
    "type_end of terrace", "type_flat", "type_ground flat",
    "type_house", "type_house boat", "type_house of multiple occupation",
    "type_house share", "type_link detached house", "type_long let",
    "type_maisonette", "type_mews", "type_not specified", "type_parking",
    "type_penthouse", "type_semi-detached", "type_studio",
    "type_terraced", "type_town house",
)

# First match wins. Longer phrases must stay ahead of the words they contain
# ("penthouse" before "house", "end of terrace" before "terraced").
PROPERTY_TYPE_PATTERNS: Tuple[Tuple[str, str], ...] = (
    ("house of multiple occupation", "type_house of multiple occupation"),
    ("link detached house", "type_link detached house"),
    ("link detached", "type_link detached house"),
    ("ground floor flat", "type_ground flat"),
    ("ground flat", "type_ground flat"),
    ("end of terrace", "type_end of terrace"),
    ("semi-detached", "type_semi-detached"),
    ("house share", "type_house share"),
    ("house boat", "type_house boat"),
    ("houseboat", "type_house boat"),
    ("town house", "type_town house"),
    ("townhouse", "type_town house"),
    ("long let", "type_long let"),
    ("penthouse", "type_penthouse"),
    ("maisonette", "type_maisonette"),
    ("terraced", "type_terraced"),
    ("detached", "type_detached"),
    ("apartment", "type_apartment"),
    ("studio", "type_studio"),
    ("duplex", "type_duplex"),
    ("parking", "type_parking"),
    ("mews", "type_mews"),
    ("flat", "type_flat"),
    ("house", "type_house"),
)

PROPERTY_TYPE_NUM: Dict[str, int] = {
    "studio": 0, "flat": 1, "apartment": 1, "maisonette": 2,
    "house": 3, "penthouse": 4, "townhouse": 3, "town house": 3,
}

# Mews are priced separately and deliberately absent here
HOUSE_TYPES: Tuple[str, ...] = (
    "house", "terraced", "detached", "semi-detached", "town house",
    "cottage", "end of terrace", "link detached",
)
FLAT_TYPES: Tuple[str, ...] = (
    "flat", "apartment", "studio", "penthouse", "maisonette", "duplex", "ground flat",
)


def extract_postcode_district(postcode: Optional[str]) -> str:
    """
    Extract the district (outward code) from a postcode, e.g. "SW1X 7LY" -> "SW1X".
    Outward codes that don't look like a district are returned uppercased as-is.
    """
    if not postcode:
        return DEFAULT_DISTRICT
    outcode = postcode.split(" ")[0].upper()
    match = POSTCODE_DISTRICT_RE.match(outcode)
    return match.group(1) if match else outcode


def postcode_one_hot(district: str) -> Dict[str, int]:
    """One flag per known district; all zero for districts outside the list."""
    return {
        feature: int(district == feature[len("pc_"):])
        for feature in POSTCODE_FEATURES
    }


def postcode_frequency(district: str) -> float:
    return POSTCODE_FREQ.get(district, POSTCODE_FREQ["default"])


def postcode_area(district: str) -> str:
    match = POSTCODE_AREA_RE.match(district or "")
    return match.group(1).upper() if match else "SW"


def postcode_area_frequency(district: str) -> float:
    return POSTCODE_AREA_FREQ.get(postcode_area(district), POSTCODE_AREA_FREQ["default"])


def is_prime_postcode(district: str) -> int:
    return int(any(district.startswith(p) for p in PRIME_POSTCODES))


def has_good_coverage(district: Optional[str]) -> bool:
    """True if the district (or its parent district) had enough training listings."""
    if not district:
        return False
    district = district.upper().strip()
    if district in WELL_COVERED_POSTCODES:
        return True
    return any(district.startswith(covered) for covered in WELL_COVERED_POSTCODES)


def classify_property_type(property_type: Optional[str]) -> str:
    """Map free-text property type to its one-hot column name."""
    normalized = (property_type or "").lower().strip()
    for keyword, feature in PROPERTY_TYPE_PATTERNS:
        if keyword in normalized:
            return feature
    return "type_flat"


def property_type_one_hot(property_type: Optional[str]) -> Dict[str, int]:
    matched = classify_property_type(property_type)
    return {feature: int(feature == matched) for feature in PROPERTY_TYPE_FEATURES}


def property_type_num(property_type: Optional[str]) -> int:
    return PROPERTY_TYPE_NUM.get((property_type or "flat").lower(), 1)


def is_mews(property_type: Optional[str], address: Optional[str]) -> int:
    return int("mews" in (property_type or "").lower() or "mews" in (address or "").lower())


def is_house_type(property_type: Optional[str]) -> int:
    type_lower = (property_type or "").lower()
    if not type_lower or "mews" in type_lower:
        return 0
    return int(any(h in type_lower for h in HOUSE_TYPES))


def is_flat_type(property_type: Optional[str]) -> int:
    type_lower = (property_type or "").lower()
    return int(any(f in type_lower for f in FLAT_TYPES)) if type_lower else 0


def is_terraced(property_type: Optional[str]) -> int:
    type_lower = (property_type or "").lower()
    return int("terraced" in type_lower or "town house" in type_lower)


def is_houseboat(property_type: Optional[str]) -> int:
    return int("house boat" in (property_type or "").lower())


def is_duplex_maisonette(property_type: Optional[str]) -> int:
    type_lower = (property_type or "").lower()
    return int("duplex" in type_lower or "maisonette" in type_lower)


def is_penthouse(property_type: Optional[str], address: Optional[str]) -> int:
    return int((property_type or "").lower() == "penthouse" or "penthouse" in (address or "").lower())
