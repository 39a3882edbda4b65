"""
Keyword and regex signals from listing text.

Every detector is case-insensitive and tolerant of missing text: absent input
yields 0 flags, never an exception.
"""
import re
from typing import Dict, List, Optional, Pattern, Tuple
import logging

logger = logging.getLogger(__name__)

# Amenity flag -> (keywords that set it, keywords that veto it)
AMENITY_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...], Tuple[str, ...]], ...] = (
    ("has_balcony", ("balcony",), ()),
    ("has_terrace", ("terrace",), ("roof terrace",)),
    ("has_roof_terrace", ("roof terrace",), ()),
    ("has_garden", ("garden",), ()),
    ("has_porter", ("porter", "concierge"), ()),
    ("has_gym", ("gym", "fitness"), ()),
    ("has_pool", ("pool", "swimming"), ()),
    ("has_parking", ("parking", "garage"), ()),
    ("has_lift", ("lift", "elevator"), ()),
    ("has_ac", ("air con", "a/c", "air-con", "aircon"), ()),
    ("has_high_ceilings", ("high ceiling",), ()),
    ("has_view", ("view",), ()),
    ("has_modern", ("modern", "contemporary"), ()),
    ("has_period", ("period", "victorian", "georgian"), ()),
    ("has_furnished", ("furnished",), ("unfurnished",)),
)

PREMIUM_AGENTS: Tuple[str, ...] = (
    "knight frank", "savills", "harrods", "sotheby", "beauchamp", "strutt",
    "chestertons", "carter jonas", "hamptons", "winkworth", "marsh",
)

# Data completeness of each source, not price level. Checked in order.
SOURCE_QUALITY: Tuple[Tuple[str, int], ...] = (
    ("savills", 4),
    ("knightfrank", 4),
    ("knight frank", 4),
    ("chestertons", 3),
    ("foxtons", 2),
    ("rightmove", 1),
    ("zoopla", 1),
)
DEFAULT_SOURCE_QUALITY = 1

SHORT_LET_KEYWORDS: Tuple[str, ...] = (
    "short let", "short-let", "holiday let", "serviced apartment", "corporate let",
)

REFURB_KEYWORDS: Tuple[str, ...] = (
    "refurbished", "newly decorated", "newly renovated",
    "brand new", "just completed", "newly fitted",
)

GARDEN_SQUARES: Tuple[str, ...] = (
    "cadogan square", "belgrave square", "chester square", "eaton square",
    "montpelier square", "brompton square", "thurloe square", "lowndes square",
    "trevor square", "lennox gardens", "cadogan gardens", "sloane square",
    "paultons square", "chelsea square", "onslow square", "pelham crescent",
    "egerton crescent", "egerton gardens", "ovington square",
)

ULTRA_PRIME_ADDRESSES: Tuple[str, ...] = (
    "belgrave square", "chester square", "eaton square", "wilton crescent",
    "grosvenor square", "grosvenor crescent", "upper grosvenor street",
    "park lane", "hamilton terrace", "avenue road", "bishops avenue",
)

PRIME_STREETS: Tuple[str, ...] = (
    "cadogan square", "cadogan place", "cadogan gardens", "hans place",
    "lennox gardens", "pont street", "sloane street", "draycott place",
    "draycott avenue", "eaton place", "eaton terrace", "montpelier street",
    "brompton square", "thurloe square", "ennismore gardens", "princes gate",
    "hyde park gate", "kensington palace gardens", "palace gardens terrace",
    "campden hill", "holland park", "phillimore gardens", "carlyle square",
    "cheyne walk", "the boltons", "tregunter road", "elm park gardens",
)

SOCIAL_ESTATE_PATTERNS: Tuple[Pattern, ...] = tuple(re.compile(p, re.IGNORECASE) for p in (
    r"world'?s?\s*end\s*estate", r"townshend\s*estate", r"hallfield\s*estate",
    r"churchill\s*gardens", r"ebury\s*bridge", r"peabody",
    r"trellick\s*tower", r"lancaster\s*west", r"silchester",
    r"lisson\s*grove", r"penfold\s*place", r"mallory\s*street",
))

# Districts where a very low £/sqft points to a social tenancy
PREMIUM_POSTCODES_SOCIAL: Tuple[str, ...] = ("SW1", "SW3", "SW7", "W1", "W8", "NW8")
SOCIAL_HOUSING_PPSF_MAX = 3.5

# Tesseract misreads seen on agents' floor plans
OCR_SUBSTITUTIONS: Tuple[Tuple[Pattern, str], ...] = (
    (re.compile(r"\bflocr\b", re.IGNORECASE), "floor"),
    (re.compile(r"\bfioor\b", re.IGNORECASE), "floor"),
    (re.compile(r"\bFloor\s*Flan\b", re.IGNORECASE), "Floor Plan"),
    (re.compile(r"\b2nth\b", re.IGNORECASE), "2nd"),
    (re.compile(r"\b17th\s*Flocr\b", re.IGNORECASE), "17th Floor"),
)

# Lines like "Excluding basement" or "Reduced headroom" describe what the
# area total leaves out, not the floors of the property
EXCLUSION_LINE_RE = re.compile(r"(?:excluding|exclude|not\s+included|reduced\s+headroom)", re.IGNORECASE)

# Runs of spaces or tabs inside a line; OCR often doubles them
INLINE_WHITESPACE_RE = re.compile(r"[ \t]+")


def _floor_patterns(*patterns: str) -> Tuple[Pattern, ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


FLOOR_PATTERNS: Tuple[Tuple[str, Tuple[Pattern, ...]], ...] = (
    ("basement", _floor_patterns(r"basement", r"cellar")),
    ("lower_ground", _floor_patterns(r"lower\s*ground\s*(?:floor)?", r"lgf\b", r"lower\s*level")),
    # "lower ground" is its own floor
    ("ground", _floor_patterns(
        r"(?<!lower )(?<!lower)ground\s*(?:floor)?", r"\bgf\b", r"street\s*level",
        r"raised\s*ground\s*(?:floor)?",
    )),
    ("mezzanine", _floor_patterns(r"mezzanine", r"mezz\b")),
    ("first", _floor_patterns(r"first\s*(?:floor)?", r"1st\s*(?:floor)?")),
    ("second", _floor_patterns(r"second\s*(?:floor)?", r"2nd\s*(?:floor)?")),
    ("third", _floor_patterns(r"third\s*(?:floor)?", r"3rd\s*(?:floor)?")),
    ("fourth", _floor_patterns(r"fourth\s*(?:floor)?", r"4th\s*(?:floor)?")),
    ("fifth", _floor_patterns(r"fifth\s*(?:floor)?", r"5th\s*(?:floor)?")),
    ("sixth", _floor_patterns(r"sixth\s*(?:floor)?", r"6th\s*(?:floor)?")),
    ("seventh", _floor_patterns(r"seventh\s*(?:floor)?", r"7th\s*(?:floor)?")),
    ("eighth", _floor_patterns(r"eighth\s*(?:floor)?", r"8th\s*(?:floor)?")),
    ("ninth", _floor_patterns(r"ninth\s*(?:floor)?", r"9th\s*(?:floor)?")),
    ("tenth", _floor_patterns(r"tenth\s*(?:floor)?", r"10th\s*(?:floor)?")),
    ("penthouse", _floor_patterns(r"penthouse")),
    ("roof_terrace", _floor_patterns(r"roof\s*terrace", r"rooftop")),
)

FOURTH_PLUS_FLOORS = ("fourth", "fifth", "sixth", "seventh", "eighth", "ninth", "tenth", "penthouse")
MAIN_FLOORS = (
    "basement", "lower_ground", "ground", "mezzanine", "first", "second", "third",
) + FOURTH_PLUS_FLOORS


def _contains_any(text: str, keywords: Tuple[str, ...]) -> bool:
    return any(kw in text for kw in keywords)


def parse_amenities(text: Optional[str]) -> Dict[str, int]:
    """Amenity flags from free text; all zero when there is no text."""
    t = (text or "").lower()
    return {
        name: int(_contains_any(t, include) and not _contains_any(t, exclude))
        for name, include, exclude in AMENITY_KEYWORDS
    }


def detect_furnished_status(description: Optional[str]) -> Dict[str, int]:
    """
    Furnished state from the description. "unfurnished" contains "furnished",
    so the more specific phrases are checked first.
    """
    desc = (description or "").lower()
    status = {"furnished": 0, "unfurnished": 0, "part_furnished": 0}
    if "unfurnished" in desc:
        status["unfurnished"] = 1
    elif "part furnished" in desc or "part-furnished" in desc:
        status["part_furnished"] = 1
    elif "furnished" in desc:
        status["furnished"] = 1
    return status


def is_premium_agent(agent_name: Optional[str], page_url: Optional[str]) -> int:
    combined = f"{agent_name or ''} {page_url or ''}".lower()
    return int(_contains_any(combined, PREMIUM_AGENTS))


def source_quality(page_url: Optional[str]) -> int:
    """Quality tier of the listing source, by host name fragment."""
    if not page_url:
        return DEFAULT_SOURCE_QUALITY
    url_lower = page_url.lower()
    for source, quality in SOURCE_QUALITY:
        if source.replace(" ", "") in url_lower:
            return quality
    return DEFAULT_SOURCE_QUALITY


def is_short_let(description: Optional[str], page_url: Optional[str]) -> int:
    combined = f"{description or ''} {page_url or ''}".lower()
    return int(_contains_any(combined, SHORT_LET_KEYWORDS))


def has_refurb_keywords(description: Optional[str]) -> int:
    return int(_contains_any((description or "").lower(), REFURB_KEYWORDS))


def is_garden_square(address: Optional[str]) -> int:
    return int(_contains_any((address or "").lower(), GARDEN_SQUARES))


def is_ultra_prime_address(address: Optional[str]) -> int:
    return int(_contains_any((address or "").lower(), ULTRA_PRIME_ADDRESSES))


def is_prime_street(address: Optional[str]) -> int:
    return int(_contains_any((address or "").lower(), PRIME_STREETS))


def address_prestige(garden_square: int, ultra_prime: int, prime_street: int) -> int:
    """0-6 composite; an address can hit more than one list."""
    return ultra_prime * 3 + garden_square * 2 + prime_street


def is_garden_flat(address: Optional[str]) -> int:
    return int("garden flat" in (address or "").lower())


def is_basement_flat(address: Optional[str]) -> int:
    addr_lower = (address or "").lower()
    return int("basement flat" in addr_lower or "basement apartment" in addr_lower)


def is_social_housing(address: Optional[str], ppsf: Optional[float], postcode_district: str) -> int:
    """
    Two independent triggers:
    - the address names a known council/housing-association estate
    - a prime district with rent under 3.5/sqft, which the open market never asks
    """
    addr_lower = (address or "").lower()
    if addr_lower and any(p.search(addr_lower) for p in SOCIAL_ESTATE_PATTERNS):
        return 1
    if ppsf and ppsf < SOCIAL_HOUSING_PPSF_MAX:
        if any(postcode_district.startswith(p) for p in PREMIUM_POSTCODES_SOCIAL):
            return 1
    return 0


def normalize_ocr_text(text: Optional[str]) -> str:
    if not text:
        return ""
    for pattern, replacement in OCR_SUBSTITUTIONS:
        text = pattern.sub(replacement, text)
    return text


def filter_exclusion_lines(text: Optional[str]) -> str:
    if not text:
        return ""
    return "\n".join(line for line in text.split("\n") if not EXCLUSION_LINE_RE.search(line))


def classify_floors(text: Optional[str]) -> List[str]:
    """Canonical floor names found in the transcript, in FLOOR_PATTERNS order."""
    text_lower = filter_exclusion_lines(normalize_ocr_text(text)).lower()
    # Single spaces so the "lower ground" lookbehind on the ground patterns holds
    text_lower = INLINE_WHITESPACE_RE.sub(" ", text_lower)
    if not text_lower:
        return []
    return [
        canonical
        for canonical, patterns in FLOOR_PATTERNS
        if any(p.search(text_lower) for p in patterns)
    ]


def extract_floors(ocr_text: Optional[str]) -> Dict:
    """
    Floor flags from a floor-plan transcript.

    Lower ground counts as basement (below street level), mezzanine as first,
    fourth to tenth and penthouse collapse into has_fourth_plus.

    Returns:
        Dict with has_basement, has_ground, has_first_floor, has_second_floor,
        has_third_floor, has_fourth_plus, has_roof_terrace, floor_count,
        is_multi_floor and floors_detected (labels, for logging/debug).
    """
    found = set(classify_floors(ocr_text))
    detected: List[str] = []

    result = {
        "has_basement": 0,
        "has_ground": 0,
        "has_first_floor": 0,
        "has_second_floor": 0,
        "has_third_floor": 0,
        "has_fourth_plus": 0,
        "has_roof_terrace": 0,
        "floor_count": 0,
        "is_multi_floor": 0,
        "floors_detected": detected,
    }

    if "basement" in found or "lower_ground" in found:
        result["has_basement"] = 1
        detected.append("basement" if "basement" in found else "lower_ground")
    if "ground" in found:
        result["has_ground"] = 1
        detected.append("ground")
    if "first" in found or "mezzanine" in found:
        result["has_first_floor"] = 1
        detected.append("first")
    if "second" in found:
        result["has_second_floor"] = 1
        detected.append("second")
    if "third" in found:
        result["has_third_floor"] = 1
        detected.append("third")
    if any(f in found for f in FOURTH_PLUS_FLOORS):
        result["has_fourth_plus"] = 1
        detected.append("fourth+")
    if "roof_terrace" in found:
        result["has_roof_terrace"] = 1
        detected.append("roof_terrace")

    result["floor_count"] = sum(1 for f in MAIN_FLOORS if f in found)
    result["is_multi_floor"] = int(result["floor_count"] >= 2)

    logger.debug(
        "Floors extracted: %s, count=%d, multi=%d",
        ", ".join(detected) or "none", result["floor_count"], result["is_multi_floor"]
    )
    return result
