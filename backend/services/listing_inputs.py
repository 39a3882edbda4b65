"""
Normalization of raw listing inputs before feature building:
asking price text, floor area from the floor-plan transcript, let type.
"""
import math
import re
from typing import Optional, Tuple
import logging

from services.features import DEFAULT_BEDROOMS
from services.schemas import PropertyAttributes

logger = logging.getLogger(__name__)

SQM_TO_SQFT = 10.764

PRICE_GBP_RE = re.compile(r"£([\d,]+(?:\.\d{2})?)")
PRICE_NUMBER_RE = re.compile(r"(\d{1,3}(?:,\d{3})*(?:\.\d{2})?)")
WEEKLY_RE = re.compile(r"pw|per\s*week|weekly", re.IGNORECASE)

SQFT_PATTERNS = (
    re.compile(r"(\d{1,4}(?:,\d{3})?)\s*(?:sq\.?\s*ft|sqft|square\s*feet)", re.IGNORECASE),
    re.compile(r"(\d{1,4}(?:,\d{3})?)\s*ft²", re.IGNORECASE),
    re.compile(r"total[:\s]+(\d{1,4}(?:,\d{3})?)\s*(?:sq\s*ft|sqft)", re.IGNORECASE),
    re.compile(r"approx[:\s]+(\d{1,4}(?:,\d{3})?)\s*(?:sq|ft)", re.IGNORECASE),
)
SQM_PATTERNS = (
    re.compile(r"(\d{1,4}(?:,\d{3})?)\s*(?:sq\.?\s*m|sqm|square\s*m|m²)", re.IGNORECASE),
    re.compile(r"(\d{1,4}(?:,\d{3})?)\s*m²", re.IGNORECASE),
    re.compile(r"total[:\s]+(\d{1,4}(?:,\d{3})?)\s*(?:sq\s*m|sqm|m)", re.IGNORECASE),
)
SQFT_RANGE = (100, 15000)
SQM_RANGE = (10, 1500)

# Typical London flat size by bedroom count (5 = 5+)
SQFT_BY_BEDROOMS = {0: 350, 1: 500, 2: 750, 3: 1000, 4: 1300, 5: 1600}
SQFT_ESTIMATE_DEFAULT = 500

SHORT_LET_PHRASES = (
    "short let", "short-let", "short term", "short-term",
    "serviced apartment", "serviced accommodation", "holiday let", "corporate let",
    "minimum 1 month", "minimum one month", "min 1 month",
)


def round_half_up(value: float) -> int:
    """Round halves toward +inf (2.5 -> 3, -2.5 -> -2); round() would give 2."""
    return int(math.floor(value + 0.5))


def parse_price(text: Optional[str]) -> Optional[int]:
    """
    Parse a monthly rent from portal price text.

    Only the first amount is used ("£500 pw (£2,166 pcm)" -> weekly 500).
    Weekly prices are converted to per calendar month.
    """
    if not text:
        return None

    match = PRICE_GBP_RE.search(text)
    if not match:
        # No £ sign; take the first number and look for a weekly marker anywhere
        match = PRICE_NUMBER_RE.search(text)
        if not match:
            return None
        weekly = bool(WEEKLY_RE.search(text))
    else:
        context_after = text[match.start():match.start() + 30]
        weekly = bool(WEEKLY_RE.search(context_after))

    try:
        price = float(match.group(1).replace(",", ""))
    except ValueError:
        return None
    if not math.isfinite(price) or price <= 0:
        return None

    if weekly:
        return round_half_up(price * 52 / 12)
    return round_half_up(price)


def _first_in_range(text: str, patterns, low: int, high: int) -> Optional[int]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            value = int(match.group(1).replace(",", ""))
            if low <= value <= high:
                return value
    return None


def extract_sqft_from_transcript(text: Optional[str]) -> Optional[int]:
    """
    Floor area from a floor-plan transcript. Square-foot figures win over
    square-metre ones; implausible values are ignored.
    """
    if not text:
        return None

    sqft = _first_in_range(text, SQFT_PATTERNS, *SQFT_RANGE)
    if sqft is not None:
        logger.debug(f"Found sqft via OCR: {sqft}")
        return sqft

    sqm = _first_in_range(text, SQM_PATTERNS, *SQM_RANGE)
    if sqm is not None:
        sqft = round_half_up(sqm * SQM_TO_SQFT)
        logger.debug(f"Found sqm via OCR: {sqm} -> sqft: {sqft}")
        return sqft

    return None


def estimate_sqft(bedrooms: Optional[int]) -> int:
    if bedrooms is None or bedrooms < 0:
        return SQFT_ESTIMATE_DEFAULT
    return SQFT_BY_BEDROOMS.get(min(bedrooms, 5), SQFT_ESTIMATE_DEFAULT)


def resolve_size(attributes: PropertyAttributes) -> Tuple[float, str]:
    """
    Floor area to use and where it came from.

    Returns:
        (sqft, source) with source "page" (listing gave it), "ocr"
        (read from the floor plan) or "estimated" (from bedrooms)
    """
    if attributes.size_sqft:
        return float(attributes.size_sqft), "page"

    ocr_sqft = extract_sqft_from_transcript(attributes.ocr_text)
    if ocr_sqft:
        return float(ocr_sqft), "ocr"

    # 0 bedrooms reads as missing, as in build_features
    return float(estimate_sqft(attributes.bedrooms or DEFAULT_BEDROOMS)), "estimated"


def detect_let_type(description: Optional[str], page_url: Optional[str]) -> str:
    """'short' for short-term, serviced or holiday lets, otherwise 'long'."""
    text = (description or "").lower()
    if any(phrase in text for phrase in SHORT_LET_PHRASES):
        return "short"

    url_lower = (page_url or "").lower()
    if "short-let" in url_lower or "short_let" in url_lower:
        return "short"

    return "long"
