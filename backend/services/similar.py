"""
Similar-listings finder using additive similarity scoring.
"""
from typing import Any, Dict, Iterable, List, Optional
import logging

from services.categorical import POSTCODE_AREA_RE, has_good_coverage

logger = logging.getLogger(__name__)

MIN_SCORE = 30.0


def price_score(listing_price: float, fair_value: float) -> Optional[float]:
    """0-40 points by relative price difference; None when more than 50% apart."""
    price_diff = abs(listing_price - fair_value) / fair_value
    if price_diff <= 0.1:
        return 40.0
    elif price_diff <= 0.2:
        return 30.0
    elif price_diff <= 0.3:
        return 20.0
    elif price_diff <= 0.5:
        return 10.0
    return None


def location_score(listing_district: str, district: str) -> float:
    """30 for the same district, 15 for the same postcode area, else 0."""
    if listing_district == district:
        return 30.0
    match = POSTCODE_AREA_RE.match(district or "")
    area = match.group(1).upper() if match else ""
    if listing_district and area and listing_district.startswith(area):
        return 15.0
    return 0.0


def beds_score(listing_beds: int, beds: int) -> float:
    beds_diff = abs(listing_beds - beds)
    if beds_diff == 0:
        return 15.0
    elif beds_diff == 1:
        return 8.0
    elif beds_diff == 2:
        return 3.0
    return 0.0


def baths_score(listing_baths: int, baths: int) -> float:
    baths_diff = abs(listing_baths - baths)
    if baths_diff == 0:
        return 10.0
    elif baths_diff == 1:
        return 5.0
    return 0.0


def amenities_score(listing_amenities: Iterable[str], amenities: Iterable[str]) -> float:
    """5 x Jaccard overlap of amenity names."""
    target = set(amenities or [])
    other = set(listing_amenities or [])
    if not target or not other:
        return 0.0
    return 5.0 * len(target & other) / len(target | other)


def find_similar(
    fair_value: float,
    postcode_district: str,
    beds: int,
    baths: int,
    amenities: Optional[List[str]],
    candidates: Iterable[Dict[str, Any]],
    limit: int = 3
) -> List[Dict[str, Any]]:
    """
    Rank candidate listings against a predicted property.

    Args:
        fair_value: Predicted monthly rent of the target
        postcode_district: Target district, e.g. "SW3"
        beds: Target bedrooms
        baths: Target bathrooms
        amenities: Target amenity names (without "has_")
        candidates: Listing dicts as returned by storage.listings_db.query_candidates
        limit: Maximum number of results

    Returns:
        Up to `limit` dicts (url, address, price, beds, baths, postcode, sqft, score),
        best first. Listings from sparsely covered districts are skipped.
    """
    if not fair_value or fair_value <= 0:
        return []

    scored = []
    for listing in candidates:
        listing_price = listing.get("price_pcm")
        if not listing_price:
            continue
        listing_district = listing.get("postcode_district") or ""
        if not has_good_coverage(listing_district):
            continue

        score = price_score(listing_price, fair_value)
        if score is None:
            continue

        listing_beds = listing.get("bedrooms") or 0
        listing_baths = listing.get("bathrooms") or 1

        score += location_score(listing_district, postcode_district)
        score += beds_score(listing_beds, beds)
        score += baths_score(listing_baths, baths)
        score += amenities_score(listing.get("amenities"), amenities)

        if score >= MIN_SCORE:
            scored.append({
                "url": listing.get("url"),
                "address": listing.get("address") or "Property",
                "price": listing_price,
                "beds": listing_beds,
                "baths": listing_baths,
                "postcode": listing_district,
                "sqft": listing.get("size_sqft"),
                "score": round(score * 10) / 10,
            })

    scored.sort(key=lambda x: x["score"], reverse=True)
    logger.info(f"Found {len(scored)} similar properties, returning top {limit}")
    return scored[:limit]
