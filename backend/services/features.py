"""
Feature engineering for the rent model.

build_features() must reproduce the training-time schema exactly: same names,
same defaults, same formulas. A drifted feature does not raise, it silently
moves the prediction, so any change here needs a retrained artifact and a
regenerated golden fixture (tests/fixtures/golden_features_sw3_flat.json).
"""
import math
from typing import Dict, List
import logging

from services import categorical, geo, text_signals
from services.schemas import PropertyAttributes

logger = logging.getLogger(__name__)

DEFAULT_BEDROOMS = 1
DEFAULT_BATHROOMS = 1
SQFT_PER_BEDROOM_DEFAULT = 450
DEFAULT_PROPERTY_TYPE = "flat"

# Training-set size quintile edges (sqft)
SIZE_QUINTILES = (0, 484, 635, 818, 1141, math.inf)

TINY_SQFT = 400
HUGE_SQFT = 3000
LARGE_HOUSE_SQFT = 2000


def size_bin(sqft: float) -> int:
    """Quintile index 0-4: the first bin whose upper edge exceeds sqft."""
    for i in range(len(SIZE_QUINTILES) - 1):
        if sqft < SIZE_QUINTILES[i + 1]:
            return i
    return len(SIZE_QUINTILES) - 2


def build_features(attributes: PropertyAttributes) -> Dict[str, float]:
    """
    Convert listing attributes into the named feature vector.

    Missing, zero or empty inputs fall back to defaults; nothing here raises
    for bad data. Names the model knows but this function does not emit are
    read as 0 by the evaluator.

    Args:
        attributes: Raw listing attributes

    Returns:
        Ordered dict of feature name -> value
    """
    beds = attributes.bedrooms or DEFAULT_BEDROOMS
    baths = attributes.bathrooms or DEFAULT_BATHROOMS
    sqft = attributes.size_sqft or beds * SQFT_PER_BEDROOM_DEFAULT
    district = categorical.extract_postcode_district(attributes.postcode or categorical.DEFAULT_DISTRICT)
    property_type = attributes.property_type or DEFAULT_PROPERTY_TYPE
    lat, lon = geo.resolve_coordinates(attributes.latitude, attributes.longitude)
    description = attributes.description or ""
    address = attributes.address or ""

    # Location
    tube_dist = geo.nearest_landmark_km(lat, lon)
    center_dist = geo.center_distance_km(lat, lon)
    center_inv = 1 / (1 + center_dist)
    is_prime = categorical.is_prime_postcode(district)

    # Amenities
    amenities = text_signals.parse_amenities(description)
    amenity_score = sum(amenities.values())
    has_outdoor = int(bool(
        amenities["has_balcony"] or amenities["has_terrace"]
        or amenities["has_garden"] or amenities["has_roof_terrace"]
    ))
    premium_amenity_count = (
        amenities["has_pool"] + amenities["has_porter"] + amenities["has_gym"] + amenities["has_ac"]
    )

    floors = text_signals.extract_floors(attributes.ocr_text)

    postcode_one_hot = categorical.postcode_one_hot(district)
    type_one_hot = categorical.property_type_one_hot(property_type)

    premium_agent = text_signals.is_premium_agent(attributes.agent_name, attributes.page_url)
    short_let = text_signals.is_short_let(description, attributes.page_url)

    # Address prestige
    garden_square = text_signals.is_garden_square(address)
    ultra_prime = text_signals.is_ultra_prime_address(address)
    prime_street = text_signals.is_prime_street(address)
    prestige = text_signals.address_prestige(garden_square, ultra_prime, prime_street)

    ppsf = attributes.price_pcm / sqft if attributes.price_pcm else None
    social_housing = text_signals.is_social_housing(address, ppsf, district)

    high_bathroom_count = int(baths >= 4)
    is_terraced = categorical.is_terraced(property_type)
    is_penthouse = categorical.is_penthouse(property_type, address)
    is_mews = categorical.is_mews(property_type, address)
    is_house = categorical.is_house_type(property_type)
    is_flat = categorical.is_flat_type(property_type)
    is_large_house = int(bool(is_house and sqft > LARGE_HOUSE_SQFT))

    furnished = text_signals.detect_furnished_status(description)
    is_furnished_explicit = furnished["furnished"]
    is_unfurnished = furnished["unfurnished"]

    # No floors on the plan is read as a single-storey property
    floor_count = floors["floor_count"] or 1
    log_sqft = math.log1p(sqft)
    beds_floor = max(beds, 0.5)

    logger.debug(
        "Features for %s: type=%s, prime=%d, premium_agent=%d, short_let=%d, prestige=%d, social=%d",
        district, categorical.classify_property_type(property_type), is_prime,
        premium_agent, short_let, prestige, social_housing
    )

    features: Dict[str, float] = {
        # Core
        "bedrooms": beds,
        "bathrooms": baths,
        "size_sqft": sqft,
        "size_per_bed": sqft / beds_floor,
        "bed_bath_interaction": beds * baths,
        "log_sqft": log_sqft,
        "sqrt_sqft": math.sqrt(sqft),
        "size_squared": sqft ** 2 / 100000,
        "beds_squared": beds ** 2,
        "size_bin": size_bin(sqft),

        # Size anomalies
        "is_tiny": int(sqft < TINY_SQFT),
        "is_huge": int(sqft >= HUGE_SQFT),

        # Bathrooms
        "bath_ratio": baths / beds_floor,
        "has_ensuite_each": int(baths / beds_floor >= 1),
        "high_bathroom_count": high_bathroom_count,
        "excess_bathrooms": max(0, baths - beds),

        # Location
        "tube_distance_km": tube_dist,
        "log_tube_distance": math.log1p(tube_dist),
        "center_distance_km": center_dist,
        "log_center_distance": math.log1p(center_dist),
        "center_distance_inv": center_inv,
        "is_prime_postcode": is_prime,
        "postcode_freq": categorical.postcode_frequency(district),
        "postcode_area_freq": categorical.postcode_area_frequency(district),

        # Detection
        "is_social_housing": social_housing,
        "is_ultra_luxury_address": ultra_prime,

        # Address premium
        "is_garden_square": garden_square,
        "is_ultra_prime_address": ultra_prime,
        "is_prime_street": prime_street,
        "address_prestige": prestige,

        "is_mews": is_mews,

        # Property type
        "is_house": is_house,
        "is_flat": is_flat,
        "is_large_house": is_large_house,
        "is_terraced": is_terraced,
        "is_penthouse": is_penthouse,
        "is_studio": int(beds == 1 and sqft < TINY_SQFT),
        "is_houseboat": categorical.is_houseboat(property_type),
        "is_duplex_maisonette": categorical.is_duplex_maisonette(property_type),
        "property_type_num": categorical.property_type_num(property_type),

        # Floors
        "floor_count": floor_count,
        "is_multi_floor": floors["is_multi_floor"],
        "floor_size_interaction": floor_count * sqft / 1000,
        "has_basement": floors["has_basement"],
        "has_ground": floors["has_ground"],
        "has_first_floor": floors["has_first_floor"],
        "has_second_floor": floors["has_second_floor"],
        "has_third_floor": floors["has_third_floor"],
        "has_fourth_plus": floors["has_fourth_plus"],
        "is_garden_flat": text_signals.is_garden_flat(address),
        "is_basement_flat": text_signals.is_basement_flat(address),
        # Same value as has_ground; the model was trained with both columns
        "is_ground_floor": floors["has_ground"],

        # Condition / let
        "is_furnished_explicit": is_furnished_explicit,
        "is_unfurnished": is_unfurnished,
        "is_part_furnished": furnished["part_furnished"],
        "has_refurb_keywords": text_signals.has_refurb_keywords(description),
        "is_long_let": 0 if short_let else 1,
        "is_short_let": short_let,

        # Agent
        "is_premium_agent": premium_agent,
        "premium_agent_size": premium_agent * log_sqft,
        "source_quality": text_signals.source_quality(attributes.page_url),

        # Amenity aggregates
        "amenity_score": amenity_score,
        "premium_amenity_count": premium_amenity_count,
        "has_outdoor_space": has_outdoor,
        "amenity_x_central": amenity_score * center_inv,
        "outdoor_x_prime": has_outdoor * is_prime,

        # Interactions
        "size_x_central": sqft * center_inv / 100,
        "size_x_prime": sqft * is_prime / 1000,
        "beds_x_central": beds * center_inv,
        "garden_square_size": garden_square * log_sqft,
        "ultra_prime_size": ultra_prime * sqft / 1000,
        "prime_street_size": prime_street * log_sqft,
        "prestige_x_size": prestige * log_sqft,
        "house_size_interaction": is_house * log_sqft,
        "flat_size_interaction": is_flat * log_sqft,
        "large_house_size": is_large_house * sqft / 1000,
        "mews_size_interaction": is_mews * log_sqft,
        "mews_x_prime": is_mews * is_prime,
        "furnished_x_prime": is_furnished_explicit * is_prime,
        "furnished_x_central": is_furnished_explicit * center_inv,
        "unfurnished_discount": is_unfurnished * log_sqft,
        "luxury_address_size": ultra_prime * log_sqft,
        "luxury_bathroom_size": high_bathroom_count * log_sqft,
        "penthouse_size": is_penthouse * log_sqft,
        "terraced_location": is_terraced * is_prime,
        "short_let_x_central": short_let * center_inv,
        "short_let_size": short_let * log_sqft,
    }

    # has_roof_terrace comes from the description here, not the floor plan
    features.update(amenities)
    features.update(postcode_one_hot)
    features.update(type_one_hot)
    return features


def feature_names() -> List[str]:
    """Every name build_features() emits, in order."""
    return list(build_features(PropertyAttributes()).keys())
