"""
Fair-rent prediction: features -> ensemble -> monthly rent, range and premium.
"""
import math
from typing import Optional
import logging

from services import categorical
from services.features import build_features
from services.listing_inputs import detect_let_type, resolve_size, round_half_up
from services.schemas import PredictionResult, PropertyAttributes
from services.text_signals import parse_amenities
from services.tree_ensemble import TreeEnsembleEvaluator
from storage.model_repository import ModelRepository, NotLoadedError

logger = logging.getLogger(__name__)

# Fixed presentation band around the point estimate, not a confidence interval
RANGE_LOW_FACTOR = 0.79
RANGE_HIGH_FACTOR = 1.21

OVERPRICED_PCT = 15
GOOD_DEAL_PCT = -10


class InvalidPredictionResult(ArithmeticError):
    """The model produced a fair value that can't be shown (0, NaN or infinite)."""


def classify_premium(premium_pct: float) -> str:
    if premium_pct > OVERPRICED_PCT:
        return "overpriced"
    if premium_pct < GOOD_DEAL_PCT:
        return "good_deal"
    return "fair"


def premium_pct(asking_price: float, fair_value: int) -> float:
    """Asking price over fair value in percent, one decimal."""
    if not fair_value or not math.isfinite(fair_value):
        raise InvalidPredictionResult(f"Cannot compare against fair value {fair_value}")
    return round_half_up((asking_price / fair_value - 1) * 1000) / 10


def inverse_transform(score: float) -> int:
    """log1p-space score -> rounded monthly rent."""
    try:
        value = math.expm1(score)
    except OverflowError:
        raise InvalidPredictionResult(f"Score {score} overflows the inverse transform")
    if not math.isfinite(value):
        raise InvalidPredictionResult(f"Fair value is not finite (score={score})")
    fair_value = round_half_up(value)
    if fair_value == 0:
        raise InvalidPredictionResult(f"Fair value rounds to 0 (score={score})")
    return fair_value


class PredictionService:
    def __init__(self, repository: ModelRepository, evaluator: Optional[TreeEnsembleEvaluator] = None):
        self.repository = repository
        self.evaluator = evaluator or TreeEnsembleEvaluator(repository)

    def predict(self, attributes: PropertyAttributes, asking_price: float) -> PredictionResult:
        """
        Predict fair monthly rent for a listing and compare it with the asking price.

        Raises:
            NotLoadedError: model not loaded yet
            InvalidPredictionResult: fair value is 0, NaN or infinite
        """
        if not self.repository.is_loaded:
            raise NotLoadedError("Model not loaded")

        size_sqft, size_source = resolve_size(attributes)
        sized = attributes.model_copy(update={"size_sqft": size_sqft})

        features = build_features(sized)
        score = self.evaluator.evaluate(features)
        fair_value = inverse_transform(score)
        pct = premium_pct(asking_price, fair_value)

        district = categorical.extract_postcode_district(attributes.postcode)
        amenities = parse_amenities(attributes.description)

        logger.info(
            f"Prediction for {district}: fair={fair_value} asking={asking_price} "
            f"premium={pct}% size={size_sqft} ({size_source})"
        )

        return PredictionResult(
            asking_price=asking_price,
            fair_value=fair_value,
            range_low=round_half_up(fair_value * RANGE_LOW_FACTOR),
            range_high=round_half_up(fair_value * RANGE_HIGH_FACTOR),
            premium_pct=pct,
            assessment=classify_premium(pct),
            size_sqft=size_sqft,
            size_source=size_source,
            amenities_detected=[name[len("has_"):] for name, flag in amenities.items() if flag],
            postcode_district=district,
            beds=features["bedrooms"],
            baths=features["bathrooms"],
            well_covered=categorical.has_good_coverage(district),
            let_type=detect_let_type(attributes.description, attributes.page_url),
        )
