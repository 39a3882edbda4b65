#!/usr/bin/env python3
"""
Score a CSV of listings with the local model.

Input columns are PropertyAttributes field names (bedrooms, bathrooms,
size_sqft, postcode, property_type, latitude, longitude, address,
description, ocr_text, agent_name, page_url) plus asking_price or price_text.
Missing columns are fine; missing values fall back to model defaults.

Usage:
    python backend/scripts/batch_predict.py --input listings.csv --output predictions.csv
"""

import argparse
import asyncio
import os
import sys

import pandas as pd

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from services.listing_inputs import detect_let_type, parse_price
from services.prediction import InvalidPredictionResult, PredictionService
from services.schemas import PropertyAttributes
from storage.model_repository import ModelLoadFailure, ModelRepository

ATTRIBUTE_FIELDS = set(PropertyAttributes.model_fields)
RESULT_COLUMNS = [
    "fair_value", "range_low", "range_high", "premium_pct", "assessment",
    "size_sqft", "size_source", "well_covered",
]


def row_to_request(row: dict):
    """Split a CSV row into (attributes, asking_price); NaN cells become missing."""
    # numpy scalars -> plain Python values for pydantic
    clean = {k: (None if pd.isna(v) else getattr(v, "item", lambda: v)()) for k, v in row.items()}
    attrs = {k: v for k, v in clean.items() if k in ATTRIBUTE_FIELDS and v is not None}
    for text_field in ("address", "description", "ocr_text", "agent_name", "page_url", "postcode", "property_type"):
        if text_field in attrs:
            attrs[text_field] = str(attrs[text_field])

    asking_price = clean.get("asking_price")
    if not asking_price and clean.get("price_text"):
        asking_price = parse_price(str(clean["price_text"]))
    return PropertyAttributes(**attrs), asking_price


def score_listings(df: pd.DataFrame, service: PredictionService) -> pd.DataFrame:
    results = []
    for row in df.to_dict(orient="records"):
        attributes, asking_price = row_to_request(row)
        out = {col: None for col in RESULT_COLUMNS}

        if not asking_price:
            out["status"] = "no_price"
        elif detect_let_type(attributes.description, attributes.page_url) == "short":
            out["status"] = "short_let"
        else:
            try:
                result = service.predict(attributes, float(asking_price))
                out.update({col: getattr(result, col) for col in RESULT_COLUMNS})
                out["status"] = "ok"
            except InvalidPredictionResult as e:
                out["status"] = f"invalid: {e}"
        results.append(out)

    return pd.concat([df.reset_index(drop=True), pd.DataFrame(results)], axis=1)


def main():
    backend_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    data_dir = os.path.join(backend_dir, "data")

    parser = argparse.ArgumentParser(description="Batch fair-rent predictions")
    parser.add_argument("--input", required=True, help="CSV of listings")
    parser.add_argument("--output", required=True, help="Where to write the scored CSV")
    parser.add_argument("--model", default=os.getenv("MODEL_PATH", os.path.join(data_dir, "model.json")))
    parser.add_argument("--features", default=os.getenv("FEATURES_PATH", os.path.join(data_dir, "features.json")))
    args = parser.parse_args()

    if not os.path.exists(args.input):
        print(f"Error: Input file not found: {args.input}")
        sys.exit(1)

    repository = ModelRepository()
    try:
        asyncio.run(repository.load_files(args.model, args.features))
    except ModelLoadFailure as e:
        print(f"Error: {e}")
        sys.exit(1)
    info = repository.describe()
    print(f"Loaded model: {info['trees']} trees, {info['features']} features")

    df = pd.read_csv(args.input)
    print(f"Loaded {len(df)} listings from {args.input}")

    scored = score_listings(df, PredictionService(repository))
    print(f"Status counts: {scored['status'].value_counts().to_dict()}")
    ok = scored[scored["status"] == "ok"]
    if len(ok):
        print(f"Fair value range: £{ok['fair_value'].min():,.0f} - £{ok['fair_value'].max():,.0f}/month")
        print(f"Assessments: {ok['assessment'].value_counts().to_dict()}")

    scored.to_csv(args.output, index=False)
    print(f"✓ Wrote {len(scored)} rows to {args.output}")


if __name__ == "__main__":
    main()
