import subprocess
import sys
import os

import pandas as pd

from scripts.batch_predict import row_to_request, score_listings
from services.prediction import PredictionService

from conftest import FEATURES_PATH, MODEL_PATH

BACKEND_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "backend")


def listings_frame():
    return pd.DataFrame([
        {"bedrooms": 2, "bathrooms": 1, "size_sqft": 750, "postcode": "SW3 2AB",
         "description": "Balcony", "asking_price": 4000, "price_text": None},
        {"bedrooms": 1, "bathrooms": None, "size_sqft": None, "postcode": "E14",
         "description": None, "asking_price": None, "price_text": "£650 pw"},
        {"bedrooms": 1, "bathrooms": 1, "size_sqft": None, "postcode": "W2",
         "description": "Short let", "asking_price": 3000, "price_text": None},
        {"bedrooms": 1, "bathrooms": 1, "size_sqft": None, "postcode": "W2",
         "description": None, "asking_price": None, "price_text": "POA"},
    ])


def test_row_to_request_drops_nan():
    attributes, asking_price = row_to_request(listings_frame().to_dict(orient="records")[1])
    assert attributes.bathrooms is None
    assert attributes.description == ""
    assert asking_price == 2817


def test_score_listings(loaded_repository):
    scored = score_listings(listings_frame(), PredictionService(loaded_repository))
    assert list(scored["status"]) == ["ok", "ok", "short_let", "no_price"]
    assert scored.loc[0, "fair_value"] == 3827
    assert scored.loc[0, "assessment"] == "fair"
    assert scored.loc[1, "size_source"] == "estimated"
    assert pd.isna(scored.loc[2, "fair_value"])


def test_cli_writes_output(tmp_path):
    input_path = tmp_path / "listings.csv"
    output_path = tmp_path / "scored.csv"
    listings_frame().to_csv(input_path, index=False)

    subprocess.run(
        [sys.executable, os.path.join(BACKEND_DIR, "scripts", "batch_predict.py"),
         "--input", str(input_path), "--output", str(output_path),
         "--model", MODEL_PATH, "--features", FEATURES_PATH],
        check=True,
    )
    scored = pd.read_csv(output_path)
    assert len(scored) == 4
    assert scored.loc[0, "fair_value"] == 3827
