import json
import os

import pytest

from storage.model_repository import ModelRepository

FIXTURES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "fixtures")
MODEL_PATH = os.path.join(FIXTURES_DIR, "model.json")
FEATURES_PATH = os.path.join(FIXTURES_DIR, "features.json")


def read_fixture(name):
    with open(os.path.join(FIXTURES_DIR, name), "rb") as f:
        return f.read()


def single_split_model(feature_index=0, threshold=10.0, left=1.0, right=2.0, default_left=True, base_score=0.0):
    """XGBoost-style JSON with one tree: root split, two leaves."""
    return json.dumps({
        "learner": {
            "learner_model_param": {"base_score": base_score},
            "gradient_booster": {"model": {"trees": [{
                "left_children": [1, -1, -1],
                "right_children": [2, -1, -1],
                "split_indices": [feature_index, 0, 0],
                "split_conditions": [threshold, left, right],
                "default_left": [int(default_left), 0, 0],
            }]}},
        }
    })


@pytest.fixture
def model_payload():
    return read_fixture("model.json")


@pytest.fixture
def features_payload():
    return read_fixture("features.json")


@pytest.fixture
def loaded_repository(model_payload, features_payload):
    repository = ModelRepository()
    repository.load(model_payload, features_payload)
    return repository


@pytest.fixture
def golden():
    return json.loads(read_fixture("golden_features_sw3_flat.json"))
