import math

import numpy as np
import pytest

from services.tree_ensemble import TreeEnsembleEvaluator, feature_array, tree_value
from storage.model_repository import ModelRepository, NotLoadedError, Tree

from conftest import single_split_model


def evaluator_for(model_json, features='["f0"]'):
    repository = ModelRepository()
    repository.load(model_json, features)
    return TreeEnsembleEvaluator(repository)


def test_single_split_threshold():
    evaluator = evaluator_for(single_split_model(threshold=10.0, left=1.0, right=2.0))
    assert evaluator.evaluate({"f0": 9.999}) == 1.0
    # Equal to the threshold goes right
    assert evaluator.evaluate({"f0": 10.0}) == 2.0
    assert evaluator.evaluate({"f0": 11.0}) == 2.0


@pytest.mark.parametrize("default_left, expected", [(True, 1.0), (False, 2.0)])
def test_missing_value_follows_default_direction(default_left, expected):
    evaluator = evaluator_for(single_split_model(default_left=default_left))
    assert evaluator.evaluate({"f0": None}) == expected
    assert evaluator.evaluate({"f0": math.nan}) == expected


def test_absent_name_is_zero_not_missing():
    # default_left=False would send a missing value right; 0 < 10 goes left
    evaluator = evaluator_for(single_split_model(default_left=False))
    assert evaluator.evaluate({}) == evaluator.evaluate({"f0": 0}) == 1.0


def test_base_score_is_added():
    evaluator = evaluator_for(single_split_model(base_score="[5.5E0]"))
    assert evaluator.evaluate({"f0": 1}) == 6.5


def test_leaf_value_comes_from_split_conditions():
    tree = Tree(
        left_children=(-1,),
        right_children=(-1,),
        split_indices=(0,),
        split_conditions=(0.42,),
        default_left=(True,),
    )
    assert tree_value(tree, np.array([123.0])) == 0.42


def test_fixture_model_sums_trees(loaded_repository):
    evaluator = TreeEnsembleEvaluator(loaded_repository)
    # size_sqft >= 700 -> 0.2; legacy_unused_feature absent -> 0 < 0.5 -> 0.05
    assert evaluator.evaluate({"bedrooms": 2, "size_sqft": 750}) == pytest.approx(8.25)
    assert evaluator.evaluate({"bedrooms": 2, "size_sqft": 500}) == pytest.approx(8.15)


def test_extra_names_are_ignored(loaded_repository):
    evaluator = TreeEnsembleEvaluator(loaded_repository)
    base = evaluator.evaluate({"size_sqft": 750})
    assert evaluator.evaluate({"size_sqft": 750, "not_in_model": 1e9}) == base


def test_evaluation_is_deterministic(loaded_repository):
    evaluator = TreeEnsembleEvaluator(loaded_repository)
    vector = {"bedrooms": 3, "size_sqft": 910.5}
    assert len({evaluator.evaluate(vector) for _ in range(20)}) == 1


def test_feature_array_layout():
    x = feature_array({"b": 2, "c": None}, ("a", "b", "c"))
    assert x.dtype == np.float64
    assert x[0] == 0.0
    assert x[1] == 2.0
    assert math.isnan(x[2])


def test_evaluate_without_model():
    evaluator = TreeEnsembleEvaluator(ModelRepository())
    with pytest.raises(NotLoadedError):
        evaluator.evaluate({"f0": 1})
