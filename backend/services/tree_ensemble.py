"""
Pure-Python evaluation of an XGBoost tree ensemble exported as JSON.

The output is in the model's training target space (log1p of monthly rent);
callers apply the inverse transform.
"""
import math
from typing import Mapping, Optional
import logging

import numpy as np

from storage.model_repository import LEAF, ModelArtifact, ModelRepository, Tree

logger = logging.getLogger(__name__)


def feature_array(vector: Mapping[str, Optional[float]], feature_order) -> np.ndarray:
    """
    Lay the named vector out in model order.
    Absent names become 0 (same as an explicit 0); explicit None becomes NaN (missing).
    """
    values = []
    for name in feature_order:
        value = vector.get(name, 0)
        values.append(np.nan if value is None else value)
    return np.array(values, dtype=np.float64)


def tree_value(tree: Tree, x: np.ndarray) -> float:
    """Walk one tree from the root to a leaf and return the leaf value."""
    node = 0
    while True:
        left = tree.left_children[node]
        if left == LEAF:
            # Leaf output lives in split_conditions
            return tree.split_conditions[node]

        value = x[tree.split_indices[node]]
        if math.isnan(value):
            node = left if tree.default_left[node] else tree.right_children[node]
        elif value < tree.split_conditions[node]:
            node = left
        else:
            node = tree.right_children[node]


def evaluate_artifact(artifact: ModelArtifact, vector: Mapping[str, Optional[float]]) -> float:
    x = feature_array(vector, artifact.feature_order)
    total = artifact.base_score
    for tree in artifact.trees:
        total += tree_value(tree, x)
    return total


class TreeEnsembleEvaluator:
    """Scores feature vectors against the repository's loaded model."""

    def __init__(self, repository: ModelRepository):
        self.repository = repository

    def evaluate(self, vector: Mapping[str, Optional[float]]) -> float:
        """
        Log-scale score: base_score plus the sum of every tree's leaf value.

        Raises:
            NotLoadedError: if the repository has no model yet
        """
        score = evaluate_artifact(self.repository.artifact, vector)
        logger.debug(f"Ensemble score (log): {score}")
        return score
