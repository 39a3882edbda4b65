"""
Loader for the exported XGBoost model (JSON) and its feature-order file.

Both files must come from the same training run: the feature order is the
index space of every tree's split_indices and nothing in the files lets us
detect a mismatched pair at runtime.
"""
import asyncio
import json
import math
import os
from typing import Any, Dict, List, NamedTuple, Optional, Tuple, Union
import logging

logger = logging.getLogger(__name__)

LEAF = -1


class ModelLoadFailure(Exception):
    """Model or feature-order payload missing, malformed or inconsistent."""


class NotLoadedError(RuntimeError):
    """Prediction requested before a model was loaded."""


class Tree(NamedTuple):
    """
    One regression tree as parallel arrays indexed by node id (root = 0).

    A node is a leaf iff left_children[node] == -1. The leaf's output is
    stored in split_conditions[node]; there is no separate leaf-value array.
    """
    left_children: Tuple[int, ...]
    right_children: Tuple[int, ...]
    split_indices: Tuple[int, ...]
    split_conditions: Tuple[float, ...]
    default_left: Tuple[bool, ...]


class ModelArtifact(NamedTuple):
    base_score: float
    feature_order: Tuple[str, ...]
    trees: Tuple[Tree, ...]


def parse_base_score(raw: Any) -> float:
    """
    base_score may be exported as 8.39, [8.39] or "[8.399085E0]".
    All three normalize to the same float.
    """
    if isinstance(raw, list):
        if not raw:
            raise ModelLoadFailure("base_score is an empty array")
        raw = raw[0]
    if isinstance(raw, str):
        raw = raw.replace("[", "").replace("]", "").strip()
    if isinstance(raw, bool):
        raise ModelLoadFailure(f"base_score is not a number: {raw!r}")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ModelLoadFailure(f"base_score is not a number: {raw!r}")
    if not math.isfinite(value):
        raise ModelLoadFailure(f"base_score is not finite: {raw!r}")
    return value


def _parse_json(payload: Union[bytes, str], label: str) -> Any:
    try:
        return json.loads(payload)
    except (TypeError, ValueError) as e:
        raise ModelLoadFailure(f"{label} is not valid JSON: {e}")


def _parse_feature_order(data: Any) -> Tuple[str, ...]:
    if not isinstance(data, list) or not all(isinstance(name, str) for name in data):
        raise ModelLoadFailure("Feature order must be a JSON array of strings")
    if len(set(data)) != len(data):
        raise ModelLoadFailure("Feature order contains duplicate names")
    return tuple(data)


def _parse_tree(raw: Dict[str, Any], tree_id: int, n_features: int) -> Tree:
    try:
        left = tuple(int(v) for v in raw["left_children"])
        right = tuple(int(v) for v in raw["right_children"])
        split_indices = tuple(int(v) for v in raw["split_indices"])
        split_conditions = tuple(float(v) for v in raw["split_conditions"])
        default_left_raw = raw.get("default_left")
    except (KeyError, TypeError, ValueError) as e:
        raise ModelLoadFailure(f"Tree {tree_id} is malformed: {e}")

    n_nodes = len(left)
    # Older exports omit default_left; missing values then go left
    if default_left_raw is None:
        default_left = (True,) * n_nodes
    else:
        default_left = tuple(bool(v) for v in default_left_raw)

    if n_nodes == 0:
        raise ModelLoadFailure(f"Tree {tree_id} has no nodes")
    lengths = {len(right), len(split_indices), len(split_conditions), len(default_left)}
    if lengths != {n_nodes}:
        raise ModelLoadFailure(f"Tree {tree_id} has arrays of unequal length")

    for node in range(n_nodes):
        if left[node] == LEAF:
            continue
        if not 0 <= split_indices[node] < n_features:
            raise ModelLoadFailure(
                f"Tree {tree_id} node {node} splits on index {split_indices[node]}, "
                f"but only {n_features} features are known"
            )
        if not (0 <= left[node] < n_nodes and 0 <= right[node] < n_nodes):
            raise ModelLoadFailure(f"Tree {tree_id} node {node} points outside the tree")
        # XGBoost numbers children after their parent; anything else could cycle
        if left[node] <= node or right[node] <= node:
            raise ModelLoadFailure(f"Tree {tree_id} node {node} points back to an earlier node")

    return Tree(left, right, split_indices, split_conditions, default_left)


def parse_artifact(model_payload: Union[bytes, str], feature_order_payload: Union[bytes, str]) -> ModelArtifact:
    """
    Parse the XGBoost JSON export and its feature-order list.

    Raises:
        ModelLoadFailure: on any malformed or inconsistent input
    """
    model = _parse_json(model_payload, "Model")
    feature_order = _parse_feature_order(_parse_json(feature_order_payload, "Feature order"))

    try:
        learner = model["learner"]
        raw_base_score = learner["learner_model_param"]["base_score"]
        raw_trees = learner["gradient_booster"]["model"]["trees"]
    except (KeyError, TypeError) as e:
        raise ModelLoadFailure(f"Model JSON is missing {e}")
    if not isinstance(raw_trees, list):
        raise ModelLoadFailure("Model trees must be a JSON array")

    base_score = parse_base_score(raw_base_score)
    trees = tuple(
        _parse_tree(raw, tree_id, len(feature_order))
        for tree_id, raw in enumerate(raw_trees)
    )
    return ModelArtifact(base_score=base_score, feature_order=feature_order, trees=trees)


class ModelRepository:
    """
    Holds the process-wide model artifact.

    Loading is idempotent and all-or-nothing: the artifact is published in a
    single assignment after it has been fully parsed, so a failed load leaves
    the repository as it was. Once loaded the artifact is never mutated and
    can be shared by concurrent requests.
    """

    def __init__(self):
        self._artifact: Optional[ModelArtifact] = None

    @property
    def is_loaded(self) -> bool:
        return self._artifact is not None

    @property
    def artifact(self) -> ModelArtifact:
        if self._artifact is None:
            raise NotLoadedError("Model not loaded")
        return self._artifact

    def load(self, model_payload: Union[bytes, str], feature_order_payload: Union[bytes, str]) -> None:
        if self._artifact is not None:
            return
        artifact = parse_artifact(model_payload, feature_order_payload)
        self._artifact = artifact
        logger.info(
            f"Loaded model with {len(artifact.trees)} trees, "
            f"{len(artifact.feature_order)} features, base_score={artifact.base_score}"
        )

    async def load_files(self, model_path: str, feature_order_path: str) -> None:
        """Read both files off the event loop, then load them."""
        if self._artifact is not None:
            return
        model_payload, feature_order_payload = await asyncio.gather(
            asyncio.to_thread(_read_bytes, model_path),
            asyncio.to_thread(_read_bytes, feature_order_path),
        )
        self.load(model_payload, feature_order_payload)

    def describe(self) -> Dict[str, Any]:
        if self._artifact is None:
            return {"loaded": False, "trees": 0, "features": 0, "base_score": None}
        return {
            "loaded": True,
            "trees": len(self._artifact.trees),
            "features": len(self._artifact.feature_order),
            "base_score": self._artifact.base_score,
        }

    def feature_order(self) -> List[str]:
        return list(self.artifact.feature_order)


def _read_bytes(path: str) -> bytes:
    if not os.path.exists(path):
        raise ModelLoadFailure(f"Model file not found: {path}")
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise ModelLoadFailure(f"Could not read {path}: {e}")
