"""JSON codec for boosted regression trees.

A node document is a leaf if and only if it has no ``"feature"`` key::

    leaf:      {"index": -1, "vote": 0.25}
    partition: {"index": 3, "value": 30, "vote": 0.1, "feature": "age",
                "left": {...}, "right": {...}}

``"index"`` is written for readability only; decoding resolves the feature
through the configuration by name.
"""

from __future__ import annotations

import json
import logging
import math
import numbers
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from feature_config import FeatureLookup
from tree_node import LeafNode, PartitionNode, TreeNode, count_nodes, node_to_json

logger = logging.getLogger(__name__)


class TreeFormatError(ValueError):
    """Raised when a tree document is malformed."""


class UnknownFeatureError(TreeFormatError):
    def __init__(self, feature: str, path: str) -> None:
        super().__init__(f"{path}: failed to find feature {feature!r} in config")
        self.feature = feature
        self.path = path


@dataclass
class CodecParams:
    feature_dtype: str = "float64"  # numpy dtype of thresholds / feature vectors
    max_depth: int | None = None  # None means unbounded

    def __post_init__(self) -> None:
        try:
            kind = np.dtype(self.feature_dtype).kind
        except TypeError as exc:
            raise ValueError(f"unknown feature_dtype: {self.feature_dtype!r}") from exc
        if kind not in {"i", "u", "f"}:
            raise ValueError("feature_dtype must be an integer or floating dtype")
        if self.max_depth is not None and self.max_depth < 0:
            raise ValueError("max_depth must be >= 0 or None")


def _require(obj: Mapping[str, Any], key: str, path: str) -> Any:
    if key not in obj:
        raise TreeFormatError(f"{path}: missing required field {key!r}")
    return obj[key]


def _read_vote(obj: Mapping[str, Any], path: str) -> float:
    vote = _require(obj, "vote", path)
    if isinstance(vote, bool) or not isinstance(vote, numbers.Real):
        raise TreeFormatError(f"{path}: 'vote' must be a number, got {vote!r}")
    return float(vote)


def _read_threshold(obj: Mapping[str, Any], path: str, dtype: np.dtype) -> Any:
    value = _require(obj, "value", path)
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise TreeFormatError(f"{path}: 'value' must be a number, got {value!r}")

    if dtype.kind in {"i", "u"}:
        if isinstance(value, numbers.Integral):
            number = int(value)
        else:
            if not math.isfinite(float(value)):
                raise TreeFormatError(f"{path}: 'value' {value!r} is not a finite number")
            number = int(float(value))  # truncates toward zero
        info = np.iinfo(dtype)
        if not info.min <= number <= info.max:
            raise TreeFormatError(f"{path}: 'value' {value!r} does not fit feature dtype {dtype}")
        return dtype.type(number)

    try:
        if isinstance(value, numbers.Integral):
            number = float(int(value))
        else:
            number = float(value)
    except OverflowError as exc:
        raise TreeFormatError(
            f"{path}: 'value' {value!r} does not fit feature dtype {dtype}"
        ) from exc
    finfo = np.finfo(dtype)
    if math.isfinite(number) and not float(finfo.min) <= number <= float(finfo.max):
        raise TreeFormatError(f"{path}: 'value' {value!r} does not fit feature dtype {dtype}")
    return dtype.type(number)


def _decode(
    obj: Any,
    cfg: FeatureLookup,
    params: CodecParams,
    root_path: str,
) -> TreeNode:
    dtype = np.dtype(params.feature_dtype)

    # Post-order build: a "build" frame runs after both child frames pushed
    # above it have appended their nodes to ``built``.
    built: list[TreeNode] = []
    stack: list[tuple[str, Any, str, int]] = [("visit", obj, root_path, 0)]
    while stack:
        action, item, path, depth = stack.pop()

        if action == "build":
            feature_index, threshold, vote = item
            right = built.pop()
            left = built.pop()
            built.append(
                PartitionNode(
                    feature_index=feature_index,
                    threshold=threshold,
                    left=left,
                    right=right,
                    vote=vote,
                )
            )
            continue

        if not isinstance(item, Mapping):
            raise TreeFormatError(f"{path}: node must be an object, got {type(item).__name__}")
        if params.max_depth is not None and depth > params.max_depth:
            raise TreeFormatError(f"{path}: tree deeper than max_depth={params.max_depth}")

        vote = _read_vote(item, path)
        if "feature" not in item:
            built.append(LeafNode(vote=vote))
            continue

        feature = item["feature"]
        if not isinstance(feature, str):
            raise TreeFormatError(f"{path}: 'feature' must be a string, got {feature!r}")
        feature_index = cfg.get_feature_index(feature)
        if feature_index is None or feature_index < 0:
            raise UnknownFeatureError(feature, path)

        threshold = _read_threshold(item, path, dtype)
        left = _require(item, "left", path)
        right = _require(item, "right", path)

        stack.append(("build", (feature_index, threshold, vote), path, depth))
        stack.append(("visit", right, f"{path}.right", depth + 1))
        stack.append(("visit", left, f"{path}.left", depth + 1))

    return built[0]


def from_json(
    obj: Mapping[str, Any],
    cfg: FeatureLookup,
    params: CodecParams | None = None,
) -> TreeNode:
    """Decode one tree document, resolving feature names through ``cfg``."""
    params = params or CodecParams()
    root = _decode(obj, cfg, params, "$")
    if logger.isEnabledFor(logging.DEBUG):
        n_partitions, n_leaves = count_nodes(root)
        logger.debug("decoded tree: %d partitions, %d leaves", n_partitions, n_leaves)
    return root


def to_json(node: TreeNode, cfg: FeatureLookup) -> dict[str, Any]:
    return node_to_json(node, cfg)


def trees_from_json(
    objs: Sequence[Mapping[str, Any]],
    cfg: FeatureLookup,
    params: CodecParams | None = None,
) -> list[TreeNode]:
    if isinstance(objs, (str, bytes, Mapping)) or not isinstance(objs, Sequence):
        raise TreeFormatError("$: ensemble must be a list of tree objects")

    params = params or CodecParams()
    trees = [_decode(obj, cfg, params, f"$[{i}]") for i, obj in enumerate(objs)]
    logger.debug("decoded ensemble of %d trees", len(trees))
    return trees


def trees_to_json(trees: Sequence[TreeNode], cfg: FeatureLookup) -> list[dict[str, Any]]:
    return [node_to_json(tree, cfg) for tree in trees]


def loads(
    text: str | bytes,
    cfg: FeatureLookup,
    params: CodecParams | None = None,
) -> TreeNode | list[TreeNode]:
    """Parse JSON text holding either one tree object or a list of trees.

    The stdlib JSON parser is recursive, so text nested deeper than the
    interpreter's recursion limit is rejected with ``TreeFormatError``; such
    trees can still be decoded from an already-parsed document with
    ``from_json``.
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise TreeFormatError(f"invalid JSON: {exc}") from exc
    except RecursionError as exc:
        raise TreeFormatError("JSON text is nested too deeply to parse") from exc

    if isinstance(data, list):
        return trees_from_json(data, cfg, params)
    return from_json(data, cfg, params)


def dumps(
    tree_or_trees: TreeNode | Sequence[TreeNode],
    cfg: FeatureLookup,
    **json_kwargs: Any,
) -> str:
    """Encode a tree, or a list of trees, as JSON text.

    Like ``loads``, this is limited by the recursion depth of the stdlib
    encoder; deeper trees raise ``ValueError`` and should go through
    ``to_json`` and a non-recursive serializer.
    """
    if isinstance(tree_or_trees, (LeafNode, PartitionNode)):
        doc: Any = node_to_json(tree_or_trees, cfg)
    else:
        doc = trees_to_json(tree_or_trees, cfg)
    try:
        return json.dumps(doc, **json_kwargs)
    except RecursionError as exc:
        raise ValueError("tree is nested too deeply to encode as JSON text") from exc
