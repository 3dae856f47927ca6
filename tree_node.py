from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

import numpy as np

if TYPE_CHECKING:
    from feature_config import FeatureLookup


def _to_native(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    return value


def _summary(node: TreeNode) -> str:
    if isinstance(node, LeafNode):
        return repr(node)
    return f"PartitionNode(feature_index={node.feature_index!r}, ...)"


@dataclass
class LeafNode:
    vote: float

    def evaluate(self, fvec: Sequence) -> float:
        return self.vote

    def scale(self, w: float) -> None:
        self.vote *= w

    def to_json(self, cfg: FeatureLookup) -> dict[str, Any]:
        return node_to_json(self, cfg)


@dataclass(eq=False, repr=False)
class PartitionNode:
    """Internal node: rows with ``fvec[feature_index] <= threshold`` go left."""

    feature_index: int
    threshold: Any
    left: TreeNode
    right: TreeNode
    vote: float = 0.0

    def __post_init__(self) -> None:
        if self.feature_index < 0:
            raise ValueError("feature_index must be >= 0")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PartitionNode):
            return NotImplemented
        stack: list[tuple[TreeNode, TreeNode]] = [(self, other)]
        while stack:
            a, b = stack.pop()
            if isinstance(a, PartitionNode) and isinstance(b, PartitionNode):
                if (a.feature_index, a.threshold, a.vote) != (b.feature_index, b.threshold, b.vote):
                    return False
                stack.append((a.right, b.right))
                stack.append((a.left, b.left))
            elif a != b:
                return False
        return True

    def __repr__(self) -> str:
        # Children are summarised so deep trees do not recurse.
        return (
            f"PartitionNode(feature_index={self.feature_index!r}, "
            f"threshold={self.threshold!r}, vote={self.vote!r}, "
            f"left={_summary(self.left)}, right={_summary(self.right)})"
        )

    def evaluate(self, fvec: Sequence) -> float:
        n_features = len(fvec)
        node: TreeNode = self
        while isinstance(node, PartitionNode):
            if node.feature_index >= n_features:
                raise IndexError(
                    f"feature_index {node.feature_index} out of range "
                    f"for feature vector of length {n_features}"
                )
            if fvec[node.feature_index] <= node.threshold:
                node = node.left
            else:
                node = node.right
        return node.vote

    def scale(self, w: float) -> None:
        for node in iter_nodes(self):
            node.vote *= w

    def to_json(self, cfg: FeatureLookup) -> dict[str, Any]:
        return node_to_json(self, cfg)


TreeNode = Union[LeafNode, PartitionNode]


def iter_nodes(root: TreeNode) -> Iterator[TreeNode]:
    """Pre-order walk: node, then its left subtree, then its right subtree."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        if isinstance(node, PartitionNode):
            stack.append(node.right)
            stack.append(node.left)


def count_nodes(root: TreeNode) -> tuple[int, int]:
    n_partitions = 0
    n_leaves = 0
    for node in iter_nodes(root):
        if isinstance(node, PartitionNode):
            n_partitions += 1
        else:
            n_leaves += 1
    return n_partitions, n_leaves


def tree_depth(root: TreeNode) -> int:
    depth = 0
    stack = [(root, 0)]
    while stack:
        node, d = stack.pop()
        depth = max(depth, d)
        if isinstance(node, PartitionNode):
            stack.append((node.left, d + 1))
            stack.append((node.right, d + 1))
    return depth


def max_feature_index(root: TreeNode) -> int:
    """Largest feature index referenced by the tree, ``-1`` for a lone leaf.

    A feature vector passed to ``evaluate`` needs at least
    ``max_feature_index(root) + 1`` elements.
    """
    best = -1
    for node in iter_nodes(root):
        if isinstance(node, PartitionNode):
            best = max(best, node.feature_index)
    return best


def node_to_json(root: TreeNode, cfg: FeatureLookup) -> dict[str, Any]:
    out: dict[str, Any] = {}
    # (node, parent dict, key in parent) -- the root writes into ``out``.
    stack: list[tuple[TreeNode, dict[str, Any] | None, str | None]] = [(root, None, None)]
    while stack:
        node, parent, key = stack.pop()
        if isinstance(node, LeafNode):
            doc: dict[str, Any] = {"index": -1, "vote": float(node.vote)}
        else:
            doc = {
                "index": int(node.feature_index),
                "value": _to_native(node.threshold),
                "left": None,
                "right": None,
                "vote": float(node.vote),
                "feature": cfg.get_feature_name(node.feature_index),
            }
            stack.append((node.right, doc, "right"))
            stack.append((node.left, doc, "left"))

        if parent is None:
            out = doc
        else:
            parent[key] = doc
    return out
