from __future__ import annotations

from collections.abc import Iterator, Sequence

import numpy as np

from tree_node import TreeNode


def predict(trees: Sequence[TreeNode], fvec: Sequence) -> float:
    f = 0.0
    for tree in trees:
        f += tree.evaluate(fvec)
    return f


def predict_vec(trees: Sequence[TreeNode], fvec: Sequence, scores: list[float]) -> float:
    """Sum tree outputs, appending the running total after each tree to ``scores``."""
    f = 0.0
    for tree in trees:
        f += tree.evaluate(fvec)
        scores.append(f)
    return f


def predict_with_trace(trees: Sequence[TreeNode], fvec: Sequence) -> tuple[float, Iterator[float]]:
    """Return the ensemble score and a one-shot iterator over its partial sums.

    The i-th partial sum is the score after adding tree ``i``; the last one
    equals the returned total.
    """
    partial: list[float] = []
    total = predict_vec(trees, fvec, partial)
    return total, iter(partial)


def predict_batch(trees: Sequence[TreeNode], X: np.ndarray) -> np.ndarray:
    X = np.asarray(X)
    if X.ndim != 2:
        raise ValueError("X must be a 2D array")

    preds = np.zeros(X.shape[0], dtype=np.float64)
    for i in range(X.shape[0]):
        preds[i] = predict(trees, X[i])
    return preds


def scale_trees(trees: Sequence[TreeNode], w: float) -> None:
    for tree in trees:
        tree.scale(w)
