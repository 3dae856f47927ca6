"""
Boosted tree nodes

Representation of the regression trees that make up a boosted ensemble:
leaf and partition nodes, per-tree evaluation and re-weighting, ensemble
scoring, and a JSON codec that resolves feature names through a feature
configuration table.
"""
