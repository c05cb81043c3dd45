"""Similarity between subgraphs, from the similarity of the meanings they hold."""

from __future__ import annotations

import math
from collections.abc import Callable

from textplanner.graph.subgraph import SemanticSubgraph
from textplanner.models import Meaning

MeaningSimilarity = Callable[[Meaning, Meaning], "float | None"]


class SubgraphSimilarity:
    """Symmetric similarity of two subgraphs in [0, 1].

    Every vertex of one subgraph is matched with its most similar vertex in the
    other; the result is the mean of both directions' average best match.
    Vertices sharing a meaning match with 1.0. Vertices without a meaning only
    match themselves.
    """

    def __init__(self, similarity: MeaningSimilarity) -> None:
        self.similarity = similarity

    def __call__(self, s1: SemanticSubgraph, s2: SemanticSubgraph) -> float:
        if s1 is s2 or s1 == s2:
            return 1.0
        return (self._directed(s1, s2) + self._directed(s2, s1)) / 2.0

    def _directed(self, s1: SemanticSubgraph, s2: SemanticSubgraph) -> float:
        targets = sorted(s2.vertices)
        total = 0.0
        for v in sorted(s1.vertices):
            total += max(self._vertex_similarity(s1, v, s2, w) for w in targets)
        return total / len(s1)

    def _vertex_similarity(
        self, s1: SemanticSubgraph, v1: str, s2: SemanticSubgraph, v2: str
    ) -> float:
        m1 = s1.base.get_meaning(v1)
        m2 = s2.base.get_meaning(v2)
        if m1 is None or m2 is None:
            return 1.0 if v1 == v2 else 0.0
        if m1 == m2:
            return 1.0
        value = self.similarity(m1, m2)
        if value is None or not math.isfinite(value):
            return 0.0
        return min(1.0, max(0.0, float(value)))
