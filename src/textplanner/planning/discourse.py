"""Ordering of the selected subgraphs into a linear plan."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence

from textplanner.config import SortingStrategy
from textplanner.graph.subgraph import SemanticSubgraph
from textplanner.ranking.matrix import rebase

logger = logging.getLogger("textplanner.planning")

SubgraphSimilarityFunction = Callable[[SemanticSubgraph, SemanticSubgraph], float]


class PlanSorter(ABC):
    """Orders subgraphs. Implementations must return a permutation of the input."""

    @abstractmethod
    def sort(self, subgraphs: Sequence[SemanticSubgraph]) -> list[SemanticSubgraph]:
        ...


class ValueSorter(PlanSorter):
    """Descending value, then root id."""

    def sort(self, subgraphs: Sequence[SemanticSubgraph]) -> list[SemanticSubgraph]:
        return sorted(subgraphs, key=lambda s: s.sort_key())


class DiscourseSorter(PlanSorter):
    """Greedy walk that keeps topically related subgraphs adjacent.

    The plan opens with the highest-valued subgraph. Each following step picks
    the unvisited subgraph with the best score (similarity + rank) / 2, where
    similarity is the best similarity to any visited subgraph and rank is the
    subgraph's average vertex weight rescaled to [0, 1] over the input.
    """

    def __init__(self, similarity: SubgraphSimilarityFunction) -> None:
        self.similarity = similarity

    def sort(self, subgraphs: Sequence[SemanticSubgraph]) -> list[SemanticSubgraph]:
        ordered = sorted(subgraphs, key=lambda s: s.sort_key())
        n = len(ordered)
        if n <= 1:
            return ordered

        rank = rebase([s.average_weight() for s in ordered])
        best_similarity = [0.0] * n
        visited = [0]
        remaining = list(range(1, n))

        while remaining:
            last = ordered[visited[-1]]
            for i in remaining:
                best_similarity[i] = max(best_similarity[i], self.similarity(last, ordered[i]))

            chosen = remaining[0]
            chosen_score = (best_similarity[chosen] + rank[chosen]) / 2.0
            for i in remaining[1:]:
                score = (best_similarity[i] + rank[i]) / 2.0
                if score > chosen_score:
                    chosen, chosen_score = i, score

            visited.append(chosen)
            remaining.remove(chosen)

        logger.info(f"Sorted {n} subgraphs into a plan")
        return [ordered[i] for i in visited]


def get_sorter(strategy: SortingStrategy, similarity: SubgraphSimilarityFunction) -> PlanSorter:
    if strategy == SortingStrategy.VALUE:
        return ValueSorter()
    return DiscourseSorter(similarity)
