"""Selection of a non-redundant set of subgraphs."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from textplanner.graph.subgraph import SemanticSubgraph

logger = logging.getLogger("textplanner.planning")


class RedundancyFilter:
    """Greedy selection against already-kept subgraphs.

    Subgraphs are visited by descending value (ties by root id). A subgraph is
    dropped when it lies inside a kept one or when its similarity to a kept one
    exceeds `threshold`.
    """

    def __init__(
        self,
        similarity: Callable[[SemanticSubgraph, SemanticSubgraph], float],
        threshold: float = 0.8,
    ) -> None:
        self.similarity = similarity
        self.threshold = threshold

    def remove_redundant(
        self, subgraphs: Sequence[SemanticSubgraph], target_count: int
    ) -> list[SemanticSubgraph]:
        """Keep at most `target_count` mutually non-redundant subgraphs, best first."""
        kept: list[SemanticSubgraph] = []
        if target_count <= 0:
            return kept

        for candidate in sorted(subgraphs, key=lambda s: s.sort_key()):
            if len(kept) >= target_count:
                break
            if self._is_redundant(candidate, kept):
                logger.debug(f"  dropped redundant subgraph rooted at {candidate.root}")
                continue
            kept.append(candidate)

        logger.info(f"Kept {len(kept)} of {len(subgraphs)} subgraphs after redundancy removal")
        return kept

    def _is_redundant(self, candidate: SemanticSubgraph, kept: list[SemanticSubgraph]) -> bool:
        for other in kept:
            if other.contains(candidate):
                return True
            if self.similarity(candidate, other) > self.threshold:
                return True
        return False
