"""Ranking entry points: meanings, mentions and graph vertices.

Items are ranked with a personalized PageRank: a stochastic matrix biased
towards relevant items (see `textplanner.ranking.matrix`) followed by power
iteration to its stationary distribution.
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from collections.abc import Callable, Iterable, Sequence
from typing import TypeVar

import numpy as np

from textplanner.config import PlanningOptions
from textplanner.graph.semantic import SemanticGraph
from textplanner.models import Candidate, Meaning, Mention
from textplanner.ranking.matrix import (
    PairFilter,
    build_ranking_matrix,
    build_variable_ranking_matrix,
    rebase,
)
from textplanner.ranking.power import DEFAULT_MAX_ITERATIONS, PowerIteration

logger = logging.getLogger("textplanner.ranking")

T = TypeVar("T")

MeaningWeight = Callable[[Meaning], float]
MeaningSimilarity = Callable[[Meaning, Meaning], "float | None"]


def rank(
    items: Sequence[T],
    weight: Callable[[T], float],
    similarity: Callable[[T, T], float | None],
    damping: float = 0.1,
    epsilon: float = 0.01,
    relevance_floor: float = 0.0,
    similarity_floor: float = 0.0,
    pair_filter: PairFilter | None = None,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    workers: int = 1,
) -> np.ndarray:
    """Build the biased ranking matrix for `items` and return its stationary distribution.

    Returns an empty array for no items.
    """
    if not items:
        return np.zeros(0)
    matrix = build_ranking_matrix(
        items,
        weight,
        similarity,
        damping,
        relevance_floor=relevance_floor,
        similarity_floor=similarity_floor,
        pair_filter=pair_filter,
        workers=workers,
    )
    return PowerIteration(epsilon, max_iterations).run(matrix)


def _rank_with_options(
    items: Sequence[T],
    weight: Callable[[T], float],
    similarity: Callable[[T, T], float | None],
    options: PlanningOptions,
    damping: float,
    pair_filter: PairFilter | None = None,
    floors: bool = True,
) -> np.ndarray:
    return rank(
        items,
        weight,
        similarity,
        damping=damping,
        epsilon=options.stop_threshold,
        relevance_floor=options.relevance_floor if floors else 0.0,
        similarity_floor=options.similarity_floor if floors else 0.0,
        pair_filter=pair_filter,
        max_iterations=options.max_iterations,
        workers=options.workers,
    )


class DifferentMentionsFilter:
    """Accept pairs of meanings that are not candidates of exactly the same mentions.

    Two senses competing for the very same mentions should not reinforce each
    other through similarity.
    """

    def __init__(self, candidates: Iterable[Candidate]) -> None:
        mentions: dict[str, set[Mention]] = defaultdict(set)
        for c in candidates:
            mentions[c.meaning.reference].add(c.mention)
        self._mentions = {ref: frozenset(ms) for ref, ms in mentions.items()}

    def __call__(self, m1: Meaning, m2: Meaning) -> bool:
        a = self._mentions.get(m1.reference)
        b = self._mentions.get(m2.reference)
        if a is None or b is None:
            return True
        return a != b


def rank_meanings(
    candidates: Sequence[Candidate],
    weight: MeaningWeight,
    similarity: MeaningSimilarity,
    options: PlanningOptions | None = None,
    candidate_filter: Callable[[Candidate], bool] | None = None,
    pair_filter: PairFilter | None = None,
) -> dict[str, float]:
    """Rank the distinct meanings of a set of candidates.

    Candidates passing `candidate_filter` contribute their meaning to the
    ranking. Every candidate whose meaning was ranked gets its write-once
    weight set to the rebased rank of that meaning.

    Returns:
        Rebased rank per meaning reference.
    """
    options = options or PlanningOptions()
    logger.info("Ranking meanings")
    start = time.time()

    selected = [c for c in candidates if candidate_filter is None or candidate_filter(c)]
    meanings: list[Meaning] = []
    seen: set[str] = set()
    for c in selected:
        if c.meaning.reference not in seen:
            seen.add(c.meaning.reference)
            meanings.append(c.meaning)

    if not meanings:
        return {}

    if pair_filter is None:
        pair_filter = DifferentMentionsFilter(selected)

    ranking = _rank_with_options(
        meanings, weight, similarity, options, options.damping_factor, pair_filter
    )
    rebased = rebase(ranking)
    ranks = {m.reference: float(r) for m, r in zip(meanings, rebased)}

    for c in candidates:
        r = ranks.get(c.meaning.reference)
        if r is not None:
            c.set_weight(r)

    logger.info(f"Ranked {len(meanings)} meanings in {(time.time() - start) * 1000:.1f}ms")
    for m, r in sorted(zip(meanings, rebased), key=lambda x: -x[1]):
        logger.debug(f"  {r:.4f} {m}")
    return ranks


def rank_mentions(
    mentions: dict[Mention, float | None],
    are_connected: Callable[[Mention, Mention], bool],
    same_meaning: Callable[[Mention, Mention], bool],
    options: PlanningOptions | None = None,
) -> dict[Mention, float]:
    """Rank mentions from an optional initial bias and their connections.

    Mentions without a bias take the mean of the known biases. Two mentions
    are adjacent if they are connected or share a meaning.
    """
    options = options or PlanningOptions()
    logger.info("Ranking mentions")
    if not mentions:
        return {}

    items = sorted(mentions, key=lambda m: (m.context_id, m.span))
    known = [b for b in mentions.values() if b is not None]
    mean_bias = sum(known) / len(known) if known else 0.0
    bias = {m: (mentions[m] if mentions[m] is not None else mean_bias) for m in items}

    def _adjacency(m1: Mention, m2: Mention) -> float:
        if m1 == m2:
            return 0.0
        return 1.0 if are_connected(m1, m2) or same_meaning(m1, m2) else 0.0

    ranking = _rank_with_options(
        items, bias.__getitem__, _adjacency, options, options.damping_variables, floors=False
    )
    return {m: float(r) for m, r in zip(items, rebase(ranking))}


def rank_vertices(
    graph: SemanticGraph,
    weight: MeaningWeight,
    similarity: MeaningSimilarity,
    options: PlanningOptions | None = None,
) -> dict[str, float]:
    """Rank graph vertices by the relevance and similarity of their meanings.

    Vertices without a meaning have zero relevance and no similarity. The
    stationary distribution is written back onto the graph with `set_weight`.
    """
    options = options or PlanningOptions()
    vertices = graph.vertices
    logger.info(f"Ranking {len(vertices)} vertices")
    if not vertices:
        return {}

    def _weight(v: str) -> float:
        meaning = graph.get_meaning(v)
        return weight(meaning) if meaning is not None else 0.0

    def _similarity(v1: str, v2: str) -> float | None:
        m1, m2 = graph.get_meaning(v1), graph.get_meaning(v2)
        if m1 is None or m2 is None:
            return None
        return similarity(m1, m2)

    ranking = _rank_with_options(
        vertices, _weight, _similarity, options, options.damping_factor
    )
    ranks = {v: float(r) for v, r in zip(vertices, ranking)}
    for v, r in ranks.items():
        graph.set_weight(v, r)
    return ranks


def rank_variables(
    graph: SemanticGraph,
    damping: float = 0.2,
    epsilon: float = 0.01,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> dict[str, float]:
    """Re-rank vertices by a walk over graph adjacency biased by their current weights.

    The result is written back onto the graph.
    """
    vertices = graph.vertices
    if not vertices:
        return {}
    matrix = build_variable_ranking_matrix(graph, vertices, damping)
    ranking = PowerIteration(epsilon, max_iterations).run(matrix)
    ranks = {v: float(r) for v, r in zip(vertices, ranking)}
    for v, r in ranks.items():
        graph.set_weight(v, r)
    return ranks
