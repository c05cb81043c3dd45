"""Biased stochastic matrices for ranking.

Formulation (Biased LexRank, Otterbacher et al. 2009):

  For items x_1..x_n with relevance weight w(x) and pairwise similarity s(x, y):

    b = normalize(w(x_i) clamped at relevance_floor)       relevance row vector
    S = row_normalize(s(x_i, x_j) clamped at sim_floor)    symmetric similarity
    M[i][j] = d * b[j] + (1 - d) * S[i][j]                 transition matrix

  A zero row in S (an item similar to nothing) folds entirely into the
  relevance term, so M[i] = b for that row. M is row-normalized once more to
  absorb floating-point drift.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

import numpy as np

from textplanner.graph.semantic import SemanticGraph

logger = logging.getLogger("textplanner.ranking")

T = TypeVar("T")

WeightFunction = Callable[[T], float]
SimilarityFunction = Callable[[T, T], "float | None"]
PairFilter = Callable[[T, T], bool]


def normalize_vector(v: np.ndarray) -> np.ndarray:
    """Scale a non-negative vector to sum 1. A zero vector becomes uniform."""
    n = v.shape[0]
    if n == 0:
        return v.astype(float)
    total = float(v.sum())
    if total > 0.0 and math.isfinite(total):
        return v / total
    return np.full(n, 1.0 / n)


def normalize_rows(m: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Row-normalize a non-negative matrix.

    Returns the normalized matrix and a boolean mask of rows that summed to 0;
    those rows are left as all zeros.
    """
    sums = m.sum(axis=1)
    zero = sums <= 0.0
    safe = np.where(zero, 1.0, sums)
    return m / safe[:, None], zero


def _clean(value: float | None, floor: float) -> float:
    if value is None or not math.isfinite(value) or value < 0.0 or value < floor:
        return 0.0
    return float(value)


def bias_vector(
    items: Sequence[T],
    weight: WeightFunction,
    relevance_floor: float = 0.0,
) -> np.ndarray:
    """Normalized relevance vector. Weights below the floor count as 0."""
    raw = np.array([_clean(weight(item), relevance_floor) for item in items], dtype=float)
    return normalize_vector(raw)


def similarity_matrix(
    items: Sequence[T],
    similarity: SimilarityFunction,
    similarity_floor: float = 0.0,
    pair_filter: PairFilter | None = None,
    workers: int = 1,
) -> np.ndarray:
    """Symmetric non-negative similarity matrix, not yet normalized.

    The similarity function is evaluated once per unordered pair (i <= j) and
    mirrored. Rows are independent, so they may be computed by a thread pool.
    """
    n = len(items)
    m = np.zeros((n, n), dtype=float)

    def _row(i: int) -> list[float]:
        values = []
        for j in range(i, n):
            a, b = items[i], items[j]
            if pair_filter is not None and i != j and not pair_filter(a, b):
                values.append(0.0)
                continue
            values.append(_clean(similarity(a, b), similarity_floor))
        return values

    if workers > 1 and n > 1:
        with ThreadPoolExecutor(max_workers=min(workers, n)) as executor:
            rows = list(executor.map(_row, range(n)))
    else:
        rows = [_row(i) for i in range(n)]

    defined = 0
    for i, values in enumerate(rows):
        for offset, value in enumerate(values):
            j = i + offset
            m[i, j] = value
            m[j, i] = value
            if value > 0.0 and i != j:
                defined += 1

    logger.debug(f"Similarity positive for {defined} of {n * (n - 1) // 2} pairs")
    return m


def blend(bias: np.ndarray, similarity: np.ndarray, damping: float) -> np.ndarray:
    """Mix a relevance vector into every row of a similarity matrix."""
    n = bias.shape[0]
    if n == 0:
        return np.zeros((0, 0))

    s, zero_rows = normalize_rows(similarity)
    m = damping * np.tile(bias, (n, 1)) + (1.0 - damping) * s
    # Rows with no similarity mass: the walk can only jump by relevance
    m[zero_rows] = bias

    m, still_zero = normalize_rows(m)
    m[still_zero] = 1.0 / n
    return m


def build_ranking_matrix(
    items: Sequence[T],
    weight: WeightFunction,
    similarity: SimilarityFunction,
    damping: float,
    relevance_floor: float = 0.0,
    similarity_floor: float = 0.0,
    pair_filter: PairFilter | None = None,
    workers: int = 1,
) -> np.ndarray:
    """Create a row-stochastic matrix biased towards relevant items.

    Args:
        items: Items to rank; rows and columns follow this order.
        weight: Relevance of a single item.
        similarity: Similarity of a pair of items, or None when undefined.
        damping: Share of the relevance bias in [0, 1]. 1 ignores similarity.
        relevance_floor: Relevance values below this are treated as 0.
        similarity_floor: Similarity values below this are treated as 0.
        pair_filter: Optional predicate; pairs it rejects get similarity 0.
        workers: Thread pool size for the similarity matrix.

    Returns:
        An n x n numpy array whose rows each sum to 1.
    """
    if not 0.0 <= damping <= 1.0:
        raise ValueError(f"Damping factor must be in [0, 1], got {damping}")

    n = len(items)
    logger.info(f"Creating ranking matrix for {n} items")
    if n == 0:
        return np.zeros((0, 0))
    if n == 1:
        return np.ones((1, 1))

    b = bias_vector(items, weight, relevance_floor)
    s = similarity_matrix(items, similarity, similarity_floor, pair_filter, workers)
    return blend(b, s, damping)


def is_stochastic(m: np.ndarray, tolerance: float = 1e-9) -> bool:
    """Square, non-negative, finite and rows summing to 1."""
    if m.ndim != 2 or m.shape[0] != m.shape[1]:
        return False
    if m.size == 0:
        return True
    if not np.all(np.isfinite(m)) or np.any(m < 0.0):
        return False
    return bool(np.all(np.abs(m.sum(axis=1) - 1.0) <= tolerance))


# ---------------------------------------------------------------------------
# Variable (vertex) ranking over graph adjacency
# ---------------------------------------------------------------------------


def variables_bias_vector(graph: SemanticGraph, vertices: Sequence[str]) -> np.ndarray:
    """Current vertex weights with Laplace smoothing, normalized.

    The pseudocount is a hundredth of the mean weight, so no vertex is left
    with a zero bias.
    """
    weights = np.array(
        [max(0.0, graph.get_weight(v)) for v in vertices], dtype=float
    )
    if weights.size == 0:
        return weights
    alpha = float(weights.mean()) / 100.0
    return normalize_vector(weights + alpha)


def adjacency_matrix(graph: SemanticGraph, vertices: Sequence[str]) -> np.ndarray:
    """Symmetric 0/1 adjacency, ignoring direction and multiplicity."""
    index = {v: i for i, v in enumerate(vertices)}
    n = len(vertices)
    m = np.zeros((n, n), dtype=float)
    for u, v, _ in graph.edges():
        if u in index and v in index and u != v:
            m[index[u], index[v]] = 1.0
            m[index[v], index[u]] = 1.0
    return m


def build_variable_ranking_matrix(
    graph: SemanticGraph, vertices: Sequence[str], damping: float
) -> np.ndarray:
    """Stochastic matrix for a random walk over graph vertices biased by their weights."""
    n = len(vertices)
    logger.info(f"Creating ranking matrix for {n} variables")
    if n == 0:
        return np.zeros((0, 0))
    if n == 1:
        return np.ones((1, 1))

    t = variables_bias_vector(graph, vertices)
    a = adjacency_matrix(graph, vertices)
    isolated = int((a.sum(axis=1) == 0).sum())
    if isolated:
        logger.warning(f"Adjacency matrix has {isolated} isolated vertices")
    return blend(t, a, damping)


def rebase(values: np.ndarray | Sequence[float]) -> np.ndarray:
    """Min-max rescale to [0, 1]. Constant input maps to all 1.0."""
    v = np.asarray(values, dtype=float)
    if v.size == 0:
        return v
    lo, hi = float(v.min()), float(v.max())
    if hi == lo:
        return np.ones_like(v)
    return (v - lo) / (hi - lo)
