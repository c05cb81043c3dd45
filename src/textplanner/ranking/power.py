"""Power iteration over a row-stochastic transition matrix."""

from __future__ import annotations

import logging

import numpy as np

from textplanner.exceptions import (
    EmptyGraphError,
    RankingDidNotConvergeError,
    RankingError,
)

logger = logging.getLogger("textplanner.ranking")

DEFAULT_MAX_ITERATIONS = 10_000


class PowerIteration:
    """Stationary distribution of a Markov chain by repeated multiplication.

    The transition matrix is transposed so that multiplying it with a column
    vector gives the probability of arriving at each state. After every step
    the vector is renormalized by its L1 norm; iteration stops once the largest
    per-state change drops below `epsilon`, or raises once `max_iterations`
    steps have run without getting there.

    `iterations` counts every step taken, including the last one that only
    confirms convergence. `fixed_point_step` is the step whose result that last
    step confirmed, so it is `iterations - 1` (0 when the initial vector was
    already stationary).
    """

    def __init__(
        self,
        epsilon: float = 0.01,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ) -> None:
        if epsilon <= 0.0:
            raise ValueError(f"epsilon must be positive, got {epsilon}")
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {max_iterations}")
        self.epsilon = epsilon
        self.max_iterations = max_iterations
        self.iterations = 0
        self.fixed_point_step: int | None = None
        self.delta = float("inf")

    def run(
        self,
        transition: np.ndarray,
        initial: np.ndarray | None = None,
    ) -> np.ndarray:
        a = np.asarray(transition, dtype=float)
        if a.ndim != 2 or a.shape[0] != a.shape[1]:
            raise RankingError(f"Transition matrix must be square, got shape {a.shape}")
        n = a.shape[0]
        if n == 0:
            raise EmptyGraphError("Cannot rank a chain with no states")
        if not np.all(np.isfinite(a)):
            raise RankingError("Transition matrix contains NaN or infinite values")
        if np.any(a < 0.0):
            raise RankingError("Transition matrix contains negative values")

        v = self._initial_vector(n, initial)
        at = a.T

        self.iterations = 0
        self.fixed_point_step = None
        self.delta = float("inf")
        while self.iterations < self.max_iterations:
            nxt = at @ v
            norm = float(np.abs(nxt).sum())
            nxt = nxt / norm if norm > 0.0 else np.full(n, 1.0 / n)

            self.delta = float(np.abs(nxt - v).max())
            v = nxt
            self.iterations += 1
            if self.iterations % 100 == 0:
                logger.info(f"...{self.iterations} iterations")
            if self.delta < self.epsilon:
                self.fixed_point_step = self.iterations - 1
                logger.info(f"Power iteration completed after {self.iterations} iterations")
                return v

        raise RankingDidNotConvergeError(self.iterations, self.delta, self.epsilon)

    @staticmethod
    def _initial_vector(n: int, initial: np.ndarray | None) -> np.ndarray:
        if initial is None:
            return np.full(n, 1.0 / n)
        v = np.asarray(initial, dtype=float)
        if v.shape != (n,):
            raise RankingError(f"Initial vector must have shape ({n},), got {v.shape}")
        if not np.all(np.isfinite(v)) or np.any(v < 0.0):
            raise RankingError("Initial vector must be finite and non-negative")
        total = float(v.sum())
        if total <= 0.0:
            return np.full(n, 1.0 / n)
        return v / total


def power_iteration(
    transition: np.ndarray,
    initial: np.ndarray | None = None,
    epsilon: float = 0.01,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> np.ndarray:
    """Run power iteration once with the given settings."""
    return PowerIteration(epsilon, max_iterations).run(transition, initial)
