"""Tests for ranking matrices, power iteration and the ranking entry points."""

from __future__ import annotations

import math

import numpy as np
import pytest

from textplanner.config import PlanningOptions
from textplanner.exceptions import (
    EmptyGraphError,
    RankingDidNotConvergeError,
    RankingError,
    WeightAlreadySetError,
)
from textplanner.graph.semantic import SemanticGraph
from textplanner.models import Candidate, Meaning, MeaningArena, Mention
from textplanner.ranking.matrix import (
    blend,
    build_ranking_matrix,
    build_variable_ranking_matrix,
    is_stochastic,
    normalize_vector,
    rebase,
    similarity_matrix,
)
from textplanner.ranking.power import PowerIteration, power_iteration
from textplanner.ranking.ranker import (
    DifferentMentionsFilter,
    rank,
    rank_meanings,
    rank_mentions,
    rank_variables,
    rank_vertices,
)


def _random_case(seed: int, n: int):
    rng = np.random.default_rng(seed)
    weights = rng.random(n)
    weights[rng.random(n) < 0.3] = 0.0
    sims = rng.random((n, n))
    sims[rng.random((n, n)) < 0.5] = np.nan  # undefined
    items = list(range(n))

    def weight(i):
        return float(weights[i])

    def similarity(i, j):
        value = sims[min(i, j), max(i, j)]
        return None if math.isnan(value) else float(value)

    return items, weight, similarity


class TestRankingMatrix:
    @pytest.mark.parametrize("seed", range(8))
    @pytest.mark.parametrize("damping", [0.0, 0.1, 0.5, 1.0])
    def test_rows_sum_to_one(self, seed: int, damping: float):
        items, weight, similarity = _random_case(seed, 2 + seed)
        m = build_ranking_matrix(items, weight, similarity, damping)
        assert m.shape == (len(items), len(items))
        assert is_stochastic(m)
        assert np.allclose(m.sum(axis=1), 1.0, atol=1e-9)

    def test_scenario_no_similarity_full_damping(self):
        weights = {"a": 1.0, "b": 0.5, "c": 0.0}
        m = build_ranking_matrix(["a", "b", "c"], weights.get, lambda x, y: None, damping=1.0)
        expected = [2 / 3, 1 / 3, 0.0]
        for row in m:
            assert row == pytest.approx(expected)

    def test_zero_similarity_row_folds_into_bias(self):
        weights = {"a": 1.0, "b": 0.5, "c": 0.0}
        sims = {frozenset(("a", "b")): 1.0}
        m = build_ranking_matrix(
            ["a", "b", "c"],
            weights.get,
            lambda x, y: sims.get(frozenset((x, y))),
            damping=0.1,
        )
        # c is similar to nothing: its row is the bias vector
        assert m[2] == pytest.approx([2 / 3, 1 / 3, 0.0])
        # a: 0.1 * bias + 0.9 * [0, 1, 0]
        assert m[0] == pytest.approx([0.1 * 2 / 3, 0.1 / 3 + 0.9, 0.0])

    def test_single_item(self):
        m = build_ranking_matrix(["a"], lambda x: 0.7, lambda x, y: None, damping=0.1)
        assert m.tolist() == [[1.0]]

    def test_no_items(self):
        m = build_ranking_matrix([], lambda x: 1.0, lambda x, y: None, damping=0.1)
        assert m.shape == (0, 0)

    def test_all_zero_weights_become_uniform(self):
        m = build_ranking_matrix(["a", "b"], lambda x: 0.0, lambda x, y: None, damping=0.5)
        assert m.tolist() == [[0.5, 0.5], [0.5, 0.5]]

    def test_nan_and_negative_values_are_clamped(self):
        items = ["a", "b", "c"]
        m = build_ranking_matrix(
            items,
            lambda x: float("nan") if x == "a" else -1.0 if x == "b" else 1.0,
            lambda x, y: float("nan") if "a" in (x, y) else -0.5,
            damping=0.3,
        )
        assert is_stochastic(m)
        assert not np.any(np.isnan(m))

    def test_floors(self):
        weights = {"a": 1.0, "b": 0.2}
        m = build_ranking_matrix(
            ["a", "b"], weights.get, lambda x, y: None, damping=1.0, relevance_floor=0.5
        )
        assert m[0] == pytest.approx([1.0, 0.0])

    def test_invalid_damping(self):
        with pytest.raises(ValueError):
            build_ranking_matrix(["a", "b"], lambda x: 1.0, lambda x, y: None, damping=1.5)

    def test_similarity_matrix_symmetric_and_filtered(self):
        items = ["a", "b", "c"]
        calls: list[tuple[str, str]] = []

        def sim(x, y):
            calls.append((x, y))
            return 0.5

        m = similarity_matrix(items, sim, pair_filter=lambda x, y: {x, y} != {"a", "c"})
        assert np.array_equal(m, m.T)
        assert m[0, 2] == 0.0
        assert m[0, 1] == 0.5
        assert ("c", "a") not in calls
        assert len(calls) == 5  # three diagonal pairs, (a, b) and (b, c)

    def test_parallel_similarity_matches_sequential(self):
        items, _, similarity = _random_case(3, 12)
        sequential = similarity_matrix(items, similarity)
        parallel = similarity_matrix(items, similarity, workers=4)
        assert np.array_equal(sequential, parallel)

    def test_blend_and_normalize(self):
        assert normalize_vector(np.zeros(4)).tolist() == [0.25] * 4
        m = blend(np.array([0.5, 0.5]), np.zeros((2, 2)), 0.2)
        assert m.tolist() == [[0.5, 0.5], [0.5, 0.5]]

    def test_rebase(self):
        assert rebase([1.0, 2.0, 3.0]).tolist() == [0.0, 0.5, 1.0]
        assert rebase([0.4, 0.4]).tolist() == [1.0, 1.0]
        assert rebase([]).size == 0


class TestPowerIteration:
    @pytest.mark.parametrize("seed", range(6))
    def test_converges_to_distribution(self, seed: int):
        rng = np.random.default_rng(seed)
        n = 3 + seed
        m = rng.random((n, n))
        m = m / m.sum(axis=1, keepdims=True)
        v = PowerIteration(epsilon=0.01).run(m)
        assert v.sum() == pytest.approx(1.0, abs=1e-6)
        assert np.all(v >= 0.0)

    @pytest.mark.parametrize("seed", range(4))
    def test_independent_of_initial_distribution(self, seed: int):
        rng = np.random.default_rng(100 + seed)
        n = 6
        m = rng.random((n, n))
        m = m / m.sum(axis=1, keepdims=True)
        epsilon = 1e-4
        v1 = power_iteration(m, initial=np.eye(n)[0], epsilon=epsilon)
        v2 = power_iteration(m, initial=rng.random(n), epsilon=epsilon)
        assert np.max(np.abs(v1 - v2)) <= 2 * epsilon

    def test_scenario_one_step(self):
        weights = {"a": 1.0, "b": 0.5, "c": 0.0}
        m = build_ranking_matrix(["a", "b", "c"], weights.get, lambda x, y: None, damping=1.0)
        solver = PowerIteration(epsilon=0.01)
        v = solver.run(m)
        assert v == pytest.approx([2 / 3, 1 / 3, 0.0])
        assert solver.fixed_point_step == 1
        assert solver.iterations == 2
        assert solver.delta == pytest.approx(0.0)

    def test_single_state(self):
        assert power_iteration(np.ones((1, 1))).tolist() == [1.0]

    def test_stationary_start(self):
        solver = PowerIteration()
        solver.run(np.ones((1, 1)))
        assert solver.iterations == 1
        assert solver.fixed_point_step == 0

    def test_iteration_cap(self):
        periodic = np.array([[0.0, 1.0], [1.0, 0.0]])
        solver = PowerIteration(epsilon=0.01, max_iterations=50)
        with pytest.raises(RankingDidNotConvergeError) as exc:
            solver.run(periodic, initial=np.array([1.0, 0.0]))
        assert exc.value.iterations == 50
        assert exc.value.delta == pytest.approx(1.0)
        assert solver.fixed_point_step is None

    def test_empty_chain(self):
        with pytest.raises(EmptyGraphError):
            power_iteration(np.zeros((0, 0)))

    def test_invalid_matrices(self):
        with pytest.raises(RankingError):
            power_iteration(np.ones((2, 3)))
        with pytest.raises(RankingError):
            power_iteration(np.array([[1.0, -0.5], [0.5, 0.5]]))
        with pytest.raises(RankingError):
            power_iteration(np.array([[np.nan, 1.0], [0.5, 0.5]]))
        with pytest.raises(RankingError):
            power_iteration(np.eye(2), initial=np.array([1.0, 0.0, 0.0]))

    def test_invalid_settings(self):
        with pytest.raises(ValueError):
            PowerIteration(epsilon=0.0)
        with pytest.raises(ValueError):
            PowerIteration(max_iterations=0)


class TestRank:
    def test_rank_sums_to_one(self):
        items, weight, similarity = _random_case(7, 10)
        v = rank(items, weight, similarity, damping=0.2)
        assert v.sum() == pytest.approx(1.0, abs=1e-6)

    def test_rank_empty(self):
        assert rank([], lambda x: 1.0, lambda x, y: None).size == 0


class TestRankVertices:
    def test_writes_weights(self, amr_graph: SemanticGraph, weight, similarity):
        ranks = rank_vertices(amr_graph, weight, similarity, PlanningOptions())
        assert set(ranks) == set(amr_graph.vertices)
        assert sum(ranks.values()) == pytest.approx(1.0, abs=1e-6)
        for v, r in ranks.items():
            assert amr_graph.get_weight(v) == r
        assert ranks["d"] > ranks["s"]

    def test_unresolved_vertex_gets_nothing(
        self, two_sentence_graph: SemanticGraph, weight, similarity
    ):
        ranks = rank_vertices(two_sentence_graph, weight, similarity)
        assert ranks["x"] == 0.0
        assert ranks["d"] > 0.0

    def test_empty_graph(self, weight, similarity):
        assert rank_vertices(SemanticGraph(), weight, similarity) == {}


class TestRankMeanings:
    def _candidates(self, arena: MeaningArena) -> list[Candidate]:
        dog = Mention(context_id="s1", span=(1, 2), surface_form="dog")
        bone = Mention(context_id="s1", span=(4, 5), surface_form="bone")
        return [
            Candidate(dog, arena.get("bn:dog")),
            Candidate(dog, arena.get("bn:puppy")),
            Candidate(bone, arena.get("bn:bone")),
            Candidate(bone, arena.get("bn:small")),
        ]

    def test_writes_rebased_ranks(self, arena: MeaningArena, weight, similarity):
        candidates = self._candidates(arena)
        ranks = rank_meanings(candidates, weight, similarity)
        assert set(ranks) == {"bn:dog", "bn:puppy", "bn:bone", "bn:small"}
        assert max(ranks.values()) == 1.0
        assert min(ranks.values()) == 0.0
        for c in candidates:
            assert c.weight == ranks[c.meaning.reference]

    def test_candidate_filter(self, arena: MeaningArena, weight, similarity):
        candidates = self._candidates(arena)
        ranks = rank_meanings(
            candidates,
            weight,
            similarity,
            candidate_filter=lambda c: c.meaning.reference != "bn:small",
        )
        assert "bn:small" not in ranks
        assert not candidates[3].has_weight

    def test_weights_are_write_once(self, arena: MeaningArena, weight, similarity):
        candidates = self._candidates(arena)
        rank_meanings(candidates, weight, similarity)
        with pytest.raises(WeightAlreadySetError):
            rank_meanings(candidates, weight, similarity)

    def test_no_candidates(self, weight, similarity):
        assert rank_meanings([], weight, similarity) == {}

    def test_different_mentions_filter(self, arena: MeaningArena):
        f = DifferentMentionsFilter(self._candidates(arena))
        assert not f(arena.get("bn:dog"), arena.get("bn:puppy"))
        assert f(arena.get("bn:dog"), arena.get("bn:bone"))
        assert f(arena.get("bn:dog"), Meaning(reference="bn:unseen"))


class TestRankMentions:
    def test_rank_mentions(self):
        m1 = Mention(context_id="s1", span=(0, 1))
        m2 = Mention(context_id="s1", span=(1, 2))
        m3 = Mention(context_id="s2", span=(0, 1))
        ranks = rank_mentions(
            {m1: 1.0, m2: None, m3: 0.0},
            are_connected=lambda a, b: {a, b} == {m1, m2},
            same_meaning=lambda a, b: False,
        )
        assert set(ranks) == {m1, m2, m3}
        assert ranks[m3] == 0.0
        assert max(ranks.values()) == 1.0

    def test_empty(self):
        assert rank_mentions({}, lambda a, b: False, lambda a, b: False) == {}


class TestRankVariables:
    def test_adjacency_walk(self):
        g = SemanticGraph()
        for v in ("a", "b", "c"):
            g.add_vertex(v)
        g.add_edge("a", "b", ":ARG0")
        g.add_edge("b", "c", ":ARG1")
        ranks = rank_variables(g, damping=0.2)
        assert sum(ranks.values()) == pytest.approx(1.0, abs=1e-6)
        assert ranks["b"] > ranks["a"]
        assert g.get_weight("b") == ranks["b"]

    def test_isolated_vertex_uses_bias(self):
        g = SemanticGraph()
        g.add_vertex("a", weight=1.0)
        g.add_vertex("b", weight=1.0)
        g.add_vertex("z", weight=1.0)
        g.add_edge("a", "b", ":mod")
        m = build_variable_ranking_matrix(g, g.vertices, 0.2)
        assert is_stochastic(m)
        assert m[2] == pytest.approx([1 / 3, 1 / 3, 1 / 3])

    def test_empty(self):
        assert rank_variables(SemanticGraph()) == {}
