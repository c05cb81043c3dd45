"""Tests for candidate disambiguation onto a semantic graph."""

from __future__ import annotations

from textplanner.graph.semantic import SemanticGraph
from textplanner.models import Candidate, MeaningArena, Mention
from textplanner.planning.planner import TextPlanner
from textplanner.ranking.disambiguation import disambiguate, select_candidates, select_mentions

SMALL = Mention(context_id="s1", span=(0, 1), surface_form="small")
DOG = Mention(context_id="s1", span=(1, 2), surface_form="dog")
SMALL_DOG = Mention(context_id="s1", span=(0, 2), surface_form="small dog")


def _candidate(arena: MeaningArena, mention: Mention, ref: str, weight: float | None) -> Candidate:
    c = Candidate(mention=mention, meaning=arena.get(ref))
    if weight is not None:
        c.set_weight(weight)
    return c


class TestSelectCandidates:
    def test_best_weight_per_mention(self, arena: MeaningArena):
        candidates = [
            _candidate(arena, DOG, "bn:puppy", 0.2),
            _candidate(arena, DOG, "bn:dog", 0.7),
            _candidate(arena, SMALL, "bn:small", 0.1),
        ]
        selected = select_candidates(candidates)
        assert [c.meaning.reference for c in selected] == ["bn:dog", "bn:small"]

    def test_missing_weight_counts_as_zero(self, arena: MeaningArena):
        candidates = [
            _candidate(arena, DOG, "bn:puppy", None),
            _candidate(arena, DOG, "bn:dog", 0.1),
        ]
        assert select_candidates(candidates)[0].meaning.reference == "bn:dog"


class TestSelectMentions:
    def test_heavier_span_subsumes(self, arena: MeaningArena):
        candidates = [
            _candidate(arena, SMALL_DOG, "bn:puppy", 0.9),
            _candidate(arena, SMALL, "bn:small", 0.1),
            _candidate(arena, DOG, "bn:dog", 0.5),
        ]
        selected = select_mentions(candidates)
        assert list(selected) == [SMALL_DOG]
        assert set(selected[SMALL_DOG]) == {SMALL, DOG}

    def test_lighter_span_loses(self, arena: MeaningArena):
        candidates = [
            _candidate(arena, SMALL_DOG, "bn:puppy", 0.3),
            _candidate(arena, SMALL, "bn:small", 0.1),
            _candidate(arena, DOG, "bn:dog", 0.5),
        ]
        # small is outweighed by small dog, which is itself outweighed by dog
        assert list(select_mentions(candidates)) == [DOG]

    def test_disjoint_spans_all_kept(self, arena: MeaningArena):
        candidates = [
            _candidate(arena, SMALL, "bn:small", 0.1),
            _candidate(arena, DOG, "bn:dog", 0.5),
        ]
        selected = select_mentions(candidates)
        assert list(selected) == [SMALL, DOG]
        assert selected[DOG] == []

    def test_other_context_not_subsumed(self, arena: MeaningArena):
        other = Mention(context_id="s2", span=(0, 2), surface_form="small dog")
        candidates = [
            _candidate(arena, other, "bn:puppy", 0.9),
            _candidate(arena, DOG, "bn:dog", 0.5),
        ]
        assert set(select_mentions(candidates)) == {other, DOG}


class TestDisambiguate:
    def test_assigns_best_meaning(self, arena: MeaningArena):
        graph = SemanticGraph()
        candidates = [
            _candidate(arena, DOG, "bn:puppy", 0.2),
            _candidate(arena, DOG, "bn:dog", 0.7),
            _candidate(arena, SMALL, "bn:small", 0.1),
        ]
        assigned = disambiguate(graph, candidates)
        assert len(assigned) == 2
        assert graph.vertices == ["s1_0-1", "s1_1-2"]
        assert graph.get_meaning("s1_1-2") == arena.get("bn:dog")
        assert graph.get_weight("s1_1-2") == 0.7
        assert graph.get_mentions("s1_1-2") == frozenset({DOG})

    def test_contracts_subsumed_vertices(self, arena: MeaningArena):
        graph = SemanticGraph()
        graph.add_vertex("s1_0-1", sources=["s1"])
        graph.add_vertex("s1_1-2", sources=["s1"])
        graph.add_vertex("x")
        graph.add_edge("s1_1-2", "s1_0-1", ":mod")
        graph.add_edge("x", "s1_1-2", ":ARG0")
        candidates = [
            _candidate(arena, SMALL_DOG, "bn:puppy", 0.9),
            _candidate(arena, SMALL, "bn:small", 0.1),
            _candidate(arena, DOG, "bn:dog", 0.5),
        ]
        disambiguate(graph, candidates)

        assert graph.vertices == ["s1_0-2", "x"]
        assert graph.has_edge("x", "s1_0-2", ":ARG0")
        assert graph.number_of_edges() == 1
        assert graph.get_meaning("s1_0-2") == arena.get("bn:puppy")
        assert graph.get_weight("s1_0-2") == 0.9
        assert "s1" in graph.get_sources("s1_0-2")

    def test_empty(self):
        graph = SemanticGraph()
        assert disambiguate(graph, []) == []
        assert len(graph) == 0


class TestPlannerDisambiguate:
    def test_ranks_then_assigns(self, arena: MeaningArena, weight, similarity):
        bone = Mention(context_id="s1", span=(5, 6), surface_form="bone")
        candidates = [
            Candidate(mention=DOG, meaning=arena.get("bn:small")),
            Candidate(mention=DOG, meaning=arena.get("bn:dog")),
            Candidate(mention=bone, meaning=arena.get("bn:eat")),
            Candidate(mention=bone, meaning=arena.get("bn:bone")),
        ]
        graph = SemanticGraph()
        TextPlanner().disambiguate(graph, candidates, weight, similarity)

        assert all(c.has_weight for c in candidates)
        assert graph.get_meaning(DOG.id) == arena.get("bn:dog")
        assert graph.get_meaning(bone.id) == arena.get("bn:bone")
        assert graph.get_weight(DOG.id) == candidates[1].weight
