"""Shared test fixtures for textplanner."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from textplanner.graph.semantic import SemanticGraph
from textplanner.models import Meaning, MeaningArena

RELEVANCE = {
    "bn:dog": 0.8,
    "bn:puppy": 0.5,
    "bn:bone": 0.6,
    "bn:want": 0.3,
    "bn:eat": 0.4,
    "bn:small": 0.1,
}

SIMILARITIES = {
    frozenset(("bn:dog", "bn:puppy")): 0.9,
    frozenset(("bn:bone", "bn:eat")): 0.4,
    frozenset(("bn:want", "bn:eat")): 0.3,
}


def meaning_weight(meaning: Meaning) -> float:
    return RELEVANCE.get(meaning.reference, 0.0)


def meaning_similarity(m1: Meaning, m2: Meaning) -> float | None:
    return SIMILARITIES.get(frozenset((m1.reference, m2.reference)))


@pytest.fixture
def arena() -> MeaningArena:
    """A meaning arena with the test vocabulary interned."""
    arena = MeaningArena()
    arena.intern("bn:dog", "dog")
    arena.intern("bn:puppy", "puppy")
    arena.intern("bn:bone", "bone")
    arena.intern("bn:want", "want")
    arena.intern("bn:eat", "eat")
    arena.intern("bn:small", "small")
    return arena


@pytest.fixture
def weight():
    return meaning_weight


@pytest.fixture
def similarity():
    return meaning_similarity


@pytest.fixture
def amr_graph(arena: MeaningArena) -> SemanticGraph:
    """'The small dog wants to eat a bone', as an AMR-like graph.

    w/want-01 :ARG0 d/dog :ARG1 (e/eat-01 :ARG0 d :ARG1 b/bone), d :mod s/small
    """
    g = SemanticGraph()
    g.add_vertex("w", meaning=arena.get("bn:want"), sources=["s1"], types=["want-01"])
    g.add_vertex("d", meaning=arena.get("bn:dog"), sources=["s1"], types=["dog"])
    g.add_vertex("e", meaning=arena.get("bn:eat"), sources=["s1"], types=["eat-01"])
    g.add_vertex("b", meaning=arena.get("bn:bone"), sources=["s1"], types=["bone"])
    g.add_vertex("s", meaning=arena.get("bn:small"), sources=["s1"], types=["small"])
    g.add_edge("w", "d", ":ARG0")
    g.add_edge("w", "e", ":ARG1")
    g.add_edge("e", "d", ":ARG0")
    g.add_edge("e", "b", ":ARG1")
    g.add_edge("d", "s", ":mod")
    return g


@pytest.fixture
def two_sentence_graph(arena: MeaningArena) -> SemanticGraph:
    """Two disconnected sentences: 'dog eats bone' and 'a puppy'."""
    g = SemanticGraph()
    g.add_vertex("d", meaning=arena.get("bn:dog"), sources=["s1"])
    g.add_vertex("e", meaning=arena.get("bn:eat"), sources=["s1"])
    g.add_vertex("b", meaning=arena.get("bn:bone"), sources=["s1"])
    g.add_vertex("p", meaning=arena.get("bn:puppy"), sources=["s2"])
    g.add_vertex("x", sources=["s2"])  # unresolved
    g.add_edge("e", "d", ":ARG0")
    g.add_edge("e", "b", ":ARG1")
    g.add_edge("p", "x", ":mod")
    return g


@pytest.fixture
def graph_document() -> dict:
    """The AMR-like graph as a JSON graph document."""
    return {
        "meanings": [
            {"reference": ref, "label": ref.split(":")[1], "weight": w}
            for ref, w in RELEVANCE.items()
        ],
        "vertices": [
            {"id": "w", "meaning": "bn:want", "sources": ["s1"], "types": ["want-01"]},
            {
                "id": "d",
                "meaning": "bn:dog",
                "sources": ["s1"],
                "mentions": [
                    {"context_id": "s1", "span": [2, 3], "surface_form": "dog", "pos": "NOUN"}
                ],
            },
            {"id": "e", "meaning": "bn:eat", "sources": ["s1"], "types": ["eat-01"]},
            {"id": "b", "meaning": "bn:bone", "sources": ["s1"]},
            {"id": "s", "meaning": "bn:small", "sources": ["s1"]},
        ],
        "edges": [
            {"source": "w", "target": "d", "role": ":ARG0"},
            {"source": "w", "target": "e", "role": ":ARG1"},
            {"source": "e", "target": "d", "role": ":ARG0"},
            {"source": "e", "target": "b", "role": ":ARG1"},
            {"source": "d", "target": "s", "role": ":mod"},
        ],
        "similarities": [[*sorted(pair), v] for pair, v in SIMILARITIES.items()],
    }


@pytest.fixture
def graph_file(tmp_path: Path, graph_document: dict) -> Path:
    """The graph document written to a temporary JSON file."""
    path = tmp_path / "graph.json"
    path.write_text(json.dumps(graph_document))
    return path
