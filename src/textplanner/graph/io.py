"""JSON graph documents.

A document lists meanings with their relevance, vertices, labelled edges and
pairwise meaning similarities:

    {
      "meanings": [{"reference": "bn:00015267n", "label": "dog", "weight": 0.8}],
      "vertices": [{"id": "d", "meaning": "bn:00015267n", "sources": ["s1"]}],
      "edges": [{"source": "w", "target": "d", "role": ":ARG0"}],
      "similarities": [["bn:00015267n", "bn:00015265n", 0.6]]
    }
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from textplanner.exceptions import GraphError, GraphFormatError
from textplanner.graph.semantic import SemanticGraph
from textplanner.models import Meaning, MeaningArena, Mention

logger = logging.getLogger("textplanner.graph")


class MeaningEntry(BaseModel):
    reference: str
    label: str = ""
    is_ne: bool = False
    type: str = ""
    weight: float = 0.0


class VertexEntry(BaseModel):
    id: str
    meaning: str | None = None
    sources: list[str] = Field(default_factory=list)
    types: list[str] = Field(default_factory=list)
    mentions: list[Mention] = Field(default_factory=list)


class EdgeEntry(BaseModel):
    source: str
    target: str
    role: str


class GraphDocumentModel(BaseModel):
    meanings: list[MeaningEntry] = Field(default_factory=list)
    vertices: list[VertexEntry] = Field(default_factory=list)
    edges: list[EdgeEntry] = Field(default_factory=list)
    similarities: list[tuple[str, str, float]] = Field(default_factory=list)


@dataclass
class GraphDocument:
    """A loaded graph with the relevance and similarity tables that came with it."""

    graph: SemanticGraph
    arena: MeaningArena
    relevance: dict[str, float] = field(default_factory=dict)
    similarities: dict[frozenset[str], float] = field(default_factory=dict)

    def weight(self, meaning: Meaning) -> float:
        return self.relevance.get(meaning.reference, 0.0)

    def similarity(self, m1: Meaning, m2: Meaning) -> float | None:
        return self.similarities.get(frozenset((m1.reference, m2.reference)))


def parse_graph(data: dict[str, Any]) -> GraphDocument:
    """Build a graph document from already-decoded JSON."""
    try:
        doc = GraphDocumentModel(**data)
    except (ValidationError, TypeError) as e:
        raise GraphFormatError(f"Invalid graph document: {e}") from e

    arena = MeaningArena()
    relevance: dict[str, float] = {}
    for m in doc.meanings:
        arena.intern(m.reference, m.label, m.is_ne, m.type)
        relevance[m.reference] = m.weight

    graph = SemanticGraph()
    for v in doc.vertices:
        meaning = None
        if v.meaning is not None:
            meaning = arena.get(v.meaning)
            if meaning is None:
                meaning = arena.intern(v.meaning)
        graph.add_vertex(v.id, meaning=meaning, sources=v.sources, types=v.types)
        for mention in v.mentions:
            graph.add_mention(v.id, mention)

    for e in doc.edges:
        try:
            graph.add_edge(e.source, e.target, e.role)
        except GraphError as err:
            raise GraphFormatError(f"Invalid edge {e.source} -{e.role}-> {e.target}: {err}") from err

    similarities = {
        frozenset((r1, r2)): value for r1, r2, value in doc.similarities
    }
    logger.debug(
        f"Parsed graph with {len(graph)} vertices, {graph.number_of_edges()} edges, "
        f"{len(similarities)} similarities"
    )
    return GraphDocument(graph, arena, relevance, similarities)


def load_graph(path: Path) -> GraphDocument:
    """Load a graph document from a JSON file."""
    try:
        data = json.loads(Path(path).read_text())
    except json.JSONDecodeError as e:
        raise GraphFormatError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise GraphFormatError(f"Graph document {path} must be a JSON object")
    return parse_graph(data)
