"""Read-only views over a semantic graph."""

from __future__ import annotations

from collections.abc import Iterable

import networkx as nx

from textplanner.exceptions import UnknownVertexError
from textplanner.graph.semantic import SemanticGraph
from textplanner.models import Meaning, Role


class SemanticSubgraph:
    """A vertex-induced subgraph of a `SemanticGraph`, grown from `root`.

    The subgraph is a view: it keeps a reference to its base graph and a
    frozen vertex set, and never mutates the base.
    """

    __slots__ = ("base", "root", "_vertices", "value")

    def __init__(
        self,
        base: SemanticGraph,
        root: str,
        vertices: Iterable[str],
        value: float = 0.0,
    ) -> None:
        vertex_set = frozenset(vertices) | {root}
        for v in vertex_set:
            if not base.has_vertex(v):
                raise UnknownVertexError(v)
        self.base = base
        self.root = root
        self._vertices = vertex_set
        self.value = value

    @property
    def vertices(self) -> frozenset[str]:
        return self._vertices

    def __contains__(self, vertex: object) -> bool:
        return vertex in self._vertices

    def __len__(self) -> int:
        return len(self._vertices)

    def edges(self) -> list[tuple[str, str, Role]]:
        """Edges of the base graph with both endpoints inside the subgraph."""
        return sorted(
            (
                (u, v, r)
                for u, v, r in self.base.graph.subgraph(self._vertices).edges(data="role")
            ),
            key=lambda e: e[2].id,
        )

    def number_of_edges(self) -> int:
        return self.base.graph.subgraph(self._vertices).number_of_edges()

    def as_networkx(self) -> nx.MultiDiGraph:
        """A networkx subgraph view sharing data with the base graph."""
        return self.base.graph.subgraph(self._vertices)

    def is_connected(self) -> bool:
        return nx.is_weakly_connected(self.as_networkx())

    def contains(self, other: SemanticSubgraph) -> bool:
        """True if `other`'s vertex set is a subset of this subgraph's."""
        return other.base is self.base and other.vertices <= self._vertices

    def meanings(self) -> list[Meaning]:
        """Meanings of resolved vertices, ordered by vertex id."""
        result = []
        for v in sorted(self._vertices):
            meaning = self.base.get_meaning(v)
            if meaning is not None:
                result.append(meaning)
        return result

    def total_weight(self) -> float:
        return sum(self.base.get_weight(v) for v in self._vertices)

    def average_weight(self) -> float:
        return self.total_weight() / len(self._vertices)

    def sources(self) -> set[str]:
        found: set[str] = set()
        for v in self._vertices:
            found |= self.base.get_sources(v)
        return found

    def sort_key(self) -> tuple[float, str]:
        """Descending value, then root id: a strict order for equal-value subgraphs."""
        return (-self.value, self.root)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemanticSubgraph):
            return NotImplemented
        return (
            self.base is other.base
            and self.root == other.root
            and self._vertices == other._vertices
        )

    def __hash__(self) -> int:
        return hash((self.root, self._vertices))

    def __repr__(self) -> str:
        return (
            f"SemanticSubgraph(root={self.root!r}, vertices={sorted(self._vertices)}, "
            f"value={self.value:.4f})"
        )
