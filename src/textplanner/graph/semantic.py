"""Weighted directed graph of meanings.

Structure lives in a networkx MultiDiGraph whose edge keys are the synthetic
role ids. Semantic data (meaning, weight, mentions, sources, types) is kept in
side tables keyed by vertex id.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

import networkx as nx

from textplanner.exceptions import GraphError, UnknownVertexError
from textplanner.models import Meaning, Mention, Role


class SemanticGraph:
    """A directed graph whose vertices carry meanings, weights and provenance.

    Vertices are string identifiers. Every edge carries a `Role`: a label plus
    a unique id, so two edges with the same endpoints and label stay distinct.
    """

    def __init__(self) -> None:
        self.graph = nx.MultiDiGraph()
        self._meanings: dict[str, Meaning] = {}
        self._weights: dict[str, float] = {}
        self._mentions: dict[str, set[Mention]] = {}
        self._sources: dict[str, set[str]] = {}
        self._types: dict[str, set[str]] = {}

    # -------------------------------------------------------------------
    # Vertices
    # -------------------------------------------------------------------

    def add_vertex(
        self,
        vertex: str,
        meaning: Meaning | None = None,
        weight: float | None = None,
        sources: Iterable[str] = (),
        types: Iterable[str] = (),
    ) -> None:
        """Add a vertex, or update the data of an existing one."""
        self.graph.add_node(vertex)
        self._mentions.setdefault(vertex, set())
        self._sources.setdefault(vertex, set()).update(sources)
        self._types.setdefault(vertex, set()).update(types)
        if meaning is not None:
            self._meanings[vertex] = meaning
        if weight is not None:
            self._weights[vertex] = weight

    def has_vertex(self, vertex: str) -> bool:
        return self.graph.has_node(vertex)

    def __contains__(self, vertex: object) -> bool:
        return self.graph.has_node(vertex)

    def __len__(self) -> int:
        return self.graph.number_of_nodes()

    @property
    def vertices(self) -> list[str]:
        """Vertex ids in a stable (sorted) order."""
        return sorted(self.graph.nodes())

    def remove_vertex(self, vertex: str) -> None:
        self._check(vertex)
        self.graph.remove_node(vertex)  # also removes incident edges
        for table in (self._meanings, self._weights, self._mentions, self._sources, self._types):
            table.pop(vertex, None)

    def _check(self, vertex: str) -> None:
        if not self.graph.has_node(vertex):
            raise UnknownVertexError(vertex)

    # -------------------------------------------------------------------
    # Edges
    # -------------------------------------------------------------------

    def add_edge(self, source: str, target: str, role: str) -> Role:
        """Add a labelled edge with a fresh synthetic id."""
        self._check(source)
        self._check(target)
        if source == target:
            raise GraphError(f"Self-loop on '{source}' ({role}) is not allowed")
        edge = Role(role)
        self.graph.add_edge(source, target, key=edge.id, role=edge)
        return edge

    def has_edge(self, source: str, target: str, role: str | None = None) -> bool:
        if not self.graph.has_edge(source, target):
            return False
        if role is None:
            return True
        return any(e.label == role for e in self.roles_between(source, target))

    def roles_between(self, source: str, target: str) -> list[Role]:
        if not self.graph.has_edge(source, target):
            return []
        return [data["role"] for data in self.graph[source][target].values()]

    def edges(self) -> Iterator[tuple[str, str, Role]]:
        """Iterate (source, target, role) over all edges."""
        for u, v, data in self.graph.edges(data="role"):
            yield u, v, data

    def out_edges(self, vertex: str) -> list[tuple[str, str, Role]]:
        self._check(vertex)
        return [(u, v, r) for u, v, r in self.graph.out_edges(vertex, data="role")]

    def in_edges(self, vertex: str) -> list[tuple[str, str, Role]]:
        self._check(vertex)
        return [(u, v, r) for u, v, r in self.graph.in_edges(vertex, data="role")]

    def incident_edges(self, vertex: str) -> list[tuple[str, str, Role]]:
        """Outgoing then incoming edges, each group ordered by role id."""
        out = sorted(self.out_edges(vertex), key=lambda e: e[2].id)
        inc = sorted(self.in_edges(vertex), key=lambda e: e[2].id)
        return out + inc

    def number_of_edges(self) -> int:
        return self.graph.number_of_edges()

    def degree(self, vertex: str) -> int:
        self._check(vertex)
        return self.graph.degree(vertex)

    # -------------------------------------------------------------------
    # Semantic side tables
    # -------------------------------------------------------------------

    def get_weight(self, vertex: str) -> float:
        self._check(vertex)
        return self._weights.get(vertex, 0.0)

    def set_weight(self, vertex: str, weight: float) -> None:
        self._check(vertex)
        self._weights[vertex] = weight

    @property
    def weights(self) -> dict[str, float]:
        """Weights of all vertices, 0.0 for those never weighted."""
        return {v: self._weights.get(v, 0.0) for v in self.graph.nodes()}

    def get_meaning(self, vertex: str) -> Meaning | None:
        self._check(vertex)
        return self._meanings.get(vertex)

    def set_meaning(self, vertex: str, meaning: Meaning) -> None:
        self._check(vertex)
        self._meanings[vertex] = meaning

    @property
    def meanings(self) -> set[Meaning]:
        return set(self._meanings.values())

    def get_mentions(self, vertex: str) -> frozenset[Mention]:
        self._check(vertex)
        return frozenset(self._mentions.get(vertex, ()))

    def add_mention(self, vertex: str, mention: Mention) -> None:
        self._check(vertex)
        self._mentions.setdefault(vertex, set()).add(mention)

    def get_contexts(self, vertex: str) -> set[str]:
        return {m.context_id for m in self.get_mentions(vertex)}

    def get_sources(self, vertex: str) -> frozenset[str]:
        self._check(vertex)
        return frozenset(self._sources.get(vertex, ()))

    def add_source(self, vertex: str, source: str) -> None:
        self._check(vertex)
        self._sources.setdefault(vertex, set()).add(source)

    def get_types(self, vertex: str) -> frozenset[str]:
        self._check(vertex)
        return frozenset(self._types.get(vertex, ()))

    def add_type(self, vertex: str, type_: str) -> None:
        self._check(vertex)
        self._types.setdefault(vertex, set()).add(type_)

    # -------------------------------------------------------------------
    # Contraction
    # -------------------------------------------------------------------

    def vertex_contraction(self, survivor: str, to_merge: Iterable[str]) -> None:
        """Merge `to_merge` into `survivor`.

        Edges between a merged vertex and any vertex outside the merged set are
        re-created on the survivor with the same role. Edges to the survivor or
        inside the merged set would become loops and are dropped. Mentions,
        sources and types are unioned into the survivor; meanings and weights of
        the merged vertices are discarded.
        """
        self._check(survivor)
        merged = set(to_merge) - {survivor}
        for c in merged:
            self._check(c)

        closed = merged | {survivor}
        redirected: list[tuple[str, str, str]] = []
        for c in sorted(merged):
            for u, _, role in sorted(self.in_edges(c), key=lambda e: e[2].id):
                if u not in closed:
                    redirected.append((u, survivor, role.label))
            for _, w, role in sorted(self.out_edges(c), key=lambda e: e[2].id):
                if w not in closed:
                    redirected.append((survivor, w, role.label))

        for c in merged:
            self._mentions.setdefault(survivor, set()).update(self._mentions.get(c, ()))
            self._sources.setdefault(survivor, set()).update(self._sources.get(c, ()))
            self._types.setdefault(survivor, set()).update(self._types.get(c, ()))
            self.remove_vertex(c)

        for source, target, label in redirected:
            self.add_edge(source, target, label)

    # -------------------------------------------------------------------
    # Misc
    # -------------------------------------------------------------------

    def copy(self) -> SemanticGraph:
        """Deep enough copy: structure and side tables are independent."""
        other = SemanticGraph()
        other.graph = self.graph.copy()
        other._meanings = dict(self._meanings)
        other._weights = dict(self._weights)
        other._mentions = {v: set(m) for v, m in self._mentions.items()}
        other._sources = {v: set(s) for v, s in self._sources.items()}
        other._types = {v: set(t) for v, t in self._types.items()}
        return other

    def label(self, vertex: str) -> str:
        """Human-readable label: meaning label, then a type, then the id."""
        meaning = self._meanings.get(vertex)
        if meaning is not None and meaning.label:
            return meaning.label
        types = self._types.get(vertex)
        if types:
            return sorted(types)[0]
        return vertex

    def get_stats(self) -> dict:
        """Get graph statistics."""
        role_counts: dict[str, int] = {}
        for _, _, role in self.edges():
            role_counts[role.label] = role_counts.get(role.label, 0) + 1

        return {
            "total_vertices": self.graph.number_of_nodes(),
            "total_edges": self.graph.number_of_edges(),
            "with_meaning": len(self._meanings),
            "with_mentions": sum(1 for m in self._mentions.values() if m),
            "roles": role_counts,
            "components": (
                nx.number_weakly_connected_components(self.graph) if len(self) else 0
            ),
        }
