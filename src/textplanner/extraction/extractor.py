"""Greedy extraction of dense, relevant subgraphs around seed vertices.

Approximates the densest-subtree problem (Rozenshtein et al. 2014): each seed
grows a connected subgraph one expansion at a time, always taking the
expansion that most increases

    Q(T) = lambda * sum(weight(v) for v in T) - C * |E(T)| + C * |E(G)|

and stopping once no expansion increases Q. E(T) are the edges of the graph
induced by T and C is the per-edge cost.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor

from textplanner.config import ExpansionPolicy
from textplanner.extraction.semantics import GenericSemantics, GraphSemantics
from textplanner.graph.semantic import SemanticGraph
from textplanner.graph.subgraph import SemanticSubgraph
from textplanner.models import Role

logger = logging.getLogger("textplanner.extraction")


class SubgraphExtractor:
    """Extracts one subgraph per seed vertex.

    Args:
        semantics: Decides which vertices are predicates and which edges are
            required. Predicates are never seeds, and are only ever added
            together with their required neighbours.
        lambda_: Weight of vertex relevance in the objective.
        edge_cost: Cost C of each induced edge. None uses the mean vertex
            weight of the graph being processed.
        expansion_policy: Which neighbours a growing subgraph may absorb.
        workers: Thread pool size; seeds are grown independently.
    """

    def __init__(
        self,
        semantics: GraphSemantics | None = None,
        lambda_: float = 1.0,
        edge_cost: float | None = 1.0,
        expansion_policy: ExpansionPolicy = ExpansionPolicy.ALL,
        workers: int = 1,
    ) -> None:
        self.semantics = semantics or GenericSemantics()
        self.lambda_ = lambda_
        self.edge_cost = edge_cost
        self.expansion_policy = expansion_policy
        self.workers = workers

    def extract(self, graph: SemanticGraph, num_patterns: int) -> list[SemanticSubgraph]:
        """Grow a subgraph from each of the `num_patterns` best seeds.

        Returns subgraphs in seed order (descending seed weight). The graph is
        only read.
        """
        start = time.time()
        if len(graph) == 0 or num_patterns <= 0:
            return []

        seeds = self.seeds(graph, num_patterns)
        cost = self._resolve_cost(graph)
        logger.info(f"Extracting subgraphs from {len(seeds)} seeds (edge cost {cost:.4f})")

        if self.workers > 1 and len(seeds) > 1:
            with ThreadPoolExecutor(max_workers=min(self.workers, len(seeds))) as executor:
                subgraphs = list(executor.map(lambda s: self.grow(graph, s, cost), seeds))
        else:
            subgraphs = [self.grow(graph, s, cost) for s in seeds]

        elapsed = (time.time() - start) * 1000
        logger.info(f"Extracted {len(subgraphs)} subgraphs in {elapsed:.1f}ms")
        return subgraphs

    def seeds(self, graph: SemanticGraph, num_patterns: int) -> list[str]:
        """Top non-predicate vertices by weight, ties broken by vertex id."""
        candidates = [v for v in graph.vertices if not self.semantics.is_predicate(graph, v)]
        candidates.sort(key=lambda v: (-graph.get_weight(v), v))
        return candidates[:num_patterns]

    def grow(
        self, graph: SemanticGraph, seed: str, cost: float | None = None
    ) -> SemanticSubgraph:
        """Greedily expand the singleton {seed} while Q increases."""
        if cost is None:
            cost = self._resolve_cost(graph)

        selected: list[str] = [seed]
        selected_set = {seed}
        seed_sources = graph.get_sources(seed)
        total_edges = graph.number_of_edges()
        q = self.lambda_ * graph.get_weight(seed) + cost * total_edges

        while True:
            best: list[str] | None = None
            best_delta = 0.0
            for expansion in self.expansions(graph, selected, selected_set, seed_sources):
                delta = self._delta(graph, selected_set, expansion, cost)
                if best is None or delta > best_delta:
                    best, best_delta = expansion, delta

            if best is None or best_delta <= 0.0:
                break
            logger.debug(f"  {seed}: +{best} dQ={best_delta:.4f}")
            selected.extend(best)
            selected_set.update(best)
            q += best_delta

        return SemanticSubgraph(graph, seed, selected, value=q)

    def expansions(
        self,
        graph: SemanticGraph,
        selected: list[str],
        selected_set: set[str],
        seed_sources: frozenset[str] = frozenset(),
    ) -> list[list[str]]:
        """Candidate vertex additions, in discovery order and without duplicates.

        Each expansion is an outside neighbour of the current subgraph plus every
        vertex it requires.
        """
        found: list[list[str]] = []
        seen: set[frozenset[str]] = set()
        for v in selected:
            for u, w, role in graph.incident_edges(v):
                neighbour = w if u == v else u
                if neighbour in selected_set:
                    continue
                if not self._allowed(graph, neighbour, w, role, seed_sources):
                    continue
                expansion = self.required_vertices(graph, neighbour, selected_set)
                key = frozenset(expansion)
                if key not in seen:
                    seen.add(key)
                    found.append(expansion)
        return found

    def required_vertices(
        self, graph: SemanticGraph, vertex: str, selected: set[str] | frozenset[str] = frozenset()
    ) -> list[str]:
        """`vertex` plus everything it transitively requires, outside `selected`."""
        result = [vertex]
        closed = set(selected) | {vertex}
        queue = [vertex]
        while queue:
            x = queue.pop(0)
            predicate = self.semantics.is_predicate(graph, x)
            for u, w, role in graph.incident_edges(x):
                other = w if u == x else u
                if other in closed:
                    continue
                argument = predicate and u == x and self.semantics.is_core(role.label)
                if argument or self.semantics.is_required(graph, x, u, w, role.label):
                    closed.add(other)
                    result.append(other)
                    queue.append(other)
        return result

    def objective(self, graph: SemanticGraph, vertices: set[str], cost: float | None = None) -> float:
        """Q of an arbitrary vertex set."""
        if cost is None:
            cost = self._resolve_cost(graph)
        weight = sum(graph.get_weight(v) for v in vertices)
        inner = graph.graph.subgraph(vertices).number_of_edges()
        return self.lambda_ * weight - cost * inner + cost * graph.number_of_edges()

    def _delta(
        self, graph: SemanticGraph, selected: set[str], expansion: list[str], cost: float
    ) -> float:
        new = set(expansion)
        added_edges = 0
        for x in expansion:
            for _, w, _ in graph.out_edges(x):
                if w in selected or w in new:
                    added_edges += 1
            for u, _, _ in graph.in_edges(x):
                if u in selected:
                    added_edges += 1
        weight = sum(graph.get_weight(x) for x in expansion)
        return self.lambda_ * weight - cost * added_edges

    def _allowed(
        self,
        graph: SemanticGraph,
        neighbour: str,
        target: str,
        role: Role,
        seed_sources: frozenset[str],
    ) -> bool:
        if self.expansion_policy == ExpansionPolicy.ALL:
            return True
        same_source = bool(graph.get_sources(neighbour) & seed_sources)
        if self.expansion_policy == ExpansionPolicy.SAME_SOURCE:
            return same_source
        # Non-core relations pointing at the neighbour may cross sources
        return same_source or (not self.semantics.is_core(role.label) and target == neighbour)

    def _resolve_cost(self, graph: SemanticGraph) -> float:
        if self.edge_cost is not None:
            return self.edge_cost
        if len(graph) == 0:
            return 0.0
        return sum(graph.weights.values()) / len(graph)
