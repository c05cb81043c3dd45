"""Text planning pipeline: rank, extract, remove redundancy, sort.

Usage:
    from textplanner.planning import TextPlanner

    planner = TextPlanner(options)
    plan = planner.run(graph, weight, similarity)
    print(plan.render())
"""

from __future__ import annotations

import logging
import time

from pydantic import BaseModel, Field

from textplanner.config import PlanningOptions, SortingStrategy
from textplanner.extraction.extractor import SubgraphExtractor
from textplanner.extraction.semantics import GenericSemantics, GraphSemantics
from textplanner.graph.semantic import SemanticGraph
from textplanner.graph.subgraph import SemanticSubgraph
from textplanner.models import Candidate
from textplanner.planning.discourse import get_sorter
from textplanner.planning.redundancy import RedundancyFilter
from textplanner.planning.similarity import MeaningSimilarity, SubgraphSimilarity
from textplanner.ranking.disambiguation import disambiguate
from textplanner.ranking.ranker import MeaningWeight, rank_meanings, rank_vertices

logger = logging.getLogger("textplanner.planning")


class PlanItem(BaseModel):
    """One subgraph of the plan, flattened for display and serialization."""

    position: int
    root: str
    root_label: str = ""
    vertices: list[str] = Field(default_factory=list)
    labels: list[str] = Field(default_factory=list)
    edges: list[tuple[str, str, str]] = Field(default_factory=list)
    value: float = 0.0
    average_weight: float = 0.0


class TextPlan(BaseModel):
    """An ordered selection of subgraphs, ready for a surface realizer."""

    items: list[PlanItem] = Field(default_factory=list)
    sorting_strategy: SortingStrategy = SortingStrategy.DISCOURSE
    num_vertices: int = 0
    num_edges: int = 0
    subgraphs_extracted: int = 0
    subgraphs_kept: int = 0
    ranking_time_ms: float = 0.0
    planning_time_ms: float = 0.0

    def render(self) -> str:
        """Render the plan as indented text, one block per subgraph."""
        sections: list[str] = [
            f"# Text plan: {len(self.items)} subgraphs "
            f"from a graph of {self.num_vertices} vertices",
            "",
        ]
        for item in self.items:
            sections.append(
                f"## {item.position}. {item.root_label or item.root} "
                f"(value: {item.value:.4f}, avg weight: {item.average_weight:.4f})"
            )
            for source, target, role in item.edges:
                sections.append(f"  {source} -{role}-> {target}")
            if not item.edges:
                sections.append(f"  {item.root}")
            sections.append("")
        return "\n".join(sections)

    def summary(self) -> str:
        """Human-readable summary of the plan."""
        lines = [
            f"Text plan ({self.sorting_strategy.value} order)",
            f"Graph: {self.num_vertices} vertices, {self.num_edges} edges",
            f"Subgraphs: {self.subgraphs_extracted} extracted, {self.subgraphs_kept} kept",
            f"Ranking time: {self.ranking_time_ms:.1f}ms",
            f"Planning time: {self.planning_time_ms:.1f}ms",
            "",
            "Plan:",
        ]
        for item in self.items:
            lines.append(
                f"  {item.position}. {item.root_label or item.root} "
                f"[{', '.join(item.labels)}] value={item.value:.4f}"
            )
        return "\n".join(lines)


class TextPlanner:
    """Runs the planning stages over a semantic graph.

    The graph is mutated only by `disambiguate`, which adds mention vertices,
    and `rank`, which writes vertex weights; every later stage reads it.
    """

    def __init__(
        self,
        options: PlanningOptions | None = None,
        semantics: GraphSemantics | None = None,
    ) -> None:
        self.options = options or PlanningOptions()
        self.semantics = semantics or GenericSemantics()

    def disambiguate(
        self,
        graph: SemanticGraph,
        candidates: list[Candidate],
        weight: MeaningWeight,
        similarity: MeaningSimilarity,
    ) -> list[Candidate]:
        """Rank the meanings of `candidates` and give each mention vertex its best one."""
        rank_meanings(candidates, weight, similarity, self.options)
        return disambiguate(graph, candidates)

    def rank(
        self, graph: SemanticGraph, weight: MeaningWeight, similarity: MeaningSimilarity
    ) -> dict[str, float]:
        return rank_vertices(graph, weight, similarity, self.options)

    def extract(self, graph: SemanticGraph) -> list[SemanticSubgraph]:
        extractor = SubgraphExtractor(
            self.semantics,
            lambda_=self.options.extraction_lambda,
            edge_cost=self.options.edge_cost,
            expansion_policy=self.options.expansion_policy,
            workers=self.options.workers,
        )
        return extractor.extract(graph, self.options.num_patterns)

    def remove_redundant(
        self, subgraphs: list[SemanticSubgraph], similarity: MeaningSimilarity
    ) -> list[SemanticSubgraph]:
        redundancy = RedundancyFilter(
            SubgraphSimilarity(similarity), self.options.redundancy_threshold
        )
        return redundancy.remove_redundant(subgraphs, self.options.target_subgraph_count)

    def sort(
        self, subgraphs: list[SemanticSubgraph], similarity: MeaningSimilarity
    ) -> list[SemanticSubgraph]:
        sorter = get_sorter(self.options.sorting_strategy, SubgraphSimilarity(similarity))
        return sorter.sort(subgraphs)

    def plan(
        self, graph: SemanticGraph, weight: MeaningWeight, similarity: MeaningSimilarity
    ) -> list[SemanticSubgraph]:
        """Rank the graph and return the ordered subgraphs of its plan."""
        return self._plan(graph, weight, similarity)[0]

    def run(
        self, graph: SemanticGraph, weight: MeaningWeight, similarity: MeaningSimilarity
    ) -> TextPlan:
        """Plan and package the result with timings and counts."""
        subgraphs, extracted, ranking_ms, planning_ms = self._plan(graph, weight, similarity)
        items = [self._to_item(i + 1, s) for i, s in enumerate(subgraphs)]
        return TextPlan(
            items=items,
            sorting_strategy=self.options.sorting_strategy,
            num_vertices=len(graph),
            num_edges=graph.number_of_edges(),
            subgraphs_extracted=extracted,
            subgraphs_kept=len(subgraphs),
            ranking_time_ms=ranking_ms,
            planning_time_ms=planning_ms,
        )

    def _plan(
        self, graph: SemanticGraph, weight: MeaningWeight, similarity: MeaningSimilarity
    ) -> tuple[list[SemanticSubgraph], int, float, float]:
        if len(graph) == 0:
            logger.info("Empty graph, nothing to plan")
            return [], 0, 0.0, 0.0

        start = time.time()
        self.rank(graph, weight, similarity)
        ranked = time.time()

        extracted = self.extract(graph)
        kept = self.remove_redundant(extracted, similarity)
        ordered = self.sort(kept, similarity)
        done = time.time()

        logger.info(
            f"Planned {len(ordered)} subgraphs from {len(graph)} vertices "
            f"in {(done - start) * 1000:.1f}ms"
        )
        return ordered, len(extracted), (ranked - start) * 1000, (done - ranked) * 1000

    @staticmethod
    def _to_item(position: int, subgraph: SemanticSubgraph) -> PlanItem:
        base = subgraph.base
        vertices = sorted(subgraph.vertices)
        return PlanItem(
            position=position,
            root=subgraph.root,
            root_label=base.label(subgraph.root),
            vertices=vertices,
            labels=[base.label(v) for v in vertices],
            edges=[(u, v, role.label) for u, v, role in subgraph.edges()],
            value=subgraph.value,
            average_weight=subgraph.average_weight(),
        )
