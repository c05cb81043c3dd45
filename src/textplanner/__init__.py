"""Text planning over ranked semantic graphs.

Usage:
    from textplanner import PlanningOptions, SemanticGraph, TextPlanner

    planner = TextPlanner(PlanningOptions(num_patterns=10))
    plan = planner.run(graph, weight, similarity)
    print(plan.render())
"""

__version__ = "0.1.0"

from textplanner.config import PlannerConfig, PlanningOptions
from textplanner.graph.semantic import SemanticGraph
from textplanner.graph.subgraph import SemanticSubgraph
from textplanner.models import Candidate, Meaning, MeaningArena, Mention
from textplanner.planning.planner import PlanItem, TextPlan, TextPlanner

__all__ = [
    "__version__",
    "PlannerConfig",
    "PlanningOptions",
    "SemanticGraph",
    "SemanticSubgraph",
    "Candidate",
    "Meaning",
    "MeaningArena",
    "Mention",
    "PlanItem",
    "TextPlan",
    "TextPlanner",
]
