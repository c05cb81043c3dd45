"""Redundancy removal, ordering and the end-to-end planner.

Usage:
    from textplanner.planning import TextPlanner, TextPlan

    plan = TextPlanner(options).run(graph, weight, similarity)
    print(plan.summary())
"""

from textplanner.planning.discourse import DiscourseSorter, PlanSorter, ValueSorter
from textplanner.planning.planner import PlanItem, TextPlan, TextPlanner
from textplanner.planning.redundancy import RedundancyFilter
from textplanner.planning.similarity import SubgraphSimilarity

__all__ = [
    "TextPlanner",
    "TextPlan",
    "PlanItem",
    "RedundancyFilter",
    "SubgraphSimilarity",
    "PlanSorter",
    "ValueSorter",
    "DiscourseSorter",
]
