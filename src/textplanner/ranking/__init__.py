"""Relevance ranking by biased random walks.

Usage:
    from textplanner.ranking import rank_vertices

    ranks = rank_vertices(graph, weight, similarity, options)
"""

from textplanner.ranking.disambiguation import disambiguate
from textplanner.ranking.matrix import build_ranking_matrix, rebase
from textplanner.ranking.power import PowerIteration, power_iteration
from textplanner.ranking.ranker import (
    DifferentMentionsFilter,
    rank,
    rank_meanings,
    rank_mentions,
    rank_variables,
    rank_vertices,
)

__all__ = [
    "build_ranking_matrix",
    "rebase",
    "PowerIteration",
    "power_iteration",
    "DifferentMentionsFilter",
    "disambiguate",
    "rank",
    "rank_meanings",
    "rank_mentions",
    "rank_variables",
    "rank_vertices",
]
