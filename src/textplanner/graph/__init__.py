"""Semantic graphs of meanings and read-only subgraph views."""

from textplanner.graph.semantic import SemanticGraph
from textplanner.graph.subgraph import SemanticSubgraph

__all__ = ["SemanticGraph", "SemanticSubgraph"]
