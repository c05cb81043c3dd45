"""Subgraph extraction around relevant seed vertices."""

from textplanner.extraction.extractor import SubgraphExtractor
from textplanner.extraction.semantics import (
    AMRSemantics,
    GenericSemantics,
    GraphSemantics,
    get_semantics,
)

__all__ = [
    "SubgraphExtractor",
    "GraphSemantics",
    "GenericSemantics",
    "AMRSemantics",
    "get_semantics",
]
