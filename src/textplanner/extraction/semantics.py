"""Graph semantics: which vertices are predicates and which edges must travel together."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod

from textplanner.graph.semantic import SemanticGraph

INVERSE_SUFFIX = "-of"


class GraphSemantics(ABC):
    """Annotation-scheme specific knowledge used while growing subgraphs."""

    name: str = ""

    @abstractmethod
    def is_predicate(self, graph: SemanticGraph, vertex: str) -> bool:
        """True for relational vertices that must not stand without their arguments."""

    @abstractmethod
    def is_core(self, role: str) -> bool:
        """True for argument roles."""

    @abstractmethod
    def is_required(
        self, graph: SemanticGraph, vertex: str, source: str, target: str, role: str
    ) -> bool:
        """True if selecting `vertex` forces the other end of edge (source, target, role) in too.

        `vertex` is either `source` or `target`.
        """


class GenericSemantics(GraphSemantics):
    """No predicates and no core roles: every vertex may stand alone."""

    name = "generic"

    def is_predicate(self, graph: SemanticGraph, vertex: str) -> bool:
        return False

    def is_core(self, role: str) -> bool:
        return False

    def is_required(
        self, graph: SemanticGraph, vertex: str, source: str, target: str, role: str
    ) -> bool:
        return False


class AMRSemantics(GraphSemantics):
    """Abstract Meaning Representation conventions.

    Predicates are PropBank frames such as ``want-01``. Role labels may be
    written with or without the leading colon.
    """

    name = "amr"

    FRAME = re.compile(r"^[^\s\"]+-\d{2,3}$")
    ARG = re.compile(r"^:ARG\d$")
    OP = re.compile(r"^:op\d+$")

    # Roles whose target is needed by the source
    SOURCE_REQUIRED = {
        ":instance",
        ":domain",
        ":polarity",
        ":mode",
        ":quant",
        ":unit",
        ":value",
        ":ord",
        ":poss",
        ":calendar",
        ":century",
        ":day",
        ":dayperiod",
        ":decade",
        ":era",
        ":month",
        ":quarter",
        ":season",
        ":timezone",
        ":weekday",
        ":year",
        ":year2",
    }
    # Roles whose source is needed by the target
    TARGET_REQUIRED = {
        ":mod",
        ":polarity-of",
        ":quant-of",
        ":ord-of",
        ":poss-of",
    }
    UNKNOWN_CONCEPTS = {"amr-unknown", "amr-choice"}

    @staticmethod
    def _normalize(role: str) -> str:
        return role if role.startswith(":") else f":{role}"

    def _is_argument(self, role: str) -> bool:
        return bool(self.ARG.match(role) or self.OP.match(role))

    def is_predicate(self, graph: SemanticGraph, vertex: str) -> bool:
        if any(self.FRAME.match(t) for t in graph.get_types(vertex)):
            return True
        meaning = graph.get_meaning(vertex)
        return meaning is not None and bool(self.FRAME.match(meaning.reference))

    def is_core(self, role: str) -> bool:
        role = self._normalize(role)
        if role.endswith(INVERSE_SUFFIX):
            role = role[: -len(INVERSE_SUFFIX)]
        return self._is_argument(role)

    def is_required(
        self, graph: SemanticGraph, vertex: str, source: str, target: str, role: str
    ) -> bool:
        role = self._normalize(role)
        source_selected = vertex == source
        target_selected = vertex == target

        if self._is_argument(role) or role in self.SOURCE_REQUIRED:
            return source_selected
        if role.endswith(INVERSE_SUFFIX) and self._is_argument(role[: -len(INVERSE_SUFFIX)]):
            return target_selected
        if role in self.TARGET_REQUIRED:
            return target_selected
        # Questions: an unknown or choice concept needs its governor
        return source_selected and bool(graph.get_types(target) & self.UNKNOWN_CONCEPTS)


SEMANTICS: dict[str, type[GraphSemantics]] = {
    GenericSemantics.name: GenericSemantics,
    AMRSemantics.name: AMRSemantics,
}


def get_semantics(name: str) -> GraphSemantics:
    """Instantiate semantics by name ("generic" or "amr")."""
    try:
        return SEMANTICS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown semantics '{name}'. Choose from: {', '.join(sorted(SEMANTICS))}"
        ) from None
