"""Data models for meanings, mentions, candidates and graph roles."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict

from textplanner.exceptions import WeightAlreadySetError


class POS(str, Enum):
    """Coarse part-of-speech tags."""

    NOUN = "NOUN"
    VERB = "VERB"
    ADJ = "ADJ"
    ADV = "ADV"
    OTHER = "X"


class Meaning(BaseModel):
    """A word sense, a reference to a real world entity, or some datum in a database.

    Meanings are created through a `MeaningArena`, which guarantees a single
    object per reference within one planning session.
    """

    model_config = ConfigDict(frozen=True)

    reference: str
    label: str = ""
    is_ne: bool = False
    type: str = ""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Meaning):
            return NotImplemented
        return self.reference == other.reference

    def __hash__(self) -> int:
        return hash(self.reference)

    def __str__(self) -> str:
        return f"{self.reference}-{self.label}" if self.label else self.reference


class MeaningArena:
    """Session-owned store of interned meanings.

    `intern` returns the one `Meaning` object for a reference; each meaning also
    gets a stable integer handle (its insertion index).
    """

    def __init__(self) -> None:
        self._meanings: list[Meaning] = []
        self._handles: dict[str, int] = {}

    def intern(
        self, reference: str, label: str = "", is_ne: bool = False, type: str = ""
    ) -> Meaning:
        """Get the meaning for `reference`, creating it on first use."""
        handle = self._handles.get(reference)
        if handle is not None:
            return self._meanings[handle]
        meaning = Meaning(reference=reference, label=label, is_ne=is_ne, type=type)
        self._handles[reference] = len(self._meanings)
        self._meanings.append(meaning)
        return meaning

    def handle(self, reference: str) -> int | None:
        return self._handles.get(reference)

    def get(self, reference: str) -> Meaning | None:
        handle = self._handles.get(reference)
        return None if handle is None else self._meanings[handle]

    def __getitem__(self, handle: int) -> Meaning:
        return self._meanings[handle]

    def __contains__(self, reference: object) -> bool:
        return reference in self._handles

    def __len__(self) -> int:
        return len(self._meanings)

    def __iter__(self):
        return iter(self._meanings)


class Mention(BaseModel):
    """A sequence of one or more consecutive tokens in a context.

    Two mentions are equal when they share context id and token span,
    regardless of their text.
    """

    model_config = ConfigDict(frozen=True)

    context_id: str
    span: tuple[int, int]  # token offsets, end exclusive
    source_id: str = ""  # sentence, document, etc.
    surface_form: str = ""
    lemma: str = ""
    pos: POS = POS.OTHER
    is_ne: bool = False
    type: str = ""  # e.g. AMR concept label

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mention):
            return NotImplemented
        return self.context_id == other.context_id and self.span == other.span

    def __hash__(self) -> int:
        return hash((self.context_id, self.span))

    def __str__(self) -> str:
        return f"{self.context_id}_{self.span[0]}-{self.span[1]}_{self.surface_form}"

    @property
    def id(self) -> str:
        """Vertex id of this mention in a semantic graph."""
        return f"{self.context_id}_{self.span[0]}-{self.span[1]}"

    def spans_over(self, other: Mention) -> bool:
        """Whether this mention's span covers `other`'s, within the same context."""
        return (
            self.context_id == other.context_id
            and self.span[0] <= other.span[0]
            and self.span[1] >= other.span[1]
        )

    @property
    def is_nominal(self) -> bool:
        return self.pos == POS.NOUN

    @property
    def is_verbal(self) -> bool:
        return self.pos == POS.VERB

    @property
    def is_multiword(self) -> bool:
        return self.span[1] - self.span[0] > 1


@dataclass(eq=False)
class Candidate:
    """A candidate meaning for a mention, with a write-once relevance weight."""

    mention: Mention
    meaning: Meaning
    _weight: float | None = field(default=None, init=False, repr=False)

    @property
    def weight(self) -> float | None:
        return self._weight

    @property
    def has_weight(self) -> bool:
        return self._weight is not None

    def set_weight(self, weight: float) -> None:
        if self._weight is not None:
            raise WeightAlreadySetError(
                f"Weight of candidate {self} already set to {self._weight}"
            )
        self._weight = weight

    def scored(self) -> ScoredCandidate:
        """Freeze this candidate and its weight into an immutable record."""
        if self._weight is None:
            raise ValueError(f"Candidate {self} has no weight yet")
        return ScoredCandidate(mention=self.mention, meaning=self.meaning, weight=self._weight)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Candidate):
            return NotImplemented
        return self.meaning == other.meaning and self.mention == other.mention

    def __hash__(self) -> int:
        return hash((self.meaning, self.mention))

    def __str__(self) -> str:
        return f"{self.mention.source_id} {self.mention.span} {self.meaning}"


class ScoredCandidate(BaseModel):
    """Immutable candidate plus its relevance score."""

    model_config = ConfigDict(frozen=True)

    mention: Mention
    meaning: Meaning
    weight: float


_role_ids = itertools.count()


@dataclass(frozen=True)
class Role:
    """A labelled edge. The synthetic id keeps structurally identical edges distinct."""

    label: str
    id: int = field(default_factory=lambda: next(_role_ids))

    def __str__(self) -> str:
        return self.label
