"""Turn ranked candidates into one meaning per graph vertex.

Each mention becomes a vertex whose id is `Mention.id`. Where mentions
overlap, the heaviest one wins: a mention is kept only if it outweighs every
mention it spans over and no mention spanning over it outweighs it. Vertices
of the spanned mentions are contracted into the kept one.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from textplanner.graph.semantic import SemanticGraph
from textplanner.models import Candidate, Mention

logger = logging.getLogger("textplanner.ranking")


def _group_by_mention(candidates: Sequence[Candidate]) -> dict[Mention, list[Candidate]]:
    groups: dict[Mention, list[Candidate]] = {}
    for c in candidates:
        groups.setdefault(c.mention, []).append(c)
    return groups


def _weight(candidate: Candidate) -> float:
    return candidate.weight if candidate.weight is not None else 0.0


def select_mentions(candidates: Sequence[Candidate]) -> dict[Mention, list[Mention]]:
    """Select the mentions to keep, each with the mentions it spans over.

    Mentions are weighted by their best candidate. Mentions appear in the
    order their first candidate does.
    """
    groups = _group_by_mention(candidates)
    weights = {m: max(_weight(c) for c in cs) for m, cs in groups.items()}
    mentions = list(groups)

    subsumed = {m1: [m2 for m2 in mentions if m2 != m1 and m1.spans_over(m2)] for m1 in mentions}
    subsumers = {m1: [m2 for m2 in mentions if m2 != m1 and m2.spans_over(m1)] for m1 in mentions}

    return {
        m: subsumed[m]
        for m in mentions
        if all(weights[m] > weights[s] for s in subsumed[m])
        and not any(weights[s] > weights[m] for s in subsumers[m])
    }


def select_candidates(candidates: Sequence[Candidate]) -> list[Candidate]:
    """Best-weighted candidate of each mention. Ties go to the first candidate."""
    return [max(cs, key=_weight) for cs in _group_by_mention(candidates).values()]


def disambiguate(graph: SemanticGraph, candidates: Sequence[Candidate]) -> list[Candidate]:
    """Add the selected mentions to `graph` and assign each its best meaning.

    Candidates should already carry weights, e.g. from `rank_meanings`.
    Candidates without one count as 0.0.

    Returns:
        The candidates whose meaning and weight were written onto the graph.
    """
    selected = select_mentions(candidates)
    for mention in selected:
        if mention.id not in graph:
            graph.add_vertex(mention.id, sources=[mention.source_id] if mention.source_id else ())
        graph.add_mention(mention.id, mention)

    for subsumer, subsumed in selected.items():
        # a subsumed mention may never have been added, or already merged elsewhere
        merged = [m.id for m in subsumed if m.id in graph]
        if merged:
            logger.debug(f"Contracting {merged} into {subsumer.id}")
            graph.vertex_contraction(subsumer.id, merged)

    assigned = []
    for c in select_candidates(candidates):
        if c.mention.id not in graph:
            continue
        graph.set_meaning(c.mention.id, c.meaning)
        graph.set_weight(c.mention.id, _weight(c))
        assigned.append(c)

    logger.info(
        f"Disambiguated {len(assigned)} of {len(_group_by_mention(candidates))} mentions"
    )
    return assigned
