"""Deterministic scoring node for the evaluation graph.

Turns proposal text, features and the mandate into an impact estimate
(or, for outcome-ranked mandates, per-outcome alignment), a single
tradeoff score, internal conflicts and non-negotiable violations.

All matching is best-effort keyword/regex work driven by the rule
tables in ``evaluation.rules``; unmatched text never raises.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from evaluation.nodes.features import clamp01
from evaluation.rules import (
    BAND_PROXIES,
    apply_conflict_rules,
    apply_constraint_rules,
    estimate_band,
)
from evaluation.schemas import (
    Features,
    ImpactEstimate,
    MandateWeights,
    OutcomeAlignment,
    OutcomeMandate,
    ProposalContext,
    Scores,
    WeightedMandate,
)
from evaluation.state import EvaluationState

logger = logging.getLogger(__name__)

MISSING_FIELD_PENALTY = 0.05
NEUTRAL_SCORE = 0.5

_DIMENSIONS = ("growth", "cost", "risk", "brand")

_TOKEN_RE = re.compile(r"[a-z0-9]+")
_MIN_KEYWORD_LENGTH = 4
_STOP_WORDS = frozenset(
    {
        "above", "after", "also", "below", "from", "have", "into", "more",
        "over", "than", "that", "their", "them", "then", "these", "this",
        "those", "under", "when", "where", "which", "while", "with", "within",
        "without", "keep", "make", "ensure", "should", "must", "will",
    }
)

ALIGNMENT_PROXIES = {"Strong": 0.9, "Partial": 0.6, "Weak": 0.4, "Unaddressed": 0.2}


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------


def impact_text(proposal: ProposalContext) -> str:
    """Lower-cased summary + scope: the text impact and conflict rules read."""
    return f"{proposal.summary} {proposal.scope}".lower()


def constraint_text(proposal: ProposalContext) -> str:
    """Lower-cased title + summary + scope: the text non-negotiables are checked against."""
    return f"{proposal.title} {proposal.summary} {proposal.scope}".lower()


def _keywords(text: str) -> list[str]:
    seen: dict[str, None] = {}
    for token in _TOKEN_RE.findall(text.lower()):
        if len(token) >= _MIN_KEYWORD_LENGTH and token not in _STOP_WORDS:
            seen.setdefault(token, None)
    return list(seen)


# ---------------------------------------------------------------------------
# Weighted mandates
# ---------------------------------------------------------------------------


def estimate_impact(proposal: ProposalContext, features: Features) -> ImpactEstimate:
    text = impact_text(proposal)
    return ImpactEstimate(**{dim: estimate_band(dim, text, features) for dim in _DIMENSIONS})


def calculate_tradeoff_score(
    weights: MandateWeights, impact: ImpactEstimate, features: Features
) -> float:
    """Weights-normalised average of band proxies, less a missing-field penalty.

    Returns the neutral 0.5 when every weight is zero.
    """
    total = weights.total
    if total == 0:
        return NEUTRAL_SCORE

    weighted = sum(
        getattr(weights, dim) * BAND_PROXIES[dim](getattr(impact, dim)) for dim in _DIMENSIONS
    )
    penalty = features.missing_fields_count * MISSING_FIELD_PENALTY
    return clamp01(weighted / total - penalty)


def detect_conflicts(proposal: ProposalContext, features: Features) -> list[str]:
    return apply_conflict_rules(impact_text(proposal), features)


def check_constraints(non_negotiables: list[str], proposal: ProposalContext) -> list[str]:
    return apply_constraint_rules(non_negotiables, constraint_text(proposal))


# ---------------------------------------------------------------------------
# Outcome-ranked mandates
# ---------------------------------------------------------------------------


def _alignment_band(ratio: float) -> str:
    if ratio >= 0.5:
        return "Strong"
    if ratio >= 0.2:
        return "Partial"
    if ratio > 0:
        return "Weak"
    return "Unaddressed"


def align_outcomes(outcomes: list[str], proposal: ProposalContext) -> list[OutcomeAlignment]:
    """Match each ranked outcome's keywords against the proposal text."""
    proposal_terms = set(
        _keywords(
            " ".join(
                [proposal.title, proposal.summary, proposal.scope, *proposal.assumptions]
            )
        )
    )
    alignments = []
    for rank, outcome in enumerate(outcomes, start=1):
        keywords = _keywords(outcome)
        matched = [term for term in keywords if term in proposal_terms]
        ratio = len(matched) / len(keywords) if keywords else 0.0
        band = _alignment_band(ratio)
        alignments.append(
            OutcomeAlignment(rank=rank, outcome=outcome, alignment=band, matched_terms=matched)
        )
    return alignments


def calculate_outcome_score(alignments: list[OutcomeAlignment], features: Features) -> float:
    """Rank-weighted average of alignment proxies; rank r of n weighs n - r + 1."""
    if not alignments:
        return NEUTRAL_SCORE

    count = len(alignments)
    total_weight = 0
    weighted = 0.0
    for alignment in alignments:
        weight = count - alignment.rank + 1
        total_weight += weight
        weighted += weight * ALIGNMENT_PROXIES[alignment.alignment]

    if all(not _keywords(a.outcome) for a in alignments):
        score = NEUTRAL_SCORE
    else:
        score = weighted / total_weight
    return clamp01(score - features.missing_fields_count * MISSING_FIELD_PENALTY)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def score_proposal(
    mandate: WeightedMandate | OutcomeMandate,
    proposal: ProposalContext,
    features: Features,
) -> Scores:
    """Score *proposal* against either mandate shape.  Pure; never raises."""
    conflicts = detect_conflicts(proposal, features)

    if isinstance(mandate, OutcomeMandate):
        alignments = align_outcomes(mandate.outcomes, proposal)
        return Scores(
            outcomes=alignments,
            tradeoff_score=calculate_outcome_score(alignments, features),
            conflicts=conflicts,
            constraint_violations=[],
        )

    impact = estimate_impact(proposal, features)
    return Scores(
        impact_estimate=impact,
        tradeoff_score=calculate_tradeoff_score(mandate.weights, impact, features),
        conflicts=conflicts,
        constraint_violations=check_constraints(mandate.non_negotiables, proposal),
    )


def score_node(state: EvaluationState) -> dict[str, Any]:
    scores = score_proposal(state["mandate"], state["proposal"], state["features"])
    logger.debug(
        "Scored proposal: tradeoff=%.2f conflicts=%d violations=%d",
        scores.tradeoff_score,
        len(scores.conflicts),
        len(scores.constraint_violations),
    )
    return {"scores": scores}
