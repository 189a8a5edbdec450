"""Assembler node: builds the DecisionObject from the earlier stages."""

from __future__ import annotations

import logging
from typing import Any

from evaluation.schemas import (
    MAX_SUMMARY_CHARS,
    DecisionObject,
    ProposalContext,
    Recommendation,
    Scores,
)
from evaluation.state import EvaluationState

logger = logging.getLogger(__name__)

ACTION_VERBS = {
    Recommendation.APPROVE: "Proceed with",
    Recommendation.REVISE: "Revise",
    Recommendation.ESCALATE: "Escalate",
}

UNTITLED = "Untitled proposal"


def generate_summary(proposal: ProposalContext, scores: Scores, recommendation: Recommendation) -> str:
    """One-line summary, always cut to fit the 240-character wire limit."""
    title = proposal.title.strip() or UNTITLED
    parts = [f"{ACTION_VERBS[recommendation]}: {title}."]
    if scores.constraint_violations:
        parts.append(f"{len(scores.constraint_violations)} constraint violation(s).")
    if scores.conflicts:
        parts.append(f"{len(scores.conflicts)} conflict(s) detected.")
    parts.append(f"Tradeoff score: {scores.tradeoff_score * 100:.0f}%.")
    return " ".join(parts)[:MAX_SUMMARY_CHARS]


def assemble_decision_node(state: EvaluationState) -> dict[str, Any]:
    scores: Scores = state["scores"]
    risks = state["risks"]
    confidence = state["confidence"]
    escalation = state["escalation"]

    decision = DecisionObject(
        summary=generate_summary(state["proposal"], scores, escalation.recommendation),
        impact_estimate=scores.impact_estimate,
        outcomes=scores.outcomes,
        tradeoff_score=scores.tradeoff_score,
        conflicts=scores.conflicts,
        constraint_violations=scores.constraint_violations,
        unseen_risks=risks,
        confidence=confidence.confidence,
        confidence_reasons=confidence.reasons,
        required_next_evidence=list(risks.data_to_collect_next),
        recommendation=escalation.recommendation,
        human_required=escalation.human_required,
    )
    logger.info(
        "Evaluation complete: %s (human_required=%s, confidence=%.2f)",
        decision.recommendation.value,
        decision.human_required,
        decision.confidence,
    )
    return {"decision": decision}
