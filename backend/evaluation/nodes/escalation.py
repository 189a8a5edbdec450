"""Escalation policy node for the evaluation graph.

A deterministic decision ladder evaluated top to bottom; the first
matching rung decides the recommendation and whether a human must
review it.  Each rung contributes exactly one reason.

Constraint violations, low confidence and high-severity risks are
domain conditions handled here, never exceptions.
"""

from __future__ import annotations

from typing import Any

from evaluation.schemas import (
    EscalationResult,
    Recommendation,
    RiskDiscoveryOutput,
    RiskTolerance,
    Scores,
)
from evaluation.state import EvaluationState

LOW_CONFIDENCE_THRESHOLD = 0.4
HIGH_SEVERITY_ESCALATION_COUNT = 3
STRONG_ALIGNMENT = 0.7
MODERATE_ALIGNMENT = 0.5
WEAK_ALIGNMENT = 0.3


def _result(recommendation: Recommendation, human_required: bool, reason: str) -> EscalationResult:
    return EscalationResult(recommendation=recommendation, human_required=human_required, reasons=[reason])


def apply_escalation(
    risk_tolerance: RiskTolerance,
    scores: Scores,
    risks: RiskDiscoveryOutput,
    confidence: float,
) -> EscalationResult:
    if scores.constraint_violations:
        return _result(Recommendation.ESCALATE, True, "Non-negotiable constraints violated")

    if confidence < LOW_CONFIDENCE_THRESHOLD:
        return _result(Recommendation.ESCALATE, True, f"Confidence too low ({confidence * 100:.0f}%)")

    if any(item.severity == "high" for item in risks.tail_risks):
        return _result(Recommendation.ESCALATE, True, "High-severity tail risk identified")

    high_count = risks.high_severity_count
    if high_count >= HIGH_SEVERITY_ESCALATION_COUNT:
        return _result(Recommendation.ESCALATE, True, f"Multiple high-severity risks ({high_count})")

    tradeoff = scores.tradeoff_score
    if tradeoff >= STRONG_ALIGNMENT:
        if risk_tolerance == RiskTolerance.CONSERVATIVE:
            return _result(
                Recommendation.APPROVE,
                True,
                "Strong alignment but conservative risk tolerance requires review",
            )
        return _result(Recommendation.APPROVE, False, "Strong alignment with mandate")

    if tradeoff >= MODERATE_ALIGNMENT:
        return _result(Recommendation.APPROVE, True, "Moderate alignment - human review recommended")

    if tradeoff >= WEAK_ALIGNMENT:
        return _result(Recommendation.REVISE, False, "Weak alignment with mandate - revision recommended")

    return _result(Recommendation.REVISE, True, "Poor alignment with mandate")


def apply_escalation_node(state: EvaluationState) -> dict[str, Any]:
    result = apply_escalation(
        state["mandate"].risk_tolerance,
        state["scores"],
        state["risks"],
        state["confidence"].confidence,
    )
    return {"escalation": result}
