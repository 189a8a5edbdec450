"""Confidence computation node for the evaluation graph.

Starts from a base confidence and applies additive penalties and a bonus
in a fixed order, recording a human-readable reason for each.
"""

from __future__ import annotations

import logging
from typing import Any

from evaluation.nodes.features import clamp01
from evaluation.schemas import ConfidenceResult, Features, ModelTrace, RiskDiscoveryOutput, Scores
from evaluation.state import EvaluationState

logger = logging.getLogger(__name__)

BASE_CONFIDENCE = 0.8
MISSING_FIELD_PENALTY = 0.1
MODEL_FAILURE_PENALTY = 0.3
NO_ASSUMPTIONS_PENALTY = 0.1
NO_DEPENDENCIES_PENALTY = 0.05
HIGH_RISK_COUNT_THRESHOLD = 10
HIGH_RISK_COUNT_PENALTY = 0.1
CONFLICT_PENALTY = 0.05
WELL_DOCUMENTED_BONUS = 0.1

NEUTRAL_REASON = "Standard confidence assessment"


def _pct(value: float) -> str:
    return f"{value * 100:.0f}%"


def compute_confidence(
    features: Features,
    scores: Scores,
    risks: RiskDiscoveryOutput,
    trace: ModelTrace,
) -> ConfidenceResult:
    confidence = BASE_CONFIDENCE
    reasons: list[str] = []

    if features.missing_fields_count > 0:
        penalty = features.missing_fields_count * MISSING_FIELD_PENALTY
        confidence -= penalty
        reasons.append(f"Missing {features.missing_fields_count} proposal field(s) (-{_pct(penalty)})")

    if trace.failures:
        confidence -= MODEL_FAILURE_PENALTY
        reasons.append(f"AI risk analysis failed (-{_pct(MODEL_FAILURE_PENALTY)})")

    if not features.has_assumptions:
        confidence -= NO_ASSUMPTIONS_PENALTY
        reasons.append(f"No assumptions stated (-{_pct(NO_ASSUMPTIONS_PENALTY)})")

    if not features.has_dependencies:
        confidence -= NO_DEPENDENCIES_PENALTY
        reasons.append(f"No dependencies stated (-{_pct(NO_DEPENDENCIES_PENALTY)})")

    total_risks = risks.total_count
    if total_risks > HIGH_RISK_COUNT_THRESHOLD:
        confidence -= HIGH_RISK_COUNT_PENALTY
        reasons.append(f"High risk count ({total_risks}) (-{_pct(HIGH_RISK_COUNT_PENALTY)})")

    if scores.conflicts:
        penalty = len(scores.conflicts) * CONFLICT_PENALTY
        confidence -= penalty
        reasons.append(f"{len(scores.conflicts)} conflict(s) detected (-{_pct(penalty)})")

    if features.has_assumptions and features.has_dependencies and features.missing_fields_count == 0:
        confidence += WELL_DOCUMENTED_BONUS
        reasons.append(f"Well-documented proposal (+{_pct(WELL_DOCUMENTED_BONUS)})")

    if not reasons:
        reasons.append(NEUTRAL_REASON)

    return ConfidenceResult(confidence=clamp01(confidence), reasons=reasons)


def compute_confidence_node(state: EvaluationState) -> dict[str, Any]:
    result = compute_confidence(state["features"], state["scores"], state["risks"], state["trace"])
    logger.debug("Confidence %.2f: %s", result.confidence, "; ".join(result.reasons))
    return {"confidence": result}
