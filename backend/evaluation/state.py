"""LangGraph state definition for the evaluation pipeline.

EvaluationState is a TypedDict consumed by every graph node.  Each node
reads the keys written by the stages before it and returns only the keys
it produces; nothing is mutated in place.
"""

from __future__ import annotations

from typing import TypedDict, Union

from evaluation.schemas import (
    ConfidenceResult,
    DecisionObject,
    EscalationResult,
    Features,
    ModelTrace,
    OutcomeMandate,
    ProposalContext,
    RiskDiscoveryOutput,
    Scores,
    WeightedMandate,
)


class EvaluationState(TypedDict, total=False):
    """Shared state passed through every node of the evaluation graph.

    ``total=False`` makes all fields optional so nodes only need to
    write the keys they care about.
    """

    # Caller input
    mandate: Union[WeightedMandate, OutcomeMandate]
    proposal: ProposalContext

    # Deterministic stages
    features: Features
    scores: Scores

    # Risk discovery
    risks: RiskDiscoveryOutput
    trace: ModelTrace

    # Confidence + escalation
    confidence: ConfidenceResult
    escalation: EscalationResult

    # Final output
    decision: DecisionObject
