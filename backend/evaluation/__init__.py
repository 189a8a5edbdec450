"""Mandate evaluation core.

Evaluates a business proposal against an organisational mandate and
produces a DecisionObject: deterministic scoring, model-assisted risk
discovery, confidence and an escalation recommendation.
"""

from __future__ import annotations

from .errors import ProviderFailure, ValidationFailure
from .pipeline import evaluate
from .risk.discovery import RiskDiscoveryAdapter
from .schemas import (
    DecisionObject,
    MandateWeights,
    ModelTrace,
    OutcomeMandate,
    ProposalContext,
    Recommendation,
    RiskDiscoveryOutput,
    RiskItem,
    RiskTolerance,
    WeightedMandate,
    parse_mandate,
)

__all__ = [
    "evaluate",
    "RiskDiscoveryAdapter",
    "DecisionObject",
    "MandateWeights",
    "ModelTrace",
    "OutcomeMandate",
    "ProposalContext",
    "Recommendation",
    "RiskDiscoveryOutput",
    "RiskItem",
    "RiskTolerance",
    "WeightedMandate",
    "parse_mandate",
    "ProviderFailure",
    "ValidationFailure",
]
