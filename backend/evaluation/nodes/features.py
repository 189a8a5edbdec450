"""Feature extraction node for the evaluation graph.

Derives purely structural signals from a proposal: which fields are
missing, how many assumptions and dependencies it lists, and a rough
complexity proxy.  Pure and total.
"""

from __future__ import annotations

import logging
from typing import Any

from evaluation.schemas import Features, ProposalContext
from evaluation.state import EvaluationState

logger = logging.getLogger(__name__)

# Values that fill a field without saying anything.
PLACEHOLDER_VALUES = frozenset({"tbd", "tba", "n/a", "na", "none", "todo", "-", "?"})


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def is_blank(value: str | None) -> bool:
    """True for empty, whitespace-only and placeholder text such as ``TBD``."""
    if value is None:
        return True
    stripped = value.strip()
    return not stripped or stripped.lower() in PLACEHOLDER_VALUES


def extract_features(proposal: ProposalContext) -> Features:
    """Return the structural features of *proposal*.

    Text fields count as missing when blank or a placeholder; list fields
    only when empty.  Every listed entry counts, blank or not.

    complexity = clamp01(0.4 * scope_length/500 + 0.3 * dependencies/5
    + 0.3 * assumptions/5)
    """
    assumptions = proposal.assumptions
    dependencies = proposal.dependencies

    missing = sum(
        (
            is_blank(proposal.title),
            is_blank(proposal.summary),
            is_blank(proposal.scope),
            not assumptions,
            not dependencies,
        )
    )

    scope_length = len(proposal.scope)
    complexity = clamp01(
        (scope_length / 500) * 0.4
        + (len(dependencies) / 5) * 0.3
        + (len(assumptions) / 5) * 0.3
    )

    return Features(
        missing_fields_count=missing,
        complexity_score=complexity,
        dependency_count=len(dependencies),
        assumption_count=len(assumptions),
        scope_length=scope_length,
        has_assumptions=bool(assumptions),
        has_dependencies=bool(dependencies),
    )


def extract_features_node(state: EvaluationState) -> dict[str, Any]:
    features = extract_features(state["proposal"])
    logger.debug(
        "Extracted features: missing=%d complexity=%.2f",
        features.missing_fields_count,
        features.complexity_score,
    )
    return {"features": features}
