"""Tests for confidence computation."""

from __future__ import annotations

import pytest

from evaluation.nodes.confidence import NEUTRAL_REASON, compute_confidence, compute_confidence_node
from evaluation.schemas import (
    Features,
    ModelTrace,
    RiskDiscoveryOutput,
    RiskItem,
    Scores,
    TraceFailure,
)

OK_TRACE = ModelTrace(provider="openai", model="gpt-4o", latency_ms=120)
FAILED_TRACE = ModelTrace(
    provider="openai",
    model="gpt-4o",
    latency_ms=120,
    failures=[TraceFailure(stage="validation", error="No valid JSON")],
)


def _features(**overrides) -> Features:
    fields = dict(
        missing_fields_count=0,
        complexity_score=0.3,
        dependency_count=2,
        assumption_count=2,
        scope_length=80,
        has_assumptions=True,
        has_dependencies=True,
    )
    fields.update(overrides)
    return Features(**fields)


def _scores(conflicts: list[str] | None = None) -> Scores:
    return Scores(tradeoff_score=0.6, conflicts=conflicts or [])


def _risks(count: int) -> RiskDiscoveryOutput:
    item = RiskItem(risk="r", severity="low", evidence_needed="e")
    per_category = [min(5, max(0, count - 5 * i)) for i in range(5)]
    return RiskDiscoveryOutput(
        implicit_assumptions=[item] * per_category[0],
        second_order_effects=[item] * per_category[1],
        tail_risks=[item] * per_category[2],
        metric_gaming_vectors=[item] * per_category[3],
        cross_functional_impacts=[item] * per_category[4],
    )


class TestComputeConfidence:
    def test_well_documented_bonus(self):
        result = compute_confidence(_features(), _scores(), _risks(5), OK_TRACE)
        assert result.confidence == pytest.approx(0.9)
        assert result.reasons == ["Well-documented proposal (+10%)"]

    def test_missing_field_blocks_bonus(self):
        features = _features(missing_fields_count=1)
        result = compute_confidence(features, _scores(), _risks(0), OK_TRACE)
        assert result.confidence == pytest.approx(0.7)
        assert result.reasons == ["Missing 1 proposal field(s) (-10%)"]

    def test_model_failure_penalty(self):
        result = compute_confidence(_features(), _scores(), _risks(0), FAILED_TRACE)
        assert result.confidence == pytest.approx(0.6)
        assert result.reasons[0] == "AI risk analysis failed (-30%)"

    def test_missing_inputs(self):
        features = _features(
            missing_fields_count=3,
            has_assumptions=False,
            has_dependencies=False,
            assumption_count=0,
            dependency_count=0,
        )
        result = compute_confidence(features, _scores(), _risks(0), OK_TRACE)
        # 0.8 - 0.3 - 0.1 - 0.05
        assert result.confidence == pytest.approx(0.35)
        assert result.reasons == [
            "Missing 3 proposal field(s) (-30%)",
            "No assumptions stated (-10%)",
            "No dependencies stated (-5%)",
        ]

    def test_high_risk_count(self):
        result = compute_confidence(_features(), _scores(), _risks(11), OK_TRACE)
        assert "High risk count (11) (-10%)" in result.reasons
        assert result.confidence == pytest.approx(0.8)

    def test_ten_risks_not_penalised(self):
        result = compute_confidence(_features(), _scores(), _risks(10), OK_TRACE)
        assert not any(reason.startswith("High risk count") for reason in result.reasons)

    def test_conflict_penalty(self):
        result = compute_confidence(_features(), _scores(["a", "b"]), _risks(0), OK_TRACE)
        assert "2 conflict(s) detected (-10%)" in result.reasons
        assert result.confidence == pytest.approx(0.8)

    def test_clamped_to_zero(self):
        features = _features(
            missing_fields_count=5,
            has_assumptions=False,
            has_dependencies=False,
            assumption_count=0,
            dependency_count=0,
        )
        result = compute_confidence(features, _scores(["a", "b", "c"]), _risks(25), FAILED_TRACE)
        assert result.confidence == 0.0

    def test_reason_order_is_fixed(self):
        features = _features(missing_fields_count=1, has_dependencies=False, dependency_count=0)
        result = compute_confidence(features, _scores(["a"]), _risks(11), FAILED_TRACE)
        assert [reason.split(" (")[0] for reason in result.reasons] == [
            "Missing 1 proposal field(s)",
            "AI risk analysis failed",
            "No dependencies stated",
            "High risk count",
            "1 conflict(s) detected",
        ]

    def test_never_empty(self):
        result = compute_confidence(
            _features(missing_fields_count=0, has_assumptions=True, has_dependencies=True),
            _scores(),
            _risks(0),
            OK_TRACE,
        )
        assert result.reasons
        assert NEUTRAL_REASON not in result.reasons


class TestComputeConfidenceNode:
    def test_writes_confidence(self):
        state = {"features": _features(), "scores": _scores(), "risks": _risks(0), "trace": OK_TRACE}
        update = compute_confidence_node(state)
        assert set(update) == {"confidence"}
        assert update["confidence"].confidence == pytest.approx(0.9)
