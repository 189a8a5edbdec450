"""Pydantic schemas for the mandate evaluation pipeline.

These models define the data exchanged between pipeline stages:
- Callers pass a MandateContext and a ProposalContext
- The feature extractor emits Features
- The deterministic scorer emits Scores
- The risk-discovery adapter emits RiskDiscoveryOutput plus a ModelTrace
- The assembler produces the DecisionObject

Every model is frozen: a new evaluation produces new objects rather than
patching old ones.  Field names are the JSON wire contract consumed by
storage, audit and UI layers.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

MAX_SUMMARY_CHARS = 240
MAX_TEXT_CHARS = 200
MAX_ITEMS_PER_CATEGORY = 5
MAX_UNSEEN_RISKS = 3
MAX_DATA_TO_COLLECT = 5
MAX_OUTCOMES = 10

RISK_CATEGORIES: tuple[str, ...] = (
    "implicit_assumptions",
    "second_order_effects",
    "tail_risks",
    "metric_gaming_vectors",
    "cross_functional_impacts",
)

Severity = Literal["low", "med", "high"]
BoundedText = Annotated[str, Field(max_length=MAX_TEXT_CHARS)]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class RiskTolerance(str, Enum):
    CONSERVATIVE = "CONSERVATIVE"
    MODERATE = "MODERATE"
    AGGRESSIVE = "AGGRESSIVE"


class Recommendation(str, Enum):
    APPROVE = "APPROVE"
    REVISE = "REVISE"
    ESCALATE = "ESCALATE"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


class MandateWeights(_Frozen):
    """Relative importance of each impact dimension.  Need not sum to 1."""

    growth: float = Field(ge=0)
    cost: float = Field(ge=0)
    risk: float = Field(ge=0)
    brand: float = Field(ge=0)

    @property
    def total(self) -> float:
        return self.growth + self.cost + self.risk + self.brand


class WeightedMandate(_Frozen):
    """Mandate expressed as dimension weights, a risk tolerance and hard constraints."""

    kind: Literal["weighted"] = "weighted"
    weights: MandateWeights
    risk_tolerance: RiskTolerance = RiskTolerance.MODERATE
    non_negotiables: list[str] = Field(default_factory=list)


class OutcomeMandate(_Frozen):
    """Mandate expressed as a ranked list of desired outcomes (rank = priority)."""

    kind: Literal["outcomes"] = "outcomes"
    outcomes: list[Annotated[str, Field(min_length=1, max_length=MAX_TEXT_CHARS)]] = Field(
        min_length=1, max_length=MAX_OUTCOMES
    )
    risk_tolerance: RiskTolerance = RiskTolerance.MODERATE


MandateContext = Annotated[Union[WeightedMandate, OutcomeMandate], Field(discriminator="kind")]

mandate_adapter: TypeAdapter[WeightedMandate | OutcomeMandate] = TypeAdapter(MandateContext)


def parse_mandate(data: Any) -> WeightedMandate | OutcomeMandate:
    """Parse raw mandate data into one of the two mandate shapes.

    Payloads without a ``kind`` tag are recognised by their fields:
    ``outcomes`` selects the ranked form, anything else the weighted form.
    """
    if isinstance(data, (WeightedMandate, OutcomeMandate)):
        return data
    if isinstance(data, dict) and "kind" not in data:
        data = {**data, "kind": "outcomes" if "outcomes" in data else "weighted"}
    return mandate_adapter.validate_python(data)


class ProposalContext(_Frozen):
    """The business initiative under evaluation.  No field is required."""

    title: str = ""
    summary: str = ""
    scope: str = ""
    assumptions: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Derived values
# ---------------------------------------------------------------------------


class Features(_Frozen):
    """Structural signals derived from a proposal."""

    missing_fields_count: int = Field(ge=0, le=5)
    complexity_score: float = Field(ge=0, le=1)
    dependency_count: int = Field(ge=0)
    assumption_count: int = Field(ge=0)
    scope_length: int = Field(ge=0)
    has_assumptions: bool
    has_dependencies: bool


class ImpactEstimate(_Frozen):
    growth: str
    cost: str
    risk: str
    brand: str


class OutcomeAlignment(_Frozen):
    """How well a proposal addresses one ranked mandate outcome."""

    rank: int = Field(ge=1)
    outcome: str
    alignment: Literal["Strong", "Partial", "Weak", "Unaddressed"]
    matched_terms: list[str] = Field(default_factory=list)


class Scores(_Frozen):
    impact_estimate: ImpactEstimate | None = None
    outcomes: list[OutcomeAlignment] | None = None
    tradeoff_score: float = Field(ge=0, le=1)
    conflicts: list[str] = Field(default_factory=list)
    constraint_violations: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Risk discovery
# ---------------------------------------------------------------------------


class RiskItem(_Frozen):
    risk: BoundedText
    severity: Severity
    evidence_needed: BoundedText


RiskList = Annotated[list[RiskItem], Field(max_length=MAX_ITEMS_PER_CATEGORY)]


class RiskDiscoveryOutput(_Frozen):
    """Categorised risks returned by the model (or the mock generator).

    Oversized lists or strings are rejected, never truncated.
    """

    implicit_assumptions: RiskList = Field(default_factory=list)
    second_order_effects: RiskList = Field(default_factory=list)
    tail_risks: RiskList = Field(default_factory=list)
    metric_gaming_vectors: RiskList = Field(default_factory=list)
    cross_functional_impacts: RiskList = Field(default_factory=list)
    top_3_unseen_risks: list[BoundedText] = Field(default_factory=list, max_length=MAX_UNSEEN_RISKS)
    data_to_collect_next: list[BoundedText] = Field(default_factory=list, max_length=MAX_DATA_TO_COLLECT)
    alignment_summary: BoundedText | None = None

    def all_items(self) -> list[RiskItem]:
        """Return the risk items of all five categories in category order."""
        items: list[RiskItem] = []
        for category in RISK_CATEGORIES:
            items.extend(getattr(self, category))
        return items

    @property
    def total_count(self) -> int:
        return len(self.all_items())

    @property
    def high_severity_count(self) -> int:
        return sum(1 for item in self.all_items() if item.severity == "high")


def empty_risks() -> RiskDiscoveryOutput:
    """Return the degraded risk set: every category empty."""
    return RiskDiscoveryOutput()


class TraceFailure(_Frozen):
    stage: str
    error: str


class ModelTrace(_Frozen):
    """Metadata about the risk-discovery call, independent of its content."""

    provider: str
    model: str
    latency_ms: int = Field(ge=0)
    failures: list[TraceFailure] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


class EscalationResult(_Frozen):
    recommendation: Recommendation
    human_required: bool
    reasons: list[str] = Field(default_factory=list)


class ConfidenceResult(_Frozen):
    confidence: float = Field(ge=0, le=1)
    reasons: list[str] = Field(default_factory=list)


class DecisionObject(_Frozen):
    """The complete structured output of one evaluation."""

    summary: str = Field(max_length=MAX_SUMMARY_CHARS)
    impact_estimate: ImpactEstimate | None = None
    outcomes: list[OutcomeAlignment] | None = None
    tradeoff_score: float = Field(ge=0, le=1)
    conflicts: list[str] = Field(default_factory=list)
    constraint_violations: list[str] = Field(default_factory=list)
    unseen_risks: RiskDiscoveryOutput = Field(default_factory=RiskDiscoveryOutput)
    confidence: float = Field(ge=0, le=1)
    confidence_reasons: list[str] = Field(default_factory=list)
    required_next_evidence: list[str] = Field(default_factory=list)
    recommendation: Recommendation
    human_required: bool

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-mode dict persisted by callers.

        Only the impact field matching the mandate shape is emitted.
        """
        data = self.model_dump(mode="json")
        for key in ("impact_estimate", "outcomes"):
            if data.get(key) is None:
                data.pop(key, None)
        if data["unseen_risks"].get("alignment_summary") is None:
            data["unseen_risks"].pop("alignment_summary", None)
        return data
