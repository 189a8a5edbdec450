"""Deterministic risk sets used when no model credential is configured.

The proposal is classified by keyword family (expansion, cost-cutting,
technology, or generic) and one of four hand-authored, schema-valid risk
sets is returned.  This keeps demos and tests reproducible offline.
"""

from __future__ import annotations

from evaluation.schemas import ModelTrace, ProposalContext, RiskDiscoveryOutput, RiskItem

MOCK_PROVIDER = "mock"
MOCK_MODEL = "demo"

# (family, keywords) -- first family with a keyword in title + summary wins.
KEYWORD_FAMILIES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("expansion", ("expansion", "market", "apac", "region")),
    ("cost_cutting", ("cost", "cut", "reduce", "efficiency")),
    ("technology", ("tech", "infrastructure", "platform")),
)


def _item(risk: str, severity: str, evidence: str) -> RiskItem:
    return RiskItem(risk=risk, severity=severity, evidence_needed=evidence)


def classify_proposal(proposal: ProposalContext) -> str:
    text = f"{proposal.title} {proposal.summary}".lower()
    for family, keywords in KEYWORD_FAMILIES:
        if any(keyword in text for keyword in keywords):
            return family
    return "generic"


def _expansion_risks() -> RiskDiscoveryOutput:
    return RiskDiscoveryOutput(
        implicit_assumptions=[
            _item("Assumes local market dynamics mirror domestic patterns", "high", "Market research from target region"),
            _item("Assumes existing supply chain can scale to new regions", "med", "Logistics feasibility study"),
        ],
        second_order_effects=[
            _item("May trigger competitive response from regional incumbents", "high", "Competitive landscape analysis"),
            _item("Could strain existing customer support capacity", "med", "Support ticket volume projections"),
        ],
        tail_risks=[
            _item("Regulatory changes in target region could block market entry", "high", "Regulatory risk assessment"),
            _item("Currency fluctuations could erode margins by 20%+", "med", "FX sensitivity analysis"),
        ],
        metric_gaming_vectors=[
            _item("Teams may count soft launches as expansion wins", "low", "Clear success metric definitions"),
        ],
        cross_functional_impacts=[
            _item("Legal team capacity for international contracts", "med", "Legal team capacity assessment"),
            _item("HR may lack international hiring expertise", "med", "HR international readiness check"),
        ],
        top_3_unseen_risks=[
            "Regional competitors may respond with aggressive pricing war",
            "Supply chain partners may lack required regional certifications",
            "Cultural differences could affect product-market fit",
        ],
        data_to_collect_next=[
            "Validate partner certifications in target region",
            "Get treasury sign-off on FX exposure limits",
            "Survey existing customers about regional expansion interest",
        ],
    )


def _cost_cutting_risks() -> RiskDiscoveryOutput:
    return RiskDiscoveryOutput(
        implicit_assumptions=[
            _item("Assumes cost cuts won't impact service quality", "high", "Quality baseline metrics"),
            _item("Assumes affected teams will maintain productivity", "med", "Change management assessment"),
        ],
        second_order_effects=[
            _item("Key talent may leave proactively", "high", "Retention risk assessment"),
            _item("Vendor relationships may deteriorate", "med", "Vendor dependency mapping"),
        ],
        tail_risks=[
            _item("Morale collapse could cascade across organization", "high", "Employee sentiment data"),
            _item("Critical institutional knowledge may be lost", "med", "Knowledge transfer audit"),
        ],
        metric_gaming_vectors=[
            _item("Short-term savings may hide long-term capability loss", "high", "Capability impact assessment"),
        ],
        cross_functional_impacts=[
            _item("PR/communications burden during restructuring", "med", "Communications plan"),
            _item("Legal review needed for any workforce changes", "med", "Legal compliance checklist"),
        ],
        top_3_unseen_risks=[
            "Competitors may poach talent during transition",
            "Customer perception of instability could affect renewals",
            "Hidden dependencies on roles being eliminated",
        ],
        data_to_collect_next=[
            "Map critical dependencies for each affected role",
            "Assess competitor hiring activity",
            "Survey customer sentiment baseline",
        ],
    )


def _technology_risks() -> RiskDiscoveryOutput:
    return RiskDiscoveryOutput(
        implicit_assumptions=[
            _item("Assumes current team has required technical skills", "med", "Skills gap analysis"),
            _item("Assumes integration with existing systems is straightforward", "high", "Technical architecture review"),
        ],
        second_order_effects=[
            _item("New tech may require retraining across organization", "med", "Training needs assessment"),
            _item("Legacy system deprecation timeline may be unrealistic", "med", "Migration complexity analysis"),
        ],
        tail_risks=[
            _item("Vendor lock-in could limit future flexibility", "med", "Vendor exit strategy"),
            _item("Security vulnerabilities in new stack unknown", "high", "Security audit plan"),
        ],
        metric_gaming_vectors=[
            _item("Performance benchmarks may not reflect production load", "med", "Realistic load testing plan"),
        ],
        cross_functional_impacts=[
            _item("Operations team needs new monitoring capabilities", "med", "Ops readiness checklist"),
            _item("Compliance requirements for new data flows", "med", "Compliance review"),
        ],
        top_3_unseen_risks=[
            "Integration complexity often 3x initial estimates",
            "Key technical staff may resist change",
            "Hidden data migration costs",
        ],
        data_to_collect_next=[
            "Conduct proof-of-concept with production-like data",
            "Map all integration points with existing systems",
            "Assess team technical readiness",
        ],
    )


def _generic_risks() -> RiskDiscoveryOutput:
    return RiskDiscoveryOutput(
        implicit_assumptions=[
            _item("Timeline assumes no competing priorities emerge", "med", "Resource allocation confirmation"),
            _item("Budget estimates may not include hidden costs", "med", "Detailed cost breakdown"),
        ],
        second_order_effects=[
            _item("Success may create expectations for similar initiatives", "low", "Capacity planning"),
            _item("Failure could affect team credibility for future proposals", "med", "Risk mitigation plan"),
        ],
        tail_risks=[
            _item("External market conditions could invalidate assumptions", "med", "Market monitoring plan"),
        ],
        metric_gaming_vectors=[
            _item("Success metrics may be cherry-picked post-hoc", "low", "Pre-registered success criteria"),
        ],
        cross_functional_impacts=[
            _item("Other teams may have unstated dependencies", "med", "Cross-team dependency mapping"),
        ],
        top_3_unseen_risks=[
            "Stakeholder alignment may be shallower than assumed",
            "Resource availability may shift mid-project",
            "Scope creep risk not explicitly managed",
        ],
        data_to_collect_next=[
            "Confirm stakeholder commitment in writing",
            "Validate resource availability with managers",
            "Define explicit scope boundaries",
        ],
    )


_RISK_SETS = {
    "expansion": _expansion_risks,
    "cost_cutting": _cost_cutting_risks,
    "technology": _technology_risks,
    "generic": _generic_risks,
}


def get_mock_risks(proposal: ProposalContext) -> RiskDiscoveryOutput:
    """Return the canned risk set for *proposal*'s keyword family."""
    return _RISK_SETS[classify_proposal(proposal)]()


def get_mock_trace(latency_ms: int = 0) -> ModelTrace:
    return ModelTrace(provider=MOCK_PROVIDER, model=MOCK_MODEL, latency_ms=latency_ms, failures=[])
