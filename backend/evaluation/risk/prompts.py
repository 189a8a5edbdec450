"""Prompts for the risk-discovery model call.

The system prompt fixes the analyst role and the JSON contract; the human
message carries one resolved prompt context: the mandate's priorities
(weighted dimensions or ranked outcomes) and the proposal fields.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from evaluation.schemas import OutcomeMandate, ProposalContext, WeightedMandate

# ---------------------------------------------------------------------------
# System prompt
# ---------------------------------------------------------------------------

RISK_DISCOVERY_SYSTEM_PROMPT = """\
You are a senior risk analyst.  You receive an organisation's mandate
and a business proposal.  Your job is to surface the risks the proposal's
authors have NOT seen.  Do NOT restate the proposal and do NOT judge
whether it should be approved -- only surface risks.

Identify risks across 5 categories:
1. implicit_assumptions -- things the proposal takes for granted.
2. second_order_effects -- knock-on consequences beyond the direct goal.
3. tail_risks -- unlikely but severe outcomes.
4. metric_gaming_vectors -- ways success metrics could be met without
   real progress.
5. cross_functional_impacts -- effects on teams outside the proposal.

Each risk is an object with:
- "risk": the risk itself
- "severity": exactly one of "low", "med", "high"
- "evidence_needed": what evidence would confirm or rule it out

Output ONLY valid JSON matching this schema:
{
  "implicit_assumptions": [{"risk": "...", "severity": "low|med|high", "evidence_needed": "..."}],
  "second_order_effects": [...],
  "tail_risks": [...],
  "metric_gaming_vectors": [...],
  "cross_functional_impacts": [...],
  "top_3_unseen_risks": ["...", "...", "..."],
  "data_to_collect_next": ["...", "..."],
  "alignment_summary": "Brief assessment of how the proposal aligns with the top priorities"
}

Constraints:
- Max 5 items per category
- Max 3 items in "top_3_unseen_risks", max 5 in "data_to_collect_next"
- Each text field max 200 characters
- Be specific and actionable; focus on what could go wrong that isn't obvious
- Rate risks that threaten the highest priorities or any non-negotiable as "high"
"""

_NONE_STATED = "None stated"


class RiskPromptContext(BaseModel):
    """The single resolved prompt context for one risk-discovery call."""

    model_config = ConfigDict(frozen=True)

    mandate: WeightedMandate | OutcomeMandate
    proposal: ProposalContext


# ---------------------------------------------------------------------------
# Mandate rendering
# ---------------------------------------------------------------------------


def _format_weighted(mandate: WeightedMandate) -> str:
    weights = mandate.weights
    total = weights.total or 1.0
    lines = ["Weighted dimensions (share of total weight):"]
    for dim in ("growth", "cost", "risk", "brand"):
        value = getattr(weights, dim)
        lines.append(f"- {dim}: {value:g} ({value / total:.0%})")
    lines.append(f"Risk tolerance: {mandate.risk_tolerance.value}")
    lines.append("Non-negotiables:")
    if mandate.non_negotiables:
        lines.extend(f"- {constraint}" for constraint in mandate.non_negotiables)
    else:
        lines.append(f"- {_NONE_STATED}")
    return "\n".join(lines)


def _format_outcomes(mandate: OutcomeMandate) -> str:
    lines = ["Ranked outcomes (1 = most important):"]
    lines.extend(f"{rank}. {outcome}" for rank, outcome in enumerate(mandate.outcomes, start=1))
    lines.append(f"Risk tolerance: {mandate.risk_tolerance.value}")
    return "\n".join(lines)


def format_mandate(mandate: WeightedMandate | OutcomeMandate) -> str:
    if isinstance(mandate, OutcomeMandate):
        return _format_outcomes(mandate)
    return _format_weighted(mandate)


def _join(items: list[str]) -> str:
    stated = [item.strip() for item in items if item.strip()]
    return "; ".join(stated) or _NONE_STATED


# ---------------------------------------------------------------------------
# Human message
# ---------------------------------------------------------------------------


def build_risk_discovery_prompt(context: RiskPromptContext) -> str:
    """Render the human message for one risk-discovery call."""
    proposal = context.proposal
    sections = [
        "## ORGANIZATIONAL PRIORITIES",
        format_mandate(context.mandate),
        "",
        "## PROPOSAL",
        f"Title: {proposal.title.strip() or _NONE_STATED}",
        f"Summary: {proposal.summary.strip() or _NONE_STATED}",
        f"Scope: {proposal.scope.strip() or _NONE_STATED}",
        f"Assumptions: {_join(proposal.assumptions)}",
        f"Dependencies: {_join(proposal.dependencies)}",
        "",
        "## YOUR TASK",
        "Identify the hidden risks in this proposal and return ONLY the JSON object.",
    ]
    if isinstance(context.mandate, OutcomeMandate):
        sections.append(
            "Flag any conflict with the top 3 ranked outcomes as high severity."
        )
    else:
        sections.append(
            "Flag any threat to a non-negotiable or to the most heavily weighted dimension as high severity."
        )
    return "\n".join(sections)
