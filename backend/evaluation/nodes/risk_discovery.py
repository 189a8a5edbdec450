"""Risk-discovery node for the evaluation graph.

The only asynchronous stage of the pipeline.  It awaits the adapter and
unwraps either result variant into ``risks`` and ``trace``.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable

from evaluation.risk.discovery import RiskDiscoveryAdapter
from evaluation.risk.prompts import RiskPromptContext
from evaluation.state import EvaluationState


def make_risk_discovery_node(
    adapter: RiskDiscoveryAdapter,
) -> Callable[[EvaluationState], Awaitable[dict[str, Any]]]:
    """Bind *adapter* into a graph node."""

    async def discover_risks_node(state: EvaluationState) -> dict[str, Any]:
        context = RiskPromptContext(mandate=state["mandate"], proposal=state["proposal"])
        result = await adapter.discover(context)
        return {"risks": result.risks, "trace": result.trace}

    return discover_risks_node
