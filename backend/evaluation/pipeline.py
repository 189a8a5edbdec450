"""Entry point of the evaluation core.

``evaluate`` runs one proposal against one mandate and always resolves to
a schema-valid DecisionObject.  Model failures surface only inside the
returned ModelTrace and as lowered confidence.
"""

from __future__ import annotations

import logging
from typing import Any

from evaluation.graph import build_evaluation_graph
from evaluation.risk.discovery import RiskDiscoveryAdapter
from evaluation.schemas import (
    DecisionObject,
    ModelTrace,
    OutcomeMandate,
    ProposalContext,
    WeightedMandate,
    parse_mandate,
)

logger = logging.getLogger(__name__)


async def evaluate(
    mandate: WeightedMandate | OutcomeMandate | dict[str, Any],
    proposal: ProposalContext | dict[str, Any],
    adapter: RiskDiscoveryAdapter | None = None,
    graph: Any = None,
) -> tuple[DecisionObject, ModelTrace]:
    """Evaluate *proposal* against *mandate*.

    Raw dicts are validated into the frozen input models first; invalid
    input raises ``pydantic.ValidationError`` before any stage runs.

    Pass a compiled *graph* from ``build_evaluation_graph`` to reuse it
    across calls; *adapter* is then ignored.
    """
    mandate = parse_mandate(mandate)
    if not isinstance(proposal, ProposalContext):
        proposal = ProposalContext.model_validate(proposal)

    logger.debug("Evaluating proposal %r against %s mandate", proposal.title, mandate.kind)
    if graph is None:
        graph = build_evaluation_graph(adapter)
    final_state = await graph.ainvoke({"mandate": mandate, "proposal": proposal})
    return final_state["decision"], final_state["trace"]
