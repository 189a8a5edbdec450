"""LangGraph StateGraph assembly for the evaluation pipeline.

Wires the stages into a linear graph:

    extract_features -> score -> discover_risks -> compute_confidence
    -> apply_escalation -> assemble

Only ``discover_risks`` suspends; every other node is a synchronous pure
function.  No checkpointer is attached because evaluations keep no state
between calls.
"""

from __future__ import annotations

from langgraph.graph import END, START, StateGraph

from evaluation.nodes.assembler import assemble_decision_node
from evaluation.nodes.confidence import compute_confidence_node
from evaluation.nodes.escalation import apply_escalation_node
from evaluation.nodes.features import extract_features_node
from evaluation.nodes.risk_discovery import make_risk_discovery_node
from evaluation.nodes.scorer import score_node
from evaluation.risk.discovery import RiskDiscoveryAdapter
from evaluation.state import EvaluationState

NODE_ORDER = (
    "extract_features",
    "score",
    "discover_risks",
    "compute_confidence",
    "apply_escalation",
    "assemble",
)


def build_evaluation_graph(adapter: RiskDiscoveryAdapter | None = None):
    """Assemble and compile the evaluation StateGraph.

    Parameters
    ----------
    adapter : optional
        The risk-discovery adapter used by the ``discover_risks`` node.
        If *None*, one is built from environment configuration.

    Returns
    -------
    CompiledGraph
        The compiled LangGraph ready for ``.ainvoke()``.
    """
    if adapter is None:
        adapter = RiskDiscoveryAdapter.from_env()

    builder = StateGraph(EvaluationState)

    # -- Add nodes ------------------------------------------------------------
    builder.add_node("extract_features", extract_features_node)
    builder.add_node("score", score_node)
    builder.add_node("discover_risks", make_risk_discovery_node(adapter))
    builder.add_node("compute_confidence", compute_confidence_node)
    builder.add_node("apply_escalation", apply_escalation_node)
    builder.add_node("assemble", assemble_decision_node)

    # -- Edges ----------------------------------------------------------------
    builder.add_edge(START, NODE_ORDER[0])
    for current, following in zip(NODE_ORDER, NODE_ORDER[1:]):
        builder.add_edge(current, following)
    builder.add_edge(NODE_ORDER[-1], END)

    return builder.compile()
