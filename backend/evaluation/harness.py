#!/usr/bin/env python3
"""Evaluate a batch of proposals against one mandate from a JSON file.

Usage::

    python -m evaluation.harness samples/weighted_mandate.json
    python -m evaluation.harness samples/fraud_outcomes.json --proposal "Adaptive MFA Step-Up"
    python -m evaluation.harness samples/weighted_mandate.json --json

The file holds ``{"mandate": {...}, "proposals": [{...}, ...]}``.  Every
DecisionObject is re-validated against the schema; the exit code is 1 if
any evaluation fails that check.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from evaluation.checksum import compute_checksum
from evaluation.graph import build_evaluation_graph
from evaluation.pipeline import evaluate
from evaluation.risk.discovery import RiskDiscoveryAdapter
from evaluation.schemas import DecisionObject, ModelTrace, ProposalContext, parse_mandate

logger = logging.getLogger(__name__)

_RULE = "=" * 60
_THIN_RULE = "-" * 60


def load_batch(path: Path) -> tuple[Any, list[ProposalContext]]:
    data = json.loads(path.read_text(encoding="utf-8"))
    mandate = parse_mandate(data["mandate"])
    proposals = [ProposalContext.model_validate(p) for p in data.get("proposals", [])]
    return mandate, proposals


def escalation_triggers(decision: DecisionObject) -> list[str]:
    triggers = []
    if decision.constraint_violations:
        triggers.append("constraint_violation")
    if decision.confidence < 0.4:
        triggers.append("low_confidence")
    if any(item.severity == "high" for item in decision.unseen_risks.tail_risks):
        triggers.append("high_severity_tail_risk")
    return triggers


def revalidate(decision: DecisionObject) -> str | None:
    """Round-trip *decision* through its wire shape; return the error, if any."""
    try:
        DecisionObject.model_validate(decision.to_wire())
    except ValidationError as exc:
        return str(exc)
    return None


def print_report(proposal: ProposalContext, decision: DecisionObject, trace: ModelTrace, checksum: str) -> None:
    print(_THIN_RULE)
    print(f"PROPOSAL: {proposal.title or '(untitled)'}  [{checksum}]")
    print(_THIN_RULE)
    print(f"Recommendation: {decision.recommendation.value}")
    print(f"Human Required: {decision.human_required}")
    print(f"Confidence: {decision.confidence * 100:.0f}%")
    print(f"Tradeoff Score: {decision.tradeoff_score * 100:.0f}%")
    print(f"Summary: {decision.summary}")

    if decision.constraint_violations:
        print("")
        print("CONSTRAINT VIOLATIONS:")
        for violation in decision.constraint_violations:
            print(f"  - {violation}")

    triggers = escalation_triggers(decision)
    if triggers:
        print("")
        print("ESCALATION TRIGGERS:")
        for trigger in triggers:
            print(f"  - {trigger}")

    print("")
    print(f"Model: {trace.provider}/{trace.model} ({trace.latency_ms}ms)")
    if trace.failures:
        print("FAILURES:")
        for failure in trace.failures:
            print(f"  - {failure.stage}: {failure.error}")
    print("")


async def run(path: Path, only_title: str | None = None, as_json: bool = False) -> bool:
    mandate, proposals = load_batch(path)
    if only_title:
        proposals = [p for p in proposals if p.title == only_title]
    if not proposals:
        print("ERROR: No proposals found", file=sys.stderr)
        return False

    adapter = RiskDiscoveryAdapter.from_env()
    graph = build_evaluation_graph(adapter)
    all_passed = True
    results = []

    if not as_json:
        print(_RULE)
        print("MANDATE EVALUATION HARNESS")
        print(_RULE)
        print(f"Mandate: {mandate.kind} [{compute_checksum(mandate)}]")
        print("")

    for proposal in proposals:
        decision, trace = await evaluate(mandate, proposal, graph=graph)
        checksum = compute_checksum({"mandate": mandate.model_dump(mode="json"), "proposal": proposal.model_dump(mode="json")})
        error = revalidate(decision)

        if as_json:
            results.append({"checksum": checksum, "decision": decision.to_wire(), "trace": trace.model_dump(mode="json")})
        else:
            print_report(proposal, decision, trace, checksum)
            print(f"SCHEMA VALIDATION: {'PASS' if error is None else 'FAIL'}")
            print("")

        if error is not None:
            logger.error("DecisionObject for %r failed re-validation: %s", proposal.title, error)
            all_passed = False

    if as_json:
        print(json.dumps(results, indent=2))
    else:
        print(_RULE)
        print("ALL EVALUATIONS PASSED" if all_passed else "SOME EVALUATIONS FAILED")
        print(_RULE)
    return all_passed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Evaluate proposals against a mandate.")
    parser.add_argument("path", type=Path, help="JSON file with 'mandate' and 'proposals'")
    parser.add_argument("--proposal", dest="only_title", help="only evaluate the proposal with this title")
    parser.add_argument("--json", dest="as_json", action="store_true", help="print decision objects as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        success = asyncio.run(run(args.path, args.only_title, args.as_json))
    except (OSError, json.JSONDecodeError, KeyError, ValidationError) as exc:
        print(f"ERROR: could not load {args.path}: {exc}", file=sys.stderr)
        return 1
    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
