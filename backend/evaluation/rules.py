"""Table-driven text rules used by the deterministic scorer.

Every rule is a small frozen record evaluated uniformly by one of the
``apply_*`` helpers, so rules can be tested on their own and new ones
added by appending to a table.  Three tables live here:

- ``IMPACT_RULES``: per dimension, an ordered list of band rules; the first
  matching rule sets the band.
- ``CONFLICT_RULES``: co-occurrence rules; each appends at most one finding.
- ``CONSTRAINT_RULES``: matchers for non-negotiables; every applicable rule
  is checked against the proposal text.

Rule order is part of the output contract (findings are reported in table
order), so tables are tuples.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from evaluation.schemas import Features

# Currency figure as it appears in proposal text, reported verbatim in impact estimates.
CURRENCY_RE = re.compile(r"\$[\d,]+k?", re.IGNORECASE)

# Same figure with an optional multiplier, used for numeric comparison.
_AMOUNT_RE = re.compile(r"\$\s?(\d[\d,]*(?:\.\d+)?)\s*([km])?\b", re.IGNORECASE)
_BARE_AMOUNT_RE = re.compile(r"(?<!\w)\$?\s?(\d[\d,]*(?:\.\d+)?)\s*([km])?\b", re.IGNORECASE)

_MULTIPLIERS = {"k": 1_000, "m": 1_000_000}


def _to_amount(number: str, suffix: str | None) -> float | None:
    digits = number.replace(",", "")
    if not digits:
        return None
    try:
        value = float(digits)
    except ValueError:
        return None
    return value * _MULTIPLIERS.get((suffix or "").lower(), 1)


def parse_currency_amounts(text: str) -> list[float]:
    """Return every ``$``-prefixed amount in *text*, with k/m multipliers applied."""
    amounts = []
    for match in _AMOUNT_RE.finditer(text):
        amount = _to_amount(match.group(1), match.group(2))
        if amount is not None:
            amounts.append(amount)
    return amounts


def parse_budget_limit(constraint: str) -> float | None:
    """Return the first amount stated in a budget constraint.

    A ``$`` figure wins; otherwise the first bare number is used, so
    ``"Budget cap 500k"`` reads as 500,000.
    """
    amounts = parse_currency_amounts(constraint)
    if amounts:
        return amounts[0]
    match = _BARE_AMOUNT_RE.search(constraint)
    if match is None:
        return None
    return _to_amount(match.group(1), match.group(2))


def _contains_any(text: str, *needles: str) -> bool:
    return any(needle in text for needle in needles)


# ---------------------------------------------------------------------------
# Impact bands
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BandRule:
    """Assign *band* to a dimension when *predicate* holds.

    *band* may be a callable for bands that quote the text (the cost
    dimension reports a stated currency figure verbatim).
    """

    name: str
    predicate: Callable[[str, Features], bool]
    band: str | Callable[[str, Features], str]

    def resolve(self, text: str, features: Features) -> str:
        if callable(self.band):
            return self.band(text, features)
        return self.band


def _has_growth_terms(text: str) -> bool:
    return _contains_any(text, "expand", "growth", "new market")


def _stated_cost(text: str, features: Features) -> str:
    match = CURRENCY_RE.search(text)
    return match.group(0) if match else "Unknown"


IMPACT_RULES: dict[str, tuple[BandRule, ...]] = {
    "growth": (
        BandRule(
            "expansion_complex",
            lambda text, f: _has_growth_terms(text) and f.complexity_score > 0.5,
            "High (+15-25%)",
        ),
        BandRule("expansion", lambda text, f: _has_growth_terms(text), "Medium (+5-15%)"),
        BandRule("optimisation", lambda text, f: _contains_any(text, "optimize", "improve"), "Low (+2-5%)"),
    ),
    "cost": (
        BandRule("stated_figure", lambda text, f: CURRENCY_RE.search(text) is not None, _stated_cost),
        BandRule("high_complexity", lambda text, f: f.complexity_score > 0.7, "High (>$500k est.)"),
        BandRule("medium_complexity", lambda text, f: f.complexity_score > 0.4, "Medium ($100-500k est.)"),
        BandRule("low_complexity", lambda text, f: True, "Low (<$100k est.)"),
    ),
    "risk": (
        BandRule(
            "many_dependencies",
            lambda text, f: f.dependency_count > 3 or f.complexity_score > 0.7,
            "High",
        ),
        BandRule(
            "simple",
            lambda text, f: f.dependency_count <= 1 and f.complexity_score < 0.3,
            "Low",
        ),
    ),
    "brand": (
        BandRule(
            "customer_facing",
            lambda text, f: _contains_any(text, "customer", "user experience", "brand"),
            "Positive",
        ),
        BandRule(
            "workforce_cuts",
            lambda text, f: _contains_any(text, "cost cut", "layoff", "reduce"),
            "Risk of negative",
        ),
    ),
}

DEFAULT_BANDS = {"growth": "Neutral", "cost": "Unknown", "risk": "Medium", "brand": "Neutral"}


def estimate_band(dimension: str, text: str, features: Features) -> str:
    """Return the band of the first matching rule for *dimension*."""
    for rule in IMPACT_RULES[dimension]:
        if rule.predicate(text, features):
            return rule.resolve(text, features)
    return DEFAULT_BANDS[dimension]


def _substring_proxy(table: tuple[tuple[str, float], ...], default: float) -> Callable[[str], float]:
    def proxy(band: str) -> float:
        for marker, value in table:
            if marker in band:
                return value
        return default

    return proxy


def _exact_proxy(table: dict[str, float], default: float) -> Callable[[str], float]:
    return lambda band: table.get(band, default)


# Numeric proxy per band.  Cost is inverted: a low cost is desirable.
BAND_PROXIES: dict[str, Callable[[str], float]] = {
    "growth": _substring_proxy((("High", 0.9), ("Medium", 0.6), ("Low", 0.3)), 0.5),
    "cost": _substring_proxy((("Low", 0.9), ("Medium", 0.6), ("High", 0.3)), 0.5),
    "risk": _exact_proxy({"Low": 0.9, "Medium": 0.6}, 0.3),
    "brand": _exact_proxy({"Positive": 0.9, "Neutral": 0.6}, 0.3),
}


# ---------------------------------------------------------------------------
# Conflicts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ConflictRule:
    name: str
    predicate: Callable[[str, Features], bool]
    finding: str


CONFLICT_RULES: tuple[ConflictRule, ...] = (
    ConflictRule(
        "resource",
        lambda text, f: "reduce cost" in text and "expand" in text,
        "Proposal aims to both reduce costs and expand - potential resource conflict",
    ),
    ConflictRule(
        "goal",
        lambda text, f: "fast" in text and "thorough" in text,
        "Speed and thoroughness goals may conflict",
    ),
    ConflictRule(
        "timeline",
        lambda text, f: f.dependency_count > 3 and "quick" in text,
        "Many dependencies may conflict with quick timeline",
    ),
)


def apply_conflict_rules(text: str, features: Features) -> list[str]:
    return [rule.finding for rule in CONFLICT_RULES if rule.predicate(text, features)]


# ---------------------------------------------------------------------------
# Non-negotiable constraints
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ConstraintRule:
    """Check one family of non-negotiables.

    ``applies`` receives the lower-cased constraint; ``violated`` receives
    the constraint as written and the lower-cased proposal text.
    """

    name: str
    applies: Callable[[str], bool]
    violated: Callable[[str, str], bool]
    message: str

    def check(self, constraint: str, text: str) -> str | None:
        if self.applies(constraint.lower()) and self.violated(constraint, text):
            return self.message.format(constraint=constraint)
        return None


def _exceeds_budget(constraint: str, text: str) -> bool:
    limit = parse_budget_limit(constraint)
    if limit is None:
        return False
    amounts = parse_currency_amounts(text)
    return bool(amounts) and max(amounts) > limit


CONSTRAINT_RULES: tuple[ConstraintRule, ...] = (
    ConstraintRule(
        "budget",
        lambda c: "budget" in c or "$" in c,
        _exceeds_budget,
        "Budget constraint violated: {constraint}",
    ),
    ConstraintRule(
        "no_layoffs",
        lambda c: "no layoff" in c,
        lambda constraint, text: "layoff" in text,
        "Constraint violated: {constraint}",
    ),
    ConstraintRule(
        "data_privacy",
        lambda c: "privacy" in c,
        lambda constraint, text: _contains_any(text, "share data", "third party", "third-party"),
        "Potential data privacy constraint violation: {constraint}",
    ),
)


def apply_constraint_rules(non_negotiables: list[str], text: str) -> list[str]:
    """Return one finding per (constraint, matching rule) pair, in input order.

    Constraints no rule recognises produce nothing.
    """
    violations: list[str] = []
    for constraint in non_negotiables:
        for rule in CONSTRAINT_RULES:
            finding = rule.check(constraint, text)
            if finding is not None:
                violations.append(finding)
    return violations
