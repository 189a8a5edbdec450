"""Defensive JSON extraction for free-form model output.

Strategies, in order:
1. parse the whole response as JSON;
2. parse the contents of the first fenced code block;
3. parse the span from the first ``{`` to the last ``}``.

The first strategy whose result also passes schema validation wins.
If none does, a single ``ValidationFailure`` lists what each attempt hit.
"""

from __future__ import annotations

import json
import re
from typing import Any, Callable, TypeVar

from pydantic import BaseModel, ValidationError

from evaluation.errors import ValidationFailure

T = TypeVar("T", bound=BaseModel)

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)```", re.DOTALL | re.IGNORECASE)
_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


def _whole(raw: str) -> str | None:
    return raw.strip() or None


def _fenced(raw: str) -> str | None:
    match = _FENCE_RE.search(raw)
    return match.group(1).strip() if match else None


def _braced(raw: str) -> str | None:
    match = _OBJECT_RE.search(raw)
    return match.group(0) if match else None


STRATEGIES: tuple[tuple[str, Callable[[str], str | None]], ...] = (
    ("direct", _whole),
    ("code_block", _fenced),
    ("braces", _braced),
)


def _short(exc: Exception) -> str:
    text = str(exc).replace("\n", " ")
    return text if len(text) <= 300 else text[:297] + "..."


def extract_and_validate(raw: Any, schema: type[T]) -> T:
    """Return *raw* parsed into *schema*, or raise ``ValidationFailure``."""
    if not isinstance(raw, str):
        raise ValidationFailure(f"Expected text response, got {type(raw).__name__}")

    attempts: list[str] = []
    for name, extract in STRATEGIES:
        candidate = extract(raw)
        if candidate is None:
            attempts.append(f"{name}: nothing to parse")
            continue
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError as exc:
            attempts.append(f"{name}: invalid JSON ({_short(exc)})")
            continue
        if not isinstance(parsed, dict):
            attempts.append(f"{name}: expected a JSON object, got {type(parsed).__name__}")
            continue
        try:
            return schema.model_validate(parsed)
        except ValidationError as exc:
            attempts.append(f"{name}: schema validation failed ({_short(exc)})")

    raise ValidationFailure("No valid JSON found in model response: " + "; ".join(attempts), attempts)
