"""Failures raised inside the risk-discovery adapter.

Neither exception escapes the adapter: both are converted into a degraded
result with a trace failure entry.  Policy outcomes such as constraint
violations or low confidence are not exceptions at all; the escalation
policy handles them.
"""

from __future__ import annotations


class ValidationFailure(Exception):
    """Model output could not be parsed as JSON or failed schema validation."""

    def __init__(self, message: str, attempts: list[str] | None = None) -> None:
        super().__init__(message)
        self.attempts: list[str] = list(attempts or [])


class ProviderFailure(Exception):
    """The model call itself errored or timed out."""

    def __init__(self, message: str, provider: str = "", model: str = "") -> None:
        super().__init__(message)
        self.provider = provider
        self.model = model
