"""Risk-discovery adapter.

Wraps the single external model call of the evaluation pipeline:

1. Without a credential, return the deterministic mock risk set.
2. Otherwise build the prompt, call the model and extract JSON from the
   reply with ``json_guard``.
3. Any provider or validation failure becomes a degraded result: an empty
   risk set plus one ``{stage, error}`` entry in the trace.

``RiskDiscoveryAdapter.discover`` never raises.  Callers read ``.risks``
and ``.trace`` from either result variant.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Union

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from config import log_raw_model_output
from evaluation.errors import ProviderFailure, ValidationFailure
from evaluation.risk.client import RiskSettings, create_risk_llm, load_risk_settings
from evaluation.risk.json_guard import extract_and_validate
from evaluation.risk.mock import get_mock_risks, get_mock_trace
from evaluation.risk.prompts import (
    RISK_DISCOVERY_SYSTEM_PROMPT,
    RiskPromptContext,
    build_risk_discovery_prompt,
)
from evaluation.schemas import ModelTrace, RiskDiscoveryOutput, TraceFailure, empty_risks

logger = logging.getLogger(__name__)

STAGE_CLIENT = "client"
STAGE_LLM = "llm"
STAGE_VALIDATION = "validation"

_RAW_LOG_CHARS = 1000


# ---------------------------------------------------------------------------
# Result variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RiskDiscoverySuccess:
    risks: RiskDiscoveryOutput
    trace: ModelTrace

    @property
    def degraded(self) -> bool:
        return False


@dataclass(frozen=True)
class RiskDiscoveryDegraded:
    """An empty risk set standing in for a failed model call."""

    risks: RiskDiscoveryOutput
    trace: ModelTrace
    failure: TraceFailure

    @property
    def degraded(self) -> bool:
        return True


RiskDiscoveryResult = Union[RiskDiscoverySuccess, RiskDiscoveryDegraded]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _elapsed_ms(started: float) -> int:
    return max(0, int((time.perf_counter() - started) * 1000))


def response_text(response: Any) -> str:
    """Return the text of a chat-model response.

    Claude returns content as a list of blocks; their text is joined and
    blocks without text contribute nothing.
    """
    content = getattr(response, "content", response)
    if isinstance(content, list):
        return " ".join(
            (block.get("text") or "") if isinstance(block, dict) else str(block)
            for block in content
        )
    if content is None:
        return ""
    return str(content)


# ---------------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------------


class RiskDiscoveryAdapter:
    """Discover unseen risks for one proposal, degrading instead of raising.

    Pass ``llm=None`` (or settings without a credential) to select the
    deterministic mock generator.
    """

    def __init__(self, settings: RiskSettings | None = None, llm: BaseChatModel | None = None) -> None:
        self.settings = settings or RiskSettings()
        self._llm = llm
        self._client_error: str | None = None

    @classmethod
    def from_env(cls) -> "RiskDiscoveryAdapter":
        """Build an adapter from environment configuration.

        Invalid settings or an unusable provider yield an adapter whose every
        call degrades with stage ``client``.
        """
        adapter = cls()
        try:
            adapter.settings = load_risk_settings()
            adapter._llm = create_risk_llm(adapter.settings)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Could not create %s client for risk discovery", adapter.settings.provider, exc_info=True)
            adapter._client_error = f"{type(exc).__name__}: {exc}"
        return adapter

    @property
    def uses_mock(self) -> bool:
        return self._llm is None and self._client_error is None

    async def discover(self, context: RiskPromptContext) -> RiskDiscoveryResult:
        started = time.perf_counter()

        if self._client_error is not None:
            return self._degraded(started, STAGE_CLIENT, self._client_error)

        if self._llm is None:
            logger.info("No model credential configured; using mock risk discovery")
            return RiskDiscoverySuccess(
                risks=get_mock_risks(context.proposal),
                trace=get_mock_trace(_elapsed_ms(started)),
            )

        logger.info("Running risk discovery with %s/%s", self.settings.provider, self.settings.model)
        raw = ""
        try:
            raw = await self._call_model(context)
            risks = extract_and_validate(raw, RiskDiscoveryOutput)
        except ProviderFailure as exc:
            logger.warning("Risk discovery model call failed: %s", exc, exc_info=True)
            return self._degraded(started, STAGE_LLM, str(exc))
        except ValidationFailure as exc:
            logger.warning(
                "Risk discovery output rejected: %s. Raw content (first %d chars): %s",
                exc,
                _RAW_LOG_CHARS,
                (raw[:_RAW_LOG_CHARS] or "<empty>") if log_raw_model_output() else "<redacted>",
            )
            return self._degraded(started, STAGE_VALIDATION, str(exc))

        return RiskDiscoverySuccess(risks=risks, trace=self._trace(started))

    async def _call_model(self, context: RiskPromptContext) -> str:
        messages = [
            SystemMessage(content=RISK_DISCOVERY_SYSTEM_PROMPT),
            HumanMessage(content=build_risk_discovery_prompt(context)),
        ]
        try:
            call = self._llm.ainvoke(messages)
            timeout = self.settings.timeout_seconds
            if timeout is not None:
                response = await asyncio.wait_for(call, timeout=timeout)
            else:
                response = await call
            return response_text(response)
        except asyncio.TimeoutError as exc:
            limit = self.settings.timeout_seconds
            raise ProviderFailure(
                f"Model call timed out after {limit}s" if limit is not None else f"Model call timed out: {exc}",
                self.settings.provider,
                self.settings.model,
            ) from exc
        except Exception as exc:  # noqa: BLE001
            raise ProviderFailure(
                f"{type(exc).__name__}: {exc}", self.settings.provider, self.settings.model
            ) from exc

    def _trace(self, started: float, failures: list[TraceFailure] | None = None) -> ModelTrace:
        return ModelTrace(
            provider=self.settings.provider,
            model=self.settings.model,
            latency_ms=_elapsed_ms(started),
            failures=failures or [],
        )

    def _degraded(self, started: float, stage: str, error: str) -> RiskDiscoveryDegraded:
        failure = TraceFailure(stage=stage, error=error)
        return RiskDiscoveryDegraded(
            risks=empty_risks(),
            trace=self._trace(started, [failure]),
            failure=failure,
        )


async def discover_risks(
    context: RiskPromptContext, adapter: RiskDiscoveryAdapter | None = None
) -> RiskDiscoveryResult:
    """Run risk discovery with *adapter*, defaulting to environment configuration."""
    adapter = adapter or RiskDiscoveryAdapter.from_env()
    return await adapter.discover(context)
