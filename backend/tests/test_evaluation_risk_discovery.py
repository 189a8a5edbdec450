"""Tests for the risk-discovery adapter, its LLM factory and graph node."""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from evaluation.risk.client import RiskSettings, create_risk_llm, load_risk_settings
from evaluation.risk.discovery import (
    STAGE_CLIENT,
    STAGE_LLM,
    STAGE_VALIDATION,
    RiskDiscoveryAdapter,
    RiskDiscoveryDegraded,
    RiskDiscoverySuccess,
    discover_risks,
    response_text,
)
from evaluation.nodes.risk_discovery import make_risk_discovery_node
from evaluation.risk.prompts import RiskPromptContext
from evaluation.schemas import MandateWeights, ProposalContext, WeightedMandate

MANDATE = WeightedMandate(weights=MandateWeights(growth=0.4, cost=0.2, risk=0.3, brand=0.1))
PROPOSAL = ProposalContext(title="APAC Market Expansion", summary="Open a Singapore office.")
CONTEXT = RiskPromptContext(mandate=MANDATE, proposal=PROPOSAL)

MODEL_JSON = json.dumps(
    {
        "implicit_assumptions": [{"risk": "Hiring is fast", "severity": "med", "evidence_needed": "Recruiter data"}],
        "tail_risks": [{"risk": "Office lease falls through", "severity": "low", "evidence_needed": "Lease terms"}],
        "top_3_unseen_risks": ["Slow hiring"],
        "data_to_collect_next": ["Recruiter pipeline"],
        "alignment_summary": "Growth-aligned.",
    }
)


def _llm(content) -> MagicMock:
    llm = MagicMock()
    llm.ainvoke = AsyncMock(return_value=AIMessage(content=content))
    return llm


# ---------------------------------------------------------------------------
# Mock path
# ---------------------------------------------------------------------------


class TestMockPath:
    @pytest.mark.asyncio
    async def test_no_llm_uses_mock(self):
        adapter = RiskDiscoveryAdapter()
        assert adapter.uses_mock

        result = await adapter.discover(CONTEXT)

        assert isinstance(result, RiskDiscoverySuccess)
        assert not result.degraded
        assert result.trace.provider == "mock"
        assert result.trace.model == "demo"
        assert result.trace.failures == []
        assert any(item.severity == "high" for item in result.risks.tail_risks)

    @pytest.mark.asyncio
    async def test_mock_is_deterministic(self):
        adapter = RiskDiscoveryAdapter()
        first = await adapter.discover(CONTEXT)
        second = await adapter.discover(CONTEXT)
        assert first.risks == second.risks

    @pytest.mark.asyncio
    async def test_from_env_demo_key_selects_mock(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "demo")
        adapter = RiskDiscoveryAdapter.from_env()
        assert adapter.uses_mock
        result = await discover_risks(CONTEXT, adapter)
        assert result.trace.provider == "mock"


# ---------------------------------------------------------------------------
# Model path
# ---------------------------------------------------------------------------


class TestModelPath:
    @pytest.mark.asyncio
    async def test_valid_json_succeeds(self):
        llm = _llm(MODEL_JSON)
        adapter = RiskDiscoveryAdapter(settings=RiskSettings(model="gpt-4o-mini"), llm=llm)

        result = await adapter.discover(CONTEXT)

        assert isinstance(result, RiskDiscoverySuccess)
        assert result.trace.provider == "openai"
        assert result.trace.model == "gpt-4o-mini"
        assert result.trace.failures == []
        assert result.risks.alignment_summary == "Growth-aligned."
        assert result.risks.implicit_assumptions[0].risk == "Hiring is fast"

    @pytest.mark.asyncio
    async def test_sends_system_and_human_messages(self):
        llm = _llm(MODEL_JSON)
        await RiskDiscoveryAdapter(llm=llm).discover(CONTEXT)

        messages = llm.ainvoke.await_args.args[0]
        assert isinstance(messages[0], SystemMessage)
        assert isinstance(messages[1], HumanMessage)
        assert "APAC Market Expansion" in messages[1].content

    @pytest.mark.asyncio
    async def test_fenced_reply_accepted(self):
        llm = _llm(f"```json\n{MODEL_JSON}\n```")
        result = await RiskDiscoveryAdapter(llm=llm).discover(CONTEXT)
        assert not result.degraded

    @pytest.mark.asyncio
    async def test_content_blocks_joined(self):
        llm = _llm([{"type": "text", "text": MODEL_JSON}])
        result = await RiskDiscoveryAdapter(llm=llm).discover(CONTEXT)
        assert not result.degraded
        assert result.risks.top_3_unseen_risks == ["Slow hiring"]

    @pytest.mark.asyncio
    async def test_text_block_without_text_skipped(self):
        response = MagicMock(content=[{"type": "text", "text": None}, {"type": "text", "text": MODEL_JSON}])
        llm = MagicMock()
        llm.ainvoke = AsyncMock(return_value=response)

        result = await RiskDiscoveryAdapter(llm=llm).discover(CONTEXT)

        assert not result.degraded
        assert result.risks.top_3_unseen_risks == ["Slow hiring"]


# ---------------------------------------------------------------------------
# Degraded path
# ---------------------------------------------------------------------------


class TestDegradedPath:
    @pytest.mark.asyncio
    async def test_prose_reply_degrades_with_validation_failure(self):
        result = await RiskDiscoveryAdapter(llm=_llm("I'm sorry, I can't do that.")).discover(CONTEXT)

        assert isinstance(result, RiskDiscoveryDegraded)
        assert result.degraded
        assert result.risks.total_count == 0
        assert result.risks.top_3_unseen_risks == []
        assert len(result.trace.failures) == 1
        assert result.trace.failures[0].stage == STAGE_VALIDATION
        assert result.failure == result.trace.failures[0]

    @pytest.mark.asyncio
    async def test_oversized_reply_degrades(self):
        item = {"risk": "r", "severity": "low", "evidence_needed": "e"}
        llm = _llm(json.dumps({"tail_risks": [item] * 6}))
        result = await RiskDiscoveryAdapter(llm=llm).discover(CONTEXT)
        assert result.trace.failures[0].stage == STAGE_VALIDATION

    @pytest.mark.asyncio
    async def test_provider_exception_degrades(self):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(side_effect=RuntimeError("rate limited"))

        result = await RiskDiscoveryAdapter(llm=llm).discover(CONTEXT)

        assert result.degraded
        assert result.trace.failures[0].stage == STAGE_LLM
        assert "rate limited" in result.trace.failures[0].error

    @pytest.mark.asyncio
    async def test_timeout_degrades(self):
        async def slow(_messages):
            await asyncio.sleep(1)
            return AIMessage(content=MODEL_JSON)

        llm = MagicMock()
        llm.ainvoke = slow
        adapter = RiskDiscoveryAdapter(settings=RiskSettings(timeout_seconds=0.01), llm=llm)

        result = await adapter.discover(CONTEXT)

        assert result.degraded
        assert result.trace.failures[0].stage == STAGE_LLM
        assert "timed out" in result.trace.failures[0].error

    @pytest.mark.asyncio
    async def test_client_creation_error_degrades(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "claude")
        monkeypatch.setenv("CLAUDE_API_KEY", "sk-test")
        with patch(
            "evaluation.risk.discovery.create_risk_llm",
            side_effect=ImportError("No module named 'langchain_anthropic'"),
        ):
            adapter = RiskDiscoveryAdapter.from_env()

        assert not adapter.uses_mock
        result = await adapter.discover(CONTEXT)
        assert result.degraded
        assert result.trace.provider == "claude"
        assert result.trace.failures[0].stage == STAGE_CLIENT
        assert "langchain_anthropic" in result.trace.failures[0].error

    @pytest.mark.asyncio
    async def test_null_text_block_degrades_instead_of_raising(self):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(return_value=MagicMock(content=[{"type": "text", "text": None}]))

        result = await RiskDiscoveryAdapter(llm=llm).discover(CONTEXT)

        assert result.degraded
        assert result.risks.total_count == 0
        assert result.trace.failures[0].stage == STAGE_VALIDATION

    @pytest.mark.asyncio
    async def test_invalid_setting_degrades_at_client_stage(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-real")
        monkeypatch.setenv("RISK_TEMPERATURE", "warm")

        adapter = RiskDiscoveryAdapter.from_env()

        assert not adapter.uses_mock
        result = await adapter.discover(CONTEXT)
        assert result.degraded
        assert result.trace.provider == "openai"
        assert result.trace.failures[0].stage == STAGE_CLIENT
        assert "RISK_TEMPERATURE" in result.trace.failures[0].error

    @pytest.mark.asyncio
    async def test_unsupported_provider_degrades_instead_of_mocking(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "azure")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-real")

        adapter = RiskDiscoveryAdapter.from_env()

        assert not adapter.uses_mock
        result = await adapter.discover(CONTEXT)
        assert result.degraded
        assert result.trace.provider == "azure"
        assert result.trace.failures[0].stage == STAGE_CLIENT
        assert "Unsupported" in result.trace.failures[0].error


# ---------------------------------------------------------------------------
# Helpers and factory
# ---------------------------------------------------------------------------


class TestResponseText:
    def test_plain_string(self):
        assert response_text(AIMessage(content="hello")) == "hello"

    def test_block_list(self):
        content = [{"type": "text", "text": "a"}, {"type": "text", "text": "b"}]
        assert response_text(AIMessage(content=content)) == "a b"

    def test_none_content(self):
        assert response_text(MagicMock(content=None)) == ""

    def test_block_with_null_text(self):
        content = [{"type": "text", "text": None}, {"type": "text", "text": "b"}]
        assert response_text(MagicMock(content=content)) == " b"


class TestRiskSettings:
    def test_repr_hides_key(self):
        settings = RiskSettings(api_key="sk-secret")
        assert "sk-secret" not in repr(settings)
        assert "has_credential=True" in repr(settings)

    def test_load_from_env(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "OpenAI")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-live")
        monkeypatch.setenv("RISK_MODEL", "gpt-4o-mini")
        monkeypatch.setenv("RISK_TIMEOUT_SECONDS", "20")
        monkeypatch.setenv("RISK_MAX_RETRIES", "2")

        settings = load_risk_settings()

        assert settings.provider == "openai"
        assert settings.api_key == "sk-live"
        assert settings.model == "gpt-4o-mini"
        assert settings.timeout_seconds == 20.0
        assert settings.max_retries == 2


class TestCreateRiskLlm:
    def test_no_credential_returns_none(self):
        assert create_risk_llm(RiskSettings(api_key=None)) is None

    def test_openai_client(self):
        with patch("evaluation.risk.client.ChatOpenAI") as chat_openai:
            create_risk_llm(RiskSettings(api_key="sk-test", timeout_seconds=5, max_retries=1))
        kwargs = chat_openai.call_args.kwargs
        assert kwargs["api_key"] == "sk-test"
        assert kwargs["timeout"] == 5
        assert kwargs["max_retries"] == 1

    def test_unsupported_provider(self):
        with pytest.raises(ValueError, match="Unsupported"):
            create_risk_llm(RiskSettings(provider="bogus", api_key="k"))

    def test_unsupported_provider_without_credential(self):
        with pytest.raises(ValueError, match="azure"):
            create_risk_llm(RiskSettings(provider="azure", api_key=None))


# ---------------------------------------------------------------------------
# Graph node
# ---------------------------------------------------------------------------


class TestRiskDiscoveryNode:
    @pytest.mark.asyncio
    async def test_node_writes_risks_and_trace(self):
        node = make_risk_discovery_node(RiskDiscoveryAdapter(llm=_llm(MODEL_JSON)))
        update = await node({"mandate": MANDATE, "proposal": PROPOSAL})
        assert set(update) == {"risks", "trace"}
        assert update["trace"].failures == []

    @pytest.mark.asyncio
    async def test_node_never_raises(self):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(side_effect=ConnectionError("down"))
        node = make_risk_discovery_node(RiskDiscoveryAdapter(llm=llm))
        update = await node({"mandate": MANDATE, "proposal": PROPOSAL})
        assert update["risks"].total_count == 0
        assert update["trace"].failures[0].stage == STAGE_LLM
