"""LLM factory for the risk-discovery adapter.

Resolves provider, model, credential, timeout and retry policy from the
environment (see ``config``) and builds a langchain chat model.  When the
selected provider has no credential the factory returns ``None`` and the
adapter takes the deterministic mock path.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI

from config import (
    get_api_key,
    get_llm_provider,
    get_openai_base_url,
    get_risk_max_retries,
    get_risk_model,
    get_risk_temperature,
    get_risk_timeout_seconds,
)

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("openai", "claude", "gemini")


@dataclass(frozen=True)
class RiskSettings:
    """Everything the adapter needs to reach a model.

    ``timeout_seconds=None`` means no adapter-level timeout; ``max_retries``
    is handed to the provider client (0 = a single attempt).
    """

    provider: str = "openai"
    model: str = "gpt-4o"
    api_key: str | None = None
    base_url: str | None = None
    temperature: float = 0.7
    timeout_seconds: float | None = None
    max_retries: int = 0

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key)

    def __repr__(self) -> str:
        # Keep credentials out of logs and tracebacks.
        return (
            f"RiskSettings(provider={self.provider!r}, model={self.model!r}, "
            f"has_credential={self.has_credential}, timeout_seconds={self.timeout_seconds!r}, "
            f"max_retries={self.max_retries!r})"
        )


def load_risk_settings() -> RiskSettings:
    provider = get_llm_provider()
    return RiskSettings(
        provider=provider,
        model=get_risk_model(),
        api_key=get_api_key(provider),
        base_url=get_openai_base_url(),
        temperature=get_risk_temperature(),
        timeout_seconds=get_risk_timeout_seconds(),
        max_retries=get_risk_max_retries(),
    )


def create_risk_llm(settings: RiskSettings) -> BaseChatModel | None:
    """Create the chat model for *settings*, or None without a credential.

    An unsupported provider raises ``ValueError`` whether or not a credential
    is configured.
    """
    provider = settings.provider
    if provider not in SUPPORTED_PROVIDERS:
        raise ValueError(f"Unsupported risk-discovery provider: {provider}")
    if not settings.has_credential:
        return None

    if provider == "openai":
        return ChatOpenAI(
            model=settings.model,
            temperature=settings.temperature,
            api_key=settings.api_key,
            base_url=settings.base_url,
            timeout=settings.timeout_seconds,
            max_retries=settings.max_retries,
        )
    elif provider == "claude":
        from langchain_anthropic import ChatAnthropic
        return ChatAnthropic(
            model=settings.model,
            temperature=settings.temperature,
            anthropic_api_key=settings.api_key,
            default_request_timeout=settings.timeout_seconds,
            max_retries=settings.max_retries,
        )
    else:
        from langchain_google_genai import ChatGoogleGenerativeAI
        return ChatGoogleGenerativeAI(
            model=settings.model,
            google_api_key=settings.api_key,
            temperature=settings.temperature,
            timeout=settings.timeout_seconds,
            max_retries=settings.max_retries,
        )
