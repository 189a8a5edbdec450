"""Application configuration helpers."""
from __future__ import annotations

import os
from functools import lru_cache

from dotenv import load_dotenv

# Load variables from .env into process environment as early as possible.
load_dotenv()

_DEMO_KEY = "demo"
_TRUTHY = {"1", "true", "yes", "on"}


def _optional_env(name: str) -> str | None:
    value = os.getenv(name)
    return value or None


def _optional_float(name: str) -> float | None:
    value = _optional_env(name)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        raise RuntimeError(f"Environment variable {name} must be a number, got {value!r}") from None


def _credential(*names: str) -> str | None:
    """Return the first configured credential, treating the ``demo`` placeholder as unset."""
    for name in names:
        value = _optional_env(name)
        if value and value.strip() and value.strip() != _DEMO_KEY:
            return value.strip()
    return None


@lru_cache(maxsize=None)
def get_llm_provider() -> str:
    """Return the provider used for risk discovery (``openai`` by default)."""
    return (_optional_env("LLM_PROVIDER") or "openai").strip().lower()


@lru_cache(maxsize=None)
def get_openai_api_key() -> str | None:
    """Return the OpenAI API key, or None when the deterministic mock path should run."""
    return _credential("OPENAI_API_KEY")


@lru_cache(maxsize=None)
def get_claude_api_key() -> str | None:
    """Return the Anthropic Claude API key."""

    return _credential("CLAUDE_API_KEY", "ANTHROPIC_API_KEY")


@lru_cache(maxsize=None)
def get_gemini_api_key() -> str | None:
    """Return the Gemini (Google AI Studio) API key."""

    return _credential("GEMINI_API_KEY")


def get_api_key(provider: str) -> str | None:
    getters = {"openai": get_openai_api_key, "claude": get_claude_api_key, "gemini": get_gemini_api_key}
    getter = getters.get(provider)
    if getter is None:
        return None
    return getter()


@lru_cache(maxsize=None)
def get_openai_base_url() -> str | None:
    return _optional_env("OPENAI_BASE_URL")


@lru_cache(maxsize=None)
def get_risk_model() -> str:
    """Return the model name for risk discovery."""
    return _optional_env("RISK_MODEL") or _optional_env("OPENAI_MODEL") or "gpt-4o"


@lru_cache(maxsize=None)
def get_risk_temperature() -> float:
    value = _optional_float("RISK_TEMPERATURE")
    return 0.7 if value is None else value


@lru_cache(maxsize=None)
def get_risk_timeout_seconds() -> float | None:
    """Return the per-call timeout for the model client, or None for no timeout."""
    value = _optional_float("RISK_TIMEOUT_SECONDS")
    if value is not None and value <= 0:
        return None
    return value


@lru_cache(maxsize=None)
def get_risk_max_retries() -> int:
    """Return how many times the provider client may retry (0 = single attempt)."""
    value = _optional_env("RISK_MAX_RETRIES")
    if value is None:
        return 0
    try:
        return max(0, int(value))
    except ValueError:
        raise RuntimeError(f"Environment variable RISK_MAX_RETRIES must be an integer, got {value!r}") from None


@lru_cache(maxsize=None)
def log_raw_model_output() -> bool:
    """Return True when raw model output should be included in failure logs."""

    flag = os.getenv("LOG_RAW_MODEL_OUTPUT", "1").lower()
    return flag in _TRUTHY


def clear_config_cache() -> None:
    """Forget cached settings so changed environment variables are picked up."""
    for getter in (
        get_llm_provider,
        get_openai_api_key,
        get_claude_api_key,
        get_gemini_api_key,
        get_openai_base_url,
        get_risk_model,
        get_risk_temperature,
        get_risk_timeout_seconds,
        get_risk_max_retries,
        log_raw_model_output,
    ):
        getter.cache_clear()
