import os
import sys
from pathlib import Path

import pytest


# Ensure backend modules (e.g. config.py, evaluation/) are importable even when running pytest from repo root.
BACKEND_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_DIR))

# Never reach a real model during tests: "demo" selects the deterministic mock path.
os.environ["OPENAI_API_KEY"] = "demo"
os.environ.pop("LLM_PROVIDER", None)
os.environ.pop("RISK_TIMEOUT_SECONDS", None)


@pytest.fixture(autouse=True)
def _fresh_config():
    """Drop cached settings so tests that patch the environment see their values."""
    from config import clear_config_cache

    clear_config_cache()
    yield
    clear_config_cache()
