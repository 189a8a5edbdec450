"""Stable checksum of evaluation inputs, used to match stored snapshots."""

from __future__ import annotations

import hashlib
import json
from typing import Any

from pydantic import BaseModel


def compute_checksum(data: Any) -> str:
    """Return the first 16 hex chars of SHA-256 over key-sorted JSON."""
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")
    normalized = json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:16]
