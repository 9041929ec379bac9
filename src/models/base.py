"""Shared helpers for record models."""

import hashlib
from datetime import date, datetime
from typing import Any


def stable_id(prefix: str, *parts: Any) -> str:
    """Deterministic id from identifying parts."""
    raw = "|".join("" if p is None else _part(p) for p in parts)
    h = hashlib.sha1(raw.encode("utf-8")).hexdigest()[:16]
    return f"{prefix}_{h}"


def _part(value: Any) -> str:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, float):
        return f"{value:.6f}"
    return str(value)


def round_opt(value, digits: int = 2):
    return None if value is None else round(value, digits)
