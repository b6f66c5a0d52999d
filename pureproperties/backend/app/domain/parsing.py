# app/domain/parsing.py
from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def to_int(x: Any) -> int | None:
    if x is None or x == "":
        return None
    try:
        return int(float(x))
    except (TypeError, ValueError, OverflowError):
        return None


def to_float(x: Any) -> float | None:
    if x is None or x == "":
        return None
    try:
        return float(x)
    except (TypeError, ValueError):
        return None


def get_first(params: Mapping[str, Any], *keys: str) -> Any:
    """Return the first non-empty value among `keys` (e.g. postalCode / PostalCode)."""
    for k in keys:
        v = params.get(k)
        if v is None:
            continue
        if isinstance(v, str) and not v.strip():
            continue
        return v
    return None
