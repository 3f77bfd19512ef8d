"""Lenient numeric coercion shared by the wellness calculations.

Device and weather payloads arrive as loosely typed JSON; a missing or
non-numeric reading falls back to a default instead of failing the analysis.
"""

from __future__ import annotations


def clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    """Clamp a value to [lo, hi]."""
    return max(lo, min(hi, value))


def to_float(val, default: float = 0.0) -> float:
    """Safely convert to float, returning default for None or non-numeric."""
    if val is None:
        return default
    try:
        return float(val)
    except (TypeError, ValueError):
        return default


def optional_float(val) -> float | None:
    """Like ``to_float`` but keeps a missing or non-numeric reading as None."""
    if val is None:
        return None
    try:
        return float(val)
    except (TypeError, ValueError):
        return None
