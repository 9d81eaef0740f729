"""Exponential backoff arithmetic for retried remote actions."""
from __future__ import annotations


def backoff_delay(attempt: int, base_seconds: float) -> float:
    """Wait before re-trying after ``attempt`` failed: ``base * 2^(attempt-1)``."""
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")
    return base_seconds * (2 ** (attempt - 1))


def total_backoff_bound(base_seconds: float, retries: int) -> float:
    """Overall wait ceiling for a dependent service: ``base * 2^retries - 1``."""
    return base_seconds * (2 ** retries) - 1


__all__ = ["backoff_delay", "total_backoff_bound"]
