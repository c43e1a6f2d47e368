"""Score helpers — clamping, confidence aggregation, priority mapping.

Pure functions, no I/O.
"""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives (84.5 → 85)."""
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def clamp_score(value: float) -> int:
    """Clamp a 0–100 score and round it to an integer."""
    return round_half_up(clamp(value, 0, 100))


def calculate_overall_confidence(business_confidence: float, validation_score: float) -> int:
    """Overall pipeline confidence: mean of the two stage scores, rounded."""
    return round_half_up((business_confidence + validation_score) / 2)


def map_priority_to_enum(priority: int) -> str:
    """Map a 1–10 feature priority to the stored priority level."""
    if priority >= 9:
        return "critical"
    if priority >= 7:
        return "high"
    if priority >= 5:
        return "medium"
    return "low"


def priority_to_complexity(priority: int) -> int:
    """Stored complexity is the priority clamped into 1–10."""
    return int(clamp(priority, 1, 10))
