"""Score arithmetic shared by the detectors and the scoring engine."""

import math


def clamp(value: float, lower: float = 0.0, upper: float = 100.0) -> float:
    return max(lower, min(upper, value))


def round_half_up(value: float) -> int:
    """Round .5 upward, matching how scores are displayed (scores are never negative)."""
    return int(math.floor(value + 0.5))
