"""Numeric helpers shared by the scoring and enrichment services."""
import math


def clamp(value: float, lower: float, upper: float) -> float:
    """Bound value to the closed range [lower, upper]."""
    return max(lower, min(upper, value))


def round_half_up(value: float) -> int:
    """Round to the nearest whole number, halves going up.

    Stored historical scores were produced with this rule, so Python's
    round-half-to-even must not be used for anything user-visible.

    Example:
        >>> round_half_up(62.5)
        63
        >>> round(62.5)
        62
    """
    return int(math.floor(value + 0.5))
