"""
Numeric helpers shared by the vectorizer and the centroid classifier.
"""

import math
from typing import Sequence


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Limit value to the [low, high] interval."""
    return max(low, min(high, value))


def normalize(value: float, low: float, high: float) -> float:
    """
    Map value linearly from [low, high] onto [0, 1].

    Values outside the range are clamped. A degenerate range
    (low == high) yields 0.0.

    Examples:
        >>> normalize(150, 0, 300)
        0.5
        >>> normalize(400, 0, 300)
        1.0
    """
    if high == low:
        return 0.0
    return clamp((value - low) / (high - low))


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity between two equal-length vectors.

    Returns 0.0 when the lengths differ or either vector has zero norm.
    """
    if len(a) != len(b):
        return 0.0

    dot_product = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))

    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot_product / (norm_a * norm_b)
