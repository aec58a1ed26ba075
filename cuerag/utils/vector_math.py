"""
Vector helpers shared by the encoder and the ranker.
"""

import math
from typing import List, Sequence


def magnitude(vector: Sequence[float]) -> float:
    return math.sqrt(sum(value * value for value in vector))


def l2_normalize(vector: Sequence[float]) -> List[float]:
    """Scale a vector to unit length. Zero vectors are returned unchanged."""
    norm = magnitude(vector)
    if norm == 0:
        return list(vector)
    return [value / norm for value in vector]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors, clamped to [-1, 1].

    Returns 0 when the lengths differ or either vector has zero magnitude, so a
    stale or empty vector contributes no signal instead of failing.
    """
    if len(a) != len(b) or not a:
        return 0.0

    norm_a = magnitude(a)
    norm_b = magnitude(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    dot = sum(x * y for x, y in zip(a, b))
    return max(-1.0, min(1.0, dot / (norm_a * norm_b)))
