"""Pure vector comparison functions."""

from __future__ import annotations

from collections.abc import Sequence
from math import sqrt

from doc_search.errors import DimensionMismatchError


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return the cosine of the angle between `a` and `b`, in [-1, 1].

    A zero-magnitude vector has no direction; its similarity to anything is
    defined as 0.0 rather than NaN.
    """

    _check_dimensions(a, b)
    numerator = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b, strict=True):
        numerator += x * y
        norm_a += x * x
        norm_b += y * y
    magnitude = sqrt(norm_a) * sqrt(norm_b)
    if magnitude == 0:
        return 0.0
    # Rounding can push |cos| a hair past 1 for parallel vectors.
    return max(-1.0, min(1.0, numerator / magnitude))


def euclidean_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Return the straight-line distance between `a` and `b`."""

    _check_dimensions(a, b)
    return sqrt(sum((x - y) * (x - y) for x, y in zip(a, b, strict=True)))


def _check_dimensions(a: Sequence[float], b: Sequence[float]) -> None:
    if len(a) != len(b):
        raise DimensionMismatchError(expected=len(a), actual=len(b))
