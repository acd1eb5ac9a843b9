"""Similarity over four-dimensional taste vectors.

Only ``TasteProfileVector`` instances are accepted so a taste comparison can
never be fed an arbitrary-length embedding by accident.
"""

from __future__ import annotations

import math

from brewmate.schema.taste_profile import TasteProfileVector


def taste_cosine_similarity(a: TasteProfileVector, b: TasteProfileVector) -> float:
    """Cosine similarity of two taste vectors; 0 when either is the zero vector."""
    left = a.as_tuple()
    right = b.as_tuple()
    dot = sum(x * y for x, y in zip(left, right))
    magnitude_a = math.sqrt(sum(x * x for x in left))
    magnitude_b = math.sqrt(sum(y * y for y in right))
    if magnitude_a == 0 or magnitude_b == 0:
        return 0.0
    return dot / (magnitude_a * magnitude_b)
