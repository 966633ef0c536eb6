from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple, TypeVar

import numpy as np

T = TypeVar("T")


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between ``a`` and ``b``.

    Mismatched lengths, empty vectors and zero-norm vectors all score 0.0.
    """
    if a is None or b is None or len(a) != len(b) or len(a) == 0:
        return 0.0
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    denom = float(np.linalg.norm(va)) * float(np.linalg.norm(vb))
    if denom <= 0:
        return 0.0
    sim = float(np.dot(va, vb)) / denom
    return max(-1.0, min(1.0, sim))


def rank_top_k(
    query: Sequence[float],
    candidates: Iterable[Tuple[T, Sequence[float]]],
    k: int,
) -> List[Tuple[T, float]]:
    """Score ``(item, vector)`` pairs against ``query``; best ``k`` first.

    The sort is stable, so exact ties keep their input order.
    """
    if k <= 0:
        return []
    scored = [(item, cosine_similarity(query, vector)) for item, vector in candidates]
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored[:k]
