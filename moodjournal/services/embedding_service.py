from __future__ import annotations

import hashlib
import logging
import math
from dataclasses import dataclass
from numbers import Real
from typing import Any, List, Optional

import numpy as np

from moodjournal.core.config import settings
from moodjournal.services.inference_client import InferenceClient
from moodjournal.utils.text_cleaning import token_frequencies

logger = logging.getLogger(__name__)

FALLBACK_TOKEN_WEIGHT = 0.1
_HASH_BYTES = 32


def fallback_embedding(text: str, dim: Optional[int] = None) -> List[float]:
    """Hash-projection bag of words, L2-normalized.

    Pure function of ``text``: every distinct token scatters
    ``frequency * 0.1`` into ``dim // 32`` positions picked by the bytes of
    its SHA-256 digest.
    """
    width = dim or settings.EMBEDDING_DIM
    vector = np.zeros(width, dtype=np.float64)
    slots = max(1, width // _HASH_BYTES)
    for token, freq in token_frequencies(text).items():
        digest = hashlib.sha256(token.encode("utf-8")).digest()
        for k in range(slots):
            vector[digest[k % _HASH_BYTES] % width] += freq * FALLBACK_TOKEN_WEIGHT
    norm = float(np.linalg.norm(vector))
    if norm > 0:
        vector /= norm
    return vector.tolist()


def _as_vector(value: Any) -> Optional[List[float]]:
    if not isinstance(value, list) or not value:
        return None
    out: List[float] = []
    for v in value:
        if isinstance(v, bool) or not isinstance(v, Real) or not math.isfinite(v):
            return None
        out.append(float(v))
    return out


def parse_embedding_payload(payload: Any) -> Optional[List[float]]:
    """Flat vector, or the first vector of a batch; ``None`` if neither."""
    flat = _as_vector(payload)
    if flat is not None:
        return flat
    if isinstance(payload, list) and payload:
        return _as_vector(payload[0])
    return None


@dataclass
class EmbeddingResult:
    vector: List[float]
    source: str


class EmbeddingProvider:
    def __init__(
        self,
        inference: Optional[InferenceClient] = None,
        *,
        model: Optional[str] = None,
        dim: Optional[int] = None,
    ) -> None:
        self.inference = inference or InferenceClient()
        self.model = model or settings.EMBEDDING_MODEL
        self.dim = dim or settings.EMBEDDING_DIM

    async def embed_with_source(self, text: str) -> EmbeddingResult:
        response = await self.inference.post(self.model, text)
        if response.ok:
            vector = parse_embedding_payload(response.payload)
            if vector is not None and len(vector) == self.dim:
                return EmbeddingResult(vector=vector, source="remote")
            if vector is not None:
                logger.warning(
                    f"[Embedding] remote vector has {len(vector)} dims, expected {self.dim}; using fallback"
                )
            else:
                logger.warning("[Embedding] failed to parse embedding response, using fallback")
        else:
            logger.warning(f"[Embedding] remote embedding failed ({response.error}), using fallback")
        return EmbeddingResult(vector=fallback_embedding(text, self.dim), source="fallback")

    async def embed(self, text: str) -> List[float]:
        return (await self.embed_with_source(text)).vector
