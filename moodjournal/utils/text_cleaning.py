from __future__ import annotations

import hashlib
from collections import Counter
from typing import Dict, List

_TOKEN_PUNCT = ".,!?;:\"'()[]{}"

MIN_TOKEN_LENGTH = 3


def normalize_tokens(text: str | None) -> List[str]:
    """Lowercase, trim surrounding punctuation and drop tokens of two chars or fewer."""
    if not text:
        return []
    tokens: List[str] = []
    for word in text.lower().split():
        word = word.strip(_TOKEN_PUNCT)
        if len(word) >= MIN_TOKEN_LENGTH:
            tokens.append(word)
    return tokens


def preprocess_text(text: str | None) -> str:
    return " ".join(normalize_tokens(text))


def token_frequencies(text: str | None) -> Dict[str, int]:
    return dict(Counter(normalize_tokens(text)))


def text_fingerprint(text: str | None) -> str:
    """SHA-256 hex digest of the canonical token form of ``text``."""
    return hashlib.sha256(preprocess_text(text).encode("utf-8")).hexdigest()
