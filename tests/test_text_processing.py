"""
Tests for text normalization, fingerprints and the similarity math.

Run with: python -m pytest tests/test_text_processing.py -v
"""

import pytest

from moodjournal.services.similarity_service import cosine_similarity, rank_top_k
from moodjournal.utils.text_cleaning import (
    normalize_tokens,
    preprocess_text,
    text_fingerprint,
    token_frequencies,
)


# =============================================================================
# TEXT NORMALIZER TESTS
# =============================================================================

class TestNormalizeTokens:
    """Tests for token normalization."""

    def test_lowercases_and_strips_punctuation(self):
        assert normalize_tokens('I am SO "Stressed" about (exams)!') == ["stressed", "about", "exams"]

    def test_drops_short_tokens(self):
        assert normalize_tokens("a an the ok yes") == ["the", "yes"]

    def test_keeps_inner_punctuation(self):
        assert normalize_tokens("can't well-being") == ["can't", "well-being"]

    def test_empty_and_none(self):
        assert normalize_tokens("") == []
        assert normalize_tokens(None) == []
        assert preprocess_text("!! ?? ..") == ""

    def test_token_frequencies_keep_first_seen_order(self):
        freqs = token_frequencies("tired tired happy tired happy sleep")
        assert list(freqs.items()) == [("tired", 3), ("happy", 2), ("sleep", 1)]


class TestFingerprint:
    """Tests for the SHA-256 content fingerprint."""

    def test_fingerprint_is_sha256_hex(self):
        fingerprint = text_fingerprint("Exams tomorrow")
        assert len(fingerprint) == 64
        int(fingerprint, 16)

    def test_equivalent_texts_share_fingerprint(self):
        assert text_fingerprint("Exams, tomorrow!") == text_fingerprint("  exams TOMORROW ")

    def test_different_texts_differ(self):
        assert text_fingerprint("exams tomorrow") != text_fingerprint("exams today")


# =============================================================================
# SIMILARITY TESTS
# =============================================================================

class TestCosineSimilarity:
    """Tests for cosine similarity edge cases."""

    def test_identical_vectors(self):
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_opposite_vectors(self):
        assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)

    def test_orthogonal_vectors(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_symmetric_and_bounded(self):
        a, b = [0.3, -1.2, 4.0], [2.0, 0.5, -0.1]
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))
        assert -1.0 <= cosine_similarity(a, b) <= 1.0

    def test_degenerate_inputs_score_zero(self):
        assert cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0]) == 0.0
        assert cosine_similarity([], []) == 0.0
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0
        assert cosine_similarity(None, [1.0]) == 0.0


class TestRankTopK:
    """Tests for top-k ranking."""

    def test_returns_best_first_and_at_most_k(self):
        candidates = [("a", [0.0, 1.0]), ("b", [1.0, 0.0]), ("c", [1.0, 1.0])]
        ranked = rank_top_k([1.0, 0.0], candidates, 2)
        assert [item for item, _ in ranked] == ["b", "c"]
        assert ranked[0][1] == pytest.approx(1.0)

    def test_ties_keep_input_order(self):
        candidates = [("first", [2.0, 0.0]), ("second", [1.0, 0.0]), ("third", [3.0, 0.0])]
        ranked = rank_top_k([1.0, 0.0], candidates, 3)
        assert [item for item, _ in ranked] == ["first", "second", "third"]

    def test_non_positive_k(self):
        assert rank_top_k([1.0], [("a", [1.0])], 0) == []

    def test_fewer_candidates_than_k(self):
        assert len(rank_top_k([1.0], [("a", [1.0])], 5)) == 1
