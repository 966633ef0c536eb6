"""
Tests for the inference client and the sentiment/emotion classifier.

Covers the three provider response shapes, label normalization and the
failure paths that must never raise.

Run with: python -m pytest tests/test_classifier.py -v
"""

import asyncio

import httpx
import pytest

from conftest import EMOTION_MODEL, SENTIMENT_MODEL
from moodjournal.services.classifier_service import (
    NEUTRAL_SENTIMENT,
    ClassifierClient,
    ClassifierTask,
    LabelScore,
    normalize_sentiment_label,
    parse_flat_list,
    parse_label_scores,
    parse_nested_list,
    parse_single_object,
    select_winner,
)
from moodjournal.services.inference_client import InferenceClient


def _classifier(fake):
    return ClassifierClient(fake.client(), sentiment_model=SENTIMENT_MODEL, emotion_model=EMOTION_MODEL)


# =============================================================================
# RESPONSE SHAPE TESTS
# =============================================================================

class TestResponseShapes:
    """Tests for the tagged response parsers."""

    def test_single_object(self):
        outcome = parse_label_scores({"label": "joy", "score": 0.8})
        assert outcome.parsed and outcome.shape == "object"
        assert outcome.items == [LabelScore("joy", 0.8)]

    def test_flat_list(self):
        outcome = parse_label_scores([{"label": "joy", "score": 0.8}, {"label": "fear", "score": 0.1}])
        assert outcome.shape == "list"
        assert [i.label for i in outcome.items] == ["joy", "fear"]

    def test_nested_list_uses_first_inner_list(self):
        payload = [[{"label": "sadness", "score": 0.7}], [{"label": "joy", "score": 0.9}]]
        outcome = parse_label_scores(payload)
        assert outcome.shape == "nested"
        assert outcome.items == [LabelScore("sadness", 0.7)]

    def test_missing_score_defaults_to_zero(self):
        assert parse_single_object({"label": "neutral"}).items == [LabelScore("neutral", 0.0)]

    def test_object_without_label_is_unparsed(self):
        assert not parse_label_scores({"error": "Model is loading"}).parsed
        assert not parse_label_scores({"label": 3, "score": 0.2}).parsed

    def test_non_numeric_scores_are_unparsed(self):
        assert not parse_flat_list([{"label": "joy", "score": "high"}]).parsed
        assert not parse_flat_list([{"label": "joy", "score": True}]).parsed

    def test_mixed_list_falls_through_every_parser(self):
        payload = [{"label": "joy", "score": 0.5}, [{"label": "fear", "score": 0.2}]]
        assert not parse_flat_list(payload).parsed
        assert not parse_nested_list(payload).parsed
        assert not parse_label_scores(payload).parsed

    def test_scalars_are_unparsed(self):
        assert not parse_label_scores("positive").parsed
        assert not parse_label_scores(None).parsed


# =============================================================================
# NORMALIZATION TESTS
# =============================================================================

class TestSentimentNormalization:
    """Tests for mapping provider labels onto signed polarity."""

    def test_very_negative(self):
        result = normalize_sentiment_label("Very Negative", 0.9)
        assert result.sentiment == "negative"
        assert result.score == pytest.approx(-0.9)

    def test_positive_keeps_score(self):
        result = normalize_sentiment_label("very positive", 0.75)
        assert (result.sentiment, result.score) == ("positive", 0.75)

    def test_neutral_scores_zero(self):
        result = normalize_sentiment_label("NEUTRAL", 0.95)
        assert (result.sentiment, result.score) == ("neutral", 0.0)

    def test_unknown_label_passes_through(self):
        result = normalize_sentiment_label("LABEL_2", 0.4)
        assert (result.sentiment, result.score) == ("LABEL_2", 0.4)

    def test_winner_is_highest_score(self):
        items = [LabelScore("neutral", 0.2), LabelScore("negative", 0.7), LabelScore("positive", 0.1)]
        assert select_winner(items).label == "negative"

    def test_winner_ties_keep_first(self):
        items = [LabelScore("positive", 0.5), LabelScore("negative", 0.5)]
        assert select_winner(items).label == "positive"

    def test_winner_of_nothing(self):
        assert select_winner([]) is None


# =============================================================================
# CLIENT TESTS
# =============================================================================

class TestClassifierClient:
    """Tests for classifier calls over a mocked transport."""

    @pytest.mark.asyncio
    async def test_sentiment_from_nested_response(self, fake_inference):
        fake_inference.replies[SENTIMENT_MODEL] = [[
            {"label": "Negative", "score": 0.81},
            {"label": "Neutral", "score": 0.12},
        ]]
        result = await _classifier(fake_inference).analyze_sentiment("I failed my exam")
        assert result.sentiment == "negative"
        assert result.score == pytest.approx(-0.81)

    @pytest.mark.asyncio
    async def test_request_body_and_auth_header(self, fake_inference):
        captured = {}

        def handler(request):
            captured["auth"] = request.headers.get("Authorization")
            captured["path"] = request.url.path
            return httpx.Response(200, json={"label": "joy", "score": 0.9})

        fake_inference.handler = handler
        await _classifier(fake_inference).analyze_emotions("what a day")
        assert captured["auth"] == "Bearer test-key"
        assert captured["path"].endswith(f"/{EMOTION_MODEL}")

    @pytest.mark.asyncio
    async def test_emotions_keep_delivered_order(self, fake_inference):
        fake_inference.replies[EMOTION_MODEL] = [
            {"label": "fear", "score": 0.6},
            {"label": "joy", "score": 0.3},
        ]
        emotions = await _classifier(fake_inference).analyze_emotions("nervous but excited")
        assert [(e.label, e.score) for e in emotions] == [("fear", 0.6), ("joy", 0.3)]

    @pytest.mark.asyncio
    async def test_empty_sentiment_list_is_neutral(self, fake_inference):
        fake_inference.replies[SENTIMENT_MODEL] = []
        result = await _classifier(fake_inference).analyze_sentiment("...")
        assert result == NEUTRAL_SENTIMENT

    @pytest.mark.asyncio
    async def test_bad_status_returns_none(self, fake_inference):
        classifier = _classifier(fake_inference)
        assert await classifier.analyze_sentiment("hello") is None
        assert await classifier.analyze_emotions("hello") is None

    @pytest.mark.asyncio
    async def test_unparsed_response_returns_none(self, fake_inference):
        fake_inference.replies[EMOTION_MODEL] = {"error": "Model is loading", "estimated_time": 20}
        outcome = await _classifier(fake_inference).classify(ClassifierTask.EMOTION, "hello")
        assert not outcome.ok
        assert outcome.error == "unparsed response"

    @pytest.mark.asyncio
    async def test_timeout_never_raises(self, fake_inference):
        fake_inference.replies[SENTIMENT_MODEL] = httpx.ReadTimeout("slow")
        assert await _classifier(fake_inference).analyze_sentiment("hello") is None

    @pytest.mark.asyncio
    async def test_connection_error_never_raises(self, fake_inference):
        fake_inference.replies[SENTIMENT_MODEL] = httpx.ConnectError("unreachable")
        assert await _classifier(fake_inference).analyze_sentiment("hello") is None

    @pytest.mark.asyncio
    async def test_non_json_body(self, fake_inference):
        fake_inference.replies[SENTIMENT_MODEL] = httpx.Response(200, text="<html>oops</html>")
        response = await fake_inference.client().post(SENTIMENT_MODEL, "hello")
        assert not response.ok
        assert response.error == "invalid json"

    @pytest.mark.asyncio
    async def test_task_accepts_plain_string(self, fake_inference):
        fake_inference.replies[SENTIMENT_MODEL] = {"label": "positive", "score": 0.9}
        outcome = await _classifier(fake_inference).classify("sentiment", "good day")
        assert outcome.ok and outcome.shape == "object"


class TestInferenceClient:
    """Tests for the whole-call time bound."""

    @pytest.mark.asyncio
    async def test_slow_response_times_out(self):
        async def stalled(request):
            await asyncio.sleep(1)
            return httpx.Response(200, json={"label": "joy", "score": 0.9})

        client = InferenceClient(
            base_url="https://inference.test/models",
            api_key="",
            timeout=0.05,
            transport=httpx.MockTransport(stalled),
        )
        response = await client.post(SENTIMENT_MODEL, "hello")
        assert not response.ok
        assert response.error == "timeout"

    @pytest.mark.asyncio
    async def test_no_auth_header_without_key(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json=[])

        client = InferenceClient(
            base_url="https://inference.test/models",
            api_key="",
            timeout=5,
            transport=httpx.MockTransport(handler),
        )
        assert (await client.post(SENTIMENT_MODEL, "hello")).ok
        assert seen["auth"] is None
