"""
Sentiment / emotion classification over the hosted inference service.

The provider is not consistent about response shapes, even for a single
input. Three shapes are accepted and tried in this order:

    1. a single object        {"label": "...", "score": 0.9}
    2. a flat list            [{"label": ..., "score": ...}, ...]
    3. a list of lists        [[{"label": ..., "score": ...}, ...]]

Each parser returns a ``ParseOutcome``; an unparsed outcome hands over to the
next parser. Exceptions are not used for this branching.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from numbers import Real
from typing import Any, Callable, List, Optional, Sequence, Tuple

from moodjournal.core.config import settings
from moodjournal.schemas.mood import EmotionScore
from moodjournal.services.inference_client import InferenceClient

logger = logging.getLogger(__name__)


class ClassifierTask(str, Enum):
    SENTIMENT = "sentiment"
    EMOTION = "emotion"


@dataclass(frozen=True)
class LabelScore:
    label: str
    score: float


@dataclass
class ParseOutcome:
    parsed: bool
    shape: Optional[str] = None
    items: List[LabelScore] = field(default_factory=list)


UNPARSED = ParseOutcome(parsed=False)


@dataclass
class ClassificationOutcome:
    ok: bool
    items: List[LabelScore] = field(default_factory=list)
    shape: Optional[str] = None
    error: Optional[str] = None


@dataclass
class SentimentOutput:
    sentiment: str
    score: float


NEUTRAL_SENTIMENT = SentimentOutput(sentiment="neutral", score=0.0)

_NEGATIVE_LABELS = {"negative", "very negative"}
_POSITIVE_LABELS = {"positive", "very positive"}


# =============================================================================
# RESPONSE PARSERS
# =============================================================================

def _label_score(obj: Any) -> Optional[LabelScore]:
    if not isinstance(obj, dict) or not isinstance(obj.get("label"), str):
        return None
    score = obj.get("score", 0.0)
    if isinstance(score, bool) or not isinstance(score, Real):
        return None
    return LabelScore(label=obj["label"], score=float(score))


def _label_scores(values: Sequence[Any]) -> Optional[List[LabelScore]]:
    items: List[LabelScore] = []
    for value in values:
        item = _label_score(value)
        if item is None:
            return None
        items.append(item)
    return items


def parse_single_object(payload: Any) -> ParseOutcome:
    item = _label_score(payload)
    if item is None:
        return UNPARSED
    return ParseOutcome(parsed=True, shape="object", items=[item])


def parse_flat_list(payload: Any) -> ParseOutcome:
    if not isinstance(payload, list):
        return UNPARSED
    items = _label_scores(payload)
    if items is None:
        return UNPARSED
    return ParseOutcome(parsed=True, shape="list", items=items)


def parse_nested_list(payload: Any) -> ParseOutcome:
    if not isinstance(payload, list) or not payload:
        return UNPARSED
    batches: List[List[LabelScore]] = []
    for inner in payload:
        if not isinstance(inner, list):
            return UNPARSED
        items = _label_scores(inner)
        if items is None:
            return UNPARSED
        batches.append(items)
    return ParseOutcome(parsed=True, shape="nested", items=batches[0])


RESPONSE_PARSERS: Tuple[Callable[[Any], ParseOutcome], ...] = (
    parse_single_object,
    parse_flat_list,
    parse_nested_list,
)


def parse_label_scores(payload: Any) -> ParseOutcome:
    for parser in RESPONSE_PARSERS:
        outcome = parser(payload)
        if outcome.parsed:
            return outcome
    return UNPARSED


# =============================================================================
# LABEL NORMALIZATION
# =============================================================================

def normalize_sentiment_label(label: str, score: float) -> SentimentOutput:
    """Map provider labels onto negative/neutral/positive with a signed score."""
    key = (label or "").strip().lower()
    if key in _NEGATIVE_LABELS:
        return SentimentOutput("negative", -score)
    if key in _POSITIVE_LABELS:
        return SentimentOutput("positive", score)
    if key == "neutral":
        return SentimentOutput("neutral", 0.0)
    return SentimentOutput(label, score)


def select_winner(items: Sequence[LabelScore]) -> Optional[LabelScore]:
    """Highest score wins; on exact ties the first item delivered is kept."""
    best: Optional[LabelScore] = None
    for item in items:
        if best is None or item.score > best.score:
            best = item
    return best


# =============================================================================
# CLIENT
# =============================================================================

class ClassifierClient:
    def __init__(
        self,
        inference: Optional[InferenceClient] = None,
        *,
        sentiment_model: Optional[str] = None,
        emotion_model: Optional[str] = None,
    ) -> None:
        self.inference = inference or InferenceClient()
        self.models = {
            ClassifierTask.SENTIMENT: sentiment_model or settings.SENTIMENT_MODEL,
            ClassifierTask.EMOTION: emotion_model or settings.EMOTION_MODEL,
        }

    async def classify(self, task: ClassifierTask, text: str) -> ClassificationOutcome:
        task = ClassifierTask(task)
        model = self.models[task]
        response = await self.inference.post(model, text)
        if not response.ok:
            return ClassificationOutcome(ok=False, error=response.error)

        outcome = parse_label_scores(response.payload)
        if not outcome.parsed:
            logger.warning(
                f"[Classifier] {task.value} response matched no known shape: {str(response.payload)[:200]}"
            )
            return ClassificationOutcome(ok=False, error="unparsed response")

        logger.debug(f"[Classifier] {task.value} parsed as {outcome.shape} ({len(outcome.items)} items)")
        return ClassificationOutcome(ok=True, items=outcome.items, shape=outcome.shape)

    async def analyze_sentiment(self, text: str) -> Optional[SentimentOutput]:
        """Signed polarity for ``text``; ``None`` when the task failed."""
        outcome = await self.classify(ClassifierTask.SENTIMENT, text)
        if not outcome.ok:
            return None
        winner = select_winner(outcome.items)
        if winner is None:
            return NEUTRAL_SENTIMENT
        return normalize_sentiment_label(winner.label, winner.score)

    async def analyze_emotions(self, text: str) -> Optional[List[EmotionScore]]:
        """Emotion scores in delivered order; ``None`` when the task failed."""
        outcome = await self.classify(ClassifierTask.EMOTION, text)
        if not outcome.ok:
            return None
        return [EmotionScore(label=item.label, score=item.score) for item in outcome.items]
