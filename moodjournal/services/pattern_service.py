from __future__ import annotations

from collections import Counter
from typing import Dict, FrozenSet, List, Sequence, Tuple

from sqlalchemy.orm import Session

from moodjournal.core.config import settings
from moodjournal.schemas.mood import AnalysisResult, EmotionScore, UserPatternSummary
from moodjournal.services.journal_service import JournalService

# Only emotions scored above this count toward a user's history.
EMOTION_SIGNIFICANCE_THRESHOLD = 0.3
COMMON_EMOTION_LIMIT = 5

# Emotion family -> coping strategy, checked in this order for each common emotion.
COPING_STRATEGIES: Tuple[Tuple[FrozenSet[str], str], ...] = (
    (frozenset({"anxiety", "fear"}), "Practice deep breathing exercises when feeling anxious"),
    (frozenset({"sadness"}), "Engage in activities that bring you joy, like listening to music"),
    (frozenset({"anger"}), "Try physical exercise or journaling to release tension"),
    (frozenset({"joy", "happiness"}), "Continue doing activities that bring you happiness"),
)
GENERIC_COPING_STRATEGY = "Practice mindfulness and self-reflection through journaling"


def coping_strategies_for(common_emotions: Sequence[EmotionScore]) -> List[str]:
    strategies: List[str] = []
    for emotion in common_emotions:
        label = emotion.label.lower()
        for family, strategy in COPING_STRATEGIES:
            if label in family and strategy not in strategies:
                strategies.append(strategy)
                break
    if not strategies:
        strategies.append(GENERIC_COPING_STRATEGY)
    return strategies


def mine_patterns(analyses: Sequence[AnalysisResult]) -> UserPatternSummary:
    """Aggregate a user's recent analyses (most recent first) into a pattern summary."""
    sentiment_counts: Dict[str, int] = Counter()
    emotion_freq: Dict[str, int] = Counter()
    total_score = 0.0

    for analysis in analyses:
        sentiment_counts[analysis.overall_sentiment] += 1
        total_score += analysis.sentiment_score
        for emotion in analysis.emotions:
            if emotion.score > EMOTION_SIGNIFICANCE_THRESHOLD:
                emotion_freq[emotion.label] += 1

    total = len(analyses)

    # sorted() is stable: equal counts keep first-encountered order
    ranked = sorted(emotion_freq.items(), key=lambda kv: kv[1], reverse=True)
    common = [
        EmotionScore(label=label, score=count / total)
        for label, count in ranked[:COMMON_EMOTION_LIMIT]
    ]

    return UserPatternSummary(
        common_emotions=common,
        coping_strategies=coping_strategies_for(common),
        sentiment_counts=dict(sentiment_counts),
        total_analyzed=total,
        average_sentiment_score=total_score / total if total else 0.0,
    )


class PatternService:
    @staticmethod
    def for_user(db: Session, user_id: int, *, limit: int | None = None) -> UserPatternSummary:
        """Recomputed on every call from the user's latest analyses; never cached."""
        analyses = JournalService.recent_analyses(
            db, user_id, limit=limit or settings.PATTERN_HISTORY_LIMIT
        )
        return mine_patterns(analyses)
