"""
Mood analysis orchestration.

Two modes:

* plain      -- sentiment + emotions + suggestion, no user history
* augmented  -- additionally embeds the entry, retrieves the user's most
                similar past entries and mines their emotional patterns to
                enrich the summary and the suggestion

Retrieval is best effort. Any failure while embedding or searching drops the
call back to plain mode; classifier failures fall back to neutral defaults.
Only persistence errors while saving the final result propagate.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from moodjournal.core.config import settings
from moodjournal.schemas.mood import AnalysisResult, EmotionScore, UserPatternSummary
from moodjournal.schemas.similarity import SimilarEntry
from moodjournal.services.classifier_service import NEUTRAL_SENTIMENT, ClassifierClient, SentimentOutput
from moodjournal.services.embedding_service import EmbeddingProvider
from moodjournal.services.inference_client import InferenceClient
from moodjournal.services.journal_service import EntryNotFoundError, JournalService
from moodjournal.services.pattern_service import PatternService, mine_patterns
from moodjournal.services.suggestion_service import SuggestionGenerator
from moodjournal.services.vector_store import VectorStore
from moodjournal.utils.text_cleaning import text_fingerprint

logger = logging.getLogger(__name__)

PRIMARY_EMOTION_THRESHOLD = 0.3
RECURRING_ENTRY_THRESHOLD = 0.7


@dataclass
class RetrievalContext:
    similar_entries: List[SimilarEntry] = field(default_factory=list)
    patterns: UserPatternSummary = field(default_factory=UserPatternSummary)


def _capitalize_words(value: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in value.split(" "))


def top_emotion(emotions: Sequence[EmotionScore]) -> Optional[EmotionScore]:
    best: Optional[EmotionScore] = None
    for emotion in emotions:
        if best is None or emotion.score > best.score:
            best = emotion
    return best


def compose_summary(
    sentiment: str,
    emotions: Sequence[EmotionScore],
    context: Optional[RetrievalContext] = None,
) -> str:
    parts = [f"Overall sentiment: {_capitalize_words(sentiment)}."]

    top = top_emotion(emotions)
    if top is not None and top.score > PRIMARY_EMOTION_THRESHOLD:
        parts.append(
            f"Primary emotion: {_capitalize_words(top.label)} ({top.score * 100:.1f}% confidence)."
        )

    if context is not None:
        common = {c.label.lower() for c in context.patterns.common_emotions}
        for emotion in emotions:
            if emotion.label.lower() in common:
                parts.append(f"This aligns with your typical {emotion.label} patterns.")
                break
        if context.similar_entries and context.similar_entries[0].similarity > RECURRING_ENTRY_THRESHOLD:
            parts.append("This entry is similar to previous experiences you've written about.")

    return " ".join(parts)


class MoodAnalysisService:
    def __init__(
        self,
        *,
        classifier: Optional[ClassifierClient] = None,
        embeddings: Optional[EmbeddingProvider] = None,
        suggestions: Optional[SuggestionGenerator] = None,
        session_factory: Optional[Callable[[], Session]] = None,
        inference: Optional[InferenceClient] = None,
        similar_limit: Optional[int] = None,
    ) -> None:
        shared = inference or InferenceClient()
        self.classifier = classifier or ClassifierClient(shared)
        self.embeddings = embeddings or EmbeddingProvider(shared)
        self.suggestions = suggestions or SuggestionGenerator(shared)
        if session_factory is None:
            from moodjournal.db.database import SessionLocal

            session_factory = SessionLocal
        self.session_factory = session_factory
        self.similar_limit = similar_limit or settings.SIMILAR_ENTRY_LIMIT

    # -------------------------------------------------------------------------
    # Pipeline stages
    # -------------------------------------------------------------------------

    async def _classify(self, text: str) -> Tuple[SentimentOutput, List[EmotionScore]]:
        sentiment, emotions = await asyncio.gather(
            self.classifier.analyze_sentiment(text),
            self.classifier.analyze_emotions(text),
        )
        if sentiment is None:
            logger.warning("[MoodAnalysis] sentiment analysis failed, defaulting to neutral")
            sentiment = NEUTRAL_SENTIMENT
        if emotions is None:
            logger.warning("[MoodAnalysis] emotion analysis failed, defaulting to no emotions")
            emotions = []
        return sentiment, emotions

    async def _entry_vector(self, db: Session, entry_id: int, user_id: int, text: str) -> List[float]:
        """Embed ``text`` unless the stored embedding already matches its fingerprint."""
        fingerprint = text_fingerprint(text)
        stored = VectorStore.get(db, entry_id)
        if (
            stored is not None
            and stored.content_hash == fingerprint
            and isinstance(stored.embedding, list)
            and len(stored.embedding) == self.embeddings.dim
        ):
            logger.debug(f"[MoodAnalysis] reusing stored embedding for entry {entry_id}")
            return stored.embedding

        vector = await self.embeddings.embed(text)
        VectorStore.upsert(db, entry_id=entry_id, user_id=user_id, vector=vector, fingerprint=fingerprint)
        return vector

    async def _retrieve(
        self, db: Session, entry_id: int, user_id: int, text: str
    ) -> Optional[RetrievalContext]:
        try:
            vector = await self._entry_vector(db, entry_id, user_id, text)
            similar = VectorStore.find_similar(
                db, user_id, vector, limit=self.similar_limit, exclude_entry_id=entry_id
            )
        except Exception as e:
            db.rollback()
            logger.warning(f"[MoodAnalysis] retrieval failed for entry {entry_id}, using plain analysis: {e}")
            return None

        try:
            patterns = PatternService.for_user(db, user_id)
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(f"[MoodAnalysis] pattern mining failed for user {user_id}: {e}")
            patterns = mine_patterns([])

        return RetrievalContext(similar_entries=similar, patterns=patterns)

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def analyze(self, text: str) -> AnalysisResult:
        """Plain mode: no retrieval, no user history."""
        sentiment, emotions = await self._classify(text)
        suggestion = await self.suggestions.suggest(text)
        return AnalysisResult(
            overall_sentiment=sentiment.sentiment,
            sentiment_score=sentiment.score,
            emotions=emotions,
            summary=compose_summary(sentiment.sentiment, emotions),
            suggestion=suggestion,
            analyzed_at=datetime.utcnow(),
        )

    async def analyze_with_context(
        self, db: Session, *, entry_id: int, user_id: int, text: str
    ) -> AnalysisResult:
        """Augmented mode; silently degrades to plain mode if retrieval fails."""
        (sentiment, emotions), context = await asyncio.gather(
            self._classify(text),
            self._retrieve(db, entry_id, user_id, text),
        )
        if context is None:
            suggestion = await self.suggestions.suggest(text)
        else:
            suggestion = await self.suggestions.suggest(text, context.similar_entries, context.patterns)

        return AnalysisResult(
            overall_sentiment=sentiment.sentiment,
            sentiment_score=sentiment.score,
            emotions=emotions,
            summary=compose_summary(sentiment.sentiment, emotions, context),
            suggestion=suggestion,
            analyzed_at=datetime.utcnow(),
        )

    async def analyze_entry(self, entry_id: int, *, use_context: bool = True) -> Optional[AnalysisResult]:
        """Analyze a stored entry and replace its analysis record.

        Returns ``None`` when the entry no longer exists (deleted while the
        analysis was queued or running); persistence errors propagate.
        """
        db = self.session_factory()
        try:
            entry = JournalService.get_entry(db, entry_id)
            if entry is None:
                logger.info(f"[MoodAnalysis] entry {entry_id} no longer exists, skipping")
                return None
            text, user_id = entry.analysis_text, entry.user_id

            if use_context:
                result = await self.analyze_with_context(db, entry_id=entry_id, user_id=user_id, text=text)
            else:
                result = await self.analyze(text)

            try:
                JournalService.save_analysis(db, entry_id, result)
            except EntryNotFoundError:
                db.rollback()
                logger.info(f"[MoodAnalysis] entry {entry_id} was deleted before its analysis was saved")
                return None
            except IntegrityError:
                db.rollback()
                if JournalService.get_entry(db, entry_id) is None:
                    logger.info(f"[MoodAnalysis] entry {entry_id} was deleted before its analysis was saved")
                    return None
                raise
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"[MoodAnalysis] failed to save analysis for entry {entry_id}: {e}")
                raise

            logger.info(
                f"[MoodAnalysis] {'augmented' if use_context else 'plain'} analysis completed for entry {entry_id}"
            )
            return result
        finally:
            db.close()
