"""
Per-entry embedding storage and per-user similarity search.

Vectors live in a JSON column and the search is a flat scan over one user's
rows; no index structure is kept.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from moodjournal.models.entry_embedding import EntryEmbedding
from moodjournal.models.journal import JournalEntry
from moodjournal.models.mood_analysis import MoodAnalysis
from moodjournal.schemas.mood import AnalysisResult
from moodjournal.schemas.similarity import SimilarEntry
from moodjournal.services.journal_service import EntryNotFoundError
from moodjournal.services.similarity_service import rank_top_k

logger = logging.getLogger(__name__)


@dataclass
class StoredEmbedding:
    entry_id: int
    vector: List[float]
    entry: JournalEntry
    analysis: Optional[MoodAnalysis] = None


class VectorStore:
    @staticmethod
    def get(db: Session, entry_id: int) -> Optional[EntryEmbedding]:
        return db.scalars(select(EntryEmbedding).where(EntryEmbedding.entry_id == entry_id)).first()

    @staticmethod
    def upsert(
        db: Session,
        *,
        entry_id: int,
        user_id: int,
        vector: Sequence[float],
        fingerprint: str,
        commit: bool = True,
    ) -> EntryEmbedding:
        """Insert the entry's embedding, or overwrite vector and fingerprint in place."""
        if db.get(JournalEntry, entry_id) is None:
            raise EntryNotFoundError(entry_id)

        record = VectorStore.get(db, entry_id)
        if record is None:
            record = EntryEmbedding(
                entry_id=entry_id,
                user_id=user_id,
                embedding=list(vector),
                content_hash=fingerprint,
            )
            db.add(record)
        else:
            record.embedding = list(vector)
            record.content_hash = fingerprint
        if commit:
            db.commit()
            db.refresh(record)
        else:
            db.flush()
        return record

    @staticmethod
    def query(
        db: Session, user_id: int, *, exclude_entry_id: Optional[int] = None
    ) -> Iterator[StoredEmbedding]:
        """Stream the user's stored embeddings, newest entry first."""
        stmt = (
            select(EntryEmbedding, JournalEntry, MoodAnalysis)
            .join(JournalEntry, EntryEmbedding.entry_id == JournalEntry.entry_id)
            .outerjoin(MoodAnalysis, MoodAnalysis.entry_id == JournalEntry.entry_id)
            .where(EntryEmbedding.user_id == user_id)
            .order_by(JournalEntry.created_at.desc(), JournalEntry.entry_id.desc())
        )
        if exclude_entry_id is not None:
            stmt = stmt.where(EntryEmbedding.entry_id != exclude_entry_id)
        for record, entry, analysis in db.execute(stmt):
            if not isinstance(record.embedding, list):
                logger.warning(f"[VectorStore] skipping malformed embedding for entry {record.entry_id}")
                continue
            yield StoredEmbedding(
                entry_id=record.entry_id,
                vector=record.embedding,
                entry=entry,
                analysis=analysis,
            )

    @staticmethod
    def find_similar(
        db: Session,
        user_id: int,
        query_vector: Sequence[float],
        *,
        limit: int = 3,
        exclude_entry_id: Optional[int] = None,
    ) -> List[SimilarEntry]:
        rows = VectorStore.query(db, user_id, exclude_entry_id=exclude_entry_id)
        ranked = rank_top_k(query_vector, ((row, row.vector) for row in rows), limit)
        return [
            SimilarEntry(
                entry_id=row.entry_id,
                user_id=row.entry.user_id,
                title=row.entry.title,
                content=row.entry.content,
                created_at=row.entry.created_at,
                similarity=similarity,
                mood_analysis=AnalysisResult.model_validate(row.analysis) if row.analysis else None,
            )
            for row, similarity in ranked
        ]
