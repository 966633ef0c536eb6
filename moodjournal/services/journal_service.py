from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, joinedload

from moodjournal.models.entry_embedding import EntryEmbedding  # noqa: F401  mapper registration
from moodjournal.models.journal import JournalEntry
from moodjournal.models.mood_analysis import MoodAnalysis
from moodjournal.models.user import User  # noqa: F401  mapper registration
from moodjournal.schemas.journal import JournalEntryCreate, JournalEntryUpdate
from moodjournal.schemas.mood import AnalysisResult


def _today() -> str:
    # M/D/YYYY, the format the journal client renders
    now = datetime.now()
    return f"{now.month}/{now.day}/{now.year}"


class EntryNotFoundError(LookupError):
    def __init__(self, entry_id: int) -> None:
        super().__init__(f"Journal entry {entry_id} not found")
        self.entry_id = entry_id


class JournalService:
    @staticmethod
    def list_entries(
        db: Session,
        *,
        user_id: int,
        skip: int = 0,
        limit: int = 100,
    ) -> List[JournalEntry]:
        stmt = (
            select(JournalEntry)
            .where(JournalEntry.user_id == user_id)
            .options(joinedload(JournalEntry.mood_analysis))
            .order_by(JournalEntry.created_at.desc(), JournalEntry.entry_id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(db.scalars(stmt).unique())

    @staticmethod
    def get_entry(db: Session, entry_id: int) -> Optional[JournalEntry]:
        stmt = (
            select(JournalEntry)
            .where(JournalEntry.entry_id == entry_id)
            .options(joinedload(JournalEntry.mood_analysis))
        )
        return db.scalars(stmt).first()

    @staticmethod
    def create_entry(
        db: Session, user_id: int, entry_in: JournalEntryCreate, *, commit: bool = True
    ) -> JournalEntry:
        entry = JournalEntry(
            user_id=user_id,
            title=entry_in.title,
            content=entry_in.content,
            entry_date=entry_in.entry_date or _today(),
        )
        db.add(entry)
        if commit:
            db.commit()
            db.refresh(entry)
        else:
            db.flush()
        return entry

    @staticmethod
    def update_entry(
        db: Session, entry: JournalEntry, entry_in: JournalEntryUpdate, *, commit: bool = True
    ) -> JournalEntry:
        for field, value in entry_in.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(entry, field, value)
        db.add(entry)
        if commit:
            db.commit()
            db.refresh(entry)
        else:
            db.flush()
        return entry

    @staticmethod
    def delete_entry(db: Session, entry: JournalEntry, *, commit: bool = True) -> None:
        db.delete(entry)
        if commit:
            db.commit()
        else:
            db.flush()

    # -------------------------------------------------------------------------
    # Mood analysis records
    # -------------------------------------------------------------------------

    @staticmethod
    def get_analysis(db: Session, entry_id: int) -> Optional[MoodAnalysis]:
        stmt = select(MoodAnalysis).where(MoodAnalysis.entry_id == entry_id)
        return db.scalars(stmt).first()

    @staticmethod
    def save_analysis(
        db: Session, entry_id: int, result: AnalysisResult, *, commit: bool = True
    ) -> MoodAnalysis:
        """Replace the entry's analysis wholesale; one row per entry before and after."""
        if db.get(JournalEntry, entry_id) is None:
            raise EntryNotFoundError(entry_id)

        record = JournalService.get_analysis(db, entry_id)
        if record is None:
            record = MoodAnalysis(entry_id=entry_id)
            db.add(record)
        record.overall_sentiment = result.overall_sentiment
        record.sentiment_score = result.sentiment_score
        record.emotions = [e.model_dump() for e in result.emotions]
        record.summary = result.summary
        record.suggestion = result.suggestion
        record.analyzed_at = result.analyzed_at
        if commit:
            db.commit()
            db.refresh(record)
        else:
            db.flush()
        return record

    @staticmethod
    def delete_analysis(db: Session, entry_id: int, *, commit: bool = True) -> int:
        deleted = db.execute(delete(MoodAnalysis).where(MoodAnalysis.entry_id == entry_id)).rowcount
        if commit:
            db.commit()
        else:
            db.flush()
        return deleted or 0

    @staticmethod
    def recent_analyses(db: Session, user_id: int, *, limit: int = 50) -> List[AnalysisResult]:
        """Most recent analyses for ``user_id``, newest first."""
        stmt = (
            select(MoodAnalysis)
            .join(JournalEntry, MoodAnalysis.entry_id == JournalEntry.entry_id)
            .where(JournalEntry.user_id == user_id)
            .order_by(MoodAnalysis.analyzed_at.desc(), MoodAnalysis.mood_analysis_id.desc())
            .limit(limit)
        )
        return [AnalysisResult.model_validate(row) for row in db.scalars(stmt)]
