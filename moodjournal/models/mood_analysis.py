from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, List

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from moodjournal.db.session import Base

if TYPE_CHECKING:  # pragma: no cover
    from .journal import JournalEntry


class MoodAnalysis(Base):
    __tablename__ = "mood_analysis"

    mood_analysis_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entry_id: Mapped[int] = mapped_column(
        ForeignKey("journal_entry.entry_id", ondelete="CASCADE"), nullable=False, unique=True
    )
    overall_sentiment: Mapped[str] = mapped_column(String(50), nullable=False)
    sentiment_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    # [{"label": str, "score": float}, ...] in classifier order
    emotions: Mapped[List[Any]] = mapped_column(JSON, nullable=False, default=list)
    summary: Mapped[str] = mapped_column(Text, nullable=False, default="")
    suggestion: Mapped[str] = mapped_column(Text, nullable=False, default="")
    analyzed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    entry: Mapped["JournalEntry"] = relationship("JournalEntry", back_populates="mood_analysis")
