from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from moodjournal.db.session import Base

if TYPE_CHECKING:  # pragma: no cover
    from .entry_embedding import EntryEmbedding
    from .mood_analysis import MoodAnalysis
    from .user import User


class JournalEntry(Base):
    __tablename__ = "journal_entry"

    entry_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("user.user_id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    entry_date: Mapped[Optional[str]] = mapped_column(String(20))
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, onupdate=datetime.utcnow)

    user: Mapped["User"] = relationship("User", back_populates="entries")
    mood_analysis: Mapped[Optional["MoodAnalysis"]] = relationship(
        "MoodAnalysis",
        back_populates="entry",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    embedding: Mapped[Optional["EntryEmbedding"]] = relationship(
        "EntryEmbedding",
        back_populates="entry",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def analysis_text(self) -> str:
        return f"{self.title or ''} {self.content or ''}".strip()
