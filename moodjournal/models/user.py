from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from moodjournal.db.session import Base

if TYPE_CHECKING:  # pragma: no cover
    from .journal import JournalEntry


class User(Base):
    __tablename__ = "user"

    user_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[Optional[str]] = mapped_column(String(100), unique=True)
    name: Mapped[Optional[str]] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())

    entries: Mapped[List["JournalEntry"]] = relationship(
        "JournalEntry", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
