from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from moodjournal.schemas.mood import AnalysisResult


class JournalEntryBase(BaseModel):
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)


class JournalEntryCreate(JournalEntryBase):
    entry_date: Optional[str] = None


class JournalEntryUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    content: Optional[str] = Field(default=None, min_length=1)


class JournalEntry(JournalEntryBase):
    model_config = ConfigDict(from_attributes=True)

    entry_id: int
    user_id: int
    entry_date: Optional[str] = None
    created_at: datetime
    mood_analysis: Optional[AnalysisResult] = None
