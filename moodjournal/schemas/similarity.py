from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from moodjournal.schemas.mood import AnalysisResult


class SimilarEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    entry_id: int
    user_id: int
    title: str = ""
    content: str = ""
    created_at: Optional[datetime] = None
    similarity: float = 0.0
    mood_analysis: Optional[AnalysisResult] = None
