from __future__ import annotations

from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


class EmotionScore(BaseModel):
    label: str
    score: float


class AnalysisResult(BaseModel):
    """Structured affect data attached 1:1 to a journal entry."""

    model_config = ConfigDict(from_attributes=True)

    overall_sentiment: str
    sentiment_score: float = 0.0
    emotions: List[EmotionScore] = Field(default_factory=list)
    summary: str = ""
    suggestion: str = ""
    analyzed_at: datetime = Field(default_factory=datetime.utcnow)


class MoodAnalysisResponse(AnalysisResult):
    entry_id: int


class UserPatternSummary(BaseModel):
    common_emotions: List[EmotionScore] = Field(default_factory=list)
    coping_strategies: List[str] = Field(default_factory=list)
    sentiment_counts: Dict[str, int] = Field(default_factory=dict)
    total_analyzed: int = 0
    average_sentiment_score: float = 0.0
