from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from moodjournal.api.deps import get_analysis_runner, get_current_user
from moodjournal.core.config import settings
from moodjournal.db.database import get_db
from moodjournal.models.journal import JournalEntry
from moodjournal.models.user import User
from moodjournal.schemas.journal import JournalEntry as JournalEntrySchema
from moodjournal.schemas.journal import JournalEntryCreate, JournalEntryUpdate
from moodjournal.schemas.mood import MoodAnalysisResponse, UserPatternSummary
from moodjournal.services.analysis_tasks import AnalysisTaskRunner
from moodjournal.services.journal_service import JournalService
from moodjournal.services.pattern_service import PatternService

router = APIRouter()


def _owned_entry(db: Session, entry_id: int, user: User) -> JournalEntry:
    entry = JournalService.get_entry(db, entry_id)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")
    if entry.user_id != user.user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized")
    return entry


@router.get("/entries", response_model=List[JournalEntrySchema])
def list_entries(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return JournalService.list_entries(db, user_id=current_user.user_id, skip=skip, limit=limit)


@router.post("/entries", response_model=JournalEntrySchema, status_code=status.HTTP_201_CREATED)
async def create_entry(
    entry_in: JournalEntryCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    runner: AnalysisTaskRunner = Depends(get_analysis_runner),
):
    created = JournalService.create_entry(db, current_user.user_id, entry_in)
    # Analysis lands later; clients re-fetch the entry or its /mood resource
    runner.submit(created.entry_id, use_context=settings.RAG_ANALYSIS_ENABLED)
    return JournalService.get_entry(db, created.entry_id)


@router.put("/entries/{entry_id}", response_model=JournalEntrySchema)
async def update_entry(
    entry_id: int,
    entry_in: JournalEntryUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    runner: AnalysisTaskRunner = Depends(get_analysis_runner),
):
    entry = _owned_entry(db, entry_id, current_user)
    updated = JournalService.update_entry(db, entry, entry_in)
    runner.submit(updated.entry_id, use_context=settings.RAG_ANALYSIS_ENABLED)
    return JournalService.get_entry(db, updated.entry_id)


@router.delete("/entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_entry(
    entry_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    entry = _owned_entry(db, entry_id, current_user)
    JournalService.delete_entry(db, entry)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/entries/{entry_id}/mood", response_model=MoodAnalysisResponse)
def get_entry_mood(
    entry_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _owned_entry(db, entry_id, current_user)
    analysis = JournalService.get_analysis(db, entry_id)
    if analysis is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Mood analysis not found")
    return analysis


@router.get("/patterns", response_model=UserPatternSummary)
def get_patterns(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return PatternService.for_user(db, current_user.user_id)
