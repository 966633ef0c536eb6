from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from moodjournal.api.deps import get_current_user
from moodjournal.db.database import get_db
from moodjournal.models.user import User
from moodjournal.schemas.user import UserProfile, UserProfileUpdate
from moodjournal.services.user_service import UserService

router = APIRouter()


@router.get("/user/profile", response_model=UserProfile)
def get_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/user/profile", status_code=status.HTTP_204_NO_CONTENT)
def update_profile(
    profile_in: UserProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not profile_in.name or not profile_in.name.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid changes provided")
    UserService.update_name(db, current_user, profile_in.name)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
