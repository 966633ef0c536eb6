from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from moodjournal.db.database import get_db
from moodjournal.models.user import User
from moodjournal.services.analysis_tasks import AnalysisTaskRunner
from moodjournal.services.jwt import decode_token
from moodjournal.services.user_service import UserService

bearer_scheme = HTTPBearer()


def _extract_user_id(token: str) -> int:
    try:
        payload = decode_token(token)
        sub = payload.get("sub")
        if not sub:
            raise ValueError("Invalid token payload")
        return int(sub)
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        ) from exc


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    user = UserService.get_user(db, _extract_user_id(credentials.credentials))
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")
    return user


@lru_cache(maxsize=1)
def get_analysis_runner() -> AnalysisTaskRunner:
    return AnalysisTaskRunner()
