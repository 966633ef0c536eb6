from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from moodjournal.models.user import User


class UserService:
    @staticmethod
    def get_user(db: Session, user_id: int) -> Optional[User]:
        return db.get(User, user_id)

    @staticmethod
    def update_name(db: Session, user: User, name: str, *, commit: bool = True) -> User:
        user.name = name.strip()
        db.add(user)
        if commit:
            db.commit()
            db.refresh(user)
        else:
            db.flush()
        return user
