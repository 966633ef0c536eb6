from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class UserProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    name: Optional[str] = None
    email: Optional[str] = None
    created_at: Optional[datetime] = None


class UserProfileUpdate(BaseModel):
    # Password fields sent by older clients are ignored; only the name is editable.
    name: Optional[str] = None
