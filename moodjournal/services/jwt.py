from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from moodjournal.core.config import settings

DEFAULT_EXPIRE = timedelta(hours=24)

# No login flow here; create_access_token mints tokens for local and dev clients.


def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(subject),
        "exp": int((now + (expires_delta or DEFAULT_EXPIRE)).timestamp()),
        "iat": int(now.timestamp()),
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
