from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from wifmart.core.config import settings


def create_access_token(data: dict, expires_minutes: Optional[int] = None) -> str:
    """
    Create a signed access token.
    Tokens are normally issued by the auth service; this is used by tooling and tests.
    """
    to_encode = data.copy()
    minutes = expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    to_encode["exp"] = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[str]:
    """
    Decode an access token.
    Returns the subject (the user_id) if valid, else None.
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.PyJWTError:
        return None
    subject = payload.get("sub")
    return str(subject) if subject else None
