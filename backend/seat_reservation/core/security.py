"""
Holder identity from bearer tokens.

Tokens are issued by the auth service; this service only verifies them and
reads the holder id from the `sub` claim.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from seat_reservation.core.config import get_settings
from seat_reservation.domain.errors import MissingHolderError

settings = get_settings()

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed JWT access token."""
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "iat": now})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.PyJWTError:
        raise MissingHolderError("Invalid or expired token")


async def get_current_holder_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """FastAPI dependency: the holder id carried by the bearer token."""
    if credentials is None:
        raise MissingHolderError("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    holder_id = payload.get("sub")
    if not holder_id:
        raise MissingHolderError("Token carries no holder identity")
    return str(holder_id)
