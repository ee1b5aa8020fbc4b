"""
DevCamper Backend — JWT Helpers
=================================

What:  Signs and verifies the HS256 access tokens carried by API clients.
How:   python-jose; the `sub` claim holds the user id.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt

from devcamper.config import settings
from devcamper.exceptions import NotAuthorizedError

logger = logging.getLogger(__name__)


def create_access_token(user_id: uuid.UUID, expires_minutes: Optional[int] = None) -> str:
    """Issue a signed token for `user_id`, valid for JWT_EXPIRE_MINUTES by default."""
    now = datetime.now(timezone.utc)
    minutes = expires_minutes if expires_minutes is not None else settings.jwt_expire_minutes
    payload = {
        "sub": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=minutes)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> uuid.UUID:
    """
    Verify `token` and return the user id it was issued for.

    Raises:
        NotAuthorizedError: expired, badly signed, or missing/invalid `sub`.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        logger.info("Rejected expired token")
        raise NotAuthorizedError()
    except JWTError as e:
        logger.info("Rejected invalid token: %s", e)
        raise NotAuthorizedError()

    subject = payload.get("sub")
    if not subject:
        raise NotAuthorizedError()
    try:
        return uuid.UUID(str(subject))
    except ValueError:
        logger.info("Rejected token with malformed subject")
        raise NotAuthorizedError()
