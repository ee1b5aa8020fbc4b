"""
DevCamper Backend — Auth Dependencies
=======================================

What:  FastAPI dependencies guarding protected routes.

    protect           resolves the requesting User from a bearer token
                      (Authorization header) or the `token` cookie → 401
    authorize(*roles) requires the resolved user's role to be one of `roles` → 403

Usage:
    @router.post("/", dependencies=[Depends(authorize(Role.PUBLISHER, Role.ADMIN))])
    async def create(user: User = Depends(protect)): ...
"""

import logging
from typing import Callable, Optional, Union

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.auth.tokens import decode_access_token
from devcamper.database import get_db_session
from devcamper.exceptions import ForbiddenError, NotAuthorizedError
from devcamper.models.user import Role, User

logger = logging.getLogger(__name__)

# auto_error=False: a missing header falls through to the cookie check
bearer_scheme = HTTPBearer(auto_error=False)


def _extract_token(
    request: Request, credentials: Optional[HTTPAuthorizationCredentials]
) -> Optional[str]:
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get("token") or None


async def protect(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """Return the authenticated user or raise NotAuthorizedError (401)."""
    token = _extract_token(request, credentials)
    if not token:
        raise NotAuthorizedError()

    user_id = decode_access_token(token)

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        logger.info("Token subject %s no longer exists", user_id)
        raise NotAuthorizedError()

    request.state.user_id = str(user.id)
    return user


def authorize(*roles: Union[Role, str]) -> Callable:
    """Build a dependency that admits only users holding one of `roles`."""
    allowed = {r.value if isinstance(r, Role) else r for r in roles}

    async def role_guard(user: User = Depends(protect)) -> User:
        if user.role not in allowed:
            raise ForbiddenError(role=user.role)
        return user

    return role_guard
