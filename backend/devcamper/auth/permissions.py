"""
DevCamper Backend — Ownership Rules
=====================================

What:  The owner-or-admin predicate shared by every mutating operation on
       bootcamps and courses, plus the helper that raises 401 when it fails.
"""

import uuid
from typing import Optional

from devcamper.exceptions import NotAuthorizedError
from devcamper.models.user import Role, User


def is_owner_or_admin(
    owner_id: Optional[uuid.UUID],
    requester_id: uuid.UUID,
    requester_role: str,
) -> bool:
    """True when the requester owns the resource or holds the admin role."""
    if requester_role == Role.ADMIN.value:
        return True
    return owner_id is not None and str(owner_id) == str(requester_id)


def ensure_owner_or_admin(owner_id: Optional[uuid.UUID], user: User, action: str) -> None:
    """
    Raise NotAuthorizedError unless `user` may perform `action` on a resource
    owned by `owner_id`.

    `action` completes the sentence "not authorized to ...", e.g.
    "update this bootcamp".
    """
    if not is_owner_or_admin(owner_id, user.id, user.role):
        raise NotAuthorizedError(
            message=f"User {user.id} is not authorized to {action}",
            context={"user_id": str(user.id), "owner_id": str(owner_id)},
        )
