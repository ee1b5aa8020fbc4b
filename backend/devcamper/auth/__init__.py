"""
DevCamper Backend — Authentication & Authorization
====================================================

    from devcamper.auth import protect, authorize, Role
"""

from devcamper.auth.dependencies import authorize, protect
from devcamper.auth.permissions import ensure_owner_or_admin, is_owner_or_admin
from devcamper.models.user import Role, User

__all__ = [
    "authorize",
    "protect",
    "ensure_owner_or_admin",
    "is_owner_or_admin",
    "Role",
    "User",
]
