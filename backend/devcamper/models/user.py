"""
DevCamper Backend — User SQLAlchemy Model
===========================================

What:  ORM model for the `users` table.
Who:   Loaded by the `protect` auth dependency on every authenticated
       request; referenced by bootcamps and courses as their owner.

Roles:
    user       read-only access to protected routes
    publisher  may publish one bootcamp and manage its courses
    admin      may publish any number of bootcamps and manage everything
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from devcamper.database import Base


class Role(str, enum.Enum):
    USER = "user"
    PUBLISHER = "publisher"
    ADMIN = "admin"


class User(Base):
    """An account that can own bootcamps and courses."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    # Stored as the plain role string so the column stays portable across dialects
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=Role.USER.value,
        comment="user, publisher or admin",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
