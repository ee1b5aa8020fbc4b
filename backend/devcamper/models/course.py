"""
DevCamper Backend — Course SQLAlchemy Model
=============================================

What:  ORM model for the `courses` table. Each course belongs to exactly one
       bootcamp and is attributed to the user who created it.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from devcamper.database import Base

SKILL_LEVELS = ("beginner", "intermediate", "advanced")


class Course(Base):
    __tablename__ = "courses"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    weeks: Mapped[int] = mapped_column(Integer, nullable=False)
    tuition: Mapped[int] = mapped_column(Integer, nullable=False)
    minimum_skill: Mapped[str] = mapped_column(String(20), nullable=False)
    scholarship_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # Courses are removed explicitly by the bootcamp service before their
    # bootcamp; ON DELETE CASCADE covers direct SQL deletes.
    bootcamp_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("bootcamps.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Course(id={self.id}, title='{self.title}', bootcamp_id={self.bootcamp_id})>"
