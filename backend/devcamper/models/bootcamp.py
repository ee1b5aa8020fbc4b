"""
DevCamper Backend — Bootcamp SQLAlchemy Model
===============================================

What:  ORM model for the `bootcamps` table.
How:   The geocoded location is flattened into columns (latitude, longitude
       and address parts); the API re-nests it as a GeoJSON-style point.

Table notes:
    - name is unique; slug is derived from it on create/update
    - publisher_slot carries the owner's id for non-admin owners and NULL
      for admin owners. The UNIQUE constraint on it means a non-admin can
      hold at most one bootcamp, while NULLs never collide.
    - latitude index backs the band pre-filter used by radius search
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from devcamper.database import Base

CAREERS = (
    "Web Development",
    "Mobile Development",
    "UI/UX",
    "Data Science",
    "Business",
    "Other",
)

DEFAULT_PHOTO = "no-photo.jpg"


class Bootcamp(Base):
    """A coding-bootcamp listing owned by exactly one user."""

    __tablename__ = "bootcamps"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    slug: Mapped[str] = mapped_column(String(60), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    website: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # ── Location ──────────────────────────────────────────────────────────
    address: Mapped[str] = mapped_column(Text, nullable=False)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    formatted_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    street: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    zipcode: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    careers: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    # average_rating is fed by reviews; average_cost is recomputed from courses
    average_rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    average_cost: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    photo: Mapped[str] = mapped_column(String(255), nullable=False, default=DEFAULT_PHOTO)

    housing: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    job_assistance: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    job_guarantee: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    accept_gi: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # ── Ownership ─────────────────────────────────────────────────────────
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )
    publisher_slot: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        nullable=True,
        comment="Owner id for non-admin owners, NULL for admins",
    )

    __table_args__ = (
        UniqueConstraint("publisher_slot", name="uq_bootcamps_publisher_slot"),
        Index("idx_bootcamps_latitude", "latitude"),
    )

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def __repr__(self) -> str:
        return f"<Bootcamp(id={self.id}, name='{self.name}')>"
