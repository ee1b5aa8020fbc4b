"""
DevCamper Backend — Course Request/Response Schemas
=====================================================
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Literal, Optional

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from devcamper.models.bootcamp import Bootcamp
    from devcamper.models.course import Course

SkillLevel = Literal["beginner", "intermediate", "advanced"]


class CourseCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    weeks: int = Field(ge=1, le=520)
    tuition: int = Field(ge=0)
    minimum_skill: SkillLevel
    scholarship_available: bool = False


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)
    weeks: Optional[int] = Field(default=None, ge=1, le=520)
    tuition: Optional[int] = Field(default=None, ge=0)
    minimum_skill: Optional[SkillLevel] = None
    scholarship_available: Optional[bool] = None


class BootcampSummary(BaseModel):
    """The `populate` view of a course's bootcamp: name and description only."""
    id: uuid.UUID
    name: str
    description: str

    model_config = {"from_attributes": True}


class CourseResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    weeks: int
    tuition: int
    minimum_skill: str
    scholarship_available: bool
    created_at: datetime
    bootcamp_id: uuid.UUID
    user_id: uuid.UUID
    bootcamp: Optional[BootcampSummary] = None

    @classmethod
    def from_model(
        cls, course: "Course", bootcamp: Optional["Bootcamp"] = None
    ) -> "CourseResponse":
        return cls(
            id=course.id,
            title=course.title,
            description=course.description,
            weeks=course.weeks,
            tuition=course.tuition,
            minimum_skill=course.minimum_skill,
            scholarship_available=course.scholarship_available,
            created_at=course.created_at,
            bootcamp_id=course.bootcamp_id,
            user_id=course.user_id,
            bootcamp=BootcampSummary.model_validate(bootcamp) if bootcamp is not None else None,
        )
