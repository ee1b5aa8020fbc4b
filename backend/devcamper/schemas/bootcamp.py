"""
DevCamper Backend — Bootcamp Request/Response Schemas
=======================================================

What:  API contract for bootcamp endpoints.
How:   BootcampCreate/BootcampUpdate validate request bodies; BootcampResponse
       re-nests the flattened location columns as a GeoJSON-style point.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Iterable, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, HttpUrl, field_validator

from devcamper.models.bootcamp import CAREERS

if TYPE_CHECKING:
    from devcamper.models.bootcamp import Bootcamp
    from devcamper.models.course import Course


def _check_careers(value: Optional[List[str]]) -> Optional[List[str]]:
    if value is None:
        return value
    unknown = [c for c in value if c not in CAREERS]
    if unknown:
        raise ValueError(
            f"Unknown career(s) {unknown}. Must be any of: {', '.join(CAREERS)}"
        )
    return value


def _strip_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("Please add a name")
    return value


class BootcampCreate(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    description: str = Field(min_length=1, max_length=500)
    website: Optional[HttpUrl] = None
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[EmailStr] = None
    address: str = Field(min_length=1)
    careers: List[str] = Field(min_length=1)
    housing: bool = False
    job_assistance: bool = False
    job_guarantee: bool = False
    accept_gi: bool = False

    @field_validator("careers")
    @classmethod
    def validate_careers(cls, v):
        return _check_careers(v)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return _strip_name(v)


class BootcampUpdate(BaseModel):
    """Partial update; only fields present in the body are applied."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    website: Optional[HttpUrl] = None
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[EmailStr] = None
    address: Optional[str] = Field(default=None, min_length=1)
    careers: Optional[List[str]] = Field(default=None, min_length=1)
    housing: Optional[bool] = None
    job_assistance: Optional[bool] = None
    job_guarantee: Optional[bool] = None
    accept_gi: Optional[bool] = None

    @field_validator("careers")
    @classmethod
    def validate_careers(cls, v):
        return _check_careers(v)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        return _strip_name(v)


class Location(BaseModel):
    type: Literal["Point"] = "Point"
    # [longitude, latitude], GeoJSON order
    coordinates: List[float]
    formatted_address: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Optional[str] = None
    country: Optional[str] = None


class CourseSummary(BaseModel):
    id: uuid.UUID
    title: str
    weeks: int
    tuition: int
    minimum_skill: str

    model_config = {"from_attributes": True}


class BootcampResponse(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    description: str
    website: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: str
    location: Optional[Location] = None
    careers: List[str]
    average_rating: Optional[float] = None
    average_cost: Optional[int] = None
    photo: str
    housing: bool
    job_assistance: bool
    job_guarantee: bool
    accept_gi: bool
    created_at: datetime
    user_id: uuid.UUID
    courses: Optional[List[CourseSummary]] = None

    @classmethod
    def from_model(
        cls,
        bootcamp: "Bootcamp",
        courses: Optional[Iterable["Course"]] = None,
    ) -> "BootcampResponse":
        location = None
        if bootcamp.has_location:
            location = Location(
                coordinates=[bootcamp.longitude, bootcamp.latitude],
                formatted_address=bootcamp.formatted_address,
                street=bootcamp.street,
                city=bootcamp.city,
                state=bootcamp.state,
                zipcode=bootcamp.zipcode,
                country=bootcamp.country,
            )
        return cls(
            id=bootcamp.id,
            name=bootcamp.name,
            slug=bootcamp.slug,
            description=bootcamp.description,
            website=bootcamp.website,
            phone=bootcamp.phone,
            email=bootcamp.email,
            address=bootcamp.address,
            location=location,
            careers=list(bootcamp.careers or []),
            average_rating=bootcamp.average_rating,
            average_cost=bootcamp.average_cost,
            photo=bootcamp.photo,
            housing=bootcamp.housing,
            job_assistance=bootcamp.job_assistance,
            job_guarantee=bootcamp.job_guarantee,
            accept_gi=bootcamp.accept_gi,
            created_at=bootcamp.created_at,
            user_id=bootcamp.user_id,
            courses=(
                [CourseSummary.model_validate(c) for c in courses]
                if courses is not None
                else None
            ),
        )
