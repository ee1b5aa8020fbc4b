"""
DevCamper Backend — Course Service
====================================

What:  Business logic for courses and the bootcamp average-cost aggregate.
How:   Courses are always read together with their bootcamp's summary
       (one joined SELECT). Every create, tuition change or delete
       recomputes the parent bootcamp's `average_cost` in the same
       transaction.
Who:   Called by routes/courses.py.

Average cost:
    ceil(avg(tuition) / 10) * 10, or NULL when the bootcamp has no courses.
"""

import logging
import math
import uuid
from typing import List, Mapping, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.auth.permissions import ensure_owner_or_admin
from devcamper.exceptions import NotFoundError, ValidationError
from devcamper.models.bootcamp import Bootcamp
from devcamper.models.course import Course
from devcamper.models.user import User
from devcamper.schemas.common import PaginatedResponse, Pagination
from devcamper.schemas.course import CourseCreate, CourseResponse, CourseUpdate
from devcamper.services.query_service import ResourceQuery, query_service

logger = logging.getLogger(__name__)

COURSE_QUERY = ResourceQuery(
    model=Course,
    filterable={
        "title": str,
        "weeks": int,
        "tuition": int,
        "minimum_skill": str,
        "scholarship_available": bool,
        "bootcamp_id": uuid.UUID,
        "user_id": uuid.UUID,
    },
    selectable=set(CourseResponse.model_fields),
)


def round_up_to_ten(value: Optional[float]) -> Optional[int]:
    """8500.5 → 8510, 8500 → 8500, None → None"""
    if value is None:
        return None
    return int(math.ceil(float(value) / 10) * 10)


def _with_bootcamp():
    return select(Course, Bootcamp).join(Bootcamp, Course.bootcamp_id == Bootcamp.id)


class CourseService:
    async def list_courses(
        self, db: AsyncSession, params: Mapping[str, str]
    ) -> PaginatedResponse:
        """Advanced results over every course, each with its bootcamp summary."""
        options = query_service.parse(COURSE_QUERY, params)
        page = await query_service.paginate(db, _with_bootcamp(), options)

        include = set(options.select) | {"id"} if options.select else None
        data = [
            CourseResponse.from_model(course, bootcamp).model_dump(mode="json", include=include)
            for course, bootcamp in page.rows
        ]
        return PaginatedResponse(
            count=len(data),
            pagination=Pagination(**page.pagination),
            data=data,
            total=page.total,
        )

    async def list_bootcamp_courses(
        self, db: AsyncSession, bootcamp_id: uuid.UUID
    ) -> List[CourseResponse]:
        """All courses of one bootcamp, oldest first. Unknown ids give an empty list."""
        result = await db.execute(
            select(Course)
            .where(Course.bootcamp_id == bootcamp_id)
            .order_by(Course.created_at.asc(), Course.id.asc())
        )
        return [CourseResponse.from_model(c) for c in result.scalars().all()]

    async def get_course(self, db: AsyncSession, course_id: uuid.UUID) -> CourseResponse:
        result = await db.execute(_with_bootcamp().where(Course.id == course_id))
        row = result.first()
        if row is None:
            raise NotFoundError(resource="Course", resource_id=str(course_id))
        course, bootcamp = row
        return CourseResponse.from_model(course, bootcamp)

    async def add_course(
        self,
        db: AsyncSession,
        bootcamp_id: uuid.UUID,
        user: User,
        payload: CourseCreate,
    ) -> CourseResponse:
        result = await db.execute(select(Bootcamp).where(Bootcamp.id == bootcamp_id))
        bootcamp = result.scalar_one_or_none()
        if bootcamp is None:
            raise NotFoundError(resource="Bootcamp", resource_id=str(bootcamp_id))
        ensure_owner_or_admin(bootcamp.user_id, user, f"add a course to bootcamp {bootcamp.id}")

        course = Course(**payload.model_dump(), bootcamp_id=bootcamp.id, user_id=user.id)
        db.add(course)
        await db.flush()

        await self.refresh_average_cost(db, bootcamp.id)
        logger.info("Course %s added to bootcamp %s", course.id, bootcamp.id)
        return CourseResponse.from_model(course)

    async def update_course(
        self,
        db: AsyncSession,
        course_id: uuid.UUID,
        user: User,
        payload: CourseUpdate,
    ) -> CourseResponse:
        course = await self.get_or_404(db, course_id)
        ensure_owner_or_admin(course.user_id, user, "update this course")

        changes = payload.model_dump(exclude_unset=True)
        nulls = sorted(k for k, v in changes.items() if v is None)
        if nulls:
            raise ValidationError(message=f"Fields cannot be null: {', '.join(nulls)}")

        for key, value in changes.items():
            setattr(course, key, value)
        await db.flush()

        if "tuition" in changes:
            await self.refresh_average_cost(db, course.bootcamp_id)
        return CourseResponse.from_model(course)

    async def delete_course(self, db: AsyncSession, course_id: uuid.UUID, user: User) -> None:
        course = await self.get_or_404(db, course_id)
        ensure_owner_or_admin(course.user_id, user, "delete this course")

        bootcamp_id = course.bootcamp_id
        await db.delete(course)
        await db.flush()
        await self.refresh_average_cost(db, bootcamp_id)
        logger.info("Course %s deleted from bootcamp %s", course_id, bootcamp_id)

    async def refresh_average_cost(
        self, db: AsyncSession, bootcamp_id: uuid.UUID
    ) -> Optional[int]:
        """Recompute and store the bootcamp's average tuition."""
        result = await db.execute(
            select(func.avg(Course.tuition)).where(Course.bootcamp_id == bootcamp_id)
        )
        average_cost = round_up_to_ten(result.scalar())

        await db.execute(
            update(Bootcamp)
            .where(Bootcamp.id == bootcamp_id)
            .values(average_cost=average_cost)
            .execution_options(synchronize_session="fetch")
        )
        logger.debug("Bootcamp %s average_cost → %s", bootcamp_id, average_cost)
        return average_cost

    async def get_or_404(self, db: AsyncSession, course_id: uuid.UUID) -> Course:
        result = await db.execute(select(Course).where(Course.id == course_id))
        course = result.scalar_one_or_none()
        if course is None:
            raise NotFoundError(resource="Course", resource_id=str(course_id))
        return course


course_service = CourseService()
