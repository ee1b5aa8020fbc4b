"""
DevCamper Backend — Course Route Handlers
===========================================

Access:
    GET    /courses                          public, advanced results
    GET    /bootcamps/{bootcamp_id}/courses  public, every course of one bootcamp
    GET    /courses/{id}                     public
    POST   /bootcamps/{bootcamp_id}/courses  publisher, admin (bootcamp owner)
    PUT    /courses/{id}                     publisher, admin (course owner)
    DELETE /courses/{id}                     publisher, admin (course owner)
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.auth import Role, User, authorize
from devcamper.config import settings
from devcamper.database import get_db_session
from devcamper.schemas.common import CountResponse, DataResponse, ErrorResponse, PaginatedResponse
from devcamper.schemas.course import CourseCreate, CourseResponse, CourseUpdate
from devcamper.services.course_service import course_service

router = APIRouter(prefix=settings.api_prefix, tags=["Courses"])

publisher_or_admin = authorize(Role.PUBLISHER, Role.ADMIN)

ERRORS = {
    400: {"description": "Invalid input", "model": ErrorResponse},
    401: {"description": "Not authorized", "model": ErrorResponse},
    403: {"description": "Role not allowed", "model": ErrorResponse},
    404: {"description": "Course or bootcamp not found", "model": ErrorResponse},
}


@router.get(
    "/courses",
    response_model=PaginatedResponse,
    summary="List courses",
    description="Advanced results, each course populated with its bootcamp's name and description.",
)
async def list_courses(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> PaginatedResponse:
    result = await course_service.list_courses(db, dict(request.query_params))
    response.headers["X-Total-Count"] = str(result.total)
    return result


@router.get(
    "/bootcamps/{bootcamp_id}/courses",
    response_model=CountResponse[CourseResponse],
    summary="List the courses of one bootcamp",
)
async def list_bootcamp_courses(
    bootcamp_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> CountResponse[CourseResponse]:
    courses = await course_service.list_bootcamp_courses(db, bootcamp_id)
    return CountResponse[CourseResponse](count=len(courses), data=courses)


@router.get(
    "/courses/{course_id}",
    response_model=DataResponse[CourseResponse],
    responses={404: ERRORS[404]},
    summary="Get a single course",
)
async def get_course(
    course_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[CourseResponse]:
    course = await course_service.get_course(db, course_id)
    return DataResponse[CourseResponse](data=course)


@router.post(
    "/bootcamps/{bootcamp_id}/courses",
    status_code=201,
    response_model=DataResponse[CourseResponse],
    responses=ERRORS,
    summary="Add a course to a bootcamp",
)
async def add_course(
    bootcamp_id: UUID,
    payload: CourseCreate,
    user: User = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[CourseResponse]:
    course = await course_service.add_course(db, bootcamp_id, user, payload)
    return DataResponse[CourseResponse](data=course)


@router.put(
    "/courses/{course_id}",
    response_model=DataResponse[CourseResponse],
    responses=ERRORS,
    summary="Update a course",
)
async def update_course(
    course_id: UUID,
    payload: CourseUpdate,
    user: User = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[CourseResponse]:
    course = await course_service.update_course(db, course_id, user, payload)
    return DataResponse[CourseResponse](data=course)


@router.delete(
    "/courses/{course_id}",
    status_code=204,
    responses={k: ERRORS[k] for k in (401, 403, 404)},
    summary="Delete a course",
)
async def delete_course(
    course_id: UUID,
    user: User = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await course_service.delete_course(db, course_id, user)
    return Response(status_code=204)
