"""
DevCamper Backend — Bootcamp Route Handlers
=============================================

What:  /bootcamps resource: advanced listing, CRUD, radius search, photo upload.
How:   Thin handlers; BootcampService owns the rules. Writes require a
       publisher or admin token, and the service checks ownership.

Access:
    GET    /bootcamps                              public
    GET    /bootcamps/{id}                         public
    GET    /bootcamps/radius/{zipcode}/{distance}  public
    POST   /bootcamps                              publisher, admin
    PUT    /bootcamps/{id}                         publisher, admin (owner)
    DELETE /bootcamps/{id}                         publisher, admin (owner)
    PUT    /bootcamps/{id}/photo                   publisher, admin (owner)
"""

from uuid import UUID

from fastapi import APIRouter, Depends, File, Path, Query, Request, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.auth import Role, User, authorize
from devcamper.config import settings
from devcamper.database import get_db_session
from devcamper.schemas.bootcamp import BootcampCreate, BootcampResponse, BootcampUpdate
from devcamper.schemas.common import DataResponse, ErrorResponse, PaginatedResponse, RadiusResponse
from devcamper.services.bootcamp_service import bootcamp_service

router = APIRouter(prefix=f"{settings.api_prefix}/bootcamps", tags=["Bootcamps"])

publisher_or_admin = authorize(Role.PUBLISHER, Role.ADMIN)

ERRORS = {
    400: {"description": "Invalid input", "model": ErrorResponse},
    401: {"description": "Not authorized", "model": ErrorResponse},
    403: {"description": "Role not allowed", "model": ErrorResponse},
    404: {"description": "Bootcamp not found", "model": ErrorResponse},
}


@router.get(
    "",
    response_model=PaginatedResponse,
    summary="List bootcamps",
    description=(
        "Advanced results: filter on any listed field (`housing=true`, "
        "`average_cost[lte]=10000`), `select=name,description`, "
        "`sort=-average_cost`, `page` and `limit`."
    ),
)
async def list_bootcamps(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> PaginatedResponse:
    result = await bootcamp_service.list_bootcamps(db, dict(request.query_params))
    response.headers["X-Total-Count"] = str(result.total)
    return result


@router.get(
    "/radius/{zipcode}/{distance}",
    response_model=RadiusResponse[BootcampResponse],
    responses={400: ERRORS[400], 503: {"description": "Geocoder unavailable", "model": ErrorResponse}},
    summary="Bootcamps within a distance of a zipcode",
)
async def bootcamps_in_radius(
    zipcode: str = Path(min_length=1, max_length=20),
    distance: float = Path(gt=0, description="Search radius in `unit`"),
    unit: str = Query(default="mi", pattern="^(mi|km)$"),
    db: AsyncSession = Depends(get_db_session),
) -> RadiusResponse[BootcampResponse]:
    bootcamps = await bootcamp_service.bootcamps_in_radius(db, zipcode, distance, unit)
    return RadiusResponse[BootcampResponse](results=len(bootcamps), data=bootcamps)


@router.get(
    "/{bootcamp_id}",
    response_model=DataResponse[BootcampResponse],
    responses={404: ERRORS[404]},
    summary="Get a single bootcamp",
)
async def get_bootcamp(
    bootcamp_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[BootcampResponse]:
    bootcamp = await bootcamp_service.get_bootcamp(db, bootcamp_id)
    return DataResponse[BootcampResponse](data=bootcamp)


@router.post(
    "",
    status_code=201,
    response_model=DataResponse[BootcampResponse],
    responses={k: ERRORS[k] for k in (400, 401, 403)},
    summary="Create a bootcamp",
    description="Publishers may create one bootcamp; admins any number.",
)
async def create_bootcamp(
    payload: BootcampCreate,
    user: User = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[BootcampResponse]:
    bootcamp = await bootcamp_service.create_bootcamp(db, user, payload)
    return DataResponse[BootcampResponse](data=bootcamp)


@router.put(
    "/{bootcamp_id}",
    response_model=DataResponse[BootcampResponse],
    responses=ERRORS,
    summary="Update a bootcamp",
)
async def update_bootcamp(
    bootcamp_id: UUID,
    payload: BootcampUpdate,
    user: User = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[BootcampResponse]:
    bootcamp = await bootcamp_service.update_bootcamp(db, bootcamp_id, user, payload)
    return DataResponse[BootcampResponse](data=bootcamp)


@router.delete(
    "/{bootcamp_id}",
    status_code=204,
    responses={k: ERRORS[k] for k in (401, 403, 404)},
    summary="Delete a bootcamp and its courses",
)
async def delete_bootcamp(
    bootcamp_id: UUID,
    user: User = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await bootcamp_service.delete_bootcamp(db, bootcamp_id, user)
    return Response(status_code=204)


@router.put(
    "/{bootcamp_id}/photo",
    response_model=DataResponse[str],
    responses=ERRORS,
    summary="Upload a bootcamp photo",
    description="Multipart field `file`; must be an image no larger than MAX_FILE_UPLOAD bytes.",
)
async def upload_bootcamp_photo(
    bootcamp_id: UUID,
    file: UploadFile | None = File(default=None, description="Image file"),
    user: User = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[str]:
    try:
        stored = await bootcamp_service.upload_photo(db, bootcamp_id, user, file)
    finally:
        if file is not None:
            await file.close()

    return DataResponse[str](data=stored)
