"""
DevCamper Backend — Bootcamp Service
======================================

What:  Business logic for bootcamps: listing, CRUD, radius search, photo upload.
How:   Each operation is one or a few database calls on the request's session;
       ownership is checked with the shared owner-or-admin predicate before
       any mutation. Flushes happen here so constraint violations surface
       inside the request.
Who:   Called by routes/bootcamps.py.

Rules:
    - Non-admin users may publish one bootcamp. The `publisher_slot` UNIQUE
      constraint enforces it; a violation becomes 400.
    - Only the owner or an admin may update, delete or upload a photo.
    - Deleting a bootcamp deletes its courses.
    - Creating a bootcamp geocodes its address; updating re-geocodes only
      when the address changes.
"""

import logging
import math
import re
import unicodedata
import uuid
from typing import Any, Dict, List, Mapping, Optional

from fastapi import UploadFile
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.auth.permissions import ensure_owner_or_admin
from devcamper.exceptions import NotFoundError, ValidationError
from devcamper.models.bootcamp import DEFAULT_PHOTO, Bootcamp
from devcamper.models.course import Course
from devcamper.models.user import User
from devcamper.schemas.bootcamp import BootcampCreate, BootcampResponse, BootcampUpdate
from devcamper.schemas.common import PaginatedResponse, Pagination
from devcamper.services.file_service import file_service
from devcamper.services.geocoder_service import GeoLocation, geocoder_service
from devcamper.services.query_service import ResourceQuery, query_service

logger = logging.getLogger(__name__)

# Earth radius by distance unit: 3,963 miles or 6,378 km
EARTH_RADIUS = {"mi": 3963.0, "km": 6378.0}

REQUIRED_FIELDS = {
    "name",
    "description",
    "address",
    "careers",
    "housing",
    "job_assistance",
    "job_guarantee",
    "accept_gi",
}

BOOTCAMP_QUERY = ResourceQuery(
    model=Bootcamp,
    filterable={
        "name": str,
        "slug": str,
        "city": str,
        "state": str,
        "zipcode": str,
        "average_cost": int,
        "average_rating": float,
        "housing": bool,
        "job_assistance": bool,
        "job_guarantee": bool,
        "accept_gi": bool,
        "user_id": uuid.UUID,
    },
    selectable=set(BootcampResponse.model_fields),
)


def slugify(text: str) -> str:
    """'ModernTech Bootcamp!' → 'moderntech-bootcamp'"""
    normalized = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-")


def radius_in_radians(distance: float, unit: str = "mi") -> float:
    """Angular radius of a search circle: distance / earth radius."""
    return distance / EARTH_RADIUS[unit]


def central_angle(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle angle in radians between two points (haversine)."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = math.radians(lng2 - lng1)
    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * math.asin(min(1.0, math.sqrt(h)))


def _location_columns(location: GeoLocation) -> Dict[str, Any]:
    return {
        "latitude": location.latitude,
        "longitude": location.longitude,
        "formatted_address": location.formatted_address,
        "street": location.street,
        "city": location.city,
        "state": location.state,
        "zipcode": location.zipcode,
        "country": location.country,
    }


class BootcampService:
    async def list_bootcamps(
        self, db: AsyncSession, params: Mapping[str, str]
    ) -> PaginatedResponse:
        """Advanced results over all bootcamps, each with its courses."""
        options = query_service.parse(BOOTCAMP_QUERY, params)
        page = await query_service.paginate(db, select(Bootcamp), options)
        bootcamps = [row[0] for row in page.rows]

        courses_by_bootcamp: Optional[Dict[uuid.UUID, List[Course]]] = None
        if bootcamps and (options.select is None or "courses" in options.select):
            courses_by_bootcamp = await self._courses_for(db, [b.id for b in bootcamps])

        include = set(options.select) | {"id"} if options.select else None
        data = [
            BootcampResponse.from_model(
                b,
                courses=courses_by_bootcamp.get(b.id, []) if courses_by_bootcamp is not None else None,
            ).model_dump(mode="json", include=include)
            for b in bootcamps
        ]
        return PaginatedResponse(
            count=len(data),
            pagination=Pagination(**page.pagination),
            data=data,
            total=page.total,
        )

    async def get_bootcamp(self, db: AsyncSession, bootcamp_id: uuid.UUID) -> BootcampResponse:
        bootcamp = await self.get_or_404(db, bootcamp_id)
        return BootcampResponse.from_model(bootcamp)

    async def create_bootcamp(
        self, db: AsyncSession, user: User, payload: BootcampCreate
    ) -> BootcampResponse:
        # Read before the flush: a rollback expires every instance in the session
        owner_id, is_admin = user.id, user.is_admin
        location = await self._geocode_address(payload.address)

        bootcamp = Bootcamp(
            **payload.model_dump(mode="json"),
            **_location_columns(location),
            slug=slugify(payload.name),
            photo=DEFAULT_PHOTO,
            user_id=owner_id,
            # NULL for admins, so the UNIQUE constraint only binds non-admins
            publisher_slot=None if is_admin else owner_id,
        )
        db.add(bootcamp)
        try:
            await db.flush()
        except IntegrityError as e:
            await db.rollback()
            if not is_admin and await self._owns_a_bootcamp(db, owner_id):
                raise ValidationError(
                    message=f"The user with ID {owner_id} has already published a bootcamp",
                    context={"user_id": str(owner_id)},
                )
            logger.info("Bootcamp insert rejected by constraint: %s", e.orig)
            raise ValidationError(
                message="Duplicate field value entered",
                field="name",
                context={"name": payload.name},
            )

        logger.info("Bootcamp %s created by user %s", bootcamp.id, owner_id)
        return BootcampResponse.from_model(bootcamp)

    async def update_bootcamp(
        self,
        db: AsyncSession,
        bootcamp_id: uuid.UUID,
        user: User,
        payload: BootcampUpdate,
    ) -> BootcampResponse:
        bootcamp = await self.get_or_404(db, bootcamp_id)
        ensure_owner_or_admin(bootcamp.user_id, user, "update this bootcamp")

        changes = payload.model_dump(mode="json", exclude_unset=True)
        nulls = sorted(k for k, v in changes.items() if v is None and k in REQUIRED_FIELDS)
        if nulls:
            raise ValidationError(message=f"Fields cannot be null: {', '.join(nulls)}")

        if "name" in changes:
            changes["slug"] = slugify(changes["name"])
        if "address" in changes and changes["address"] != bootcamp.address:
            location = await self._geocode_address(changes["address"])
            changes.update(_location_columns(location))

        for key, value in changes.items():
            setattr(bootcamp, key, value)
        await db.flush()

        logger.info("Bootcamp %s updated (%s)", bootcamp.id, ", ".join(sorted(changes)))
        return BootcampResponse.from_model(bootcamp)

    async def delete_bootcamp(self, db: AsyncSession, bootcamp_id: uuid.UUID, user: User) -> None:
        bootcamp = await self.get_or_404(db, bootcamp_id)
        ensure_owner_or_admin(bootcamp.user_id, user, "delete this bootcamp")

        await db.execute(delete(Course).where(Course.bootcamp_id == bootcamp.id))
        await db.delete(bootcamp)
        await db.flush()
        logger.info("Bootcamp %s deleted with its courses", bootcamp.id)

    async def bootcamps_in_radius(
        self,
        db: AsyncSession,
        zipcode: str,
        distance: float,
        unit: str = "mi",
    ) -> List[BootcampResponse]:
        """
        Bootcamps whose location lies within `distance` of `zipcode`.

        The angular radius is distance / earth radius. Candidates are
        narrowed with a latitude band in SQL, then kept only when their
        great-circle angle to the centre is within the radius. Results are
        ordered nearest first.
        """
        locations = await geocoder_service.geocode_zipcode(zipcode)
        if not locations:
            raise ValidationError(
                message=f"Could not find a location for zipcode {zipcode}",
                field="zipcode",
            )
        lat, lng = locations[0].latitude, locations[0].longitude

        radius = radius_in_radians(distance, unit)
        band = math.degrees(radius)

        result = await db.execute(
            select(Bootcamp).where(
                Bootcamp.latitude.is_not(None),
                Bootcamp.longitude.is_not(None),
                Bootcamp.latitude.between(lat - band, lat + band),
            )
        )
        candidates = result.scalars().all()

        within = []
        for bootcamp in candidates:
            angle = central_angle(lat, lng, bootcamp.latitude, bootcamp.longitude)
            if angle <= radius:
                within.append((angle, bootcamp))
        within.sort(key=lambda pair: pair[0])

        logger.info(
            "Radius search %s %s%s: %d of %d candidates",
            zipcode, distance, unit, len(within), len(candidates),
        )
        return [BootcampResponse.from_model(b) for _, b in within]

    async def upload_photo(
        self,
        db: AsyncSession,
        bootcamp_id: uuid.UUID,
        user: User,
        upload: Optional[UploadFile],
    ) -> str:
        """
        Store the photo and point the bootcamp at it. Returns the stored filename.

        The body is read only once the bootcamp exists and the requester owns it.
        """
        bootcamp = await self.get_or_404(db, bootcamp_id)
        ensure_owner_or_admin(bootcamp.user_id, user, "update this bootcamp")
        if upload is None:
            raise ValidationError(message="Please upload a file", field="file")

        content = await upload.read()
        logger.info(
            "Photo upload for bootcamp %s: filename=%s, size=%d bytes",
            bootcamp.id, upload.filename or "unknown", len(content),
        )
        stored = await file_service.store_photo(
            bootcamp.id, upload.filename, upload.content_type, content
        )
        bootcamp.photo = stored
        await db.flush()
        return stored

    # ── Helpers ───────────────────────────────────────────────────────────

    async def get_or_404(self, db: AsyncSession, bootcamp_id: uuid.UUID) -> Bootcamp:
        result = await db.execute(select(Bootcamp).where(Bootcamp.id == bootcamp_id))
        bootcamp = result.scalar_one_or_none()
        if bootcamp is None:
            raise NotFoundError(resource="Bootcamp", resource_id=str(bootcamp_id))
        return bootcamp

    async def _owns_a_bootcamp(self, db: AsyncSession, user_id: uuid.UUID) -> bool:
        result = await db.execute(select(Bootcamp.id).where(Bootcamp.user_id == user_id).limit(1))
        return result.scalar_one_or_none() is not None

    async def _courses_for(
        self, db: AsyncSession, bootcamp_ids: List[uuid.UUID]
    ) -> Dict[uuid.UUID, List[Course]]:
        result = await db.execute(
            select(Course)
            .where(Course.bootcamp_id.in_(bootcamp_ids))
            .order_by(Course.created_at.asc())
        )
        grouped: Dict[uuid.UUID, List[Course]] = {}
        for course in result.scalars().all():
            grouped.setdefault(course.bootcamp_id, []).append(course)
        return grouped

    async def _geocode_address(self, address: str) -> GeoLocation:
        locations = await geocoder_service.geocode(address)
        if not locations:
            raise ValidationError(
                message=f"Could not geocode address '{address}'",
                field="address",
            )
        return locations[0]


bootcamp_service = BootcampService()
