"""
DevCamper Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the test suite.
How:   Environment is pointed at SQLite and a temp upload directory BEFORE
       any devcamper import, so the module-level engine and settings never
       see production values.

Fixtures:
    mock_db_session    AsyncMock session for pure unit tests
    db_session         real AsyncSession on a fresh in-memory SQLite database
    publisher / other_publisher / admin / plain_user
                       committed users with the matching role
    make_bootcamp / make_course
                       factories that insert committed rows
    client             httpx AsyncClient on the app, using db_session
    auth_header        builds an Authorization header for a user
    geocode_to         patches the geocoder to return a fixed location
"""

import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["FILE_UPLOAD_PATH"] = tempfile.mkdtemp(prefix="devcamper_test_")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RETRY_MAX_ATTEMPTS"] = "2"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["RETRY_MAX_WAIT"] = "1"

import uuid  # noqa: E402
from typing import Any, Dict, Optional  # noqa: E402
from unittest.mock import AsyncMock, MagicMock, patch  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from devcamper.auth.tokens import create_access_token  # noqa: E402
from devcamper.database import Base, get_db_session  # noqa: E402
from devcamper.models.bootcamp import Bootcamp  # noqa: E402
from devcamper.models.course import Course  # noqa: E402
from devcamper.models.user import Role, User  # noqa: E402
from devcamper.services.bootcamp_service import slugify  # noqa: E402
from devcamper.services.geocoder_service import GeoLocation  # noqa: E402

# Boston, MA
BOSTON = GeoLocation(
    latitude=42.3601,
    longitude=-71.0589,
    formatted_address="Boston, Suffolk County, Massachusetts, 02108, United States",
    city="Boston",
    state="Massachusetts",
    zipcode="02108",
    country="US",
)


# ══════════════════════════════════════════════════════════════════════════
# Unit-test doubles
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    AsyncMock standing in for AsyncSession.

    Usage:
        mock_db_session.execute.return_value = MagicMock(scalar_one_or_none=MagicMock(return_value=row))
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.delete = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


def make_user_obj(role: str = Role.PUBLISHER.value, user_id: Optional[uuid.UUID] = None) -> User:
    """Transient User, not attached to any session."""
    return User(id=user_id or uuid.uuid4(), name=f"{role} user", email=f"{uuid.uuid4().hex}@test.io", role=role)


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


async def _add_user(session: AsyncSession, role: str) -> User:
    user = make_user_obj(role)
    session.add(user)
    await session.commit()
    return user


@pytest_asyncio.fixture
async def publisher(db_session) -> User:
    return await _add_user(db_session, Role.PUBLISHER.value)


@pytest_asyncio.fixture
async def other_publisher(db_session) -> User:
    return await _add_user(db_session, Role.PUBLISHER.value)


@pytest_asyncio.fixture
async def admin(db_session) -> User:
    return await _add_user(db_session, Role.ADMIN.value)


@pytest_asyncio.fixture
async def plain_user(db_session) -> User:
    return await _add_user(db_session, Role.USER.value)


@pytest.fixture
def make_bootcamp(db_session):
    """Insert a committed bootcamp owned by `owner`; keyword overrides win."""

    async def _make(owner: User, **overrides: Any) -> Bootcamp:
        fields: Dict[str, Any] = {
            "name": f"Bootcamp {uuid.uuid4().hex[:8]}",
            "description": "Full stack web development",
            "address": "233 Bay State Rd Boston MA 02215",
            "careers": ["Web Development"],
            "latitude": BOSTON.latitude,
            "longitude": BOSTON.longitude,
            "city": BOSTON.city,
            "state": BOSTON.state,
            "zipcode": BOSTON.zipcode,
        }
        fields.update(overrides)
        fields.setdefault("slug", slugify(fields["name"]))
        bootcamp = Bootcamp(
            user_id=owner.id,
            publisher_slot=None if owner.is_admin else owner.id,
            **fields,
        )
        db_session.add(bootcamp)
        await db_session.commit()
        return bootcamp

    return _make


@pytest.fixture
def make_course(db_session):
    async def _make(bootcamp: Bootcamp, owner: User, **overrides: Any) -> Course:
        fields: Dict[str, Any] = {
            "title": "Front End Web Development",
            "description": "HTML, CSS and JavaScript",
            "weeks": 8,
            "tuition": 8000,
            "minimum_skill": "beginner",
            "scholarship_available": False,
        }
        fields.update(overrides)
        course = Course(bootcamp_id=bootcamp.id, user_id=owner.id, **fields)
        db_session.add(course)
        await db_session.commit()
        return course

    return _make


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def auth_header():
    def _header(user: User) -> Dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _header


@pytest_asyncio.fixture
async def client(db_session):
    """
    AsyncClient wired to the app with get_db_session bound to db_session.

    Commit/rollback mirror the real dependency so a failed request does
    not leak half-applied changes into the next one.
    """
    from devcamper.main import app

    async def _session_override():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db_session] = _session_override
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def geocode_to():
    """
    Patch the geocoder used by BootcampService.

        geocode_to(BOSTON)   # every address and zipcode resolves to Boston
        geocode_to(None)     # nothing resolves
    """
    patchers = []

    def _patch(location: Optional[GeoLocation]):
        results = [location] if location is not None else []
        mock = MagicMock()
        mock.geocode = AsyncMock(return_value=results)
        mock.geocode_zipcode = AsyncMock(return_value=results)
        patcher = patch("devcamper.services.bootcamp_service.geocoder_service", mock)
        patchers.append(patcher)
        return patcher.start()

    yield _patch
    for p in patchers:
        p.stop()
