"""
DevCamper Backend — HTTP Route Tests
======================================

What:  End-to-end behaviour through the ASGI app: status codes, envelopes
       and error messages as a client sees them.
How:   httpx AsyncClient over ASGITransport with get_db_session bound to an
       in-memory SQLite session; real JWTs; geocoder patched.
"""

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from devcamper.config import settings
from devcamper.main import app
from devcamper.services.bootcamp_service import bootcamp_service
from devcamper.services.file_service import FileService

from tests.conftest import BOSTON

API = settings.api_prefix

BOOTCAMP_BODY = {
    "name": "Devworks Bootcamp",
    "description": "Devworks is a full stack JavaScript bootcamp",
    "website": "https://devworks.com",
    "phone": "(111) 111-1111",
    "email": "enroll@devworks.com",
    "address": "233 Bay State Rd Boston MA 02215",
    "careers": ["Web Development", "UI/UX", "Business"],
    "housing": True,
    "job_assistance": True,
}

COURSE_BODY = {
    "title": "Front End Web Development",
    "description": "This course will provide you with all of the essentials",
    "weeks": 8,
    "tuition": 8000,
    "minimum_skill": "beginner",
    "scholarship_available": True,
}


class TestBootcampRoutes:
    @pytest.mark.asyncio
    async def test_create_returns_201_with_data(self, client, publisher, auth_header, geocode_to):
        geocode_to(BOSTON)

        response = await client.post(f"{API}/bootcamps", json=BOOTCAMP_BODY, headers=auth_header(publisher))

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["slug"] == "devworks-bootcamp"
        assert body["data"]["location"]["type"] == "Point"
        assert "X-Request-ID" in response.headers

    @pytest.mark.asyncio
    async def test_second_create_by_publisher_is_400(
        self, client, publisher, make_bootcamp, auth_header, geocode_to
    ):
        geocode_to(BOSTON)
        await make_bootcamp(publisher)
        headers = auth_header(publisher)
        publisher_id = publisher.id

        response = await client.post(f"{API}/bootcamps", json=BOOTCAMP_BODY, headers=headers)

        assert response.status_code == 400
        assert response.json()["message"] == (
            f"The user with ID {publisher_id} has already published a bootcamp"
        )

    @pytest.mark.asyncio
    async def test_invalid_body_is_400(self, client, publisher, auth_header):
        body = {**BOOTCAMP_BODY, "careers": ["Underwater Basket Weaving"]}

        response = await client.post(f"{API}/bootcamps", json=body, headers=auth_header(publisher))

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_invalid_contact_details_are_400(self, client, publisher, auth_header):
        headers = auth_header(publisher)

        bad_email = await client.post(
            f"{API}/bootcamps", json={**BOOTCAMP_BODY, "email": "enroll@..com"}, headers=headers
        )
        bad_site = await client.post(
            f"{API}/bootcamps", json={**BOOTCAMP_BODY, "website": "devworks dot com"}, headers=headers
        )

        assert bad_email.status_code == 400
        assert bad_site.status_code == 400

    @pytest.mark.asyncio
    async def test_get_missing_is_404_without_data(self, client):
        missing = uuid.uuid4()

        response = await client.get(f"{API}/bootcamps/{missing}")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert "data" not in body
        assert body["message"] == f"Bootcamp not found with id of {missing}"

    @pytest.mark.asyncio
    async def test_list_paginates_and_selects(self, client, admin, make_bootcamp, make_course):
        camps = [await make_bootcamp(admin, average_cost=cost) for cost in (3000, 6000, 9000)]
        await make_course(camps[0], admin)

        response = await client.get(
            f"{API}/bootcamps",
            params={"sort": "average_cost", "limit": "2", "select": "name,average_cost,courses"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 2
        assert body["pagination"]["next"] == {"page": 2, "limit": 2}
        assert "prev" not in body["pagination"]
        assert response.headers["X-Total-Count"] == "3"
        first = body["data"][0]
        assert set(first) == {"id", "name", "average_cost", "courses"}
        assert len(first["courses"]) == 1

    @pytest.mark.asyncio
    async def test_unknown_filter_is_400(self, client):
        response = await client.get(f"{API}/bootcamps", params={"secret[gt]": "1"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_non_owner_update_is_401(
        self, client, publisher, other_publisher, make_bootcamp, auth_header
    ):
        bootcamp = await make_bootcamp(publisher)

        response = await client.put(
            f"{API}/bootcamps/{bootcamp.id}", json={"housing": False}, headers=auth_header(other_publisher)
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_update_cannot_blank_required_fields(self, client, publisher, make_bootcamp, auth_header):
        bootcamp = await make_bootcamp(publisher)
        bootcamp_id, headers = bootcamp.id, auth_header(publisher)

        no_careers = await client.put(f"{API}/bootcamps/{bootcamp_id}", json={"careers": []}, headers=headers)
        blank_name = await client.put(f"{API}/bootcamps/{bootcamp_id}", json={"name": "   "}, headers=headers)

        assert no_careers.status_code == 400
        assert blank_name.status_code == 400
        unchanged = (await client.get(f"{API}/bootcamps/{bootcamp_id}")).json()["data"]
        assert unchanged["careers"]
        assert unchanged["name"].strip()

    @pytest.mark.asyncio
    async def test_delete_is_204_and_empty(self, client, publisher, make_bootcamp, make_course, auth_header):
        bootcamp = await make_bootcamp(publisher)
        await make_course(bootcamp, publisher)
        bootcamp_id = bootcamp.id

        response = await client.delete(f"{API}/bootcamps/{bootcamp_id}", headers=auth_header(publisher))

        assert response.status_code == 204
        assert response.content == b""
        assert (await client.get(f"{API}/bootcamps/{bootcamp_id}")).status_code == 404
        courses = await client.get(f"{API}/bootcamps/{bootcamp_id}/courses")
        assert courses.json()["count"] == 0

    @pytest.mark.asyncio
    async def test_radius_search(self, client, admin, make_bootcamp, geocode_to):
        geocode_to(BOSTON)
        near = await make_bootcamp(admin, latitude=42.3736, longitude=-71.1097)
        await make_bootcamp(admin, latitude=40.7128, longitude=-74.0060)

        response = await client.get(f"{API}/bootcamps/radius/02108/25")

        assert response.status_code == 200
        body = response.json()
        assert body["results"] == 1
        assert body["data"][0]["id"] == str(near.id)

    @pytest.mark.asyncio
    async def test_radius_rejects_bad_unit_and_distance(self, client):
        assert (await client.get(f"{API}/bootcamps/radius/02108/25?unit=parsecs")).status_code == 400
        assert (await client.get(f"{API}/bootcamps/radius/02108/-5")).status_code == 400


class TestPhotoUpload:
    @pytest.mark.asyncio
    async def test_upload_and_serve(self, client, publisher, make_bootcamp, auth_header, tmp_path):
        bootcamp = await make_bootcamp(publisher)
        storage = FileService(str(tmp_path))

        with patch("devcamper.services.bootcamp_service.file_service", storage), \
             patch("devcamper.routes.files.file_service", storage):
            response = await client.put(
                f"{API}/bootcamps/{bootcamp.id}/photo",
                files={"file": ("campus.jpg", b"\xff\xd8\xff\xe0fake-jpeg", "image/jpeg")},
                headers=auth_header(publisher),
            )
            assert response.status_code == 200
            name = response.json()["data"]
            assert name == f"photo_{bootcamp.id}.jpg"

            served = await client.get(f"/uploads/{name}")
            assert served.status_code == 200
            assert served.content == b"\xff\xd8\xff\xe0fake-jpeg"

    @pytest.mark.asyncio
    async def test_non_image_is_400(self, client, publisher, make_bootcamp, auth_header):
        bootcamp = await make_bootcamp(publisher)

        response = await client.put(
            f"{API}/bootcamps/{bootcamp.id}/photo",
            files={"file": ("notes.txt", b"hello", "text/plain")},
            headers=auth_header(publisher),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Please upload an image file"

    @pytest.mark.asyncio
    async def test_oversize_is_400(self, client, publisher, make_bootcamp, auth_header):
        bootcamp = await make_bootcamp(publisher)
        content = b"x" * (settings.max_file_upload + 1)

        response = await client.put(
            f"{API}/bootcamps/{bootcamp.id}/photo",
            files={"file": ("big.jpg", content, "image/jpeg")},
            headers=auth_header(publisher),
        )

        assert response.status_code == 400
        assert response.json()["message"] == f"Please upload an image less than {settings.max_file_upload}"

    @pytest.mark.asyncio
    async def test_missing_file_is_400(self, client, publisher, make_bootcamp, auth_header):
        bootcamp = await make_bootcamp(publisher)

        response = await client.put(f"{API}/bootcamps/{bootcamp.id}/photo", headers=auth_header(publisher))

        assert response.status_code == 400
        assert response.json()["message"] == "Please upload a file"

    @pytest.mark.asyncio
    async def test_missing_file_on_unknown_bootcamp_is_404(self, client, publisher, auth_header):
        response = await client.put(f"{API}/bootcamps/{uuid.uuid4()}/photo", headers=auth_header(publisher))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_missing_file_from_non_owner_is_401(
        self, client, publisher, other_publisher, make_bootcamp, auth_header
    ):
        bootcamp = await make_bootcamp(publisher)

        response = await client.put(
            f"{API}/bootcamps/{bootcamp.id}/photo", headers=auth_header(other_publisher)
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_missing_upload_is_404(self, client):
        assert (await client.get("/uploads/photo_nope.jpg")).status_code == 404


class TestCourseRoutes:
    @pytest.mark.asyncio
    async def test_add_course_is_201(self, client, publisher, make_bootcamp, auth_header):
        bootcamp = await make_bootcamp(publisher)

        response = await client.post(
            f"{API}/bootcamps/{bootcamp.id}/courses", json=COURSE_BODY, headers=auth_header(publisher)
        )

        assert response.status_code == 201
        assert response.json()["data"]["bootcamp_id"] == str(bootcamp.id)

        listed = await client.get(f"{API}/bootcamps/{bootcamp.id}")
        assert listed.json()["data"]["average_cost"] == 8000

    @pytest.mark.asyncio
    async def test_add_course_to_missing_bootcamp_is_404(self, client, publisher, auth_header):
        response = await client.post(
            f"{API}/bootcamps/{uuid.uuid4()}/courses", json=COURSE_BODY, headers=auth_header(publisher)
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_get_course_populates_bootcamp(self, client, publisher, make_bootcamp, make_course):
        bootcamp = await make_bootcamp(publisher, name="Codemasters")
        course = await make_course(bootcamp, publisher)

        response = await client.get(f"{API}/courses/{course.id}")

        assert response.status_code == 200
        assert response.json()["data"]["bootcamp"] == {
            "id": str(bootcamp.id),
            "name": "Codemasters",
            "description": bootcamp.description,
        }

    @pytest.mark.asyncio
    async def test_list_courses(self, client, publisher, make_bootcamp, make_course):
        bootcamp = await make_bootcamp(publisher)
        await make_course(bootcamp, publisher, minimum_skill="beginner")
        await make_course(bootcamp, publisher, minimum_skill="advanced")

        response = await client.get(f"{API}/courses", params={"minimum_skill": "advanced"})

        assert response.status_code == 200
        assert response.json()["count"] == 1

    @pytest.mark.asyncio
    async def test_update_and_delete_course(
        self, client, publisher, other_publisher, make_bootcamp, make_course, auth_header
    ):
        bootcamp = await make_bootcamp(publisher)
        course = await make_course(bootcamp, publisher)
        # A failed request rolls the session back and expires loaded rows
        course_id = course.id
        owner, stranger = auth_header(publisher), auth_header(other_publisher)

        denied = await client.put(f"{API}/courses/{course_id}", json={"weeks": 10}, headers=stranger)
        assert denied.status_code == 401

        updated = await client.put(f"{API}/courses/{course_id}", json={"weeks": 10}, headers=owner)
        assert updated.status_code == 200
        assert updated.json()["data"]["weeks"] == 10

        deleted = await client.delete(f"{API}/courses/{course_id}", headers=owner)
        assert deleted.status_code == 204
        assert (await client.get(f"{API}/courses/{course_id}")).status_code == 404

    @pytest.mark.asyncio
    async def test_non_owner_delete_is_401(
        self, client, publisher, other_publisher, make_bootcamp, make_course, auth_header
    ):
        bootcamp = await make_bootcamp(publisher)
        course = await make_course(bootcamp, publisher)
        course_id, stranger = course.id, auth_header(other_publisher)

        response = await client.delete(f"{API}/courses/{course_id}", headers=stranger)

        assert response.status_code == 401
        assert (await client.get(f"{API}/courses/{course_id}")).status_code == 200


class TestHealth:
    @pytest.mark.asyncio
    async def test_health_reports_database_and_geocoder(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["database"] == "connected"
        assert body["geocoder"] == "closed"
        assert body["status"] == "healthy"


class TestUnexpectedErrors:
    @pytest.mark.asyncio
    async def test_database_failure_is_generic_500(self, client):
        # The catch-all handler responds, then Starlette re-raises to the server
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        failure = OperationalError("SELECT bootcamps", {}, Exception("connection refused"))

        with patch.object(bootcamp_service, "get_bootcamp", AsyncMock(side_effect=failure)):
            async with AsyncClient(transport=transport, base_url="http://test") as raw_client:
                response = await raw_client.get(f"{API}/bootcamps/{uuid.uuid4()}")

        assert response.status_code == 500
        body = response.json()
        assert body == {
            "success": False,
            "error": "server_error",
            "message": "Server Error",
            "request_id": body["request_id"],
        }
