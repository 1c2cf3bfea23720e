"""
Enrollment Tests

Tests:
- Enrolling adds the student to the course roster exactly once
- Duplicate and concurrent enrollment
- Enrollment status and the enrolled course list
"""
import asyncio
import pytest
from httpx import AsyncClient

from skillora.services.course_service import CourseService
from tests.conftest import create_course


class TestEnroll:
    """Tests for POST /api/courses/{id}/enroll."""

    @pytest.mark.asyncio
    async def test_enroll(self, async_client: AsyncClient, student, course):
        response = await async_client.post(
            f"/api/courses/{course['id']}/enroll",
            headers=student["headers"]
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Successfully enrolled in course"

        detail = await async_client.get(f"/api/courses/{course['id']}")
        assert detail.json()["enrolledStudents"] == [student["user"]["id"]]

    @pytest.mark.asyncio
    async def test_double_enroll_conflicts(self, async_client: AsyncClient, student, enrolled_course):
        response = await async_client.post(
            f"/api/courses/{enrolled_course['id']}/enroll",
            headers=student["headers"]
        )

        assert response.status_code == 409
        assert response.json()["detail"] == "Already enrolled in this course"

        detail = await async_client.get(f"/api/courses/{enrolled_course['id']}")
        assert detail.json()["enrolledStudents"].count(student["user"]["id"]) == 1

    @pytest.mark.asyncio
    async def test_concurrent_enroll_single_success(
        self, async_client: AsyncClient, student, course, monkeypatch
    ):
        """
        Two requests from one student both pass the membership read before
        either writes; only one may land on the roster.
        """
        read_course = CourseService.get_course
        both_read = asyncio.Event()
        readers = []

        async def read_then_wait(self, course_id):
            loaded = await read_course(self, course_id)
            readers.append(course_id)
            if len(readers) == 2:
                both_read.set()
            await asyncio.wait_for(both_read.wait(), timeout=5)
            return loaded

        monkeypatch.setattr(CourseService, "get_course", read_then_wait)

        responses = await asyncio.gather(*[
            async_client.post(f"/api/courses/{course['id']}/enroll", headers=student["headers"])
            for _ in range(2)
        ])
        monkeypatch.undo()

        codes = sorted(r.status_code for r in responses)
        assert codes == [200, 409]

        detail = await async_client.get(f"/api/courses/{course['id']}")
        assert detail.json()["enrolledStudents"] == [student["user"]["id"]]

    @pytest.mark.asyncio
    async def test_course_deleted_during_enroll(
        self, async_client: AsyncClient, student, course, mongo_db, monkeypatch
    ):
        """A course removed after the read is reported missing, not as a duplicate."""
        read_course = CourseService.get_course

        async def read_then_delete(self, course_id):
            loaded = await read_course(self, course_id)
            await mongo_db.courses.delete_one({"course_id": course_id})
            return loaded

        monkeypatch.setattr(CourseService, "get_course", read_then_delete)

        response = await async_client.post(
            f"/api/courses/{course['id']}/enroll",
            headers=student["headers"]
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Course not found"

    @pytest.mark.asyncio
    async def test_enroll_unknown_course(self, async_client: AsyncClient, student):
        response = await async_client.post(
            "/api/courses/6f1c2a1e-1111-4222-8333-444455556666/enroll",
            headers=student["headers"]
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_enroll_malformed_id(self, async_client: AsyncClient, student):
        response = await async_client.post("/api/courses/abc/enroll", headers=student["headers"])

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid course ID format"

    @pytest.mark.asyncio
    async def test_roster_is_only_enrollment_record(
        self, async_client: AsyncClient, student, enrolled_course, mongo_db
    ):
        doc = await mongo_db.users.find_one({"user_id": student["user"]["id"]})
        assert "enrolled_courses" not in doc


class TestEnrollmentStatus:
    """Tests for GET /api/courses/{id}/enrollment."""

    @pytest.mark.asyncio
    async def test_status_before_and_after(self, async_client: AsyncClient, student, course):
        before = await async_client.get(
            f"/api/courses/{course['id']}/enrollment",
            headers=student["headers"]
        )
        await async_client.post(f"/api/courses/{course['id']}/enroll", headers=student["headers"])
        after = await async_client.get(
            f"/api/courses/{course['id']}/enrollment",
            headers=student["headers"]
        )

        assert before.json() == {"enrolled": False}
        assert after.json() == {"enrolled": True}

    @pytest.mark.asyncio
    async def test_status_requires_login(self, async_client: AsyncClient, course):
        response = await async_client.get(f"/api/courses/{course['id']}/enrollment")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_status_unknown_course(self, async_client: AsyncClient, student):
        response = await async_client.get(
            "/api/courses/6f1c2a1e-1111-4222-8333-444455556666/enrollment",
            headers=student["headers"]
        )
        assert response.status_code == 404


class TestEnrolledCourses:
    """Tests for GET /api/courses/enrolled and enrolledCourses on /api/auth/me."""

    @pytest.mark.asyncio
    async def test_enrolled_list(self, async_client: AsyncClient, instructor, student, enrolled_course):
        await create_course(async_client, instructor["headers"], title="Not enrolled")

        response = await async_client.get("/api/courses/enrolled", headers=student["headers"])

        assert response.status_code == 200
        data = response.json()
        assert len(data) == 1
        assert data[0]["id"] == enrolled_course["id"]
        assert data[0]["title"] == enrolled_course["title"]
        assert data[0]["thumbnail"] == enrolled_course["thumbnail"]
        assert data[0]["lastAccessed"]

    @pytest.mark.asyncio
    async def test_enrolled_list_empty(self, async_client: AsyncClient, student):
        response = await async_client.get("/api/courses/enrolled", headers=student["headers"])

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_me_lists_enrolled_course_ids(
        self, async_client: AsyncClient, instructor, student, course
    ):
        second = await create_course(async_client, instructor["headers"], title="Second")
        for course_id in (course["id"], second["id"]):
            await async_client.post(f"/api/courses/{course_id}/enroll", headers=student["headers"])

        response = await async_client.get("/api/auth/me", headers=student["headers"])

        assert set(response.json()["enrolledCourses"]) == {course["id"], second["id"]}
