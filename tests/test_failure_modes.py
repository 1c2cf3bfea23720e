"""
Failure Mode Tests

Tests:
- Malformed request bodies
- Unexpected exceptions become a logged, generic 500
- Error bodies share the {"detail": ...} shape
"""
import json
import logging
import pytest
from httpx import AsyncClient, ASGITransport

from skillora.services.course_service import CourseService


class TestMalformedRequests:

    @pytest.mark.asyncio
    async def test_malformed_json(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/auth/login",
            content=b"{not json",
            headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_wrong_field_type(self, async_client: AsyncClient, instructor, course):
        response = await async_client.put(
            f"/api/courses/{course['id']}/modules/reorder",
            headers=instructor["headers"],
            json={"moduleIds": "not-a-list"}
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_catalog_level(self, async_client: AsyncClient):
        response = await async_client.get("/api/courses", params={"level": "expert"})
        assert response.status_code == 422


class TestErrorShape:

    @pytest.mark.asyncio
    async def test_domain_errors_use_detail(self, async_client: AsyncClient, student):
        not_found = await async_client.get("/api/courses/6f1c2a1e-1111-4222-8333-444455556666")
        bad_request = await async_client.get("/api/courses/xyz")
        unauthorized = await async_client.get("/api/auth/me")

        for response in (not_found, bad_request, unauthorized):
            assert set(response.json()) == {"detail"}


class TestUnhandledErrors:

    @pytest.mark.asyncio
    async def test_unexpected_exception_returns_500(self, app, monkeypatch, caplog):
        async def explode(self, **kwargs):
            raise RuntimeError("database on fire")

        monkeypatch.setattr(CourseService, "list_courses", explode)

        transport = ASGITransport(app=app, raise_app_exceptions=False)
        with caplog.at_level(logging.ERROR, logger="skillora"):
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.get("/api/courses")

        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}
        assert "database on fire" not in response.text

        entries = [json.loads(r.getMessage()) for r in caplog.records if r.name == "skillora"]
        assert any(
            e["event"] == "request.unhandled_error" and "RuntimeError" in e["error"]
            for e in entries
        )
