"""
Pytest fixtures for Skillora test suite.
Provides an async test client over an in-memory MongoDB and registered users.
"""
import pytest
import uuid
from typing import AsyncGenerator, Dict, Any, Optional
from httpx import AsyncClient, ASGITransport
from mongomock_motor import AsyncMongoMockClient

# Import the FastAPI app
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from skillora.main import create_app
from skillora.core.config import Settings
from skillora.db.mongodb import get_mongodb, create_indexes
from skillora.services.storage_service import StorageService


TEST_PASSWORD = "password123"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings isolated to this test: fixed secret, temporary upload dir."""
    return Settings(
        JWT_SECRET_KEY="test-secret-key",
        MONGO_DB="skillora_test",
        UPLOAD_DIR=str(tmp_path / "uploads"),
        UPLOAD_URL_PREFIX="/uploads",
    )


@pytest.fixture
async def mongo_db():
    """Fresh in-memory database with the production indexes."""
    db = AsyncMongoMockClient()["skillora_test"]
    await create_indexes(db)
    yield db


@pytest.fixture
def app(test_settings, mongo_db):
    application = create_app(test_settings)
    application.dependency_overrides[get_mongodb] = lambda: mongo_db
    StorageService(test_settings).ensure_directories()
    return application


@pytest.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for testing FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ================== Helpers ==================

def auth_header(token: str) -> Dict[str, str]:
    """Create authorization header."""
    return {"Authorization": f"Bearer {token}"}


async def register_user(
    client: AsyncClient,
    role: str = "student",
    email: Optional[str] = None,
    password: str = TEST_PASSWORD,
    first_name: str = "Test",
    last_name: str = "User"
) -> Dict[str, Any]:
    """Register a user and return {"token", "user", "headers", "password"}."""
    email = email or f"{role}-{uuid.uuid4().hex[:8]}@skillora.io"
    response = await client.post(
        "/api/auth/register",
        json={
            "firstName": first_name,
            "lastName": last_name,
            "email": email,
            "password": password,
            "role": role
        }
    )
    assert response.status_code == 201, response.text
    data = response.json()
    return {
        "token": data["token"],
        "user": data["user"],
        "headers": auth_header(data["token"]),
        "password": password,
    }


async def create_course(
    client: AsyncClient,
    headers: Dict[str, str],
    **fields
) -> Dict[str, Any]:
    """Create a course through the multipart endpoint and return its JSON."""
    data = {
        "title": "Intro to Python",
        "description": "Learn the basics",
        "category": "programming",
        "level": "beginner",
    }
    data.update(fields)
    response = await client.post(
        "/api/courses",
        headers=headers,
        data=data,
        files={"thumbnail": ("thumb.png", PNG_BYTES, "image/png")}
    )
    assert response.status_code == 201, response.text
    return response.json()


async def create_module(
    client: AsyncClient,
    headers: Dict[str, str],
    course_id: str,
    title: str = "Intro",
    **fields
) -> Dict[str, Any]:
    response = await client.post(
        f"/api/courses/{course_id}/modules",
        headers=headers,
        json={"title": title, **fields}
    )
    assert response.status_code == 201, response.text
    return response.json()


# ================== User Fixtures ==================

@pytest.fixture
async def instructor(async_client: AsyncClient) -> Dict[str, Any]:
    return await register_user(async_client, role="instructor", first_name="Ada", last_name="Lovelace")


@pytest.fixture
async def other_instructor(async_client: AsyncClient) -> Dict[str, Any]:
    return await register_user(async_client, role="instructor", first_name="Alan", last_name="Turing")


@pytest.fixture
async def student(async_client: AsyncClient) -> Dict[str, Any]:
    return await register_user(async_client, role="student", first_name="Grace", last_name="Hopper")


@pytest.fixture
async def other_student(async_client: AsyncClient) -> Dict[str, Any]:
    return await register_user(async_client, role="student", first_name="Linus", last_name="Torvalds")


@pytest.fixture
async def course(async_client: AsyncClient, instructor) -> Dict[str, Any]:
    """A course owned by the instructor fixture."""
    return await create_course(async_client, instructor["headers"])


@pytest.fixture
async def enrolled_course(async_client: AsyncClient, course, student) -> Dict[str, Any]:
    """The course fixture with the student fixture enrolled."""
    response = await async_client.post(
        f"/api/courses/{course['id']}/enroll",
        headers=student["headers"]
    )
    assert response.status_code == 200, response.text
    return course
