"""
MongoDB document models.
These define the structure of documents in MongoDB collections:
users, courses (with embedded modules) and course_progress.
"""
from pydantic import BaseModel, Field, EmailStr
from typing import Optional, List
from datetime import datetime, timezone
from enum import Enum
import re
import uuid


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


def slugify(title: str) -> str:
    """Lowercase the title and collapse every run of non-alphanumerics to '-'."""
    return re.sub(r"[^a-z0-9]+", "-", title.lower())


def is_valid_id(value: str) -> bool:
    """True if value is a well-formed UUID string."""
    try:
        uuid.UUID(value)
    except (ValueError, TypeError, AttributeError):
        return False
    return True


class UserRole(str, Enum):
    """User roles in the system."""
    STUDENT = "student"
    INSTRUCTOR = "instructor"


class CourseLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class CourseStatus(str, Enum):
    """Stored on every course; no endpoint transitions it."""
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


# ============ Users ============

class UserAuth(BaseModel):
    """Authentication data embedded in user document."""
    password_hash: str
    password_last_changed: datetime


class UserMetadata(BaseModel):
    """User metadata."""
    created_at: datetime
    last_login: Optional[datetime] = None


class UserDocument(BaseModel):
    """
    Complete user document for MongoDB.
    Enrollment is not stored here; it is derived from courses.
    """
    user_id: str = Field(default_factory=_new_id)
    email: EmailStr
    first_name: str
    last_name: str
    role: UserRole
    bio: str = ""
    profile_picture: str = ""
    auth: UserAuth
    metadata: UserMetadata

    class Config:
        use_enum_values = True


class UserInDB(BaseModel):
    """User as stored in database, without credentials."""
    user_id: str
    email: str
    first_name: str
    last_name: str
    role: str
    bio: str = ""
    profile_picture: str = ""
    metadata: dict

    @classmethod
    def from_mongo(cls, doc: dict) -> Optional["UserInDB"]:
        """Create UserInDB from MongoDB document."""
        if doc is None:
            return None
        return cls(
            user_id=doc["user_id"],
            email=doc["email"],
            first_name=doc.get("first_name", ""),
            last_name=doc.get("last_name", ""),
            role=doc["role"],
            bio=doc.get("bio", ""),
            profile_picture=doc.get("profile_picture", ""),
            metadata=doc.get("metadata", {})
        )


# ============ Courses ============

class ModuleContent(BaseModel):
    """Free-text body attached to a module."""
    content: str = ""
    title: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)


class ModuleDocument(BaseModel):
    """
    Module embedded in a course.
    module_id is stable; order is the position in the course's modules array.
    """
    module_id: str = Field(default_factory=_new_id)
    title: str
    description: str = ""
    content: Optional[ModuleContent] = None
    lessons: List[str] = Field(default_factory=list)


class CourseDocument(BaseModel):
    """Complete course document for MongoDB."""
    course_id: str = Field(default_factory=_new_id)
    title: str
    slug: str = ""
    description: str
    category: str
    level: CourseLevel
    thumbnail: str
    status: CourseStatus = CourseStatus.DRAFT
    instructor_id: str
    enrolled_students: List[str] = Field(default_factory=list)
    modules: List[ModuleDocument] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    class Config:
        use_enum_values = True

    def model_post_init(self, __context) -> None:
        if not self.slug:
            self.slug = slugify(self.title)


class CourseInDB(BaseModel):
    """Course as read back from the database."""
    course_id: str
    title: str
    slug: str = ""
    description: str
    category: str
    level: str
    thumbnail: str
    status: str
    instructor_id: str
    enrolled_students: List[str] = Field(default_factory=list)
    modules: List[ModuleDocument] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_mongo(cls, doc: dict) -> Optional["CourseInDB"]:
        """Create CourseInDB from MongoDB document."""
        if doc is None:
            return None
        doc = {k: v for k, v in doc.items() if k != "_id"}
        return cls(**doc)

    def find_module(self, module_id: str) -> Optional[ModuleDocument]:
        for module in self.modules:
            if module.module_id == module_id:
                return module
        return None

    def is_owned_by(self, user_id: str) -> bool:
        return self.instructor_id == user_id


# ============ Progress ============

class CourseProgressDocument(BaseModel):
    """Progress for one (user, course) pair."""
    user_id: str
    course_id: str
    completed_modules: List[str] = Field(default_factory=list)
    last_accessed: datetime = Field(default_factory=_now)
    created_at: datetime = Field(default_factory=_now)

    @classmethod
    def from_mongo(cls, doc: dict) -> Optional["CourseProgressDocument"]:
        if doc is None:
            return None
        return cls(
            user_id=doc["user_id"],
            course_id=doc["course_id"],
            completed_modules=doc.get("completed_modules", []),
            last_accessed=doc["last_accessed"],
            created_at=doc.get("created_at", doc["last_accessed"])
        )
