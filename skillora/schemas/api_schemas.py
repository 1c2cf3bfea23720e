"""
Pydantic schemas for API request/response validation.
Wire format is camelCase; populate_by_name lets code build them with snake_case.
"""
from pydantic import BaseModel, ConfigDict, Field, EmailStr
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime

from skillora.models.mongo_models import (
    CourseInDB, CourseLevel, ModuleDocument, UserInDB, UserRole
)


class CamelModel(BaseModel):
    """Base schema serialising field names as camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============ Auth Schemas ============

class RegisterRequest(CamelModel):
    """Registration request body."""
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: UserRole = UserRole.STUDENT


class LoginRequest(CamelModel):
    """Login request body."""
    email: EmailStr
    password: str


class UserResponse(CamelModel):
    """Public profile of a user; never carries credentials."""
    id: str
    first_name: str
    last_name: str
    email: str
    role: str
    bio: str = ""
    profile_picture: str = ""
    enrolled_courses: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    @classmethod
    def from_user(cls, user: UserInDB, enrolled_courses: Optional[List[str]] = None) -> "UserResponse":
        return cls(
            id=user.user_id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            role=user.role,
            bio=user.bio,
            profile_picture=user.profile_picture,
            enrolled_courses=enrolled_courses or [],
            created_at=user.metadata.get("created_at"),
            last_login=user.metadata.get("last_login")
        )


class AuthResponse(CamelModel):
    """Token plus profile, returned by register and login."""
    token: str
    user: UserResponse


class UpdateProfileRequest(CamelModel):
    """Partial profile update; empty or absent fields are ignored."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    bio: Optional[str] = None


class ChangePasswordRequest(CamelModel):
    """Change password request body."""
    current_password: str
    new_password: str = Field(..., min_length=8)


class MessageResponse(CamelModel):
    message: str


# ============ Course Schemas ============

class InstructorSummary(CamelModel):
    id: str
    first_name: str
    last_name: str
    profile_picture: str = ""
    bio: Optional[str] = None


class ModuleContentResponse(CamelModel):
    content: str = ""
    title: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None


class ModuleResponse(CamelModel):
    id: str
    title: str
    description: str = ""
    content: Optional[ModuleContentResponse] = None
    lessons: List[str] = Field(default_factory=list)

    @classmethod
    def from_module(cls, module: ModuleDocument) -> "ModuleResponse":
        content = None
        if module.content is not None:
            content = ModuleContentResponse(**module.content.model_dump())
        return cls(
            id=module.module_id,
            title=module.title,
            description=module.description,
            content=content,
            lessons=module.lessons
        )


class CourseResponse(CamelModel):
    """Full course with populated instructor."""
    id: str
    title: str
    slug: str
    description: str
    category: str
    level: str
    thumbnail: str
    status: str
    instructor: Optional[InstructorSummary] = None
    enrolled_students: List[str] = Field(default_factory=list)
    modules: List[ModuleResponse] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_course(
        cls,
        course: CourseInDB,
        instructor: Optional[InstructorSummary] = None
    ) -> "CourseResponse":
        return cls(
            id=course.course_id,
            title=course.title,
            slug=course.slug,
            description=course.description,
            category=course.category,
            level=course.level,
            thumbnail=course.thumbnail,
            status=course.status,
            instructor=instructor,
            enrolled_students=course.enrolled_students,
            modules=[ModuleResponse.from_module(m) for m in course.modules],
            created_at=course.created_at,
            updated_at=course.updated_at
        )


class UpdateCourseRequest(CamelModel):
    """Merge update; instructor, roster, modules and status are not editable."""
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1)
    level: Optional[CourseLevel] = None


class EnrollmentStatusResponse(CamelModel):
    enrolled: bool


class EnrolledCourseSummary(CamelModel):
    id: str
    title: str
    thumbnail: str
    description: str
    last_accessed: datetime


class InstructorCourseSummary(CamelModel):
    id: str
    title: str
    thumbnail: str
    category: str
    status: str
    students: int


class StudentSummary(CamelModel):
    id: str
    first_name: str
    last_name: str
    email: str
    profile_picture: str = ""


class UploadResponse(CamelModel):
    message: str
    file_url: str


# ============ Module Schemas ============

class CreateModuleRequest(CamelModel):
    """Title is checked in the service so a blank title is a 400, not a 422."""
    title: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None


class UpdateModuleRequest(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None


class ModuleContentRequest(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    content: str = ""


class ReorderModulesRequest(CamelModel):
    module_ids: List[str]


# ============ Progress Schemas ============

class ProgressResponse(CamelModel):
    completed_modules: List[str]
    last_accessed: datetime


class CompleteModuleResponse(CamelModel):
    message: str
    completed_modules: List[str]


# ============ Common Schemas ============

class ErrorResponse(BaseModel):
    """Standard error response."""
    detail: str
