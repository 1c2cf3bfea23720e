"""
Course API endpoints.
Catalog, course CRUD, enrollment, instructor dashboards and uploads.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from skillora.core.config import Settings
from skillora.core.logging import audit_log
from skillora.db.mongodb import get_mongodb
from skillora.models.mongo_models import CourseLevel, CourseStatus, UserInDB
from skillora.services.course_service import CourseService
from skillora.services.storage_service import StorageService, COURSE_THUMBNAILS, MODULE_CONTENT
from skillora.schemas.api_schemas import (
    CourseResponse, UpdateCourseRequest, EnrollmentStatusResponse,
    EnrolledCourseSummary, InstructorCourseSummary, StudentSummary,
    MessageResponse, UploadResponse, ErrorResponse
)
from skillora.api.dependencies import get_current_user, get_settings, require_instructor


router = APIRouter(prefix="/api/courses", tags=["Courses"])


@router.get("", response_model=List[CourseResponse])
async def list_courses(
    category: Optional[str] = None,
    level: Optional[CourseLevel] = None,
    search: Optional[str] = None,
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """
    List every course, newest first.
    Drafts and archived courses are included.
    """
    service = CourseService(db)
    return await service.list_courses(
        category=category,
        level=level.value if level else None,
        search=search
    )


@router.get("/enrolled", response_model=List[EnrolledCourseSummary])
async def list_enrolled_courses(
    current_user: UserInDB = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Courses the current user is enrolled in."""
    return await CourseService(db).list_enrolled(current_user)


@router.get(
    "/instructor",
    response_model=List[InstructorCourseSummary],
    responses={403: {"model": ErrorResponse}}
)
async def list_instructor_courses(
    current_user: UserInDB = Depends(require_instructor),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Courses owned by the current instructor, with student counts."""
    return await CourseService(db).list_instructor_courses(current_user)


@router.get(
    "/students/instructor",
    response_model=List[StudentSummary],
    responses={403: {"model": ErrorResponse}}
)
async def list_instructor_students(
    current_user: UserInDB = Depends(require_instructor),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Students across all of the instructor's courses, each listed once."""
    return await CourseService(db).list_instructor_students(current_user)


@router.post(
    "/content/upload",
    response_model=UploadResponse,
    responses={400: {"model": ErrorResponse}}
)
async def upload_content(
    file: Optional[UploadFile] = File(None),
    current_user: UserInDB = Depends(get_current_user),
    settings: Settings = Depends(get_settings)
):
    """Store a content file and return the URL it is served from."""
    storage = StorageService(settings)
    file_url = await storage.save(file, MODULE_CONTENT, "file")
    audit_log.log_upload(current_user.user_id, MODULE_CONTENT, file_url)
    return UploadResponse(message="File uploaded successfully", file_url=file_url)


@router.get(
    "/{course_id}",
    response_model=CourseResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}
)
async def get_course(
    course_id: str,
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    return await CourseService(db).get_course_detail(course_id)


@router.post(
    "",
    response_model=CourseResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}}
)
async def create_course(
    title: str = Form(...),
    description: str = Form(...),
    category: str = Form(...),
    level: CourseLevel = Form(...),
    status_: CourseStatus = Form(CourseStatus.DRAFT, alias="status"),
    thumbnail: Optional[UploadFile] = File(None),
    current_user: UserInDB = Depends(require_instructor),
    db: AsyncIOMotorDatabase = Depends(get_mongodb),
    settings: Settings = Depends(get_settings)
):
    """
    Create a course from a multipart form.
    The thumbnail image is stored on disk and referenced by URL.
    """
    service = CourseService(db)
    # Reject blank fields before anything is written to disk
    fields = service.clean_course_fields(title=title, description=description, category=category)

    storage = StorageService(settings)
    thumbnail_url = await storage.save_image(thumbnail, COURSE_THUMBNAILS, "thumbnail")
    audit_log.log_upload(current_user.user_id, COURSE_THUMBNAILS, thumbnail_url)

    course = await service.create_course(
        instructor=current_user,
        title=fields["title"],
        description=fields["description"],
        category=fields["category"],
        level=level.value,
        thumbnail=thumbnail_url,
        status=status_.value
    )
    return await service.to_response(course)


@router.put(
    "/{course_id}",
    response_model=CourseResponse,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse}
    }
)
async def update_course(
    course_id: str,
    request: UpdateCourseRequest,
    current_user: UserInDB = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Merge the given fields into a course the current user owns."""
    service = CourseService(db)
    updates = request.model_dump(exclude_unset=True)
    if updates.get("level") is not None:
        updates["level"] = CourseLevel(updates["level"]).value
    course = await service.update_course(course_id, current_user, updates)
    return await service.to_response(course)


@router.delete(
    "/{course_id}",
    response_model=MessageResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}
)
async def delete_course(
    course_id: str,
    current_user: UserInDB = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    await CourseService(db).delete_course(course_id, current_user)
    return MessageResponse(message="Course deleted successfully")


@router.post(
    "/{course_id}/enroll",
    response_model=MessageResponse,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse}
    }
)
async def enroll(
    course_id: str,
    current_user: UserInDB = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Enroll the current student in a course."""
    await CourseService(db).enroll(course_id, current_user)
    return MessageResponse(message="Successfully enrolled in course")


@router.get(
    "/{course_id}/enrollment",
    response_model=EnrollmentStatusResponse,
    responses={404: {"model": ErrorResponse}}
)
async def enrollment_status(
    course_id: str,
    current_user: UserInDB = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    enrolled = await CourseService(db).enrollment_status(course_id, current_user)
    return EnrollmentStatusResponse(enrolled=enrolled)
