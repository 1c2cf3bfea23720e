"""
Course service.
Handles the catalog, course CRUD, enrollment and instructor dashboards.

Enrollment is stored only on the course (enrolled_students). A student's
enrolled courses are derived by query, so enrolling is a single-document write.
"""
from datetime import datetime, timezone
from typing import Optional, Iterable
import re
from motor.motor_asyncio import AsyncIOMotorDatabase

from skillora.models.mongo_models import (
    CourseDocument, CourseInDB, CourseStatus, UserInDB, UserRole,
    is_valid_id, slugify
)
from skillora.schemas.api_schemas import (
    CourseResponse, InstructorSummary, EnrolledCourseSummary,
    InstructorCourseSummary, StudentSummary
)
from skillora.core.exceptions import (
    BadRequestError, ConflictError, ForbiddenError, NotFoundError
)
from skillora.core.logging import audit_log


class CourseService:
    """Service for course and enrollment operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.courses = db.courses
        self.users = db.users

    # ---------- lookups ----------

    async def get_course(self, course_id: str) -> CourseInDB:
        """
        Load a course by id.
        Malformed ids are a BadRequestError, unknown ones a NotFoundError.
        """
        if not is_valid_id(course_id):
            raise BadRequestError("Invalid course ID format")
        doc = await self.courses.find_one({"course_id": course_id})
        if not doc:
            raise NotFoundError("Course not found")
        return CourseInDB.from_mongo(doc)

    async def get_owned_course(self, course_id: str, user: UserInDB, action: str = "modify") -> CourseInDB:
        """Load a course and require that user is its instructor."""
        course = await self.get_course(course_id)
        if not course.is_owned_by(user.user_id):
            audit_log.warning(
                "course.ownership.denied",
                actor_id=user.user_id,
                actor_role=user.role,
                target_type="course",
                target_id=course_id,
                details={"action": action}
            )
            raise ForbiddenError(f"Not authorized to {action} this course")
        return course

    async def _instructor_summaries(
        self,
        instructor_ids: Iterable[str],
        include_bio: bool = False
    ) -> dict[str, InstructorSummary]:
        ids = list(set(instructor_ids))
        if not ids:
            return {}
        cursor = self.users.find({"user_id": {"$in": ids}}, {"auth": 0})
        summaries = {}
        async for doc in cursor:
            summaries[doc["user_id"]] = InstructorSummary(
                id=doc["user_id"],
                first_name=doc.get("first_name", ""),
                last_name=doc.get("last_name", ""),
                profile_picture=doc.get("profile_picture", ""),
                bio=doc.get("bio", "") if include_bio else None
            )
        return summaries

    # ---------- catalog ----------

    async def list_courses(
        self,
        category: Optional[str] = None,
        level: Optional[str] = None,
        search: Optional[str] = None
    ) -> list[CourseResponse]:
        """
        List courses, newest first.
        Status is not filtered: drafts and archived courses are listed too.
        """
        query: dict = {}
        if category:
            query["category"] = category
        if level:
            query["level"] = level
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query["$or"] = [{"title": pattern}, {"description": pattern}]

        courses = [
            CourseInDB.from_mongo(doc)
            async for doc in self.courses.find(query).sort("created_at", -1)
        ]
        instructors = await self._instructor_summaries(c.instructor_id for c in courses)
        return [
            CourseResponse.from_course(c, instructors.get(c.instructor_id))
            for c in courses
        ]

    async def get_course_detail(self, course_id: str) -> CourseResponse:
        course = await self.get_course(course_id)
        instructors = await self._instructor_summaries([course.instructor_id], include_bio=True)
        return CourseResponse.from_course(course, instructors.get(course.instructor_id))

    async def to_response(self, course: CourseInDB) -> CourseResponse:
        instructors = await self._instructor_summaries([course.instructor_id])
        return CourseResponse.from_course(course, instructors.get(course.instructor_id))

    # ---------- CRUD ----------

    @staticmethod
    def clean_course_fields(**fields: Optional[str]) -> dict[str, str]:
        """
        Strip the given text fields; each one must be non-blank.
        Raises BadRequestError naming the first blank field.
        """
        cleaned = {}
        for field, value in fields.items():
            if not value or not value.strip():
                raise BadRequestError(f"Course {field} is required")
            cleaned[field] = value.strip()
        return cleaned

    async def create_course(
        self,
        instructor: UserInDB,
        title: str,
        description: str,
        category: str,
        level: str,
        thumbnail: str,
        status: str = CourseStatus.DRAFT.value
    ) -> CourseInDB:
        """Create a course owned by the given instructor."""
        fields = self.clean_course_fields(title=title, description=description, category=category)

        course_doc = CourseDocument(
            title=fields["title"],
            description=fields["description"],
            category=fields["category"],
            level=level,
            thumbnail=thumbnail,
            status=status,
            instructor_id=instructor.user_id
        )
        await self.courses.insert_one(course_doc.model_dump())

        audit_log.log_course_event(
            "created",
            instructor.user_id,
            course_doc.course_id,
            details={"title": course_doc.title}
        )
        return await self.get_course(course_doc.course_id)

    async def update_course(self, course_id: str, user: UserInDB, updates: dict) -> CourseInDB:
        """
        Merge the given fields into the course.
        Only title, description, category and level reach this point.
        """
        await self.get_owned_course(course_id, user, action="update")

        updates = {k: v for k, v in updates.items() if v is not None}
        text_fields = {k: updates[k] for k in ("title", "description", "category") if k in updates}
        updates.update(self.clean_course_fields(**text_fields))
        if "title" in updates:
            updates["slug"] = slugify(updates["title"])
        updates["updated_at"] = datetime.now(timezone.utc)

        await self.courses.update_one({"course_id": course_id}, {"$set": updates})

        audit_log.log_course_event(
            "updated",
            user.user_id,
            course_id,
            details={"fields": sorted(k for k in updates if k != "updated_at")}
        )
        return await self.get_course(course_id)

    async def delete_course(self, course_id: str, user: UserInDB) -> None:
        """Delete the course. Progress documents for it are left in place."""
        await self.get_owned_course(course_id, user, action="delete")
        await self.courses.delete_one({"course_id": course_id})
        audit_log.log_course_event("deleted", user.user_id, course_id)

    # ---------- enrollment ----------

    @staticmethod
    def is_enrolled(course: CourseInDB, user: Optional[UserInDB]) -> bool:
        """True iff user is a student on the course roster; never raises."""
        if user is None or user.role != UserRole.STUDENT.value:
            return False
        return user.user_id in course.enrolled_students

    async def enrollment_status(self, course_id: str, user: UserInDB) -> bool:
        course = await self.get_course(course_id)
        return self.is_enrolled(course, user)

    async def enroll(self, course_id: str, user: UserInDB) -> None:
        """
        Add the student to the course roster.
        The conditional update makes concurrent duplicates resolve to one success.
        """
        if user.role == UserRole.INSTRUCTOR.value:
            raise ForbiddenError("Instructors cannot enroll in courses")

        course = await self.get_course(course_id)
        if user.user_id in course.enrolled_students:
            raise ConflictError("Already enrolled in this course")

        result = await self.courses.update_one(
            {"course_id": course_id, "enrolled_students": {"$ne": user.user_id}},
            {"$addToSet": {"enrolled_students": user.user_id}}
        )
        if result.modified_count == 0:
            # Either the student got in first or the course is gone
            if not await self.courses.find_one({"course_id": course_id}, {"_id": 1}):
                raise NotFoundError("Course not found")
            raise ConflictError("Already enrolled in this course")

        audit_log.log_enrollment(user.user_id, course_id)

    async def list_enrolled(self, user: UserInDB) -> list[EnrolledCourseSummary]:
        """Summaries of the courses whose roster contains the user."""
        courses = [
            CourseInDB.from_mongo(doc)
            async for doc in self.courses.find({"enrolled_students": user.user_id}).sort("created_at", 1)
        ]
        if not courses:
            return []

        progress = {
            doc["course_id"]: doc.get("last_accessed")
            async for doc in self.db.course_progress.find({
                "user_id": user.user_id,
                "course_id": {"$in": [c.course_id for c in courses]}
            })
        }
        fallback = user.metadata.get("last_login") or datetime.now(timezone.utc)

        return [
            EnrolledCourseSummary(
                id=c.course_id,
                title=c.title,
                thumbnail=c.thumbnail,
                description=c.description,
                last_accessed=progress.get(c.course_id) or fallback
            )
            for c in courses
        ]

    # ---------- instructor views ----------

    async def _owned_courses(self, instructor_id: str) -> list[CourseInDB]:
        cursor = self.courses.find({"instructor_id": instructor_id}).sort("created_at", 1)
        return [CourseInDB.from_mongo(doc) async for doc in cursor]

    async def list_instructor_courses(self, user: UserInDB) -> list[InstructorCourseSummary]:
        return [
            InstructorCourseSummary(
                id=c.course_id,
                title=c.title,
                thumbnail=c.thumbnail,
                category=c.category,
                status=c.status,
                students=len(c.enrolled_students)
            )
            for c in await self._owned_courses(user.user_id)
        ]

    async def list_instructor_students(self, user: UserInDB) -> list[StudentSummary]:
        """Every student enrolled in any owned course, once each."""
        student_ids: list[str] = []
        seen = set()
        for course in await self._owned_courses(user.user_id):
            for student_id in course.enrolled_students:
                if student_id not in seen:
                    seen.add(student_id)
                    student_ids.append(student_id)

        if not student_ids:
            return []

        docs = {
            doc["user_id"]: doc
            async for doc in self.users.find({"user_id": {"$in": student_ids}}, {"auth": 0})
        }
        return [
            StudentSummary(
                id=sid,
                first_name=docs[sid].get("first_name", ""),
                last_name=docs[sid].get("last_name", ""),
                email=docs[sid]["email"],
                profile_picture=docs[sid].get("profile_picture", "")
            )
            for sid in student_ids
            if sid in docs
        ]
