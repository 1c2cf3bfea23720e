"""
Progress service.
One document per (user, course). Created on first access; completed module
ids only ever accumulate.
"""
from datetime import datetime, timezone
from typing import Optional
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from skillora.models.mongo_models import CourseInDB, CourseProgressDocument, UserInDB
from skillora.services.course_service import CourseService
from skillora.core.exceptions import ForbiddenError, NotFoundError
from skillora.core.logging import audit_log


class ProgressService:
    """Service for per-student course progress."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.progress = db.course_progress
        self.course_service = CourseService(db)

    async def _enrolled_course(self, course_id: str, user: UserInDB) -> CourseInDB:
        course = await self.course_service.get_course(course_id)
        if user.user_id not in course.enrolled_students:
            raise ForbiddenError("You are not enrolled in this course")
        return course

    async def _upsert(
        self,
        user_id: str,
        course_id: str,
        completed_module: Optional[str] = None
    ) -> CourseProgressDocument:
        """
        Touch the (user, course) document, creating it if absent, and
        optionally add a completed module id.
        The unique (user_id, course_id) index keeps it to one document.
        """
        now = datetime.now(timezone.utc)
        update = {
            "$set": {"last_accessed": now},
            "$setOnInsert": {"created_at": now},
        }
        if completed_module:
            update["$addToSet"] = {"completed_modules": completed_module}
        else:
            update["$setOnInsert"]["completed_modules"] = []
        selector = {"user_id": user_id, "course_id": course_id}
        try:
            await self.progress.update_one(selector, update, upsert=True)
        except DuplicateKeyError:
            # A concurrent request inserted the document first; it exists now
            await self.progress.update_one(selector, update, upsert=True)
        doc = await self.progress.find_one({"user_id": user_id, "course_id": course_id})
        return CourseProgressDocument.from_mongo(doc)

    async def get_progress(self, course_id: str, user: UserInDB) -> CourseProgressDocument:
        """Fetch progress, creating an empty document on first access."""
        await self._enrolled_course(course_id, user)
        return await self._upsert(user.user_id, course_id)

    async def complete_module(
        self,
        course_id: str,
        module_id: str,
        user: UserInDB
    ) -> CourseProgressDocument:
        """Mark a module complete. Completing it again changes nothing."""
        course = await self._enrolled_course(course_id, user)
        if not course.find_module(module_id):
            raise NotFoundError("Module not found")

        existing = await self.progress.find_one(
            {"user_id": user.user_id, "course_id": course_id, "completed_modules": module_id},
            {"_id": 1}
        )
        progress = await self._upsert(user.user_id, course_id, completed_module=module_id)

        audit_log.log_module_completed(
            user.user_id, course_id, module_id, already_completed=existing is not None
        )
        return progress
