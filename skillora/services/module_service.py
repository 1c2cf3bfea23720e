"""
Module service.
Modules are embedded in their course; only the course instructor may change them.
A module's id never changes; its order is its position in the modules array.
"""
from datetime import datetime, timezone
from typing import Optional
from motor.motor_asyncio import AsyncIOMotorDatabase

from skillora.models.mongo_models import CourseInDB, ModuleContent, ModuleDocument, UserInDB
from skillora.services.course_service import CourseService
from skillora.core.exceptions import BadRequestError, ConflictError, NotFoundError
from skillora.core.logging import audit_log


class ModuleService:
    """Service for instructor module management."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.courses = db.courses
        self.course_service = CourseService(db)

    @staticmethod
    def _require_module(course: CourseInDB, module_id: str) -> ModuleDocument:
        module = course.find_module(module_id)
        if not module:
            raise NotFoundError("Module not found")
        return module

    @staticmethod
    def _require_title(title: Optional[str]) -> str:
        if not title or not title.strip():
            raise BadRequestError("Title is required")
        return title.strip()

    async def _replace_module(self, course_id: str, module: ModuleDocument) -> None:
        await self.courses.update_one(
            {"course_id": course_id, "modules.module_id": module.module_id},
            {"$set": {
                "updated_at": datetime.now(timezone.utc),
                "modules.$": module.model_dump(),
            }}
        )

    async def create_module(
        self,
        course_id: str,
        user: UserInDB,
        title: Optional[str],
        description: Optional[str] = None,
        content: Optional[str] = None
    ) -> ModuleDocument:
        """Append a new module to the end of the course."""
        title = self._require_title(title)
        await self.course_service.get_owned_course(course_id, user, action="add modules to")

        module = ModuleDocument(
            title=title,
            description=description or "",
            content=ModuleContent(content=content) if content else None
        )
        await self.courses.update_one(
            {"course_id": course_id},
            {
                "$push": {"modules": module.model_dump()},
                "$set": {"updated_at": datetime.now(timezone.utc)},
            }
        )

        audit_log.log_module_event("created", user.user_id, course_id, module.module_id)
        return module

    async def update_module(
        self,
        course_id: str,
        module_id: str,
        user: UserInDB,
        title: Optional[str],
        description: Optional[str] = None,
        content: Optional[str] = None
    ) -> ModuleDocument:
        """
        Replace title and description.
        Content is merged: an existing block keeps its creation time.
        """
        title = self._require_title(title)
        course = await self.course_service.get_owned_course(course_id, user, action="update")
        module = self._require_module(course, module_id)

        module.title = title
        module.description = description or ""
        if content:
            if module.content is not None:
                module.content = module.content.model_copy(update={"content": content})
            else:
                module.content = ModuleContent(content=content)

        await self._replace_module(course_id, module)
        audit_log.log_module_event("updated", user.user_id, course_id, module_id)
        return module

    async def set_module_content(
        self,
        course_id: str,
        module_id: str,
        user: UserInDB,
        content: str,
        title: Optional[str] = None,
        description: Optional[str] = None
    ) -> ModuleDocument:
        """Replace the module's content block, stamped now."""
        course = await self.course_service.get_owned_course(
            course_id, user, action="add content to"
        )
        module = self._require_module(course, module_id)

        module.content = ModuleContent(content=content, title=title, description=description)

        await self._replace_module(course_id, module)
        audit_log.log_module_event("content", user.user_id, course_id, module_id)
        return module

    async def delete_module(self, course_id: str, module_id: str, user: UserInDB) -> None:
        """
        Remove the module.
        Completion records that reference it are not touched.
        """
        course = await self.course_service.get_owned_course(
            course_id, user, action="delete modules from"
        )
        self._require_module(course, module_id)

        await self.courses.update_one(
            {"course_id": course_id},
            {
                "$pull": {"modules": {"module_id": module_id}},
                "$set": {"updated_at": datetime.now(timezone.utc)},
            }
        )
        audit_log.log_module_event("deleted", user.user_id, course_id, module_id)

    async def reorder_modules(
        self,
        course_id: str,
        user: UserInDB,
        module_ids: list[str]
    ) -> list[ModuleDocument]:
        """
        Reorder modules to match module_ids.
        module_ids must be a permutation of the course's module ids.
        """
        course = await self.course_service.get_owned_course(course_id, user, action="update")
        by_id = {m.module_id: m for m in course.modules}

        if len(set(module_ids)) != len(module_ids):
            raise BadRequestError("Module ids must not repeat")
        unknown = [mid for mid in module_ids if mid not in by_id]
        if unknown:
            raise BadRequestError(f"Modules do not belong to this course: {', '.join(unknown)}")
        missing = [mid for mid in by_id if mid not in set(module_ids)]
        if missing:
            raise BadRequestError(f"Module order is missing modules: {', '.join(missing)}")

        reordered = [by_id[mid] for mid in module_ids]

        # Guard against modules being added or removed since the read
        guard = {"course_id": course_id, "modules": {"$size": len(reordered)}}
        if module_ids:
            guard["modules.module_id"] = {"$all": module_ids}
        result = await self.courses.update_one(
            guard,
            {"$set": {
                "modules": [m.model_dump() for m in reordered],
                "updated_at": datetime.now(timezone.utc),
            }}
        )
        if result.matched_count == 0:
            raise ConflictError("Course modules changed during reorder, please retry")

        audit_log.log_module_event(
            "reordered",
            user.user_id,
            course_id,
            details={"order": module_ids}
        )
        return reordered
