"""
Authentication service.
Handles registration, login, profile and password management against MongoDB.
"""
from datetime import datetime, timezone
from typing import Optional
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from skillora.models.mongo_models import UserDocument, UserInDB, UserRole, UserAuth, UserMetadata
from skillora.core.config import Settings
from skillora.core.exceptions import ConflictError, NotFoundError, UnauthenticatedError
from skillora.core.security import hash_password, verify_password, create_access_token
from skillora.core.logging import audit_log


INVALID_CREDENTIALS = "Invalid credentials"


class AuthService:
    """Service for authentication operations."""

    def __init__(self, db: AsyncIOMotorDatabase, settings: Settings):
        self.db = db
        self.settings = settings
        self.users = db.users

    async def get_user_by_email(self, email: str) -> Optional[dict]:
        """Get a raw user document (credentials included) by email."""
        return await self.users.find_one({"email": email.lower()})

    async def get_user_by_id(self, user_id: str) -> Optional[UserInDB]:
        """Get a user by user_id, without credentials."""
        doc = await self.users.find_one({"user_id": user_id}, {"auth": 0})
        return UserInDB.from_mongo(doc)

    async def get_enrolled_course_ids(self, user_id: str) -> list[str]:
        """Courses whose roster contains the user; the roster is authoritative."""
        cursor = self.db.courses.find(
            {"enrolled_students": user_id},
            {"course_id": 1, "created_at": 1}
        ).sort("created_at", 1)
        return [doc["course_id"] async for doc in cursor]

    def issue_token(self, user: UserInDB) -> str:
        return create_access_token(self.settings, user_id=user.user_id, role=user.role)

    async def register(
        self,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        role: str
    ) -> tuple[str, UserInDB]:
        """
        Create a new account.
        Returns (token, user). Raises ConflictError if the email is taken.
        """
        email = email.lower()
        existing = await self.users.find_one({"email": email})
        if existing:
            raise ConflictError("User already exists")

        now = datetime.now(timezone.utc)
        user_doc = UserDocument(
            email=email,
            first_name=first_name,
            last_name=last_name,
            role=UserRole(role),
            auth=UserAuth(
                password_hash=hash_password(password),
                password_last_changed=now
            ),
            metadata=UserMetadata(created_at=now)
        )

        try:
            await self.users.insert_one(user_doc.model_dump())
        except DuplicateKeyError:
            raise ConflictError("User already exists")
        audit_log.log_registration(user_doc.user_id, user_doc.role)

        user = await self.get_user_by_id(user_doc.user_id)
        return self.issue_token(user), user

    async def authenticate_user(self, email: str, password: str) -> Optional[UserInDB]:
        """
        Authenticate a user with email and password.
        Returns the user if authentication succeeds, None otherwise.
        """
        doc = await self.get_user_by_email(email)

        if not doc:
            audit_log.info("auth.login.user_not_found", details={"email": email})
            return None

        if not verify_password(password, doc["auth"]["password_hash"]):
            audit_log.log_login(doc["user_id"], doc["role"], success=False)
            return None

        now = datetime.now(timezone.utc)
        await self.users.update_one(
            {"user_id": doc["user_id"]},
            {"$set": {"metadata.last_login": now}}
        )

        audit_log.log_login(doc["user_id"], doc["role"], success=True)
        return await self.get_user_by_id(doc["user_id"])

    async def login(self, email: str, password: str) -> tuple[str, UserInDB]:
        """
        Full login flow: authenticate and return (token, user).
        Unknown email and wrong password fail identically.
        """
        user = await self.authenticate_user(email, password)

        if not user:
            raise UnauthenticatedError(INVALID_CREDENTIALS)

        return self.issue_token(user), user

    async def update_profile(
        self,
        user_id: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        bio: Optional[str] = None
    ) -> UserInDB:
        """Merge the non-empty fields into the profile."""
        updates = {
            field: value
            for field, value in (
                ("first_name", first_name),
                ("last_name", last_name),
                ("bio", bio),
            )
            if value
        }

        if updates:
            result = await self.users.update_one({"user_id": user_id}, {"$set": updates})
            if result.matched_count == 0:
                raise NotFoundError("User not found")
            audit_log.info(
                "auth.profile.updated",
                actor_id=user_id,
                details={"fields": sorted(updates)}
            )

        user = await self.get_user_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    async def change_password(
        self,
        user_id: str,
        current_password: str,
        new_password: str
    ) -> None:
        """
        Change a user's password after re-verifying the current one.
        """
        doc = await self.users.find_one({"user_id": user_id})

        if not doc:
            raise NotFoundError("User not found")

        if not verify_password(current_password, doc["auth"]["password_hash"]):
            audit_log.warning(
                "auth.password.change_failed",
                actor_id=user_id,
                details={"reason": "incorrect_current_password"}
            )
            raise UnauthenticatedError("Current password is incorrect")

        await self.users.update_one(
            {"user_id": user_id},
            {
                "$set": {
                    "auth.password_hash": hash_password(new_password),
                    "auth.password_last_changed": datetime.now(timezone.utc),
                }
            }
        )

        audit_log.log_password_change(user_id, doc["role"])
