"""
Authentication dependencies for FastAPI.
Provides JWT token validation and role-based access control.
"""
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional, List

from skillora.core.config import Settings
from skillora.core.security import decode_token
from skillora.db.mongodb import get_mongodb
from skillora.models.mongo_models import UserInDB


# auto_error=False so a missing header is a 401 rather than FastAPI's default
security = HTTPBearer(auto_error=False)

NOT_AUTHORIZED = "Not authorized to access this route"


def get_settings(request: Request) -> Settings:
    """Dependency that provides the settings the app was built with."""
    return request.app.state.settings


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=NOT_AUTHORIZED,
        headers={"WWW-Authenticate": "Bearer"}
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
) -> UserInDB:
    """
    Validate the bearer token and load the user it names.
    Raises 401 if the token is missing, invalid, expired, or names no user.
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized()

    payload = decode_token(settings, credentials.credentials)
    if not payload or not payload.get("sub"):
        raise _unauthorized()

    doc = await db.users.find_one({"user_id": payload["sub"]}, {"auth": 0})
    if not doc:
        raise _unauthorized()

    return UserInDB.from_mongo(doc)


def require_roles(allowed_roles: List[str]):
    """
    Dependency factory for role-based access control.
    Returns a dependency that checks if user has required role.
    """
    async def role_checker(
        current_user: UserInDB = Depends(get_current_user)
    ) -> UserInDB:
        if current_user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"User role {current_user.role} is not authorized to access this route"
            )
        return current_user

    return role_checker


# Convenience dependencies for specific roles
require_student = require_roles(["student"])
require_instructor = require_roles(["instructor"])
