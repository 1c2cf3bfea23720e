"""
Authentication API endpoints.
"""
from fastapi import APIRouter, Depends, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from skillora.core.config import Settings
from skillora.db.mongodb import get_mongodb
from skillora.models.mongo_models import UserInDB
from skillora.services.auth_service import AuthService
from skillora.schemas.api_schemas import (
    RegisterRequest, LoginRequest, AuthResponse, UserResponse,
    UpdateProfileRequest, ChangePasswordRequest, MessageResponse,
    ErrorResponse
)
from skillora.api.dependencies import get_current_user, get_settings


router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}}
)
async def register(
    request: RegisterRequest,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),
    settings: Settings = Depends(get_settings)
):
    """
    Create an account and return a JWT token for it.
    """
    auth_service = AuthService(db, settings)
    token, user = await auth_service.register(
        first_name=request.first_name,
        last_name=request.last_name,
        email=request.email,
        password=request.password,
        role=request.role.value
    )
    return AuthResponse(token=token, user=UserResponse.from_user(user))


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"model": ErrorResponse}}
)
async def login(
    request: LoginRequest,
    db: AsyncIOMotorDatabase = Depends(get_mongodb),
    settings: Settings = Depends(get_settings)
):
    """
    Authenticate user and return JWT token.
    """
    auth_service = AuthService(db, settings)
    token, user = await auth_service.login(request.email, request.password)
    return AuthResponse(token=token, user=UserResponse.from_user(user))


@router.get(
    "/me",
    response_model=UserResponse,
    responses={401: {"model": ErrorResponse}}
)
async def me(
    current_user: UserInDB = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongodb),
    settings: Settings = Depends(get_settings)
):
    """Current user, with the ids of the courses they are enrolled in."""
    auth_service = AuthService(db, settings)
    enrolled = await auth_service.get_enrolled_course_ids(current_user.user_id)
    return UserResponse.from_user(current_user, enrolled)


@router.put(
    "/profile",
    response_model=UserResponse,
    responses={401: {"model": ErrorResponse}}
)
async def update_profile(
    request: UpdateProfileRequest,
    current_user: UserInDB = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongodb),
    settings: Settings = Depends(get_settings)
):
    auth_service = AuthService(db, settings)
    user = await auth_service.update_profile(
        current_user.user_id,
        first_name=request.first_name,
        last_name=request.last_name,
        bio=request.bio
    )
    enrolled = await auth_service.get_enrolled_course_ids(user.user_id)
    return UserResponse.from_user(user, enrolled)


@router.put(
    "/password",
    response_model=MessageResponse,
    responses={401: {"model": ErrorResponse}}
)
async def change_password(
    request: ChangePasswordRequest,
    current_user: UserInDB = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongodb),
    settings: Settings = Depends(get_settings)
):
    """
    Change the current user's password.
    """
    auth_service = AuthService(db, settings)
    await auth_service.change_password(
        user_id=current_user.user_id,
        current_password=request.current_password,
        new_password=request.new_password
    )
    return MessageResponse(message="Password updated successfully")
