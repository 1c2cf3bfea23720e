"""
Module and progress API endpoints.
Module management is limited to the course instructor; progress to enrolled users.
"""
from typing import List
from fastapi import APIRouter, Depends, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from skillora.db.mongodb import get_mongodb
from skillora.models.mongo_models import UserInDB
from skillora.services.module_service import ModuleService
from skillora.services.progress_service import ProgressService
from skillora.schemas.api_schemas import (
    CreateModuleRequest, UpdateModuleRequest, ModuleContentRequest,
    ReorderModulesRequest, ModuleResponse, ProgressResponse,
    CompleteModuleResponse, MessageResponse, ErrorResponse
)
from skillora.api.dependencies import get_current_user


router = APIRouter(prefix="/api/courses", tags=["Modules"])

OWNER_ERRORS = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


@router.post(
    "/{course_id}/modules",
    response_model=ModuleResponse,
    status_code=status.HTTP_201_CREATED,
    responses=OWNER_ERRORS
)
async def create_module(
    course_id: str,
    request: CreateModuleRequest,
    current_user: UserInDB = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Append a module to the end of the course."""
    module = await ModuleService(db).create_module(
        course_id,
        current_user,
        title=request.title,
        description=request.description,
        content=request.content
    )
    return ModuleResponse.from_module(module)


# Declared before /{module_id} so "reorder" is not taken for a module id
@router.put(
    "/{course_id}/modules/reorder",
    response_model=List[ModuleResponse],
    responses={**OWNER_ERRORS, 409: {"model": ErrorResponse}}
)
async def reorder_modules(
    course_id: str,
    request: ReorderModulesRequest,
    current_user: UserInDB = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """
    Reorder modules. moduleIds must list every module of the course exactly once.
    """
    modules = await ModuleService(db).reorder_modules(
        course_id, current_user, request.module_ids
    )
    return [ModuleResponse.from_module(m) for m in modules]


@router.put(
    "/{course_id}/modules/{module_id}",
    response_model=ModuleResponse,
    responses=OWNER_ERRORS
)
async def update_module(
    course_id: str,
    module_id: str,
    request: UpdateModuleRequest,
    current_user: UserInDB = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    module = await ModuleService(db).update_module(
        course_id,
        module_id,
        current_user,
        title=request.title,
        description=request.description,
        content=request.content
    )
    return ModuleResponse.from_module(module)


@router.post(
    "/{course_id}/modules/{module_id}/content",
    response_model=ModuleResponse,
    status_code=status.HTTP_201_CREATED,
    responses=OWNER_ERRORS
)
async def set_module_content(
    course_id: str,
    module_id: str,
    request: ModuleContentRequest,
    current_user: UserInDB = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Replace a module's content block."""
    module = await ModuleService(db).set_module_content(
        course_id,
        module_id,
        current_user,
        content=request.content,
        title=request.title,
        description=request.description
    )
    return ModuleResponse.from_module(module)


@router.delete(
    "/{course_id}/modules/{module_id}",
    response_model=MessageResponse,
    responses=OWNER_ERRORS
)
async def delete_module(
    course_id: str,
    module_id: str,
    current_user: UserInDB = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    await ModuleService(db).delete_module(course_id, module_id, current_user)
    return MessageResponse(message="Module deleted successfully")


# ============ Progress ============

@router.get(
    "/{course_id}/progress",
    response_model=ProgressResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}
)
async def get_progress(
    course_id: str,
    current_user: UserInDB = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Progress of the current user in the course, created empty on first access."""
    progress = await ProgressService(db).get_progress(course_id, current_user)
    return ProgressResponse(
        completed_modules=progress.completed_modules,
        last_accessed=progress.last_accessed
    )


@router.post(
    "/{course_id}/modules/{module_id}/complete",
    response_model=CompleteModuleResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}
)
async def complete_module(
    course_id: str,
    module_id: str,
    current_user: UserInDB = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    progress = await ProgressService(db).complete_module(course_id, module_id, current_user)
    return CompleteModuleResponse(
        message="Module marked as completed",
        completed_modules=progress.completed_modules
    )
