"""
User administration endpoints

Admin manages accounts. The teacher list is open to any signed-in user so
students can pick a faculty mentor when forming a group.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.core.database import get_db
from app.models.user import User, UserRole
from app.modules.auth.dependencies import get_current_user, get_current_admin, require_roles
from app.schemas.auth import UserRegister, UserResponse, AdminUserUpdate
from app.schemas.group import MessageResponse
from app.services.user_directory import UserDirectory


router = APIRouter()


@router.get("", response_model=List[UserResponse])
async def list_users(
    current_user: User = Depends(require_roles(UserRole.ADMIN, UserRole.COORDINATOR)),
    db: AsyncSession = Depends(get_db)
):
    users = await UserDirectory(db).list_users()
    return [UserResponse.model_validate(u) for u in users]


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserRegister,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create an account of any role (admin only)"""
    user = await UserDirectory(db).register_user(user_data)
    return UserResponse.model_validate(user)


@router.get("/teachers", response_model=List[UserResponse])
async def list_teachers(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    teachers = await UserDirectory(db).list_by_role(UserRole.TEACHER)
    return [UserResponse.model_validate(t) for t in teachers]


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    changes: AdminUserUpdate,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    user = await UserDirectory(db).admin_update_user(user_id, changes)
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    await UserDirectory(db).delete_user(user_id)
    return MessageResponse(message="User deleted successfully")
