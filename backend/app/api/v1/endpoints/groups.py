"""
Student group endpoints

A student creates a group, invites 2-4 classmates by enrollment number and
picks a faculty mentor. Invitees accept or reject; members may leave.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import User, UserRole
from app.modules.auth.dependencies import require_roles
from app.schemas.group import (
    GroupCreate,
    GroupResponse,
    GroupDetailResponse,
    MessageResponse,
)
from app.services.group_manager import GroupManager


router = APIRouter()

students_only = require_roles(UserRole.STUDENT)


@router.post("", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
async def create_group(
    group_data: GroupCreate,
    current_user: User = Depends(students_only),
    db: AsyncSession = Depends(get_db)
):
    """Create a group with the caller as creator and invite classmates"""
    group = await GroupManager(db).create_group(
        creator_id=current_user.id,
        name=group_data.name,
        description=group_data.description,
        faculty_id=group_data.faculty_id,
        enrollment_numbers=group_data.enrollment_numbers,
    )
    return GroupResponse.model_validate(group)


@router.get("/my", response_model=GroupDetailResponse)
async def get_my_group(
    current_user: User = Depends(students_only),
    db: AsyncSession = Depends(get_db)
):
    """The caller's group with members, faculty and the caller's status"""
    detail = await GroupManager(db).get_my_group(current_user.id)
    return GroupDetailResponse.model_validate(detail)


@router.post("/{group_id}/invite/accept", response_model=MessageResponse)
async def accept_invite(
    group_id: int,
    current_user: User = Depends(students_only),
    db: AsyncSession = Depends(get_db)
):
    await GroupManager(db).accept_invite(current_user.id, group_id)
    return MessageResponse(message="Invitation accepted")


@router.post("/{group_id}/invite/reject", response_model=MessageResponse)
async def reject_invite(
    group_id: int,
    current_user: User = Depends(students_only),
    db: AsyncSession = Depends(get_db)
):
    await GroupManager(db).reject_invite(current_user.id, group_id)
    return MessageResponse(message="Invitation rejected")


@router.post("/{group_id}/leave", response_model=MessageResponse)
async def leave_group(
    group_id: int,
    current_user: User = Depends(students_only),
    db: AsyncSession = Depends(get_db)
):
    group_deleted = await GroupManager(db).leave_group(current_user.id, group_id)
    message = "Successfully left the group"
    if group_deleted:
        message += "; the group was removed as it has no members left"
    return MessageResponse(message=message)
