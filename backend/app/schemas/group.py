"""Pydantic schemas for student groups"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime

from app.models.group import MembershipStatus


class GroupCreate(BaseModel):
    """
    Create a group and invite classmates by enrollment number.

    Accepts both snake_case and the camelCase keys used by the web client.
    The invitee count is checked by the group manager so that a wrong count
    is reported as a validation error (400) rather than a schema error.
    """
    name: str = Field(..., min_length=2, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    faculty_id: int = Field(..., alias="facultyId", description="Teacher mentoring the group")
    enrollment_numbers: List[str] = Field(..., alias="enrollmentNumbers")

    model_config = ConfigDict(populate_by_name=True)


class GroupResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    faculty_id: Optional[int] = None
    created_by_id: Optional[int] = None
    max_size: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class GroupMemberResponse(BaseModel):
    """Member of a group with their invitation state"""
    id: int
    first_name: str
    last_name: str
    email: str
    enrollment_number: Optional[str] = None
    status: MembershipStatus
    is_creator: bool = False


class FacultySummary(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class GroupDetailResponse(GroupResponse):
    """The caller's group, as returned by GET /groups/my"""
    my_status: MembershipStatus = Field(..., alias="myStatus")
    members: List[GroupMemberResponse] = []
    faculty: Optional[FacultySummary] = None
    member_count: int = 0

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class MessageResponse(BaseModel):
    success: bool = True
    message: str
