"""Pydantic schemas for student projects and assessments"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime

from app.models.project import ProjectStatus
from app.schemas.topic import TopicResponse


class ProjectCreate(BaseModel):
    """Topic selection by a student or a group creator"""
    topic_id: int = Field(..., alias="topicId")

    model_config = ConfigDict(populate_by_name=True)


class ProjectResponse(BaseModel):
    id: int
    student_id: int
    topic_id: int
    allocation_id: int
    progress: int
    status: ProjectStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class StudentSummary(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    enrollment_number: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ProjectDetailResponse(ProjectResponse):
    topic: Optional[TopicResponse] = None
    student: Optional[StudentSummary] = None


class ProgressUpdate(BaseModel):
    # Range is enforced by the allocation engine (400 on violation)
    progress: int


class AssessmentCreate(BaseModel):
    score: int = Field(..., ge=0, le=100)
    feedback: Optional[str] = Field(None, max_length=5000)


class AssessmentResponse(BaseModel):
    id: int
    project_id: int
    faculty_id: int
    score: int
    feedback: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
