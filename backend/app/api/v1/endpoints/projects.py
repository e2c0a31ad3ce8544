"""
Student project endpoints

Topic selection (individual or on behalf of a group), project listings,
progress tracking and assessments.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.core.database import get_db
from app.models.user import User, UserRole
from app.modules.auth.dependencies import get_current_user, require_roles
from app.schemas.project import (
    ProjectCreate,
    ProjectDetailResponse,
    ProgressUpdate,
    AssessmentCreate,
    AssessmentResponse,
)
from app.services.allocation_engine import AllocationEngine
from app.services.assessment_service import AssessmentService


router = APIRouter()


@router.post("", response_model=ProjectDetailResponse, status_code=status.HTTP_201_CREATED)
async def select_topic(
    selection: ProjectCreate,
    current_user: User = Depends(require_roles(UserRole.STUDENT)),
    db: AsyncSession = Depends(get_db)
):
    """
    Select an approved topic.

    A student in a group must be its creator; every accepted member then
    receives a project on the topic. Returns the caller's own project.
    """
    caller_id = current_user.id
    projects = await AllocationEngine(db).select_topic(caller_id, selection.topic_id)
    own = next(p for p in projects if p.student_id == caller_id)
    return ProjectDetailResponse.model_validate(own)


@router.get("", response_model=List[ProjectDetailResponse])
async def list_projects(
    current_user: User = Depends(require_roles(UserRole.TEACHER, UserRole.COORDINATOR, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db)
):
    projects = await AllocationEngine(db).list_projects()
    return [ProjectDetailResponse.model_validate(p) for p in projects]


@router.get("/my", response_model=List[ProjectDetailResponse])
async def list_my_projects(
    current_user: User = Depends(require_roles(UserRole.STUDENT)),
    db: AsyncSession = Depends(get_db)
):
    projects = await AllocationEngine(db).get_student_projects(current_user.id)
    return [ProjectDetailResponse.model_validate(p) for p in projects]


@router.get("/teacher", response_model=List[ProjectDetailResponse])
async def list_teacher_projects(
    current_user: User = Depends(require_roles(UserRole.TEACHER)),
    db: AsyncSession = Depends(get_db)
):
    """Projects on topics submitted by the current teacher"""
    projects = await AllocationEngine(db).list_projects_for_teacher(current_user.id)
    return [ProjectDetailResponse.model_validate(p) for p in projects]


@router.put("/{project_id}/progress", response_model=ProjectDetailResponse)
async def update_progress(
    project_id: int,
    update: ProgressUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    project = await AllocationEngine(db).update_progress(project_id, update.progress, current_user.id)
    return ProjectDetailResponse.model_validate(project)


@router.post("/{project_id}/assess", response_model=AssessmentResponse)
async def assess_project(
    project_id: int,
    assessment: AssessmentCreate,
    current_user: User = Depends(require_roles(UserRole.TEACHER, UserRole.COORDINATOR)),
    db: AsyncSession = Depends(get_db)
):
    result = await AssessmentService(db).assess_project(
        project_id, current_user.id, assessment.score, assessment.feedback
    )
    return AssessmentResponse.model_validate(result)


@router.get("/{project_id}/assessments", response_model=List[AssessmentResponse])
async def list_assessments(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    assessments = await AssessmentService(db).list_assessments(project_id, current_user.id)
    return [AssessmentResponse.model_validate(a) for a in assessments]
