"""
Assessment Service
Faculty scoring of student projects. Each assessor holds at most one
assessment per project; submitting again replaces the earlier score.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import run_in_transaction, flush_or_conflict
from app.core.exceptions import (
    AuthorizationError,
    ProjectNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from app.core.logging_config import logger
from app.models.project import ProjectAssessment, StudentProject
from app.models.topic import ProjectTopic
from app.models.user import User, UserRole
from app.services.notification_service import NotificationService


class AssessmentService:
    """Service for project assessments"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    async def _load(self, project_id: int, user_id: int):
        project = await self.db.get(StudentProject, project_id, populate_existing=True)
        if not project:
            raise ProjectNotFoundError(project_id)
        user = await self.db.get(User, user_id)
        if not user:
            raise UserNotFoundError(user_id)
        topic = await self.db.get(ProjectTopic, project.topic_id)
        return project, user, topic

    async def assess_project(
        self,
        project_id: int,
        faculty_id: int,
        score: int,
        feedback: Optional[str] = None,
    ) -> ProjectAssessment:
        """
        Record the caller's score for a project.

        Allowed for the teacher who submitted the project's topic and for
        the coordinator.
        """
        if not 0 <= score <= 100:
            raise ValidationError("Score must be between 0 and 100", field="score")

        async def work() -> ProjectAssessment:
            project, assessor, topic = await self._load(project_id, faculty_id)
            is_topic_teacher = assessor.role == UserRole.TEACHER and topic.submitted_by_id == faculty_id
            if not (is_topic_teacher or assessor.role == UserRole.COORDINATOR):
                raise AuthorizationError("Only the topic's teacher or the coordinator can assess this project")

            result = await self.db.execute(
                select(ProjectAssessment)
                .where(
                    ProjectAssessment.project_id == project_id,
                    ProjectAssessment.faculty_id == faculty_id,
                )
                .execution_options(populate_existing=True)
            )
            assessment = result.scalar_one_or_none()
            if assessment:
                assessment.score = score
                assessment.feedback = feedback
            else:
                assessment = ProjectAssessment(
                    project_id=project_id,
                    faculty_id=faculty_id,
                    score=score,
                    feedback=feedback,
                )
                self.db.add(assessment)

            self.notifications.notify(
                project.student_id,
                "Project Assessed",
                f'Your project "{topic.title}" received a score of {score}.',
            )
            await flush_or_conflict(self.db, "Assessment was submitted concurrently")
            return assessment

        assessment = await run_in_transaction(self.db, work, operation="assess_project")
        logger.log_domain_event("project", "assessed", project_id=project_id, assessor_id=faculty_id, score=score)
        return assessment

    async def list_assessments(self, project_id: int, viewer_id: int) -> List[ProjectAssessment]:
        """Assessments of a project, visible to staff involved and to the owner"""
        project, viewer, topic = await self._load(project_id, viewer_id)
        allowed = (
            viewer.role in (UserRole.ADMIN, UserRole.COORDINATOR)
            or project.student_id == viewer_id
            or (viewer.role == UserRole.TEACHER and topic.submitted_by_id == viewer_id)
        )
        if not allowed:
            raise AuthorizationError("You cannot view assessments for this project")

        result = await self.db.execute(
            select(ProjectAssessment)
            .where(ProjectAssessment.project_id == project_id)
            .order_by(ProjectAssessment.created_at)
        )
        return list(result.scalars().all())
