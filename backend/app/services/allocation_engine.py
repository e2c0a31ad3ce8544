"""
Allocation Engine
=================

Binds an approved topic to a student, or to every accepted member of a
group, as a single allocation event.

select_topic runs its checks and inserts in one transaction. The insert of
the TopicAllocation row (unique topic_id) and of each StudentProject row
(unique student_id) is what settles a race between two callers: the loser
fails with ConflictError and nothing of its allocation is kept.
"""

from typing import List

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.database import run_in_transaction, flush_or_conflict
from app.core.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidStateError,
    ProjectNotFoundError,
    TopicNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from app.core.logging_config import logger
from app.models.project import ProjectStatus, StudentProject, TopicAllocation
from app.models.topic import ProjectTopic, TopicStatus
from app.models.user import User, UserRole
from app.services.group_manager import GroupManager, is_group_creator
from app.services.notification_service import NotificationService

TOPIC_TAKEN_MESSAGE = "This topic has already been selected by another student/group"

# Roles that may update progress on any project
PROGRESS_SUPERVISOR_ROLES = (UserRole.COORDINATOR, UserRole.ADMIN)


class AllocationEngine:
    """Service for topic selection and project tracking"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.groups = GroupManager(db)
        self.notifications = NotificationService(db)

    def _project_query(self):
        return (
            select(StudentProject)
            .options(
                selectinload(StudentProject.topic).selectinload(ProjectTopic.submitted_by),
                selectinload(StudentProject.student),
            )
            .execution_options(populate_existing=True)
        )

    # =====================================================
    # TOPIC SELECTION
    # =====================================================

    async def is_topic_allocated(self, topic_id: int) -> bool:
        """True if an allocation event or any project references the topic"""
        result = await self.db.execute(
            select(
                or_(
                    select(TopicAllocation.id).where(TopicAllocation.topic_id == topic_id).exists(),
                    select(StudentProject.id).where(StudentProject.topic_id == topic_id).exists(),
                )
            )
        )
        return bool(result.scalar())

    async def select_topic(self, caller_id: int, topic_id: int) -> List[StudentProject]:
        """
        Allocate an approved topic to the caller, or to the caller's group.

        A caller holding any membership row (pending or accepted) acts for
        that group and must be its creator. Every accepted member then gets
        one project on the topic, or nobody does.

        Raises:
            TopicNotFoundError: topic does not exist
            InvalidStateError: topic is not approved
            ConflictError: topic already allocated, or a participant already
                has a project
            AuthorizationError: caller is in a group but did not create it
        """

        async def work() -> List[int]:
            topic = await self.db.get(ProjectTopic, topic_id, populate_existing=True)
            if not topic:
                raise TopicNotFoundError(topic_id)
            if topic.status != TopicStatus.APPROVED:
                raise InvalidStateError("Topic is not approved", state=topic.status.value)

            if await self.is_topic_allocated(topic_id):
                raise ConflictError(TOPIC_TAKEN_MESSAGE, details={"topic_id": topic_id})

            group_id = None
            membership = await self.groups.get_membership(caller_id)
            if membership:
                group = await self.groups.get_group(membership.group_id)
                if not is_group_creator(caller_id, group):
                    raise AuthorizationError("Only the group creator can select a topic for the group")
                group_id = group.id
                participant_ids = await self.groups.list_accepted_member_ids(group_id)
                for member_id in participant_ids:
                    if await self._has_project(member_id):
                        member = await self.db.get(User, member_id)
                        raise ConflictError(
                            f"Group member {member.full_name} already has a project",
                            details={"user_id": member_id},
                        )
            else:
                if await self._has_project(caller_id):
                    raise ConflictError("You have already selected a topic")
                participant_ids = [caller_id]

            allocation = TopicAllocation(
                topic_id=topic_id,
                allocated_by_id=caller_id,
                group_id=group_id,
            )
            self.db.add(allocation)
            await flush_or_conflict(self.db, TOPIC_TAKEN_MESSAGE)

            projects = []
            for student_id in participant_ids:
                project = StudentProject(
                    student_id=student_id,
                    topic_id=topic_id,
                    allocation_id=allocation.id,
                    progress=0,
                    status=ProjectStatus.IN_PROGRESS,
                )
                self.db.add(project)
                projects.append(project)
                if student_id != caller_id:
                    self.notifications.notify(
                        student_id,
                        "Topic Selected",
                        f'Your group was assigned the topic "{topic.title}".',
                    )
            self.notifications.notify(
                topic.submitted_by_id,
                "Topic Selected",
                f'Your topic "{topic.title}" was selected'
                + (" by a group." if group_id else " by a student."),
            )
            await flush_or_conflict(self.db, "A participant already has a project")
            return [project.id for project in projects]

        project_ids = await run_in_transaction(self.db, work, operation="select_topic")
        logger.log_domain_event(
            "allocation", "topic_selected",
            topic_id=topic_id, caller_id=caller_id, projects=len(project_ids),
        )
        result = await self.db.execute(
            self._project_query().where(StudentProject.id.in_(project_ids)).order_by(StudentProject.id)
        )
        return list(result.scalars().all())

    async def _has_project(self, student_id: int) -> bool:
        result = await self.db.execute(
            select(StudentProject.id).where(StudentProject.student_id == student_id).limit(1)
        )
        return result.first() is not None

    # =====================================================
    # PROJECT QUERIES
    # =====================================================

    async def get_project(self, project_id: int) -> StudentProject:
        result = await self.db.execute(self._project_query().where(StudentProject.id == project_id))
        project = result.scalar_one_or_none()
        if not project:
            raise ProjectNotFoundError(project_id)
        return project

    async def get_student_projects(self, student_id: int) -> List[StudentProject]:
        result = await self.db.execute(
            self._project_query().where(StudentProject.student_id == student_id)
        )
        return list(result.scalars().all())

    async def list_projects(self) -> List[StudentProject]:
        result = await self.db.execute(self._project_query().order_by(StudentProject.id))
        return list(result.scalars().all())

    async def list_projects_for_teacher(self, teacher_id: int) -> List[StudentProject]:
        """Projects on topics the teacher submitted"""
        result = await self.db.execute(
            self._project_query()
            .join(ProjectTopic, StudentProject.topic_id == ProjectTopic.id)
            .where(ProjectTopic.submitted_by_id == teacher_id)
            .order_by(StudentProject.id)
        )
        return list(result.scalars().all())

    # =====================================================
    # PROGRESS
    # =====================================================

    async def update_progress(self, project_id: int, progress: int, actor_id: int) -> StudentProject:
        """
        Set project progress (0-100). Status becomes completed at 100.

        Allowed for the owning student, the teacher who submitted the topic,
        the coordinator and the admin.
        """
        if progress is None or not 0 <= progress <= 100:
            raise ValidationError("Progress must be between 0 and 100", field="progress")

        async def work() -> None:
            project = await self.db.get(StudentProject, project_id, populate_existing=True)
            if not project:
                raise ProjectNotFoundError(project_id)
            actor = await self.db.get(User, actor_id)
            if not actor:
                raise UserNotFoundError(actor_id)
            topic = await self.db.get(ProjectTopic, project.topic_id)

            allowed = (
                project.student_id == actor_id
                or actor.role in PROGRESS_SUPERVISOR_ROLES
                or (actor.role == UserRole.TEACHER and topic.submitted_by_id == actor_id)
            )
            if not allowed:
                raise AuthorizationError("You cannot update progress on this project")

            project.set_progress(progress)
            if project.student_id != actor_id:
                self.notifications.notify(
                    project.student_id,
                    "Progress Updated",
                    f'Progress on "{topic.title}" was set to {progress}%.',
                )

        await run_in_transaction(self.db, work, operation="update_progress")
        logger.log_domain_event("project", "progress_updated", project_id=project_id, progress=progress)
        return await self.get_project(project_id)
