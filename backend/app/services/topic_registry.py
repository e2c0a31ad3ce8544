"""
Topic Registry
Teachers submit project topics, the coordinator approves or rejects them.
Only approved topics can be selected by students.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.database import run_in_transaction
from app.core.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidStateError,
    TopicNotFoundError,
)
from app.core.logging_config import logger
from app.models.project import StudentProject
from app.models.topic import ProjectTopic, TopicStatus
from app.schemas.topic import TopicCreate, TopicUpdate
from app.services.allocation_engine import AllocationEngine
from app.services.notification_service import NotificationService


class TopicRegistry:
    """Service for project topics and their review lifecycle"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    def _query(self):
        # Submitter is serialized with every topic
        return (
            select(ProjectTopic)
            .options(selectinload(ProjectTopic.submitted_by))
            .execution_options(populate_existing=True)
        )

    async def get_topic(self, topic_id: int) -> ProjectTopic:
        """Get a topic by id or raise TopicNotFoundError"""
        result = await self.db.execute(self._query().where(ProjectTopic.id == topic_id))
        topic = result.scalar_one_or_none()
        if not topic:
            raise TopicNotFoundError(topic_id)
        return topic

    async def list_by_status(self, status: TopicStatus) -> List[ProjectTopic]:
        result = await self.db.execute(
            self._query()
            .where(ProjectTopic.status == status)
            .order_by(ProjectTopic.created_at.desc(), ProjectTopic.id.desc())
        )
        return list(result.scalars().all())

    async def list_by_teacher(self, teacher_id: int) -> List[ProjectTopic]:
        result = await self.db.execute(
            self._query()
            .where(ProjectTopic.submitted_by_id == teacher_id)
            .order_by(ProjectTopic.created_at.desc(), ProjectTopic.id.desc())
        )
        return list(result.scalars().all())

    # =====================================================
    # SUBMISSION
    # =====================================================

    async def submit_topic(self, teacher_id: int, data: TopicCreate) -> ProjectTopic:
        """Create a pending topic owned by the submitting teacher"""

        async def work() -> int:
            topic = ProjectTopic(
                title=data.title,
                description=data.description,
                technology=data.technology,
                project_type=data.project_type,
                estimated_complexity=data.estimated_complexity,
                submitted_by_id=teacher_id,
                status=TopicStatus.PENDING,
            )
            self.db.add(topic)
            await self.db.flush()
            return topic.id

        topic_id = await run_in_transaction(self.db, work, operation="submit_topic")
        logger.log_domain_event("topic", "submitted", topic_id=topic_id, teacher_id=teacher_id)
        return await self.get_topic(topic_id)

    async def update_topic(self, topic_id: int, teacher_id: int, data: TopicUpdate) -> ProjectTopic:
        """Edit a topic; only its submitter may, and only while it is pending"""

        async def work() -> None:
            topic = await self.get_topic(topic_id)
            if topic.submitted_by_id != teacher_id:
                raise AuthorizationError("You can only edit your own topics")
            if topic.status != TopicStatus.PENDING:
                raise InvalidStateError("You can only edit pending topics", state=topic.status.value)
            for field, value in data.model_dump(exclude_unset=True).items():
                if value is not None:
                    setattr(topic, field, value)

        await run_in_transaction(self.db, work, operation="update_topic")
        logger.log_domain_event("topic", "updated", topic_id=topic_id)
        return await self.get_topic(topic_id)

    # =====================================================
    # REVIEW
    # =====================================================

    async def approve_topic(self, topic_id: int, reviewer_id: int, feedback: Optional[str] = None) -> ProjectTopic:
        return await self._decide(topic_id, reviewer_id, TopicStatus.APPROVED, feedback)

    async def reject_topic(self, topic_id: int, reviewer_id: int, feedback: Optional[str] = None) -> ProjectTopic:
        return await self._decide(topic_id, reviewer_id, TopicStatus.REJECTED, feedback)

    async def _decide(
        self,
        topic_id: int,
        reviewer_id: int,
        decision: TopicStatus,
        feedback: Optional[str],
    ) -> ProjectTopic:
        """Move a pending topic to a terminal status and tell its submitter"""

        async def work() -> None:
            topic = await self.get_topic(topic_id)
            if topic.is_decided:
                raise InvalidStateError(
                    f"Topic has already been {topic.status.value}", state=topic.status.value
                )
            topic.status = decision
            topic.feedback = feedback
            topic.reviewed_by_id = reviewer_id
            topic.reviewed_at = datetime.utcnow()

            message = f'Your topic "{topic.title}" was {decision.value}.'
            if feedback:
                message += f" Feedback: {feedback}"
            self.notifications.notify(topic.submitted_by_id, f"Topic {decision.value.capitalize()}", message)

        await run_in_transaction(self.db, work, operation=f"{decision.value}_topic")
        logger.log_domain_event("topic", decision.value, topic_id=topic_id, reviewer_id=reviewer_id)
        return await self.get_topic(topic_id)

    async def delete_topic(self, topic_id: int) -> None:
        """Delete a topic that has not been allocated"""

        async def work() -> None:
            topic = await self.get_topic(topic_id)
            if await AllocationEngine(self.db).is_topic_allocated(topic_id):
                raise ConflictError(
                    "Topic has been selected and cannot be deleted", details={"topic_id": topic_id}
                )
            await self.db.delete(topic)

        await run_in_transaction(self.db, work, operation="delete_topic")
        logger.log_domain_event("topic", "deleted", topic_id=topic_id)

    # =====================================================
    # STUDENT CATALOGUE
    # =====================================================

    async def categorize_for_student(self, student_id: int) -> Dict[str, Any]:
        """
        Split approved topics for one student.

        Returns:
            has_selected_topic: the student has a project
            my_topic: topic of that project (never repeated in the lists)
            available_topics: approved topics with no project
            taken_topics: approved topics with a project of another student
        """
        topics = await self.list_by_status(TopicStatus.APPROVED)

        my_result = await self.db.execute(
            select(StudentProject.topic_id).where(StudentProject.student_id == student_id)
        )
        my_topic_id = my_result.scalar_one_or_none()

        taken_result = await self.db.execute(select(StudentProject.topic_id).distinct())
        taken_ids = {topic_id for topic_id in taken_result.scalars().all()}

        my_topic = None
        available, taken = [], []
        for topic in topics:
            if topic.id == my_topic_id:
                my_topic = topic
            elif topic.id in taken_ids:
                taken.append(topic)
            else:
                available.append(topic)

        return {
            "has_selected_topic": my_topic_id is not None,
            "my_topic": my_topic,
            "available_topics": available,
            "taken_topics": taken,
        }
