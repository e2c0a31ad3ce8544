"""
Unit Tests for the Topic Registry
Submission, review state machine and the student catalogue
"""
import pytest
from sqlalchemy import select

from app.core.exceptions import AuthorizationError, ConflictError, InvalidStateError, NotFoundError
from app.models.notification import Notification
from app.models.topic import ProjectTopic, TopicStatus
from app.models.user import UserRole
from app.schemas.topic import TopicCreate, TopicUpdate
from app.services.allocation_engine import AllocationEngine
from app.services.topic_registry import TopicRegistry


def topic_payload(**overrides) -> TopicCreate:
    data = {
        "title": "Smart Attendance System",
        "description": "Face recognition based attendance",
        "technology": "Python, OpenCV",
        "project_type": "AI/ML",
    }
    data.update(overrides)
    return TopicCreate(**data)


class TestSubmission:
    """Teacher submission and edits"""

    @pytest.mark.asyncio
    async def test_submit_topic_is_pending(self, db, teacher):
        topic = await TopicRegistry(db).submit_topic(teacher.id, topic_payload())

        assert topic.status == TopicStatus.PENDING
        assert topic.submitted_by_id == teacher.id
        assert topic.submitted_by.id == teacher.id
        assert topic.reviewed_at is None

    @pytest.mark.asyncio
    async def test_update_own_pending_topic(self, db, teacher, topic_factory):
        topic = await topic_factory(teacher, TopicStatus.PENDING)

        updated = await TopicRegistry(db).update_topic(
            topic.id, teacher.id, TopicUpdate(title="Renamed topic")
        )

        assert updated.title == "Renamed topic"
        assert updated.technology == topic.technology

    @pytest.mark.asyncio
    async def test_update_someone_elses_topic(self, db, teacher, user_factory, topic_factory):
        topic = await topic_factory(teacher, TopicStatus.PENDING)
        other = await user_factory(UserRole.TEACHER)

        with pytest.raises(AuthorizationError):
            await TopicRegistry(db).update_topic(topic.id, other.id, TopicUpdate(title="Mine now"))

    @pytest.mark.asyncio
    async def test_update_decided_topic(self, db, teacher, approved_topic):
        with pytest.raises(InvalidStateError):
            await TopicRegistry(db).update_topic(approved_topic.id, teacher.id, TopicUpdate(title="Late edit"))


class TestReview:
    """pending -> approved | rejected, terminal once decided"""

    @pytest.mark.asyncio
    async def test_approve_with_feedback(self, db, db_session, teacher, coordinator):
        registry = TopicRegistry(db)
        topic = await registry.submit_topic(teacher.id, topic_payload())

        approved = await registry.approve_topic(topic.id, coordinator.id, "looks good")

        assert approved.status == TopicStatus.APPROVED
        assert approved.feedback == "looks good"
        assert approved.reviewed_at is not None
        titles = (await db_session.execute(
            select(Notification.title).where(Notification.user_id == teacher.id)
        )).scalars().all()
        assert titles == ["Topic Approved"]

    @pytest.mark.asyncio
    async def test_reject_without_feedback(self, db, teacher, coordinator, topic_factory):
        topic = await topic_factory(teacher, TopicStatus.PENDING)

        rejected = await TopicRegistry(db).reject_topic(topic.id, coordinator.id)

        assert rejected.status == TopicStatus.REJECTED
        assert rejected.feedback is None

    @pytest.mark.asyncio
    async def test_decided_topic_cannot_be_reviewed_again(self, db, db_session, coordinator, approved_topic):
        with pytest.raises(InvalidStateError):
            await TopicRegistry(db).reject_topic(approved_topic.id, coordinator.id, "changed my mind")

        status = (await db_session.execute(
            select(ProjectTopic.status).where(ProjectTopic.id == approved_topic.id)
        )).scalar_one()
        assert status == TopicStatus.APPROVED

    @pytest.mark.asyncio
    async def test_review_unknown_topic(self, db, coordinator):
        with pytest.raises(NotFoundError):
            await TopicRegistry(db).approve_topic(9999, coordinator.id)

    @pytest.mark.asyncio
    async def test_list_by_status(self, db, teacher, topic_factory):
        await topic_factory(teacher, TopicStatus.PENDING)
        await topic_factory(teacher, TopicStatus.APPROVED)
        await topic_factory(teacher, TopicStatus.REJECTED)
        registry = TopicRegistry(db)

        pending = await registry.list_by_status(TopicStatus.PENDING)

        assert [t.status for t in pending] == [TopicStatus.PENDING]
        assert len(await registry.list_by_teacher(teacher.id)) == 3


class TestDeletion:
    """Admin deletion"""

    @pytest.mark.asyncio
    async def test_delete_unallocated_topic(self, db, db_session, approved_topic):
        topic_id = approved_topic.id

        await TopicRegistry(db).delete_topic(topic_id)

        remaining = (await db_session.execute(
            select(ProjectTopic.id).where(ProjectTopic.id == topic_id)
        )).first()
        assert remaining is None

    @pytest.mark.asyncio
    async def test_allocated_topic_cannot_be_deleted(self, db, student, approved_topic):
        await AllocationEngine(db).select_topic(student.id, approved_topic.id)

        with pytest.raises(ConflictError):
            await TopicRegistry(db).delete_topic(approved_topic.id)


class TestStudentCatalogue:
    """Approved topics split into mine, available and taken"""

    @pytest.mark.asyncio
    async def test_nothing_selected(self, db, student, teacher, topic_factory):
        first = await topic_factory(teacher)
        await topic_factory(teacher, TopicStatus.PENDING)

        catalogue = await TopicRegistry(db).categorize_for_student(student.id)

        assert catalogue["has_selected_topic"] is False
        assert catalogue["my_topic"] is None
        assert [t.id for t in catalogue["available_topics"]] == [first.id]
        assert catalogue["taken_topics"] == []

    @pytest.mark.asyncio
    async def test_mine_available_and_taken(self, db, student, classmates, teacher, topic_factory):
        mine = await topic_factory(teacher)
        taken = await topic_factory(teacher)
        free = await topic_factory(teacher)
        engine = AllocationEngine(db)
        await engine.select_topic(student.id, mine.id)
        await engine.select_topic(classmates[0].id, taken.id)

        catalogue = await TopicRegistry(db).categorize_for_student(student.id)

        assert catalogue["has_selected_topic"] is True
        assert catalogue["my_topic"].id == mine.id
        assert [t.id for t in catalogue["available_topics"]] == [free.id]
        assert [t.id for t in catalogue["taken_topics"]] == [taken.id]
