"""
Unit Tests for Topic API endpoints
"""
import pytest
from httpx import AsyncClient

from app.models.topic import TopicStatus


TOPIC_BODY = {
    "title": "Campus Navigation App",
    "description": "Indoor navigation for the main campus",
    "technology": "Flutter, Firebase",
    "project_type": "Mobile Application",
    "estimated_complexity": "High",
}


class TestTopicReviewFlow:
    """Submit, review and list topics"""

    @pytest.mark.asyncio
    async def test_submit_and_approve(self, client: AsyncClient, teacher, coordinator, auth_headers):
        submitted = await client.post("/api/v1/topics", json=TOPIC_BODY, headers=auth_headers(teacher))

        assert submitted.status_code == 201
        topic = submitted.json()
        assert topic["status"] == "pending"
        assert topic["submitted_by"]["id"] == teacher.id

        approved = await client.post(
            f"/api/v1/topics/{topic['id']}/approve",
            json={"feedback": "looks good"},
            headers=auth_headers(coordinator),
        )

        assert approved.status_code == 200
        assert approved.json()["status"] == "approved"
        assert approved.json()["feedback"] == "looks good"

    @pytest.mark.asyncio
    async def test_reject_without_body(self, client: AsyncClient, teacher, coordinator, topic_factory, auth_headers):
        topic = await topic_factory(teacher, TopicStatus.PENDING)

        response = await client.post(f"/api/v1/topics/{topic.id}/reject", headers=auth_headers(coordinator))

        assert response.status_code == 200
        assert response.json()["status"] == "rejected"
        rejected = await client.get("/api/v1/topics/rejected", headers=auth_headers(coordinator))
        assert [t["id"] for t in rejected.json()] == [topic.id]

    @pytest.mark.asyncio
    async def test_second_decision_rejected(self, client: AsyncClient, coordinator, approved_topic, auth_headers):
        response = await client.post(
            f"/api/v1/topics/{approved_topic.id}/reject", headers=auth_headers(coordinator)
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_teacher_cannot_review(self, client: AsyncClient, teacher, topic_factory, auth_headers):
        topic = await topic_factory(teacher, TopicStatus.PENDING)

        response = await client.post(f"/api/v1/topics/{topic.id}/approve", headers=auth_headers(teacher))

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_student_cannot_submit(self, client: AsyncClient, student, auth_headers):
        response = await client.post("/api/v1/topics", json=TOPIC_BODY, headers=auth_headers(student))

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_my_topics_and_pending(self, client: AsyncClient, teacher, admin_user, topic_factory, auth_headers):
        pending = await topic_factory(teacher, TopicStatus.PENDING)
        await topic_factory(teacher, TopicStatus.APPROVED)

        mine = await client.get("/api/v1/topics/my", headers=auth_headers(teacher))
        queue = await client.get("/api/v1/topics/pending", headers=auth_headers(admin_user))

        assert len(mine.json()) == 2
        assert [t["id"] for t in queue.json()] == [pending.id]

    @pytest.mark.asyncio
    async def test_edit_pending_topic(self, client: AsyncClient, teacher, topic_factory, auth_headers):
        topic = await topic_factory(teacher, TopicStatus.PENDING)

        response = await client.put(
            f"/api/v1/topics/{topic.id}", json={"technology": "Rust"}, headers=auth_headers(teacher)
        )

        assert response.status_code == 200
        assert response.json()["technology"] == "Rust"

    @pytest.mark.asyncio
    async def test_admin_deletes_topic(self, client: AsyncClient, admin_user, approved_topic, auth_headers):
        response = await client.delete(f"/api/v1/topics/{approved_topic.id}", headers=auth_headers(admin_user))

        assert response.status_code == 200
        missing = await client.delete(f"/api/v1/topics/{approved_topic.id}", headers=auth_headers(admin_user))
        assert missing.status_code == 404


class TestApprovedCatalogue:
    """GET /topics/approved"""

    @pytest.mark.asyncio
    async def test_student_catalogue(self, client: AsyncClient, student, classmates, teacher, topic_factory, auth_headers):
        mine = await topic_factory(teacher)
        taken = await topic_factory(teacher)
        free = await topic_factory(teacher)
        await client.post("/api/v1/projects", json={"topicId": mine.id}, headers=auth_headers(student))
        await client.post("/api/v1/projects", json={"topicId": taken.id}, headers=auth_headers(classmates[0]))

        response = await client.get("/api/v1/topics/approved", headers=auth_headers(student))

        assert response.status_code == 200
        data = response.json()
        assert data["hasSelectedTopic"] is True
        assert data["myTopic"]["id"] == mine.id
        assert [t["id"] for t in data["availableTopics"]] == [free.id]
        assert [t["id"] for t in data["takenTopics"]] == [taken.id]

    @pytest.mark.asyncio
    async def test_student_without_project(self, client: AsyncClient, student, approved_topic, auth_headers):
        response = await client.get("/api/v1/topics/approved", headers=auth_headers(student))

        data = response.json()
        assert data["hasSelectedTopic"] is False
        assert data["myTopic"] is None
        assert [t["id"] for t in data["availableTopics"]] == [approved_topic.id]

    @pytest.mark.asyncio
    async def test_staff_get_plain_list(self, client: AsyncClient, teacher, approved_topic, topic_factory, auth_headers):
        await topic_factory(teacher, TopicStatus.PENDING)

        response = await client.get("/api/v1/topics/approved", headers=auth_headers(teacher))

        assert response.status_code == 200
        assert [t["id"] for t in response.json()] == [approved_topic.id]
