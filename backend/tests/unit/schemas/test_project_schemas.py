"""
Unit Tests for group, topic and project schemas
Tests for: camelCase aliases and response shapes
"""
import pytest
from datetime import datetime
from pydantic import ValidationError

from app.models.group import MembershipStatus
from app.schemas.group import GroupCreate, GroupDetailResponse
from app.schemas.project import ProjectCreate, AssessmentCreate
from app.schemas.topic import TopicCatalogResponse, TopicCreate


class TestGroupCreate:
    """Test GroupCreate schema"""

    def test_camel_case_keys(self):
        group = GroupCreate.model_validate({
            "name": "Team Alpha",
            "facultyId": 3,
            "enrollmentNumbers": ["CS1", "CS2"],
        })

        assert group.faculty_id == 3
        assert group.enrollment_numbers == ["CS1", "CS2"]

    def test_snake_case_keys(self):
        group = GroupCreate(name="Team Alpha", faculty_id=3, enrollment_numbers=["CS1", "CS2"])

        assert group.faculty_id == 3

    def test_invitee_count_not_checked_here(self):
        """A wrong count is a domain validation error, not a schema error"""
        group = GroupCreate(name="Solo", faculty_id=3, enrollment_numbers=["CS1"])

        assert len(group.enrollment_numbers) == 1

    def test_missing_faculty(self):
        with pytest.raises(ValidationError):
            GroupCreate.model_validate({"name": "Team", "enrollmentNumbers": ["CS1", "CS2"]})


class TestGroupDetailResponse:
    """Test GET /groups/my payload"""

    def test_my_status_serialized_as_camel_case(self):
        detail = GroupDetailResponse.model_validate({
            "id": 1,
            "name": "Team",
            "max_size": 5,
            "created_at": datetime(2024, 1, 1),
            "my_status": MembershipStatus.PENDING,
            "members": [],
            "member_count": 0,
        })

        data = detail.model_dump(by_alias=True, mode="json")

        assert data["myStatus"] == "pending"
        assert "my_status" not in data


class TestProjectSchemas:
    """Test project and assessment payloads"""

    def test_topic_id_alias(self):
        assert ProjectCreate.model_validate({"topicId": 9}).topic_id == 9
        assert ProjectCreate(topic_id=9).topic_id == 9

    @pytest.mark.parametrize("score", [-1, 101])
    def test_assessment_score_range(self, score):
        with pytest.raises(ValidationError):
            AssessmentCreate(score=score)


class TestTopicSchemas:
    """Test topic payloads"""

    def test_topic_defaults_to_medium(self):
        topic = TopicCreate(title="Chatbot", technology="Python", project_type="AI/ML")

        assert topic.estimated_complexity.value == "Medium"

    def test_catalogue_aliases(self):
        catalogue = TopicCatalogResponse(has_selected_topic=False)

        assert catalogue.model_dump(by_alias=True) == {
            "hasSelectedTopic": False,
            "myTopic": None,
            "availableTopics": [],
            "takenTopics": [],
        }
