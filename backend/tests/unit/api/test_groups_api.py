"""
Unit Tests for Group API endpoints
"""
import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.models.group import GroupMembership
from app.models.user import UserRole


def group_body(faculty_id, numbers, **overrides):
    body = {
        "name": "Team Phoenix",
        "description": "Final year project team",
        "facultyId": faculty_id,
        "enrollmentNumbers": numbers,
    }
    body.update(overrides)
    return body


class TestCreateGroup:
    """Test POST /groups"""

    @pytest.mark.asyncio
    async def test_create_group_success(self, client: AsyncClient, student, classmates, teacher, auth_headers):
        numbers = [classmates[0].enrollment_number, classmates[1].enrollment_number]

        response = await client.post(
            "/api/v1/groups", json=group_body(teacher.id, numbers), headers=auth_headers(student)
        )

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Team Phoenix"
        assert data["created_by_id"] == student.id
        assert data["faculty_id"] == teacher.id
        assert data["max_size"] == 5

    @pytest.mark.asyncio
    async def test_create_group_snake_case_body(self, client: AsyncClient, student, classmates, teacher, auth_headers):
        body = {
            "name": "Snakes",
            "faculty_id": teacher.id,
            "enrollment_numbers": [classmates[0].enrollment_number, classmates[1].enrollment_number],
        }

        response = await client.post("/api/v1/groups", json=body, headers=auth_headers(student))

        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_create_group_one_invitee(self, client: AsyncClient, student, classmates, teacher, auth_headers):
        response = await client.post(
            "/api/v1/groups",
            json=group_body(teacher.id, [classmates[0].enrollment_number]),
            headers=auth_headers(student),
        )

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_create_group_unknown_faculty(self, client: AsyncClient, student, classmates, auth_headers):
        numbers = [classmates[0].enrollment_number, classmates[1].enrollment_number]

        response = await client.post(
            "/api/v1/groups", json=group_body(987654, numbers), headers=auth_headers(student)
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_create_group_twice(self, client: AsyncClient, student, classmates, teacher, auth_headers):
        first = [classmates[0].enrollment_number, classmates[1].enrollment_number]
        second = [classmates[2].enrollment_number, classmates[3].enrollment_number]
        await client.post("/api/v1/groups", json=group_body(teacher.id, first), headers=auth_headers(student))

        response = await client.post(
            "/api/v1/groups", json=group_body(teacher.id, second), headers=auth_headers(student)
        )

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_teacher_cannot_create_group(self, client: AsyncClient, teacher, classmates, auth_headers):
        numbers = [classmates[0].enrollment_number, classmates[1].enrollment_number]

        response = await client.post(
            "/api/v1/groups", json=group_body(teacher.id, numbers), headers=auth_headers(teacher)
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_create_group_unauthenticated(self, client: AsyncClient, teacher):
        response = await client.post("/api/v1/groups", json=group_body(teacher.id, ["A", "B"]))

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_create_group_missing_fields(self, client: AsyncClient, student, auth_headers):
        response = await client.post("/api/v1/groups", json={"name": "Nope"}, headers=auth_headers(student))

        assert response.status_code == 422


class TestInvitationFlow:
    """Accept, reject, leave and GET /groups/my"""

    @pytest.fixture
    async def group_id(self, client: AsyncClient, student, classmates, teacher, auth_headers) -> int:
        numbers = [classmates[0].enrollment_number, classmates[1].enrollment_number]
        response = await client.post(
            "/api/v1/groups", json=group_body(teacher.id, numbers), headers=auth_headers(student)
        )
        return response.json()["id"]

    @pytest.mark.asyncio
    async def test_my_group_for_invitee(self, client: AsyncClient, group_id, classmates, student, teacher, auth_headers):
        response = await client.get("/api/v1/groups/my", headers=auth_headers(classmates[0]))

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == group_id
        assert data["myStatus"] == "pending"
        assert data["member_count"] == 3
        assert data["faculty"]["id"] == teacher.id
        creator = next(m for m in data["members"] if m["is_creator"])
        assert creator["id"] == student.id
        assert creator["status"] == "accepted"

    @pytest.mark.asyncio
    async def test_accept_invite(self, client: AsyncClient, group_id, classmates, auth_headers):
        response = await client.post(
            f"/api/v1/groups/{group_id}/invite/accept", headers=auth_headers(classmates[0])
        )

        assert response.status_code == 200
        assert response.json()["success"] is True
        my_group = await client.get("/api/v1/groups/my", headers=auth_headers(classmates[0]))
        assert my_group.json()["myStatus"] == "accepted"

    @pytest.mark.asyncio
    async def test_accept_invite_not_invited(self, client: AsyncClient, group_id, classmates, auth_headers):
        response = await client.post(
            f"/api/v1/groups/{group_id}/invite/accept", headers=auth_headers(classmates[4])
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_reject_invite(self, client: AsyncClient, db_session, group_id, classmates, auth_headers):
        response = await client.post(
            f"/api/v1/groups/{group_id}/invite/reject", headers=auth_headers(classmates[0])
        )

        assert response.status_code == 200
        row = (await db_session.execute(
            select(GroupMembership.id).where(GroupMembership.user_id == classmates[0].id)
        )).first()
        assert row is None
        my_group = await client.get("/api/v1/groups/my", headers=auth_headers(classmates[0]))
        assert my_group.status_code == 404

    @pytest.mark.asyncio
    async def test_leave_group(self, client: AsyncClient, group_id, classmates, auth_headers):
        await client.post(f"/api/v1/groups/{group_id}/invite/accept", headers=auth_headers(classmates[0]))

        response = await client.post(f"/api/v1/groups/{group_id}/leave", headers=auth_headers(classmates[0]))

        assert response.status_code == 200
        assert "removed" not in response.json()["message"]

    @pytest.mark.asyncio
    async def test_last_member_leaves(self, client: AsyncClient, group_id, student, classmates, auth_headers):
        for invitee in classmates[:2]:
            await client.post(f"/api/v1/groups/{group_id}/invite/reject", headers=auth_headers(invitee))

        response = await client.post(f"/api/v1/groups/{group_id}/leave", headers=auth_headers(student))

        assert response.status_code == 200
        assert "removed" in response.json()["message"]
        again = await client.post(f"/api/v1/groups/{group_id}/leave", headers=auth_headers(student))
        assert again.status_code == 404

    @pytest.mark.asyncio
    async def test_my_group_without_group(self, client: AsyncClient, user_factory, auth_headers):
        loner = await user_factory(UserRole.STUDENT)

        response = await client.get("/api/v1/groups/my", headers=auth_headers(loner))

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "GROUP_MEMBERSHIP_NOT_FOUND"
