"""
Group Manager
=============

Student groups are formed by invitation:

    createGroup  -> creator: accepted, invitees: pending (+ notification each)
    acceptInvite -> pending -> accepted (no-op when already accepted)
    rejectInvite -> pending membership removed; an empty group is deleted
    leaveGroup   -> membership removed; an empty group is deleted

A student holds at most one membership row at any time. This is enforced by
the unique group_memberships.user_id column, so a concurrent invite that
slips past the pre-checks fails with ConflictError at flush.

Only the creator of a group may act for it (see AllocationEngine.select_topic).
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.core.database import run_in_transaction, flush_or_conflict
from app.core.exceptions import (
    ConflictError,
    GroupNotFoundError,
    InvalidStateError,
    NotFoundError,
    UserNotFoundError,
    ValidationError,
)
from app.core.logging_config import logger
from app.models.group import GroupMembership, MembershipStatus, StudentGroup
from app.models.user import User, UserRole
from app.services.notification_service import NotificationService


def is_group_creator(user_id: int, group: StudentGroup) -> bool:
    """Authority check: compares ids only, never membership status"""
    return group.created_by_id is not None and group.created_by_id == user_id


def normalize_enrollment_numbers(enrollment_numbers: List[str]) -> List[str]:
    """Strip blanks and duplicates, keeping the first-seen order"""
    cleaned = (number.strip() for number in enrollment_numbers if number and number.strip())
    return list(dict.fromkeys(cleaned))


class GroupManager:
    """Service for group formation and membership state"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    # =====================================================
    # LOOKUPS
    # =====================================================

    async def get_group(self, group_id: int) -> StudentGroup:
        group = await self.db.get(StudentGroup, group_id, populate_existing=True)
        if not group:
            raise GroupNotFoundError(group_id)
        return group

    async def get_membership(self, user_id: int) -> Optional[GroupMembership]:
        """The caller's single membership row, if any"""
        result = await self.db.execute(
            select(GroupMembership)
            .where(GroupMembership.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def count_members(self, group_id: int, status: Optional[MembershipStatus] = None) -> int:
        query = select(func.count(GroupMembership.id)).where(GroupMembership.group_id == group_id)
        if status is not None:
            query = query.where(GroupMembership.status == status)
        return (await self.db.execute(query)).scalar_one()

    async def list_accepted_member_ids(self, group_id: int) -> List[int]:
        result = await self.db.execute(
            select(GroupMembership.user_id)
            .where(
                GroupMembership.group_id == group_id,
                GroupMembership.status == MembershipStatus.ACCEPTED,
            )
            .order_by(GroupMembership.id)
        )
        return list(result.scalars().all())

    # =====================================================
    # CREATE
    # =====================================================

    async def create_group(
        self,
        creator_id: int,
        name: str,
        faculty_id: int,
        enrollment_numbers: List[str],
        description: Optional[str] = None,
    ) -> StudentGroup:
        """
        Create a group led by `creator_id` and invite 2-4 classmates.

        Raises:
            ValidationError: invitee count out of range, an invitee is not a
                student, is the creator, or already belongs to a group
            ConflictError: the creator already belongs to a group
            NotFoundError: faculty_id is not a teacher
        """
        invitees_numbers = normalize_enrollment_numbers(enrollment_numbers)
        min_invitees = settings.GROUP_MIN_INVITEES
        max_invitees = settings.GROUP_MAX_INVITEES
        if not min_invitees <= len(invitees_numbers) <= max_invitees:
            raise ValidationError(
                f"Invite between {min_invitees} and {max_invitees} students "
                f"(group size {min_invitees + 1}-{settings.GROUP_MAX_SIZE} including you)",
                field="enrollment_numbers",
            )

        async def work() -> StudentGroup:
            creator = await self.db.get(User, creator_id)
            if not creator:
                raise UserNotFoundError(creator_id)
            if await self.get_membership(creator_id):
                raise ConflictError("You are already in a group")

            faculty = await self.db.get(User, faculty_id)
            if not faculty or faculty.role != UserRole.TEACHER:
                raise NotFoundError("Teacher", faculty_id)

            invitees = await self._resolve_invitees(creator, invitees_numbers)

            group = StudentGroup(
                name=name,
                description=description,
                faculty_id=faculty_id,
                created_by_id=creator_id,
                max_size=settings.GROUP_MAX_SIZE,
            )
            self.db.add(group)
            await self.db.flush()

            now = datetime.utcnow()
            self.db.add(GroupMembership(
                user_id=creator_id,
                group_id=group.id,
                status=MembershipStatus.ACCEPTED,
                responded_at=now,
            ))
            creator.group_id = group.id

            for invitee in invitees:
                self.db.add(GroupMembership(
                    user_id=invitee.id,
                    group_id=group.id,
                    status=MembershipStatus.PENDING,
                ))
                invitee.group_id = group.id
                self.notifications.notify(
                    invitee.id,
                    "Group Invitation",
                    f'{creator.full_name} invited you to join the group "{name}".',
                )

            await flush_or_conflict(self.db, "A selected student joined another group")
            return group

        group = await run_in_transaction(self.db, work, operation="create_group")
        logger.log_domain_event(
            "group", "created",
            group_id=group.id, creator_id=creator_id, invitees=len(invitees_numbers),
        )
        return group

    async def _resolve_invitees(self, creator: User, enrollment_numbers: List[str]) -> List[User]:
        invitees = []
        for number in enrollment_numbers:
            if creator.enrollment_number and number == creator.enrollment_number:
                raise ValidationError("You cannot invite yourself", field="enrollment_numbers")

            result = await self.db.execute(select(User).where(User.enrollment_number == number))
            student = result.scalar_one_or_none()
            if not student or student.role != UserRole.STUDENT:
                raise ValidationError(
                    f"Invalid student enrollment number: {number}", field="enrollment_numbers"
                )
            if await self.get_membership(student.id):
                raise ValidationError(
                    f"Student {student.full_name} is already in a group",
                    field="enrollment_numbers",
                )
            invitees.append(student)
        return invitees

    # =====================================================
    # INVITATIONS
    # =====================================================

    async def accept_invite(self, user_id: int, group_id: int) -> GroupMembership:
        """Accept a pending invitation; accepting twice changes nothing"""

        async def work() -> Optional[GroupMembership]:
            group = await self.get_group(group_id)
            membership = await self._membership_in(user_id, group_id)
            if membership.status == MembershipStatus.ACCEPTED:
                return None

            accepted = await self.count_members(group_id, MembershipStatus.ACCEPTED)
            if accepted >= group.max_size:
                raise InvalidStateError("Group is full", state="full")

            membership.status = MembershipStatus.ACCEPTED
            membership.responded_at = datetime.utcnow()
            self._notify_creator(group, user_id, "accepted")
            return membership

        membership = await run_in_transaction(self.db, work, operation="accept_invite")
        if membership is None:
            logger.debug(f"[group] accept_invite no-op for user={user_id} group={group_id}")
            return await self._membership_in(user_id, group_id)
        logger.log_domain_event("group", "invite_accepted", group_id=group_id, member_id=user_id)
        return membership

    async def reject_invite(self, user_id: int, group_id: int) -> bool:
        """
        Decline a pending invitation and drop the membership row. A group
        left without memberships is deleted in the same transaction.

        Returns:
            True if the group was deleted
        """

        async def work() -> bool:
            group = await self.get_group(group_id)
            membership = await self._membership_in(user_id, group_id)
            if membership.status != MembershipStatus.PENDING:
                raise InvalidStateError(
                    "Invitation was already accepted; leave the group instead",
                    state=membership.status.value,
                )
            await self._remove_member(membership)
            self._notify_creator(group, user_id, "declined")
            return await self._delete_if_empty(group)

        group_deleted = await run_in_transaction(self.db, work, operation="reject_invite")
        logger.log_domain_event("group", "invite_rejected", group_id=group_id, member_id=user_id)
        if group_deleted:
            logger.log_domain_event("group", "deleted", group_id=group_id, reason="empty")
        return group_deleted

    async def leave_group(self, user_id: int, group_id: int) -> bool:
        """
        Leave a group. When no memberships remain the group itself is
        deleted in the same transaction.

        Returns:
            True if the group was deleted
        """

        async def work() -> bool:
            group = await self.get_group(group_id)
            membership = await self._membership_in(user_id, group_id)
            await self._remove_member(membership)
            return await self._delete_if_empty(group)

        group_deleted = await run_in_transaction(self.db, work, operation="leave_group")
        logger.log_domain_event("group", "member_left", group_id=group_id, member_id=user_id)
        if group_deleted:
            logger.log_domain_event("group", "deleted", group_id=group_id, reason="empty")
        return group_deleted

    async def _membership_in(self, user_id: int, group_id: int) -> GroupMembership:
        membership = await self.get_membership(user_id)
        if not membership or membership.group_id != group_id:
            raise ValidationError("You are not a member of this group")
        return membership

    async def _remove_member(self, membership: GroupMembership) -> None:
        user = await self.db.get(User, membership.user_id)
        if user and user.group_id == membership.group_id:
            user.group_id = None
        await self.db.delete(membership)
        await self.db.flush()

    async def _delete_if_empty(self, group: StudentGroup) -> bool:
        if await self.count_members(group.id) > 0:
            return False
        await self.db.delete(group)
        await self.db.flush()
        return True

    def _notify_creator(self, group: StudentGroup, member_id: int, verb: str) -> None:
        if group.created_by_id and group.created_by_id != member_id:
            self.notifications.notify(
                group.created_by_id,
                f"Invitation {verb.capitalize()}",
                f'A student {verb} the invitation to "{group.name}".',
            )

    # =====================================================
    # READ MODEL
    # =====================================================

    async def get_my_group(self, user_id: int) -> Dict[str, Any]:
        """
        The caller's group with all members, faculty summary and the
        caller's own membership status (`my_status`).
        """
        membership = await self.get_membership(user_id)
        if not membership:
            raise NotFoundError("Group membership", user_id)

        result = await self.db.execute(
            select(StudentGroup)
            .options(selectinload(StudentGroup.faculty))
            .where(StudentGroup.id == membership.group_id)
            .execution_options(populate_existing=True)
        )
        group = result.scalar_one()

        members_result = await self.db.execute(
            select(GroupMembership)
            .options(selectinload(GroupMembership.user))
            .where(GroupMembership.group_id == group.id)
            .order_by(GroupMembership.id)
            .execution_options(populate_existing=True)
        )
        members = [
            {
                "id": row.user.id,
                "first_name": row.user.first_name,
                "last_name": row.user.last_name,
                "email": row.user.email,
                "enrollment_number": row.user.enrollment_number,
                "status": row.status,
                "is_creator": is_group_creator(row.user_id, group),
            }
            for row in members_result.scalars().all()
        ]

        return {
            "id": group.id,
            "name": group.name,
            "description": group.description,
            "faculty_id": group.faculty_id,
            "created_by_id": group.created_by_id,
            "max_size": group.max_size,
            "created_at": group.created_at,
            "updated_at": group.updated_at,
            "my_status": membership.status,
            "members": members,
            "faculty": {
                "id": group.faculty.id,
                "first_name": group.faculty.first_name,
                "last_name": group.faculty.last_name,
                "email": group.faculty.email,
            } if group.faculty else None,
            "member_count": len(members),
        }
