"""
User Directory
==============

Lookup and lifecycle of user accounts.

Rules enforced here:
- usernames, emails and enrollment numbers are unique
- students must have an enrollment number, other roles must not
- at most one admin and one coordinator account exist (backed by the
  unique users.singleton_role column)
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import run_in_transaction, flush_or_conflict
from app.core.exceptions import (
    AuthenticationError,
    ConflictError,
    InvalidStateError,
    UserNotFoundError,
    ValidationError,
)
from app.core.logging_config import logger
from app.core.security import get_password_hash, verify_password
from app.models.group import GroupMembership, StudentGroup
from app.models.notification import Notification
from app.models.project import ProjectAssessment, StudentProject, TopicAllocation
from app.models.topic import ProjectTopic
from app.models.user import User, UserRole, SINGLETON_ROLES
from app.schemas.auth import AdminUserUpdate, ProfileUpdate, UserRegister


class UserDirectory:
    """Service for user accounts"""

    def __init__(self, db: AsyncSession):
        self.db = db

    # =====================================================
    # LOOKUPS
    # =====================================================

    async def get_user(self, user_id: int) -> User:
        """Get a user by id or raise UserNotFoundError"""
        user = await self.db.get(User, user_id)
        if not user:
            raise UserNotFoundError(user_id)
        return user

    async def get_by_username(self, username: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def get_by_enrollment_number(self, enrollment_number: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.enrollment_number == enrollment_number)
        )
        return result.scalar_one_or_none()

    async def list_by_role(self, role: UserRole) -> List[User]:
        result = await self.db.execute(
            select(User).where(User.role == role).order_by(User.last_name, User.first_name)
        )
        return list(result.scalars().all())

    async def list_users(self) -> List[User]:
        result = await self.db.execute(select(User).order_by(User.id))
        return list(result.scalars().all())

    # =====================================================
    # REGISTRATION & AUTHENTICATION
    # =====================================================

    async def register_user(self, data: UserRegister) -> User:
        """
        Create an account.

        Raises:
            ConflictError: duplicate username, email or enrollment number, or
                a second admin/coordinator
            ValidationError: enrollment number missing for a student or given
                for another role
        """
        enrollment_number = (data.enrollment_number or "").strip() or None

        async def work() -> User:
            await self._check_identity_free(data.username, data.email)
            await self._check_enrollment(data.role, enrollment_number)
            await self._check_singleton_free(data.role)

            user = User(
                username=data.username,
                email=data.email,
                first_name=data.first_name,
                last_name=data.last_name,
                hashed_password=get_password_hash(data.password),
                role=data.role,
                enrollment_number=enrollment_number,
            )
            user.sync_singleton_role()
            self.db.add(user)
            await flush_or_conflict(self.db, "Username, email or enrollment number already registered")
            return user

        user = await run_in_transaction(self.db, work, operation="register_user")
        logger.log_auth_event("register", True, username=user.username, role=user.role.value)
        return user

    async def authenticate(self, username: str, password: str) -> User:
        """Verify credentials and stamp last_login"""
        user = await self.get_by_username(username)
        if not user or not verify_password(password, user.hashed_password):
            logger.log_auth_event("login", False, username=username, reason="invalid credentials")
            raise AuthenticationError("Invalid username or password")

        user_id = user.id

        async def work() -> User:
            fresh = await self.get_user(user_id)
            fresh.last_login = datetime.utcnow()
            return fresh

        user = await run_in_transaction(self.db, work, operation="login")
        logger.log_auth_event("login", True, username=username)
        return user

    # =====================================================
    # SELF SERVICE
    # =====================================================

    async def update_profile(self, user_id: int, data: ProfileUpdate) -> User:
        """Change own first name, last name or email"""

        async def work() -> User:
            user = await self.get_user(user_id)
            if data.email and data.email != user.email:
                await self._check_email_free(data.email, exclude_id=user_id)
                user.email = data.email
            if data.first_name:
                user.first_name = data.first_name
            if data.last_name:
                user.last_name = data.last_name
            await flush_or_conflict(self.db, "Email already registered")
            return user

        return await run_in_transaction(self.db, work, operation="update_profile")

    async def change_password(self, user_id: int, current_password: str, new_password: str) -> None:
        async def work() -> None:
            user = await self.get_user(user_id)
            if not verify_password(current_password, user.hashed_password):
                raise ValidationError("Current password is incorrect", field="current_password")
            user.hashed_password = get_password_hash(new_password)

        await run_in_transaction(self.db, work, operation="change_password")
        logger.log_auth_event("password_change", True, account_id=user_id)

    # =====================================================
    # ADMINISTRATION
    # =====================================================

    async def admin_update_user(self, user_id: int, data: AdminUserUpdate) -> User:
        """
        Admin edit of any account. Role and enrollment changes are checked
        against the same rules as registration.
        """
        changes = data.model_dump(exclude_unset=True)

        async def work() -> User:
            user = await self.get_user(user_id)
            new_role = changes.get("role") or user.role

            if changes.get("email") and changes["email"] != user.email:
                await self._check_email_free(changes["email"], exclude_id=user_id)
                user.email = changes["email"]

            if new_role != user.role:
                if user.role == UserRole.STUDENT and await self._has_student_records(user_id):
                    raise InvalidStateError(
                        "Student belongs to a group or has a project; role cannot change",
                        state="assigned",
                    )
                if new_role in SINGLETON_ROLES:
                    await self._check_singleton_free(new_role, exclude_id=user_id)

            if "enrollment_number" in changes:
                enrollment_number = (changes["enrollment_number"] or "").strip() or None
            elif new_role == UserRole.STUDENT:
                enrollment_number = user.enrollment_number
            else:
                enrollment_number = None
            await self._check_enrollment(new_role, enrollment_number, exclude_id=user_id)

            user.role = new_role
            user.enrollment_number = enrollment_number
            user.sync_singleton_role()

            for field in ("first_name", "last_name"):
                if changes.get(field):
                    setattr(user, field, changes[field])
            if changes.get("password"):
                user.hashed_password = get_password_hash(changes["password"])

            await flush_or_conflict(self.db, "Account conflicts with an existing user")
            return user

        user = await run_in_transaction(self.db, work, operation="admin_update_user")
        logger.log_domain_event("user", "updated", account_id=user_id, fields=",".join(sorted(changes)))
        return user

    async def delete_user(self, user_id: int) -> None:
        """Delete an account that nothing else references"""

        async def work() -> None:
            user = await self.get_user(user_id)
            if await self._is_referenced(user_id):
                raise ConflictError(
                    "User is referenced by groups, topics or projects and cannot be deleted",
                    details={"user_id": user_id},
                )
            await self.db.execute(delete(Notification).where(Notification.user_id == user_id))
            await self.db.delete(user)

        await run_in_transaction(self.db, work, operation="delete_user")
        logger.log_domain_event("user", "deleted", account_id=user_id)

    # =====================================================
    # CHECKS
    # =====================================================

    async def _check_identity_free(self, username: str, email: str) -> None:
        if await self.get_by_username(username):
            raise ConflictError("Username already exists", details={"field": "username"})
        await self._check_email_free(email)

    async def _check_email_free(self, email: str, exclude_id: Optional[int] = None) -> None:
        query = select(User.id).where(User.email == email)
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        if (await self.db.execute(query)).first():
            raise ConflictError("Email already registered", details={"field": "email"})

    async def _check_enrollment(
        self,
        role: UserRole,
        enrollment_number: Optional[str],
        exclude_id: Optional[int] = None,
    ) -> None:
        if role != UserRole.STUDENT:
            if enrollment_number:
                raise ValidationError(
                    "Only students have an enrollment number", field="enrollment_number"
                )
            return
        if not enrollment_number:
            raise ValidationError(
                "Enrollment number is required for student registration",
                field="enrollment_number",
            )
        existing = await self.get_by_enrollment_number(enrollment_number)
        if existing and existing.id != exclude_id:
            raise ConflictError(
                "This enrollment number is already registered",
                details={"field": "enrollment_number"},
            )

    async def _check_singleton_free(self, role: UserRole, exclude_id: Optional[int] = None) -> None:
        if role not in SINGLETON_ROLES:
            return
        query = select(User.id).where(User.role == role)
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        if (await self.db.execute(query)).first():
            article = "An" if role == UserRole.ADMIN else "A"
            raise ConflictError(
                f"{article} {role.value.capitalize()} account already exists. "
                f"Only one {role.value.capitalize()} account is allowed in the system.",
                details={"role": role.value},
            )

    async def _has_student_records(self, user_id: int) -> bool:
        membership = await self.db.execute(
            select(GroupMembership.id).where(GroupMembership.user_id == user_id)
        )
        project = await self.db.execute(
            select(StudentProject.id).where(StudentProject.student_id == user_id)
        )
        return membership.first() is not None or project.first() is not None

    async def _is_referenced(self, user_id: int) -> bool:
        checks = [
            select(GroupMembership.id).where(GroupMembership.user_id == user_id),
            select(StudentProject.id).where(StudentProject.student_id == user_id),
            select(StudentGroup.id).where(
                or_(StudentGroup.created_by_id == user_id, StudentGroup.faculty_id == user_id)
            ),
            select(ProjectTopic.id).where(
                or_(ProjectTopic.submitted_by_id == user_id, ProjectTopic.reviewed_by_id == user_id)
            ),
            select(TopicAllocation.id).where(TopicAllocation.allocated_by_id == user_id),
            select(ProjectAssessment.id).where(ProjectAssessment.faculty_id == user_id),
        ]
        for query in checks:
            if (await self.db.execute(query.limit(1))).first():
                return True
        return False
