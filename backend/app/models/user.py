from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Integer, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base


class UserRole(str, enum.Enum):
    """User roles"""
    STUDENT = "student"
    TEACHER = "teacher"
    COORDINATOR = "coordinator"
    ADMIN = "admin"


# Roles limited to a single account system-wide
SINGLETON_ROLES = (UserRole.ADMIN, UserRole.COORDINATOR)


class User(Base):
    """User model"""
    __tablename__ = "users"

    __table_args__ = (
        Index('ix_users_role', 'role'),
        Index('ix_users_group_id', 'group_id'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    hashed_password = Column(String(255), nullable=False)

    role = Column(SQLEnum(UserRole), default=UserRole.STUDENT, nullable=False)

    # Students only
    enrollment_number = Column(String(50), unique=True, nullable=True)
    group_id = Column(
        Integer,
        ForeignKey("student_groups.id", ondelete="SET NULL", use_alter=True, name="fk_users_group_id"),
        nullable=True,
    )

    # Holds the role value for admin/coordinator accounts, NULL otherwise.
    # The unique constraint allows one account per singleton role.
    singleton_role = Column(String(20), unique=True, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_login = Column(DateTime, nullable=True)

    # Relationships
    group = relationship("StudentGroup", foreign_keys=[group_id])
    membership = relationship("GroupMembership", back_populates="user", uselist=False)
    projects = relationship("StudentProject", back_populates="student")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def sync_singleton_role(self) -> None:
        """Keep singleton_role in step with role"""
        self.singleton_role = self.role.value if self.role in SINGLETON_ROLES else None

    def __repr__(self):
        return f"<User {self.username} ({self.role.value})>"
