"""Student group models: groups and invitation-backed memberships"""
from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Integer, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base


class MembershipStatus(str, enum.Enum):
    """Membership status within a group"""
    PENDING = "pending"    # Invited, not yet answered
    ACCEPTED = "accepted"  # Full member (the creator starts here)


class StudentGroup(Base):
    """Student group with a faculty mentor"""
    __tablename__ = "student_groups"

    __table_args__ = (
        Index('ix_student_groups_created_by_id', 'created_by_id'),
        Index('ix_student_groups_faculty_id', 'faculty_id'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    faculty_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    max_size = Column(Integer, default=5, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    faculty = relationship("User", foreign_keys=[faculty_id])
    creator = relationship("User", foreign_keys=[created_by_id])
    memberships = relationship("GroupMembership", back_populates="group")

    def __repr__(self):
        return f"<StudentGroup {self.name}>"


class GroupMembership(Base):
    """
    Links a user to a group. The unique user_id means a user holds at most
    one membership row across all groups.
    """
    __tablename__ = "group_memberships"

    __table_args__ = (
        Index('ix_group_memberships_group_id', 'group_id'),
        Index('ix_group_memberships_group_status', 'group_id', 'status'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    group_id = Column(Integer, ForeignKey("student_groups.id", ondelete="CASCADE"), nullable=False)
    status = Column(SQLEnum(MembershipStatus), default=MembershipStatus.PENDING, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    responded_at = Column(DateTime, nullable=True)

    # Relationships
    user = relationship("User", back_populates="membership")
    group = relationship("StudentGroup", back_populates="memberships")

    def __repr__(self):
        return f"<GroupMembership user={self.user_id} group={self.group_id} {self.status.value}>"
