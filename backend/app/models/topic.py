"""Project topics submitted by teachers and reviewed by the coordinator"""
from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Integer, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base


class TopicStatus(str, enum.Enum):
    """Topic lifecycle: pending -> approved | rejected (terminal)"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class TopicComplexity(str, enum.Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class ProjectTopic(Base):
    """Project topic model"""
    __tablename__ = "project_topics"

    __table_args__ = (
        Index('ix_project_topics_status', 'status'),
        Index('ix_project_topics_submitted_by_id', 'submitted_by_id'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    technology = Column(String(255), nullable=False)
    project_type = Column(String(100), nullable=False)
    estimated_complexity = Column(SQLEnum(TopicComplexity), default=TopicComplexity.MEDIUM, nullable=False)

    submitted_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    status = Column(SQLEnum(TopicStatus), default=TopicStatus.PENDING, nullable=False)

    # Review
    feedback = Column(Text, nullable=True)
    reviewed_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    submitted_by = relationship("User", foreign_keys=[submitted_by_id])
    reviewed_by = relationship("User", foreign_keys=[reviewed_by_id])
    allocation = relationship("TopicAllocation", back_populates="topic", uselist=False)

    @property
    def is_decided(self) -> bool:
        return self.status != TopicStatus.PENDING

    def __repr__(self):
        return f"<ProjectTopic {self.title} ({self.status.value})>"
