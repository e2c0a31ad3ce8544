"""Topic allocations and the per-student projects they create"""
from sqlalchemy import (
    Column, String, DateTime, Enum as SQLEnum, Integer, Text, ForeignKey, Index,
    CheckConstraint, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base


class ProjectStatus(str, enum.Enum):
    """Derived from progress: 100 means completed"""
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TopicAllocation(Base):
    """
    One allocation event: an approved topic bound to a student or to a
    group's accepted members. The unique topic_id is what keeps two callers
    from claiming the same topic.
    """
    __tablename__ = "topic_allocations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    topic_id = Column(Integer, ForeignKey("project_topics.id"), nullable=False, unique=True)
    allocated_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    # NULL for individual allocations; not a FK so the record survives group deletion
    group_id = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    topic = relationship("ProjectTopic", back_populates="allocation")
    allocated_by = relationship("User", foreign_keys=[allocated_by_id])
    projects = relationship("StudentProject", back_populates="allocation")

    def __repr__(self):
        return f"<TopicAllocation topic={self.topic_id} group={self.group_id}>"


class StudentProject(Base):
    """Links one student to one approved topic, with progress tracking"""
    __tablename__ = "student_projects"

    __table_args__ = (
        Index('ix_student_projects_topic_id', 'topic_id'),
        CheckConstraint('progress >= 0 AND progress <= 100', name='ck_student_projects_progress'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    # One project per student
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)
    topic_id = Column(Integer, ForeignKey("project_topics.id"), nullable=False)
    allocation_id = Column(Integer, ForeignKey("topic_allocations.id"), nullable=False)

    progress = Column(Integer, default=0, nullable=False)
    status = Column(SQLEnum(ProjectStatus), default=ProjectStatus.IN_PROGRESS, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    student = relationship("User", back_populates="projects")
    topic = relationship("ProjectTopic")
    allocation = relationship("TopicAllocation", back_populates="projects")
    assessments = relationship("ProjectAssessment", back_populates="project", cascade="all, delete-orphan")

    def set_progress(self, progress: int) -> None:
        self.progress = progress
        self.status = ProjectStatus.COMPLETED if progress >= 100 else ProjectStatus.IN_PROGRESS

    def __repr__(self):
        return f"<StudentProject student={self.student_id} topic={self.topic_id} {self.progress}%>"


class ProjectAssessment(Base):
    """Faculty evaluation of a student project (one per project and faculty)"""
    __tablename__ = "project_assessments"

    __table_args__ = (
        UniqueConstraint('project_id', 'faculty_id', name='uq_project_assessments_project_faculty'),
        CheckConstraint('score >= 0 AND score <= 100', name='ck_project_assessments_score'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("student_projects.id", ondelete="CASCADE"), nullable=False)
    faculty_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    score = Column(Integer, nullable=False)
    feedback = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    project = relationship("StudentProject", back_populates="assessments")
    faculty = relationship("User", foreign_keys=[faculty_id])

    def __repr__(self):
        return f"<ProjectAssessment project={self.project_id} score={self.score}>"
