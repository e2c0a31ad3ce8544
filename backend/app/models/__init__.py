# Re-export all models for convenient imports
from app.models.user import User, UserRole, SINGLETON_ROLES
from app.models.topic import ProjectTopic, TopicStatus, TopicComplexity
from app.models.group import StudentGroup, GroupMembership, MembershipStatus
from app.models.project import TopicAllocation, StudentProject, ProjectStatus, ProjectAssessment
from app.models.notification import Notification

__all__ = [
    # User
    "User",
    "UserRole",
    "SINGLETON_ROLES",
    # Topics
    "ProjectTopic",
    "TopicStatus",
    "TopicComplexity",
    # Groups
    "StudentGroup",
    "GroupMembership",
    "MembershipStatus",
    # Allocation
    "TopicAllocation",
    "StudentProject",
    "ProjectStatus",
    "ProjectAssessment",
    # Notifications
    "Notification",
]
