from app.services.notification_service import NotificationService
from app.services.user_directory import UserDirectory
from app.services.group_manager import GroupManager
from app.services.allocation_engine import AllocationEngine
from app.services.topic_registry import TopicRegistry
from app.services.assessment_service import AssessmentService

__all__ = [
    # Leaves
    "NotificationService",
    "UserDirectory",
    # Core workflow
    "GroupManager",
    "AllocationEngine",
    "TopicRegistry",
    # Supporting
    "AssessmentService",
]
