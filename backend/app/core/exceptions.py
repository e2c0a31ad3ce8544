"""
Custom Exceptions for Integral Project Hub
==========================================

Services raise these instead of HTTPException so the same rules work from
the API, seed scripts and tests. The exception handler in app.main turns
them into structured JSON responses using `status_code` and `to_dict()`.

Usage:
    from app.core.exceptions import TopicNotFoundError, ConflictError

    if not topic:
        raise TopicNotFoundError(topic_id)
    if await is_topic_allocated(db, topic_id):
        raise ConflictError("This topic has already been selected by another student/group")
"""

from typing import Optional, Any, Dict


class ProjectHubError(Exception):
    """Base exception for all domain errors"""

    status_code = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(ProjectHubError):
    """Input is malformed, missing or out of range"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class InvalidStateError(ProjectHubError):
    """Entity is in the wrong lifecycle state for the operation"""

    status_code = 400

    def __init__(self, message: str, state: Optional[str] = None):
        details = {"state": state} if state else {}
        super().__init__(message, code="INVALID_STATE", details=details)


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(ProjectHubError):
    """User authentication failed"""

    status_code = 401

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_FAILED")


class AuthorizationError(ProjectHubError):
    """User lacks the role or authority for this action"""

    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, code="NOT_AUTHORIZED")


# ============================================
# Resource Errors (404-type)
# ============================================

class NotFoundError(ProjectHubError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: Any):
        super().__init__(
            f"{resource_type} with ID '{resource_id}' not found",
            code=f"{resource_type.upper().replace(' ', '_')}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": str(resource_id)}
        )


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: Any):
        super().__init__("User", user_id)


class TopicNotFoundError(NotFoundError):
    def __init__(self, topic_id: Any):
        super().__init__("Topic", topic_id)


class GroupNotFoundError(NotFoundError):
    def __init__(self, group_id: Any):
        super().__init__("Group", group_id)


class ProjectNotFoundError(NotFoundError):
    def __init__(self, project_id: Any):
        super().__init__("Project", project_id)


# ============================================
# Conflict Errors (409-type)
# ============================================

class ConflictError(ProjectHubError):
    """A uniqueness rule would be violated"""

    status_code = 409

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CONFLICT", details=details)


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: ProjectHubError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "detail": error.message,
        "error": error.to_dict()
    }
