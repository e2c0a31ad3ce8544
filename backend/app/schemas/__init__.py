# Pydantic schemas
from app.schemas.auth import (
    UserRegister,
    UserLogin,
    UserResponse,
    LoginResponse,
    ProfileUpdate,
    PasswordChange,
    AdminUserUpdate,
)
from app.schemas.topic import (
    TopicCreate,
    TopicUpdate,
    TopicReview,
    TopicResponse,
    TopicCatalogResponse,
)
from app.schemas.group import (
    GroupCreate,
    GroupResponse,
    GroupDetailResponse,
    GroupMemberResponse,
    MessageResponse,
)
from app.schemas.project import (
    ProjectCreate,
    ProjectResponse,
    ProjectDetailResponse,
    ProgressUpdate,
    AssessmentCreate,
    AssessmentResponse,
)
from app.schemas.notification import NotificationResponse
