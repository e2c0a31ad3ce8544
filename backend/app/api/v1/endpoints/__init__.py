# API endpoints
from . import auth, users, topics, groups, projects, notifications, health

__all__ = ["auth", "users", "topics", "groups", "projects", "notifications", "health"]
