from fastapi import APIRouter
from app.api.v1.endpoints import auth, users, topics, groups, projects, notifications, health

api_router = APIRouter()

# Deep health checks (use /health/ready for load balancers)
api_router.include_router(health.router)


@api_router.get("/health", tags=["Health"])
async def health_check():
    """Simple health check endpoint for load balancer"""
    return {"status": "healthy", "service": "projecthub-backend"}


api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(topics.router, prefix="/topics", tags=["Topics"])
api_router.include_router(groups.router, prefix="/groups", tags=["Student Groups"])
api_router.include_router(projects.router, prefix="/projects", tags=["Projects"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
