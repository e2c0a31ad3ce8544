from fastapi import APIRouter, Depends, status, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.rate_limiter import limiter
from app.core.security import create_access_token
from app.models.user import User
from app.modules.auth.dependencies import get_current_user
from app.schemas.auth import (
    UserRegister,
    UserLogin,
    LoginResponse,
    UserResponse,
    ProfileUpdate,
    PasswordChange,
)
from app.schemas.group import MessageResponse
from app.services.user_directory import UserDirectory


router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.REGISTER_RATE_LIMIT)
async def register(
    request: Request,
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """Register a new account (rate limited)"""
    user = await UserDirectory(db).register_user(user_data)
    return UserResponse.model_validate(user)


@router.post("/login", response_model=LoginResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """Exchange username and password for a bearer token (rate limited)"""
    user = await UserDirectory(db).authenticate(credentials.username, credentials.password)
    access_token = create_access_token({"sub": str(user.id), "role": user.role.value})
    return LoginResponse(access_token=access_token, user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return UserResponse.model_validate(current_user)


@router.patch("/me", response_model=UserResponse)
async def update_me(
    changes: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update own first name, last name or email"""
    user = await UserDirectory(db).update_profile(current_user.id, changes)
    return UserResponse.model_validate(user)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    payload: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await UserDirectory(db).change_password(
        current_user.id, payload.current_password, payload.new_password
    )
    return MessageResponse(message="Password updated successfully")
