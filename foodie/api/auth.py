"""
Customer authentication router
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from foodie.api.deps import get_broadcaster, get_current_user
from foodie.core.config import get_settings
from foodie.core.security import hash_password, verify_password
from foodie.database import get_db
from foodie.models import User, UserRole
from foodie.realtime.broadcaster import DashboardBroadcaster
from foodie.schemas import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    UserDetailResponse,
    UserEnvelope,
    UserResponse,
)
from foodie.services.accounts import find_user_by_email, sign_in, sign_out

router = APIRouter(prefix="/api/auth", tags=["Authentication"])
logger = logging.getLogger(__name__)
settings = get_settings()


@router.post("/register", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Register a customer (or restaurant) account."""
    if data.role == UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Admin accounts cannot be registered here",
        )

    if await find_user_by_email(db, data.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already exists")

    user = User(
        username=data.username,
        email=data.email.lower(),
        hashed_password=hash_password(data.password),
        role=data.role,
    )
    db.add(user)
    await db.commit()

    logger.info(f"Registered {user.role.value} #{user.id}")
    return MessageResponse(message="User registered successfully")


@router.post("/login", response_model=AuthResponse)
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
    broadcaster: DashboardBroadcaster = Depends(get_broadcaster),
) -> AuthResponse:
    user = await find_user_by_email(db, data.email)
    if user is None or user.deleted:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    if not verify_password(data.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid password")

    days = settings.restaurant_token_days if user.role == UserRole.RESTAURANT else settings.user_token_days
    token = await sign_in(db, user, days)

    await broadcaster.emit_presence()

    return AuthResponse(
        message="Login successful",
        token=token,
        user=UserResponse.model_validate(user),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    broadcaster: DashboardBroadcaster = Depends(get_broadcaster),
) -> MessageResponse:
    await sign_out(db, user)
    await broadcaster.emit_presence()
    return MessageResponse(message="Logout successful")


@router.get("/me", response_model=UserEnvelope)
async def me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserEnvelope:
    """The caller with addresses, orders and carts."""
    result = await db.execute(
        select(User)
        .where(User.id == user.id)
        .options(
            selectinload(User.addresses),
            selectinload(User.orders),
            selectinload(User.carts),
        )
        .execution_options(populate_existing=True)
    )
    user = result.scalar_one()

    return UserEnvelope(
        message="User fetched successfully",
        user=UserDetailResponse.model_validate(user),
    )
