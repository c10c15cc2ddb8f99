"""
Restaurant accounts router
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from foodie.api.deps import get_broadcaster, require_admin, require_restaurant
from foodie.core.config import get_settings
from foodie.core.security import hash_password, verify_password
from foodie.database import get_db
from foodie.models import RestaurantProfile, User, UserRole
from foodie.realtime.broadcaster import DashboardBroadcaster
from foodie.schemas import (
    LoginRequest,
    MessageResponse,
    RestaurantAuthResponse,
    RestaurantEnvelope,
    RestaurantRegisterRequest,
    RestaurantResponse,
)
from foodie.services import audit
from foodie.services.accounts import find_user_by_email, revoke_tokens, sign_in, sign_out

router = APIRouter(prefix="/api/restaurant", tags=["Restaurants"])
logger = logging.getLogger(__name__)
settings = get_settings()


@router.post("/register", response_model=RestaurantEnvelope, status_code=status.HTTP_201_CREATED)
async def register_restaurant(
    data: RestaurantRegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> RestaurantEnvelope:
    if await find_user_by_email(db, data.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Restaurant already exists")

    restaurant = User(
        username=data.username,
        name=data.name,
        email=data.email.lower(),
        hashed_password=hash_password(data.password),
        role=UserRole.RESTAURANT,
        restaurant_profile=RestaurantProfile(
            name=data.name,
            description=data.description,
            logo=data.logo,
        ),
    )
    db.add(restaurant)
    await db.commit()

    logger.info(f"Registered restaurant #{restaurant.id} ({data.name})")
    return RestaurantEnvelope(
        message="Restaurant registered successfully",
        restaurant=RestaurantResponse.model_validate(restaurant),
    )


@router.post("/login", response_model=RestaurantAuthResponse)
async def login_restaurant(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
    broadcaster: DashboardBroadcaster = Depends(get_broadcaster),
) -> RestaurantAuthResponse:
    restaurant = await find_user_by_email(db, data.email)

    # Same answer for every failure
    if (
        restaurant is None
        or restaurant.deleted
        or restaurant.role != UserRole.RESTAURANT
        or not verify_password(data.password, restaurant.hashed_password)
    ):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    token = await sign_in(db, restaurant, settings.restaurant_token_days)
    await broadcaster.emit_active_restaurants()

    return RestaurantAuthResponse(
        message="Login successful",
        token=token,
        user=RestaurantResponse.model_validate(restaurant),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout_restaurant(
    restaurant: User = Depends(require_restaurant),
    db: AsyncSession = Depends(get_db),
    broadcaster: DashboardBroadcaster = Depends(get_broadcaster),
) -> MessageResponse:
    await sign_out(db, restaurant)
    await broadcaster.emit_active_restaurants()
    return MessageResponse(message="Logout successful")


@router.get("/profile", response_model=RestaurantEnvelope)
async def restaurant_profile(
    restaurant: User = Depends(require_restaurant),
) -> RestaurantEnvelope:
    return RestaurantEnvelope(
        message="Restaurant fetched successfully",
        restaurant=RestaurantResponse.model_validate(restaurant),
    )


@router.delete("/delete/{restaurant_id}", response_model=MessageResponse)
async def delete_restaurant(
    restaurant_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    broadcaster: DashboardBroadcaster = Depends(get_broadcaster),
) -> MessageResponse:
    """Disable a restaurant. The row stays for order history."""
    restaurant = await db.get(User, restaurant_id)
    if restaurant is None or restaurant.role != UserRole.RESTAURANT or restaurant.deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Restaurant not found")

    restaurant.deleted = True
    restaurant.currently_active = False
    await revoke_tokens(db, restaurant.id)
    audit.record(db, admin, "DELETE", "RESTAURANT", restaurant.id, {"email": restaurant.email})
    await db.commit()

    await broadcaster.emit_active_restaurants()
    return MessageResponse(message="Restaurant deleted successfully")
