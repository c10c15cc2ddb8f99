"""
Admin back-office router

Every mutation here writes an AuditLog row in the same transaction.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from foodie.api.deps import get_broadcaster, require_admin
from foodie.core.config import get_settings
from foodie.core.security import hash_password, verify_password
from foodie.database import get_db
from foodie.models import (
    AuditLog,
    Order,
    OrderItem,
    OrderStatus,
    Product,
    User,
    UserRole,
)
from foodie.realtime.broadcaster import DashboardBroadcaster
from foodie.schemas import (
    AdminCreateRequest,
    AuditLogResponse,
    AuthResponse,
    DataEnvelope,
    LoginRequest,
    MessageResponse,
    OrderResponse,
    ProductResponse,
    RestaurantResponse,
    UserResponse,
    UserUpdateRequest,
)
from foodie.services import audit
from foodie.services.accounts import find_user_by_email, revoke_tokens, sign_in, sign_out

router = APIRouter(prefix="/api/admin", tags=["Admin"])
logger = logging.getLogger(__name__)
settings = get_settings()


# =============================================================================
# SESSION
# =============================================================================

@router.post("/login", response_model=AuthResponse)
async def login_admin(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    admin = await find_user_by_email(db, data.email)
    if admin is None or admin.role != UserRole.ADMIN or admin.deleted:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Admin not found")

    if not verify_password(data.password, admin.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid password")

    token = await sign_in(db, admin, settings.user_token_days)
    return AuthResponse(
        message="Admin logged in successfully",
        token=token,
        user=UserResponse.model_validate(admin),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout_admin(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await sign_out(db, admin)
    return MessageResponse(message="Admin logged out successfully")


# =============================================================================
# ADMINS
# =============================================================================

@router.get("/all", response_model=DataEnvelope)
async def list_admins(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> DataEnvelope:
    result = await db.execute(
        select(User).where(User.role == UserRole.ADMIN, User.deleted.is_(False)).order_by(User.id)
    )
    return DataEnvelope(
        message="Admins fetched successfully",
        data=[UserResponse.model_validate(u) for u in result.scalars().all()],
    )


@router.post("/add", response_model=DataEnvelope, status_code=status.HTTP_201_CREATED)
async def add_admin(
    data: AdminCreateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> DataEnvelope:
    """
    Grant admin rights.

    An existing account with that email is promoted (its password is
    left alone); otherwise a new admin account is created.
    """
    existing = await find_user_by_email(db, data.email)

    if existing is not None and existing.role == UserRole.ADMIN and not existing.deleted:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Admin already exists")

    if existing is not None:
        previous_role = existing.role
        existing.role = UserRole.ADMIN
        existing.deleted = False
        target = existing
        await revoke_tokens(db, existing.id)
        await db.flush()
        audit.record(db, admin, "PROMOTE", "ADMIN", target.id, {"from": previous_role.value})
    else:
        target = User(
            email=data.email.lower(),
            name=data.name,
            hashed_password=hash_password(data.password),
            role=UserRole.ADMIN,
        )
        db.add(target)
        await db.flush()
        audit.record(db, admin, "CREATE", "ADMIN", target.id, {"email": target.email})

    await db.commit()
    return DataEnvelope(
        message="Admin added successfully",
        data=UserResponse.model_validate(target),
    )


@router.delete("/revoke/{admin_id}", response_model=MessageResponse)
async def revoke_admin(
    admin_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Demote an admin to a plain user and end its sessions."""
    if admin_id == admin.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot revoke yourself")

    target = await db.get(User, admin_id)
    if target is None or target.role != UserRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Admin not found")

    target.role = UserRole.USER
    target.currently_active = False
    await revoke_tokens(db, target.id)
    audit.record(db, admin, "REVOKE", "ADMIN", target.id, {"email": target.email})
    await db.commit()

    return MessageResponse(message="Admin revoked successfully")


# =============================================================================
# USERS
# =============================================================================

@router.get("/users", response_model=DataEnvelope)
async def list_users(
    role: Optional[UserRole] = Query(None),
    include_deleted: bool = Query(False),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> DataEnvelope:
    query = select(User).order_by(User.id)
    if role is not None:
        query = query.where(User.role == role)
    if not include_deleted:
        query = query.where(User.deleted.is_(False))

    result = await db.execute(query)
    return DataEnvelope(
        message="Users fetched successfully",
        data=[UserResponse.model_validate(u) for u in result.scalars().all()],
    )


@router.put("/update-user/{user_id}", response_model=DataEnvelope)
async def update_user(
    user_id: int,
    data: UserUpdateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    broadcaster: DashboardBroadcaster = Depends(get_broadcaster),
) -> DataEnvelope:
    target = await db.get(User, user_id)
    if target is None or target.deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    changes = data.model_dump(exclude_unset=True)

    if "email" in changes:
        changes["email"] = changes["email"].lower()
        other = await find_user_by_email(db, changes["email"])
        if other is not None and other.id != target.id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already in use")

    if changes.get("role") == UserRole.RESTAURANT and target.restaurant_profile is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Restaurants must register with a profile",
        )

    for field, value in changes.items():
        setattr(target, field, value)

    audit.record(
        db,
        admin,
        "UPDATE",
        "USER",
        target.id,
        {k: (v.value if isinstance(v, UserRole) else v) for k, v in changes.items()},
    )
    await db.commit()

    if "role" in changes:
        await broadcaster.emit_presence()

    return DataEnvelope(
        message="User updated successfully",
        data=UserResponse.model_validate(target),
    )


@router.delete("/delete-user/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    broadcaster: DashboardBroadcaster = Depends(get_broadcaster),
) -> MessageResponse:
    """Soft delete: the account can no longer log in, its history stays."""
    if user_id == admin.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete yourself")

    target = await db.get(User, user_id)
    if target is None or target.deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    target.deleted = True
    target.currently_active = False
    await revoke_tokens(db, target.id)
    audit.record(db, admin, "DELETE", "USER", target.id, {"email": target.email})
    await db.commit()

    await broadcaster.emit_presence()
    return MessageResponse(message="User deleted successfully")


# =============================================================================
# RESTAURANTS, PRODUCTS, ORDERS
# =============================================================================

async def get_restaurant_or_404(db: AsyncSession, restaurant_id: int) -> User:
    """Any RESTAURANT account, soft-deleted ones included."""
    restaurant = await db.get(User, restaurant_id)
    if restaurant is None or restaurant.role != UserRole.RESTAURANT:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Restaurant not found")
    return restaurant


@router.get("/restaurants", response_model=DataEnvelope)
async def list_restaurants(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> DataEnvelope:
    result = await db.execute(
        select(User)
        .where(User.role == UserRole.RESTAURANT, User.deleted.is_(False))
        .order_by(User.id)
    )
    return DataEnvelope(
        message="Restaurants fetched successfully",
        data=[RestaurantResponse.model_validate(r) for r in result.scalars().all()],
    )


@router.get("/products/restaurant/{restaurant_id}", response_model=DataEnvelope)
async def list_restaurant_products(
    restaurant_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> DataEnvelope:
    await get_restaurant_or_404(db, restaurant_id)
    result = await db.execute(
        select(Product)
        .where(Product.restaurants.any(User.id == restaurant_id))
        .order_by(Product.id)
    )
    return DataEnvelope(
        message="Products fetched successfully",
        data=[ProductResponse.model_validate(p) for p in result.scalars().all()],
    )


@router.get("/orders/restaurant/{restaurant_id}", response_model=DataEnvelope)
async def list_restaurant_orders(
    restaurant_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> DataEnvelope:
    """Orders containing at least one product the restaurant offers."""
    await get_restaurant_or_404(db, restaurant_id)
    result = await db.execute(
        select(Order)
        .where(
            Order.items.any(
                OrderItem.product.has(Product.restaurants.any(User.id == restaurant_id))
            )
        )
        .order_by(Order.created_at.desc(), Order.id.desc())
    )
    return DataEnvelope(
        message="Orders fetched successfully",
        data=[OrderResponse.model_validate(o) for o in result.scalars().all()],
    )


@router.get("/orders", response_model=DataEnvelope)
async def list_orders(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    status_filter: Optional[str] = Query(None, alias="status"),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> DataEnvelope:
    """Every order, newest first."""
    query = select(Order).order_by(Order.created_at.desc(), Order.id.desc())

    if status_filter:
        try:
            status_enum = OrderStatus(status_filter.upper())
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid status. Options: {[s.value for s in OrderStatus]}",
            )
        query = query.where(Order.status == status_enum)

    result = await db.execute(query.offset(skip).limit(limit))
    return DataEnvelope(
        message="Orders fetched successfully",
        data=[OrderResponse.model_validate(o) for o in result.scalars().all()],
    )


@router.get("/audit-logs", response_model=DataEnvelope)
async def list_audit_logs(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> DataEnvelope:
    result = await db.execute(
        select(AuditLog)
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .offset(skip)
        .limit(limit)
    )
    return DataEnvelope(
        message="Audit logs fetched successfully",
        data=[AuditLogResponse.model_validate(a) for a in result.scalars().all()],
    )
