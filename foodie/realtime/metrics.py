"""
Dashboard Metrics

Aggregate counts behind the back-office "top states" cards. Every value
is recomputed from the database on demand; nothing is cached.

The order metrics cover the current UTC calendar day, which is what the
dashboard labels "last 24 hours".
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from foodie.models import (
    Order,
    OrderStatus,
    Payment,
    Product,
    ProductStatus,
    User,
    UserRole,
)
from foodie.realtime.events import SocketEvent


def today_window(now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """Return [start, end) of the UTC calendar day containing `now`."""
    now = now or datetime.now(timezone.utc)
    start = now.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


async def _count_active_accounts(db: AsyncSession, role: UserRole) -> int:
    result = await db.execute(
        select(func.count(User.id)).where(
            User.role == role,
            User.currently_active.is_(True),
            User.deleted.is_(False),
        )
    )
    return result.scalar() or 0


async def count_active_users(db: AsyncSession) -> int:
    return await _count_active_accounts(db, UserRole.USER)


async def count_active_restaurants(db: AsyncSession) -> int:
    return await _count_active_accounts(db, UserRole.RESTAURANT)


async def count_orders_today(db: AsyncSession) -> int:
    start, end = today_window()
    result = await db.execute(
        select(func.count(Order.id)).where(Order.created_at >= start, Order.created_at < end)
    )
    return result.scalar() or 0


async def revenue_today(db: AsyncSession) -> float:
    """Sum of payment amounts attached to today's orders."""
    start, end = today_window()
    result = await db.execute(
        select(func.sum(Payment.amount))
        .join(Order, Order.payment_id == Payment.id)
        .where(Order.created_at >= start, Order.created_at < end)
    )
    return round(result.scalar() or 0.0, 2)


async def count_cancelled_failed_today(db: AsyncSession) -> int:
    start, end = today_window()
    result = await db.execute(
        select(func.count(Order.id)).where(
            Order.status.in_([OrderStatus.CANCELLED, OrderStatus.FAILED]),
            Order.created_at >= start,
            Order.created_at < end,
        )
    )
    return result.scalar() or 0


async def count_active_products(db: AsyncSession) -> int:
    result = await db.execute(
        select(func.count(Product.id)).where(Product.status == ProductStatus.ACTIVE)
    )
    return result.scalar() or 0


# Event name -> metric query
METRICS = {
    SocketEvent.ORDERS_IN_LAST_24_HOURS: count_orders_today,
    SocketEvent.TOTAL_REVENUE_IN_LAST_24_HOURS: revenue_today,
    SocketEvent.CANCELLED_FAILED_ORDERS_IN_LAST_24_HOURS: count_cancelled_failed_today,
    SocketEvent.ACTIVE_PRODUCTS: count_active_products,
    SocketEvent.ACTIVE_USERS: count_active_users,
    SocketEvent.CURRENT_ACTIVE_RESTAURANTS: count_active_restaurants,
}


async def collect_snapshot(db: AsyncSession) -> dict[str, float]:
    """All six headline metrics keyed by their socket event name."""
    return {event.value: await metric(db) for event, metric in METRICS.items()}
