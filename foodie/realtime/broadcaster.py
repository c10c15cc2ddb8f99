"""
Dashboard Broadcaster

Recomputes one dashboard metric and pushes it to every connected socket
client. Used by the routes after the write that changed the metric, and
by the periodic Celery job.

Usage:
    broadcaster = DashboardBroadcaster(sio, db)
    await broadcaster.emit_orders_in_last_24_hours()
"""

import logging
from typing import Any, Awaitable, Callable, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from foodie.realtime import metrics
from foodie.realtime.events import SocketEvent

logger = logging.getLogger(__name__)


class EventEmitter(Protocol):
    """Anything with socket.io's AsyncServer.emit signature."""

    async def emit(self, event: str, data: Any = None, to: Any = None, **kwargs: Any) -> None:
        ...


class DashboardBroadcaster:
    def __init__(self, emitter: EventEmitter, db: AsyncSession):
        self.emitter = emitter
        self.db = db

    async def _emit(self, event: str, data: Any) -> None:
        try:
            await self.emitter.emit(event, data)
        except Exception as e:
            # A dead socket bus must not fail the request that triggered it
            logger.error(f"Socket emit of {event} failed: {e}")

    async def _emit_metric(
        self,
        event: SocketEvent,
        metric: Callable[[AsyncSession], Awaitable[Any]],
    ) -> None:
        try:
            value = await metric(self.db)
        except SQLAlchemyError:
            logger.exception(f"Failed to compute {event.value}")
            value = 0

        logger.debug(f"Emitting {event.value}={value}")
        await self._emit(event.value, value)

    async def emit_active_users(self) -> None:
        await self._emit_metric(SocketEvent.ACTIVE_USERS, metrics.count_active_users)

    async def emit_active_restaurants(self) -> None:
        await self._emit_metric(SocketEvent.CURRENT_ACTIVE_RESTAURANTS, metrics.count_active_restaurants)

    async def emit_orders_in_last_24_hours(self) -> None:
        await self._emit_metric(SocketEvent.ORDERS_IN_LAST_24_HOURS, metrics.count_orders_today)

    async def emit_total_revenue_in_last_24_hours(self) -> None:
        await self._emit_metric(SocketEvent.TOTAL_REVENUE_IN_LAST_24_HOURS, metrics.revenue_today)

    async def emit_cancelled_failed_orders_in_last_24_hours(self) -> None:
        await self._emit_metric(
            SocketEvent.CANCELLED_FAILED_ORDERS_IN_LAST_24_HOURS,
            metrics.count_cancelled_failed_today,
        )

    async def emit_active_products(self) -> None:
        await self._emit_metric(SocketEvent.ACTIVE_PRODUCTS, metrics.count_active_products)

    async def emit_order_status_update(self, order_id: str, new_status: str) -> None:
        await self._emit(
            SocketEvent.ORDER_STATUS_UPDATES.value,
            {"orderId": order_id, "newStatus": new_status},
        )

    async def emit_presence(self) -> None:
        """Login/logout moves both presence counters."""
        await self.emit_active_users()
        await self.emit_active_restaurants()

    async def emit_order_metrics(self) -> None:
        await self.emit_orders_in_last_24_hours()
        await self.emit_total_revenue_in_last_24_hours()
        await self.emit_cancelled_failed_orders_in_last_24_hours()

    async def emit_snapshot(self) -> None:
        """Re-broadcast every headline metric."""
        for event, metric in metrics.METRICS.items():
            await self._emit_metric(event, metric)
