"""
Orders and payments router
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from foodie.api.deps import get_broadcaster, get_current_user
from foodie.core.config import get_settings
from foodie.database import get_db
from foodie.models import Order, User
from foodie.realtime.broadcaster import DashboardBroadcaster
from foodie.schemas import (
    GatewayOrderEnvelope,
    GatewayOrderRequest,
    MessageResponse,
    OrderCreateRequest,
    OrderEnvelope,
    OrderListEnvelope,
    OrderResponse,
    OrderStatusRequest,
    VerifyPaymentRequest,
)
from foodie.services import orders as order_service
from foodie.services.payment import BasePaymentGateway, get_payment_gateway

router = APIRouter(prefix="/api/order", tags=["Orders"])
logger = logging.getLogger(__name__)
settings = get_settings()


# =============================================================================
# PAYMENT GATEWAY
# =============================================================================

@router.post("/create-razorpay-order", response_model=GatewayOrderEnvelope)
async def create_gateway_order(
    data: GatewayOrderRequest,
    user: User = Depends(get_current_user),
    gateway: BasePaymentGateway = Depends(get_payment_gateway),
) -> GatewayOrderEnvelope:
    """Open a gateway order the storefront's checkout widget pays into."""
    result = await gateway.create_order(
        amount=data.amount,
        currency=settings.payment_currency,
        receipt=order_service.generate_receipt(),
        notes={"user_id": str(user.id)},
    )

    if not result.success:
        logger.error(f"Gateway order failed for user #{user.id}: {result.error_code} - {result.error_message}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to create razorpay order")

    return GatewayOrderEnvelope(
        message="Razorpay order created successfully",
        order={**result.to_dict(), "key_id": gateway.key_id},
    )


@router.post("/verify-razorpay-order", response_model=MessageResponse)
async def verify_gateway_payment(
    data: VerifyPaymentRequest,
    user: User = Depends(get_current_user),
    gateway: BasePaymentGateway = Depends(get_payment_gateway),
) -> MessageResponse:
    payment = data.data
    if not gateway.verify_payment_signature(
        payment.razorpay_order_id,
        payment.razorpay_payment_id,
        payment.razorpay_signature,
    ):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid signature")

    return MessageResponse(message="Razorpay order verified successfully")


# =============================================================================
# ORDERS
# =============================================================================

@router.post("/create-order", response_model=OrderEnvelope, status_code=status.HTTP_201_CREATED)
async def create_order(
    data: OrderCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateway: BasePaymentGateway = Depends(get_payment_gateway),
    broadcaster: DashboardBroadcaster = Depends(get_broadcaster),
) -> OrderEnvelope:
    order = await order_service.place_order(db, user, data, gateway)

    await broadcaster.emit_order_metrics()

    return OrderEnvelope(
        message="Order created successfully",
        order=OrderResponse.model_validate(order),
    )


@router.get("/get-orders", response_model=OrderListEnvelope)
async def list_my_orders(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> OrderListEnvelope:
    result = await db.execute(
        select(Order)
        .where(Order.user_id == user.id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    )
    return OrderListEnvelope(
        message="Orders fetched successfully",
        orders=[OrderResponse.model_validate(o) for o in result.scalars().all()],
    )


@router.get("/get-order/{order_id}", response_model=OrderEnvelope)
async def get_order(
    order_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> OrderEnvelope:
    result = await db.execute(
        select(Order).where(Order.order_id == order_id, Order.user_id == user.id)
    )
    order = result.scalar_one_or_none()
    if order is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")

    return OrderEnvelope(
        message="Order fetched successfully",
        order=OrderResponse.model_validate(order),
    )


@router.put("/update-order-status/{order_id}", response_model=OrderEnvelope)
async def update_order_status(
    order_id: str,
    data: OrderStatusRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    broadcaster: DashboardBroadcaster = Depends(get_broadcaster),
) -> OrderEnvelope:
    order = await order_service.update_status(db, user, order_id, data.status)

    await broadcaster.emit_order_status_update(order.order_id, order.status.value)
    await broadcaster.emit_cancelled_failed_orders_in_last_24_hours()

    return OrderEnvelope(
        message="Order status updated successfully",
        order=OrderResponse.model_validate(order),
    )
