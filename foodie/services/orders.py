"""
Checkout

Turns a list of (product, quantity) lines into an order with its payment
record. Prices come from the catalog at checkout time; a client-supplied
amount is only cross-checked.
"""

import logging
import secrets
import time
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from foodie.core.config import get_settings
from foodie.models import (
    Address,
    Cart,
    CartItem,
    Order,
    OrderItem,
    OrderStatus,
    Payment,
    PaymentMethod,
    PaymentStatus,
    Product,
    ProductStatus,
    User,
    UserRole,
)
from foodie.schemas import OrderCreateRequest
from foodie.services.payment import BasePaymentGateway

logger = logging.getLogger(__name__)
settings = get_settings()

# Largest tolerated gap between the client's amount and ours
AMOUNT_TOLERANCE = 0.01

MAX_ORDER_ID_ATTEMPTS = 5


def epoch_millis() -> int:
    return int(time.time() * 1000)


def generate_order_id(attempt: int = 0) -> str:
    """ORD_<epoch-ms>; retries after a same-millisecond clash get a random suffix."""
    order_id = f"{settings.order_id_prefix}_{epoch_millis()}"
    if attempt:
        order_id = f"{order_id}_{secrets.token_hex(3)}"
    return order_id


def generate_receipt() -> str:
    return f"{settings.receipt_prefix}_{epoch_millis()}"


async def load_order(db: AsyncSession, order_pk: int) -> Order:
    result = await db.execute(
        select(Order).where(Order.id == order_pk).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def order_id_taken(db: AsyncSession, order_id: str) -> bool:
    result = await db.execute(select(Order.id).where(Order.order_id == order_id))
    return result.first() is not None


async def payment_already_used(db: AsyncSession, razorpay_payment_id: str) -> bool:
    result = await db.execute(select(Payment.id).where(Payment.razorpay_payment_id == razorpay_payment_id))
    return result.first() is not None


async def place_order(
    db: AsyncSession,
    user: User,
    data: OrderCreateRequest,
    gateway: BasePaymentGateway,
) -> Order:
    """
    Create payment, order and items, and empty the user's carts.

    Everything is written in one transaction; on any failure nothing is
    kept and the carts are untouched. A gateway payment pays for exactly
    one order.

    Raises:
        HTTPException: 404 address, 400 product/amount/signature/reused
            payment/duplicate id
    """
    user_id = user.id
    receiver_name = data.receiver_name or user.name or user.email

    address = await db.get(Address, data.address_id)
    if address is None or address.user_id != user_id or address.deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Address not found")
    address_id = address.id

    # Snapshot catalog prices
    product_ids = {item.product_id for item in data.items}
    result = await db.execute(select(Product).where(Product.id.in_(product_ids)))
    products = {product.id: product for product in result.scalars().all()}

    lines = []
    amount = 0.0
    for item in data.items:
        product = products.get(item.product_id)
        if product is None or product.status != ProductStatus.ACTIVE:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Product {item.product_id} is not available",
            )
        lines.append((product.id, item.quantity, product.price))
        amount += product.price * item.quantity
    amount = round(amount, 2)

    if data.amount is not None and abs(data.amount - amount) > AMOUNT_TOLERANCE:
        logger.warning(f"Amount mismatch for user #{user_id}: client={data.amount} server={amount}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Amount mismatch")

    prepaid = data.payment_method == PaymentMethod.PREPAID
    if prepaid:
        if not (data.razorpay_order_id and data.razorpay_payment_id and data.razorpay_signature):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Payment details are required for prepaid orders",
            )
        if not gateway.verify_payment_signature(
            data.razorpay_order_id,
            data.razorpay_payment_id,
            data.razorpay_signature,
        ):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid signature")
        if await payment_already_used(db, data.razorpay_payment_id):
            logger.warning(f"Payment {data.razorpay_payment_id} replayed by user #{user_id}")
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Payment already used")

    if data.order_id is not None and await order_id_taken(db, data.order_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Order id already exists")

    cart_ids = select(Cart.id).where(Cart.user_id == user_id)
    for attempt in range(MAX_ORDER_ID_ATTEMPTS):
        public_id = data.order_id or generate_order_id(attempt)
        if data.order_id is None and await order_id_taken(db, public_id):
            continue

        payment = Payment(amount=amount, method=data.payment_method)
        if prepaid:
            payment.status = PaymentStatus.PAID
            payment.razorpay_order_id = data.razorpay_order_id
            payment.razorpay_payment_id = data.razorpay_payment_id
            payment.razorpay_signature = data.razorpay_signature
        else:
            payment.status = PaymentStatus.PENDING

        order = Order(
            order_id=public_id,
            receiver_name=receiver_name,
            user_id=user_id,
            address_id=address_id,
            payment=payment,
            status=OrderStatus.CONFIRMED if prepaid else OrderStatus.PENDING,
            items=[OrderItem(product_id=pid, quantity=qty, price=price) for pid, qty, price in lines],
        )
        db.add(order)

        try:
            await db.flush()
            await db.execute(delete(CartItem).where(CartItem.cart_id.in_(cart_ids)))
            await db.execute(delete(Cart).where(Cart.user_id == user_id))
            await db.commit()
            break
        except IntegrityError:
            await db.rollback()
            # a concurrent checkout won the race for the payment or the id
            if prepaid and await payment_already_used(db, data.razorpay_payment_id):
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Payment already used")
            if data.order_id is not None:
                logger.warning(f"Duplicate order id {public_id}")
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Order id already exists")
            logger.warning(f"Generated order id {public_id} collided, retrying")
    else:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not allocate an order id, please retry",
        )

    logger.info(
        f"Order {public_id} placed by user #{user_id}: "
        f"{amount:.2f} {settings.payment_currency} ({data.payment_method.value})"
    )
    return await load_order(db, order.id)


def can_set_status(user: User, order: Order, new_status: OrderStatus) -> bool:
    """RESTAURANT and ADMIN set anything; the owning customer may only cancel."""
    if user.role in (UserRole.RESTAURANT, UserRole.ADMIN):
        return True
    return order.user_id == user.id and new_status == OrderStatus.CANCELLED


async def update_status(db: AsyncSession, user: User, order_id: str, new_status: Optional[OrderStatus]) -> Order:
    if new_status is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Status is required")

    result = await db.execute(select(Order).where(Order.order_id == order_id))
    order = result.scalar_one_or_none()
    if order is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")

    if not can_set_status(user, order, new_status):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to update this order")

    old_status = order.status
    order.status = new_status
    await db.commit()

    logger.info(f"Order {order.order_id}: {old_status.value} -> {new_status.value} by user #{user.id}")
    return await load_order(db, order.id)
