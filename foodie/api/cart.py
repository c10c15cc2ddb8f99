"""
Cart router
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from foodie.api.deps import get_current_user
from foodie.database import get_db
from foodie.models import User
from foodie.schemas import (
    CartAddRequest,
    CartEnvelope,
    CartQuantityRequest,
    CartResponse,
)
from foodie.services import cart as cart_service

router = APIRouter(prefix="/api/cart", tags=["Cart"])


def cart_envelope(message: str, cart) -> CartEnvelope:
    payload = CartResponse.model_validate(cart)
    payload.cart_items = [item for item in payload.cart_items if item.quantity > 0]
    return CartEnvelope(message=message, cart=payload)


@router.post("/add-to-cart", response_model=CartEnvelope, status_code=status.HTTP_201_CREATED)
async def add_to_cart(
    data: CartAddRequest,
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CartEnvelope:
    """201 when a new line was created, 200 when an existing line grew."""
    cart, created = await cart_service.add_item(db, user, data.product_id, data.quantity)
    if not created:
        response.status_code = status.HTTP_200_OK
    return cart_envelope("Item added to cart", cart)


@router.get("/get", response_model=CartEnvelope)
async def get_cart(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CartEnvelope:
    cart = await cart_service.get_user_cart(db, user)
    if cart is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cart not found")
    return cart_envelope("Cart fetched successfully", cart)


@router.delete("/delete-cart-item/{cart_item_id}", response_model=CartEnvelope)
async def delete_cart_item(
    cart_item_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CartEnvelope:
    cart = await cart_service.delete_item(db, user, cart_item_id)
    return cart_envelope("Cart item deleted successfully", cart)


@router.delete("/clear-cart", response_model=CartEnvelope)
async def clear_cart(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CartEnvelope:
    cart = await cart_service.clear_cart(db, user)
    return cart_envelope("Cart cleared successfully", cart)


@router.put("/update-cart-item-quantity/{cart_item_id}", response_model=CartEnvelope)
async def update_cart_item_quantity(
    cart_item_id: int,
    data: CartQuantityRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CartEnvelope:
    """A quantity of zero or less removes the line."""
    cart, deleted = await cart_service.set_item_quantity(db, user, cart_item_id, data.quantity)
    message = "Cart item deleted successfully" if deleted else "Cart item quantity updated successfully"
    return cart_envelope(message, cart)
