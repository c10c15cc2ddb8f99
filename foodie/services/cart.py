"""
Cart Bookkeeping

The stored cart_total is a cache of sum(product.price * quantity) over the
cart's lines. Every write in this module ends with recompute_cart_total(),
which re-sums the lines from scratch rather than adjusting the old value.
"""

import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from foodie.models import Cart, CartItem, Product, ProductStatus, User

logger = logging.getLogger(__name__)


async def get_user_cart(db: AsyncSession, user: User) -> Optional[Cart]:
    result = await db.execute(
        select(Cart).where(Cart.user_id == user.id).order_by(Cart.id).limit(1)
    )
    return result.scalar_one_or_none()


async def load_cart(db: AsyncSession, cart_id: int) -> Cart:
    """Fresh copy of a cart with its lines and their products."""
    result = await db.execute(
        select(Cart).where(Cart.id == cart_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def get_or_create_cart(db: AsyncSession, user: User) -> Cart:
    cart = await get_user_cart(db, user)
    if cart is None:
        cart = Cart(user_id=user.id, cart_total=0.0, cart_items=[])
        db.add(cart)
        await db.flush()
        logger.info(f"Created cart #{cart.id} for user #{user.id}")
    return cart


async def recompute_cart_total(db: AsyncSession, cart: Cart) -> Cart:
    """
    Re-sum the cart from its current lines.

    Flushes pending line changes first so the sum sees them.
    """
    await db.flush()

    result = await db.execute(
        select(CartItem.quantity, Product.price)
        .join(Product, Product.id == CartItem.product_id)
        .where(CartItem.cart_id == cart.id)
    )
    total = sum(price * quantity for quantity, price in result.all())
    cart.cart_total = round(total, 2)

    await db.flush()
    return cart


async def add_item(db: AsyncSession, user: User, product_id: int, quantity: int) -> tuple[Cart, bool]:
    """
    Add `quantity` of a product to the user's cart.

    Returns:
        Tuple of (cart, created) where created is True when a new line
        was inserted and False when an existing line was incremented.

    Raises:
        HTTPException: 404 unknown product, 400 product not ACTIVE
    """
    product = await db.get(Product, product_id)
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    if product.status != ProductStatus.ACTIVE:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Product is not available")

    cart = await get_or_create_cart(db, user)

    result = await db.execute(
        select(CartItem).where(CartItem.cart_id == cart.id, CartItem.product_id == product.id)
    )
    line = result.scalar_one_or_none()

    created = line is None
    if created:
        db.add(CartItem(cart_id=cart.id, product_id=product.id, quantity=quantity))
    else:
        line.quantity += quantity

    cart = await recompute_cart_total(db, cart)
    await db.commit()
    return await load_cart(db, cart.id), created


async def get_owned_item(db: AsyncSession, user: User, cart_item_id: int) -> CartItem:
    """A cart line of the caller's cart, or 404."""
    result = await db.execute(
        select(CartItem)
        .join(Cart, Cart.id == CartItem.cart_id)
        .where(CartItem.id == cart_item_id, Cart.user_id == user.id)
    )
    line = result.scalar_one_or_none()
    if line is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cart item not found")
    return line


async def delete_item(db: AsyncSession, user: User, cart_item_id: int) -> Cart:
    line = await get_owned_item(db, user, cart_item_id)
    cart = await db.get(Cart, line.cart_id)

    await db.delete(line)
    cart = await recompute_cart_total(db, cart)
    await db.commit()
    return await load_cart(db, cart.id)


async def set_item_quantity(db: AsyncSession, user: User, cart_item_id: int, quantity: int) -> tuple[Cart, bool]:
    """
    Set a line's quantity; zero or less removes the line.

    Returns:
        Tuple of (cart, deleted)
    """
    line = await get_owned_item(db, user, cart_item_id)
    cart = await db.get(Cart, line.cart_id)

    deleted = quantity <= 0
    if deleted:
        await db.delete(line)
    else:
        line.quantity = quantity

    cart = await recompute_cart_total(db, cart)
    await db.commit()
    return await load_cart(db, cart.id), deleted


async def clear_cart(db: AsyncSession, user: User) -> Cart:
    cart = await get_user_cart(db, user)
    if cart is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cart not found")

    for line in list(cart.cart_items):
        await db.delete(line)

    cart = await recompute_cart_total(db, cart)
    await db.commit()
    return await load_cart(db, cart.id)


async def fill_cart(db: AsyncSession, user: User, quantity: int) -> Cart:
    """Put up to `quantity` distinct ACTIVE products in the cart, one each."""
    result = await db.execute(
        select(Product)
        .where(Product.status == ProductStatus.ACTIVE)
        .order_by(Product.id)
        .limit(quantity)
    )
    products = result.scalars().all()
    if not products:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No products found")

    cart = await get_or_create_cart(db, user)
    lines = {line.product_id: line for line in cart.cart_items}

    for product in products:
        if product.id in lines:
            lines[product.id].quantity += 1
        else:
            db.add(CartItem(cart_id=cart.id, product_id=product.id, quantity=1))

    cart = await recompute_cart_total(db, cart)
    await db.commit()
    logger.info(f"Filled cart #{cart.id} with {len(products)} products")
    return await load_cart(db, cart.id)
