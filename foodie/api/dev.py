"""
Development helpers. Every route answers 403 outside ENV_MODE=development.
"""

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from foodie.api.cart import cart_envelope
from foodie.api.deps import get_current_user
from foodie.core.config import get_settings
from foodie.database import get_db
from foodie.models import User
from foodie.schemas import CartEnvelope
from foodie.services import cart as cart_service

router = APIRouter(prefix="/api/dev", tags=["Development"])


def require_development() -> None:
    if not get_settings().is_development:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only available in development mode",
        )


@router.post(
    "/fill-cart/{quantity}",
    response_model=CartEnvelope,
    dependencies=[Depends(require_development)],
)
async def fill_cart(
    quantity: int = Path(..., ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CartEnvelope:
    """Stuff the caller's cart with up to `quantity` different products."""
    cart = await cart_service.fill_cart(db, user, quantity)
    return cart_envelope("Cart filled successfully", cart)
