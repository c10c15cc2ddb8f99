"""
Delivery addresses router
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from foodie.api.deps import get_current_user
from foodie.database import get_db
from foodie.models import Address, User
from foodie.schemas import (
    AddressCreateRequest,
    AddressEnvelope,
    AddressListEnvelope,
    AddressResponse,
    AddressUpdateRequest,
)

router = APIRouter(prefix="/api/address", tags=["Addresses"])


async def get_owned_address(db: AsyncSession, user: User, address_id: int) -> Address:
    address = await db.get(Address, address_id)
    if address is None or address.user_id != user.id or address.deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Address not found")
    return address


@router.post("/create", response_model=AddressEnvelope, status_code=status.HTTP_201_CREATED)
async def create_address(
    data: AddressCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> AddressEnvelope:
    address = Address(user_id=user.id, **data.model_dump())
    db.add(address)
    await db.commit()

    return AddressEnvelope(
        message="Address created successfully",
        address=AddressResponse.model_validate(address),
    )


@router.get("/all", response_model=AddressListEnvelope)
async def list_addresses(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> AddressListEnvelope:
    result = await db.execute(
        select(Address)
        .where(Address.user_id == user.id, Address.deleted.is_(False))
        .order_by(Address.id)
    )
    return AddressListEnvelope(
        message="Addresses fetched successfully",
        addresses=[AddressResponse.model_validate(a) for a in result.scalars().all()],
    )


@router.put("/update/{address_id}", response_model=AddressEnvelope)
async def update_address(
    address_id: int,
    data: AddressUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> AddressEnvelope:
    address = await get_owned_address(db, user, address_id)

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(address, field, value)
    await db.commit()

    return AddressEnvelope(
        message="Address updated successfully",
        address=AddressResponse.model_validate(address),
    )


@router.delete("/delete/{address_id}", response_model=AddressEnvelope)
async def delete_address(
    address_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> AddressEnvelope:
    """Soft delete: orders keep pointing at the address."""
    address = await get_owned_address(db, user, address_id)
    address.deleted = True
    await db.commit()

    return AddressEnvelope(
        message="Address deleted successfully",
        address=AddressResponse.model_validate(address),
    )
