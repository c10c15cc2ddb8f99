"""
Miscellaneous router: reverse geocoding for the address form
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from foodie.api.deps import get_current_user
from foodie.models import User
from foodie.schemas import AddressDetailsEnvelope
from foodie.services.geo import BaseGeoService, get_geo_service

router = APIRouter(prefix="/api/miscellaneous", tags=["Miscellaneous"])
logger = logging.getLogger(__name__)


@router.get("/get-address-details", response_model=AddressDetailsEnvelope)
async def get_address_details(
    lat: Optional[float] = Query(None, ge=-90, le=90),
    long: Optional[float] = Query(None, ge=-180, le=180),
    user: User = Depends(get_current_user),
    geo_service: BaseGeoService = Depends(get_geo_service),
) -> AddressDetailsEnvelope:
    """Turn the browser's coordinates into a postal address."""
    if lat is None or long is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Latitude and longitude are required",
        )

    result = await geo_service.reverse_geocode(lat, long)
    if not result.success:
        logger.warning(f"Reverse geocoding ({lat}, {long}) failed: {result.error_code}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to fetch address details")

    return AddressDetailsEnvelope(
        message="Address details fetched successfully",
        address=result.address,
        display_name=result.display_name,
    )
