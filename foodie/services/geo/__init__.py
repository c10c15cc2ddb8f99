"""
Reverse geocoding.

ENV_MODE=development answers from MockGeoService; staging and production
query Nominatim. Routes receive the provider through Depends(get_geo_service):

    result = await get_geo_service().reverse_geocode(12.9716, 77.5946)
"""

import logging
from functools import lru_cache

from foodie.core.config import get_settings
from foodie.services.geo.base import BaseGeoService, ReverseGeocodeResult
from foodie.services.geo.mock import MockGeoService
from foodie.services.geo.nominatim import NominatimGeoService

logger = logging.getLogger(__name__)


@lru_cache()
def get_geo_service() -> BaseGeoService:
    """One provider per process, picked from ENV_MODE."""
    settings = get_settings()
    service = MockGeoService() if settings.is_development else NominatimGeoService()
    logger.info(f"Reverse geocoding through {service.provider_name} ({settings.env_mode.value})")
    return service


__all__ = [
    "BaseGeoService",
    "MockGeoService",
    "NominatimGeoService",
    "ReverseGeocodeResult",
    "get_geo_service",
]
