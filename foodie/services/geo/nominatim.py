"""
Nominatim Geo Service Implementation

Production implementation using the OpenStreetMap Nominatim reverse
geocoding endpoint. Used when ENV_MODE=production or ENV_MODE=staging.

Requirements:
    - A descriptive User-Agent (Nominatim usage policy)

API Documentation:
    https://nominatim.org/release-docs/latest/api/Reverse/
"""

import logging
from datetime import datetime

import httpx

from foodie.core.config import get_settings
from foodie.services.geo.base import BaseGeoService, ReverseGeocodeResult

logger = logging.getLogger(__name__)


class NominatimGeoService(BaseGeoService):
    """
    Production reverse geocoder backed by OpenStreetMap Nominatim.

    Example:
        >>> service = NominatimGeoService()
        >>> result = await service.reverse_geocode(12.9716, 77.5946)
        >>> print(result.display_name)
    """

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None):
        settings = get_settings()

        self._base_url = settings.nominatim_base_url.rstrip("/")
        self._headers = {"User-Agent": settings.geo_user_agent}
        self._timeout = settings.geo_timeout_seconds
        self._transport = transport

        logger.info(f"NominatimGeoService initialized ({self._base_url})")

    @property
    def provider_name(self) -> str:
        return "nominatim"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._headers,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def reverse_geocode(
        self,
        latitude: float,
        longitude: float,
    ) -> ReverseGeocodeResult:
        start_time = datetime.now()

        params = {
            "format": "json",
            "lat": latitude,
            "lon": longitude,
            "zoom": 18,
            "addressdetails": 1,
        }

        try:
            async with self._client() as client:
                response = await client.get("/reverse", params=params)
                response.raise_for_status()
                data = response.json()

        except httpx.TimeoutException:
            logger.error("Nominatim: API timeout")
            return ReverseGeocodeResult(
                success=False,
                latitude=latitude,
                longitude=longitude,
                error_message="Geocoding service timed out",
                error_code="timeout",
            )

        except httpx.HTTPError as e:
            logger.error(f"Nominatim: Request failed - {e}")
            return ReverseGeocodeResult(
                success=False,
                latitude=latitude,
                longitude=longitude,
                error_message="Geocoding service unavailable",
                error_code="service_unavailable",
            )

        elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000

        # Nominatim answers 200 with an "error" member for unknown places
        if "error" in data:
            logger.info(f"Nominatim: No result for ({latitude}, {longitude}) - {data['error']}")
            return ReverseGeocodeResult(
                success=False,
                latitude=latitude,
                longitude=longitude,
                error_message=data["error"],
                error_code="not_found",
                response_time_ms=elapsed_ms,
            )

        return ReverseGeocodeResult(
            success=True,
            address=data.get("address", {}),
            display_name=data.get("display_name"),
            latitude=latitude,
            longitude=longitude,
            response_time_ms=elapsed_ms,
        )

    async def health_check(self) -> bool:
        """Check the Nominatim status endpoint."""
        try:
            async with self._client() as client:
                response = await client.get("/status", params={"format": "json"})
                return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error(f"Nominatim: Health check failed - {e}")
            return False
