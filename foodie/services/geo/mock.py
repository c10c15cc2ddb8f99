"""
Offline reverse geocoder for development.

The same coordinates always map to the same Bengaluru street address, so
screens and tests stay stable. Out-of-range coordinates are rejected the way
Nominatim rejects them.
"""

import asyncio
import logging
import random

from foodie.services.geo.base import BaseGeoService, ReverseGeocodeResult

logger = logging.getLogger(__name__)


class MockGeoService(BaseGeoService):
    """
    Deterministic fake of NominatimGeoService.

    Example:
        >>> service = MockGeoService(min_latency=0, max_latency=0)
        >>> result = await service.reverse_geocode(12.9716, 77.5946)
        >>> result.address["country_code"]
        'in'
    """

    STREETS = ["MG Road", "Brigade Road", "Church Street", "Residency Road", "Lavelle Road"]
    SUBURBS = ["Shivajinagar", "Indiranagar", "Koramangala", "Jayanagar", "Malleshwaram"]

    def __init__(self, min_latency: float = 0.05, max_latency: float = 0.2):
        self.min_latency = min_latency
        self.max_latency = max_latency

        logger.info(f"Mock geocoder: {min_latency}-{max_latency}s latency")

    @property
    def provider_name(self) -> str:
        return "mock"

    async def _simulate_latency(self) -> float:
        latency = random.uniform(self.min_latency, self.max_latency)
        if latency > 0:
            await asyncio.sleep(latency)
        return latency * 1000

    async def reverse_geocode(
        self,
        latitude: float,
        longitude: float,
    ) -> ReverseGeocodeResult:
        latency_ms = await self._simulate_latency()

        if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
            return ReverseGeocodeResult(
                success=False,
                latitude=latitude,
                longitude=longitude,
                error_message="Unable to geocode",
                error_code="invalid_coordinates",
                response_time_ms=latency_ms,
            )

        # Same coordinates always resolve to the same mock address
        seed = int(abs(latitude * 1000)) + int(abs(longitude * 1000))
        street = self.STREETS[seed % len(self.STREETS)]
        suburb = self.SUBURBS[seed % len(self.SUBURBS)]
        house_number = str(seed % 200 + 1)
        postcode = f"560{seed % 100:03d}"

        address = {
            "house_number": house_number,
            "road": street,
            "suburb": suburb,
            "city": "Bengaluru",
            "state": "Karnataka",
            "postcode": postcode,
            "country": "India",
            "country_code": "in",
        }
        display_name = f"{house_number}, {street}, {suburb}, Bengaluru, Karnataka, {postcode}, India"

        logger.debug(f"Mock: Reverse geocoded ({latitude}, {longitude}) -> {display_name}")

        return ReverseGeocodeResult(
            success=True,
            address=address,
            display_name=display_name,
            latitude=latitude,
            longitude=longitude,
            response_time_ms=latency_ms,
        )

    async def health_check(self) -> bool:
        return True
