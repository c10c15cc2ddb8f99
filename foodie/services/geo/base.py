"""
Reverse geocoding contract.

The address form in the storefront is pre-filled from the device location:
coordinates go in, Nominatim-style address components come out.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class ReverseGeocodeResult:
    """
    Outcome of one lookup. Failures carry error_code and never raise.

    Attributes:
        success: Whether the lookup succeeded
        address: Structured address components (road, suburb, city,
            state, postcode, country, ...), as Nominatim names them
        display_name: One-line formatted address
        latitude: Requested latitude
        longitude: Requested longitude
        error_message: Error description if the lookup failed
        error_code: Machine-readable error code
        response_time_ms: Provider response time
    """
    success: bool
    address: dict = field(default_factory=dict)
    display_name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    response_time_ms: float = 0.0


class BaseGeoService(ABC):
    """Coordinates to postal address."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Short provider label used in logs and /health."""

    @abstractmethod
    async def reverse_geocode(
        self,
        latitude: float,
        longitude: float,
    ) -> ReverseGeocodeResult:
        """
        Resolve coordinates to a postal address.

        Args:
            latitude: WGS84 latitude
            longitude: WGS84 longitude

        Returns:
            ReverseGeocodeResult: Address components or error details
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """False when the provider cannot be reached."""
