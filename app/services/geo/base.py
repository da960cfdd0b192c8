"""
Geo Service Abstract Base Class

Defines the interface contract for reverse geocoding: turning the
coordinates captured at checkout into a human-readable delivery address.
Both MockGeoService and GoogleGeoService implement it.

Author: Khalil Bannouri
Version: 4.0.0
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


def coordinates_label(latitude: float, longitude: float) -> str:
    """Fallback address text used when no street address can be resolved."""
    return f"Lat: {latitude:.4f}, Lng: {longitude:.4f}"


@dataclass
class ReverseGeocodeResult:
    """
    Standardized result from a reverse geocoding lookup.

    Attributes:
        success: Whether a street address was resolved
        address: Resolved address, or the coordinates label on failure
        latitude: Latitude that was looked up
        longitude: Longitude that was looked up
        error_message: User-facing message if the lookup failed
        error_code: Machine-readable error code
        response_time_ms: Provider response time
    """
    success: bool
    address: str
    latitude: float
    longitude: float
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    response_time_ms: float = 0.0

    @classmethod
    def failed(
        cls,
        latitude: float,
        longitude: float,
        error_message: str,
        error_code: str,
        response_time_ms: float = 0.0,
    ) -> "ReverseGeocodeResult":
        return cls(
            success=False,
            address=coordinates_label(latitude, longitude),
            latitude=latitude,
            longitude=longitude,
            error_message=error_message,
            error_code=error_code,
            response_time_ms=response_time_ms,
        )


class BaseGeoService(ABC):
    """
    Abstract base class for geolocation services.

    Implementations must never raise out of ``reverse_geocode``: every
    failure comes back as an unsuccessful result carrying the coordinates
    label, so checkout can always proceed.

    Example:
        >>> service = get_geo_service()
        >>> result = await service.reverse_geocode(24.8607, 67.0011)
        >>> print(result.address)
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider name (e.g., "mock", "google")."""
        pass

    @abstractmethod
    async def reverse_geocode(self, latitude: float, longitude: float) -> ReverseGeocodeResult:
        """
        Resolve coordinates to a street address or landmark description.

        Args:
            latitude: Latitude in degrees
            longitude: Longitude in degrees

        Returns:
            ReverseGeocodeResult: Address, or coordinates label plus message
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify connectivity to the geo service.

        Returns:
            bool: True if service is operational
        """
        pass
