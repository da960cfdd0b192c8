"""
Geo Service Factory

Provides a single entry point for obtaining a geo service instance.
Automatically selects Mock or Google Maps based on ENV_MODE configuration.

Usage:
    from app.services.geo import get_geo_service

    geo_service = get_geo_service()
    result = await geo_service.reverse_geocode(24.8607, 67.0011)

Author: Khalil Bannouri
Version: 4.0.0
"""

import logging
from functools import lru_cache

from app.core.config import get_settings
from app.schemas import AddressResponse
from app.services.geo.base import (
    BaseGeoService,
    ReverseGeocodeResult,
    coordinates_label,
)
from app.services.geo.google import GoogleGeoService
from app.services.geo.mock import MockGeoService

logger = logging.getLogger(__name__)


@lru_cache()
def get_geo_service() -> BaseGeoService:
    """
    Get the configured geo service instance.

    Raises:
        ValueError: If production mode but Google API key not configured
    """
    settings = get_settings()

    if settings.is_development:
        logger.info("Geo Service: Using MockGeoService (development mode)")
        return MockGeoService(
            failure_rate=0.05,
            min_latency=0.1,
            max_latency=0.5,
        )

    logger.info(
        f"Geo Service: Using GoogleGeoService "
        f"({settings.env_mode.value} mode)"
    )
    return GoogleGeoService()


def reset_geo_service() -> None:
    """Clear the cached geo service instance."""
    get_geo_service.cache_clear()
    logger.debug("Geo service cache cleared")


async def describe_location(
    service: BaseGeoService,
    latitude: float,
    longitude: float,
) -> AddressResponse:
    """
    Resolve checkout coordinates to address text.

    Never raises: anything the provider throws degrades to the coordinates
    label with a user-facing message.
    """
    try:
        result = await service.reverse_geocode(latitude, longitude)
    except Exception as e:
        logger.exception(f"Geocoding error: {e}")
        return AddressResponse(
            address=coordinates_label(latitude, longitude),
            success=False,
            message="Could not look up your address. Please enter it manually.",
        )

    return AddressResponse(
        address=result.address,
        success=result.success,
        message=result.error_message,
    )


__all__ = [
    "get_geo_service",
    "reset_geo_service",
    "describe_location",
    "coordinates_label",
    "BaseGeoService",
    "ReverseGeocodeResult",
    "MockGeoService",
    "GoogleGeoService",
]
