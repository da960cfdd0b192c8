"""
Google Maps Geo Service Implementation

Production reverse geocoding through the Google Maps Geocoding API.
Used when ENV_MODE=production or ENV_MODE=staging.

Requirements:
    - GOOGLE_MAPS_API_KEY must be set in environment
    - Geocoding API must be enabled in Google Cloud Console

Author: Khalil Bannouri
Version: 4.0.0
"""

import logging
from datetime import datetime
from typing import Optional

import googlemaps
from googlemaps.exceptions import ApiError, Timeout, TransportError

from app.core.config import get_settings
from app.services.geo.base import BaseGeoService, ReverseGeocodeResult

logger = logging.getLogger(__name__)


class GoogleGeoService(BaseGeoService):
    """
    Production Google Maps geo service implementation.

    Configuration:
        Requires GOOGLE_MAPS_API_KEY environment variable, unless a
        preconfigured ``client`` is passed in.
    """

    def __init__(self, client: Optional[googlemaps.Client] = None):
        """
        Raises:
            ValueError: If no client is given and GOOGLE_MAPS_API_KEY is not configured
        """
        if client is None:
            settings = get_settings()
            if not settings.google_maps_api_key:
                raise ValueError(
                    "GOOGLE_MAPS_API_KEY is required for production mode. "
                    "Set it in your .env file or environment variables."
                )
            client = googlemaps.Client(key=settings.google_maps_api_key)

        self._client = client
        logger.info("GoogleGeoService initialized")

    @property
    def provider_name(self) -> str:
        return "google"

    async def reverse_geocode(self, latitude: float, longitude: float) -> ReverseGeocodeResult:
        start_time = datetime.now()

        def elapsed() -> float:
            return (datetime.now() - start_time).total_seconds() * 1000

        try:
            # googlemaps is synchronous; a single lookup is short enough to run inline
            results = self._client.reverse_geocode((latitude, longitude))

            if not results:
                logger.warning(f"Google: No address for ({latitude}, {longitude})")
                return ReverseGeocodeResult.failed(
                    latitude,
                    longitude,
                    error_message="We couldn't find a street address here. Please type it in.",
                    error_code="address_not_found",
                    response_time_ms=elapsed(),
                )

            address = results[0].get("formatted_address")
            if not address:
                return ReverseGeocodeResult.failed(
                    latitude,
                    longitude,
                    error_message="We couldn't find a street address here. Please type it in.",
                    error_code="address_not_found",
                    response_time_ms=elapsed(),
                )

            logger.info(f"Google: Resolved location - {address}")
            return ReverseGeocodeResult(
                success=True,
                address=address,
                latitude=latitude,
                longitude=longitude,
                response_time_ms=elapsed(),
            )

        except Timeout:
            logger.error("Google: API timeout")
            return ReverseGeocodeResult.failed(
                latitude,
                longitude,
                error_message="Location lookup timed out. Please check the address.",
                error_code="timeout",
                response_time_ms=elapsed(),
            )

        except ApiError as e:
            logger.error(f"Google: API error - {e}")
            return ReverseGeocodeResult.failed(
                latitude,
                longitude,
                error_message="Location service error. Please check the address.",
                error_code="api_error",
                response_time_ms=elapsed(),
            )

        except TransportError as e:
            logger.error(f"Google: Transport error - {e}")
            return ReverseGeocodeResult.failed(
                latitude,
                longitude,
                error_message="Unable to reach the location service. Please check the address.",
                error_code="transport_error",
                response_time_ms=elapsed(),
            )

        except Exception as e:
            logger.exception(f"Google: Unexpected error - {e}")
            return ReverseGeocodeResult.failed(
                latitude,
                longitude,
                error_message="An unexpected error occurred. Please check the address.",
                error_code="unknown_error",
                response_time_ms=elapsed(),
            )

    async def health_check(self) -> bool:
        try:
            return bool(self._client.reverse_geocode((24.8607, 67.0011)))
        except Exception as e:
            logger.error(f"Google: Health check failed - {e}")
            return False
