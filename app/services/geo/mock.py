"""
Mock Geo Service Implementation

Simulates reverse geocoding without making real API calls.
Used in development mode (ENV_MODE=development) for local testing.

Behavior:
    - Builds a plausible Karachi address from the coordinates
    - Simulates network latency
    - Configurable random failure rate for testing the fallback path

Author: Khalil Bannouri
Version: 4.0.0
"""

import asyncio
import logging
import random

from app.services.geo.base import BaseGeoService, ReverseGeocodeResult

logger = logging.getLogger(__name__)


class MockGeoService(BaseGeoService):
    """
    Mock implementation of the geo service.

    The same coordinates always resolve to the same address.

    Attributes:
        failure_rate: Probability of simulated API failure (0.0-1.0)
        min_latency: Minimum response time in seconds
        max_latency: Maximum response time in seconds
    """

    AREAS = [
        "Clifton Block 5",
        "DHA Phase 6",
        "Gulshan-e-Iqbal Block 13",
        "PECHS Block 2",
        "North Nazimabad Block H",
        "Saddar",
    ]
    CITY = "Karachi"

    def __init__(
        self,
        failure_rate: float = 0.05,
        min_latency: float = 0.1,
        max_latency: float = 0.5,
    ):
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency

        logger.info(f"MockGeoService initialized (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return "mock"

    async def _simulate_latency(self) -> float:
        latency = random.uniform(self.min_latency, self.max_latency)
        await asyncio.sleep(latency)
        return latency * 1000

    def _should_fail(self) -> bool:
        return random.random() < self.failure_rate

    def _describe(self, latitude: float, longitude: float) -> str:
        seed = int(abs(latitude) * 10_000) + int(abs(longitude) * 10_000)
        area = self.AREAS[seed % len(self.AREAS)]
        street = seed % 40 + 1
        return f"Street {street}, {area}, {self.CITY}"

    async def reverse_geocode(self, latitude: float, longitude: float) -> ReverseGeocodeResult:
        logger.debug(f"Mock: Reverse geocoding ({latitude}, {longitude})")

        latency_ms = await self._simulate_latency()

        if self._should_fail():
            logger.debug("Mock: Simulated API failure")
            return ReverseGeocodeResult.failed(
                latitude,
                longitude,
                error_message="Location lookup is temporarily unavailable. Please check the address.",
                error_code="service_unavailable",
                response_time_ms=latency_ms,
            )

        address = self._describe(latitude, longitude)
        logger.info(f"Mock: Resolved location - {address}")

        return ReverseGeocodeResult(
            success=True,
            address=address,
            latitude=latitude,
            longitude=longitude,
            response_time_ms=latency_ms,
        )

    async def health_check(self) -> bool:
        """Mock health check always returns True."""
        return True
