import pytest
from googlemaps.exceptions import ApiError, Timeout, TransportError

from app.services.geo import GoogleGeoService, MockGeoService, coordinates_label, describe_location
from app.services.geo.base import BaseGeoService


class FakeGoogleClient:
    def __init__(self, results=None, error=None):
        self.results = results or []
        self.error = error
        self.calls = []

    def reverse_geocode(self, latlng):
        self.calls.append(latlng)
        if self.error:
            raise self.error
        return self.results


def test_coordinates_label():
    assert coordinates_label(24.86074, 67.00114) == "Lat: 24.8607, Lng: 67.0011"


async def test_mock_resolves_deterministically():
    service = MockGeoService(failure_rate=0, min_latency=0, max_latency=0)

    first = await service.reverse_geocode(24.8607, 67.0011)
    second = await service.reverse_geocode(24.8607, 67.0011)

    assert first.success
    assert first.address == second.address
    assert first.address.endswith("Karachi")


async def test_mock_failure_falls_back_to_coordinates():
    service = MockGeoService(failure_rate=1.0, min_latency=0, max_latency=0)

    result = await service.reverse_geocode(24.8607, 67.0011)

    assert not result.success
    assert result.address == "Lat: 24.8607, Lng: 67.0011"
    assert result.error_message


async def test_google_uses_first_formatted_address():
    client = FakeGoogleClient(results=[{"formatted_address": "Zamzama Blvd, Karachi, Pakistan"}])
    service = GoogleGeoService(client=client)

    result = await service.reverse_geocode(24.81, 67.03)

    assert result.success
    assert result.address == "Zamzama Blvd, Karachi, Pakistan"
    assert client.calls == [(24.81, 67.03)]


@pytest.mark.parametrize(
    "error, code",
    [
        (Timeout(), "timeout"),
        (ApiError("REQUEST_DENIED"), "api_error"),
        (TransportError("boom"), "transport_error"),
        (RuntimeError("surprise"), "unknown_error"),
    ],
)
async def test_google_errors_become_fallback_results(error, code):
    service = GoogleGeoService(client=FakeGoogleClient(error=error))

    result = await service.reverse_geocode(24.81, 67.03)

    assert not result.success
    assert result.error_code == code
    assert result.address == "Lat: 24.8100, Lng: 67.0300"


async def test_google_no_results():
    service = GoogleGeoService(client=FakeGoogleClient(results=[]))

    result = await service.reverse_geocode(0.0, 0.0)

    assert result.error_code == "address_not_found"


async def test_describe_location_never_raises():
    class ExplodingGeo(BaseGeoService):
        @property
        def provider_name(self):
            return "exploding"

        async def reverse_geocode(self, latitude, longitude):
            raise ConnectionError("offline")

        async def health_check(self):
            return False

    response = await describe_location(ExplodingGeo(), 24.8607, 67.0011)

    assert not response.success
    assert response.address == "Lat: 24.8607, Lng: 67.0011"
    assert response.message
