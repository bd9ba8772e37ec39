"""Tests for the HTTP API."""

import pytest
import pytest_asyncio
from aiohttp import test_utils

from delivery_cdk.exceptions import (
    AuthError,
    InvalidInputError,
    NotFoundError,
    UpstreamError,
)
from delivery_cdk.models import CarrierCode, TrackingEvent, TrackingResult, TrackingStatus
from delivery_cdk.server import create_app
from delivery_cdk.tracking.base import Carrier
from delivery_cdk.tracking.registry import CarrierRegistry


class StubCarrier(Carrier):
    """Carrier that answers from a table instead of the network."""

    code = CarrierCode.UPS
    name = "UPS"

    def __init__(self):
        super().__init__()
        self.closed = False

    async def track(self, tracking_number: str) -> TrackingResult:
        self.validate_tracking_number(tracking_number)

        if tracking_number == "missing":
            raise NotFoundError(f"No tracking data found for {tracking_number}")
        if tracking_number == "down":
            raise UpstreamError("UPS tracking failed: 503", status=503)
        if tracking_number == "badauth":
            raise AuthError("UPS auth failed: 401")

        return TrackingResult(
            carrier=self.code,
            tracking_number=tracking_number,
            status=TrackingStatus.IN_TRANSIT,
            estimated_delivery="20240120",
            events=[TrackingEvent(status=TrackingStatus.IN_TRANSIT, location="Louisville, KY, US")],
        )

    async def close(self):
        self.closed = True


@pytest.fixture
def stub():
    return StubCarrier()


@pytest_asyncio.fixture
async def client(stub):
    registry = CarrierRegistry()
    registry.register(stub)

    client = test_utils.TestClient(test_utils.TestServer(create_app(registry)))
    await client.start_server()
    yield client
    await client.close()


class TestHTTPApi:
    """Tests for the aiohttp application."""

    @pytest.mark.asyncio
    async def test_index(self, client):
        resp = await client.get("/")

        assert resp.status == 200
        assert await resp.json() == {"service": "delivery-cdk", "carriers": ["ups"]}

    @pytest.mark.asyncio
    async def test_carriers(self, client):
        resp = await client.get("/carriers")

        assert await resp.json() == {"carriers": ["ups"]}

    @pytest.mark.asyncio
    async def test_track_success(self, client):
        resp = await client.get("/track/ups/1Z999AA10123456784")

        assert resp.status == 200
        data = await resp.json()
        assert data["carrier"] == "ups"
        assert data["trackingNumber"] == "1Z999AA10123456784"
        assert data["status"] == "in_transit"
        assert data["estimatedDelivery"] == "20240120"
        assert data["events"][0]["location"] == "Louisville, KY, US"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("carrier", ["fedex", "dhl", "royal_mail"])
    async def test_carrier_not_registered(self, client, carrier):
        resp = await client.get(f"/track/{carrier}/123")

        assert resp.status == 404
        assert await resp.json() == {"error": f'Carrier "{carrier}" not registered'}

    @pytest.mark.asyncio
    async def test_invalid_tracking_number(self, client):
        resp = await client.get("/track/ups/" + "1" * 51)

        assert resp.status == 400
        assert "Invalid UPS tracking number" in (await resp.json())["error"]

    @pytest.mark.asyncio
    async def test_not_found(self, client):
        resp = await client.get("/track/ups/missing")

        assert resp.status == 404
        assert (await resp.json())["error"] == "No tracking data found for missing"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tracking_number", ["down", "badauth"])
    async def test_upstream_failures_are_bad_gateway(self, client, tracking_number):
        resp = await client.get(f"/track/ups/{tracking_number}")

        assert resp.status == 502
        assert "UPS" in (await resp.json())["error"]

    @pytest.mark.asyncio
    async def test_cleanup_closes_adapters(self, stub):
        registry = CarrierRegistry()
        registry.register(stub)

        client = test_utils.TestClient(test_utils.TestServer(create_app(registry)))
        await client.start_server()
        await client.close()

        assert stub.closed
