import json

import httpx
import pytest

from infrastructure.api_client import BookingApiClient
from infrastructure.errors import ConflictError, NetworkError, NotFoundError, ValidationError
from reservations.models import ReservationStatus
from tests.helpers import DummyLogger, amenity, court, make_settings


def make_client(handler):
    return BookingApiClient(
        "http://backend.test",
        token="secret",
        transport=httpx.MockTransport(handler),
        settings=make_settings(),
        logger=DummyLogger(),
    )


@pytest.mark.asyncio
async def test_availability_uses_court_or_amenity_path():
    seen = []

    def handler(request):
        seen.append((request.url.path, dict(request.url.params), request.headers.get("Authorization")))
        return httpx.Response(200, json={"availableSlots": [{"startTime": "09:00", "available": True}]})

    async with make_client(handler) as client:
        court_slots = await client.get_resource_availability(court("c1"), "2024-06-10", 90)
        await client.get_resource_availability(amenity("s1"), "2024-06-10", 60)

    assert court_slots == [{"startTime": "09:00", "available": True}]
    assert seen[0] == ("/api/courts/c1/availability", {"date": "2024-06-10", "duration": "90"}, "Bearer secret")
    assert seen[1][0] == "/api/amenities/s1/availability"


@pytest.mark.asyncio
async def test_create_booking_parses_backend_record():
    def handler(request):
        body = json.loads(request.content)
        return httpx.Response(
            201,
            json={
                "booking": {
                    "id": "bk-9",
                    "courtId": body["courtId"],
                    "date": "2024-06-10T00:00:00.000Z",
                    "startTime": "19:00:00",
                    "duration": 90,
                    "totalAmount": "3000.00",
                    "status": "confirmed",
                    "court": {"name": "Court 1"},
                }
            },
        )

    async with make_client(handler) as client:
        reservation = await client.create_booking({"courtId": "c1", "date": "2024-06-10"})

    assert reservation.id == "bk-9"
    assert reservation.time == "19:00"
    assert reservation.end_time == "20:30"
    assert reservation.price == 3000.0
    assert reservation.status is ReservationStatus.CONFIRMED
    assert reservation.resource_name == "Court 1"


@pytest.mark.asyncio
async def test_error_statuses_map_to_exceptions():
    responses = {
        "/api/bookings/missing": httpx.Response(404, json={"message": "Not found"}),
        "/api/bookings/taken": httpx.Response(409, json={"error": "Already cancelled"}),
        "/api/bookings/bad": httpx.Response(400, json={"message": "Invalid", "details": ["startTime"]}),
        "/api/bookings/down": httpx.Response(503, text="unavailable"),
    }

    def handler(request):
        return responses[request.url.path]

    async with make_client(handler) as client:
        with pytest.raises(NotFoundError):
            await client.update_booking("missing", {"status": "confirmed"})
        with pytest.raises(ConflictError):
            await client.update_booking("taken", {"status": "confirmed"})
        with pytest.raises(ValidationError) as excinfo:
            await client.update_booking("bad", {"status": "confirmed"})
        assert excinfo.value.details == ["startTime"]
        assert excinfo.value.status_code == 400
        with pytest.raises(NetworkError):
            await client.update_booking("down", {"status": "confirmed"})


@pytest.mark.asyncio
async def test_transport_failure_becomes_network_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async with make_client(handler) as client:
        with pytest.raises(NetworkError):
            await client.get_establishment("est-1")


@pytest.mark.asyncio
async def test_cancel_sends_reason_and_unknown_action_is_rejected():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"booking": {"id": "bk-1"}})

    async with make_client(handler) as client:
        await client.update_booking_status("bk-1", "cancel")
        await client.update_booking_status("bk-1", "start")
        with pytest.raises(ValueError):
            await client.update_booking_status("bk-1", "archive")

    assert bodies[0] == {"status": "cancelled", "cancellationReason": "Cancelled by administrator"}
    assert bodies[1] == {"status": "in_progress"}


@pytest.mark.asyncio
async def test_group_create_rejection_raises_validation_error():
    def handler(request):
        return httpx.Response(200, json={"success": False, "error": "Court closed"})

    async with make_client(handler) as client:
        with pytest.raises(ValidationError):
            await client.create_recurring_booking_group({"courtId": "c1"})


@pytest.mark.asyncio
async def test_list_bookings_drops_empty_params():
    captured = {}

    def handler(request):
        captured.update(dict(request.url.params))
        return httpx.Response(
            200,
            json={"data": [{"id": "b1", "amenityId": "s1", "date": "2024-06-10", "startTime": "10:00"}]},
        )

    async with make_client(handler) as client:
        bookings = await client.list_establishment_bookings("est-1", {"date": "2024-06-10", "status": None})

    assert captured == {"date": "2024-06-10"}
    assert bookings[0].resource_id == "s1"
    assert bookings[0].end_time == "11:00"
