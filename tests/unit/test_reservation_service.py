import pytest

from infrastructure.errors import ConflictError, ValidationError
from reservations.models import ReservationStatus
from reservations.services.reservation_service import ReservationService
from reservations.store import ReservationFilter, ReservationStore
from tests.helpers import DummyLogger, FakeBookingApi, court, make_reservation


def make_service(api=None, store=None, **kwargs):
    api = api or FakeBookingApi()
    store = store or ReservationStore(logger=DummyLogger())
    return api, store, ReservationService(api, store, logger=DummyLogger(), **kwargs)


@pytest.mark.asyncio
async def test_confirm_patches_store_after_backend_accepts():
    api, store, service = make_service()
    store.insert(make_reservation("r1", status=ReservationStatus.PENDING))

    updated = await service.confirm("r1")

    assert api.status_calls == [("r1", "confirm", None)]
    assert updated.status is ReservationStatus.CONFIRMED
    assert store.get("r1").status is ReservationStatus.CONFIRMED


@pytest.mark.asyncio
async def test_start_keeps_orders_from_response():
    api, store, service = make_service()
    api.status_response = {"booking": {"orders": [{"id": "o1", "orderNumber": "A-1"}]}}
    store.insert(make_reservation("r1"))

    await service.start("r1")

    assert store.get("r1").status is ReservationStatus.IN_PROGRESS
    assert store.get("r1").extra["orders"] == [{"id": "o1", "orderNumber": "A-1"}]


@pytest.mark.asyncio
async def test_cancel_records_reason():
    api, store, service = make_service()
    store.insert(make_reservation("r1"))

    await service.cancel("r1", reason="Rain")

    assert api.status_calls == [("r1", "cancel", "Rain")]
    assert store.get("r1").status is ReservationStatus.CANCELLED
    assert store.get("r1").extra["cancellation_reason"] == "Rain"


@pytest.mark.asyncio
async def test_terminal_reservation_is_rejected_before_any_call():
    api, store, service = make_service()
    store.insert(make_reservation("r1", status=ReservationStatus.COMPLETED))

    with pytest.raises(ConflictError):
        await service.no_show("r1")
    assert api.status_calls == []


@pytest.mark.asyncio
async def test_backend_rejection_leaves_store_unchanged():
    api, store, service = make_service()
    api.update_error = ValidationError("nope", status_code=400)
    store.insert(make_reservation("r1"))

    with pytest.raises(ValidationError):
        await service.complete("r1")
    assert store.get("r1").status is ReservationStatus.CONFIRMED


@pytest.mark.asyncio
async def test_action_on_unloaded_reservation_is_a_store_noop():
    api, store, service = make_service()

    assert await service.confirm("elsewhere") is None
    assert api.status_calls == [("elsewhere", "confirm", None)]
    assert len(store) == 0


@pytest.mark.asyncio
async def test_move_patches_optimistically_and_recomputes_end_time():
    api, store, service = make_service(resources=[court("B")])
    store.insert(make_reservation("r1", time="10:00", duration=90))

    moved = await service.move("r1", "B", "18:30")

    assert moved.resource_id == "B"
    assert moved.resource_name == "Court B"
    assert moved.end_time == "20:00"
    assert api.update_calls == [("r1", {"courtId": "B", "startTime": "18:30", "endTime": "20:00"})]


@pytest.mark.asyncio
async def test_failed_move_is_reverted_by_reload():
    api = FakeBookingApi()
    api.update_error = ValidationError("slot taken", status_code=400)
    original = make_reservation("r1", time="10:00")
    api.listing = [original]
    _, store, service = make_service(api, establishment_id="est-1")
    store.insert(original)

    with pytest.raises(ValidationError):
        await service.move("r1", "B", "18:00")
    assert store.get("r1").time == "18:00"

    await store.wait_for_reloads()
    assert store.get("r1").time == "10:00"
    assert store.get("r1").resource_id == "A"


@pytest.mark.asyncio
async def test_failed_move_without_loader_restores_previous_copy():
    api = FakeBookingApi()
    api.update_error = ValidationError("slot taken", status_code=400)
    _, store, service = make_service(api)
    store.insert(make_reservation("r1", time="10:00"))

    with pytest.raises(ValidationError):
        await service.move("r1", "B", "18:00")

    assert store.get("r1").time == "10:00"


@pytest.mark.asyncio
async def test_load_and_delete():
    api = FakeBookingApi()
    api.listing = [make_reservation("r1"), make_reservation("r2", time="12:00")]
    _, store, service = make_service(api, establishment_id="est-1")

    loaded = await service.load(ReservationFilter(status="confirmed"))
    await service.delete("r1")

    assert [item.id for item in loaded] == ["r1", "r2"]
    assert api.deleted == ["r1"]
    assert [item.id for item in store] == ["r2"]
