from datetime import date

from reservations.models import PaymentStatus, Reservation, ReservationStatus, ResourceKind


def booking(**overrides):
    payload = {
        "id": 42,
        "courtId": "c1",
        "date": "2024-06-10T00:00:00.000Z",
        "startTime": "18:30:00",
        "duration": 90,
        "status": "confirmed",
    }
    payload.update(overrides)
    return payload


def test_from_payload_normalises_backend_record():
    reservation = Reservation.from_payload(booking(user={"firstName": "Ana", "lastName": "Paz"}))

    assert reservation.id == "42"
    assert reservation.date == date(2024, 6, 10)
    assert reservation.time == "18:30"
    assert reservation.end_time == "20:00"
    assert reservation.client_name == "Ana Paz"
    assert reservation.status is ReservationStatus.CONFIRMED
    assert reservation.resource_kind is ResourceKind.COURT


def test_payment_status_maps_backend_spellings():
    assert Reservation.from_payload(booking(paymentStatus="completed")).payment_status is PaymentStatus.PAID
    assert Reservation.from_payload(booking(paymentStatus="partial")).payment_status is PaymentStatus.PARTIAL
    assert Reservation.from_payload(booking(paymentStatus="refunded")).payment_status is PaymentStatus.REFUNDED
    assert Reservation.from_payload(booking()).payment_status is PaymentStatus.PENDING


def test_unknown_payment_status_reads_as_pending():
    assert Reservation.from_payload(booking(paymentStatus="chargeback")).payment_status is PaymentStatus.PENDING
    assert PaymentStatus.from_backend(None) is PaymentStatus.PENDING


def test_with_updates_moves_unknown_keys_to_extra():
    reservation = Reservation.from_payload(booking())

    updated = reservation.with_updates(status=ReservationStatus.CANCELLED, cancellation_reason="Rain")

    assert updated.status is ReservationStatus.CANCELLED
    assert updated.extra == {"cancellation_reason": "Rain"}
    assert reservation.extra == {}
