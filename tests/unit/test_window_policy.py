from datetime import date, datetime

from availability.window_policy import (
    BookingPolicy,
    generate_booking_dates,
    is_bookable,
    is_date_selectable,
)

NOW = datetime(2024, 1, 1, 10, 0)


def test_same_day_slots_need_min_advance():
    assert not is_bookable("10:00", "2024-01-01", NOW, 1)
    assert not is_bookable("10:30", "2024-01-01", NOW, 1)
    assert not is_bookable("11:00", "2024-01-01", NOW, 1)
    assert is_bookable("11:01", "2024-01-01", NOW, 1)
    assert is_bookable("11:30", "2024-01-01", NOW, 1)


def test_future_date_ignores_min_advance():
    assert is_bookable("08:00", "2024-01-02", NOW, 48)
    assert is_bookable("23:00", date(2024, 1, 5), NOW, 1)


def test_past_date_is_never_bookable():
    for slot in ("08:00", "12:00", "23:00"):
        assert not is_bookable(slot, "2023-12-31", NOW, 0)


def test_generate_booking_dates_respects_same_day_flag():
    today = date(2024, 1, 1)

    with_today = generate_booking_dates(today, 14, allow_same_day=True)
    without_today = generate_booking_dates(today, 14, allow_same_day=False)

    assert with_today[0] == today
    assert len(with_today) == 14
    assert without_today[0] == date(2024, 1, 2)
    assert without_today[-1] == date(2024, 1, 14)


def test_is_date_selectable_matches_generated_dates():
    today = date(2024, 1, 1)
    generated = set(generate_booking_dates(today, 7, allow_same_day=False))

    for offset in range(-1, 10):
        candidate = date(2024, 1, 1 + offset) if offset >= 0 else date(2023, 12, 31)
        assert is_date_selectable(candidate, today, 7, False) == (candidate in generated)


def test_policy_from_establishment_applies_defaults():
    policy = BookingPolicy.from_establishment({"minAdvanceBookingHours": 0, "allowSameDayBooking": None})

    assert policy.min_advance_hours == 1
    assert policy.max_advance_days == 14
    assert policy.allow_same_day is True

    strict = BookingPolicy.from_establishment(
        {
            "minAdvanceBookingHours": 3,
            "maxAdvanceBookingDays": 30,
            "allowSameDayBooking": False,
            "openingHours": {"sunday": {"closed": True}},
        }
    )
    assert strict.min_advance_hours == 3
    assert strict.max_advance_days == 30
    assert strict.allow_same_day is False
    assert strict.opening_hours["sunday"].closed is True
