from availability.opening_hours import (
    DEFAULT_DAY_HOURS,
    DayHours,
    fits_business_hours,
    hours_for_date,
    parse_opening_hours,
)


def test_slot_must_end_by_closing_time():
    hours = DayHours(open="08:00", close="23:00")

    assert fits_business_hours("21:30", 90, hours)
    assert not fits_business_hours("22:00", 90, hours)
    assert not fits_business_hours("07:30", 60, hours)


def test_default_hours_close_at_midnight_without_wrapping():
    assert fits_business_hours("22:30", 90, DEFAULT_DAY_HOURS)
    assert not fits_business_hours("23:00", 90, DEFAULT_DAY_HOURS)


def test_closed_day_never_fits():
    assert not fits_business_hours("10:00", 60, DayHours(closed=True))


def test_hours_for_date_uses_weekday_name():
    opening = parse_opening_hours(
        {
            "monday": {"open": "10:00", "close": "20:00"},
            "unknown": {"open": "00:00"},
        }
    )

    assert set(opening) == {"monday"}
    assert hours_for_date(opening, "2024-06-10") == DayHours(open="10:00", close="20:00")
    assert hours_for_date(opening, "2024-06-11") == DEFAULT_DAY_HOURS
    assert hours_for_date(None, "2024-06-11") == DEFAULT_DAY_HOURS


def test_closing_at_midnight_entered_as_zero_hour():
    hours = DayHours(open="08:00", close="00:00")

    assert fits_business_hours("09:00", 60, hours)
    assert fits_business_hours("22:30", 90, hours)
    assert not fits_business_hours("23:30", 60, hours)


def test_closing_after_midnight_extends_the_day():
    hours = DayHours(open="08:00", close="01:00")

    assert fits_business_hours("23:00", 120, hours)
    assert not fits_business_hours("23:30", 120, hours)
    assert not fits_business_hours("07:00", 60, hours)
