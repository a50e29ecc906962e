from datetime import date

import pytest

from reservations.contracts import RecurrenceRule
from reservations.recurring.dates import add_months, compute_occurrence_dates


def test_weekly_and_biweekly_steps_include_anchor():
    assert compute_occurrence_dates("2024-06-10", RecurrenceRule.WEEKLY, 3) == [
        date(2024, 6, 10),
        date(2024, 6, 17),
        date(2024, 6, 24),
    ]
    assert compute_occurrence_dates(date(2024, 6, 10), "biweekly", 2) == [
        date(2024, 6, 10),
        date(2024, 6, 24),
    ]


def test_monthly_clamps_to_last_day_of_month():
    assert compute_occurrence_dates("2024-01-31", RecurrenceRule.MONTHLY, 4) == [
        date(2024, 1, 31),
        date(2024, 2, 29),
        date(2024, 3, 31),
        date(2024, 4, 30),
    ]


def test_add_months_crosses_year_boundary():
    assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)


def test_occurrence_count_must_be_positive():
    with pytest.raises(ValueError):
        compute_occurrence_dates("2024-06-10", RecurrenceRule.WEEKLY, 0)
