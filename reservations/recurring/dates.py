"""Occurrence date generation for recurring bookings."""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import List, Union

from availability.time_utils import DateLike, parse_iso_date
from infrastructure.constants import RECURRENCE_STEP_DAYS
from reservations.contracts import RecurrenceRule


def add_months(anchor: date, months: int) -> date:
    """Shift ``anchor`` by calendar months, clamping to the last day of the month."""

    month_index = anchor.month - 1 + months
    year = anchor.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(anchor.day, last_day))


def compute_occurrence_dates(
    start_date: DateLike,
    rule: Union[RecurrenceRule, str],
    count: int,
) -> List[date]:
    """Return ``count`` dates starting at (and including) ``start_date``."""

    if count < 1:
        raise ValueError("Recurring bookings need at least one occurrence")

    anchor = parse_iso_date(start_date)
    rule = RecurrenceRule(rule)
    if rule is RecurrenceRule.MONTHLY:
        return [add_months(anchor, index) for index in range(count)]

    step = timedelta(days=RECURRENCE_STEP_DAYS[rule.value])
    return [anchor + step * index for index in range(count)]
