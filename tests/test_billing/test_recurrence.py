"""Tests for recurring schedule next-occurrence arithmetic."""

from datetime import date

import pytest

from src.billing.recurrence import (
    RecurrenceRule,
    add_months,
    next_occurrence,
    occurrences_between,
)
from src.core.models.enums import RecurrenceFrequency, ScheduleStatus

JAN_1 = date(2026, 1, 1)


def _rule(frequency, interval=1, anchor=JAN_1, **kwargs) -> RecurrenceRule:
    return RecurrenceRule(
        frequency=frequency,
        frequency_interval=interval,
        next_anchor_date=anchor,
        **kwargs,
    )


@pytest.mark.parametrize(
    ("frequency", "interval", "expected"),
    [
        (RecurrenceFrequency.weekly, 1, date(2026, 1, 8)),
        (RecurrenceFrequency.weekly, 2, date(2026, 1, 15)),
        (RecurrenceFrequency.biweekly, 1, date(2026, 1, 15)),
        (RecurrenceFrequency.monthly, 1, date(2026, 2, 1)),
        (RecurrenceFrequency.monthly, 3, date(2026, 4, 1)),
        (RecurrenceFrequency.quarterly, 1, date(2026, 4, 1)),
        (RecurrenceFrequency.quarterly, 2, date(2026, 7, 1)),
        (RecurrenceFrequency.yearly, 1, date(2027, 1, 1)),
        (RecurrenceFrequency.custom, 5, date(2026, 1, 6)),
    ],
)
def test_frequencies(frequency, interval, expected):
    assert next_occurrence(_rule(frequency, interval), JAN_1) == expected


def test_custom_days_take_precedence():
    rule = _rule(RecurrenceFrequency.custom, 1, custom_days=10)
    assert next_occurrence(rule, JAN_1) == date(2026, 1, 11)


def test_computed_from_anchor_not_as_of():
    rule = _rule(RecurrenceFrequency.weekly, anchor=date(2026, 1, 1))
    assert next_occurrence(rule, date(2026, 3, 15)) == date(2026, 1, 8)


@pytest.mark.parametrize(
    "status", [ScheduleStatus.paused, ScheduleStatus.completed, ScheduleStatus.cancelled]
)
def test_inactive_schedule_has_no_next(status):
    rule = _rule(RecurrenceFrequency.monthly, status=status, end_date=date(2030, 1, 1))
    assert next_occurrence(rule, JAN_1) is None


def test_expired_relative_to_as_of():
    rule = _rule(RecurrenceFrequency.monthly, end_date=date(2026, 1, 15))
    assert next_occurrence(rule, date(2026, 1, 16)) is None


def test_end_date_check_ignores_computed_date():
    # Next date is past end_date, but as_of is not, so a date is still returned
    rule = _rule(RecurrenceFrequency.monthly, end_date=date(2026, 1, 15))
    assert next_occurrence(rule, date(2026, 1, 15)) == date(2026, 2, 1)


def test_month_end_clamps():
    rule = _rule(RecurrenceFrequency.monthly, anchor=date(2026, 1, 31))
    assert next_occurrence(rule, JAN_1) == date(2026, 2, 28)


def test_month_end_clamps_leap_year():
    assert add_months(date(2028, 1, 31), 1) == date(2028, 2, 29)


def test_leap_day_yearly():
    rule = _rule(RecurrenceFrequency.yearly, anchor=date(2028, 2, 29))
    assert next_occurrence(rule, JAN_1) == date(2029, 2, 28)


def test_month_rollover_into_next_year():
    assert add_months(date(2026, 11, 30), 3) == date(2027, 2, 28)
    assert add_months(date(2026, 12, 15), 1) == date(2027, 1, 15)


def test_non_positive_interval_treated_as_one():
    assert next_occurrence(_rule(RecurrenceFrequency.weekly, 0), JAN_1) == date(2026, 1, 8)


def test_pure_and_repeatable():
    rule = _rule(RecurrenceFrequency.quarterly, anchor=date(2026, 5, 31))
    first = next_occurrence(rule, JAN_1)
    assert next_occurrence(rule, JAN_1) == first
    assert rule.next_anchor_date == date(2026, 5, 31)


def test_occurrences_between_lists_window():
    rule = _rule(RecurrenceFrequency.weekly)
    assert occurrences_between(rule, JAN_1, date(2026, 1, 22)) == [
        date(2026, 1, 1),
        date(2026, 1, 8),
        date(2026, 1, 15),
        date(2026, 1, 22),
    ]


def test_occurrences_between_stops_at_end_date():
    rule = _rule(RecurrenceFrequency.weekly, end_date=date(2026, 1, 10))
    assert occurrences_between(rule, JAN_1, date(2026, 2, 1)) == [
        date(2026, 1, 1),
        date(2026, 1, 8),
    ]


@pytest.mark.parametrize("custom_days", [0, -3])
def test_non_positive_custom_days_fall_back_to_interval(custom_days):
    rule = _rule(RecurrenceFrequency.custom, 2, custom_days=custom_days)
    assert next_occurrence(rule, JAN_1) == date(2026, 1, 3)


def test_occurrences_between_zero_custom_days_keeps_advancing():
    rule = _rule(RecurrenceFrequency.custom, custom_days=0)
    assert occurrences_between(rule, JAN_1, date(2026, 1, 3)) == [
        JAN_1,
        date(2026, 1, 2),
        date(2026, 1, 3),
    ]
