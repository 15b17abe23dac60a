"""Next-occurrence arithmetic for recurring schedules.

Month and year steps clamp to the last day of the target month, so a schedule
anchored on Jan 31 moves to Feb 28 (Feb 29 in leap years), and Feb 29 plus one
year lands on Feb 28.
"""

from calendar import monthrange
from dataclasses import dataclass, replace
from datetime import date, timedelta

from src.core.models.enums import RecurrenceFrequency, ScheduleStatus


@dataclass(frozen=True)
class RecurrenceRule:
    frequency: RecurrenceFrequency
    frequency_interval: int
    next_anchor_date: date
    status: ScheduleStatus = ScheduleStatus.active
    custom_days: int | None = None
    end_date: date | None = None


def rule_from_schedule(schedule) -> RecurrenceRule:
    """Build a rule from a ``RecurringSchedule`` row."""
    return RecurrenceRule(
        frequency=schedule.frequency,
        frequency_interval=schedule.frequency_interval,
        next_anchor_date=schedule.next_issue_date,
        status=schedule.status,
        custom_days=schedule.custom_days,
        end_date=schedule.end_date,
    )


def rule_from_recurring_expense(recurring) -> RecurrenceRule:
    """Build a rule from a ``RecurringExpense`` row."""
    return RecurrenceRule(
        frequency=recurring.frequency,
        frequency_interval=recurring.frequency_interval,
        next_anchor_date=recurring.next_occurrence_date,
        status=recurring.status,
        custom_days=recurring.custom_days,
        end_date=recurring.end_date,
    )


def add_months(current: date, months: int) -> date:
    """Add calendar months, clamping the day for short months."""
    index = current.year * 12 + (current.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(current.day, monthrange(year, month)[1])
    return date(year, month, day)


def add_years(current: date, years: int) -> date:
    return add_months(current, 12 * years)


def next_occurrence(rule: RecurrenceRule, as_of: date) -> date | None:
    """Return the anchor after ``rule.next_anchor_date``, or None when the schedule is done.

    The end-date check is made against *as_of*, not against the computed
    date; callers that must not issue past ``end_date`` compare the result
    themselves.
    """
    if rule.status != ScheduleStatus.active:
        return None
    if rule.end_date is not None and as_of > rule.end_date:
        return None

    interval = rule.frequency_interval if rule.frequency_interval and rule.frequency_interval > 0 else 1
    current = rule.next_anchor_date

    if rule.frequency == RecurrenceFrequency.weekly:
        return current + timedelta(days=7 * interval)
    if rule.frequency == RecurrenceFrequency.biweekly:
        return current + timedelta(days=14 * interval)
    if rule.frequency == RecurrenceFrequency.monthly:
        return add_months(current, interval)
    if rule.frequency == RecurrenceFrequency.quarterly:
        return add_months(current, 3 * interval)
    if rule.frequency == RecurrenceFrequency.yearly:
        return add_years(current, interval)
    if rule.frequency == RecurrenceFrequency.custom:
        # Non-positive custom_days would never move past the anchor.
        days = rule.custom_days if rule.custom_days and rule.custom_days > 0 else interval
        return current + timedelta(days=days)
    return None


def occurrences_between(rule: RecurrenceRule, start: date, end: date, limit: int = 100) -> list[date]:
    """List anchor dates falling within ``[start, end]``, for upcoming previews."""
    dates: list[date] = []
    current = rule
    anchor = rule.next_anchor_date
    while anchor <= end and len(dates) < limit:
        if rule.end_date is not None and anchor > rule.end_date:
            break
        if anchor >= start:
            dates.append(anchor)
        following = next_occurrence(current, anchor)
        if following is None or following <= anchor:
            break
        anchor = following
        current = replace(rule, next_anchor_date=anchor)
    return dates
