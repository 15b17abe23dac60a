"""Tests for recurring schedule management."""

import uuid
from datetime import date
from unittest.mock import MagicMock

import pytest

from src.billing.schedules import (
    cancel_schedule,
    pause_schedule,
    resume_schedule,
    skip_occurrence,
    upcoming_issue_dates,
)
from src.core.exceptions import InvalidStateError, NotFoundError
from src.core.models.enums import RecurrenceFrequency, ScheduleStatus


def _schedule(status=ScheduleStatus.active, **kwargs):
    schedule = MagicMock()
    schedule.id = uuid.uuid4()
    schedule.status = status
    schedule.frequency = kwargs.get("frequency", RecurrenceFrequency.monthly)
    schedule.frequency_interval = kwargs.get("frequency_interval", 1)
    schedule.custom_days = None
    schedule.next_issue_date = kwargs.get("next_issue_date", date(2026, 3, 1))
    schedule.end_date = kwargs.get("end_date")
    return schedule


@pytest.mark.asyncio
async def test_pause_active_schedule(organization_id, result_factory, session_factory_mock):
    schedule = _schedule()
    session = session_factory_mock(result_factory(scalar_one_or_none=schedule))

    updated = await pause_schedule(session, organization_id, schedule.id)

    assert updated.status == ScheduleStatus.paused


@pytest.mark.asyncio
async def test_resume_paused_schedule(organization_id, result_factory, session_factory_mock):
    schedule = _schedule(ScheduleStatus.paused)
    session = session_factory_mock(result_factory(scalar_one_or_none=schedule))

    updated = await resume_schedule(session, organization_id, schedule.id)

    assert updated.status == ScheduleStatus.active


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [ScheduleStatus.completed, ScheduleStatus.cancelled])
async def test_terminal_schedule_cannot_resume(status, organization_id, result_factory, session_factory_mock):
    schedule = _schedule(status)
    session = session_factory_mock(result_factory(scalar_one_or_none=schedule))

    with pytest.raises(InvalidStateError):
        await resume_schedule(session, organization_id, schedule.id)
    assert schedule.status == status


@pytest.mark.asyncio
async def test_cancel_missing_schedule(organization_id, result_factory, session_factory_mock):
    session = session_factory_mock(result_factory(scalar_one_or_none=None))

    with pytest.raises(NotFoundError):
        await cancel_schedule(session, organization_id, uuid.uuid4())


@pytest.mark.asyncio
async def test_skip_occurrence_adds_row(organization_id, result_factory, session_factory_mock):
    schedule = _schedule()
    session = session_factory_mock(result_factory(scalar_one_or_none=schedule))

    skip = await skip_occurrence(session, organization_id, schedule.id, date(2026, 3, 1), "Holiday")

    session.add.assert_called_once_with(skip)
    assert skip.skip_date == date(2026, 3, 1)
    assert skip.reason == "Holiday"


def test_upcoming_issue_dates():
    schedule = _schedule(next_issue_date=date(2026, 3, 31))
    assert upcoming_issue_dates(schedule, date(2026, 3, 1), 90) == [
        date(2026, 3, 31),
        date(2026, 4, 30),
        date(2026, 5, 30),
    ]


def test_upcoming_issue_dates_paused():
    assert upcoming_issue_dates(_schedule(ScheduleStatus.paused), date(2026, 3, 1), 90) == []
