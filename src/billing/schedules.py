"""Recurring schedule management — pause, resume, cancel, skip, preview."""

import logging
import uuid
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.billing.recurrence import occurrences_between, rule_from_schedule
from src.core.exceptions import InvalidStateError, NotFoundError
from src.core.models.enums import TERMINAL_SCHEDULE_STATUSES, ScheduleStatus
from src.core.models.recurring_schedule import RecurringSchedule, RecurringSkip

logger = logging.getLogger(__name__)


async def get_schedule(
    session: AsyncSession,
    organization_id: uuid.UUID,
    schedule_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> RecurringSchedule:
    query = select(RecurringSchedule).where(
        RecurringSchedule.organization_id == organization_id,
        RecurringSchedule.id == schedule_id,
    )
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    schedule = result.scalar_one_or_none()
    if schedule is None:
        raise NotFoundError(f"Recurring schedule {schedule_id} not found")
    return schedule


async def _set_status(
    session: AsyncSession,
    organization_id: uuid.UUID,
    schedule_id: uuid.UUID,
    status: ScheduleStatus,
) -> RecurringSchedule:
    schedule = await get_schedule(session, organization_id, schedule_id, for_update=True)
    if schedule.status in TERMINAL_SCHEDULE_STATUSES:
        raise InvalidStateError(
            f"Recurring schedule {schedule_id} is {schedule.status.value} and cannot change"
        )
    schedule.status = status
    logger.info("Recurring schedule %s (org %s) -> %s", schedule_id, organization_id, status.value)
    return schedule


async def pause_schedule(
    session: AsyncSession, organization_id: uuid.UUID, schedule_id: uuid.UUID
) -> RecurringSchedule:
    return await _set_status(session, organization_id, schedule_id, ScheduleStatus.paused)


async def resume_schedule(
    session: AsyncSession, organization_id: uuid.UUID, schedule_id: uuid.UUID
) -> RecurringSchedule:
    return await _set_status(session, organization_id, schedule_id, ScheduleStatus.active)


async def cancel_schedule(
    session: AsyncSession, organization_id: uuid.UUID, schedule_id: uuid.UUID
) -> RecurringSchedule:
    return await _set_status(session, organization_id, schedule_id, ScheduleStatus.cancelled)


async def skip_occurrence(
    session: AsyncSession,
    organization_id: uuid.UUID,
    schedule_id: uuid.UUID,
    skip_date: date,
    reason: str | None = None,
) -> RecurringSkip:
    """Suppress issuance for one cycle. The anchor still advances past it."""
    await get_schedule(session, organization_id, schedule_id)
    skip = RecurringSkip(recurring_schedule_id=schedule_id, skip_date=skip_date, reason=reason)
    session.add(skip)
    await session.flush()
    return skip


def upcoming_issue_dates(schedule: RecurringSchedule, today: date, days: int) -> list[date]:
    """Issue dates the schedule will hit in the next *days* days."""
    if schedule.status != ScheduleStatus.active:
        return []
    return occurrences_between(rule_from_schedule(schedule), today, today + timedelta(days=days))
