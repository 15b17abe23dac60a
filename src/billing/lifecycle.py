"""Lifecycle sweeps — overdue marking and recurring issuance.

Each sweep walks the eligible records and handles them one unit at a time:
an organization for the overdue sweep, a schedule for recurring issuance.
A unit runs in its own transaction and takes row locks with
``SKIP LOCKED``, so overlapping ticks or a concurrent sweep on another
instance never process the same row twice. A failed unit is rolled back,
logged and left for the next tick; the rest of the sweep carries on.

Events go to the sink only after the unit has committed.
"""

import asyncio
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.billing.invoices import create_invoice, due_date_for
from src.billing.recurrence import (
    next_occurrence,
    rule_from_recurring_expense,
    rule_from_schedule,
)
from src.core.audit import log_invoice_activity
from src.core.config import Settings
from src.core.db import transaction
from src.core.events import (
    INVOICE_OVERDUE,
    INVOICE_RECURRING_ISSUED,
    RECURRING_EXPENSE_GENERATED,
    SWEEP_UNIT_FAILED,
    EventSink,
    LifecycleEvent,
    publish_events,
)
from src.core.models.enums import OVERDUE_ELIGIBLE, ActivityType, InvoiceStatus, ScheduleStatus
from src.core.models.expense import Expense, RecurringExpense
from src.core.models.invoice import Invoice
from src.core.models.recurring_schedule import RecurringSchedule, RecurringSkip
from src.core.schemas.invoice import InvoiceCreate, InvoiceTemplate

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    sweep: str
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    failed_units: list[str] = field(default_factory=list)
    events_failed: int = 0


class LifecycleOrchestrator:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        sink: EventSink,
        settings: Settings,
        clock: Callable[[], datetime] | None = None,
    ):
        self._session_factory = session_factory
        self._sink = sink
        self._settings = settings
        self._clock = clock or (lambda: datetime.now(UTC))

    def _today(self) -> date:
        return self._clock().date()

    async def _run_unit(self, report: SweepReport, unit_id: str, organization_id: str, work):
        """Run one unit of work under the store timeout, isolating its failure."""
        try:
            async with asyncio.timeout(self._settings.store_timeout_seconds):
                return await work()
        except Exception as e:
            report.failed += 1
            report.failed_units.append(unit_id)
            logger.error(
                "%s failed for org %s unit %s: %s",
                report.sweep,
                organization_id,
                unit_id,
                e,
                exc_info=True,
            )
            report.events_failed += await publish_events(
                self._sink,
                [
                    LifecycleEvent(
                        type=SWEEP_UNIT_FAILED,
                        organization_id=organization_id,
                        entity_id=unit_id,
                        data={"sweep": report.sweep, "error": str(e)},
                    )
                ],
            )
            return None

    # ------------------------------------------------------------------
    # Overdue sweep
    # ------------------------------------------------------------------

    async def sweep_overdue(self, today: date | None = None) -> SweepReport:
        """Move sent/viewed/partial invoices past their due date to ``overdue``."""
        today = today or self._today()
        report = SweepReport(sweep="overdue_sweep")

        async with transaction(self._session_factory) as session:
            result = await session.execute(
                select(Invoice.organization_id)
                .where(Invoice.status.in_(OVERDUE_ELIGIBLE), Invoice.due_date < today)
                .distinct()
            )
            organization_ids = list(result.scalars().all())

        for organization_id in organization_ids:
            events = await self._run_unit(
                report,
                str(organization_id),
                str(organization_id),
                lambda org=organization_id: self._mark_overdue(org, today),
            )
            if events is None:
                continue
            report.processed += len(events)
            report.events_failed += await publish_events(self._sink, events)

        logger.info(
            "Overdue sweep %s: %d marked, %d organizations failed",
            today,
            report.processed,
            report.failed,
        )
        return report

    async def _mark_overdue(self, organization_id: uuid.UUID, today: date) -> list[LifecycleEvent]:
        events: list[LifecycleEvent] = []
        async with transaction(self._session_factory) as session:
            result = await session.execute(
                select(Invoice)
                .where(
                    Invoice.organization_id == organization_id,
                    Invoice.status.in_(OVERDUE_ELIGIBLE),
                    Invoice.due_date < today,
                )
                .with_for_update(skip_locked=True)
            )
            for invoice in result.scalars().all():
                previous = invoice.status
                invoice.status = InvoiceStatus.overdue
                log_invoice_activity(
                    session,
                    invoice.id,
                    ActivityType.status_changed,
                    "Invoice marked overdue",
                    meta={"from": previous.value, "to": InvoiceStatus.overdue.value},
                )
                events.append(
                    LifecycleEvent(
                        type=INVOICE_OVERDUE,
                        organization_id=str(organization_id),
                        entity_id=str(invoice.id),
                        data={
                            "invoice_number": invoice.invoice_number,
                            "due_date": invoice.due_date.isoformat(),
                            "amount_due_cents": invoice.amount_due_cents,
                        },
                    )
                )
        return events

    # ------------------------------------------------------------------
    # Recurring invoices
    # ------------------------------------------------------------------

    async def issue_recurring_invoices(self, today: date | None = None) -> SweepReport:
        """Issue one invoice per due schedule and advance (or complete) it."""
        today = today or self._today()
        report = SweepReport(sweep="recurring_invoices")

        async with transaction(self._session_factory) as session:
            result = await session.execute(
                select(RecurringSchedule.id, RecurringSchedule.organization_id)
                .where(
                    RecurringSchedule.status == ScheduleStatus.active,
                    RecurringSchedule.next_issue_date <= today,
                )
                .order_by(RecurringSchedule.next_issue_date)
                .limit(self._settings.sweep_batch_limit)
            )
            due = result.all()

        for schedule_id, organization_id in due:
            event = await self._run_unit(
                report,
                str(schedule_id),
                str(organization_id),
                lambda sid=schedule_id: self._issue_schedule(sid, today),
            )
            if event is None:
                if str(schedule_id) not in report.failed_units:
                    report.skipped += 1
                continue
            report.processed += 1
            report.events_failed += await publish_events(self._sink, [event])

        logger.info(
            "Recurring invoices %s: %d issued, %d skipped, %d failed",
            today,
            report.processed,
            report.skipped,
            report.failed,
        )
        return report

    async def _issue_schedule(self, schedule_id: uuid.UUID, today: date) -> LifecycleEvent | None:
        now = self._clock()
        async with transaction(self._session_factory) as session:
            # Re-check under lock: another tick may already have issued this cycle.
            result = await session.execute(
                select(RecurringSchedule)
                .where(
                    RecurringSchedule.id == schedule_id,
                    RecurringSchedule.status == ScheduleStatus.active,
                    RecurringSchedule.next_issue_date <= today,
                )
                .with_for_update(skip_locked=True)
            )
            schedule = result.scalar_one_or_none()
            if schedule is None:
                return None

            anchor = schedule.next_issue_date
            # An anchor past end_date is never issued; the schedule just completes.
            if schedule.end_date is not None and anchor > schedule.end_date:
                schedule.status = ScheduleStatus.completed
                logger.info("Recurring schedule %s completed (past end date)", schedule_id)
                return None

            skip_id = await session.scalar(
                select(RecurringSkip.id).where(
                    RecurringSkip.recurring_schedule_id == schedule_id,
                    RecurringSkip.skip_date == anchor,
                )
            )

            invoice = None
            if skip_id is None:
                template = InvoiceTemplate.model_validate(schedule.template)
                invoice = await create_invoice(
                    session,
                    InvoiceCreate(
                        organization_id=schedule.organization_id,
                        client_id=schedule.client_id,
                        issue_date=anchor,
                        due_date=due_date_for(anchor, template),
                        template=template,
                        recurring_schedule_id=schedule.id,
                        send_immediately=schedule.auto_send,
                    ),
                    default_currency=self._settings.default_currency,
                    default_pattern=self._settings.default_invoice_pattern,
                    numbering_max_retries=self._settings.numbering_max_retries,
                    now=now,
                )
                schedule.invoices_generated_count = (schedule.invoices_generated_count or 0) + 1
                schedule.last_generated_invoice_id = invoice.id
            else:
                logger.info("Recurring schedule %s skipped cycle %s", schedule_id, anchor)

            schedule.last_generated_at = now
            next_date = next_occurrence(rule_from_schedule(schedule), today)
            if (
                next_date is None
                or next_date <= anchor
                or (schedule.end_date is not None and next_date > schedule.end_date)
            ):
                schedule.status = ScheduleStatus.completed
                logger.info("Recurring schedule %s completed", schedule_id)
            else:
                schedule.next_issue_date = next_date

            if invoice is None:
                return None
            return LifecycleEvent(
                type=INVOICE_RECURRING_ISSUED,
                organization_id=str(schedule.organization_id),
                entity_id=str(invoice.id),
                data={
                    "recurring_schedule_id": str(schedule.id),
                    "invoice_number": invoice.invoice_number,
                    "total_cents": invoice.total_cents,
                    "auto_send": schedule.auto_send,
                    "next_issue_date": (
                        None
                        if schedule.status == ScheduleStatus.completed
                        else schedule.next_issue_date.isoformat()
                    ),
                },
            )

    # ------------------------------------------------------------------
    # Recurring expenses
    # ------------------------------------------------------------------

    async def issue_recurring_expenses(self, today: date | None = None) -> SweepReport:
        """Record one expense per due recurring expense and advance it."""
        today = today or self._today()
        report = SweepReport(sweep="recurring_expenses")

        async with transaction(self._session_factory) as session:
            result = await session.execute(
                select(RecurringExpense.id, RecurringExpense.organization_id)
                .where(
                    RecurringExpense.status == ScheduleStatus.active,
                    RecurringExpense.next_occurrence_date <= today,
                )
                .order_by(RecurringExpense.next_occurrence_date)
                .limit(self._settings.sweep_batch_limit)
            )
            due = result.all()

        for recurring_id, organization_id in due:
            event = await self._run_unit(
                report,
                str(recurring_id),
                str(organization_id),
                lambda rid=recurring_id: self._issue_expense(rid, today),
            )
            if event is None:
                if str(recurring_id) not in report.failed_units:
                    report.skipped += 1
                continue
            report.processed += 1
            report.events_failed += await publish_events(self._sink, [event])

        logger.info(
            "Recurring expenses %s: %d generated, %d failed",
            today,
            report.processed,
            report.failed,
        )
        return report

    async def _issue_expense(self, recurring_id: uuid.UUID, today: date) -> LifecycleEvent | None:
        now = self._clock()
        async with transaction(self._session_factory) as session:
            result = await session.execute(
                select(RecurringExpense)
                .where(
                    RecurringExpense.id == recurring_id,
                    RecurringExpense.status == ScheduleStatus.active,
                    RecurringExpense.next_occurrence_date <= today,
                )
                .with_for_update(skip_locked=True)
            )
            recurring = result.scalar_one_or_none()
            if recurring is None:
                return None

            anchor = recurring.next_occurrence_date
            if recurring.end_date is not None and anchor > recurring.end_date:
                recurring.status = ScheduleStatus.completed
                return None

            expense = Expense(
                organization_id=recurring.organization_id,
                created_by_user_id=recurring.created_by_user_id,
                description=recurring.description,
                amount_cents=recurring.amount_cents,
                currency=recurring.currency,
                date=anchor,
                category_id=recurring.category_id,
                vendor_id=recurring.vendor_id,
                payment_method=recurring.payment_method,
                recurring_expense_id=recurring.id,
            )
            session.add(expense)
            await session.flush()

            recurring.total_generated_count = (recurring.total_generated_count or 0) + 1
            recurring.total_spent_cents = (recurring.total_spent_cents or 0) + recurring.amount_cents
            recurring.last_generated_at = now
            recurring.last_generated_expense_id = expense.id

            next_date = next_occurrence(rule_from_recurring_expense(recurring), anchor)
            if (
                next_date is None
                or next_date <= anchor
                or (recurring.end_date is not None and next_date > recurring.end_date)
            ):
                recurring.status = ScheduleStatus.completed
            else:
                recurring.next_occurrence_date = next_date

            return LifecycleEvent(
                type=RECURRING_EXPENSE_GENERATED,
                organization_id=str(recurring.organization_id),
                entity_id=str(expense.id),
                data={
                    "recurring_expense_id": str(recurring.id),
                    "amount_cents": recurring.amount_cents,
                    "date": anchor.isoformat(),
                },
            )
