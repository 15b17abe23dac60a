"""Lifecycle cron tasks — overdue sweep and recurring issuance.

Run the worker and scheduler with::

    taskiq worker src.core.tasks.broker:broker src.core.tasks.lifecycle_tasks
    taskiq scheduler src.core.tasks.broker:scheduler src.core.tasks.lifecycle_tasks
"""

import logging
from functools import lru_cache

from src.billing.lifecycle import LifecycleOrchestrator, SweepReport
from src.core.config import settings
from src.core.db import build_engine, build_redis, build_session_factory
from src.core.events import RedisEventSink
from src.core.tasks.broker import broker

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_orchestrator() -> LifecycleOrchestrator:
    """Build the orchestrator once per worker process."""
    session_factory = build_session_factory(build_engine(settings))
    sink = RedisEventSink(
        build_redis(settings),
        settings.lifecycle_event_stream,
        maxlen=settings.lifecycle_event_maxlen,
    )
    return LifecycleOrchestrator(session_factory, sink, settings)


def _summary(report: SweepReport) -> dict:
    return {
        "sweep": report.sweep,
        "processed": report.processed,
        "skipped": report.skipped,
        "failed": report.failed,
        "events_failed": report.events_failed,
    }


@broker.task(schedule=[{"cron": settings.overdue_sweep_cron}])
async def mark_overdue_invoices() -> dict:
    """Flag sent/viewed/partial invoices past their due date as overdue."""
    report = await get_orchestrator().sweep_overdue()
    if report.failed:
        logger.warning("Overdue sweep left %d organizations for the next tick", report.failed)
    return _summary(report)


@broker.task(schedule=[{"cron": settings.recurring_invoice_cron}])
async def issue_recurring_invoices() -> dict:
    """Issue invoices for recurring schedules that are due."""
    report = await get_orchestrator().issue_recurring_invoices()
    return _summary(report)


@broker.task(schedule=[{"cron": settings.recurring_expense_cron}])
async def issue_recurring_expenses() -> dict:
    """Record expenses for recurring expenses that are due."""
    report = await get_orchestrator().issue_recurring_expenses()
    return _summary(report)
