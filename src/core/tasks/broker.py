"""Taskiq broker + scheduler configuration for the lifecycle sweeps."""

import logging

from taskiq import TaskiqEvents, TaskiqScheduler, TaskiqState
from taskiq.schedule_sources import LabelScheduleSource
from taskiq_redis import ListQueueBroker, RedisAsyncResultBackend

from src.core.config import settings

SWEEP_RESULT_TTL = 7 * 24 * 3600  # keep sweep summaries for a week

broker = ListQueueBroker(url=settings.redis_url).with_result_backend(
    RedisAsyncResultBackend(redis_url=settings.redis_url, result_ex_time=SWEEP_RESULT_TTL)
)

scheduler = TaskiqScheduler(
    broker=broker,
    sources=[LabelScheduleSource(broker)],
)


@broker.on_event(TaskiqEvents.WORKER_STARTUP)
async def configure_worker_logging(state: TaskiqState) -> None:
    logging.basicConfig(level=getattr(logging, settings.log_level))
