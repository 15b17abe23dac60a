"""Lifecycle events published after a state transition commits.

Publishing is best-effort: a sink failure is logged and never undoes the
transition that produced the event.
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from redis.asyncio import Redis

logger = logging.getLogger(__name__)

INVOICE_OVERDUE = "invoice.overdue"
INVOICE_RECURRING_ISSUED = "invoice.recurring_issued"
RECURRING_EXPENSE_GENERATED = "recurring_expense.generated"
SWEEP_UNIT_FAILED = "lifecycle.unit_failed"


@dataclass
class LifecycleEvent:
    type: str
    organization_id: str
    entity_id: str
    data: dict = field(default_factory=dict)
    occurred_at: str = field(default_factory=lambda: datetime.now(UTC).isoformat())


class EventSink(Protocol):
    async def publish(self, event: LifecycleEvent) -> None: ...


class RedisEventSink:
    """Append events to a capped Redis stream."""

    def __init__(self, redis: Redis, stream: str, maxlen: int = 100_000):
        self._redis = redis
        self._stream = stream
        self._maxlen = maxlen

    async def publish(self, event: LifecycleEvent) -> None:
        payload = asdict(event)
        payload["data"] = json.dumps(payload["data"], default=str)
        await self._redis.xadd(self._stream, payload, maxlen=self._maxlen, approximate=True)


class LoggingEventSink:
    """Sink that only logs. Used when no Redis stream is configured."""

    async def publish(self, event: LifecycleEvent) -> None:
        logger.info(
            "Lifecycle event %s org=%s entity=%s",
            event.type,
            event.organization_id,
            event.entity_id,
        )


async def publish_events(sink: EventSink, events: list[LifecycleEvent]) -> int:
    """Publish events one by one; return how many failed."""
    failed = 0
    for event in events:
        try:
            await sink.publish(event)
        except Exception as e:
            failed += 1
            logger.error(
                "Failed to publish %s for %s (org %s): %s",
                event.type,
                event.entity_id,
                event.organization_id,
                e,
            )
    return failed
