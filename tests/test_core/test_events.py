"""Tests for lifecycle event publishing."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.events import (
    INVOICE_OVERDUE,
    LifecycleEvent,
    LoggingEventSink,
    RedisEventSink,
    publish_events,
)


@pytest.mark.asyncio
async def test_redis_sink_appends_to_stream():
    mock_redis = MagicMock()
    mock_redis.xadd = AsyncMock()
    sink = RedisEventSink(mock_redis, "billing:lifecycle", maxlen=1000)

    await sink.publish(
        LifecycleEvent(
            type=INVOICE_OVERDUE,
            organization_id="org-1",
            entity_id="inv-1",
            data={"amount_due_cents": 500},
        )
    )

    mock_redis.xadd.assert_awaited_once()
    args, kwargs = mock_redis.xadd.call_args
    assert args[0] == "billing:lifecycle"
    fields = args[1]
    assert fields["type"] == INVOICE_OVERDUE
    assert fields["entity_id"] == "inv-1"
    assert json.loads(fields["data"]) == {"amount_due_cents": 500}
    assert kwargs["maxlen"] == 1000


@pytest.mark.asyncio
async def test_publish_events_counts_failures():
    sink = MagicMock()
    sink.publish = AsyncMock(side_effect=[None, ConnectionError("down"), None])
    events = [LifecycleEvent(type="x", organization_id="o", entity_id=str(i)) for i in range(3)]

    failed = await publish_events(sink, events)

    assert failed == 1
    assert sink.publish.await_count == 3


@pytest.mark.asyncio
async def test_logging_sink_never_raises():
    await LoggingEventSink().publish(LifecycleEvent(type="x", organization_id="o", entity_id="e"))
