"""Invoice number allocation against the persisted per-organization policy.

Two issuers for the same organization must never get the same number. The
counter row is written with a conditional UPDATE that only matches when
``next_number`` and ``last_reset_at`` still hold the values we read; a miss
means someone else allocated first, so we re-read and try again. This works
across processes, unlike an in-memory lock.
"""

import logging
import uuid
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from src.billing.invoice_number import NumberingPolicy, next_invoice_number
from src.core.exceptions import SequenceConflictError
from src.core.models.numbering import InvoiceNumberSettings

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 5


async def load_settings(
    session: AsyncSession,
    organization_id: uuid.UUID,
    default_pattern: str,
) -> InvoiceNumberSettings:
    """Return the organization's numbering row, creating it with defaults if missing."""
    await session.execute(
        insert(InvoiceNumberSettings)
        .values(organization_id=organization_id, pattern=default_pattern)
        .on_conflict_do_nothing(index_elements=["organization_id"])
    )
    result = await session.execute(
        select(InvoiceNumberSettings)
        .where(InvoiceNumberSettings.organization_id == organization_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


def policy_from_settings(row: InvoiceNumberSettings) -> NumberingPolicy:
    return NumberingPolicy(
        pattern=row.pattern,
        next_number=row.next_number,
        reset_frequency=row.reset_frequency,
        last_reset_at=row.last_reset_at,
    )


async def allocate_invoice_number(
    session: AsyncSession,
    organization_id: uuid.UUID,
    now: datetime,
    *,
    default_pattern: str = "INV-{NUMBER:5}",
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> str:
    """Reserve and return the next invoice number for an organization.

    The counter update is part of the caller's transaction, so a rollback
    releases the number again.
    """
    for attempt in range(1, max_retries + 1):
        row = await load_settings(session, organization_id, default_pattern)
        policy = policy_from_settings(row)
        number, advanced = next_invoice_number(policy, now, row.prefix)

        result = await session.execute(
            update(InvoiceNumberSettings)
            .where(
                InvoiceNumberSettings.organization_id == organization_id,
                InvoiceNumberSettings.next_number == policy.next_number,
                InvoiceNumberSettings.last_reset_at.is_not_distinct_from(policy.last_reset_at),
            )
            .values(next_number=advanced.next_number, last_reset_at=advanced.last_reset_at)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            return number

        logger.warning(
            "Invoice number conflict for org %s (attempt %d/%d)",
            organization_id,
            attempt,
            max_retries,
        )

    raise SequenceConflictError(str(organization_id), max_retries)
