"""Audit logging — invoice activity trail."""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.models.enums import ActivityType
from src.core.models.invoice import InvoiceActivity

logger = logging.getLogger(__name__)


def log_invoice_activity(
    session: AsyncSession,
    invoice_id: uuid.UUID,
    activity_type: ActivityType,
    description: str,
    meta: dict | None = None,
) -> InvoiceActivity:
    """Add an activity row to the session.

    Nothing is flushed here; the row commits with whatever transaction the
    caller is running, alongside the change it describes.
    """
    entry = InvoiceActivity(
        invoice_id=invoice_id,
        activity_type=activity_type,
        description=description,
        meta=meta,
    )
    session.add(entry)
    logger.debug("Audit: %s on invoice %s", activity_type.value, invoice_id)
    return entry
