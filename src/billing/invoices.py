"""Invoice document creation — totals, numbering and line items in one transaction."""

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from src.billing.numbering import allocate_invoice_number
from src.billing.totals import DiscountPolicy, LineItem, compute_totals, line_amount_cents
from src.core.audit import log_invoice_activity
from src.core.models.enums import ActivityType, InvoiceStatus
from src.core.models.invoice import Invoice, InvoiceLineItem
from src.core.schemas.invoice import InvoiceCreate, InvoiceTemplate

logger = logging.getLogger(__name__)


def due_date_for(issue_date, template: InvoiceTemplate):
    return issue_date + timedelta(days=template.payment_terms_days)


def _discount(template: InvoiceTemplate) -> DiscountPolicy | None:
    if template.discount_type is None or template.discount_value is None:
        return None
    return DiscountPolicy(kind=template.discount_type, value=template.discount_value)


async def create_invoice(
    session: AsyncSession,
    payload: InvoiceCreate,
    *,
    default_currency: str = "USD",
    default_pattern: str = "INV-{NUMBER:5}",
    numbering_max_retries: int = 5,
    now: datetime | None = None,
) -> Invoice:
    """Create an invoice with its line items and a ``created`` activity.

    Must run inside the caller's transaction: the number allocation, the
    invoice row and its audit rows commit or roll back together.
    """
    now = now or datetime.now(UTC)
    template = payload.template
    items = [LineItem(i.quantity, i.unit_price_cents) for i in template.line_items]
    totals = compute_totals(items, _discount(template), template.tax_rate, amount_paid_cents=0)

    invoice_number = await allocate_invoice_number(
        session,
        payload.organization_id,
        now,
        default_pattern=default_pattern,
        max_retries=numbering_max_retries,
    )

    status = InvoiceStatus.sent if payload.send_immediately else InvoiceStatus.draft
    invoice = Invoice(
        organization_id=payload.organization_id,
        client_id=payload.client_id,
        recurring_schedule_id=payload.recurring_schedule_id,
        invoice_number=invoice_number,
        status=status,
        issue_date=payload.issue_date,
        due_date=payload.due_date,
        currency=template.currency or default_currency,
        discount_type=template.discount_type,
        discount_value=template.discount_value,
        tax_rate=template.tax_rate,
        subtotal_cents=totals.subtotal_cents,
        discount_cents=totals.discount_cents,
        tax_cents=totals.tax_cents,
        total_cents=totals.total_cents,
        amount_paid_cents=totals.amount_paid_cents,
        amount_due_cents=totals.amount_due_cents,
        notes=template.notes,
        terms=template.terms,
    )
    session.add(invoice)
    await session.flush()

    for item, line in zip(template.line_items, items):
        session.add(
            InvoiceLineItem(
                invoice_id=invoice.id,
                description=item.description,
                quantity=item.quantity,
                unit=item.unit,
                unit_price_cents=item.unit_price_cents,
                amount_cents=line_amount_cents(line),
                sort_order=item.sort_order,
            )
        )

    log_invoice_activity(session, invoice.id, ActivityType.created, "Invoice created")
    if status == InvoiceStatus.sent:
        log_invoice_activity(session, invoice.id, ActivityType.sent, "Invoice issued to client")

    logger.info(
        "Invoice %s created for org %s (total %d cents)",
        invoice_number,
        payload.organization_id,
        totals.total_cents,
    )
    return invoice
