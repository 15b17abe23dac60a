"""Tests for invoice document creation."""

import uuid
from datetime import UTC, date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from src.billing.invoices import create_invoice, due_date_for
from src.core.models.enums import ActivityType, DiscountType, InvoiceStatus
from src.core.models.invoice import Invoice, InvoiceActivity, InvoiceLineItem
from src.core.schemas.invoice import InvoiceCreate, InvoiceTemplate

MODULE = "src.billing.invoices"


def _payload(organization_id, send_immediately=False, **template_kwargs):
    template = InvoiceTemplate(
        line_items=[
            {"description": "Design work", "quantity": "2.5", "unit_price_cents": 8000},
            {"description": "Hosting", "quantity": 1, "unit_price_cents": 1999, "sort_order": 1},
        ],
        **template_kwargs,
    )
    return InvoiceCreate(
        organization_id=organization_id,
        client_id=uuid.uuid4(),
        issue_date=date(2026, 3, 1),
        due_date=due_date_for(date(2026, 3, 1), template),
        template=template,
        send_immediately=send_immediately,
    )


@pytest.mark.asyncio
async def test_creates_invoice_with_totals(organization_id, session_factory_mock):
    session = session_factory_mock()
    payload = _payload(
        organization_id,
        tax_rate=Decimal("5"),
        discount_type=DiscountType.fixed,
        discount_value=Decimal("1999"),
    )

    with patch(f"{MODULE}.allocate_invoice_number", new_callable=AsyncMock, return_value="INV-00001") as alloc:
        invoice = await create_invoice(
            session, payload, now=datetime(2026, 3, 1, tzinfo=UTC), default_currency="EUR"
        )

    alloc.assert_awaited_once()
    assert isinstance(invoice, Invoice)
    assert invoice.invoice_number == "INV-00001"
    assert invoice.status == InvoiceStatus.draft
    assert invoice.currency == "EUR"
    assert invoice.subtotal_cents == 21999
    assert invoice.discount_cents == 1999
    assert invoice.tax_cents == 1000
    assert invoice.total_cents == 21000
    assert invoice.amount_due_cents == 21000
    assert invoice.due_date == date(2026, 3, 31)

    added = [c[0][0] for c in session.add.call_args_list]
    lines = [a for a in added if isinstance(a, InvoiceLineItem)]
    assert [line.amount_cents for line in lines] == [20000, 1999]
    activities = [a for a in added if isinstance(a, InvoiceActivity)]
    assert [a.activity_type for a in activities] == [ActivityType.created]


@pytest.mark.asyncio
async def test_send_immediately_marks_sent(organization_id, session_factory_mock):
    session = session_factory_mock()

    with patch(f"{MODULE}.allocate_invoice_number", new_callable=AsyncMock, return_value="INV-00002"):
        invoice = await create_invoice(session, _payload(organization_id, send_immediately=True, currency="GBP"))

    assert invoice.status == InvoiceStatus.sent
    assert invoice.currency == "GBP"
    activities = [c[0][0] for c in session.add.call_args_list if isinstance(c[0][0], InvoiceActivity)]
    assert [a.activity_type for a in activities] == [ActivityType.created, ActivityType.sent]


@pytest.mark.asyncio
async def test_numbering_failure_propagates(organization_id, session_factory_mock):
    from src.core.exceptions import SequenceConflictError

    session = session_factory_mock()

    with patch(
        f"{MODULE}.allocate_invoice_number",
        new_callable=AsyncMock,
        side_effect=SequenceConflictError(str(organization_id), 5),
    ):
        with pytest.raises(SequenceConflictError):
            await create_invoice(session, _payload(organization_id))

    session.add.assert_not_called()


def test_template_defaults():
    template = InvoiceTemplate.model_validate({"line_items": []})
    assert template.payment_terms_days == 30
    assert due_date_for(date(2026, 1, 31), template) == date(2026, 3, 2)
