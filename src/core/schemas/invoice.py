import uuid
from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from src.core.models.enums import DiscountType


class LineItemTemplate(BaseModel):
    description: str
    quantity: Decimal = Field(default=Decimal(1), ge=0)
    unit: str | None = None
    unit_price_cents: int = Field(ge=0)
    sort_order: int = 0


class InvoiceTemplate(BaseModel):
    """Invoice body stored on a recurring schedule and copied into each cycle."""

    line_items: list[LineItemTemplate] = Field(default_factory=list)
    currency: str | None = None
    tax_rate: Decimal | None = Field(default=None, ge=0)
    discount_type: DiscountType | None = None
    discount_value: Decimal | None = Field(default=None, ge=0)
    payment_terms_days: int = Field(default=30, ge=0)
    notes: str | None = None
    terms: str | None = None


class InvoiceCreate(BaseModel):
    organization_id: uuid.UUID
    client_id: uuid.UUID
    issue_date: date
    due_date: date
    template: InvoiceTemplate
    recurring_schedule_id: uuid.UUID | None = None
    send_immediately: bool = False
