from src.core.models.base import Base
from src.core.models.enums import (
    ActivityType,
    DiscountType,
    InvoiceStatus,
    RecurrenceFrequency,
    ResetFrequency,
    ScheduleStatus,
)
from src.core.models.expense import Expense, RecurringExpense
from src.core.models.invoice import Invoice, InvoiceActivity, InvoiceLineItem
from src.core.models.numbering import InvoiceNumberSettings
from src.core.models.recurring_schedule import RecurringSchedule, RecurringSkip

__all__ = [
    "Base",
    "ActivityType",
    "DiscountType",
    "InvoiceStatus",
    "RecurrenceFrequency",
    "ResetFrequency",
    "ScheduleStatus",
    "Expense",
    "RecurringExpense",
    "Invoice",
    "InvoiceActivity",
    "InvoiceLineItem",
    "InvoiceNumberSettings",
    "RecurringSchedule",
    "RecurringSkip",
]
