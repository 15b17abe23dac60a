import enum


class InvoiceStatus(str, enum.Enum):
    draft = "draft"
    sent = "sent"
    viewed = "viewed"
    partial = "partial"
    overdue = "overdue"
    paid = "paid"
    cancelled = "cancelled"


# Statuses the overdue sweep is allowed to move to ``overdue``.
OVERDUE_ELIGIBLE = (InvoiceStatus.sent, InvoiceStatus.viewed, InvoiceStatus.partial)


class DiscountType(str, enum.Enum):
    percentage = "percentage"
    fixed = "fixed"


class ResetFrequency(str, enum.Enum):
    never = "never"
    yearly = "yearly"
    monthly = "monthly"


class RecurrenceFrequency(str, enum.Enum):
    weekly = "weekly"
    biweekly = "biweekly"
    monthly = "monthly"
    quarterly = "quarterly"
    yearly = "yearly"
    custom = "custom"


class ScheduleStatus(str, enum.Enum):
    active = "active"
    paused = "paused"
    completed = "completed"
    cancelled = "cancelled"


TERMINAL_SCHEDULE_STATUSES = (ScheduleStatus.completed, ScheduleStatus.cancelled)


class ActivityType(str, enum.Enum):
    created = "created"
    status_changed = "status_changed"
    sent = "sent"
