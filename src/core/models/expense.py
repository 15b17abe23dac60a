import uuid
from datetime import date, datetime

from sqlalchemy import BigInteger, CheckConstraint, Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import ENUM, UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.core.models.base import Base, TimestampMixin
from src.core.models.enums import RecurrenceFrequency, ScheduleStatus


class RecurringExpense(Base, TimestampMixin):
    __tablename__ = "recurring_expenses"
    __table_args__ = (
        CheckConstraint(
            "custom_days IS NULL OR custom_days >= 1", name="ck_recurring_expenses_custom_days"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), index=True)
    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    description: Mapped[str] = mapped_column(String(500))
    amount_cents: Mapped[int] = mapped_column(BigInteger)
    currency: Mapped[str] = mapped_column(String(10), default="USD")
    category_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    vendor_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    frequency: Mapped[RecurrenceFrequency] = mapped_column(
        ENUM(RecurrenceFrequency, name="recurrence_frequency", create_type=False)
    )
    frequency_interval: Mapped[int] = mapped_column(Integer, default=1, server_default="1")
    custom_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    next_occurrence_date: Mapped[date] = mapped_column(Date, index=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[ScheduleStatus] = mapped_column(
        ENUM(ScheduleStatus, name="schedule_status", create_type=False),
        default=ScheduleStatus.active,
    )

    total_generated_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    total_spent_cents: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0")
    last_generated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_generated_expense_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True
    )


class Expense(Base, TimestampMixin):
    __tablename__ = "expenses"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), index=True)
    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    description: Mapped[str] = mapped_column(String(500))
    amount_cents: Mapped[int] = mapped_column(BigInteger)
    currency: Mapped[str] = mapped_column(String(10), default="USD")
    date: Mapped[date] = mapped_column(Date)
    category_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    vendor_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    recurring_expense_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("recurring_expenses.id"), nullable=True
    )
