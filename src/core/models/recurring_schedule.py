import uuid
from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import ENUM, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.core.models.base import Base, TimestampMixin
from src.core.models.enums import RecurrenceFrequency, ScheduleStatus


class RecurringSchedule(Base, TimestampMixin):
    __tablename__ = "recurring_schedules"
    __table_args__ = (
        CheckConstraint(
            "custom_days IS NULL OR custom_days >= 1", name="ck_recurring_schedules_custom_days"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), index=True)
    client_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True))
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    frequency: Mapped[RecurrenceFrequency] = mapped_column(
        ENUM(RecurrenceFrequency, name="recurrence_frequency", create_type=False)
    )
    frequency_interval: Mapped[int] = mapped_column(Integer, default=1, server_default="1")
    custom_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    next_issue_date: Mapped[date] = mapped_column(Date, index=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[ScheduleStatus] = mapped_column(
        ENUM(ScheduleStatus, name="schedule_status", create_type=False),
        default=ScheduleStatus.active,
    )
    auto_send: Mapped[bool] = mapped_column(Boolean, default=False)
    template: Mapped[dict] = mapped_column(JSONB)

    invoices_generated_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    last_generated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_generated_invoice_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True
    )


class RecurringSkip(Base, TimestampMixin):
    __tablename__ = "recurring_skips"
    __table_args__ = (
        UniqueConstraint("recurring_schedule_id", "skip_date", name="uq_recurring_skips_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    recurring_schedule_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("recurring_schedules.id", ondelete="CASCADE")
    )
    skip_date: Mapped[date] = mapped_column(Date)
    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
