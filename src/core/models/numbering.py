import uuid
from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.dialects.postgresql import ENUM, UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.core.models.base import Base, TimestampMixin
from src.core.models.enums import ResetFrequency


class InvoiceNumberSettings(Base, TimestampMixin):
    __tablename__ = "invoice_number_settings"

    organization_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)
    pattern: Mapped[str] = mapped_column(String(100), default="INV-{NUMBER:5}")
    prefix: Mapped[str | None] = mapped_column(String(20), nullable=True)
    next_number: Mapped[int] = mapped_column(Integer, default=1, server_default="1")
    reset_frequency: Mapped[ResetFrequency] = mapped_column(
        ENUM(ResetFrequency, name="reset_frequency", create_type=False),
        default=ResetFrequency.never,
        server_default="never",
    )
    last_reset_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
