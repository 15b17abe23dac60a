"""Initial billing schema -- invoices, numbering, recurring schedules, expenses.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ENUM, JSONB, UUID

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # ── Enum types (idempotent via DO/EXCEPTION) ────────────────
    _enums = {
        "invoice_status": "'draft', 'sent', 'viewed', 'partial', 'overdue', 'paid', 'cancelled'",
        "discount_type": "'percentage', 'fixed'",
        "reset_frequency": "'never', 'yearly', 'monthly'",
        "recurrence_frequency": "'weekly', 'biweekly', 'monthly', 'quarterly', 'yearly', 'custom'",
        "schedule_status": "'active', 'paused', 'completed', 'cancelled'",
        "invoice_activity_type": "'created', 'status_changed', 'sent'",
    }
    for name, values in _enums.items():
        op.execute(sa.text(
            f"DO $$ BEGIN CREATE TYPE {name} AS ENUM ({values}); "
            f"EXCEPTION WHEN duplicate_object THEN NULL; END $$;"
        ))

    invoice_status = ENUM(
        "draft", "sent", "viewed", "partial", "overdue", "paid", "cancelled",
        name="invoice_status", create_type=False,
    )
    discount_type = ENUM("percentage", "fixed", name="discount_type", create_type=False)
    reset_frequency = ENUM("never", "yearly", "monthly", name="reset_frequency", create_type=False)
    recurrence_frequency = ENUM(
        "weekly", "biweekly", "monthly", "quarterly", "yearly", "custom",
        name="recurrence_frequency", create_type=False,
    )
    schedule_status = ENUM(
        "active", "paused", "completed", "cancelled", name="schedule_status", create_type=False
    )
    activity_type = ENUM(
        "created", "status_changed", "sent", name="invoice_activity_type", create_type=False
    )

    # 1. invoice_number_settings
    op.create_table(
        "invoice_number_settings",
        sa.Column("organization_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("pattern", sa.String(100), nullable=False, server_default="INV-{NUMBER:5}"),
        sa.Column("prefix", sa.String(20), nullable=True),
        sa.Column("next_number", sa.Integer, nullable=False, server_default="1"),
        sa.Column("reset_frequency", reset_frequency, nullable=False, server_default="never"),
        sa.Column("last_reset_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("next_number >= 1", name="ck_invoice_number_settings_positive"),
        *_timestamps(),
    )

    # 2. recurring_schedules
    op.create_table(
        "recurring_schedules",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("organization_id", UUID(as_uuid=True), nullable=False),
        sa.Column("client_id", UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("frequency", recurrence_frequency, nullable=False),
        sa.Column("frequency_interval", sa.Integer, nullable=False, server_default="1"),
        sa.Column("custom_days", sa.Integer, nullable=True),
        sa.Column("next_issue_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=True),
        sa.Column("status", schedule_status, nullable=False, server_default="active"),
        sa.Column("auto_send", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("template", JSONB, nullable=False),
        sa.Column("invoices_generated_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_generated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_generated_invoice_id", UUID(as_uuid=True), nullable=True),
        sa.CheckConstraint(
            "custom_days IS NULL OR custom_days >= 1", name="ck_recurring_schedules_custom_days"
        ),
        *_timestamps(),
    )
    op.create_index("ix_recurring_schedules_organization_id", "recurring_schedules", ["organization_id"])
    op.create_index("ix_recurring_schedules_next_issue_date", "recurring_schedules", ["next_issue_date"])

    # 3. recurring_skips
    op.create_table(
        "recurring_skips",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "recurring_schedule_id",
            UUID(as_uuid=True),
            sa.ForeignKey("recurring_schedules.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("skip_date", sa.Date, nullable=False),
        sa.Column("reason", sa.String(500), nullable=True),
        sa.UniqueConstraint("recurring_schedule_id", "skip_date", name="uq_recurring_skips_date"),
        *_timestamps(),
    )

    # 4. invoices
    op.create_table(
        "invoices",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("organization_id", UUID(as_uuid=True), nullable=False),
        sa.Column("client_id", UUID(as_uuid=True), nullable=False),
        sa.Column(
            "recurring_schedule_id",
            UUID(as_uuid=True),
            sa.ForeignKey("recurring_schedules.id"),
            nullable=True,
        ),
        sa.Column("invoice_number", sa.String(100), nullable=False),
        sa.Column("status", invoice_status, nullable=False, server_default="draft"),
        sa.Column("issue_date", sa.Date, nullable=False),
        sa.Column("due_date", sa.Date, nullable=False),
        sa.Column("currency", sa.String(10), nullable=False, server_default="USD"),
        sa.Column("discount_type", discount_type, nullable=True),
        sa.Column("discount_value", sa.Numeric(12, 4), nullable=True),
        sa.Column("tax_rate", sa.Numeric(7, 4), nullable=True),
        sa.Column("subtotal_cents", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("discount_cents", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("tax_cents", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("total_cents", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("amount_paid_cents", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("amount_due_cents", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("terms", sa.Text, nullable=True),
        sa.UniqueConstraint("organization_id", "invoice_number", name="uq_invoices_org_number"),
        *_timestamps(),
    )
    op.create_index("ix_invoices_organization_id", "invoices", ["organization_id"])
    op.create_index("ix_invoices_due_date", "invoices", ["due_date"])
    op.create_index("ix_invoices_status_due_date", "invoices", ["status", "due_date"])

    # 5. invoice_line_items
    op.create_table(
        "invoice_line_items",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "invoice_id",
            UUID(as_uuid=True),
            sa.ForeignKey("invoices.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("quantity", sa.Numeric(12, 4), nullable=False, server_default="1"),
        sa.Column("unit", sa.String(20), nullable=True),
        sa.Column("unit_price_cents", sa.BigInteger, nullable=False),
        sa.Column("amount_cents", sa.BigInteger, nullable=False),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
    )

    # 6. invoice_activities
    op.create_table(
        "invoice_activities",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "invoice_id",
            UUID(as_uuid=True),
            sa.ForeignKey("invoices.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("activity_type", activity_type, nullable=False),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("meta", JSONB, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_invoice_activities_invoice_id", "invoice_activities", ["invoice_id"])

    # 7. recurring_expenses
    op.create_table(
        "recurring_expenses",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("organization_id", UUID(as_uuid=True), nullable=False),
        sa.Column("created_by_user_id", UUID(as_uuid=True), nullable=True),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("amount_cents", sa.BigInteger, nullable=False),
        sa.Column("currency", sa.String(10), nullable=False, server_default="USD"),
        sa.Column("category_id", UUID(as_uuid=True), nullable=True),
        sa.Column("vendor_id", UUID(as_uuid=True), nullable=True),
        sa.Column("payment_method", sa.String(50), nullable=True),
        sa.Column("frequency", recurrence_frequency, nullable=False),
        sa.Column("frequency_interval", sa.Integer, nullable=False, server_default="1"),
        sa.Column("custom_days", sa.Integer, nullable=True),
        sa.Column("next_occurrence_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=True),
        sa.Column("status", schedule_status, nullable=False, server_default="active"),
        sa.Column("total_generated_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("total_spent_cents", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("last_generated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_generated_expense_id", UUID(as_uuid=True), nullable=True),
        sa.CheckConstraint(
            "custom_days IS NULL OR custom_days >= 1", name="ck_recurring_expenses_custom_days"
        ),
        *_timestamps(),
    )
    op.create_index("ix_recurring_expenses_organization_id", "recurring_expenses", ["organization_id"])
    op.create_index(
        "ix_recurring_expenses_next_occurrence_date", "recurring_expenses", ["next_occurrence_date"]
    )

    # 8. expenses
    op.create_table(
        "expenses",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("organization_id", UUID(as_uuid=True), nullable=False),
        sa.Column("created_by_user_id", UUID(as_uuid=True), nullable=True),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("amount_cents", sa.BigInteger, nullable=False),
        sa.Column("currency", sa.String(10), nullable=False, server_default="USD"),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("category_id", UUID(as_uuid=True), nullable=True),
        sa.Column("vendor_id", UUID(as_uuid=True), nullable=True),
        sa.Column("payment_method", sa.String(50), nullable=True),
        sa.Column(
            "recurring_expense_id",
            UUID(as_uuid=True),
            sa.ForeignKey("recurring_expenses.id"),
            nullable=True,
        ),
        *_timestamps(),
    )
    op.create_index("ix_expenses_organization_id", "expenses", ["organization_id"])


def downgrade() -> None:
    for table in (
        "expenses",
        "recurring_expenses",
        "invoice_activities",
        "invoice_line_items",
        "invoices",
        "recurring_skips",
        "recurring_schedules",
        "invoice_number_settings",
    ):
        op.drop_table(table)
    for name in (
        "invoice_activity_type",
        "schedule_status",
        "recurrence_frequency",
        "reset_frequency",
        "discount_type",
        "invoice_status",
    ):
        op.execute(f"DROP TYPE IF EXISTS {name}")
