"""Recurring transactions and vendor payment schedules

Revision ID: 0002_recurring_and_vendor_schedules
Revises: 0001_initial
Create Date: 2026-10-17 15:00:00
"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0002_recurring_and_vendor_schedules"
down_revision = "0001_initial"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "recurring_transactions",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("frequency", sa.String(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date()),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")
        ),
        sa.Column(
            "type", sa.Enum("income", "expense", name="recurring_type"), nullable=False
        ),
    )
    op.add_column("vendors", sa.Column("payment_schedule", sa.JSON()))


def downgrade():
    op.drop_column("vendors", "payment_schedule")
    op.drop_table("recurring_transactions")
    # Drop enum type for Postgres
    op.execute("DROP TYPE IF EXISTS recurring_type;")
