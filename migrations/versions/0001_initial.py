"""Initial migration

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17 09:00:00
"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

MONEY = sa.Numeric(14, 2)


def upgrade():
    op.create_table(
        "cash_flow_events",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "type",
            sa.Enum(
                "inflow",
                "outflow",
                "credit-payment",
                "purchase-order",
                name="cash_flow_event_type",
            ),
            nullable=False,
        ),
        sa.Column("amount", MONEY),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("vendor", sa.String()),
        sa.Column("credit_card_id", sa.String(), index=True),
        sa.Column("source", sa.String()),
        sa.Column("date", sa.Date(), index=True),
        sa.Column("balance_impact_date", sa.Date(), index=True),
    )
    op.create_table(
        "settlements",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("account_id", sa.String(), nullable=False, index=True),
        sa.Column(
            "status",
            sa.Enum("confirmed", "estimated", "forecasted", name="settlement_status"),
            nullable=False,
        ),
        sa.Column("payout_date", sa.Date()),
        sa.Column("total_amount", MONEY, nullable=False),
        sa.Column("currency", sa.String(), nullable=False, server_default="USD"),
        sa.Column("raw_settlement_data", sa.JSON()),
        sa.Column("payout_frequency", sa.String()),
    )
    op.create_table(
        "bank_accounts",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("account_name", sa.String(), nullable=False),
        sa.Column("balance", MONEY, nullable=False),
        sa.Column("available_balance", MONEY),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")
        ),
    )
    op.create_table(
        "credit_cards",
        sa.Column("id", sa.Integer(), primary_key=True, index=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("available_credit", MONEY, nullable=False),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")
        ),
    )
    op.create_table(
        "income_items",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("received", "pending", "overdue", name="income_status"),
            nullable=False,
        ),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("source", sa.String()),
    )
    op.create_table(
        "vendors",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("total_owed", MONEY, nullable=False),
        sa.Column("next_payment_date", sa.Date()),
        sa.Column("next_payment_amount", MONEY, nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="unpaid"),
        sa.Column("po_name", sa.String()),
    )


def downgrade():
    op.drop_table("vendors")
    op.drop_table("income_items")
    op.drop_table("credit_cards")
    op.drop_table("bank_accounts")
    op.drop_table("settlements")
    op.drop_table("cash_flow_events")
    # Drop enum types for Postgres
    op.execute("DROP TYPE IF EXISTS income_status;")
    op.execute("DROP TYPE IF EXISTS settlement_status;")
    op.execute("DROP TYPE IF EXISTS cash_flow_event_type;")
