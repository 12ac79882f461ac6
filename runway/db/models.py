"""Database ORM models the sync collaborators write into.

This module defines the SQLAlchemy models read by the database snapshot source:
CashFlowEventRow, SettlementRow, BankAccount, CreditCard, IncomeRow, VendorRow
and RecurringRow.
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    Enum,
    Date,
    Numeric,
    Boolean,
    Text,
    JSON,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()

MONEY = Numeric(14, 2, asdecimal=True)


class CashFlowEventRow(Base):
    """ORM model for cash_flow_events table.

    Attributes:
        id (str): Primary key, assigned by the producing collaborator.
        type (str): 'inflow', 'outflow', 'credit-payment' or 'purchase-order'.
        amount (Decimal): Non-negative amount; may be null for rows the
            collaborator could not fill in.
        description (str): Free text.
        vendor (str): Vendor name, if any.
        credit_card_id (str): Card the event is charged to, if any.
        source (str): Producer tag such as 'confirmed-payout'.
        date (date): Recorded date.
        balance_impact_date (date): Day funds actually move, if different.
    """

    __tablename__ = "cash_flow_events"
    id = Column(String, primary_key=True)
    type = Column(
        Enum("inflow", "outflow", "credit-payment", "purchase-order", name="cash_flow_event_type"),
        nullable=False,
    )
    amount = Column(MONEY)
    description = Column(Text, nullable=False, default="")
    vendor = Column(String)
    credit_card_id = Column(String, index=True)
    source = Column(String)
    date = Column(Date, index=True)
    balance_impact_date = Column(Date, index=True)


class SettlementRow(Base):
    """ORM model for settlements table.

    Attributes:
        id (str): Marketplace settlement id.
        account_id (str): Marketplace account the settlement belongs to.
        status (str): 'confirmed', 'estimated' or 'forecasted'.
        payout_date (date): Actual or expected payout date.
        total_amount (Decimal): Payout amount.
        currency (str): ISO currency code.
        raw_settlement_data (JSON): Marketplace metadata (period bounds etc.).
        payout_frequency (str): 'daily' or 'bi-weekly'.
    """

    __tablename__ = "settlements"
    id = Column(String, primary_key=True)
    account_id = Column(String, nullable=False, index=True)
    status = Column(
        Enum("confirmed", "estimated", "forecasted", name="settlement_status"), nullable=False
    )
    payout_date = Column(Date)
    total_amount = Column(MONEY, nullable=False)
    currency = Column(String, nullable=False, default="USD")
    raw_settlement_data = Column(JSON)
    payout_frequency = Column(String)


class BankAccount(Base):
    """ORM model for bank_accounts table."""

    __tablename__ = "bank_accounts"
    id = Column(Integer, primary_key=True, index=True)
    account_name = Column(String, nullable=False)
    balance = Column(MONEY, nullable=False)
    available_balance = Column(MONEY)
    is_active = Column(Boolean, nullable=False, default=True)


class CreditCard(Base):
    """ORM model for credit_cards table."""

    __tablename__ = "credit_cards"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    available_credit = Column(MONEY, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)


class IncomeRow(Base):
    """ORM model for income_items table."""

    __tablename__ = "income_items"
    id = Column(String, primary_key=True)
    amount = Column(MONEY, nullable=False)
    payment_date = Column(Date, nullable=False)
    status = Column(
        Enum("received", "pending", "overdue", name="income_status"), nullable=False
    )
    description = Column(Text, nullable=False, default="")
    source = Column(String)


class VendorRow(Base):
    """ORM model for vendors table."""

    __tablename__ = "vendors"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    total_owed = Column(MONEY, nullable=False)
    next_payment_date = Column(Date)
    next_payment_amount = Column(MONEY, nullable=False)
    status = Column(String, nullable=False, default="unpaid")
    po_name = Column(String)
    # list of {"date": "YYYY-MM-DD", "amount": number}
    payment_schedule = Column(JSON)


class RecurringRow(Base):
    """ORM model for recurring_transactions table.

    Attributes:
        frequency (str): 'daily', 'weekly', 'bi-weekly', 'monthly', '2-months',
            '3-months' or 'weekdays'.
        type (str): 'income' or 'expense'.
        end_date (date): Last day an occurrence may fall on, if any.
    """

    __tablename__ = "recurring_transactions"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    amount = Column(MONEY, nullable=False)
    frequency = Column(String, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date)
    is_active = Column(Boolean, nullable=False, default=True)
    type = Column(Enum("income", "expense", name="recurring_type"), nullable=False)
