"""Tests for the snapshot sources, using an in-memory SQLite database."""

import unittest
from datetime import date
from decimal import Decimal

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from runway.db.models import (
    Base,
    BankAccount,
    CashFlowEventRow,
    CreditCard,
    IncomeRow,
    RecurringRow,
    SettlementRow,
    VendorRow,
)
from runway.errors import InvalidDateRange, SourceUnavailable
from runway.events.models import (
    CashFlowEvent,
    EventType,
    RecurringFrequency,
    RecurringTransaction,
    RecurringType,
    SettlementStatus,
)
from runway.sources.sources import DatabaseSource, StaticSource


def memory_session_factory(create_tables=True):
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    if create_tables:
        Base.metadata.create_all(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


class TestDatabaseSource(unittest.TestCase):
    """Test cases for DatabaseSource."""

    def setUp(self):
        self.session_factory = memory_session_factory()
        self.source = DatabaseSource(self.session_factory)
        self.start = date(2024, 1, 1)
        self.end = date(2024, 1, 31)

    def _add(self, *rows):
        session = self.session_factory()
        session.add_all(rows)
        session.commit()
        session.close()

    def test_get_events_merges_events_income_and_vendors(self):
        self._add(
            CashFlowEventRow(id="e1", type="inflow", amount=Decimal("100.00"), date=date(2024, 1, 2)),
            CashFlowEventRow(
                id="e2",
                type="outflow",
                amount=Decimal("40.00"),
                date=date(2023, 12, 30),
                balance_impact_date=date(2024, 1, 3),
            ),
            CashFlowEventRow(id="e3", type="outflow", amount=Decimal("1.00"), date=date(2024, 2, 10)),
            CashFlowEventRow(id="e4", type="outflow", amount=None, date=date(2024, 1, 5)),
            CashFlowEventRow(id="e5", type="outflow", amount=Decimal("3.00")),
            IncomeRow(id="i1", amount=Decimal("200.00"), payment_date=date(2024, 1, 4), status="pending"),
            IncomeRow(id="i2", amount=Decimal("999.00"), payment_date=date(2024, 1, 4), status="received"),
            VendorRow(
                id="v1",
                name="Acme Supply",
                total_owed=Decimal("500.00"),
                next_payment_date=date(2024, 1, 6),
                next_payment_amount=Decimal("250.00"),
            ),
            VendorRow(
                id="v2",
                name="Paid Co",
                total_owed=Decimal("0.00"),
                next_payment_date=date(2024, 1, 6),
                next_payment_amount=Decimal("10.00"),
                status="paid",
            ),
        )

        events = self.source.get_events(self.start, self.end)

        self.assertEqual(
            [event.id for event in events],
            ["e1", "e2", "income_i1", "e4", "vendor_v1_2024-01-06", "e5"],
        )
        by_id = {event.id: event for event in events}
        self.assertEqual(by_id["e1"].amount, Decimal("100"))
        self.assertEqual(by_id["e2"].impact_date, date(2024, 1, 3))
        self.assertIsNone(by_id["e4"].amount)
        self.assertEqual(by_id["income_i1"].type, EventType.INFLOW)
        self.assertEqual(by_id["vendor_v1_2024-01-06"].type, EventType.PURCHASE_ORDER)
        self.assertEqual(by_id["vendor_v1_2024-01-06"].amount, Decimal("250"))
        self.assertEqual(by_id["vendor_v1_2024-01-06"].vendor, "Acme Supply")

    def test_recurring_transactions_and_vendor_schedules(self):
        self._add(
            RecurringRow(
                id="rent",
                name="Warehouse rent",
                amount=Decimal("1500.00"),
                frequency="monthly",
                start_date=date(2023, 11, 5),
                type="expense",
            ),
            RecurringRow(
                id="old",
                name="Cancelled plan",
                amount=Decimal("10.00"),
                frequency="daily",
                start_date=date(2023, 1, 1),
                end_date=date(2023, 12, 31),
                type="expense",
            ),
            RecurringRow(
                id="paused",
                name="Paused retainer",
                amount=Decimal("700.00"),
                frequency="weekly",
                start_date=date(2024, 1, 1),
                is_active=False,
                type="income",
            ),
            VendorRow(
                id="v9",
                name="Scheduled Co",
                total_owed=Decimal("900.00"),
                next_payment_date=date(2024, 1, 2),
                next_payment_amount=Decimal("900.00"),
                payment_schedule=[
                    {"date": "2024-01-12", "amount": 400},
                    {"date": "2024-02-12", "amount": 500},
                    {"date": "not a date", "amount": 1},
                ],
            ),
        )

        events = self.source.get_events(self.start, self.end)

        self.assertEqual(
            [(event.id, event.amount) for event in events],
            [
                ("recurring_rent_2024-01-05", Decimal("1500")),
                ("vendor_v9_2024-01-12_0", Decimal("400")),
            ],
        )
        self.assertEqual(events[0].type, EventType.OUTFLOW)
        self.assertEqual(events[1].type, EventType.PURCHASE_ORDER)

    def test_starting_balance_sums_active_accounts(self):
        self._add(
            BankAccount(id=1, account_name="Operating", balance=Decimal("1000"), available_balance=Decimal("900")),
            BankAccount(id=2, account_name="Savings", balance=Decimal("500")),
            BankAccount(id=3, account_name="Closed", balance=Decimal("10000"), is_active=False),
        )
        self.assertEqual(self.source.get_starting_balance(), Decimal("1400"))
        ledger = DatabaseSource(self.session_factory, use_available_balance=False)
        self.assertEqual(ledger.get_starting_balance(), Decimal("1500"))

    def test_no_accounts_means_no_starting_balance(self):
        self.assertIsNone(self.source.get_starting_balance())

    def test_total_available_credit(self):
        self._add(
            CreditCard(id=1, name="Card A", available_credit=Decimal("2000")),
            CreditCard(id=2, name="Card B", available_credit=Decimal("500"), is_active=False),
        )
        self.assertEqual(self.source.get_total_available_credit(), Decimal("2000"))

    def test_settlement_records(self):
        self._add(
            SettlementRow(
                id="s1",
                account_id="acct-1",
                status="estimated",
                payout_date=date(2024, 1, 15),
                total_amount=Decimal("1234.56"),
                raw_settlement_data={"periodStart": "2024-01-01T00:00:00Z"},
                payout_frequency="bi-weekly",
            )
        )
        records = self.source.get_settlement_records()
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].status, SettlementStatus.ESTIMATED)
        self.assertEqual(records[0].total_amount, Decimal("1234.56"))
        self.assertEqual(records[0].raw["periodStart"], "2024-01-01T00:00:00Z")
        self.assertEqual(records[0].currency, "USD")

    def test_unreadable_database_raises_source_unavailable(self):
        source = DatabaseSource(memory_session_factory(create_tables=False))
        with self.assertRaises(SourceUnavailable):
            source.get_starting_balance()

    def test_inverted_range(self):
        with self.assertRaises(InvalidDateRange):
            self.source.get_events(self.end, self.start)


class TestStaticSource(unittest.TestCase):
    """Test cases for StaticSource."""

    def test_recurring_items_are_expanded_in_range(self):
        item = RecurringTransaction(
            id="payroll",
            name="Payroll",
            amount=Decimal("2000"),
            frequency=RecurringFrequency.BI_WEEKLY,
            start_date=date(2024, 1, 5),
            type=RecurringType.EXPENSE,
        )
        source = StaticSource(Decimal("10"), recurring=[item])
        result = source.get_events(date(2024, 1, 1), date(2024, 1, 31))
        self.assertEqual([event.date for event in result], [date(2024, 1, 5), date(2024, 1, 19)])

    def test_filters_and_orders_by_impact_date(self):
        events = [
            CashFlowEvent("b", EventType.OUTFLOW, Decimal("1"), date(2024, 1, 9)),
            CashFlowEvent("a", EventType.OUTFLOW, Decimal("1"), date(2024, 1, 1), balance_impact_date=date(2024, 1, 5)),
            CashFlowEvent("out", EventType.OUTFLOW, Decimal("1"), date(2024, 3, 1)),
            CashFlowEvent("undated", EventType.OUTFLOW, Decimal("1"), None),
        ]
        source = StaticSource(Decimal("10"), events)
        result = source.get_events(date(2024, 1, 1), date(2024, 1, 31))
        self.assertEqual([event.id for event in result], ["a", "b", "undated"])

    def test_inverted_range(self):
        with self.assertRaises(InvalidDateRange):
            StaticSource(Decimal("0")).get_events(date(2024, 1, 2), date(2024, 1, 1))


if __name__ == "__main__":
    unittest.main()
