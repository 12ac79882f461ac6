"""Tests for CSV snapshot ingestion."""

import os
import tempfile
import unittest
from datetime import date
from decimal import Decimal

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from runway.db.models import Base
from runway.etl.etl import load_events_csv, load_settlements_csv, run_etl
from runway.events.models import EventType, SettlementStatus
from runway.sources.sources import DatabaseSource

EVENTS_CSV = """id,type,amount,date,description,credit_card_id,balance_impact_date
e1,inflow,100.50,2024-01-02,Sale,,
e2,outflow,40,2024-01-03,Rent,,2024-01-04
,outflow,abc,2024-01-05,bad amount,,
e4,bogus,10,2024-01-05,bad type,,
e5,credit-payment,25,2024-01-06,Card payment,c1,
"""

SETTLEMENTS_CSV = """id,account_id,status,payout_date,total_amount,period_start,period_end,payout_frequency
s1,acct-1,estimated,2024-01-15,1500.00,2024-01-01,,bi-weekly
s2,acct-1,confirmed,2024-01-05,-20.00,2023-12-18,2024-01-03,
s3,acct-1,unknown,2024-01-05,10,,,
"""


class TestEtl(unittest.TestCase):
    """Test cases for the ETL module."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.events_path = self._write("events.csv", EVENTS_CSV)
        self.settlements_path = self._write("settlements.csv", SETTLEMENTS_CSV)

        engine = create_engine(
            "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
        )
        Base.metadata.create_all(engine)
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def tearDown(self):
        self.tmpdir.cleanup()

    def _write(self, name, content):
        path = os.path.join(self.tmpdir.name, name)
        with open(path, "w") as f:
            f.write(content)
        return path

    def test_load_events_csv_skips_malformed_rows(self):
        events, skipped = load_events_csv(self.events_path)
        self.assertEqual(skipped, 2)
        self.assertEqual([event.id for event in events], ["e1", "e2", "e5"])
        self.assertEqual(events[0].amount, Decimal("100.50"))
        self.assertEqual(events[1].impact_date, date(2024, 1, 4))
        self.assertEqual(events[2].type, EventType.CREDIT_PAYMENT)
        self.assertEqual(events[2].credit_card_id, "c1")

    def test_load_events_csv_requires_columns(self):
        path = self._write("broken.csv", "id,amount\ne1,10\n")
        with self.assertRaises(ValueError):
            load_events_csv(path)

    def test_load_events_csv_header_only(self):
        path = self._write("empty.csv", "id,type,amount,date\n")
        self.assertEqual(load_events_csv(path), ([], 0))

    def test_load_settlements_csv(self):
        records, skipped = load_settlements_csv(self.settlements_path)
        self.assertEqual(skipped, 1)
        self.assertEqual([record.id for record in records], ["s1", "s2"])
        self.assertEqual(records[0].raw, {"periodStart": "2024-01-01"})
        self.assertEqual(records[0].payout_frequency, "bi-weekly")
        self.assertEqual(records[1].raw, {"periodStart": "2023-12-18", "periodEnd": "2024-01-03"})
        self.assertEqual(records[1].status, SettlementStatus.CONFIRMED)
        self.assertEqual(records[1].total_amount, Decimal("-20.00"))

    def test_run_etl_writes_rows_readable_by_source(self):
        written = run_etl(self.events_path, self.settlements_path, session_factory=self.session_factory)
        self.assertEqual(written, (3, 2))

        # re-running updates rows in place
        run_etl(self.events_path, self.settlements_path, session_factory=self.session_factory)

        source = DatabaseSource(self.session_factory)
        events = source.get_events(date(2024, 1, 1), date(2024, 1, 31))
        self.assertEqual([event.id for event in events], ["e1", "e2", "e5"])
        records = source.get_settlement_records()
        self.assertEqual(sorted(record.id for record in records), ["s1", "s2"])

    def test_run_etl_without_inputs(self):
        self.assertEqual(run_etl(None, None, session_factory=self.session_factory), (0, 0))


if __name__ == "__main__":
    unittest.main()
