from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from upi_reader.core.db import SessionLocal
from upi_reader.modules.extraction.schemas import ExtractedTransaction, TransactionType
from upi_reader.modules.payments.models import Payment
from upi_reader.modules.payments.service import (
    check_duplicate,
    duplicate_window,
    parse_transaction_timestamp,
    save_upi_transaction,
)

STORED_AT = datetime(2025, 1, 5, 12, 0, tzinfo=UTC)


@dataclass
class _Stored:
    id: uuid.UUID
    amount: Decimal
    reference_no: str
    paid_at: datetime


class _ListLookup:
    def __init__(self, rows: list[_Stored]) -> None:
        self.rows = rows

    def find_match(self, *, amount, reference_no, start, end):
        for row in self.rows:
            if (
                row.amount == amount
                and row.reference_no == reference_no
                and start <= row.paid_at <= end
            ):
                return row.id
        return None


def _transaction(timestamp: str, **overrides) -> ExtractedTransaction:
    data = {
        "transaction_type": TransactionType.RECEIVED,
        "amount": Decimal("1200"),
        "counterparty": "Rahul",
        "vpa": "rahul@okaxis",
        "reference_no": "REF40983240",
        "source": "Google Pay",
        "timestamp": timestamp,
        "raw_text": "received ₹1,200.00 from Rahul rahul@okaxis txn REF40983240 via Google Pay",
    }
    data.update(overrides)
    return ExtractedTransaction(**data)


def test_duplicate_window_is_one_day_each_side():
    start, end = duplicate_window(STORED_AT)
    assert start == STORED_AT - timedelta(days=1)
    assert end == STORED_AT + timedelta(days=1)


@pytest.mark.parametrize(
    ("offset", "expected"),
    [
        (timedelta(0), True),
        (timedelta(hours=12), True),
        (timedelta(days=1), True),
        (-timedelta(days=1), True),
        (timedelta(days=1, seconds=1), False),
        (-timedelta(days=1, seconds=1), False),
    ],
)
def test_check_duplicate_window_bounds(offset: timedelta, expected: bool):
    stored = _Stored(uuid.uuid4(), Decimal("1200"), "REF40983240", STORED_AT)
    check = check_duplicate(
        amount=Decimal("1200"),
        reference_no="REF40983240",
        candidate_at=STORED_AT + offset,
        lookup=_ListLookup([stored]),
    )
    assert check.duplicate is expected
    assert check.payment_id == (stored.id if expected else None)


def test_check_duplicate_requires_same_amount_and_reference():
    stored = _Stored(uuid.uuid4(), Decimal("1200"), "REF40983240", STORED_AT)
    lookup = _ListLookup([stored])

    assert not check_duplicate(
        amount=Decimal("1201"),
        reference_no="REF40983240",
        candidate_at=STORED_AT,
        lookup=lookup,
    ).duplicate
    assert not check_duplicate(
        amount=Decimal("1200"),
        reference_no="REF40983241",
        candidate_at=STORED_AT,
        lookup=lookup,
    ).duplicate


def test_parse_transaction_timestamp_formats(now):
    assert parse_transaction_timestamp("2025-01-05 14:22") == datetime(
        2025, 1, 5, 14, 22, tzinfo=UTC
    )
    assert parse_transaction_timestamp("2025-01-05T14:22:00Z") == datetime(
        2025, 1, 5, 14, 22, tzinfo=UTC
    )
    assert parse_transaction_timestamp("2025-01-05T19:52:00+05:30") == datetime(
        2025, 1, 5, 14, 22, tzinfo=UTC
    )
    assert parse_transaction_timestamp("Jan 5th, afternoon", now=now) == now
    assert parse_transaction_timestamp("", now=now) == now


def test_save_twice_twelve_hours_apart_reports_duplicate():
    with SessionLocal() as session:
        first = save_upi_transaction(
            session, transaction=_transaction("2025-01-05 08:00"), raw_text="screenshot one"
        )
        second = save_upi_transaction(
            session, transaction=_transaction("2025-01-05 20:00"), raw_text="screenshot two"
        )

        assert first.duplicate is False
        assert second.duplicate is True
        assert second.payment_id == first.payment_id
        assert session.scalar(select(func.count()).select_from(Payment)) == 1


def test_save_outside_window_creates_new_payment():
    with SessionLocal() as session:
        first = save_upi_transaction(session, transaction=_transaction("2025-01-05 12:00"))
        exact = save_upi_transaction(session, transaction=_transaction("2025-01-06 12:00"))
        later = save_upi_transaction(session, transaction=_transaction("2025-01-06 12:00:01"))

        assert exact.duplicate is True
        assert exact.payment_id == first.payment_id
        assert later.duplicate is False
        assert later.payment_id != first.payment_id


def test_save_stores_payment_with_provenance_note():
    with SessionLocal() as session:
        result = save_upi_transaction(session, transaction=_transaction("2025-01-05 14:22"))
        payment = session.scalar(select(Payment).where(Payment.id == result.payment_id))

        assert payment is not None
        assert payment.amount == Decimal("1200")
        assert payment.payment_method == "upi"
        assert payment.upi_transaction_id == "REF40983240"
        assert payment.transaction_type == "received"
        assert payment.counterparty == "Rahul"
        assert payment.vpa == "rahul@okaxis"
        assert payment.notes == (
            "Auto-generated from UPI Google Pay - "
            "received ₹1,200.00 from Rahul rahul@okaxis txn REF"
        )


def test_save_note_defaults_source_label():
    with SessionLocal() as session:
        result = save_upi_transaction(
            session,
            transaction=_transaction("2025-01-05 14:22", source="", reference_no="TXN99887766"),
            raw_text="paid ₹1,200 to Amit",
        )
        payment = session.scalar(select(Payment).where(Payment.id == result.payment_id))

        assert payment is not None
        assert payment.notes == "Auto-generated from UPI reader - paid ₹1,200 to Amit"
