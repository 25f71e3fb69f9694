from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from upi_reader.core.logging import get_logger, log_event
from upi_reader.modules.extraction.schemas import ExtractedTransaction
from upi_reader.modules.payments.models import Payment

logger = get_logger(__name__)

DUPLICATE_WINDOW = timedelta(days=1)
NOTE_TEXT_CHARS = 50


class PaymentLookup(Protocol):
    def find_match(
        self,
        *,
        amount: Decimal,
        reference_no: str,
        start: datetime,
        end: datetime,
    ) -> uuid.UUID | None: ...


@dataclass(frozen=True)
class DuplicateCheck:
    duplicate: bool
    payment_id: uuid.UUID | None = None


@dataclass(frozen=True)
class SaveResult:
    payment_id: uuid.UUID
    duplicate: bool


class SqlPaymentLookup:
    def __init__(self, session: Session) -> None:
        self.session = session

    def find_match(
        self,
        *,
        amount: Decimal,
        reference_no: str,
        start: datetime,
        end: datetime,
    ) -> uuid.UUID | None:
        return self.session.scalar(
            select(Payment.id)
            .where(
                Payment.amount == amount,
                Payment.upi_transaction_id == reference_no,
                Payment.paid_at >= _as_utc(start),
                Payment.paid_at <= _as_utc(end),
            )
            .order_by(Payment.created_at)
            .limit(1)
        )


def duplicate_window(candidate_at: datetime) -> tuple[datetime, datetime]:
    return candidate_at - DUPLICATE_WINDOW, candidate_at + DUPLICATE_WINDOW


def check_duplicate(
    *,
    amount: Decimal,
    reference_no: str,
    candidate_at: datetime,
    lookup: PaymentLookup,
) -> DuplicateCheck:
    """
    Same amount, same reference number, and a stored date within one day either side
    (inclusive) counts as the same transaction.
    """
    start, end = duplicate_window(candidate_at)
    payment_id = lookup.find_match(
        amount=amount, reference_no=reference_no, start=start, end=end
    )
    if payment_id is None:
        return DuplicateCheck(duplicate=False)
    return DuplicateCheck(duplicate=True, payment_id=payment_id)


def parse_transaction_timestamp(value: str | None, *, now: datetime | None = None) -> datetime:
    """Best-effort parse of an extracted timestamp; falls back to `now` (UTC)."""
    s = (value or "").strip()
    if s:
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            return _as_utc(datetime.fromisoformat(s))
        except ValueError:
            pass
    return _as_utc(now or datetime.now(UTC))


def save_upi_transaction(
    session: Session,
    *,
    transaction: ExtractedTransaction,
    raw_text: str | None = None,
    now: datetime | None = None,
) -> SaveResult:
    paid_at = parse_transaction_timestamp(transaction.timestamp, now=now)
    check = check_duplicate(
        amount=transaction.amount,
        reference_no=transaction.reference_no,
        candidate_at=paid_at,
        lookup=SqlPaymentLookup(session),
    )
    if check.duplicate and check.payment_id is not None:
        log_event(
            logger,
            "payment.duplicate",
            payment_id=str(check.payment_id),
            amount=str(transaction.amount),
            reference_no=transaction.reference_no or None,
        )
        return SaveResult(payment_id=check.payment_id, duplicate=True)

    payment = Payment(
        amount=transaction.amount,
        paid_at=paid_at,
        payment_method="upi",
        upi_transaction_id=transaction.reference_no,
        transaction_type=transaction.transaction_type.value,
        counterparty=transaction.counterparty,
        vpa=transaction.vpa,
        source=transaction.source,
        notes=_provenance_note(transaction, raw_text=raw_text),
    )
    session.add(payment)
    session.commit()
    session.refresh(payment)
    log_event(
        logger,
        "payment.created",
        payment_id=str(payment.id),
        amount=str(transaction.amount),
        reference_no=transaction.reference_no or None,
        source=transaction.source or None,
    )
    return SaveResult(payment_id=payment.id, duplicate=False)


def _provenance_note(transaction: ExtractedTransaction, *, raw_text: str | None) -> str:
    text = raw_text if raw_text is not None else transaction.raw_text
    return f"Auto-generated from UPI {transaction.source or 'reader'} - {text[:NOTE_TEXT_CHARS]}"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
