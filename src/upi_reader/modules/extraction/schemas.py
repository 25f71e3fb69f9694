from __future__ import annotations

import enum
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer

MIN_AMOUNT = Decimal("10")
MAX_AMOUNT = Decimal("10000000")


class TransactionType(str, enum.Enum):
    RECEIVED = "received"
    PAID = "paid"
    PENDING = "pending"
    REFUND = "refund"


class ExtractedTransaction(BaseModel):
    """
    One UPI transaction pulled out of free text.

    Attribute names are pythonic; aliases are the JSON keys used on the wire and in the
    AI reply contract (`from`, `upi_id`, `ref_no`, ...).
    """

    model_config = ConfigDict(populate_by_name=True)

    transaction_type: TransactionType = TransactionType.RECEIVED
    amount: Decimal = Field(default=Decimal("0"), ge=0)
    counterparty: str = Field(default="", alias="from")
    vpa: str = Field(default="", alias="upi_id")
    reference_no: str = Field(default="", alias="ref_no")
    source: str = ""
    timestamp: str = ""
    raw_text: str = ""

    @field_serializer("amount", when_used="json")
    def _amount_as_number(self, value: Decimal) -> int | float:
        if value == value.to_integral_value():
            return int(value)
        return float(value)

    @property
    def is_empty(self) -> bool:
        return self.amount == 0


ExtractionResult = ExtractedTransaction | list[ExtractedTransaction]


def in_amount_range(amount: Decimal) -> bool:
    return MIN_AMOUNT <= amount <= MAX_AMOUNT


def format_timestamp(now: datetime | None = None) -> str:
    """Extraction-time default: UTC, truncated to the minute."""
    current = now or datetime.now(UTC)
    if current.tzinfo is not None:
        current = current.astimezone(UTC)
    return current.strftime("%Y-%m-%d %H:%M")


def empty_transaction(raw_text: str, *, now: datetime | None = None) -> ExtractedTransaction:
    return ExtractedTransaction(
        transaction_type=TransactionType.RECEIVED,
        amount=Decimal("0"),
        timestamp=format_timestamp(now),
        raw_text=raw_text,
    )


def as_list(result: ExtractionResult) -> list[ExtractedTransaction]:
    if isinstance(result, list):
        return list(result)
    return [result]


def collapse(
    transactions: list[ExtractedTransaction], *, raw_text: str, now: datetime | None = None
) -> ExtractionResult:
    if not transactions:
        return empty_transaction(raw_text, now=now)
    if len(transactions) == 1:
        return transactions[0]
    return transactions


def result_to_payload(result: ExtractionResult) -> dict[str, Any] | list[dict[str, Any]]:
    if isinstance(result, list):
        return [t.model_dump(mode="json", by_alias=True) for t in result]
    return result.model_dump(mode="json", by_alias=True)
