from __future__ import annotations

import json
import re
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from upi_reader.modules.extraction.ai import AIContractError
from upi_reader.modules.extraction.rules import detect_source
from upi_reader.modules.extraction.schemas import (
    MAX_AMOUNT,
    MIN_AMOUNT,
    ExtractedTransaction,
    ExtractionResult,
    TransactionType,
    format_timestamp,
)

_VPA_RE = re.compile(r"^[A-Za-z0-9._-]+@[A-Za-z0-9.-]+$")
_REFERENCE_RE = re.compile(r"^[A-Z0-9]{8,30}$")


class AIReplyItem(BaseModel):
    """One object of the AI reply. Keys outside the reply contract are rejected."""

    model_config = ConfigDict(extra="forbid")

    transaction_type: TransactionType
    amount: Decimal
    counterparty: str = Field(default="", alias="from")
    upi_id: str = ""
    ref_no: str = ""
    source: str = ""
    timestamp: str = ""
    raw_text: str = ""

    @field_validator("transaction_type", mode="before")
    @classmethod
    def _lower_type(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_is_number(cls, v: Any) -> Any:
        # JSON numbers arrive as int or Decimal (parse_float=Decimal); strings are rejected.
        if isinstance(v, bool) or not isinstance(v, (int, Decimal)):
            raise ValueError("amount must be a JSON number")
        return v

    @field_validator("amount")
    @classmethod
    def _amount_in_range(cls, v: Decimal) -> Decimal:
        if not (MIN_AMOUNT <= v <= MAX_AMOUNT):
            raise ValueError(f"amount must be between {MIN_AMOUNT} and {MAX_AMOUNT}")
        return v

    @field_validator("ref_no", mode="before")
    @classmethod
    def _ref_no_to_str(cls, v: Any) -> Any:
        if isinstance(v, bool):
            return v
        if isinstance(v, int):
            return str(v)
        return "" if v is None else v

    @field_validator("counterparty", "upi_id", "source", "timestamp", "raw_text", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v


def parse_ai_response(
    response_text: str, *, now: datetime | None = None
) -> ExtractionResult:
    """
    Strictly parse the AI reply into an ExtractionResult.

    The whole body must be JSON: either one transaction object or a non-empty array of them.
    Raises AIContractError for anything else.
    """
    try:
        data = json.loads(response_text, parse_float=Decimal)
    except (TypeError, ValueError) as e:
        raise AIContractError("AI reply is not valid JSON") from e

    if isinstance(data, dict):
        return _to_transaction(data, now=now)
    if isinstance(data, list):
        if not data:
            raise AIContractError("AI reply is an empty array")
        if not all(isinstance(item, dict) for item in data):
            raise AIContractError("AI reply array must contain only objects")
        transactions = [_to_transaction(item, now=now) for item in data]
        return transactions[0] if len(transactions) == 1 else transactions
    raise AIContractError("AI reply must be a JSON object or array")


def _to_transaction(obj: dict[str, Any], *, now: datetime | None) -> ExtractedTransaction:
    try:
        item = AIReplyItem.model_validate(obj)
    except ValidationError as e:
        raise AIContractError(f"AI reply does not match the transaction contract: {e}") from e

    vpa = item.upi_id.strip()
    ref_no = item.ref_no.strip()
    return ExtractedTransaction(
        transaction_type=item.transaction_type,
        amount=item.amount,
        counterparty=item.counterparty.strip(),
        vpa=vpa if _VPA_RE.match(vpa) else "",
        reference_no=ref_no if _REFERENCE_RE.match(ref_no) else "",
        source=detect_source(item.source) or "",
        timestamp=item.timestamp.strip() or format_timestamp(now),
        raw_text=item.raw_text.strip(),
    )
