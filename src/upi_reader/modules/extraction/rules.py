"""
Deterministic, rule-based UPI extraction.

Used whenever the AI path is unavailable or fails. The text is cut into candidate blocks at
transaction keywords, and every field is pulled out of a block by an independent extractor.
Nothing here raises: fields that cannot be found are left empty.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation

from upi_reader.modules.extraction.schemas import (
    ExtractedTransaction,
    ExtractionResult,
    TransactionType,
    collapse,
    format_timestamp,
    in_amount_range,
)

MIN_BLOCK_CHARS = 10

_BLOCK_START_RE = re.compile(r"(?=transaction|payment|paid|received|debited|credited)", re.I)

_AMOUNT_RE = re.compile(
    r"(?:₹|rs\.?|inr)\s*[0-9,]+\.?[0-9]*|[0-9,]+\.?[0-9]*\s*(?:rs\.?|inr|rupees)", re.I
)
_NUMBER_PREFIX_RE = re.compile(r"[0-9]+(?:\.[0-9]*)?|\.[0-9]+")

_VPA_RE = re.compile(r"(?<![A-Za-z0-9._-])[A-Za-z0-9._-]+@[A-Za-z0-9.-]+")
_REFERENCE_RE = re.compile(r"[A-Z0-9]{8,30}")

_COUNTERPARTY_LABEL_RE = re.compile(
    r"(?:from|to|recipient|payer|sender|receiver)[:\s]*([A-Za-z]+)", re.I
)
# Fallback: the letters-and-spaces run in front of a transaction verb.
_NAME_RUN_RE = re.compile(r"[A-Za-z\s]+")
_NAME_VERB_RE = re.compile(r"paid|received|credited|debited", re.I)

# Checked in order; the first keyword family present decides the type.
_TYPE_KEYWORDS: tuple[tuple[tuple[str, ...], TransactionType], ...] = (
    (("paid", "sent", "debited"), TransactionType.PAID),
    (("refund",), TransactionType.REFUND),
    (("pending",), TransactionType.PENDING),
)

KNOWN_SOURCES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"google\s*pay", re.I), "Google Pay"),
    (re.compile(r"phone\s*pe", re.I), "PhonePe"),
    (re.compile(r"paytm", re.I), "Paytm"),
    (re.compile(r"bhim", re.I), "BHIM"),
    (re.compile(r"amazon\s*pay", re.I), "Amazon Pay"),
    (re.compile(r"whatsapp\s*pay", re.I), "WhatsApp Pay"),
)


def split_blocks(text: str) -> list[str]:
    blocks: list[str] = []
    for piece in _BLOCK_START_RE.split(text or ""):
        block = piece.strip()
        if len(block) < MIN_BLOCK_CHARS:
            continue
        blocks.append(block)
    return blocks


def extract_amount(block: str) -> Decimal | None:
    """Largest currency-adjacent number within the accepted range, if any."""
    best: Decimal | None = None
    for m in _AMOUNT_RE.finditer(block):
        value = _parse_number(re.sub(r"[^0-9.]", "", m.group(0)))
        if value is None or not in_amount_range(value):
            continue
        if best is None or value > best:
            best = value
    return best


def extract_vpa(block: str) -> str | None:
    m = _VPA_RE.search(block)
    return m.group(0) if m else None


def extract_reference_no(block: str) -> str | None:
    m = _REFERENCE_RE.search(block)
    return m.group(0) if m else None


def extract_counterparty(block: str) -> str | None:
    m = _COUNTERPARTY_LABEL_RE.search(block)
    if m:
        return m.group(1).strip()
    name = _name_before_verb(block)
    return name.strip() if name is not None else None


def classify_transaction_type(block: str) -> TransactionType:
    lowered = block.lower()
    for keywords, tx_type in _TYPE_KEYWORDS:
        if any(k in lowered for k in keywords):
            return tx_type
    return TransactionType.RECEIVED


def detect_source(text: str) -> str | None:
    for pattern, label in KNOWN_SOURCES:
        if pattern.search(text or ""):
            return label
    return None


def extract_block(block: str, *, now: datetime | None = None) -> ExtractedTransaction | None:
    amount = extract_amount(block)
    if amount is None:
        return None
    return ExtractedTransaction(
        transaction_type=classify_transaction_type(block),
        amount=amount,
        counterparty=extract_counterparty(block) or "",
        vpa=extract_vpa(block) or "",
        reference_no=extract_reference_no(block) or "",
        source=detect_source(block) or "",
        timestamp=format_timestamp(now),
        raw_text=block,
    )


def extract_with_rules(normalized_text: str, *, now: datetime | None = None) -> ExtractionResult:
    text = normalized_text or ""
    now = now or datetime.now(UTC)
    transactions: list[ExtractedTransaction] = []
    for block in split_blocks(text):
        tx = extract_block(block, now=now)
        if tx is not None:
            transactions.append(tx)
    return collapse(transactions, raw_text=text, now=now)


def _parse_number(s: str) -> Decimal | None:
    m = _NUMBER_PREFIX_RE.match(s)
    if not m:
        return None
    try:
        return Decimal(m.group(0))
    except InvalidOperation:
        return None


def _name_before_verb(block: str) -> str | None:
    """
    Text of the first letters-and-spaces run that is followed by a transaction verb.

    The run is cut at the last verb inside it that does not open the run.
    """
    for run in _NAME_RUN_RE.finditer(block):
        text = run.group(0)
        cut = None
        for verb in _NAME_VERB_RE.finditer(text):
            if verb.start() > 0:
                cut = verb.start()
        if cut is not None:
            return text[:cut]
    return None
