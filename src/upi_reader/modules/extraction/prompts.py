from __future__ import annotations

from typing import Any

from upi_reader.modules.extraction.schemas import TransactionType

REPLY_FIELDS: tuple[str, ...] = (
    "transaction_type",
    "amount",
    "from",
    "upi_id",
    "ref_no",
    "source",
    "timestamp",
    "raw_text",
)

_SYSTEM_PROMPT = (
    "You are an expert financial data extractor for UPI payment messages.\n"
    "Only use information explicitly present in the text. Never guess.\n"
    "Return JSON only: no explanations, no markdown, no code fences."
)

_EXAMPLE_SINGLE = (
    "{\n"
    '  "transaction_type": "received",\n'
    '  "amount": 850,\n'
    '  "from": "Rahul",\n'
    '  "upi_id": "rahul@okaxis",\n'
    '  "ref_no": "4098324098234",\n'
    '  "source": "Google Pay",\n'
    '  "timestamp": "2025-01-05 14:22",\n'
    '  "raw_text": "the part of the input this transaction came from"\n'
    "}"
)


def build_extraction_request(
    normalized_text: str, *, model: str, max_chars: int = 12000
) -> dict[str, Any]:
    """
    Render the chat-completions request for the primary (AI) extraction path.

    The reply contract is a single JSON object, or a JSON array of objects, with exactly the
    keys in REPLY_FIELDS.
    """
    text = _truncate_text(normalized_text, max_chars=max_chars)
    allowed_types = "|".join(t.value for t in TransactionType)
    user_prompt = (
        "Parse the following UPI payment text and extract every transaction in it.\n\n"
        "Text to analyze:\n"
        f'"""\n{text}\n"""\n\n'
        "For each transaction extract:\n"
        f"- transaction_type: one of {allowed_types}\n"
        "- amount: a JSON number in rupees, without commas or currency symbols\n"
        "- from: sender or receiver name, or an empty string\n"
        "- upi_id: the UPI ID / VPA (name@bank), or an empty string\n"
        "- ref_no: the transaction / reference ID, or an empty string\n"
        "- source: the app (Google Pay, PhonePe, Paytm, BHIM, Amazon Pay, WhatsApp Pay), "
        "or an empty string\n"
        '- timestamp: "YYYY-MM-DD HH:MM" if a date/time is present, otherwise an empty string\n'
        "- raw_text: the part of the input text describing this transaction\n\n"
        "Rules:\n"
        "- Ignore promotional text, balances, greetings and other noise.\n"
        "- If there is one transaction return a single JSON object; if there are several "
        "return a JSON array of objects, in the order they appear.\n"
        "- Use exactly these keys: " + ", ".join(REPLY_FIELDS) + ".\n\n"
        "Example of a single transaction:\n" + _EXAMPLE_SINGLE + "\n\n"
        "Return ONLY the JSON."
    )
    return {
        "model": model,
        "temperature": 0,
        "messages": [
            {"role": "system", "content": _SYSTEM_PROMPT},
            {"role": "user", "content": user_prompt},
        ],
    }


def _truncate_text(text: str, *, max_chars: int) -> str:
    t = (text or "").replace("\u202f", " ").replace("\xa0", " ").strip()
    if not t:
        return ""
    if max_chars <= 0:
        return t
    if len(t) <= max_chars:
        return t
    return t[: max_chars - 20].rstrip() + "\n\n[TRUNCATED]"
