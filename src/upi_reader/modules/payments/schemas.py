from __future__ import annotations

import uuid

from pydantic import BaseModel

from upi_reader.modules.extraction.schemas import ExtractedTransaction


class SaveTransactionIn(BaseModel):
    transaction: ExtractedTransaction
    raw_text: str | None = None


class SaveTransactionOut(BaseModel):
    success: bool = True
    payment_id: uuid.UUID
    duplicate: bool
    message: str
