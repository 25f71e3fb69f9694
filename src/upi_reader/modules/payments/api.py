from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from upi_reader.core.db import db_session
from upi_reader.modules.payments.schemas import SaveTransactionIn, SaveTransactionOut
from upi_reader.modules.payments.service import save_upi_transaction

router = APIRouter(tags=["payments"])


@router.post("/upi/save-transaction", response_model=SaveTransactionOut)
def save_transaction(
    payload: SaveTransactionIn,
    session: Session = Depends(db_session),
) -> SaveTransactionOut:
    result = save_upi_transaction(
        session, transaction=payload.transaction, raw_text=payload.raw_text
    )
    return SaveTransactionOut(
        payment_id=result.payment_id,
        duplicate=result.duplicate,
        message=(
            "Duplicate transaction detected"
            if result.duplicate
            else "UPI transaction saved successfully"
        ),
    )
