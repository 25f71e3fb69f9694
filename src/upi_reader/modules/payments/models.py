from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from upi_reader.core.db import Base, Timestamped, UUIDPrimaryKey


class Payment(UUIDPrimaryKey, Timestamped, Base):
    __tablename__ = "payments_payment"

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), index=True)
    paid_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    payment_method: Mapped[str] = mapped_column(String(20), default="upi")

    # Not unique: duplicates are resolved heuristically before insert.
    upi_transaction_id: Mapped[str] = mapped_column(String(30), default="", index=True)
    transaction_type: Mapped[str] = mapped_column(String(20), default="received")
    counterparty: Mapped[str] = mapped_column(String(200), default="")
    vpa: Mapped[str] = mapped_column(String(255), default="")
    source: Mapped[str] = mapped_column(String(50), default="")

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
