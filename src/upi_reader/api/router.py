from __future__ import annotations

from fastapi import APIRouter

from upi_reader.modules.extraction.api import router as extraction_router
from upi_reader.modules.payments.api import router as payments_router

router = APIRouter()

router.include_router(extraction_router, prefix="/api")
router.include_router(payments_router, prefix="/api")


@router.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}
