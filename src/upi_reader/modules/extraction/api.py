from __future__ import annotations

from typing import Any

from fastapi import APIRouter, File, HTTPException, UploadFile, status
from pydantic import BaseModel

from upi_reader.core.logging import get_logger, log_event
from upi_reader.modules.extraction.schemas import result_to_payload
from upi_reader.modules.extraction.service import extract_transactions

router = APIRouter(tags=["extraction"])
logger = get_logger(__name__)

_SUCCESS_MESSAGE = "UPI information extracted successfully"


class ProcessTextIn(BaseModel):
    text: str | None = None


@router.post("/upi/process-text")
async def process_text(payload: ProcessTextIn) -> dict[str, Any]:
    text = (payload.text or "").strip()
    if not text:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Text is required")
    result = await extract_transactions(text)
    return {"success": True, "data": result_to_payload(result), "message": _SUCCESS_MESSAGE}


@router.post("/upi/process-file")
async def process_file(file: UploadFile = File(...)) -> dict[str, Any]:
    body = await file.read()
    log_event(
        logger,
        "upload.received",
        filename=file.filename or "upload.txt",
        content_type=file.content_type,
        byte_size=len(body),
    )
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="File must be UTF-8 text"
        ) from e
    if not text.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File is empty")
    result = await extract_transactions(text)
    return {"success": True, "data": result_to_payload(result), "message": _SUCCESS_MESSAGE}
