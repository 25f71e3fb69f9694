from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from upi_reader.core.config import settings
from upi_reader.core.logging import (
    get_logger,
    log_event,
    log_exception,
    monotonic_ms,
    text_preview,
)
from upi_reader.modules.extraction.ai import (
    AIExtractionClient,
    AIExtractionError,
    get_ai_client,
)
from upi_reader.modules.extraction.normalizer import normalize_text
from upi_reader.modules.extraction.prompts import build_extraction_request
from upi_reader.modules.extraction.rules import extract_with_rules
from upi_reader.modules.extraction.schemas import ExtractionResult, as_list
from upi_reader.modules.extraction.validation import parse_ai_response

logger = get_logger(__name__)


class ExtractionStrategy(Protocol):
    method: str

    async def attempt(self, normalized_text: str, *, now: datetime) -> ExtractionResult | None:
        """Return a result, or None to hand over to the next strategy."""
        ...


@dataclass
class AIStrategy:
    client: AIExtractionClient
    timeout_seconds: float
    method: str = "ai"

    async def attempt(self, normalized_text: str, *, now: datetime) -> ExtractionResult | None:
        request = build_extraction_request(
            normalized_text,
            model=settings.openai_model,
            max_chars=int(settings.upi_ai_max_chars or 0) or 12000,
        )
        try:
            reply = await asyncio.wait_for(
                self.client.generate(request), timeout=self.timeout_seconds
            )
            return parse_ai_response(reply, now=now)
        except AIExtractionError as e:
            log_event(
                logger,
                "upi.extract.ai_failed",
                level=logging.WARNING,
                reason=e.reason,
                error=str(e),
            )
        except TimeoutError:
            log_event(
                logger,
                "upi.extract.ai_failed",
                level=logging.WARNING,
                reason="timeout",
                timeout_seconds=self.timeout_seconds,
            )
        except Exception:
            log_exception(logger, "upi.extract.ai_failed", reason="unexpected_error")
        return None


@dataclass
class RuleStrategy:
    method: str = "rules"

    async def attempt(self, normalized_text: str, *, now: datetime) -> ExtractionResult | None:
        return extract_with_rules(normalized_text, now=now)


async def extract_transactions(
    text: str | None,
    *,
    client: AIExtractionClient | None = None,
    timeout_seconds: float | None = None,
    now: datetime | None = None,
) -> ExtractionResult:
    """
    Extract UPI transactions from raw (possibly OCR'd) text.

    Tries the AI path when a client is given or configured, and falls back to rule-based
    extraction on any failure. Always returns a result; the empty-amount transaction means
    nothing usable was found.
    """
    start = time.monotonic()
    now = now or datetime.now(UTC)
    normalized = normalize_text(text or "")
    log_event(
        logger,
        "upi.extract.start",
        text_chars=len(normalized),
        preview=text_preview(normalized),
    )

    strategies: list[ExtractionStrategy] = []
    ai_client = client if client is not None else get_ai_client()
    if ai_client is not None:
        strategies.append(
            AIStrategy(
                client=ai_client,
                timeout_seconds=float(
                    timeout_seconds or settings.upi_ai_timeout_seconds or 30.0
                ),
            )
        )
    strategies.append(RuleStrategy())

    for strategy in strategies:
        result = await strategy.attempt(normalized, now=now)
        if result is None:
            continue
        _log_finish(result, method=strategy.method, start=start)
        return result

    # RuleStrategy never declines; kept for type-checkers.
    result = extract_with_rules(normalized, now=now)
    _log_finish(result, method="rules", start=start)
    return result


def extract_transactions_offline(
    text: str | None, *, now: datetime | None = None
) -> ExtractionResult:
    """Rule-based extraction only: no I/O, fully synchronous."""
    start = time.monotonic()
    result = extract_with_rules(normalize_text(text or ""), now=now)
    _log_finish(result, method="rules", start=start)
    return result


def _log_finish(result: ExtractionResult, *, method: str, start: float) -> None:
    transactions = as_list(result)
    found = [t for t in transactions if not t.is_empty]
    log_event(
        logger,
        "upi.extract.finish",
        method=method,
        count=len(found),
        duration_ms=monotonic_ms(start),
    )
