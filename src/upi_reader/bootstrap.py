from __future__ import annotations

from upi_reader.core.config import settings
from upi_reader.core.db import create_schema
from upi_reader.core.logging import get_logger, log_event
from upi_reader.modules.extraction.ai import upi_ai_available

logger = get_logger(__name__)


def bootstrap() -> None:
    if settings.environment in {"dev", "test"} and str(settings.database_url).startswith("sqlite"):
        create_schema()

    log_event(
        logger,
        "app.bootstrap",
        environment=settings.environment,
        ai_extraction=upi_ai_available(),
        ai_model=settings.openai_model if upi_ai_available() else None,
    )
