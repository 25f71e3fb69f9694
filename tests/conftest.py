from __future__ import annotations

import os
from datetime import UTC, datetime

import pytest

# Set env before any upi_reader imports (settings/engine are created at import time).
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite:///./.upi_reader_test.db")
os.environ["UPI_AI_ENABLED"] = "false"
os.environ.pop("OPENAI_API_KEY", None)

FIXED_NOW = datetime(2025, 1, 5, 14, 22, 37, tzinfo=UTC)


@pytest.fixture(autouse=True)
def _reset_db() -> None:
    from upi_reader.core.db import create_schema, drop_schema

    drop_schema()
    create_schema()

    yield


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW
