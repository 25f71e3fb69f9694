"""
Model import hook.

Importing this module ensures all SQLAlchemy models are registered on Base.metadata.
"""

from __future__ import annotations

from upi_reader.modules.payments.models import Payment  # noqa: F401
