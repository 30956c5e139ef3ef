"""Correlation identifiers for deduplication runs."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any
from uuid import uuid4

from notification_dedup.config.logging_config import bind_context, unbind_context

CORRELATION_ID_KEY = "correlation_id"


@contextmanager
def correlation_scope(
    existing_id: str | None = None, **extra_context: Any
) -> Iterator[str]:
    """Bind a correlation id (and optional extra fields) while the block runs.

    Every log entry emitted inside the block carries the bound values, so a
    batch of duplicate checks can be followed across modules.
    """

    correlation_id = existing_id or uuid4().hex
    bound = {CORRELATION_ID_KEY: correlation_id, **extra_context}
    bind_context(**bound)
    try:
        yield correlation_id
    finally:
        unbind_context(*bound)


__all__ = ["CORRELATION_ID_KEY", "correlation_scope"]
