"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from notification_dedup.adapters.config_storage import InMemoryConfigStorage
from notification_dedup.config.deduplication_config import DeduplicationConfigManager
from notification_dedup.domain.models import Notification, NotificationPriority
from notification_dedup.services.comparison_engine import ComparisonEngine
from notification_dedup.services.content_comparator import ContentComparator
from notification_dedup.services.deduplication_service import (
    NotificationDeduplicationService,
)

BASE_TIME = datetime(2025, 10, 10, 10, 0, tzinfo=UTC)

NotificationFactory = Callable[..., Notification]


class FrozenClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = BASE_TIME) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def storage() -> InMemoryConfigStorage:
    """Empty in-memory configuration storage."""
    return InMemoryConfigStorage()


@pytest.fixture
def config_manager(storage: InMemoryConfigStorage) -> DeduplicationConfigManager:
    """Manager loaded from empty storage (hardcoded defaults)."""
    return DeduplicationConfigManager.load(storage)


@pytest.fixture
def engine() -> ComparisonEngine:
    """Comparison engine with a fresh cache."""
    return ComparisonEngine()


@pytest.fixture
def comparator(engine: ComparisonEngine) -> ContentComparator:
    return ContentComparator(engine)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def service(
    config_manager: DeduplicationConfigManager,
    comparator: ContentComparator,
    clock: FrozenClock,
) -> NotificationDeduplicationService:
    """Deduplication service on default policy with a frozen clock."""
    return NotificationDeduplicationService(config_manager, comparator, clock=clock)


@pytest.fixture
def make_notification() -> NotificationFactory:
    """Factory for notifications created relative to BASE_TIME."""

    def _make(
        title: str = "Orçamento de Alimentação estourado",
        message: str = "Você gastou R$ 850,00 de R$ 800,00 em Alimentação",
        category: str = "budget",
        priority: NotificationPriority = NotificationPriority.NORMAL,
        seconds: float = 0,
        **kwargs: Any,
    ) -> Notification:
        return Notification(
            title=title,
            message=message,
            category=category,
            priority=priority,
            created_at=BASE_TIME + timedelta(seconds=seconds),
            **kwargs,
        )

    return _make
