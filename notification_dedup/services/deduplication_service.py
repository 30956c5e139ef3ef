"""Stateful deduplication service.

Keeps the notifications recently shown so callers only pass the candidate,
supports manual blocking of exact content and periodic cleanup of history
and of the similarity cache.
"""

from __future__ import annotations

import hashlib
from collections import deque
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from enum import Enum

from notification_dedup.config.deduplication_config import DeduplicationConfigManager
from notification_dedup.config.logging_config import get_logger
from notification_dedup.domain.models import (
    DeduplicationDecision,
    Notification,
    NotificationCategory,
    ServiceStats,
    enum_key,
)
from notification_dedup.services import deduplicator
from notification_dedup.services.content_comparator import ContentComparator
from notification_dedup.services.text_normalizer import normalize

logger = get_logger(__name__)

DEFAULT_CATEGORY = NotificationCategory.SYSTEM.value

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def content_fingerprint(title: str, message: str, category: str | Enum | None) -> str:
    """Generate fingerprint for exact-content matching.

    Based on: normalized title + normalized message + category. A missing
    category falls back to the default notification category.

    Returns:
        SHA1 hex digest
    """
    category_key = enum_key(category) if category is not None else DEFAULT_CATEGORY
    key_material = f"{normalize(title)}||{normalize(message)}||{category_key}"
    return hashlib.sha1(key_material.encode("utf-8")).hexdigest()


class NotificationDeduplicationService:
    """Checks candidates against the notifications shown recently."""

    def __init__(
        self,
        manager: DeduplicationConfigManager,
        comparator: ContentComparator,
        clock: Clock = _utcnow,
    ) -> None:
        """Initialize service.

        Args:
            manager: Deduplication policy store
            comparator: Weighted content comparator
            clock: Source of the current UTC time (injectable for tests)
        """
        self.manager = manager
        self.comparator = comparator
        self._clock = clock
        self._history: deque[Notification] = deque()
        self._blocked: dict[str, datetime] = {}
        self._total_checks = 0
        self._duplicates = 0
        self._blocked_count = 0

    def _apply_cache_limits(self) -> None:
        """Apply the current cache settings to history and the verdict cache."""
        cache_config = self.manager.get_cache_config()
        self.comparator.engine.cache.apply_config(cache_config)
        while len(self._history) > cache_config.max_size:
            self._history.popleft()

    def _remember(self, notification: Notification) -> None:
        self._history.append(notification)
        self._apply_cache_limits()

    @property
    def history(self) -> list[Notification]:
        """Recently recorded notifications, oldest first."""
        return list(self._history)

    def check(self, notification: Notification, record: bool = True) -> DeduplicationDecision:
        """Check a candidate and remember it when it is allowed through.

        Args:
            notification: Candidate notification
            record: Add the candidate to history unless it is blocked

        Returns:
            Deduplication decision
        """
        self._total_checks += 1
        self._apply_cache_limits()

        fingerprint = content_fingerprint(
            notification.title, notification.message, notification.category
        )
        if fingerprint in self._blocked:
            self._duplicates += 1
            self._blocked_count += 1
            logger.info(
                "notification_manually_blocked",
                notification_id=notification.id,
                category=notification.category,
            )
            return DeduplicationDecision(
                is_duplicate=True,
                should_block=True,
                similarity=1.0,
                reason="manually_blocked",
            )

        decision = deduplicator.check_notification_duplicate(
            notification, self._history, self.manager, self.comparator
        )

        if decision.is_duplicate:
            self._duplicates += 1
        if decision.should_block:
            self._blocked_count += 1
        elif record:
            self._remember(notification)

        return decision

    def record(self, notification: Notification) -> None:
        """Add a notification shown through another path to history."""
        self._remember(notification)

    def block_content(
        self, title: str, message: str, category: str | Enum | None = None
    ) -> None:
        """Force suppression of notifications with this exact (normalized) content."""
        fingerprint = content_fingerprint(title, message, category)
        self._blocked[fingerprint] = self._clock()
        logger.info("content_blocked", fingerprint=fingerprint)

    def unblock_content(
        self, title: str, message: str, category: str | Enum | None = None
    ) -> bool:
        """Lift a manual block.

        Returns:
            True if the content was blocked
        """
        fingerprint = content_fingerprint(title, message, category)
        removed = self._blocked.pop(fingerprint, None) is not None
        if removed:
            logger.info("content_unblocked", fingerprint=fingerprint)
        return removed

    def cleanup(self, now: datetime | None = None) -> int:
        """Drop history entries and manual blocks older than the cache max age.

        Also expires old verdicts from the similarity cache.

        Returns:
            Number of removed history entries and blocks
        """
        self._apply_cache_limits()
        current = now or self._clock()
        cutoff = current - timedelta(milliseconds=self.manager.get_cache_config().max_age)

        kept = [item for item in self._history if item.created_at >= cutoff]
        removed = len(self._history) - len(kept)
        self._history.clear()
        self._history.extend(kept)

        expired_blocks = [key for key, at in self._blocked.items() if at < cutoff]
        for key in expired_blocks:
            del self._blocked[key]

        cache_removed = self.comparator.engine.cache.cleanup()

        logger.debug(
            "deduplication_cleanup",
            history_removed=removed,
            blocks_removed=len(expired_blocks),
            cache_removed=cache_removed,
        )
        return removed + len(expired_blocks)

    def clear(self) -> None:
        """Forget all history, blocks, counters and cached verdicts."""
        self._history.clear()
        self._blocked.clear()
        self._total_checks = 0
        self._duplicates = 0
        self._blocked_count = 0
        self.comparator.engine.cache.clear()

    def stats(self) -> ServiceStats:
        """Return check counters and cache statistics."""
        return ServiceStats(
            total_checks=self._total_checks,
            duplicates=self._duplicates,
            blocked=self._blocked_count,
            history_size=len(self._history),
            cache=self.comparator.engine.cache.stats(),
        )
