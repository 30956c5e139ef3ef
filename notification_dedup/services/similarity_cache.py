"""Bounded in-memory cache for similarity verdicts."""

from __future__ import annotations

import hashlib
import time
from collections.abc import Callable
from dataclasses import dataclass

from notification_dedup.config.logging_config import get_logger
from notification_dedup.domain.deduplication_constants import (
    CACHE_MAX_AGE_MS,
    CACHE_MAX_SIZE,
)
from notification_dedup.domain.models import (
    CacheConfig,
    CacheStats,
    SimilarityMethod,
    SimilarityVerdict,
)

__all__ = ["SimilarityCache", "verdict_cache_key"]

logger = get_logger(__name__)

Clock = Callable[[], float]


def verdict_cache_key(
    method: SimilarityMethod, threshold: float, scored_a: str, scored_b: str
) -> str:
    """Generate the cache key of a comparison.

    The key covers the scored strings themselves, so pairs of equal length
    never share a verdict.

    Returns:
        SHA1 hex digest
    """
    key_material = "\x1f".join(
        (method.value, repr(float(threshold)), scored_a, scored_b)
    )
    return hashlib.sha1(key_material.encode("utf-8")).hexdigest()


@dataclass
class _CacheEntry:
    verdict: SimilarityVerdict
    stored_at: float


class SimilarityCache:
    """Capacity-gated verdict cache.

    Once ``max_size`` entries are stored new verdicts are no longer inserted
    until ``cleanup`` expires old entries or ``clear`` empties the cache.
    Not safe for concurrent writers.
    """

    def __init__(
        self,
        max_size: int = CACHE_MAX_SIZE,
        max_age_ms: int = CACHE_MAX_AGE_MS,
        enabled: bool = True,
        clock: Clock = time.monotonic,
    ) -> None:
        """Initialize cache.

        Args:
            max_size: Maximum number of stored verdicts
            max_age_ms: Lifetime of an entry before ``cleanup`` drops it
            enabled: When False every lookup misses and nothing is stored
            clock: Seconds-returning clock (injectable for tests)
        """
        self.max_size = max_size
        self.max_age_ms = max_age_ms
        self.enabled = enabled
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._full_logged = False

    @classmethod
    def from_config(cls, config: CacheConfig, clock: Clock = time.monotonic) -> SimilarityCache:
        """Build a cache from the persisted cache settings."""
        return cls(
            max_size=config.max_size,
            max_age_ms=config.max_age,
            enabled=config.enabled,
            clock=clock,
        )

    def apply_config(self, config: CacheConfig) -> None:
        """Adopt updated cache settings without dropping stored verdicts.

        A lower ``max_size`` only stops new inserts until the cache drains.
        """
        if config.max_size != self.max_size:
            self._full_logged = False
        self.max_size = config.max_size
        self.max_age_ms = config.max_age
        self.enabled = config.enabled

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> SimilarityVerdict | None:
        """Return the cached verdict for ``key`` if present."""
        if not self.enabled:
            return None

        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        self._hits += 1
        return entry.verdict

    def put(self, key: str, verdict: SimilarityVerdict) -> bool:
        """Store a verdict unless the cache is disabled or full.

        Returns:
            True if the verdict was stored
        """
        if not self.enabled:
            return False

        if key not in self._entries and len(self._entries) >= self.max_size:
            if not self._full_logged:
                logger.debug("similarity_cache_full", max_size=self.max_size)
                self._full_logged = True
            return False

        self._entries[key] = _CacheEntry(verdict=verdict, stored_at=self._clock())
        return True

    def cleanup(self) -> int:
        """Drop entries older than ``max_age_ms``.

        Returns:
            Number of removed entries
        """
        cutoff = self._clock() - self.max_age_ms / 1000
        expired = [key for key, entry in self._entries.items() if entry.stored_at < cutoff]
        for key in expired:
            del self._entries[key]

        if expired:
            self._full_logged = False
            logger.debug(
                "similarity_cache_cleanup",
                removed=len(expired),
                remaining=len(self._entries),
            )
        return len(expired)

    def clear(self) -> None:
        """Remove all entries and reset counters."""
        self._entries.clear()
        self._hits = 0
        self._misses = 0
        self._full_logged = False

    def stats(self) -> CacheStats:
        """Return size and hit/miss counters."""
        return CacheStats(
            size=len(self._entries),
            max_size=self.max_size,
            hits=self._hits,
            misses=self._misses,
        )
