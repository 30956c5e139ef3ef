"""Notification deduplication service.

Rules:
1. Global, category or priority policy disabled: never a duplicate
2. Only history inside the effective time window is considered
3. A history item is a duplicate when the weighted content comparison
   reaches the category threshold (and the category matches when required)
4. The candidate is blocked once it would exceed the allowed copies:
   ``duplicate_count + 1 > max_duplicates``

The similarity threshold always comes from the category. Priority only
narrows the window and can widen the allowance: shortest window, largest
allowance.
"""

from collections.abc import Iterable
from datetime import timedelta

from notification_dedup.config.deduplication_config import DeduplicationConfigManager
from notification_dedup.config.logging_config import get_logger
from notification_dedup.domain.models import (
    CategoryDeduplicationConfig,
    ContentComparison,
    DeduplicationDecision,
    EffectivePolicy,
    Notification,
    PriorityDeduplicationConfig,
)
from notification_dedup.services.content_comparator import ContentComparator

logger = get_logger(__name__)


def resolve_policy(
    category_config: CategoryDeduplicationConfig,
    priority_config: PriorityDeduplicationConfig,
) -> EffectivePolicy:
    """Combine category and priority policies.

    The threshold is the category's; the priority threshold is not used here.

    Example:
        >>> policy = resolve_policy(transaction_config, urgent_config)
        >>> policy.similarity_threshold
        0.8
    """
    return EffectivePolicy(
        enabled=category_config.enabled and priority_config.enabled,
        time_window=min(category_config.time_window, priority_config.time_window),
        similarity_threshold=category_config.similarity_threshold,
        max_duplicates=max(
            category_config.max_duplicates, priority_config.max_duplicates
        ),
    )


def in_window(
    candidate: Notification, historical: Notification, time_window_ms: int
) -> bool:
    """Check the historical item was created within the window before the candidate.

    Items stamped after the candidate (clock skew) count as inside the window.
    """
    age = candidate.created_at - historical.created_at
    return age <= timedelta(milliseconds=time_window_ms)


def find_duplicates(
    candidate: Notification,
    history: Iterable[Notification],
    policy: EffectivePolicy,
    manager: DeduplicationConfigManager,
    comparator: ContentComparator,
) -> list[tuple[Notification, ContentComparison]]:
    """Find history items the candidate duplicates, most similar first.

    Args:
        candidate: Notification about to be shown
        history: Previously shown notifications
        policy: Resolved policy for the candidate (threshold from the category)
        manager: Configuration source for field and algorithm weights
        comparator: Weighted content comparator

    Returns:
        (notification, comparison) pairs sorted by descending similarity
    """
    content_types = manager.get_content_type_config()
    algorithms = manager.get_algorithm_config()

    matches: list[tuple[Notification, ContentComparison]] = []
    for historical in history:
        if historical.id == candidate.id:
            continue
        if not in_window(candidate, historical, policy.time_window):
            continue

        comparison = comparator.compare(
            candidate,
            historical,
            threshold=policy.similarity_threshold,
            content_types=content_types,
            algorithms=algorithms,
        )
        if comparison.is_duplicate:
            matches.append((historical, comparison))

    matches.sort(key=lambda match: match[1].similarity, reverse=True)
    return matches


def check_notification_duplicate(
    candidate: Notification,
    history: Iterable[Notification],
    manager: DeduplicationConfigManager,
    comparator: ContentComparator,
) -> DeduplicationDecision:
    """Decide whether a candidate duplicates recently shown notifications.

    Args:
        candidate: Notification about to be shown
        history: Recently shown notifications
        manager: Deduplication policy store
        comparator: Weighted content comparator

    Returns:
        Decision with duplicate flag, blocking flag and best match

    Example:
        >>> decision = check_notification_duplicate(new, recent, manager, comparator)
        >>> decision.should_block
        False
    """
    if not manager.get_global_config().enabled:
        return DeduplicationDecision(
            is_duplicate=False, should_block=False, reason="globally_disabled"
        )

    policy = resolve_policy(
        manager.get_category_config(candidate.category),
        manager.get_priority_config(candidate.priority),
    )
    if not policy.enabled:
        return DeduplicationDecision(
            is_duplicate=False, should_block=False, reason="policy_disabled"
        )

    matches = find_duplicates(candidate, history, policy, manager, comparator)
    if not matches:
        return DeduplicationDecision(
            is_duplicate=False, should_block=False, reason="unique"
        )

    best, comparison = matches[0]
    duplicate_count = len(matches)
    should_block = duplicate_count + 1 > policy.max_duplicates

    logger.debug(
        "duplicate_notification_detected",
        candidate_id=candidate.id,
        existing_id=best.id,
        category=candidate.category,
        priority=candidate.priority.value,
        similarity=round(comparison.similarity, 4),
        duplicate_count=duplicate_count,
        should_block=should_block,
    )

    return DeduplicationDecision(
        is_duplicate=True,
        should_block=should_block,
        similarity=comparison.similarity,
        existing_id=best.id,
        duplicate_count=duplicate_count,
        reason="blocked" if should_block else "duplicate",
    )
