"""Deduplicate notifications use case.

Runs a batch of candidate notifications through the deduplication service.
"""

from collections.abc import Sequence
from time import perf_counter

from notification_dedup.config.logging_config import get_logger
from notification_dedup.domain.models import DeduplicationSummary, Notification
from notification_dedup.observability.tracing import correlation_scope
from notification_dedup.services.deduplication_service import (
    NotificationDeduplicationService,
)

logger = get_logger(__name__)


def deduplicate_notifications_use_case(
    candidates: Sequence[Notification],
    service: NotificationDeduplicationService,
    *,
    correlation_id: str | None = None,
) -> DeduplicationSummary:
    """Check candidates in order and report what may be shown.

    1. Candidates are processed in the given order
    2. Each candidate is checked against the service history
    3. Candidates that are not blocked join the history, so later candidates
       of the same batch are compared with them
    4. Return counts and per-candidate decisions

    Args:
        candidates: Notifications waiting to be shown
        service: Stateful deduplication service
        correlation_id: Optional id propagated to log entries

    Returns:
        DeduplicationSummary with counts and decisions (same order as input)

    Example:
        >>> summary = deduplicate_notifications_use_case(pending, service)
        >>> summary.blocked
        1
    """
    with correlation_scope(correlation_id) as bound_correlation_id:
        stage_start = perf_counter()
        performance = service.manager.get_performance_config()

        logger.info(
            "notification_deduplication_started",
            correlation_id=bound_correlation_id,
            candidate_count=len(candidates),
            history_size=len(service.history),
            batch_processing=performance.batch_processing,
            max_concurrent_checks=performance.max_concurrent_checks,
        )

        decisions = [service.check(candidate) for candidate in candidates]

        summary = DeduplicationSummary(
            total=len(decisions),
            accepted=sum(1 for decision in decisions if not decision.should_block),
            duplicates=sum(1 for decision in decisions if decision.is_duplicate),
            blocked=sum(1 for decision in decisions if decision.should_block),
            decisions=decisions,
        )

        logger.info(
            "notification_deduplication_finished",
            correlation_id=bound_correlation_id,
            duration_seconds=perf_counter() - stage_start,
            total=summary.total,
            accepted=summary.accepted,
            duplicates=summary.duplicates,
            blocked=summary.blocked,
        )
        return summary
