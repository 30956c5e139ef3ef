"""Tests for the stateful deduplication service."""

from datetime import timedelta

from structlog.testing import capture_logs

from notification_dedup.config.deduplication_config import DeduplicationConfigManager
from notification_dedup.domain.models import Notification, NotificationCategory
from notification_dedup.services.content_comparator import ContentComparator
from notification_dedup.services.deduplication_service import (
    NotificationDeduplicationService,
    content_fingerprint,
)
from tests.conftest import BASE_TIME, FrozenClock, NotificationFactory

TITLE = "Orçamento de Alimentação estourado"
MESSAGE = "Você gastou R$ 850,00 de R$ 800,00 em Alimentação"


def test_content_fingerprint_is_normalized_sha1() -> None:
    key = content_fingerprint(TITLE, MESSAGE, "budget")

    assert len(key) == 40  # SHA1 hex digest length
    assert key == content_fingerprint(
        "orcamento de alimentacao estourado!", MESSAGE.upper(), NotificationCategory.BUDGET
    )


def test_content_fingerprint_depends_on_category() -> None:
    assert content_fingerprint(TITLE, MESSAGE, "budget") != content_fingerprint(
        TITLE, MESSAGE, "goal"
    )
    assert content_fingerprint(TITLE, MESSAGE, None) == content_fingerprint(
        TITLE, MESSAGE, "system"
    )


def test_check_records_allowed_notifications(
    service: NotificationDeduplicationService, make_notification: NotificationFactory
) -> None:
    first = make_notification(seconds=-60)
    second = make_notification(seconds=-30)
    third = make_notification()

    decisions = [service.check(item) for item in (first, second, third)]

    assert [d.reason for d in decisions] == ["unique", "duplicate", "blocked"]
    assert decisions[1].existing_id == first.id
    assert [item.id for item in service.history] == [first.id, second.id]


def test_check_without_recording(
    service: NotificationDeduplicationService, make_notification: NotificationFactory
) -> None:
    decision = service.check(make_notification(), record=False)

    assert decision.is_duplicate is False
    assert service.history == []


def test_record_adds_to_history(
    service: NotificationDeduplicationService, make_notification: NotificationFactory
) -> None:
    shown = make_notification(seconds=-10)
    service.record(shown)

    decision = service.check(make_notification())

    assert decision.is_duplicate is True
    assert decision.existing_id == shown.id


def test_history_is_bounded_by_cache_size(
    config_manager: DeduplicationConfigManager,
    comparator: ContentComparator,
    clock: FrozenClock,
    make_notification: NotificationFactory,
) -> None:
    config_manager.update_config({"cache": {"maxSize": 2}})
    service = NotificationDeduplicationService(config_manager, comparator, clock=clock)

    for index in range(3):
        service.record(make_notification(title=f"Lembrete {index}", category="reminder"))

    assert [item.title for item in service.history] == ["Lembrete 1", "Lembrete 2"]


def test_history_limit_follows_config_updates(
    service: NotificationDeduplicationService, make_notification: NotificationFactory
) -> None:
    for index in range(3):
        service.record(make_notification(title=f"Lembrete {index}", category="reminder"))

    service.manager.update_config({"cache": {"maxSize": 1, "maxAge": 60_000}})
    service.record(make_notification(title="Lembrete 3", category="reminder"))

    assert [item.title for item in service.history] == ["Lembrete 3"]
    assert service.comparator.engine.cache.max_size == 1
    assert service.comparator.engine.cache.max_age_ms == 60_000


def test_check_applies_cache_settings(
    service: NotificationDeduplicationService, make_notification: NotificationFactory
) -> None:
    service.manager.update_config({"cache": {"enabled": False}})

    service.check(make_notification())

    assert service.comparator.engine.cache.enabled is False
    assert len(service.comparator.engine.cache) == 0


def test_block_content_forces_suppression(
    service: NotificationDeduplicationService, make_notification: NotificationFactory
) -> None:
    service.block_content(TITLE, MESSAGE, NotificationCategory.BUDGET)

    with capture_logs() as logs:
        decision = service.check(make_notification(title="orcamento de alimentacao ESTOURADO"))

    assert decision.is_duplicate is True
    assert decision.should_block is True
    assert decision.similarity == 1.0
    assert decision.reason == "manually_blocked"
    assert service.history == []
    assert any(entry["event"] == "notification_manually_blocked" for entry in logs)


def test_block_content_is_category_specific(
    service: NotificationDeduplicationService, make_notification: NotificationFactory
) -> None:
    service.block_content(TITLE, MESSAGE, "goal")

    decision = service.check(make_notification(category="budget"))

    assert decision.reason == "unique"


def test_block_content_without_category_matches_default_category(
    service: NotificationDeduplicationService,
) -> None:
    service.block_content("Fatura vence amanha", "Pague hoje")

    decision = service.check(Notification(title="Fatura vence amanha", message="Pague hoje"))

    assert decision.reason == "manually_blocked"
    assert service.unblock_content("Fatura vence amanha", "Pague hoje") is True


def test_unblock_content(
    service: NotificationDeduplicationService, make_notification: NotificationFactory
) -> None:
    service.block_content(TITLE, MESSAGE, "budget")

    assert service.unblock_content(TITLE, MESSAGE, "budget") is True
    assert service.unblock_content(TITLE, MESSAGE, "budget") is False
    assert service.check(make_notification()).reason == "unique"


def test_cleanup_drops_old_history(
    service: NotificationDeduplicationService, make_notification: NotificationFactory
) -> None:
    service.record(make_notification(seconds=-3600))
    recent = make_notification(seconds=-60)
    service.record(recent)

    removed = service.cleanup()

    assert removed == 1
    assert [item.id for item in service.history] == [recent.id]


def test_cleanup_expires_blocks(
    service: NotificationDeduplicationService,
    clock: FrozenClock,
    make_notification: NotificationFactory,
) -> None:
    service.block_content(TITLE, MESSAGE, "budget")

    assert service.cleanup() == 0

    clock.advance(minutes=31)
    assert service.cleanup() == 1
    assert service.check(make_notification(seconds=31 * 60)).reason == "unique"


def test_cleanup_with_explicit_time(
    service: NotificationDeduplicationService, make_notification: NotificationFactory
) -> None:
    service.record(make_notification())

    assert service.cleanup(now=BASE_TIME + timedelta(minutes=10)) == 0
    assert service.cleanup(now=BASE_TIME + timedelta(hours=1)) == 1


def test_stats_and_clear(
    service: NotificationDeduplicationService, make_notification: NotificationFactory
) -> None:
    for seconds in (-60, -30, 0):
        service.check(make_notification(seconds=seconds))

    stats = service.stats()
    assert stats.total_checks == 3
    assert stats.duplicates == 2
    assert stats.blocked == 1
    assert stats.history_size == 2
    assert stats.cache is not None
    assert stats.cache.size > 0

    service.clear()

    stats = service.stats()
    assert stats.total_checks == 0
    assert stats.duplicates == 0
    assert stats.blocked == 0
    assert stats.history_size == 0
    assert stats.cache is not None
    assert stats.cache.size == 0
