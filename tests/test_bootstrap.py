"""Tests for program-start wiring."""

from pathlib import Path

import pytest
from structlog.testing import capture_logs

from notification_dedup.adapters.config_storage import (
    InMemoryConfigStorage,
    JsonFileConfigStorage,
)
from notification_dedup.bootstrap import create_config_storage, initialize_deduplication
from notification_dedup.config.settings import Settings
from notification_dedup.domain.models import Notification


@pytest.fixture
def memory_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Settings:
    monkeypatch.chdir(tmp_path)
    return Settings(storage_backend="memory")


def test_create_config_storage_memory(memory_settings: Settings) -> None:
    assert isinstance(create_config_storage(memory_settings), InMemoryConfigStorage)


def test_create_config_storage_file(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.chdir(tmp_path)
    settings = Settings(storage_backend="file", config_storage_dir=str(tmp_path / "state"))

    assert isinstance(create_config_storage(settings), JsonFileConfigStorage)


def test_initialize_wires_shared_collaborators(memory_settings: Settings) -> None:
    with capture_logs() as logs:
        context = initialize_deduplication(memory_settings, configure_logging=False)

    assert context.settings is memory_settings
    assert context.comparator.engine is context.engine
    assert context.service.comparator is context.comparator
    assert context.service.manager is context.config_manager
    assert context.engine.cache.max_size == 1000
    assert any(entry["event"] == "deduplication_initialized" for entry in logs)


def test_initialize_uses_persisted_configuration(memory_settings: Settings) -> None:
    storage = InMemoryConfigStorage()
    first = initialize_deduplication(memory_settings, storage, configure_logging=False)
    first.config_manager.update_config({"cache": {"maxSize": 25, "enabled": False}})

    second = initialize_deduplication(memory_settings, storage, configure_logging=False)

    assert second.engine.cache.max_size == 25
    assert second.engine.cache.enabled is False


def test_initialize_with_file_storage(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.chdir(tmp_path)
    settings = Settings(storage_backend="file", config_storage_dir=str(tmp_path / "state"))

    context = initialize_deduplication(settings, configure_logging=False)
    context.config_manager.update_config({"categories": {"budget": {"maxDuplicates": 3}}})

    assert (tmp_path / "state" / "deduplication_config.json").exists()
    reloaded = initialize_deduplication(settings, configure_logging=False)
    assert reloaded.config_manager.get_category_config("budget").max_duplicates == 3


def test_initialized_service_detects_duplicates(memory_settings: Settings) -> None:
    context = initialize_deduplication(memory_settings, configure_logging=False)
    first = Notification(title="Fatura do cartão vence amanhã", category="reminder")
    second = Notification(title="Fatura do cartao vence amanha!", category="reminder")

    assert context.service.check(first).is_duplicate is False
    decision = context.service.check(second)

    assert decision.is_duplicate is True
    assert decision.existing_id == first.id
