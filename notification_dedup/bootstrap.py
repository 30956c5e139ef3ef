"""Program-start wiring of the deduplication engine.

Builds every collaborator once, in dependency order, and returns them in a
context object that callers pass around explicitly.
"""

from dataclasses import dataclass

from notification_dedup.adapters.config_storage import (
    InMemoryConfigStorage,
    JsonFileConfigStorage,
)
from notification_dedup.config.deduplication_config import DeduplicationConfigManager
from notification_dedup.config.logging_config import get_logger, setup_logging
from notification_dedup.config.settings import Settings, get_settings
from notification_dedup.domain.protocols import ConfigStorageProtocol
from notification_dedup.services.comparison_engine import ComparisonEngine
from notification_dedup.services.content_comparator import ContentComparator
from notification_dedup.services.deduplication_service import (
    NotificationDeduplicationService,
)
from notification_dedup.services.similarity_cache import SimilarityCache

logger = get_logger(__name__)


@dataclass(frozen=True)
class DeduplicationContext:
    """Collaborators shared by every consumer of the engine."""

    settings: Settings
    config_manager: DeduplicationConfigManager
    engine: ComparisonEngine
    comparator: ContentComparator
    service: NotificationDeduplicationService


def create_config_storage(settings: Settings) -> ConfigStorageProtocol:
    """Create the configuration storage backend selected in settings."""
    if settings.storage_backend == "memory":
        return InMemoryConfigStorage()
    return JsonFileConfigStorage(settings.config_storage_dir)


def initialize_deduplication(
    settings: Settings | None = None,
    storage: ConfigStorageProtocol | None = None,
    configure_logging: bool = True,
) -> DeduplicationContext:
    """Load configuration and build the engine, comparator and service.

    Args:
        settings: Application settings (global settings when omitted)
        storage: Storage override (backend from settings when omitted)
        configure_logging: Configure structlog from settings first

    Returns:
        Fully wired deduplication context

    Example:
        >>> context = initialize_deduplication()
        >>> context.engine.quick_check("Fatura vence amanha", "Fatura vence amanhã")
        True
    """
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(log_level=settings.log_level, json_logs=settings.log_json)

    config_storage = storage if storage is not None else create_config_storage(settings)
    manager = DeduplicationConfigManager.load(
        config_storage, storage_key=settings.config_storage_key
    )

    engine = ComparisonEngine(SimilarityCache.from_config(manager.get_cache_config()))
    comparator = ContentComparator(engine)
    service = NotificationDeduplicationService(manager, comparator)

    logger.info(
        "deduplication_initialized",
        storage_backend=settings.storage_backend,
        categories=sorted(manager.get_config().categories),
        cache_max_size=manager.get_cache_config().max_size,
    )

    return DeduplicationContext(
        settings=settings,
        config_manager=manager,
        engine=engine,
        comparator=comparator,
        service=service,
    )
