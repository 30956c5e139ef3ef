"""Deduplication policy store.

Holds the per-category, per-priority, per-algorithm and per-field settings,
merges partial updates, validates bounds and persists the whole document as
JSON under a single storage key.

One manager is built at program start (``DeduplicationConfigManager.load``)
and handed to every consumer; there is no module-level instance.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Final, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from notification_dedup.config.logging_config import get_logger
from notification_dedup.domain.deduplication_constants import CONFIG_STORAGE_KEY
from notification_dedup.domain.exceptions import ConfigurationError, StorageError
from notification_dedup.domain.models import (
    AlgorithmConfig,
    CacheConfig,
    CategoryDeduplicationConfig,
    ContentTypeConfig,
    DeduplicationConfig,
    DeduplicationWindowConfig,
    GlobalDeduplicationConfig,
    NotificationCategory,
    NotificationPriority,
    PerformanceConfig,
    PriorityDeduplicationConfig,
    default_category_configs,
    default_priority_configs,
    enum_key,
)
from notification_dedup.domain.protocols import ConfigStorageProtocol

logger = get_logger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)
WindowT = TypeVar("WindowT", bound=DeduplicationWindowConfig)


# === Merge helpers ===


def _to_field_names(model: type[BaseModel], data: Mapping[str, Any]) -> dict[str, Any]:
    """Map camelCase or snake_case keys of ``data`` onto model field names."""
    by_alias = {
        field.alias: name for name, field in model.model_fields.items() if field.alias
    }
    result: dict[str, Any] = {}
    for key, value in data.items():
        if key in model.model_fields:
            result[key] = value
        elif key in by_alias:
            result[by_alias[key]] = value
        else:
            logger.warning(
                "config_unknown_key_ignored", section=model.__name__, key=key
            )
    return result


def _layer_record(base: RecordT, update: Any) -> RecordT:
    """Return ``base`` with the fields present in ``update`` replaced.

    Nested records receive nested mappings the same way; a record instance
    replaces the whole value.
    """
    model = type(base)
    if isinstance(update, model):
        return update
    if not isinstance(update, Mapping):
        raise ConfigurationError(
            f"Expected mapping for {model.__name__}, got {type(update).__name__}"
        )

    fields = _to_field_names(model, update)
    values = base.model_dump()
    for name, value in fields.items():
        current = getattr(base, name)
        if isinstance(current, BaseModel) and isinstance(value, Mapping):
            values[name] = _layer_record(current, value).model_dump()
        elif isinstance(value, BaseModel):
            values[name] = value.model_dump()
        else:
            values[name] = value
    return model.model_validate(values)


def _merge_window_map(
    base: Mapping[str, WindowT],
    update: Mapping[Any, Any],
    model: type[WindowT],
    fallback: Callable[[], WindowT],
) -> dict[str, WindowT]:
    """Key-wise merge of a category/priority map."""
    if not isinstance(update, Mapping):
        raise ConfigurationError(
            f"Expected mapping for {model.__name__} map, got {type(update).__name__}"
        )
    merged = dict(base)
    for raw_key, value in update.items():
        key = enum_key(raw_key)
        existing = merged.get(key) or fallback()
        if isinstance(value, DeduplicationWindowConfig):
            value = value.model_dump()
        merged[key] = _layer_record(model.model_validate(existing.model_dump()), value)
    return merged


def merge_categories(
    base: DeduplicationConfig,
    update: Mapping[Any, Any],
    fallback: Callable[[], CategoryDeduplicationConfig],
) -> dict[str, CategoryDeduplicationConfig]:
    """Merge the ``categories`` section key-wise."""
    return _merge_window_map(
        base.categories, update, CategoryDeduplicationConfig, fallback
    )


def merge_priorities(
    base: DeduplicationConfig,
    update: Mapping[Any, Any],
    fallback: Callable[[], PriorityDeduplicationConfig],
) -> dict[str, PriorityDeduplicationConfig]:
    """Merge the ``priorities`` section key-wise."""
    return _merge_window_map(
        base.priorities, update, PriorityDeduplicationConfig, fallback
    )


def merge_algorithms(base: DeduplicationConfig, update: Any) -> AlgorithmConfig:
    """Merge the ``algorithms`` section key-wise."""
    return _layer_record(base.algorithms, update)


def merge_cache(base: DeduplicationConfig, update: Any) -> CacheConfig:
    """Merge the ``cache`` section key-wise."""
    return _layer_record(base.cache, update)


def merge_performance(base: DeduplicationConfig, update: Any) -> PerformanceConfig:
    """Merge the ``performance`` section key-wise."""
    return _layer_record(base.performance, update)


def merge_content_types(base: DeduplicationConfig, update: Any) -> ContentTypeConfig:
    """Merge the ``contentTypes`` section key-wise."""
    return _layer_record(base.content_types, update)


def replace_global(update: Any) -> GlobalDeduplicationConfig:
    """Overwrite the ``global`` section; omitted fields take hardcoded defaults."""
    if isinstance(update, GlobalDeduplicationConfig):
        return update
    return _layer_record(GlobalDeduplicationConfig(), update)


_SECTION_ALIASES: Final[dict[str, str]] = {
    "global": "global_",
    "global_": "global_",
    "categories": "categories",
    "priorities": "priorities",
    "algorithms": "algorithms",
    "cache": "cache",
    "performance": "performance",
    "contentTypes": "content_types",
    "content_types": "content_types",
}


# === Validation ===


def _check_unit_interval(value: float, label: str, issues: list[str]) -> None:
    if not 0 <= value <= 1:
        issues.append(f"{label} must be within [0, 1] (got {value})")


def _check_window(config: DeduplicationWindowConfig, label: str, issues: list[str]) -> None:
    _check_unit_interval(
        config.similarity_threshold, f"{label}.similarityThreshold", issues
    )
    if config.time_window <= 0:
        issues.append(f"{label}.timeWindow must be positive (got {config.time_window})")
    if config.max_duplicates < 0:
        issues.append(
            f"{label}.maxDuplicates must not be negative (got {config.max_duplicates})"
        )


def collect_config_issues(config: DeduplicationConfig) -> list[str]:
    """List every out-of-range value in ``config``.

    Returns:
        List of issues (empty if valid)
    """
    issues: list[str] = []

    _check_unit_interval(
        config.global_.default_similarity_threshold,
        "global.defaultSimilarityThreshold",
        issues,
    )
    if config.global_.default_time_window <= 0:
        issues.append(
            "global.defaultTimeWindow must be positive "
            f"(got {config.global_.default_time_window})"
        )

    for name, category in config.categories.items():
        _check_window(category, f"categories.{name}", issues)

    for name, priority in config.priorities.items():
        _check_window(priority, f"priorities.{name}", issues)

    for method in ("jaro", "cosine", "levenshtein"):
        settings = getattr(config.algorithms, method)
        _check_unit_interval(settings.threshold, f"algorithms.{method}.threshold", issues)
        _check_unit_interval(settings.weight, f"algorithms.{method}.weight", issues)

    content = config.content_types
    _check_unit_interval(content.title.weight, "contentTypes.title.weight", issues)
    _check_unit_interval(content.message.weight, "contentTypes.message.weight", issues)
    _check_unit_interval(content.category.weight, "contentTypes.category.weight", issues)

    return issues


# === Manager ===


class DeduplicationConfigManager:
    """Single owner of the deduplication configuration.

    Every mutation is persisted immediately. Storage failures are logged and
    never propagated.
    """

    def __init__(
        self,
        storage: ConfigStorageProtocol,
        config: DeduplicationConfig | None = None,
        storage_key: str = CONFIG_STORAGE_KEY,
    ) -> None:
        """Initialize manager with an already loaded configuration.

        Prefer ``load`` at program start.

        Args:
            storage: Backend the configuration is persisted to
            config: Initial configuration (hardcoded defaults when omitted)
            storage_key: Key of the persisted document
        """
        self._storage = storage
        self._storage_key = storage_key
        self._config = config if config is not None else DeduplicationConfig()

    @classmethod
    def load(
        cls,
        storage: ConfigStorageProtocol,
        storage_key: str = CONFIG_STORAGE_KEY,
    ) -> DeduplicationConfigManager:
        """Load the persisted configuration, falling back to defaults.

        Absent, unreadable, malformed or out-of-range documents all yield the
        hardcoded defaults.
        """
        manager = cls(storage, storage_key=storage_key)
        loaded = manager._load_persisted()
        if loaded is not None:
            manager._config = loaded
        return manager

    def _load_persisted(self) -> DeduplicationConfig | None:
        try:
            saved = self._storage.get_item(self._storage_key)
        except StorageError as e:
            logger.warning("config_load_failed", key=self._storage_key, error=str(e))
            return None

        if not saved:
            logger.info("config_not_found_using_defaults", key=self._storage_key)
            return None

        try:
            parsed = DeduplicationConfig.model_validate_json(saved)
        except PydanticValidationError as e:
            logger.warning(
                "config_load_failed",
                key=self._storage_key,
                error=str(e),
            )
            return None

        # Older documents may lack categories or priorities added later
        config = parsed.model_copy(
            update={
                "categories": {**default_category_configs(), **parsed.categories},
                "priorities": {**default_priority_configs(), **parsed.priorities},
            }
        )

        if not self.validate_config(config):
            logger.warning("config_rejected_using_defaults", key=self._storage_key)
            return None

        logger.info("config_loaded", key=self._storage_key)
        return config

    def _save(self) -> None:
        try:
            self._storage.set_item(self._storage_key, self._config.to_json())
        except StorageError as e:
            logger.warning("config_save_failed", key=self._storage_key, error=str(e))

    # === Accessors ===

    def get_config(self) -> DeduplicationConfig:
        """Return a snapshot of the full configuration."""
        return self._config.model_copy(deep=True)

    def get_category_config(
        self, category: NotificationCategory | str
    ) -> CategoryDeduplicationConfig:
        """Return the category policy or a default synthesized from global values."""
        config = self._config.categories.get(enum_key(category))
        if config is None:
            return self.default_category_config()
        return config

    def get_priority_config(
        self, priority: NotificationPriority | str
    ) -> PriorityDeduplicationConfig:
        """Return the priority policy (global defaults for unknown priorities)."""
        config = self._config.priorities.get(enum_key(priority))
        if config is None:
            return PriorityDeduplicationConfig.model_validate(
                self.default_category_config().model_dump()
            )
        return config

    def get_global_config(self) -> GlobalDeduplicationConfig:
        return self._config.global_

    def get_algorithm_config(self) -> AlgorithmConfig:
        return self._config.algorithms

    def get_cache_config(self) -> CacheConfig:
        return self._config.cache

    def get_performance_config(self) -> PerformanceConfig:
        return self._config.performance

    def get_content_type_config(self) -> ContentTypeConfig:
        return self._config.content_types

    def default_category_config(self) -> CategoryDeduplicationConfig:
        """Category policy built from the current global settings."""
        global_config = self._config.global_
        return CategoryDeduplicationConfig(
            time_window=global_config.default_time_window,
            similarity_threshold=global_config.default_similarity_threshold,
            max_duplicates=global_config.default_max_duplicates,
            enabled=True,
        )

    # === Mutations ===

    def update_config(self, partial: Mapping[str, Any]) -> None:
        """Merge a partial configuration and persist it.

        Nested sections (categories, priorities, algorithms, cache,
        performance, contentTypes) merge key-wise; ``global`` is overwritten.
        Ranges are not validated here, call ``validate_config`` afterwards.

        Raises:
            ConfigurationError: If a section is not a mapping or a value has
                the wrong type (the current configuration is kept)

        Example:
            >>> manager.update_config({"categories": {"budget": {"similarityThreshold": 0.92}}})
        """
        base = self._config
        updates: dict[str, Any] = {}

        for raw_section, value in partial.items():
            section = _SECTION_ALIASES.get(raw_section)
            if section is None:
                logger.warning("config_unknown_section_ignored", section=raw_section)
                continue

            try:
                updates[section] = self._merge_section(base, section, value)
            except PydanticValidationError as e:
                raise ConfigurationError(
                    f"Invalid value in section '{raw_section}': {e}"
                ) from e

        self._config = base.model_copy(update=updates)
        self._save()
        logger.info("config_updated", sections=sorted(updates))

    def _merge_section(self, base: DeduplicationConfig, section: str, value: Any) -> Any:
        if section == "global_":
            return replace_global(value)
        if section == "categories":
            return merge_categories(base, value, self.default_category_config)
        if section == "priorities":
            return merge_priorities(
                base,
                value,
                lambda: PriorityDeduplicationConfig.model_validate(
                    self.default_category_config().model_dump()
                ),
            )
        if section == "algorithms":
            return merge_algorithms(base, value)
        if section == "cache":
            return merge_cache(base, value)
        if section == "performance":
            return merge_performance(base, value)
        return merge_content_types(base, value)

    def reset_to_defaults(self) -> None:
        """Restore the hardcoded defaults and persist them."""
        self._config = DeduplicationConfig()
        self._save()
        logger.info("config_reset_to_defaults")

    def reset_category_config(self, category: NotificationCategory | str) -> None:
        """Replace one category policy with the synthesized default and persist."""
        key = enum_key(category)
        categories = dict(self._config.categories)
        categories[key] = self.default_category_config()
        self._config = self._config.model_copy(update={"categories": categories})
        self._save()
        logger.info("category_config_reset", category=key)

    # === Validation ===

    def validate_config(self, config: DeduplicationConfig | None = None) -> bool:
        """Check thresholds/weights are within [0, 1] and windows are positive.

        Never raises; invalid configurations are logged and reported as False.

        Args:
            config: Configuration to check (the current one when omitted)
        """
        target = config if config is not None else self._config
        issues = collect_config_issues(target)
        if issues:
            logger.error("config_validation_failed", issues=issues)
            return False
        return True
