"""Domain models for notification deduplication.

All models use Pydantic v2 for validation and serialization. Configuration
records serialize with camelCase aliases (``timeWindow``,
``similarityThreshold`` ...) so persisted documents keep the key layout the
finance app has always written.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from notification_dedup.domain.deduplication_constants import (
    ALGORITHM_DEFAULTS,
    CACHE_CLEANUP_INTERVAL_MS,
    CACHE_MAX_AGE_MS,
    CACHE_MAX_SIZE,
    CATEGORY_DEFAULTS,
    CATEGORY_WEIGHT,
    DEFAULT_MAX_DUPLICATES,
    DEFAULT_SIMILARITY_THRESHOLD,
    DEFAULT_TIME_WINDOW_MS,
    MESSAGE_WEIGHT,
    PERFORMANCE_DEBOUNCE_MS,
    PERFORMANCE_MAX_CONCURRENT_CHECKS,
    PRIORITY_DEFAULTS,
    TITLE_WEIGHT,
)


class SimilarityMethod(str, Enum):
    """Similarity algorithm identifier."""

    JARO = "jaro"
    COSINE = "cosine"
    LEVENSHTEIN = "levenshtein"


class NotificationCategory(str, Enum):
    """Notification categories known to the finance app."""

    BUDGET = "budget"
    GOAL = "goal"
    TRANSACTION = "transaction"
    REMINDER = "reminder"
    REPORT = "report"
    SYSTEM = "system"
    INSIGHT = "insight"
    ACHIEVEMENT = "achievement"


class NotificationPriority(str, Enum):
    """Notification priority level."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


def enum_key(value: str | Enum) -> str:
    """Return the plain string key for an enum member or string.

    ``str`` enums hash by member name, so they must be unwrapped before
    being used to index maps keyed by plain strings.
    """
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


class CamelModel(BaseModel):
    """Base for configuration records persisted with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


# === Similarity ===


class SimilarityVerdict(BaseModel):
    """Result of comparing two strings with one algorithm."""

    model_config = ConfigDict(frozen=True)

    similarity: float = Field(..., description="Similarity score 0.0-1.0")
    is_duplicate: bool = Field(..., description="similarity >= threshold")
    method: SimilarityMethod
    threshold: float
    normalized_a: str = Field(..., description="First input as scored")
    normalized_b: str = Field(..., description="Second input as scored")


# === Configuration records ===


class DeduplicationWindowConfig(CamelModel):
    """Time window, threshold and duplicate allowance for one policy key."""

    time_window: int = Field(
        default=DEFAULT_TIME_WINDOW_MS, description="Suppression window (ms)"
    )
    similarity_threshold: float = Field(
        default=DEFAULT_SIMILARITY_THRESHOLD, description="Threshold 0.0-1.0"
    )
    max_duplicates: int = Field(
        default=DEFAULT_MAX_DUPLICATES,
        description="Copies allowed inside the window before blocking",
    )
    enabled: bool = True


class CategoryDeduplicationConfig(DeduplicationWindowConfig):
    """Deduplication policy for a notification category."""


class PriorityDeduplicationConfig(DeduplicationWindowConfig):
    """Deduplication policy for a notification priority."""


class GlobalDeduplicationConfig(CamelModel):
    """Global switches and the defaults used for unknown categories."""

    enabled: bool = True
    default_time_window: int = DEFAULT_TIME_WINDOW_MS
    default_similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    default_max_duplicates: int = DEFAULT_MAX_DUPLICATES


class AlgorithmSettings(CamelModel):
    """Threshold and blending weight of one similarity algorithm."""

    threshold: float
    weight: float


def _algorithm_default(method: SimilarityMethod) -> AlgorithmSettings:
    threshold, weight = ALGORITHM_DEFAULTS[method.value]
    return AlgorithmSettings(threshold=threshold, weight=weight)


class AlgorithmConfig(CamelModel):
    """Per-algorithm settings plus a global enable flag."""

    jaro: AlgorithmSettings = Field(
        default_factory=lambda: _algorithm_default(SimilarityMethod.JARO)
    )
    cosine: AlgorithmSettings = Field(
        default_factory=lambda: _algorithm_default(SimilarityMethod.COSINE)
    )
    levenshtein: AlgorithmSettings = Field(
        default_factory=lambda: _algorithm_default(SimilarityMethod.LEVENSHTEIN)
    )
    enabled: bool = True

    def settings_for(self, method: SimilarityMethod) -> AlgorithmSettings:
        """Return settings of a single algorithm."""
        settings: AlgorithmSettings = getattr(self, method.value)
        return settings


class CacheConfig(CamelModel):
    """Similarity cache settings."""

    max_size: int = CACHE_MAX_SIZE
    cleanup_interval: int = Field(
        default=CACHE_CLEANUP_INTERVAL_MS, description="Cleanup interval (ms)"
    )
    max_age: int = Field(default=CACHE_MAX_AGE_MS, description="Entry lifetime (ms)")
    enabled: bool = True


class PerformanceConfig(CamelModel):
    """Advisory throttling values for callers batching duplicate checks."""

    debounce_time: int = Field(
        default=PERFORMANCE_DEBOUNCE_MS, description="Debounce for rapid calls (ms)"
    )
    max_concurrent_checks: int = PERFORMANCE_MAX_CONCURRENT_CHECKS
    batch_processing: bool = True
    enabled: bool = True


class TextFieldConfig(CamelModel):
    """Weight and preprocessing flags for a text field."""

    weight: float
    normalize: bool = True
    strip_html: bool = True


class CategoryFieldConfig(CamelModel):
    """Weight of the category field; ``required`` gates on exact match."""

    weight: float = CATEGORY_WEIGHT
    required: bool = True


class ContentTypeConfig(CamelModel):
    """Per-field comparison settings."""

    title: TextFieldConfig = Field(
        default_factory=lambda: TextFieldConfig(weight=TITLE_WEIGHT)
    )
    message: TextFieldConfig = Field(
        default_factory=lambda: TextFieldConfig(weight=MESSAGE_WEIGHT)
    )
    category: CategoryFieldConfig = Field(default_factory=CategoryFieldConfig)


def default_category_configs() -> dict[str, CategoryDeduplicationConfig]:
    """Build the hardcoded per-category policy map."""
    return {
        name: CategoryDeduplicationConfig(
            time_window=window, similarity_threshold=threshold, max_duplicates=max_dup
        )
        for name, (window, threshold, max_dup) in CATEGORY_DEFAULTS.items()
    }


def default_priority_configs() -> dict[str, PriorityDeduplicationConfig]:
    """Build the hardcoded per-priority policy map."""
    return {
        name: PriorityDeduplicationConfig(
            time_window=window, similarity_threshold=threshold, max_duplicates=max_dup
        )
        for name, (window, threshold, max_dup) in PRIORITY_DEFAULTS.items()
    }


class DeduplicationConfig(CamelModel):
    """Aggregate root of every deduplication setting.

    ``DeduplicationConfig()`` yields the hardcoded defaults.
    """

    global_: GlobalDeduplicationConfig = Field(
        default_factory=GlobalDeduplicationConfig, alias="global"
    )
    categories: dict[str, CategoryDeduplicationConfig] = Field(
        default_factory=default_category_configs
    )
    priorities: dict[str, PriorityDeduplicationConfig] = Field(
        default_factory=default_priority_configs
    )
    algorithms: AlgorithmConfig = Field(default_factory=AlgorithmConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    performance: PerformanceConfig = Field(default_factory=PerformanceConfig)
    content_types: ContentTypeConfig = Field(default_factory=ContentTypeConfig)

    def to_json(self) -> str:
        """Serialize with persisted (camelCase) key names."""
        return self.model_dump_json(by_alias=True)


# === Notifications and decisions ===


class Notification(BaseModel):
    """A notification candidate or an already shown notification."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    title: str
    message: str = ""
    category: str = NotificationCategory.SYSTEM.value
    priority: NotificationPriority = NotificationPriority.NORMAL
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("category", mode="before")
    @classmethod
    def _unwrap_category(cls, value: Any) -> Any:
        if isinstance(value, Enum):
            return enum_key(value)
        return value

    @field_validator("created_at")
    @classmethod
    def _ensure_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class ContentComparison(BaseModel):
    """Weighted comparison of two notifications."""

    model_config = ConfigDict(frozen=True)

    similarity: float
    is_duplicate: bool
    threshold: float
    title_similarity: float
    message_similarity: float
    category_match: bool


class EffectivePolicy(BaseModel):
    """Policy resolved from a category and a priority configuration."""

    model_config = ConfigDict(frozen=True)

    enabled: bool
    time_window: int = Field(..., description="Window in milliseconds")
    similarity_threshold: float
    max_duplicates: int


class DeduplicationDecision(BaseModel):
    """Final verdict for a candidate notification."""

    model_config = ConfigDict(frozen=True)

    is_duplicate: bool
    should_block: bool
    similarity: float | None = None
    existing_id: str | None = Field(
        default=None, description="Most similar notification in the window"
    )
    duplicate_count: int = 0
    reason: str = Field(default="", description="Short machine-readable reason")


class CacheStats(BaseModel):
    """Similarity cache counters."""

    size: int
    max_size: int
    hits: int
    misses: int

    @property
    def hit_rate(self) -> float:
        """Share of lookups served from the cache."""
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


class ServiceStats(BaseModel):
    """Counters of a deduplication service instance."""

    total_checks: int = 0
    duplicates: int = 0
    blocked: int = 0
    history_size: int = 0
    cache: CacheStats | None = None


class DeduplicationSummary(BaseModel):
    """Outcome of a batch deduplication run."""

    total: int
    accepted: int
    duplicates: int
    blocked: int
    decisions: list[DeduplicationDecision] = Field(default_factory=list)
