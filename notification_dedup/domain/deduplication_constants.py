"""Business rules and default values for notification deduplication.

All thresholds, windows and weights used when no persisted configuration
exists are centralized here. Persisted configurations written by earlier
releases rely on these exact values, so changing them changes behavior for
every profile that never customized its settings.

Time windows are expressed in milliseconds.
"""

from typing import Final

# Global defaults
DEFAULT_SIMILARITY_THRESHOLD: Final[float] = 0.85
"""Minimum similarity (0.0-1.0) for two texts to count as duplicates.

Used by ``compare`` when the caller passes no threshold and as the
threshold of the synthesized default category configuration.
"""

DEFAULT_TIME_WINDOW_MS: Final[int] = 60_000
"""How long (ms) a shown notification suppresses similar ones by default."""

DEFAULT_MAX_DUPLICATES: Final[int] = 2
"""How many copies of the same notification may be shown inside a window."""

# Quick check heuristics
QUICK_CHECK_THRESHOLD: Final[float] = 0.7
QUICK_CHECK_MIN_LENGTH: Final[int] = 10
"""Below this length texts carry too little signal; only exact equality counts."""

QUICK_CHECK_MAX_LENGTH: Final[int] = 1000
"""Above this length texts are assumed distinct without scoring."""

# Jaro-Winkler
WINKLER_PREFIX_LIMIT: Final[int] = 4
WINKLER_SCALING_FACTOR: Final[float] = 0.1

# Persistence
CONFIG_STORAGE_KEY: Final[str] = "deduplication_config"

# Category defaults: (time window ms, similarity threshold, max duplicates)
CATEGORY_DEFAULTS: Final[dict[str, tuple[int, float, int]]] = {
    "budget": (120_000, 0.90, 1),
    "goal": (300_000, 0.85, 2),
    "transaction": (60_000, 0.80, 3),
    "reminder": (1_800_000, 0.95, 1),
    "report": (3_600_000, 0.95, 1),
    "system": (300_000, 0.85, 2),
    "insight": (600_000, 0.80, 3),
    "achievement": (600_000, 0.90, 1),
}
"""Per-category policy.

Business rule: budget alerts and achievements are shown once per window,
transaction and insight notifications tolerate up to three near-copies
because they often differ only by amount.
"""

# Priority defaults: (time window ms, similarity threshold, max duplicates)
PRIORITY_DEFAULTS: Final[dict[str, tuple[int, float, int]]] = {
    "low": (300_000, 0.80, 3),
    "normal": (120_000, 0.85, 2),
    "high": (60_000, 0.90, 1),
    "urgent": (1_800_000, 0.95, 1),
}

# Algorithm defaults: (threshold, weight)
ALGORITHM_DEFAULTS: Final[dict[str, tuple[float, float]]] = {
    "jaro": (0.9, 0.6),
    "cosine": (0.8, 0.3),
    "levenshtein": (0.7, 0.1),
}
"""Weights need not sum to 1; blending divides by the weight total."""

# Cache defaults
CACHE_MAX_SIZE: Final[int] = 1000
CACHE_CLEANUP_INTERVAL_MS: Final[int] = 300_000
CACHE_MAX_AGE_MS: Final[int] = 1_800_000

# Performance defaults (advisory values for callers)
PERFORMANCE_DEBOUNCE_MS: Final[int] = 100
PERFORMANCE_MAX_CONCURRENT_CHECKS: Final[int] = 5

# Content-type weights
TITLE_WEIGHT: Final[float] = 0.6
MESSAGE_WEIGHT: Final[float] = 0.3
CATEGORY_WEIGHT: Final[float] = 0.1
