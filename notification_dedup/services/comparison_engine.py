"""Comparison engine: normalization + algorithm dispatch + verdict cache.

Entry points used by notification code for ad hoc text comparisons:

- ``compare``: score two strings with one algorithm against a threshold
- ``compare_content``: same, after stripping HTML and markdown markup
- ``quick_check``: cheap yes/no screening with length heuristics
"""

from notification_dedup.config.logging_config import get_logger
from notification_dedup.domain.deduplication_constants import (
    DEFAULT_SIMILARITY_THRESHOLD,
    QUICK_CHECK_MAX_LENGTH,
    QUICK_CHECK_MIN_LENGTH,
    QUICK_CHECK_THRESHOLD,
)
from notification_dedup.domain.models import SimilarityMethod, SimilarityVerdict
from notification_dedup.services.similarity import get_scorer
from notification_dedup.services.similarity_cache import (
    SimilarityCache,
    verdict_cache_key,
)
from notification_dedup.services.text_normalizer import normalize as normalize_text
from notification_dedup.services.text_normalizer import strip_markup

logger = get_logger(__name__)


class ComparisonEngine:
    """Scores string pairs and memoizes verdicts."""

    def __init__(self, cache: SimilarityCache | None = None) -> None:
        """Initialize engine.

        Args:
            cache: Verdict cache (a default-sized one is created when omitted)
        """
        self.cache = cache if cache is not None else SimilarityCache()

    def compare(
        self,
        a: str,
        b: str,
        threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
        method: SimilarityMethod | str = SimilarityMethod.JARO,
        normalize: bool = True,
    ) -> SimilarityVerdict:
        """Compare two strings.

        Args:
            a: First string
            b: Second string
            threshold: Minimum similarity for ``is_duplicate``
            method: Algorithm to use (jaro, cosine, levenshtein)
            normalize: Normalize both inputs before scoring

        Returns:
            Verdict with ``is_duplicate = similarity >= threshold``

        Raises:
            ValueError: If ``method`` is unknown

        Example:
            >>> engine = ComparisonEngine()
            >>> engine.compare("Meta atingida", "meta atingida").similarity
            1.0
        """
        scorer = get_scorer(method)
        method = SimilarityMethod(method)

        scored_a = normalize_text(a) if normalize else a
        scored_b = normalize_text(b) if normalize else b

        cache_key = verdict_cache_key(method, threshold, scored_a, scored_b)
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        similarity = scorer(scored_a, scored_b)
        verdict = SimilarityVerdict(
            similarity=similarity,
            is_duplicate=similarity >= threshold,
            method=method,
            threshold=threshold,
            normalized_a=scored_a,
            normalized_b=scored_b,
        )
        self.cache.put(cache_key, verdict)
        return verdict

    def compare_content(
        self,
        a: str,
        b: str,
        threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
        method: SimilarityMethod | str = SimilarityMethod.JARO,
        normalize: bool = True,
    ) -> SimilarityVerdict:
        """Compare two contents after stripping HTML tags and markdown markers."""
        return self.compare(
            strip_markup(a),
            strip_markup(b),
            threshold=threshold,
            method=method,
            normalize=normalize,
        )

    def quick_check(
        self, a: str, b: str, threshold: float = QUICK_CHECK_THRESHOLD
    ) -> bool:
        """Cheap duplicate screening.

        - Either text under 10 characters: exact equality only
        - Either text over 1000 characters: assumed distinct
        - Otherwise Jaro-Winkler against ``threshold``

        Example:
            >>> ComparisonEngine().quick_check("ok", "no")
            False
        """
        if len(a) < QUICK_CHECK_MIN_LENGTH or len(b) < QUICK_CHECK_MIN_LENGTH:
            return a == b

        if len(a) > QUICK_CHECK_MAX_LENGTH or len(b) > QUICK_CHECK_MAX_LENGTH:
            logger.debug(
                "quick_check_skipped_long_content",
                length_a=len(a),
                length_b=len(b),
            )
            return False

        return self.compare(
            a, b, threshold=threshold, method=SimilarityMethod.JARO
        ).is_duplicate
