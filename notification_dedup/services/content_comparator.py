"""Content-type comparators.

Combines title, message and category comparisons of two notifications into
one weighted similarity:

1. Title and message are each scored by every algorithm with a positive
   weight and blended by the algorithm weights (Jaro-Winkler alone when the
   algorithm blend is disabled)
2. Category scores 1.0 on exact match, 0.0 otherwise
3. A required category that differs forces "not duplicate"
4. The three field scores are averaged with the content-type weights
"""

from notification_dedup.domain.models import (
    AlgorithmConfig,
    ContentComparison,
    ContentTypeConfig,
    Notification,
    SimilarityMethod,
    TextFieldConfig,
)
from notification_dedup.services.comparison_engine import ComparisonEngine
from notification_dedup.services.text_normalizer import strip_markup


class ContentComparator:
    """Weighted notification comparison on top of a comparison engine."""

    def __init__(self, engine: ComparisonEngine) -> None:
        """Initialize comparator.

        Args:
            engine: Comparison engine that scores and caches each field pair
        """
        self.engine = engine

    def field_similarity(
        self,
        a: str,
        b: str,
        field_config: TextFieldConfig,
        algorithms: AlgorithmConfig,
    ) -> float:
        """Blend the algorithm scores of one text field.

        Args:
            a: Candidate field text
            b: Historical field text
            field_config: Preprocessing flags of the field
            algorithms: Algorithm weights

        Returns:
            Weighted mean similarity in [0, 1]
        """
        if field_config.strip_html:
            a = strip_markup(a)
            b = strip_markup(b)

        if algorithms.enabled:
            weighted = [
                (method, algorithms.settings_for(method))
                for method in SimilarityMethod
                if algorithms.settings_for(method).weight > 0
            ]
        else:
            weighted = []

        if not weighted:
            return self.engine.compare(
                a,
                b,
                threshold=algorithms.jaro.threshold,
                method=SimilarityMethod.JARO,
                normalize=field_config.normalize,
            ).similarity

        total_weight = sum(settings.weight for _, settings in weighted)
        score = 0.0
        for method, settings in weighted:
            verdict = self.engine.compare(
                a,
                b,
                threshold=settings.threshold,
                method=method,
                normalize=field_config.normalize,
            )
            score += verdict.similarity * settings.weight
        return score / total_weight

    def compare(
        self,
        candidate: Notification,
        historical: Notification,
        threshold: float,
        content_types: ContentTypeConfig,
        algorithms: AlgorithmConfig,
    ) -> ContentComparison:
        """Compare a candidate notification with a historical one.

        Args:
            candidate: Notification about to be shown
            historical: Notification shown earlier
            threshold: Similarity threshold of the resolved policy
            content_types: Field weights and flags
            algorithms: Algorithm weights

        Returns:
            Weighted comparison with per-field scores

        Example:
            >>> comparator = ContentComparator(ComparisonEngine())
            >>> result = comparator.compare(a, b, 0.9, ContentTypeConfig(), AlgorithmConfig())
            >>> result.is_duplicate
            True
        """
        title_similarity = self.field_similarity(
            candidate.title, historical.title, content_types.title, algorithms
        )
        message_similarity = self.field_similarity(
            candidate.message, historical.message, content_types.message, algorithms
        )
        category_match = candidate.category == historical.category

        weights = (
            content_types.title.weight,
            content_types.message.weight,
            content_types.category.weight,
        )
        scores = (title_similarity, message_similarity, 1.0 if category_match else 0.0)
        total_weight = sum(weights)
        if total_weight > 0:
            similarity = sum(w * s for w, s in zip(weights, scores)) / total_weight
        else:
            similarity = title_similarity

        is_duplicate = similarity >= threshold
        if content_types.category.required and not category_match:
            is_duplicate = False

        return ContentComparison(
            similarity=similarity,
            is_duplicate=is_duplicate,
            threshold=threshold,
            title_similarity=title_similarity,
            message_similarity=message_similarity,
            category_match=category_match,
        )
