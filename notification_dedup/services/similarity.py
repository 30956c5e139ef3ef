"""String similarity algorithms.

Three independent scorers, each returning a value in [0.0, 1.0] for any pair
of strings (empty strings included):

- Jaro-Winkler: character matching inside a sliding window with a bonus for
  a shared prefix of up to 4 characters
- Cosine over TF-IDF vectors of whitespace tokens
- Levenshtein ratio: 1 - edit distance / longer length

Inputs are scored as given; callers normalize beforehand.
"""

import math
from collections import Counter
from typing import Final

from rapidfuzz.distance import Levenshtein

from notification_dedup.domain.deduplication_constants import (
    WINKLER_PREFIX_LIMIT,
    WINKLER_SCALING_FACTOR,
)
from notification_dedup.domain.models import SimilarityMethod
from notification_dedup.domain.protocols import SimilarityScorer

# IDF assumes a fixed corpus of the two compared strings, each term seen once
_IDF_CORPUS_SIZE: Final[int] = 2
_IDF_DOCUMENT_FREQUENCY: Final[int] = 1


def common_prefix_length(a: str, b: str, limit: int = WINKLER_PREFIX_LIMIT) -> int:
    """Length of the shared prefix of ``a`` and ``b``, capped at ``limit``."""
    length = 0
    for char_a, char_b in zip(a[:limit], b[:limit]):
        if char_a != char_b:
            break
        length += 1
    return length


def jaro_winkler_similarity(a: str, b: str) -> float:
    """Jaro-Winkler similarity.

    The Winkler bonus ``prefix * 0.1 * (1 - jaro)`` is applied regardless of
    the Jaro score.

    Example:
        >>> round(jaro_winkler_similarity("martha", "marhta"), 4)
        0.9611
    """
    len_a = len(a)
    len_b = len(b)

    if len_a == 0 or len_b == 0:
        return 1.0 if len_a == len_b else 0.0

    match_distance = max(0, max(len_a, len_b) // 2 - 1)

    a_matched = [False] * len_a
    b_matched = [False] * len_b
    matches = 0

    for i, char in enumerate(a):
        start = max(0, i - match_distance)
        end = min(i + match_distance + 1, len_b)
        for j in range(start, end):
            if b_matched[j] or b[j] != char:
                continue
            a_matched[i] = True
            b_matched[j] = True
            matches += 1
            break

    if matches == 0:
        return 0.0

    transpositions = 0
    k = 0
    for i, char in enumerate(a):
        if not a_matched[i]:
            continue
        while not b_matched[k]:
            k += 1
        if char != b[k]:
            transpositions += 1
        k += 1

    half_transpositions = transpositions / 2
    jaro = (
        matches / len_a + matches / len_b + (matches - half_transpositions) / matches
    ) / 3

    prefix = common_prefix_length(a, b)
    return min(jaro + prefix * WINKLER_SCALING_FACTOR * (1 - jaro), 1.0)


def tfidf_vector(text: str) -> dict[str, float]:
    """Build the TF-IDF vector of whitespace tokens in ``text``."""
    tokens = text.split()
    if not tokens:
        return {}

    total = len(tokens)
    idf = math.log(_IDF_CORPUS_SIZE / _IDF_DOCUMENT_FREQUENCY)
    return {term: (count / total) * idf for term, count in Counter(tokens).items()}


def cosine_similarity(a: str, b: str) -> float:
    """Cosine similarity of the TF-IDF vectors of ``a`` and ``b``.

    Example:
        >>> round(cosine_similarity("saldo baixo", "baixo saldo"), 6)
        1.0
    """
    vector_a = tfidf_vector(a)
    vector_b = tfidf_vector(b)

    if not vector_a and not vector_b:
        return 1.0

    magnitude_a = math.sqrt(sum(value * value for value in vector_a.values()))
    magnitude_b = math.sqrt(sum(value * value for value in vector_b.values()))
    if magnitude_a == 0 or magnitude_b == 0:
        return 0.0

    dot_product = sum(
        value * vector_b.get(term, 0.0) for term, value in vector_a.items()
    )
    return min(max(dot_product / (magnitude_a * magnitude_b), 0.0), 1.0)


def levenshtein_distance(a: str, b: str) -> int:
    """Unit-cost edit distance (insertions, deletions, substitutions).

    Example:
        >>> levenshtein_distance("kitten", "sitting")
        3
    """
    distance: int = Levenshtein.distance(a, b)
    return distance


def levenshtein_similarity(a: str, b: str) -> float:
    """Levenshtein ratio ``1 - distance / max(len(a), len(b))``.

    Example:
        >>> round(levenshtein_similarity("kitten", "sitting"), 3)
        0.571
    """
    max_length = max(len(a), len(b))
    if max_length == 0:
        return 1.0
    return 1 - levenshtein_distance(a, b) / max_length


SCORERS: Final[dict[SimilarityMethod, SimilarityScorer]] = {
    SimilarityMethod.JARO: jaro_winkler_similarity,
    SimilarityMethod.COSINE: cosine_similarity,
    SimilarityMethod.LEVENSHTEIN: levenshtein_similarity,
}


def get_scorer(method: SimilarityMethod | str) -> SimilarityScorer:
    """Return the scorer for ``method``.

    Raises:
        ValueError: If the method name is unknown
    """
    try:
        return SCORERS[SimilarityMethod(method)]
    except ValueError as e:
        raise ValueError(f"Unsupported similarity method: {method}") from e
