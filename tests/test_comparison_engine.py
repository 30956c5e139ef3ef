"""Tests for the comparison engine."""

import pytest

from notification_dedup.domain.models import SimilarityMethod
from notification_dedup.services.comparison_engine import ComparisonEngine
from notification_dedup.services.similarity import levenshtein_similarity
from notification_dedup.services.similarity_cache import SimilarityCache


def test_compare_normalizes_inputs(engine: ComparisonEngine) -> None:
    """Test accents, case and punctuation do not affect the score."""
    verdict = engine.compare(
        "Orçamento de Alimentação estourado", "orcamento de alimentacao ESTOURADO!"
    )

    assert verdict.similarity == pytest.approx(1.0)
    assert verdict.is_duplicate is True
    assert verdict.method == SimilarityMethod.JARO
    assert verdict.threshold == 0.85
    assert verdict.normalized_a == "orcamento de alimentacao estourado"
    assert verdict.normalized_b == "orcamento de alimentacao estourado"


def test_compare_without_normalization(engine: ComparisonEngine) -> None:
    verdict = engine.compare("Meta", "meta", normalize=False)

    assert verdict.similarity < 1.0
    assert verdict.normalized_a == "Meta"


@pytest.mark.parametrize("method", ["jaro", "cosine", "levenshtein"])
def test_is_duplicate_matches_threshold(engine: ComparisonEngine, method: str) -> None:
    """Test is_duplicate == (similarity >= threshold) for every method."""
    a = "Fatura do cartão vence amanhã"
    b = "Fatura do cartão venceu ontem"
    for threshold in (0.0, 0.3, 0.6, 0.85, 1.0):
        verdict = engine.compare(a, b, threshold=threshold, method=method)
        assert verdict.is_duplicate == (verdict.similarity >= threshold)


def test_threshold_boundary_is_inclusive(engine: ComparisonEngine) -> None:
    exact = levenshtein_similarity("kitten", "sitting")

    verdict = engine.compare(
        "kitten", "sitting", threshold=exact, method=SimilarityMethod.LEVENSHTEIN
    )

    assert verdict.similarity == exact
    assert verdict.is_duplicate is True


def test_compare_accepts_method_string(engine: ComparisonEngine) -> None:
    verdict = engine.compare("saldo baixo", "baixo saldo", method="cosine")

    assert verdict.method == SimilarityMethod.COSINE
    assert verdict.similarity == pytest.approx(1.0)


def test_compare_unknown_method(engine: ComparisonEngine) -> None:
    with pytest.raises(ValueError):
        engine.compare("a", "b", method="soundex")


def test_compare_empty_strings(engine: ComparisonEngine) -> None:
    assert engine.compare("", "").similarity == 1.0
    assert engine.compare("", "Meta atingida").similarity == 0.0
    assert engine.compare("!!!", "???").similarity == 1.0


def test_compare_uses_cache(engine: ComparisonEngine) -> None:
    first = engine.compare("Saldo baixo", "Saldo muito baixo")
    second = engine.compare("saldo baixo", "SALDO MUITO BAIXO")

    assert second == first
    assert engine.cache.stats().hits == 1
    assert len(engine.cache) == 1


def test_cache_does_not_mix_pairs_of_equal_length(engine: ComparisonEngine) -> None:
    """Test different pairs with equal lengths are scored independently."""
    same = engine.compare("abcd", "abcd", method=SimilarityMethod.LEVENSHTEIN)
    different = engine.compare("wxyz", "abcd", method=SimilarityMethod.LEVENSHTEIN)

    assert same.similarity == 1.0
    assert different.similarity == 0.0


def test_cache_separates_thresholds(engine: ComparisonEngine) -> None:
    lenient = engine.compare("meta atingida", "meta quase atingida", threshold=0.5)
    strict = engine.compare("meta atingida", "meta quase atingida", threshold=0.99)

    assert lenient.is_duplicate is True
    assert strict.is_duplicate is False


def test_compare_with_disabled_cache() -> None:
    engine = ComparisonEngine(SimilarityCache(enabled=False))

    engine.compare("a", "b")
    engine.compare("a", "b")

    assert len(engine.cache) == 0
    assert engine.cache.stats().hits == 0


def test_compare_content_strips_markup(engine: ComparisonEngine) -> None:
    verdict = engine.compare_content(
        "<p><b>Orçamento</b> de Alimentação **estourado**</p>",
        "## Orçamento de Alimentação estourado",
    )

    assert verdict.similarity == pytest.approx(1.0)
    assert verdict.is_duplicate is True


def test_compare_content_budget_alerts(engine: ComparisonEngine) -> None:
    """Test two budget alerts differing only in amounts are duplicates."""
    verdict = engine.compare_content(
        "Você gastou R$ 850,00 de R$ 800,00 em Alimentação",
        "Você gastou R$ 860,00 de R$ 800,00 em Alimentação",
        threshold=0.9,
    )

    assert verdict.is_duplicate is True


# === Quick check ===


def test_quick_check_short_texts_need_exact_match(engine: ComparisonEngine) -> None:
    assert engine.quick_check("ok", "no") is False
    assert engine.quick_check("ok", "ok") is True
    assert engine.quick_check("Ok", "ok") is False


def test_quick_check_long_texts_are_distinct(engine: ComparisonEngine) -> None:
    text = "Resumo mensal " * 100

    assert len(text) > 1000
    assert engine.quick_check(text, text) is False


def test_quick_check_similar_texts(engine: ComparisonEngine) -> None:
    assert engine.quick_check("Fatura do cartão vence amanhã", "Fatura do cartao vence amanha")
    assert not engine.quick_check("Fatura do cartão vence amanhã", "Código 123456789")


def test_quick_check_custom_threshold(engine: ComparisonEngine) -> None:
    a = "Fatura do cartão vence amanhã"
    b = "Fatura do cartão venceu ontem"
    score = engine.compare(a, b, threshold=0.7).similarity

    assert engine.quick_check(a, b, threshold=score) is True
    assert engine.quick_check(a, b, threshold=1.0) is False
