from __future__ import annotations

import pytest

from kb_audit.analyzers.advanced import AdvancedRulesEngine
from kb_audit.analyzers.semantic import SemanticAnalyzer
from kb_audit.analyzers.similarity import (
    SimilarityEngine,
    cosine_similarity,
    jaccard_similarity,
    recommendations_for,
    SimilarityMetrics,
)
from kb_audit.core.profile import build_profile
from kb_audit.core.types import Article

GUIDE = (
    "# Install\n\nDownload the installer from the portal and run it. "
    "Accept the license and choose a folder.\n\n- Open settings\n- Sign in"
)


def _article(article_id: str, content: str, title: str = "") -> Article:
    return Article(id=article_id, title=title or article_id, content=content)


def test_stemmed_jaccard_and_cosine():
    running = build_profile("running runs")
    run = build_profile("run")

    assert jaccard_similarity(running, run) == 1.0
    assert cosine_similarity(running, run) == 0.0
    assert cosine_similarity(build_profile("alpha beta"), build_profile("beta alpha")) == pytest.approx(1.0)
    assert jaccard_similarity(build_profile(""), build_profile("")) == 0.0


def test_similarity_is_symmetric():
    first = _article("kb-1", GUIDE)
    second = _article("kb-2", "Download the installer and accept the license. Then sign in.")

    forward = SimilarityEngine().compare(first, second)
    backward = SimilarityEngine().compare(second, first)

    assert forward.pair == backward.pair == ("kb-1", "kb-2")
    assert forward.score == backward.score
    assert forward.metrics == backward.metrics


def test_metrics_stay_within_bounds():
    engine = SimilarityEngine()
    articles = [
        _article("a", GUIDE),
        _article("b", ""),
        _article("c", "<h2>Billing</h2><p>Invoices are sent monthly.</p>"),
        _article("d", ""),
    ]

    for first in articles:
        for second in articles:
            if first.id == second.id:
                continue
            metrics = engine.metrics(first, second)
            for value in (metrics.lexical, metrics.vector, metrics.semantic, metrics.structural):
                assert 0.0 <= value <= 1.0
            assert 0.0 <= metrics.score <= 1.0


def test_analyze_reports_only_pairs_above_threshold():
    engine = SimilarityEngine(threshold=0.7)
    article = _article("kb-1", GUIDE)
    twin = _article("kb-2", GUIDE)
    unrelated = _article("kb-3", "Quarterly revenue grew in every region.")

    report = engine.analyze(article, [article, twin, unrelated])

    assert report.similar_articles_found == 1
    match = report.similarities[0]
    assert match.article_id == "kb-2"
    assert match.similarity_score == pytest.approx(1.0)
    assert [rec["type"] for rec in match.recommendations] == [
        "merge_candidates",
        "structural_standardization",
    ]
    assert report.to_dict()["analysis_config"]["threshold"] == 0.7


def test_recommendation_tiers():
    metrics = SimilarityMetrics(lexical=0.0, vector=0.0, semantic=0.0, structural=0.5)

    assert [rec["type"] for rec in recommendations_for(0.95, metrics)] == ["merge_candidates"]
    assert [rec["type"] for rec in recommendations_for(0.75, metrics)] == ["review_overlap"]
    assert recommendations_for(0.7, metrics) == []


def test_cached_results_are_reused_until_cleared():
    engine = AdvancedRulesEngine()
    first = _article("kb-1", GUIDE)
    second = _article("kb-2", "Sign in and open settings.")

    before = engine.analyze_content_similarity(first, [second])
    cached = engine.similarity.compare(second, first)
    after = engine.analyze_content_similarity(first, [second])

    assert cached is engine.similarity.compare(first, second)
    assert before.to_dict() == after.to_dict()
    assert engine.cache_sizes() == {"similarity": 1, "structural": 2}
    assert engine.clear_caches() == {"similarity": 1, "structural": 2}
    assert engine.cache_sizes() == {"similarity": 0, "structural": 0}


def test_semantic_metric_degrades_to_raw_text_similarity():
    engine = SimilarityEngine(semantic=SemanticAnalyzer(max_extraction_chars=10))
    first = _article("kb-1", GUIDE)
    second = _article("kb-2", GUIDE)

    metrics = engine.metrics(first, second)

    assert metrics.semantic_degraded is True
    assert metrics.semantic == pytest.approx(1.0)
    assert engine.topic_similarity(first, second) == 0.0
