from __future__ import annotations

from datetime import datetime, timezone

import pytest

from kb_audit.analyzers.advanced import AdvancedRulesEngine
from kb_audit.config import AppConfig
from kb_audit.core.types import Article, AuditResult
from kb_audit.errors import ArticleValidationError
from kb_audit.rules.factory import build_engine

NOW = datetime(2026, 6, 1, tzinfo=timezone.utc)

CONTENT = (
    "# Connect the scanner\n\nPlug the scanner into a USB port and wait for the driver. "
    "Open the scanning app and pick the device.\n\n- Plug in\n- Open app"
)


def _articles() -> list[Article]:
    return [
        Article(id="kb-1", title="Connect the scanner", content=CONTENT, last_modified=NOW),
        Article(id="kb-2", title="Connect a scanner", content=CONTENT, last_modified=NOW),
        Article(id="kb-3", title="Billing", content="Invoices go out monthly.", last_modified=NOW),
    ]


def _result(executed: int, issues: int) -> AuditResult:
    return AuditResult(article_id="kb-1", total_rules_executed=executed, issues_found=issues)


def test_confidence_from_coverage_and_balance():
    engine = build_engine(AppConfig(), clock=lambda: NOW)

    assert engine.calculate_confidence(_result(5, 0)) == pytest.approx(0.85)
    assert engine.calculate_confidence(_result(5, 20)) == pytest.approx(1.0)
    assert engine.calculate_confidence(_result(5, 3)) == pytest.approx(0.79)
    assert engine.calculate_confidence(_result(2, 0)) == pytest.approx(0.43)


def test_confidence_without_enabled_rules():
    engine = AdvancedRulesEngine()

    assert engine.calculate_confidence(_result(0, 0)) == pytest.approx(0.15)


def test_analyze_article_advanced_combines_everything():
    engine = build_engine(AppConfig(), clock=lambda: NOW)
    article, twin, _ = _articles()

    report = engine.analyze_article_advanced(article, [twin])
    data = report.to_dict()

    assert report.article_id == "kb-1"
    assert report.audit.total_rules_executed == 5
    assert report.similarity.similarities[0].article_id == "kb-2"
    assert report.duplicates.duplicates[0].article_id == "kb-2"
    assert set(data["advanced_analysis"]) == {
        "content_similarity",
        "structural_analysis",
        "semantic_analysis",
        "duplicate_detection",
        "readability_analysis",
    }
    assert data["analysis_metadata"]["analysis_type"] == "advanced"
    assert 0.0 <= data["analysis_metadata"]["confidence_score"] <= 1.0
    assert report.metadata.cache_sizes == {"similarity": 1, "structural": 2}


def test_batch_analyze_advanced_keeps_order():
    engine = build_engine(AppConfig(), clock=lambda: NOW)
    articles = _articles()

    batch = engine.batch_analyze_advanced(articles)

    assert [report.article_id for report in batch.results] == ["kb-1", "kb-2", "kb-3"]
    assert batch.total_articles == 3
    assert batch.executed_at == NOW
    assert batch.average_confidence == pytest.approx(
        sum(r.metadata.confidence_score for r in batch.results) / 3
    )
    assert batch.results[2].similarity.similar_articles_found == 0
    assert batch.to_dict()["batch_metadata"]["similarity_enabled"] is True


def test_batch_without_similarity_uses_empty_corpus():
    engine = build_engine(AppConfig(), clock=lambda: NOW)

    batch = engine.batch_analyze_advanced(_articles(), enable_similarity=False)

    assert all(report.similarity.similar_articles_found == 0 for report in batch.results)
    assert all(report.duplicates.potential_duplicates_found == 0 for report in batch.results)
    assert batch.similarity_enabled is False
    assert engine.cache_sizes()["similarity"] == 0


def test_empty_batch():
    batch = build_engine(AppConfig()).batch_analyze_advanced([])

    assert batch.total_articles == 0
    assert batch.results == []
    assert batch.average_confidence == 0.0


def test_batch_validates_every_article_first():
    engine = build_engine(AppConfig())

    with pytest.raises(ArticleValidationError):
        engine.batch_analyze_advanced([_articles()[0], Article(id="")])
    assert engine.cache_sizes() == {"similarity": 0, "structural": 0}


def test_concurrent_batch_matches_sequential():
    sequential = build_engine(AppConfig(), clock=lambda: NOW).batch_analyze_advanced(_articles())
    cfg = AppConfig()
    cfg.engine.batch_concurrency = 3
    cfg.engine.max_workers = 2
    parallel = build_engine(cfg, clock=lambda: NOW).batch_analyze_advanced(_articles())

    for left, right in zip(sequential.results, parallel.results):
        assert left.audit.to_dict()["issues"] == right.audit.to_dict()["issues"]
        assert left.similarity.to_dict() == right.similarity.to_dict()
        assert left.duplicates.to_dict() == right.duplicates.to_dict()
