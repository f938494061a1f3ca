from __future__ import annotations

import pytest

from kb_audit.analyzers.duplicates import (
    DuplicateAnalysis,
    DuplicateCandidate,
    DuplicateDetector,
    consolidation_opportunities,
    duplicate_recommendation,
    duplicate_score,
    title_similarity,
)
from kb_audit.analyzers.semantic import SemanticAnalyzer
from kb_audit.analyzers.similarity import SimilarityEngine
from kb_audit.core.types import Article

CONTENT = (
    "## Reset your password\n\nOpen the account page and choose reset. "
    "Check your inbox for the reset link and follow it.\n\n- Open account\n- Choose reset"
)


def _candidate(article_id: str, score: float) -> DuplicateCandidate:
    return DuplicateCandidate(
        article_id=article_id,
        title=article_id,
        duplicate_score=score,
        analysis=DuplicateAnalysis(score, score, score, score),
        recommendation=duplicate_recommendation(score),
    )


def test_recommendation_tiers():
    assert duplicate_recommendation(0.96)["type"] == "merge_immediate"
    assert duplicate_recommendation(0.96)["confidence"] == 0.95
    assert duplicate_recommendation(0.95)["type"] == "review_merge"
    assert duplicate_recommendation(0.88)["type"] == "review_merge"
    assert duplicate_recommendation(0.65)["type"] == "monitor"
    assert duplicate_recommendation(0.65)["priority"] == "low"


def test_duplicate_score_weights():
    assert duplicate_score(1.0, 0.0, 0.0, 0.0) == pytest.approx(0.3)
    assert duplicate_score(0.0, 1.0, 0.0, 0.0) == pytest.approx(0.4)
    assert duplicate_score(0.0, 0.0, 1.0, 1.0) == pytest.approx(0.3)
    assert DuplicateAnalysis(1.0, 1.0, 1.0, 1.0).score == pytest.approx(1.0)


def test_title_similarity_ignores_case():
    assert title_similarity("Reset Password", "reset password") == 1.0
    assert 0.0 < title_similarity("Reset Password", "Reset Passwords") < 1.0


def test_consolidation_buckets():
    opportunities = consolidation_opportunities(
        [_candidate("a", 0.95), _candidate("b", 0.85), _candidate("c", 0.82)]
    )

    assert [(item["type"], item["articles"]) for item in opportunities] == [
        ("immediate_consolidation", ["a"]),
        ("review_consolidation", ["b", "c"]),
    ]
    assert consolidation_opportunities([]) == []


def test_identical_articles_merge_immediately():
    detector = DuplicateDetector(SimilarityEngine(), min_score=0.8)
    article = Article(id="kb-1", title="Reset your password", content=CONTENT)
    copy = Article(id="kb-2", title="Reset your password", content=CONTENT)
    other = Article(id="kb-3", title="Billing cycles", content="Invoices go out monthly.")

    report = detector.detect(article, [article, copy, other])

    assert report.potential_duplicates_found == 1
    candidate = report.duplicates[0]
    assert candidate.article_id == "kb-2"
    assert candidate.tier == "merge_immediate"
    assert candidate.duplicate_score == pytest.approx(1.0)
    assert report.consolidation_opportunities[0]["type"] == "immediate_consolidation"
    assert report.to_dict()["duplicates"][0]["analysis"]["title_similarity"] == 1.0


class CountingAnalyzer(SemanticAnalyzer):
    def __init__(self):
        super().__init__()
        self.calls = 0

    def extract(self, text):
        self.calls += 1
        return super().extract(text)


def test_topic_overlap_reuses_cached_pair_result():
    semantic = CountingAnalyzer()
    detector = DuplicateDetector(SimilarityEngine(semantic=semantic), min_score=0.8)
    article = Article(id="kb-1", title="Reset your password", content=CONTENT)
    copy = Article(id="kb-2", title="Reset your password", content=CONTENT)

    analysis = detector.analyze_pair(article, copy)
    detector.detect(copy, [article])

    assert semantic.calls == 2
    assert analysis.topic_similarity == pytest.approx(1.0)
