"""Two overlapping getting-started guides analyzed end to end."""

from __future__ import annotations

import pytest

from kb_audit.config import AppConfig
from kb_audit.core.types import Article
from kb_audit.rules.factory import build_engine

SHARED = (
    "anchor basket candle dolphin engine falcon garden harbor island jacket "
    "kettle lantern meadow needle orchard pencil quarry rabbit saddle tunnel "
    "umbrella valley walnut yogurt zipper bottle carpet desert feather guitar "
    "hammer ladder mirror noodle pillow ribbon socket timber violin window"
).split()
ONLY_FIRST = (
    "acorn beacon cactus donkey easel fossil glacier helmet igloo jigsaw "
    "kayak lemon magnet nectar otter parrot quilt rocket spider tulip"
).split()
ONLY_SECOND = ["walrus", "biscuit", "compass", "dragon"]


def _first_guide() -> Article:
    words = [word for word in SHARED for _ in range(12)] + ONLY_FIRST
    return Article(id="kb-x", title="Getting Started", content=" ".join(words))


def _second_guide() -> Article:
    words = []
    for word in SHARED:
        words.extend([word] * (8 if word == "zipper" else 12))
    words.extend(ONLY_SECOND)
    return Article(id="kb-y", title="Getting Started Guide", content=" ".join(words))


def test_overlapping_guides_are_flagged_for_review():
    first, second = _first_guide(), _second_guide()
    assert len(first.content.split()) == 500
    assert len(second.content.split()) == 480
    engine = build_engine(AppConfig())

    report = engine.analyze_article_advanced(first, [second])

    assert report.similarity.similar_articles_found == 1
    match = report.similarity.similarities[0]
    assert match.article_id == "kb-y"
    assert match.metrics.lexical == pytest.approx(0.625)
    assert match.metrics.vector == pytest.approx(0.99655, abs=1e-4)
    assert match.metrics.semantic == pytest.approx(1.0)
    assert match.metrics.structural == pytest.approx(1.0)
    assert match.similarity_score == pytest.approx(0.8865, abs=1e-3)
    assert [rec["type"] for rec in match.recommendations] == [
        "review_overlap",
        "structural_standardization",
    ]

    assert report.duplicates.potential_duplicates_found == 1
    candidate = report.duplicates.duplicates[0]
    assert candidate.analysis.title_similarity == pytest.approx(0.8333, abs=1e-3)
    assert candidate.analysis.content_similarity == pytest.approx(0.87385, abs=1e-3)
    assert candidate.duplicate_score == pytest.approx(0.8995, abs=1e-3)
    assert candidate.tier == "review_merge"
    assert candidate.confidence == 0.8
    assert [item["type"] for item in report.duplicates.consolidation_opportunities] == [
        "review_consolidation"
    ]


def test_pair_is_computed_once_from_either_side():
    first, second = _first_guide(), _second_guide()
    engine = build_engine(AppConfig())

    batch = engine.batch_analyze_advanced([first, second])

    left = batch.results[0].similarity.similarities[0]
    right = batch.results[1].similarity.similarities[0]
    assert left.similarity_score == right.similarity_score
    assert left.metrics == right.metrics
    assert engine.cache_sizes() == {"similarity": 1, "structural": 2}
