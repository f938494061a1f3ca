"""
Duplicate detection and consolidation recommendations.

The duplicate score is a second, duplicate-specific weighting of pair
similarity:

    score = 0.3 * title + 0.4 * content + 0.2 * topic + 0.1 * structural

Title similarity uses rapidfuzz on lowercased titles. Content similarity
is the mean of the lexical, vector and semantic similarity metrics.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from rapidfuzz import fuzz

from ..core.types import Article
from .similarity import SimilarityEngine

TITLE_WEIGHT = 0.3
CONTENT_WEIGHT = 0.4
TOPIC_WEIGHT = 0.2
STRUCTURAL_WEIGHT = 0.1

MERGE_IMMEDIATE_SCORE = 0.95
REVIEW_MERGE_SCORE = 0.85
IMMEDIATE_CONSOLIDATION_SCORE = 0.9


@dataclass(frozen=True)
class DuplicateAnalysis:
    title_similarity: float
    content_similarity: float
    topic_similarity: float
    structural_similarity: float

    @property
    def score(self) -> float:
        return duplicate_score(
            self.title_similarity,
            self.content_similarity,
            self.topic_similarity,
            self.structural_similarity,
        )

    def to_dict(self) -> dict[str, float]:
        return {
            "title_similarity": self.title_similarity,
            "content_similarity": self.content_similarity,
            "topic_similarity": self.topic_similarity,
            "structural_similarity": self.structural_similarity,
        }


@dataclass
class DuplicateCandidate:
    """A flagged pair, seen from the article under analysis.

    Attributes:
        article_id: Id of the other article in the pair
        title: Title of the other article
        duplicate_score: Weighted duplicate score in [0, 1]
        analysis: Component scores
        recommendation: Tier, priority, action and confidence
    """

    article_id: str
    title: str
    duplicate_score: float
    analysis: DuplicateAnalysis
    recommendation: dict[str, Any]

    @property
    def tier(self) -> str:
        return self.recommendation["type"]

    @property
    def confidence(self) -> float:
        return self.recommendation["confidence"]

    def to_dict(self) -> dict[str, Any]:
        return {
            "article_id": self.article_id,
            "title": self.title,
            "duplicate_score": self.duplicate_score,
            "analysis": self.analysis.to_dict(),
            "recommendation": dict(self.recommendation),
        }


@dataclass
class DuplicateReport:
    article_id: str
    duplicates: list[DuplicateCandidate] = field(default_factory=list)
    consolidation_opportunities: list[dict[str, Any]] = field(default_factory=list)

    @property
    def potential_duplicates_found(self) -> int:
        return len(self.duplicates)

    def to_dict(self) -> dict[str, Any]:
        return {
            "article_id": self.article_id,
            "potential_duplicates_found": self.potential_duplicates_found,
            "duplicates": [candidate.to_dict() for candidate in self.duplicates],
            "consolidation_opportunities": [dict(item) for item in self.consolidation_opportunities],
        }


def duplicate_score(title: float, content: float, topic: float, structural: float) -> float:
    total = (
        TITLE_WEIGHT * title
        + CONTENT_WEIGHT * content
        + TOPIC_WEIGHT * topic
        + STRUCTURAL_WEIGHT * structural
    )
    return max(0.0, min(1.0, total))


def title_similarity(first: str, second: str) -> float:
    return fuzz.ratio((first or "").lower(), (second or "").lower()) / 100.0


def duplicate_recommendation(score: float) -> dict[str, Any]:
    """Map a duplicate score to its action tier."""
    if score > MERGE_IMMEDIATE_SCORE:
        return {
            "type": "merge_immediate",
            "priority": "high",
            "action": "These articles are nearly identical and should be merged immediately",
            "confidence": 0.95,
        }
    if score > REVIEW_MERGE_SCORE:
        return {
            "type": "review_merge",
            "priority": "medium",
            "action": "Review for potential merging - high content overlap detected",
            "confidence": 0.8,
        }
    return {
        "type": "monitor",
        "priority": "low",
        "action": "Monitor for content drift - some similarity detected",
        "confidence": 0.6,
    }


def consolidation_opportunities(
    candidates: list[DuplicateCandidate], review_floor: float = 0.8
) -> list[dict[str, Any]]:
    """Partition flagged candidates into immediate and review buckets."""
    immediate = [c for c in candidates if c.duplicate_score > IMMEDIATE_CONSOLIDATION_SCORE]
    review = [
        c
        for c in candidates
        if review_floor < c.duplicate_score <= IMMEDIATE_CONSOLIDATION_SCORE
    ]
    opportunities = []
    if immediate:
        opportunities.append(
            {
                "type": "immediate_consolidation",
                "articles": [c.article_id for c in immediate],
                "priority": "high",
                "estimated_effort": "low",
                "description": "Near-duplicate articles that can be easily merged",
            }
        )
    if review:
        opportunities.append(
            {
                "type": "review_consolidation",
                "articles": [c.article_id for c in review],
                "priority": "medium",
                "estimated_effort": "medium",
                "description": "Articles with significant overlap requiring review",
            }
        )
    return opportunities


class DuplicateDetector:
    """Flags likely duplicates of an article within a corpus.

    Args:
        similarity: Engine providing cached pair metrics
        min_score: Duplicate score a pair must exceed to be flagged
    """

    def __init__(self, similarity: SimilarityEngine, min_score: float = 0.8):
        self.similarity = similarity
        self.min_score = min_score

    def analyze_pair(self, first: Article, second: Article) -> DuplicateAnalysis:
        metrics = self.similarity.metrics(first, second)
        return DuplicateAnalysis(
            title_similarity=title_similarity(first.title, second.title),
            content_similarity=(metrics.lexical + metrics.vector + metrics.semantic) / 3,
            topic_similarity=self.similarity.topic_similarity(first, second),
            structural_similarity=metrics.structural,
        )

    def detect(self, article: Article, corpus: list[Article]) -> DuplicateReport:
        candidates = []
        for other in corpus:
            if other.id == article.id:
                continue
            analysis = self.analyze_pair(article, other)
            score = analysis.score
            if score > self.min_score:
                candidates.append(
                    DuplicateCandidate(
                        article_id=other.id,
                        title=other.title,
                        duplicate_score=score,
                        analysis=analysis,
                        recommendation=duplicate_recommendation(score),
                    )
                )
        candidates.sort(key=lambda c: (-c.duplicate_score, c.article_id))
        return DuplicateReport(
            article_id=article.id,
            duplicates=candidates,
            consolidation_opportunities=consolidation_opportunities(candidates, self.min_score),
        )
