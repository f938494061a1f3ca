"""
Multi-metric content similarity between article pairs.

Four independent metrics are computed from content profiles and structure
counts, then combined with fixed weights:

    score = 0.3 * lexical + 0.3 * vector + 0.3 * semantic + 0.1 * structural

Pairs are always processed in canonical (sorted id) order so every metric
is symmetric and each pair is computed and cached once.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
import logging
import math
from typing import Any, Callable

from rapidfuzz import fuzz

from ..cache import AnalysisCache, pair_key
from ..core.profile import ContentProfile, build_profile
from ..core.types import Article
from ..errors import ExtractionError
from .semantic import SemanticAnalyzer, overlap
from .structure import StructuralAnalyzer, StructuralReport

logger = logging.getLogger(__name__)

LEXICAL_WEIGHT = 0.3
VECTOR_WEIGHT = 0.3
SEMANTIC_WEIGHT = 0.3
STRUCTURAL_WEIGHT = 0.1

MERGE_CANDIDATE_SCORE = 0.9
REVIEW_OVERLAP_SCORE = 0.7
STRUCTURAL_STANDARDIZATION_SCORE = 0.8


@dataclass(frozen=True)
class SimilarityMetrics:
    """Component similarity scores, each in [0, 1].

    Attributes:
        lexical: Jaccard overlap of stem sets
        vector: Cosine of term-frequency vectors
        semantic: Mean overlap of topics, people and places
        structural: Mean relative agreement of heading/list/image counts
        semantic_degraded: True when semantic fell back to raw-text similarity
    """

    lexical: float
    vector: float
    semantic: float
    structural: float
    semantic_degraded: bool = False

    @property
    def score(self) -> float:
        total = (
            LEXICAL_WEIGHT * self.lexical
            + VECTOR_WEIGHT * self.vector
            + SEMANTIC_WEIGHT * self.semantic
            + STRUCTURAL_WEIGHT * self.structural
        )
        return _clamp(total)

    def to_dict(self) -> dict[str, Any]:
        return {
            "jaccard_similarity": self.lexical,
            "cosine_similarity": self.vector,
            "semantic_similarity": self.semantic,
            "structural_similarity": self.structural,
            "semantic_degraded": self.semantic_degraded,
        }


@dataclass(frozen=True)
class SimilarityResult:
    """Similarity of one article pair; ``pair`` is in sorted id order.

    ``topic_similarity`` is the overlap of extracted topics, kept for duplicate
    detection; it is 0 when extraction was degraded.
    """

    pair: tuple[str, str]
    metrics: SimilarityMetrics
    score: float
    topic_similarity: float = 0.0
    recommendations: tuple[dict[str, Any], ...] = ()


@dataclass
class SimilarityMatch:
    article_id: str
    title: str
    similarity_score: float
    metrics: SimilarityMetrics
    recommendations: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "article_id": self.article_id,
            "title": self.title,
            "similarity_score": self.similarity_score,
            "metrics": self.metrics.to_dict(),
            "recommendations": [dict(rec) for rec in self.recommendations],
        }


@dataclass
class SimilarityReport:
    article_id: str
    threshold: float
    similarities: list[SimilarityMatch] = field(default_factory=list)

    @property
    def similar_articles_found(self) -> int:
        return len(self.similarities)

    def to_dict(self) -> dict[str, Any]:
        return {
            "article_id": self.article_id,
            "similar_articles_found": self.similar_articles_found,
            "similarities": [match.to_dict() for match in self.similarities],
            "analysis_config": {
                "threshold": self.threshold,
                "metrics_used": ["jaccard", "cosine", "semantic", "structural"],
            },
        }


def jaccard_similarity(first: ContentProfile, second: ContentProfile) -> float:
    a = set(first.stemmed_tokens)
    b = set(second.stemmed_tokens)
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def cosine_similarity(first: ContentProfile, second: ContentProfile) -> float:
    counts_a = Counter(first.tokens)
    counts_b = Counter(second.tokens)
    vocabulary = sorted(set(counts_a) | set(counts_b))
    dot = sum(counts_a[word] * counts_b[word] for word in vocabulary)
    magnitude_a = math.sqrt(sum(value * value for value in counts_a.values()))
    magnitude_b = math.sqrt(sum(value * value for value in counts_b.values()))
    if not magnitude_a or not magnitude_b:
        return 0.0
    return _clamp(dot / (magnitude_a * magnitude_b))


def structural_similarity(first: StructuralReport, second: StructuralReport) -> float:
    ratios = []
    for count_a, count_b in zip(first.element_counts(), second.element_counts()):
        ratios.append(1 - abs(count_a - count_b) / max(count_a, count_b, 1))
    return sum(ratios) / len(ratios)


def raw_text_similarity(first: str, second: str) -> float:
    """Normalized edit-distance ratio in [0, 1]."""
    return fuzz.ratio(first, second) / 100.0


def recommendations_for(score: float, metrics: SimilarityMetrics) -> list[dict[str, Any]]:
    recommendations: list[dict[str, Any]] = []
    if score > MERGE_CANDIDATE_SCORE:
        recommendations.append(
            {
                "type": "merge_candidates",
                "priority": "high",
                "action": "Consider merging these articles as they are nearly identical",
                "confidence": 0.9,
            }
        )
    elif score > REVIEW_OVERLAP_SCORE:
        recommendations.append(
            {
                "type": "review_overlap",
                "priority": "medium",
                "action": "Review articles for content overlap and potential consolidation",
                "confidence": 0.8,
            }
        )
    if metrics.structural > STRUCTURAL_STANDARDIZATION_SCORE:
        recommendations.append(
            {
                "type": "structural_standardization",
                "priority": "low",
                "action": "Consider standardizing structure across similar articles",
                "confidence": 0.7,
            }
        )
    return recommendations


class SimilarityEngine:
    """Computes and caches pairwise similarity.

    Args:
        semantic: Analyzer used for entity extraction
        structure_of: Callable returning the StructuralReport of an article.
            Defaults to an uncached StructuralAnalyzer.
        cache: Pair-keyed result cache; a private one is created if omitted
        threshold: Aggregate score a pair must exceed to be reported
    """

    def __init__(
        self,
        semantic: SemanticAnalyzer | None = None,
        structure_of: Callable[[Article], StructuralReport] | None = None,
        cache: AnalysisCache[SimilarityResult] | None = None,
        threshold: float = 0.7,
    ):
        self.semantic = semantic or SemanticAnalyzer()
        self.structure_of = structure_of or StructuralAnalyzer().analyze
        self.cache = cache if cache is not None else AnalysisCache("similarity")
        self.threshold = threshold

    def compare(self, first: Article, second: Article) -> SimilarityResult:
        """Return the cached similarity for a pair, computing it on first use."""
        key = pair_key(first.id, second.id)
        if first.id == key[0]:
            ordered = (first, second)
        else:
            ordered = (second, first)
        return self.cache.get_or_compute(key, lambda: self._compute(key, *ordered))

    def metrics(self, first: Article, second: Article) -> SimilarityMetrics:
        return self.compare(first, second).metrics

    def analyze(self, article: Article, corpus: list[Article]) -> SimilarityReport:
        """Compare an article against a corpus and report pairs above threshold.

        The article itself (same id) is skipped. Matches are sorted by
        descending score, ties broken by article id.
        """
        matches = []
        for other in corpus:
            if other.id == article.id:
                continue
            result = self.compare(article, other)
            if result.score > self.threshold:
                matches.append(
                    SimilarityMatch(
                        article_id=other.id,
                        title=other.title,
                        similarity_score=result.score,
                        metrics=result.metrics,
                        recommendations=[dict(rec) for rec in result.recommendations],
                    )
                )
        matches.sort(key=lambda match: (-match.similarity_score, match.article_id))
        return SimilarityReport(article_id=article.id, threshold=self.threshold, similarities=matches)

    def topic_similarity(self, first: Article, second: Article) -> float:
        """Overlap of extracted topics from the cached pair result."""
        return self.compare(first, second).topic_similarity

    def _compute(self, key: tuple[str, str], first: Article, second: Article) -> SimilarityResult:
        profile_a = build_profile(first.content)
        profile_b = build_profile(second.content)
        semantic, topics, degraded = self._semantic_similarity(key, profile_a, profile_b)
        metrics = SimilarityMetrics(
            lexical=jaccard_similarity(profile_a, profile_b),
            vector=cosine_similarity(profile_a, profile_b),
            semantic=semantic,
            structural=structural_similarity(self.structure_of(first), self.structure_of(second)),
            semantic_degraded=degraded,
        )
        score = metrics.score
        return SimilarityResult(
            pair=key,
            metrics=metrics,
            score=score,
            topic_similarity=topics,
            recommendations=tuple(recommendations_for(score, metrics)),
        )

    def _semantic_similarity(
        self, key: tuple[str, str], first: ContentProfile, second: ContentProfile
    ) -> tuple[float, float, bool]:
        """Return (semantic similarity, topic overlap, degraded)."""
        try:
            entities_a = self.semantic.extract(first.plain_text)
            entities_b = self.semantic.extract(second.plain_text)
        except ExtractionError as exc:
            logger.warning(
                "Semantic similarity degraded for %s/%s: %s",
                key[0],
                key[1],
                exc,
                extra={"event": "similarity_semantic_degraded", "pair": list(key)},
            )
            return _clamp(raw_text_similarity(first.raw_text, second.raw_text)), 0.0, True
        topics = overlap(entities_a.topics, entities_b.topics)
        value = (
            topics
            + overlap(entities_a.people, entities_b.people)
            + overlap(entities_a.places, entities_b.places)
        ) / 3
        return _clamp(value), topics, False


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))
