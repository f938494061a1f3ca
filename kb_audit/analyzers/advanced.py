"""
Advanced analysis orchestrator.

AdvancedRulesEngine extends the rule engine with similarity, structural,
semantic, readability and duplicate analyses, and merges everything for one
article into an AdvancedReport with a confidence score. The only state kept
between calls is the pair of engine-owned caches; ``clear_caches`` is the
one way to invalidate them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
import logging
import time
from typing import Any, Callable, Iterable

from ..cache import AnalysisCache
from ..config import EngineConfig, SemanticConfig
from ..core.context import Clock, utc_now
from ..core.types import Article, AuditResult
from ..rules.engine import RulesEngine, validate_article
from ..utils.logging import log_event
from .duplicates import DuplicateDetector, DuplicateReport
from .semantic import ReadabilityReport, SemanticAnalyzer, SemanticReport, calculate_readability
from .similarity import SimilarityEngine, SimilarityReport, SimilarityResult
from .structure import StructuralAnalyzer, StructuralReport

logger = logging.getLogger(__name__)

COVERAGE_WEIGHT = 0.7
BALANCE_WEIGHT = 0.3
BALANCED_ISSUE_COUNT = 10
NO_ISSUE_BALANCE = 0.5


@dataclass
class AnalysisMetadata:
    processing_time_ms: float
    confidence_score: float
    cache_sizes: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "analysis_type": "advanced",
            "processing_time_ms": self.processing_time_ms,
            "confidence_score": self.confidence_score,
            "cache_sizes": dict(self.cache_sizes),
        }


@dataclass
class AdvancedReport:
    """Rule findings plus every analyzer output for one article."""

    audit: AuditResult
    similarity: SimilarityReport
    structure: StructuralReport
    semantic: SemanticReport
    duplicates: DuplicateReport
    readability: ReadabilityReport
    metadata: AnalysisMetadata

    @property
    def article_id(self) -> str:
        return self.audit.article_id

    def to_dict(self) -> dict[str, Any]:
        data = self.audit.to_dict()
        data["advanced_analysis"] = {
            "content_similarity": self.similarity.to_dict(),
            "structural_analysis": self.structure.to_dict(),
            "semantic_analysis": self.semantic.to_dict(),
            "duplicate_detection": self.duplicates.to_dict(),
            "readability_analysis": self.readability.to_dict(),
        }
        data["analysis_metadata"] = self.metadata.to_dict()
        return data


@dataclass
class BatchAdvancedReport:
    total_articles: int
    results: list[AdvancedReport] = field(default_factory=list)
    similarity_enabled: bool = True
    processing_time_ms: float = 0.0
    average_confidence: float = 0.0
    batch_concurrency: int = 1
    executed_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_articles": self.total_articles,
            "results": [report.to_dict() for report in self.results],
            "batch_metadata": {
                "similarity_enabled": self.similarity_enabled,
                "processing_time_ms": self.processing_time_ms,
                "average_confidence": self.average_confidence,
                "batch_concurrency": self.batch_concurrency,
            },
            "executed_at": self.executed_at.isoformat() if self.executed_at else None,
        }


class AdvancedRulesEngine(RulesEngine):
    """Rule engine with cached multi-metric content analysis.

    Args:
        config: Engine execution settings
        similarity_threshold: Aggregate score a pair must exceed to be reported
        duplicate_min_score: Duplicate score a pair must exceed to be flagged
        semantic_config: Entity extraction limits
        clock: Returns "now"; used for article age
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        similarity_threshold: float = 0.7,
        duplicate_min_score: float = 0.8,
        semantic_config: SemanticConfig | None = None,
        clock: Clock = utc_now,
    ):
        super().__init__(config, clock=clock)
        semantic_config = semantic_config or SemanticConfig()
        self.structural_cache: AnalysisCache[StructuralReport] = AnalysisCache("structural")
        self.similarity_cache: AnalysisCache[SimilarityResult] = AnalysisCache("similarity")
        self.structural_analyzer = StructuralAnalyzer()
        self.semantic_analyzer = SemanticAnalyzer(
            max_extraction_chars=semantic_config.max_extraction_chars,
            max_topics=semantic_config.max_topics,
        )
        self.similarity = SimilarityEngine(
            semantic=self.semantic_analyzer,
            structure_of=self.analyze_structural_issues,
            cache=self.similarity_cache,
            threshold=similarity_threshold,
        )
        self.duplicate_detector = DuplicateDetector(self.similarity, min_score=duplicate_min_score)

    def analyze_content_similarity(self, article: Article, corpus: Iterable[Article]) -> SimilarityReport:
        return self.similarity.analyze(article, list(corpus))

    def analyze_structural_issues(self, article: Article) -> StructuralReport:
        """Structural report for an article, cached by article id."""
        return self.structural_cache.get_or_compute(
            article.id, lambda: self.structural_analyzer.analyze(article)
        )

    def analyze_semantic_content(self, article: Article) -> SemanticReport:
        return self.semantic_analyzer.analyze(article)

    def analyze_readability(self, article: Article) -> ReadabilityReport:
        return calculate_readability(article.content or "")

    def enhanced_duplicate_detection(self, article: Article, corpus: Iterable[Article]) -> DuplicateReport:
        return self.duplicate_detector.detect(article, list(corpus))

    def calculate_confidence(self, result: AuditResult) -> float:
        """Confidence from rule coverage and issue-count balance, in [0, 1].

        coverage = executed / enabled registered rules (capped at 1);
        balance = min(issues / 10, 1), or 0.5 when nothing was found.
        """
        enabled = self.enabled_rule_count()
        coverage = min(result.total_rules_executed / enabled, 1.0) if enabled else 0.0
        if result.issues_found > 0:
            balance = min(result.issues_found / BALANCED_ISSUE_COUNT, 1.0)
        else:
            balance = NO_ISSUE_BALANCE
        return COVERAGE_WEIGHT * coverage + BALANCE_WEIGHT * balance

    def cache_sizes(self) -> dict[str, int]:
        return {"similarity": len(self.similarity_cache), "structural": len(self.structural_cache)}

    def analyze_article_advanced(
        self,
        article: Article,
        corpus: Iterable[Article] = (),
        rule_ids: Iterable[str] | None = None,
    ) -> AdvancedReport:
        """Run rules and every analyzer for one article against a corpus."""
        started = time.perf_counter()
        corpus = list(corpus)
        audit = self.execute_rules(article, rule_ids)
        report = AdvancedReport(
            audit=audit,
            similarity=self.analyze_content_similarity(article, corpus),
            structure=self.analyze_structural_issues(article),
            semantic=self.analyze_semantic_content(article),
            duplicates=self.enhanced_duplicate_detection(article, corpus),
            readability=self.analyze_readability(article),
            metadata=AnalysisMetadata(
                processing_time_ms=0.0,
                confidence_score=self.calculate_confidence(audit),
            ),
        )
        report.metadata.processing_time_ms = (time.perf_counter() - started) * 1000.0
        report.metadata.cache_sizes = self.cache_sizes()
        return report

    def batch_analyze_advanced(
        self,
        articles: Iterable[Article],
        enable_similarity: bool = True,
        rule_ids: Iterable[str] | None = None,
        on_complete: Callable[[Article], None] | None = None,
    ) -> BatchAdvancedReport:
        """Analyze each article against the rest of the batch.

        With ``enable_similarity`` off, every article is analyzed against an
        empty corpus. Results keep input order.
        """
        articles = list(articles)
        for article in articles:
            validate_article(article)
        log_event(
            logger,
            "Advanced batch start",
            event="advanced_batch_start",
            total=len(articles),
            similarity_enabled=enable_similarity,
        )

        def _analyze(article: Article) -> AdvancedReport:
            corpus = [other for other in articles if other.id != article.id] if enable_similarity else []
            return self.analyze_article_advanced(article, corpus, rule_ids)

        results = self.map_articles(articles, _analyze, on_complete)
        total_time = sum(report.metadata.processing_time_ms for report in results)
        average = (
            sum(report.metadata.confidence_score for report in results) / len(results)
            if results
            else 0.0
        )
        batch = BatchAdvancedReport(
            total_articles=len(articles),
            results=results,
            similarity_enabled=enable_similarity,
            processing_time_ms=total_time,
            average_confidence=average,
            batch_concurrency=max(1, int(self.config.batch_concurrency)),
            executed_at=self.clock(),
        )
        log_event(
            logger,
            "Advanced batch complete",
            event="advanced_batch_complete",
            total=batch.total_articles,
            average_confidence=round(average, 4),
            processing_time_ms=round(total_time, 2),
        )
        return batch

    def clear_caches(self) -> dict[str, int]:
        """Empty both caches and return the number of entries removed from each."""
        cleared = {
            "similarity": self.similarity_cache.clear(),
            "structural": self.structural_cache.clear(),
        }
        log_event(logger, "Analysis caches cleared", event="cache_cleared", cleared=cleared)
        return cleared
