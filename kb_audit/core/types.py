"""
Core data types for the audit engine.

This module defines the records passed between the engine and its callers:
- Article: Immutable knowledge-base article under audit
- Issue: One finding produced by a rule (or by rule-failure isolation)
- AuditResult: All findings for one article
- BatchAuditResult: Aggregated findings for a set of articles
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

SEVERITY_LOW = "low"
SEVERITY_MEDIUM = "medium"
SEVERITY_HIGH = "high"
SEVERITY_CRITICAL = "critical"
SEVERITY_ERROR = "error"

SEVERITIES = (SEVERITY_LOW, SEVERITY_MEDIUM, SEVERITY_HIGH, SEVERITY_CRITICAL, SEVERITY_ERROR)

# Ordering used when a rule collapses several findings into one issue.
SEVERITY_RANK = {
    SEVERITY_LOW: 1,
    SEVERITY_MEDIUM: 2,
    SEVERITY_HIGH: 3,
    SEVERITY_CRITICAL: 4,
    SEVERITY_ERROR: 5,
}

SYSTEM_CATEGORY = "system"


@dataclass(frozen=True)
class Article:
    """A knowledge-base article as read from the content store.

    Attributes:
        id: Unique article identifier
        title: Article headline
        content: Raw marked-up content (HTML and/or Markdown)
        category: Content category label
        tags: Tag set, order irrelevant
        last_modified: Last modification timestamp, if known
        description: Optional meta description
        excerpt: Optional short excerpt, accepted in place of a description
        url: Optional public URL
    """

    id: str
    title: str = ""
    content: str = ""
    category: str = ""
    tags: frozenset[str] = field(default_factory=frozenset)
    last_modified: datetime | None = None
    description: str | None = None
    excerpt: str | None = None
    url: str | None = None


@dataclass
class Issue:
    """A single audit finding.

    Attributes:
        rule_id: Id of the rule that produced the issue
        rule_name: Display name of that rule
        severity: One of low, medium, high, critical, error
        category: Rule category, or "system" for rule failures
        message: Short issue title
        description: Longer explanation
        suggestions: Suggested fixes, most relevant first
        details: Rule-specific structured data
    """

    rule_id: str
    rule_name: str
    severity: str
    category: str
    message: str
    description: str | None = None
    suggestions: list[str] = field(default_factory=list)
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def is_system(self) -> bool:
        return self.category == SYSTEM_CATEGORY

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "rule_name": self.rule_name,
            "severity": self.severity,
            "category": self.category,
            "message": self.message,
            "description": self.description,
            "suggestions": list(self.suggestions),
            "details": dict(self.details),
        }


@dataclass
class AuditResult:
    """Findings for one article.

    Attributes:
        article_id: Id of the audited article
        total_rules_executed: Number of rules evaluated
        issues_found: Number of issues in ``issues``
        issues: Issues in rule registration order
        execution_time_ms: Wall-clock duration of the audit
        unknown_rule_ids: Requested rule ids that are not registered
    """

    article_id: str
    total_rules_executed: int
    issues_found: int
    issues: list[Issue] = field(default_factory=list)
    execution_time_ms: float = 0.0
    unknown_rule_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "article_id": self.article_id,
            "total_rules_executed": self.total_rules_executed,
            "issues_found": self.issues_found,
            "issues": [issue.to_dict() for issue in self.issues],
            "execution_time_ms": self.execution_time_ms,
            "unknown_rule_ids": list(self.unknown_rule_ids),
        }


@dataclass
class BatchAuditResult:
    """Aggregated findings for a set of articles, in input order."""

    total_articles: int
    total_issues: int
    results: list[AuditResult] = field(default_factory=list)
    executed_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_articles": self.total_articles,
            "total_issues": self.total_issues,
            "results": [result.to_dict() for result in self.results],
            "executed_at": self.executed_at.isoformat() if self.executed_at else None,
        }
