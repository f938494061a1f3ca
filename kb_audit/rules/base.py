"""
Base class for content audit rules.

A rule inspects one ExecutionContext and returns at most one Issue. Rules
that detect several problems collect them as findings and collapse them
with ``consolidate``: the most severe finding becomes the issue and the
suggestions of all findings are merged.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
import re
from typing import Any

from ..analyzers.semantic import calculate_readability, count_syllables
from ..core.context import ExecutionContext
from ..core.types import SEVERITY_RANK, Issue
from ..errors import RuleConfigError

_URL_RE = re.compile(
    r"https?://(?:www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b[-a-zA-Z0-9()@:%_+.~#?&/=]*"
)
_MD_HEADER_RE = re.compile(r"^#+\s+(.+)$", re.MULTILINE)


@dataclass
class Finding:
    """One problem detected by a rule before consolidation."""

    message: str
    description: str
    suggestions: list[str] = field(default_factory=list)
    severity: str = "medium"
    details: dict[str, Any] = field(default_factory=dict)


class BaseRule(ABC):
    """Abstract audit rule.

    Subclasses set the class attributes below and implement ``evaluate``.
    ``default_config`` is copied per instance so config updates never leak
    between engines.
    """

    id: str = ""
    name: str = ""
    description: str = "No description provided"
    category: str = "general"
    severity: str = "medium"
    version: str = "1.0.0"
    author: str = "System"
    tags: tuple[str, ...] = ()
    dependencies: tuple[str, ...] = ()
    configurable: bool = False
    default_config: dict[str, Any] = {}
    max_suggestions: int = 6

    def __init__(self, config: Mapping[str, Any] | None = None, enabled: bool = True):
        self.enabled = enabled
        self.config: dict[str, Any] = _copy_config(self.default_config)
        if config:
            self.update_config(config)

    @abstractmethod
    def evaluate(self, context: ExecutionContext) -> Issue | None:
        """Inspect the context and return an Issue, or None when clean."""

    def validate_config(self, config: Mapping[str, Any]) -> bool:
        return True

    def update_config(self, config: Mapping[str, Any]) -> dict[str, Any]:
        """Merge ``config`` into the current configuration.

        Raises:
            RuleConfigError: If config is not a mapping, the rule is not
                configurable, or the merged config fails validation
        """
        if not isinstance(config, Mapping):
            raise RuleConfigError(self.id, "configuration must be a mapping")
        if not self.configurable:
            raise RuleConfigError(self.id, "rule is not configurable")
        unknown = sorted(set(config) - set(self.default_config))
        if unknown:
            raise RuleConfigError(self.id, f"unknown keys: {', '.join(unknown)}")
        merged = {**self.config, **config}
        try:
            valid = self.validate_config(merged)
        except (TypeError, ValueError, KeyError) as exc:
            raise RuleConfigError(self.id, str(exc)) from exc
        if not valid:
            raise RuleConfigError(self.id, "validation failed")
        self.config = merged
        return dict(self.config)

    def metadata(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "severity": self.severity,
            "enabled": self.enabled,
            "version": self.version,
            "author": self.author,
            "tags": list(self.tags),
            "dependencies": list(self.dependencies),
            "configurable": self.configurable,
            "config": _copy_config(self.config),
        }

    def create_issue(
        self,
        message: str,
        description: str | None = None,
        suggestions: list[str] | None = None,
        severity: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> Issue:
        return Issue(
            rule_id=self.id,
            rule_name=self.name,
            severity=severity or self.severity,
            category=self.category,
            message=message,
            description=description,
            suggestions=list(suggestions or []),
            details={**(details or {}), "rule_version": self.version},
        )

    def consolidate(self, findings: list[Finding], **extra_details: Any) -> Issue | None:
        """Collapse findings into one Issue led by the most severe finding.

        The sort is stable, so findings of equal severity keep detection order.
        """
        if not findings:
            return None
        ordered = sorted(findings, key=lambda f: SEVERITY_RANK.get(f.severity, 2), reverse=True)
        primary = ordered[0]
        suggestions: list[str] = []
        for finding in ordered:
            for suggestion in finding.suggestions:
                if suggestion not in suggestions:
                    suggestions.append(suggestion)
        details = {
            **primary.details,
            **extra_details,
            "total_issues_found": len(ordered),
            "all_issue_types": [finding.message for finding in ordered],
        }
        return self.create_issue(
            primary.message,
            primary.description,
            suggestions[: self.max_suggestions],
            severity=primary.severity,
            details=details,
        )

    # Helpers shared by the built-in rules.

    @staticmethod
    def extract_urls(content: str | None) -> list[str]:
        if not content:
            return []
        return _URL_RE.findall(content)

    @staticmethod
    def count_syllables(text: str | None) -> int:
        return count_syllables(text or "")

    @staticmethod
    def readability_score(content: str | None) -> float:
        if not content:
            return 0.0
        return calculate_readability(content).score

    @staticmethod
    def is_content_outdated(
        last_modified: datetime | None, threshold_days: int = 365, now: datetime | None = None
    ) -> bool:
        if last_modified is None:
            return False
        now = now or datetime.now(timezone.utc)
        if last_modified.tzinfo is None:
            last_modified = last_modified.replace(tzinfo=timezone.utc)
        return abs((now - last_modified).days) > threshold_days

    @staticmethod
    def check_basic_grammar(content: str | None) -> list[str]:
        if not content:
            return []
        problems = []
        if "  " in content:
            problems.append("Multiple consecutive spaces found")
        segments = re.split(r"[.!?]+", content)
        if len(segments) > 1 and not re.search(r"[.!?]$", content.strip()):
            problems.append("Content may be missing punctuation at the end")
        for header in _MD_HEADER_RE.findall(content):
            title = header.strip()
            if title.lower() == title and len(title) > 3:
                problems.append(f'Header "{title}" may need proper capitalization')
        return problems

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, enabled={self.enabled})"


def _copy_config(config: Mapping[str, Any]) -> dict[str, Any]:
    copied: dict[str, Any] = {}
    for key, value in config.items():
        if isinstance(value, (list, tuple)):
            copied[key] = list(value)
        elif isinstance(value, Mapping):
            copied[key] = dict(value)
        else:
            copied[key] = value
    return copied
