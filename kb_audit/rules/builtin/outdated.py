"""Detects content that may be stale: age, version numbers, temporal language."""

from __future__ import annotations

import re
from typing import Any

from ...core.context import ExecutionContext
from ...core.types import Issue
from ..base import BaseRule, Finding

_VERSION_PATTERNS = (
    re.compile(r"version\s+(\d+\.?\d*\.?\d*)", re.IGNORECASE),
    re.compile(r"\bv(\d+\.?\d*\.?\d*)", re.IGNORECASE),
    re.compile(r"(\d+\.?\d*\.?\d*)\s+(?:update|release)", re.IGNORECASE),
)

OUTDATED_TECHNOLOGY = (
    "internet explorer", "ie6", "ie7", "ie8", "ie9",
    "flash player", "adobe flash", "silverlight",
    "windows xp", "windows vista", "windows 7",
    "jquery 1.", "angular 1.", "angularjs",
    "php 5.", "python 2.", "node 0.", "node 6.",
    "http://",
)


class OutdatedContentRule(BaseRule):
    id = "outdated-content"
    name = "Outdated Content Detection"
    description = (
        "Identifies articles that may contain outdated information based on age, "
        "version references, and temporal language"
    )
    category = "content-quality"
    severity = "high"
    version = "1.2.0"
    tags = ("outdated", "maintenance", "freshness")
    configurable = True
    default_config = {
        "max_age_months": 12,
        "critical_age_months": 18,
        "check_version_references": True,
        "check_temporal_language": True,
        "temporal_keywords": [
            "last year", "this year", "currently", "at the moment",
            "recently", "soon", "upcoming", "latest version",
            "new feature", "beta", "coming soon",
        ],
    }

    def evaluate(self, context: ExecutionContext) -> Issue | None:
        content = context.article.content or ""
        findings: list[Finding] = []

        age = self._check_age(context.metadata.age_days)
        if age:
            findings.append(age)
        if self.config["check_version_references"]:
            findings.extend(self._check_version_references(content))
        if self.config["check_temporal_language"]:
            findings.extend(self._check_temporal_language(content))
        findings.extend(self._check_outdated_technology(content))

        return self.consolidate(findings, age_days=context.metadata.age_days)

    def _check_age(self, age_days: int) -> Finding | None:
        age_months = age_days / 30
        if age_months > self.config["critical_age_months"]:
            return Finding(
                "Critically outdated content",
                f"This article hasn't been updated in {round(age_months)} months and may "
                "contain significantly outdated information.",
                [
                    "Review and update the content immediately",
                    "Verify all information is still accurate",
                    "Update any changed procedures or features",
                    "Consider archiving if no longer relevant",
                ],
                severity="critical",
                details={"age_months": round(age_months)},
            )
        if age_months > self.config["max_age_months"]:
            return Finding(
                "Potentially outdated content",
                f"This article is {round(age_months)} months old and should be reviewed for accuracy.",
                [
                    "Review content for accuracy",
                    "Update any changed information",
                    "Refresh examples and screenshots",
                    'Update the "last reviewed" date',
                ],
                severity="high",
                details={"age_months": round(age_months)},
            )
        return None

    def _check_version_references(self, content: str) -> list[Finding]:
        for pattern in _VERSION_PATTERNS:
            matches = [match.group(0) for match in pattern.finditer(content)]
            if matches:
                return [
                    Finding(
                        "Version references detected",
                        "Content contains specific version numbers that may become outdated.",
                        [
                            "Review version references for accuracy",
                            'Consider using "latest version" instead of specific numbers',
                            "Update version numbers if they're outdated",
                            "Add a note about when version info was last checked",
                        ],
                        severity="medium",
                        details={"versions": matches[:3]},
                    )
                ]
        return []

    def _check_temporal_language(self, content: str) -> list[Finding]:
        lowered = content.lower()
        found = [keyword for keyword in self.config["temporal_keywords"] if keyword in lowered]
        if not found:
            return []
        return [
            Finding(
                "Temporal language detected",
                "Content uses time-sensitive language that may become inaccurate.",
                [
                    "Replace temporal language with specific dates",
                    "Use evergreen language where possible",
                    "Add specific update dates for time-sensitive information",
                    "Review and update temporal references regularly",
                ],
                severity="medium",
                details={"keywords": found[:5]},
            )
        ]

    def _check_outdated_technology(self, content: str) -> list[Finding]:
        lowered = content.lower()
        found = [tech for tech in OUTDATED_TECHNOLOGY if tech in lowered]
        if not found:
            return []
        return [
            Finding(
                "Outdated technology references",
                "Content references potentially outdated technologies or versions.",
                [
                    "Update technology references to current versions",
                    "Remove references to deprecated technologies",
                    "Verify all technical information is current",
                    "Consider adding browser/system requirements",
                ],
                severity="high",
                details={"technologies": found[:3]},
            )
        ]

    def validate_config(self, config: dict[str, Any]) -> bool:
        return (
            config["max_age_months"] > 0
            and config["critical_age_months"] > config["max_age_months"]
            and isinstance(config["temporal_keywords"], list)
        )
