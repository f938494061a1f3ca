"""
Exception classes for the audit engine.

Validation errors are raised synchronously before any rule runs.
ExtractionError is internal to the analyzers and never crosses an
analyzer boundary; callers see a degraded result instead.
"""

from __future__ import annotations


class AuditError(Exception):
    """Base class for all errors raised by kb_audit."""


class RuleRegistrationError(AuditError, ValueError):
    """Raised when a rule lacks an id or an evaluate capability."""


class DuplicateRuleError(RuleRegistrationError):
    """Raised when a rule id is registered twice."""

    def __init__(self, rule_id: str):
        super().__init__(f"Rule with ID '{rule_id}' is already registered")
        self.rule_id = rule_id


class RuleNotFoundError(AuditError, LookupError):
    """Raised when a rule id is not present in the registry."""

    def __init__(self, rule_id: str):
        super().__init__(f"Rule with ID '{rule_id}' not found")
        self.rule_id = rule_id


class RuleConfigError(AuditError, ValueError):
    """Raised when a rule configuration update is malformed or rejected."""

    def __init__(self, rule_id: str, message: str):
        super().__init__(f"Invalid configuration for rule '{rule_id}': {message}")
        self.rule_id = rule_id


class ArticleValidationError(AuditError, ValueError):
    """Raised when an article cannot be audited (e.g. missing id)."""


class ExtractionError(AuditError):
    """Raised by heuristic entity extraction when it cannot process a text."""


__all__ = [
    "AuditError",
    "RuleRegistrationError",
    "DuplicateRuleError",
    "RuleNotFoundError",
    "RuleConfigError",
    "ArticleValidationError",
    "ExtractionError",
]
