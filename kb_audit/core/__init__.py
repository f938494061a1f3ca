"""
Core domain models shared by the engine and the analyzers.

This package contains data types, the per-call execution context and the
content profile builder. None of it depends on a specific analyzer.
"""

from .context import ContextMetadata, ExecutionContext
from .profile import ContentProfile, build_profile, strip_markup
from .types import Article, AuditResult, BatchAuditResult, Issue

__all__ = [
    "Article",
    "AuditResult",
    "BatchAuditResult",
    "ContentProfile",
    "ContextMetadata",
    "ExecutionContext",
    "Issue",
    "build_profile",
    "strip_markup",
]
