"""Built-in audit rules, in default registration order."""

from .duplicate_content import DuplicateContentRule
from .links import BrokenLinksRule
from .outdated import OutdatedContentRule
from .quality import ContentQualityRule
from .seo import SEOOptimizationRule

BUILTIN_RULES = (
    OutdatedContentRule,
    BrokenLinksRule,
    ContentQualityRule,
    DuplicateContentRule,
    SEOOptimizationRule,
)

__all__ = [
    "BUILTIN_RULES",
    "BrokenLinksRule",
    "ContentQualityRule",
    "DuplicateContentRule",
    "OutdatedContentRule",
    "SEOOptimizationRule",
]
