"""
Text analyzers used by the advanced engine.

The advanced orchestrator lives in ``kb_audit.analyzers.advanced`` and is
imported from there so that importing the analyzers never pulls in the rule
engine.
"""

from .duplicates import DuplicateDetector, DuplicateReport
from .semantic import SemanticAnalyzer, SemanticReport, calculate_readability
from .similarity import SimilarityEngine, SimilarityReport
from .structure import StructuralAnalyzer, StructuralReport

__all__ = [
    "DuplicateDetector",
    "DuplicateReport",
    "SemanticAnalyzer",
    "SemanticReport",
    "SimilarityEngine",
    "SimilarityReport",
    "StructuralAnalyzer",
    "StructuralReport",
    "calculate_readability",
]
