"""Rule contract and execution engine.

Built-in rules live in ``kb_audit.rules.builtin``; ``kb_audit.rules.factory``
wires them into a configured engine.
"""

from .base import BaseRule, Finding
from .engine import RuleInfo, RulesEngine

__all__ = ["BaseRule", "Finding", "RuleInfo", "RulesEngine"]
