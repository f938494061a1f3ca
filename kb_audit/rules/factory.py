"""Builds the statically-configured engine used by the CLI and the runner."""

from __future__ import annotations

import logging

from ..analyzers.advanced import AdvancedRulesEngine
from ..config import AppConfig
from ..core.context import Clock, utc_now
from ..utils.logging import log_event
from .base import BaseRule
from .builtin import BUILTIN_RULES

logger = logging.getLogger(__name__)


def build_default_rules(cfg: AppConfig) -> list[BaseRule]:
    """Instantiate the built-in rules with config overrides and disabled flags applied.

    Raises:
        RuleConfigError: If an override is rejected by its rule
    """
    known = {rule_cls.id for rule_cls in BUILTIN_RULES}
    for rule_id in sorted(set(cfg.rules.overrides) - known):
        logger.warning("Ignoring config override for unknown rule %s", rule_id)
    for rule_id in sorted(set(cfg.rules.disabled) - known):
        logger.warning("Ignoring disabled entry for unknown rule %s", rule_id)

    disabled = set(cfg.rules.disabled)
    rules = []
    for rule_cls in BUILTIN_RULES:
        rules.append(
            rule_cls(
                config=cfg.rules.overrides.get(rule_cls.id),
                enabled=rule_cls.id not in disabled,
            )
        )
    return rules


def build_engine(
    cfg: AppConfig,
    engine_cls: type[AdvancedRulesEngine] = AdvancedRulesEngine,
    clock: Clock = utc_now,
) -> AdvancedRulesEngine:
    """Create an engine from config and register every built-in rule."""
    engine = engine_cls(
        cfg.engine,
        similarity_threshold=cfg.similarity.threshold,
        duplicate_min_score=cfg.duplicates.min_score,
        semantic_config=cfg.semantic,
        clock=clock,
    )
    for rule in build_default_rules(cfg):
        engine.register_rule(rule)
    log_event(
        logger,
        "Engine ready",
        event="engine_ready",
        rules=engine.rule_ids,
        disabled=sorted(set(cfg.rules.disabled) & set(engine.rule_ids)),
        max_workers=cfg.engine.max_workers,
    )
    return engine
