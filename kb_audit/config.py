"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- EngineConfig: Rule execution concurrency and timeouts
- SimilarityConfig: Similarity reporting threshold
- DuplicateConfig: Duplicate flagging threshold
- SemanticConfig: Entity extraction limits
- RulesConfig: Disabled rules and per-rule config overrides
- OutputConfig: Report output settings
- LoggingConfig: Logging behavior
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import yaml


@dataclass
class EngineConfig:
    """Configuration for the rule execution engine.

    Attributes:
        max_workers: Number of threads used to evaluate rules for one article.
            1 evaluates rules sequentially in the calling thread.
        rule_timeout_seconds: Optional per-rule timeout. Expiry is reported as
            a system issue instead of aborting the audit.
        batch_concurrency: Number of articles audited in parallel by batch calls
        strict_rule_ids: Raise on unknown ids in a rule filter instead of
            dropping them with a warning
    """

    max_workers: int = 1
    rule_timeout_seconds: float | None = None
    batch_concurrency: int = 1
    strict_rule_ids: bool = False


@dataclass
class SimilarityConfig:
    """Configuration for content similarity.

    Attributes:
        threshold: Aggregate score (0-1) a pair must exceed to be reported
    """

    threshold: float = 0.7


@dataclass
class DuplicateConfig:
    """Configuration for duplicate detection.

    Attributes:
        min_score: Duplicate score (0-1) a pair must exceed to be flagged
    """

    min_score: float = 0.8


@dataclass
class SemanticConfig:
    """Configuration for heuristic entity extraction.

    Attributes:
        max_extraction_chars: Texts longer than this are not extracted and the
            analyzers fall back to degraded results
        max_topics: Maximum number of keyword topics kept per article
    """

    max_extraction_chars: int = 200000
    max_topics: int = 10


@dataclass
class RulesConfig:
    """Configuration for built-in rules.

    Attributes:
        disabled: Rule ids registered but disabled
        overrides: Per-rule config overrides keyed by rule id
    """

    disabled: list[str] = field(default_factory=list)
    overrides: dict[str, dict[str, Any]] = field(default_factory=dict)


@dataclass
class OutputConfig:
    """Configuration for output generation.

    Attributes:
        format: Primary report format, "markdown" or "html"
        include_html: Whether to also write report.html when format is "markdown"
        include_json: Whether to write the raw results as report.json
    """

    format: str = "markdown"
    include_html: bool = False
    include_json: bool = True


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the main log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = True
    format: str = "jsonl"
    filename: str = "run.jsonl"


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    engine: EngineConfig = field(default_factory=EngineConfig)
    similarity: SimilarityConfig = field(default_factory=SimilarityConfig)
    duplicates: DuplicateConfig = field(default_factory=DuplicateConfig)
    semantic: SemanticConfig = field(default_factory=SemanticConfig)
    rules: RulesConfig = field(default_factory=RulesConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


DEFAULT_CONFIG = AppConfig()


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return _fromdict(_asdict(DEFAULT_CONFIG))

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"Invalid config file {path}: expected a mapping at top level")

    return _merge_config(DEFAULT_CONFIG, raw)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = _asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update(value)
        else:
            data[key] = value
    return _fromdict(data)


def _asdict(cfg: AppConfig) -> dict[str, Any]:
    """Convert AppConfig to nested dictionary."""
    return {
        "engine": {
            "max_workers": cfg.engine.max_workers,
            "rule_timeout_seconds": cfg.engine.rule_timeout_seconds,
            "batch_concurrency": cfg.engine.batch_concurrency,
            "strict_rule_ids": cfg.engine.strict_rule_ids,
        },
        "similarity": {
            "threshold": cfg.similarity.threshold,
        },
        "duplicates": {
            "min_score": cfg.duplicates.min_score,
        },
        "semantic": {
            "max_extraction_chars": cfg.semantic.max_extraction_chars,
            "max_topics": cfg.semantic.max_topics,
        },
        "rules": {
            "disabled": list(cfg.rules.disabled),
            "overrides": {key: dict(value) for key, value in cfg.rules.overrides.items()},
        },
        "output": {
            "format": cfg.output.format,
            "include_html": cfg.output.include_html,
            "include_json": cfg.output.include_json,
        },
        "logging": {
            "level": cfg.logging.level,
            "console": cfg.logging.console,
            "file": cfg.logging.file,
            "format": cfg.logging.format,
            "filename": cfg.logging.filename,
        },
    }


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    rules_data = data.get("rules", {})

    return AppConfig(
        engine=EngineConfig(**data["engine"]),
        similarity=SimilarityConfig(**data["similarity"]),
        duplicates=DuplicateConfig(**data["duplicates"]),
        semantic=SemanticConfig(**data["semantic"]),
        rules=RulesConfig(
            disabled=list(rules_data.get("disabled") or []),
            overrides=dict(rules_data.get("overrides") or {}),
        ),
        output=OutputConfig(**data["output"]),
        logging=LoggingConfig(**data["logging"]),
    )
