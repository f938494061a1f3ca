"""Tests for rule registration, execution ordering and failure isolation."""

from __future__ import annotations

import threading
import time

import pytest

from kb_audit.config import EngineConfig
from kb_audit.core.types import Article
from kb_audit.errors import (
    ArticleValidationError,
    DuplicateRuleError,
    RuleConfigError,
    RuleNotFoundError,
    RuleRegistrationError,
)
from kb_audit.rules.base import BaseRule
from kb_audit.rules.builtin import OutdatedContentRule
from kb_audit.rules.engine import RulesEngine


class StaticRule(BaseRule):
    category = "testing"

    def __init__(self, rule_id, message="found", delay=0.0, error=None, tags=(), enabled=True):
        self.id = rule_id
        self.name = f"Rule {rule_id}"
        self.tags = tuple(tags)
        self.message = message
        self.delay = delay
        self.error = error
        super().__init__(enabled=enabled)

    def evaluate(self, context):
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.message is None:
            return None
        return self.create_issue(self.message, f"{self.id} on {context.article.id}", severity="low")


class BlockingRule(StaticRule):
    def __init__(self, rule_id, release: threading.Event):
        super().__init__(rule_id)
        self.release = release

    def evaluate(self, context):
        self.release.wait(5)
        return super().evaluate(context)


def _article(article_id: str = "kb-1", content: str = "Some content.") -> Article:
    return Article(id=article_id, title="Title", content=content)


def _engine(*rules, **config) -> RulesEngine:
    engine = RulesEngine(EngineConfig(**config))
    for rule in rules:
        engine.register_rule(rule)
    return engine


def test_execute_rules_is_deterministic():
    engine = _engine(StaticRule("a"), StaticRule("b"), StaticRule("c", message=None))

    first = engine.execute_rules(_article())
    second = engine.execute_rules(_article())

    assert [issue.to_dict() for issue in first.issues] == [issue.to_dict() for issue in second.issues]
    assert [issue.rule_id for issue in first.issues] == ["a", "b"]
    assert first.total_rules_executed == 3
    assert first.issues_found == 2


def test_failing_rule_is_isolated_as_system_issue():
    engine = _engine(StaticRule("a"), StaticRule("boom", error=RuntimeError("kaput")), StaticRule("c"))

    result = engine.execute_rules(_article())

    assert [issue.rule_id for issue in result.issues] == ["a", "boom", "c"]
    failed = result.issues[1]
    assert failed.category == "system"
    assert failed.severity == "error"
    assert failed.message == "Rule execution failed"
    assert failed.description == "Failed to execute rule: kaput"
    assert failed.suggestions == ["Check rule configuration and try again"]
    assert failed.is_system


def test_parallel_execution_keeps_registration_order():
    engine = _engine(
        StaticRule("slow", delay=0.05),
        StaticRule("fast"),
        StaticRule("medium", delay=0.02),
        max_workers=3,
    )

    result = engine.execute_rules(_article())

    assert [issue.rule_id for issue in result.issues] == ["slow", "fast", "medium"]


def test_rule_timeout_becomes_system_issue():
    release = threading.Event()
    engine = _engine(
        StaticRule("a"),
        BlockingRule("stuck", release),
        StaticRule("c"),
        max_workers=3,
        rule_timeout_seconds=0.1,
    )
    try:
        result = engine.execute_rules(_article())
    finally:
        release.set()

    assert [issue.rule_id for issue in result.issues] == ["a", "stuck", "c"]
    assert result.issues[1].message == "Rule execution timed out"
    assert result.issues[1].category == "system"
    assert result.issues[0].message == "found"


def test_rule_timeout_with_single_worker_spares_siblings():
    release = threading.Event()
    engine = _engine(
        StaticRule("a"),
        BlockingRule("stuck", release),
        StaticRule("c", delay=0.02),
        rule_timeout_seconds=0.2,
    )
    try:
        result = engine.execute_rules(_article())
    finally:
        release.set()

    assert [issue.rule_id for issue in result.issues] == ["a", "stuck", "c"]
    assert [issue.message for issue in result.issues] == [
        "found",
        "Rule execution timed out",
        "found",
    ]
    assert [issue.is_system for issue in result.issues] == [False, True, False]


def test_rule_filter_runs_in_registration_order():
    engine = _engine(StaticRule("a"), StaticRule("b"), StaticRule("c"))

    result = engine.execute_rules(_article(), ["c", "a"])

    assert [issue.rule_id for issue in result.issues] == ["a", "c"]
    assert result.total_rules_executed == 2


def test_unknown_rule_ids_are_reported_not_run():
    engine = _engine(StaticRule("a"))

    result = engine.execute_rules(_article(), ["a", "missing"])

    assert result.total_rules_executed == 1
    assert result.unknown_rule_ids == ["missing"]


def test_unknown_rule_ids_raise_in_strict_mode():
    engine = _engine(StaticRule("a"), strict_rule_ids=True)

    with pytest.raises(RuleNotFoundError, match="missing"):
        engine.execute_rules(_article(), ["missing"])


def test_disabled_rules_are_skipped():
    engine = _engine(StaticRule("a"), StaticRule("b", enabled=False))

    result = engine.execute_rules(_article())

    assert result.total_rules_executed == 1
    assert [issue.rule_id for issue in result.issues] == ["a"]
    assert engine.enabled_rule_count() == 1


def test_article_without_id_is_rejected_before_rules_run():
    calls = []

    class RecordingRule(StaticRule):
        def evaluate(self, context):
            calls.append(context.article.id)
            return None

    engine = _engine(RecordingRule("a"))

    with pytest.raises(ArticleValidationError):
        engine.execute_rules(Article(id=""))
    with pytest.raises(ArticleValidationError):
        engine.audit_multiple_articles([_article("ok"), Article(id="  ")])
    assert calls == []


def test_register_rule_validation():
    engine = RulesEngine()

    class NoId:
        id = ""

        def evaluate(self, context):
            return None

    class NoEvaluate:
        id = "no-evaluate"

    with pytest.raises(RuleRegistrationError):
        engine.register_rule(NoId())
    with pytest.raises(RuleRegistrationError):
        engine.register_rule(NoEvaluate())

    engine.register_rule(StaticRule("a"))
    with pytest.raises(DuplicateRuleError):
        engine.register_rule(StaticRule("a"))
    assert engine.rule_ids == ["a"]


def test_duck_typed_rule_returning_mapping():
    class DictRule:
        id = "dict-rule"
        name = "Dict Rule"
        category = "custom"
        severity = "high"

        def evaluate(self, context):
            return {"message": "Custom finding", "suggestions": ["Fix it"]}

    engine = _engine(DictRule())

    issue = engine.execute_rules(_article()).issues[0]

    assert issue.rule_id == "dict-rule"
    assert issue.severity == "high"
    assert issue.category == "custom"
    assert issue.suggestions == ["Fix it"]


def test_update_rule_config():
    engine = _engine(OutdatedContentRule())

    engine.update_rule_config("outdated-content", {"max_age_months": 6})
    assert engine.get_rule("outdated-content").config["max_age_months"] == 6

    with pytest.raises(RuleNotFoundError):
        engine.update_rule_config("missing", {})
    with pytest.raises(RuleConfigError):
        engine.update_rule_config("outdated-content", ["not", "a", "mapping"])
    with pytest.raises(RuleConfigError):
        engine.update_rule_config("outdated-content", {"max_age_months": 0})
    with pytest.raises(RuleConfigError):
        engine.update_rule_config("outdated-content", {"no_such_key": True})
    assert engine.get_rule("outdated-content").config["max_age_months"] == 6


def test_non_configurable_rule_rejects_config():
    engine = _engine(StaticRule("a"))

    with pytest.raises(RuleConfigError, match="not configurable"):
        engine.update_rule_config("a", {"anything": 1})


def test_audit_multiple_articles_aggregates_in_order():
    engine = _engine(StaticRule("a"), StaticRule("b", delay=0.01), batch_concurrency=3)
    articles = [_article(f"kb-{idx}") for idx in range(5)]

    batch = engine.audit_multiple_articles(articles)

    assert batch.total_articles == 5
    assert [result.article_id for result in batch.results] == [a.id for a in articles]
    assert batch.total_issues == sum(result.issues_found for result in batch.results) == 10
    assert batch.executed_at is not None


def test_audit_multiple_articles_reports_progress():
    engine = _engine(StaticRule("a"))
    seen = []

    engine.audit_multiple_articles([_article("x"), _article("y")], on_complete=lambda a: seen.append(a.id))

    assert sorted(seen) == ["x", "y"]


def test_rule_discovery():
    engine = _engine(
        StaticRule("a", tags=("links",)),
        StaticRule("b", tags=("seo", "links")),
        OutdatedContentRule(),
    )

    by_category = engine.get_rules_by_category()
    assert [rule["id"] for rule in by_category["testing"]] == ["a", "b"]
    assert [rule["id"] for rule in by_category["content-quality"]] == ["outdated-content"]
    assert [info.id for info in engine.find_rules_by_tag("links")] == ["a", "b"]
    assert engine.get_rule("missing") is None
    assert engine.get_rules()[2]["configurable"] is True
