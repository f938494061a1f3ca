"""
Rule registry and execution pipeline.

The engine runs independent rules against one article and isolates
failures: a rule that raises (or times out) contributes exactly one
``system`` issue with severity ``error`` and never stops its siblings.
Issues are always returned in rule registration order, whether rules run
sequentially or on a thread pool.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
import time
from typing import Any, Callable

from ..config import EngineConfig
from ..core.context import Clock, ExecutionContext, utc_now
from ..core.types import (
    SEVERITY_ERROR,
    SYSTEM_CATEGORY,
    Article,
    AuditResult,
    BatchAuditResult,
    Issue,
)
from ..errors import (
    ArticleValidationError,
    DuplicateRuleError,
    RuleConfigError,
    RuleNotFoundError,
    RuleRegistrationError,
)
from ..utils.logging import log_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleInfo:
    """Registry record describing a registered rule."""

    id: str
    name: str
    description: str
    category: str
    version: str = "1.0.0"
    author: str = "System"
    tags: tuple[str, ...] = ()
    dependencies: tuple[str, ...] = ()
    registered_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "version": self.version,
            "author": self.author,
            "tags": list(self.tags),
            "dependencies": list(self.dependencies),
            "registered_at": self.registered_at.isoformat(),
        }


class RuleRegistry:
    """Metadata index of registered rules, used for discovery."""

    def __init__(self) -> None:
        self._records: dict[str, RuleInfo] = {}

    def register(self, rule: Any) -> RuleInfo:
        info = RuleInfo(
            id=rule.id,
            name=getattr(rule, "name", "") or rule.id,
            description=getattr(rule, "description", ""),
            category=getattr(rule, "category", "general") or "general",
            version=getattr(rule, "version", "1.0.0"),
            author=getattr(rule, "author", "System"),
            tags=tuple(getattr(rule, "tags", ()) or ()),
            dependencies=tuple(getattr(rule, "dependencies", ()) or ()),
        )
        self._records[info.id] = info
        return info

    def get(self, rule_id: str) -> RuleInfo | None:
        return self._records.get(rule_id)

    def all(self) -> list[RuleInfo]:
        return list(self._records.values())

    def find_by_category(self, category: str) -> list[RuleInfo]:
        return [info for info in self._records.values() if info.category == category]

    def find_by_tag(self, tag: str) -> list[RuleInfo]:
        return [info for info in self._records.values() if tag in info.tags]


class RulesEngine:
    """Registers rules and executes them against articles.

    Args:
        config: Concurrency, timeout and rule-filter strictness settings
        clock: Returns "now"; used for article age. Injectable for tests.
    """

    def __init__(self, config: EngineConfig | None = None, clock: Clock = utc_now):
        self.config = config or EngineConfig()
        self.clock = clock
        self.registry = RuleRegistry()
        self._rules: dict[str, Any] = {}

    # Registration and introspection

    def register_rule(self, rule: Any) -> None:
        """Register a rule.

        Raises:
            RuleRegistrationError: If the rule has no id or no callable evaluate
            DuplicateRuleError: If a rule with the same id is already registered
        """
        rule_id = getattr(rule, "id", None)
        if not isinstance(rule_id, str) or not rule_id.strip():
            raise RuleRegistrationError("Invalid rule: must have a non-empty id")
        if not callable(getattr(rule, "evaluate", None)):
            raise RuleRegistrationError(f"Invalid rule '{rule_id}': must have an evaluate method")
        if rule_id in self._rules:
            raise DuplicateRuleError(rule_id)
        self._rules[rule_id] = rule
        self.registry.register(rule)
        logger.debug("Registered rule %s", rule_id)

    @property
    def rule_ids(self) -> list[str]:
        return list(self._rules)

    def get_rule(self, rule_id: str) -> Any | None:
        return self._rules.get(rule_id)

    def get_rules(self) -> list[dict[str, Any]]:
        return [
            {
                "id": rule.id,
                "name": getattr(rule, "name", rule.id),
                "description": getattr(rule, "description", ""),
                "category": getattr(rule, "category", "general"),
                "severity": getattr(rule, "severity", "medium"),
                "enabled": _is_enabled(rule),
                "configurable": bool(getattr(rule, "configurable", False)),
            }
            for rule in self._rules.values()
        ]

    def get_rules_by_category(self) -> dict[str, list[dict[str, Any]]]:
        categories: dict[str, list[dict[str, Any]]] = {}
        for summary in self.get_rules():
            category = summary.pop("category") or "general"
            summary.pop("configurable")
            categories.setdefault(category, []).append(summary)
        return categories

    def find_rules_by_tag(self, tag: str) -> list[RuleInfo]:
        return self.registry.find_by_tag(tag)

    def enabled_rule_count(self) -> int:
        return sum(1 for rule in self._rules.values() if _is_enabled(rule))

    def set_rule_enabled(self, rule_id: str, enabled: bool) -> None:
        rule = self._require(rule_id)
        rule.enabled = enabled

    def update_rule_config(self, rule_id: str, config: Mapping[str, Any]) -> Any:
        """Merge config into a rule; applies to subsequent executions only.

        Raises:
            RuleNotFoundError: If no rule has this id
            RuleConfigError: If config is not a mapping or is rejected by the rule
        """
        rule = self._require(rule_id)
        if not isinstance(config, Mapping):
            raise RuleConfigError(rule_id, "configuration must be a mapping")
        updater = getattr(rule, "update_config", None)
        if not callable(updater):
            raise RuleConfigError(rule_id, "rule does not accept configuration")
        updater(config)
        log_event(logger, "Rule config updated", event="rule_config_updated", rule_id=rule_id)
        return rule

    # Execution

    def execute_rules(self, article: Article, rule_ids: Iterable[str] | None = None) -> AuditResult:
        """Evaluate enabled rules against one article.

        Args:
            article: Article to audit; must have a non-empty id
            rule_ids: Optional filter. Unknown ids are dropped with a warning
                and listed in ``AuditResult.unknown_rule_ids`` unless
                ``strict_rule_ids`` is set, in which case they raise.

        Returns:
            AuditResult with issues in rule registration order

        Raises:
            ArticleValidationError: If the article has no id
            RuleNotFoundError: For unknown ids when strict_rule_ids is enabled
        """
        validate_article(article)
        rules, unknown = self._select_rules(rule_ids)
        return self._execute(article, rules, unknown)

    def audit_multiple_articles(
        self,
        articles: Iterable[Article],
        rule_ids: Iterable[str] | None = None,
        on_complete: Callable[[Article], None] | None = None,
    ) -> BatchAuditResult:
        """Audit every article and aggregate totals; result order equals input order.

        ``on_complete`` is called once per finished article, for progress display.
        """
        articles = list(articles)
        for article in articles:
            validate_article(article)
        rules, unknown = self._select_rules(rule_ids)

        log_event(
            logger,
            "Batch audit start",
            event="batch_audit_start",
            total=len(articles),
            rules=[rule.id for rule in rules],
        )
        results = self.map_articles(
            articles, lambda article: self._execute(article, rules, unknown), on_complete
        )
        batch = BatchAuditResult(
            total_articles=len(articles),
            total_issues=sum(result.issues_found for result in results),
            results=results,
            executed_at=self.clock(),
        )
        log_event(
            logger,
            "Batch audit complete",
            event="batch_audit_complete",
            total=batch.total_articles,
            issues=batch.total_issues,
        )
        return batch

    def map_articles(
        self,
        articles: list[Article],
        fn: Callable[[Article], Any],
        on_complete: Callable[[Article], None] | None = None,
    ) -> list:
        """Apply fn to each article with bounded concurrency, keeping input order."""

        def _run(article: Article) -> Any:
            result = fn(article)
            if on_complete is not None:
                on_complete(article)
            return result

        concurrency = max(1, int(self.config.batch_concurrency))
        if concurrency == 1 or len(articles) <= 1:
            return [_run(article) for article in articles]

        results: list[Any] = [None] * len(articles)
        with ThreadPoolExecutor(max_workers=concurrency) as executor:
            future_map = {executor.submit(_run, article): idx for idx, article in enumerate(articles)}
            for future, idx in future_map.items():
                # Put result back to original index to keep output ordering stable.
                results[idx] = future.result()
        return results

    def _require(self, rule_id: str) -> Any:
        rule = self._rules.get(rule_id)
        if rule is None:
            raise RuleNotFoundError(rule_id)
        return rule

    def _select_rules(self, rule_ids: Iterable[str] | None) -> tuple[list[Any], list[str]]:
        if rule_ids is None:
            return [rule for rule in self._rules.values() if _is_enabled(rule)], []
        if isinstance(rule_ids, str):
            rule_ids = [rule_ids]

        requested = list(dict.fromkeys(rule_ids))
        unknown = [rule_id for rule_id in requested if rule_id not in self._rules]
        if unknown:
            if self.config.strict_rule_ids:
                raise RuleNotFoundError(unknown[0])
            log_event(
                logger,
                "Ignoring unknown rule ids",
                level=logging.WARNING,
                event="unknown_rule_ids",
                rule_ids=unknown,
            )
        wanted = set(requested)
        rules = [
            rule for rule_id, rule in self._rules.items() if rule_id in wanted and _is_enabled(rule)
        ]
        return rules, unknown

    def _execute(self, article: Article, rules: list[Any], unknown: list[str]) -> AuditResult:
        context = ExecutionContext.from_article(article, clock=self.clock)
        workers = max(1, int(self.config.max_workers))
        if workers == 1 and self.config.rule_timeout_seconds is None:
            outcomes = [self._run_rule(rule, context) for rule in rules]
        else:
            outcomes = self._run_rules_pooled(rules, context, workers)

        issues = [issue for issue in outcomes if issue is not None]
        return AuditResult(
            article_id=article.id,
            total_rules_executed=len(rules),
            issues_found=len(issues),
            issues=issues,
            execution_time_ms=context.elapsed_ms(),
            unknown_rule_ids=list(unknown),
        )

    def _run_rules_pooled(
        self, rules: list[Any], context: ExecutionContext, workers: int
    ) -> list[Issue | None]:
        timeout = self.config.rule_timeout_seconds
        outcomes: list[Issue | None] = [None] * len(rules)
        if timeout is not None:
            # Each rule gets its own worker so its budget starts when it is submitted.
            workers = len(rules)
        executor = ThreadPoolExecutor(max_workers=min(workers, max(1, len(rules))))
        try:
            submitted: list[tuple[Future, float]] = [
                (executor.submit(self._run_rule, rule, context), time.monotonic())
                for rule in rules
            ]
            for idx, (rule, (future, started)) in enumerate(zip(rules, submitted)):
                remaining = None
                if timeout is not None:
                    remaining = max(0.0, started + timeout - time.monotonic())
                try:
                    outcomes[idx] = future.result(timeout=remaining)
                except FutureTimeoutError:
                    future.cancel()
                    log_event(
                        logger,
                        "Rule execution timed out",
                        level=logging.ERROR,
                        event="rule_timeout",
                        rule_id=rule.id,
                        article_id=context.article.id,
                        timeout_seconds=timeout,
                    )
                    outcomes[idx] = _system_issue(
                        rule,
                        "Rule execution timed out",
                        f"Rule did not finish within {timeout} seconds",
                    )
        finally:
            # Timed-out rules may still be running; do not block on them.
            executor.shutdown(wait=False, cancel_futures=True)
        return outcomes

    def _run_rule(self, rule: Any, context: ExecutionContext) -> Issue | None:
        started = time.perf_counter()
        try:
            result = rule.evaluate(context)
        except Exception as exc:  # noqa: BLE001
            log_event(
                logger,
                "Rule execution failed",
                level=logging.ERROR,
                event="rule_failed",
                rule_id=rule.id,
                article_id=context.article.id,
                error=f"{type(exc).__name__}: {exc}",
            )
            return _system_issue(rule, "Rule execution failed", f"Failed to execute rule: {exc}")
        logger.debug(
            "Rule %s finished in %.2fms", rule.id, (time.perf_counter() - started) * 1000.0
        )
        return _normalize_result(rule, result)


def _is_enabled(rule: Any) -> bool:
    return getattr(rule, "enabled", True) is not False


def validate_article(article: Any) -> None:
    article_id = getattr(article, "id", None)
    if article_id is None or (isinstance(article_id, str) and not article_id.strip()):
        raise ArticleValidationError("Article must have a non-empty id")
    if not isinstance(getattr(article, "content", ""), (str, type(None))):
        raise ArticleValidationError(f"Article {article_id} content must be text")


def _system_issue(rule: Any, message: str, description: str) -> Issue:
    return Issue(
        rule_id=rule.id,
        rule_name=getattr(rule, "name", rule.id),
        severity=SEVERITY_ERROR,
        category=SYSTEM_CATEGORY,
        message=message,
        description=description,
        suggestions=["Check rule configuration and try again"],
    )


def _normalize_result(rule: Any, result: Any) -> Issue | None:
    if result is None:
        return None
    if isinstance(result, Issue):
        return result
    if isinstance(result, Mapping):
        return Issue(
            rule_id=rule.id,
            rule_name=getattr(rule, "name", rule.id),
            severity=result.get("severity") or getattr(rule, "severity", "medium"),
            category=getattr(rule, "category", "general"),
            message=str(result.get("message") or result.get("issue") or rule.id),
            description=result.get("description"),
            suggestions=list(result.get("suggestions") or []),
            details=dict(result.get("details") or {}),
        )
    return _system_issue(
        rule,
        "Rule execution failed",
        f"Rule returned unsupported result type {type(result).__name__}",
    )
