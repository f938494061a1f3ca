"""
Report rendering for Markdown, HTML and JSON output.

HTML uses a Jinja2 template; Markdown is formatted directly. Articles are
grouped by category, larger groups first, and each article lists its
issues in rule registration order.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from datetime import datetime, timezone
import json
from pathlib import Path
from typing import Any, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..analyzers.advanced import AdvancedReport, BatchAdvancedReport
from ..core.types import SEVERITIES, Article, AuditResult, BatchAuditResult

Batch = Union[BatchAuditResult, BatchAdvancedReport]


def _slugify(value: str) -> str:
    """Convert a string to a URL-safe slug.

    Examples:
        >>> _slugify("Getting Started!")
        "getting-started"
    """
    lowered = value.strip().lower()
    cleaned = []
    last_dash = False
    for ch in lowered:
        if ch.isalnum():
            cleaned.append(ch)
            last_dash = False
        else:
            if not last_dash:
                cleaned.append("-")
                last_dash = True
    slug = "".join(cleaned).strip("-")
    return slug or "section"


def _entries(batch: Batch, articles: dict[str, Article]) -> list[dict[str, Any]]:
    entries = []
    for item in batch.results:
        if isinstance(item, AdvancedReport):
            audit, advanced = item.audit, item
        else:
            audit, advanced = item, None
        article = articles.get(audit.article_id)
        entries.append(
            {
                "article": article,
                "title": (article.title if article else "") or audit.article_id,
                "category": (article.category if article else "") or "uncategorized",
                "audit": audit,
                "advanced": advanced,
            }
        )
    return entries


def _group(entries: list[dict[str, Any]]) -> list[tuple[str, list[dict[str, Any]]]]:
    grouped = defaultdict(list)
    for entry in entries:
        grouped[entry["category"]].append(entry)
    return sorted(grouped.items(), key=lambda item: (-len(item[1]), item[0].lower()))


def _audits(batch: Batch) -> list[AuditResult]:
    return [item.audit if isinstance(item, AdvancedReport) else item for item in batch.results]


def severity_counts(batch: Batch) -> dict[str, int]:
    """Issue counts per severity, in severity order, omitting zeros."""
    counts = Counter(issue.severity for audit in _audits(batch) for issue in audit.issues)
    return {severity: counts[severity] for severity in SEVERITIES if counts[severity]}


def total_issues(batch: Batch) -> int:
    return sum(audit.issues_found for audit in _audits(batch))


def _timestamp(batch: Batch) -> str:
    executed_at = batch.executed_at or datetime.now(timezone.utc)
    return executed_at.strftime("%Y-%m-%d %H:%M UTC")


def render_html(batch: Batch, articles: dict[str, Article], output_path: Path, title: str) -> None:
    """Render audit results as an HTML report using the Jinja2 template.

    Args:
        batch: Rule-only or advanced batch results
        articles: Audited articles keyed by id, used for titles and categories
        output_path: Where to write the HTML file
        title: Report title
    """
    env = Environment(
        loader=FileSystemLoader(str(Path(__file__).parent / "templates")),
        autoescape=select_autoescape(["html"]),
    )
    template = env.get_template("report.html")

    used_ids: dict[str, int] = {}
    groups = []
    for group_name, items in _group(_entries(batch, articles)):
        base_id = _slugify(group_name)
        count = used_ids.get(base_id, 0)
        used_ids[base_id] = count + 1
        group_id = f"{base_id}-{count + 1}" if count else base_id
        enriched = [
            dict(item, anchor=f"{group_id}-{_slugify(item['audit'].article_id)}") for item in items
        ]
        groups.append({"id": group_id, "name": group_name, "articles": enriched, "count": len(items)})

    html = template.render(
        title=title,
        generated_at=_timestamp(batch),
        groups=groups,
        total=batch.total_articles,
        total_issues=total_issues(batch),
        severity_counts=severity_counts(batch),
    )
    output_path.write_text(html, encoding="utf-8")


def render_markdown(batch: Batch, articles: dict[str, Article], output_path: Path, title: str) -> None:
    """Render audit results as a Markdown report."""
    lines = [
        f"# {title}",
        "",
        f"Generated: {_timestamp(batch)}",
        f"Articles: {batch.total_articles}",
        f"Issues: {total_issues(batch)}",
    ]
    counts = severity_counts(batch)
    if counts:
        lines.append("Severity: " + ", ".join(f"{name} {count}" for name, count in counts.items()))
    lines.append("")

    for group, items in _group(_entries(batch, articles)):
        lines.append(f"## {group}")
        lines.append("")
        for entry in items:
            audit: AuditResult = entry["audit"]
            lines.append(f"### {entry['title']}")
            lines.append(f"- ID: {audit.article_id}")
            lines.append(f"- Rules executed: {audit.total_rules_executed}")
            if audit.unknown_rule_ids:
                lines.append(f"- Unknown rules ignored: {', '.join(audit.unknown_rule_ids)}")
            advanced: AdvancedReport | None = entry["advanced"]
            if advanced is not None:
                lines.extend(_advanced_lines(advanced))
            if not audit.issues:
                lines.append("- Issues: none")
            else:
                lines.append(f"- Issues ({audit.issues_found}):")
                for issue in audit.issues:
                    lines.append(f"  - **[{issue.severity}] {issue.message}** ({issue.rule_id})")
                    if issue.description:
                        lines.append(f"    - {issue.description}")
                    for suggestion in issue.suggestions:
                        lines.append(f"    - Suggestion: {suggestion}")
            lines.append("")

    output_path.write_text("\n".join(lines), encoding="utf-8")


def _advanced_lines(report: AdvancedReport) -> list[str]:
    lines = [
        f"- Confidence: {report.metadata.confidence_score:.2f}",
        f"- Structural score: {report.structure.score:.0f}/100",
        f"- Readability: {report.readability.score:.1f} ({report.readability.level})",
    ]
    if report.semantic.degraded:
        lines.append(f"- Semantic analysis: degraded ({report.semantic.error})")
    elif report.semantic.topics:
        lines.append(f"- Topics: {', '.join(report.semantic.topics)}")
    for match in report.similarity.similarities:
        kinds = ", ".join(rec["type"] for rec in match.recommendations) or "none"
        lines.append(
            f"- Similar to {match.article_id} ({match.similarity_score:.2f}): {kinds}"
        )
    for candidate in report.duplicates.duplicates:
        lines.append(
            f"- Possible duplicate of {candidate.article_id} "
            f"({candidate.duplicate_score:.2f}): {candidate.tier}"
        )
    return lines


def render_json(batch: Batch, output_path: Path) -> None:
    """Write the raw batch results as indented JSON."""
    output_path.write_text(
        json.dumps(batch.to_dict(), indent=2, ensure_ascii=False, default=str),
        encoding="utf-8",
    )
