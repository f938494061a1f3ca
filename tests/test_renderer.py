import json
from datetime import datetime, timezone
from pathlib import Path

from kb_audit.config import AppConfig
from kb_audit.core.types import Article, AuditResult, BatchAuditResult, Issue
from kb_audit.output.renderer import (
    render_html,
    render_json,
    render_markdown,
    severity_counts,
    total_issues,
)
from kb_audit.rules.factory import build_engine

EXECUTED_AT = datetime(2026, 6, 1, 12, 30, tzinfo=timezone.utc)


def _issue(message: str, severity: str = "medium", rule_id: str = "content-quality") -> Issue:
    return Issue(
        rule_id=rule_id,
        rule_name="Content Quality",
        severity=severity,
        category="content-quality",
        message=message,
        description=f"{message} description",
        suggestions=["Fix it"],
    )


def _sample_batch() -> tuple[BatchAuditResult, dict[str, Article]]:
    articles = {
        "a1": Article(id="a1", title="A1", category="Tech"),
        "a2": Article(id="a2", title="A2", category="Tech"),
        "b1": Article(id="b1", title="B1 <script>alert(1)</script>", category="News"),
    }
    results = [
        AuditResult(article_id="a1", total_rules_executed=5, issues_found=1, issues=[_issue("Too short")]),
        AuditResult(article_id="a2", total_rules_executed=5, issues_found=0),
        AuditResult(
            article_id="b1",
            total_rules_executed=5,
            issues_found=2,
            issues=[_issue("Stale", "high", "outdated-content"), _issue("Weak title", "low")],
        ),
    ]
    batch = BatchAuditResult(total_articles=3, total_issues=3, results=results, executed_at=EXECUTED_AT)
    return batch, articles


def test_render_markdown_outputs_grouped_sections(tmp_path: Path) -> None:
    output_path = tmp_path / "report.md"
    batch, articles = _sample_batch()

    render_markdown(batch, articles, output_path, "Audit title")
    text = output_path.read_text(encoding="utf-8")

    assert text.startswith("# Audit title")
    assert "Generated: 2026-06-01 12:30 UTC" in text
    assert "Severity: low 1, medium 1, high 1" in text
    assert text.index("## Tech") < text.index("## News")
    assert "### A1" in text
    assert "  - **[high] Stale** (outdated-content)" in text
    assert "    - Suggestion: Fix it" in text
    assert "- Issues: none" in text


def test_render_html_escapes_content(tmp_path: Path) -> None:
    output_path = tmp_path / "report.html"
    batch, articles = _sample_batch()

    render_html(batch, articles, output_path, "Audit & report")
    html = output_path.read_text(encoding="utf-8")

    assert "<title>Audit &amp; report</title>" in html
    assert "<script>alert(1)</script>" not in html
    assert "&lt;script&gt;" in html
    assert 'id="tech"' in html
    assert 'href="#news-b1"' in html
    assert "No issues found." in html


def test_render_json_round_trips_batch(tmp_path: Path) -> None:
    output_path = tmp_path / "report.json"
    batch, _ = _sample_batch()

    render_json(batch, output_path)
    data = json.loads(output_path.read_text(encoding="utf-8"))

    assert data["total_articles"] == 3
    assert data["executed_at"] == EXECUTED_AT.isoformat()
    assert data["results"][2]["issues"][0]["rule_id"] == "outdated-content"


def test_severity_helpers() -> None:
    batch, _ = _sample_batch()

    assert severity_counts(batch) == {"low": 1, "medium": 1, "high": 1}
    assert total_issues(batch) == 3


def test_render_advanced_batch(tmp_path: Path) -> None:
    content = "# Printer setup\n\nConnect the printer cable and install the driver package."
    articles = [
        Article(id="p1", title="Printer setup", content=content, category="Hardware"),
        Article(id="p2", title="Printer set-up", content=content, category="Hardware"),
    ]
    batch = build_engine(AppConfig()).batch_analyze_advanced(articles)
    by_id = {article.id: article for article in articles}

    render_markdown(batch, by_id, tmp_path / "report.md", "Advanced")
    render_html(batch, by_id, tmp_path / "report.html", "Advanced")
    text = (tmp_path / "report.md").read_text(encoding="utf-8")

    assert "- Confidence:" in text
    assert "- Similar to p2" in text
    assert "- Possible duplicate of p1" in text
    assert "Structural score" in (tmp_path / "report.html").read_text(encoding="utf-8")
