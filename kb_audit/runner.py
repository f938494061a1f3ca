"""
Audit run orchestration.

This module coordinates one CLI run:
1. Load and parse the article export
2. Build the engine from config
3. Audit every article (rules only, or rules plus advanced analysis)
4. Render Markdown / HTML / JSON reports

Supports both progress bar and quiet modes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
)

from .analyzers.advanced import BatchAdvancedReport
from .config import AppConfig
from .core.types import Article, BatchAuditResult
from .input.json_parser import load_articles
from .output.renderer import render_html, render_json, render_markdown, severity_counts, total_issues
from .rules.factory import build_engine
from .utils.logging import close_logging, log_event, setup_logging

OUTPUT_FORMATS = ("markdown", "html")


def run_audit(
    input_path: Path,
    output_dir: Path,
    cfg: AppConfig,
    show_progress: bool = True,
    console: Console | None = None,
    rule_ids: Iterable[str] | None = None,
    rules_only: bool = False,
) -> Path:
    """Run a complete audit and write the reports.

    Args:
        input_path: Path to the article export JSON
        output_dir: Directory for reports and the run log
        cfg: Application configuration
        show_progress: Whether to display progress bars
        console: Rich console for output (creates default if None)
        rule_ids: Optional rule filter
        rules_only: Skip similarity, structural, semantic and duplicate analysis

    Returns:
        Path to the primary report file

    Raises:
        ValueError: If the configured output format is not supported
    """
    output_format = (cfg.output.format or "markdown").lower()
    if output_format not in OUTPUT_FORMATS:
        raise ValueError("Unsupported output format. Use 'markdown' or 'html'.")

    console = console or Console()
    rule_ids = list(rule_ids) if rule_ids else None
    output_dir.mkdir(parents=True, exist_ok=True)
    logger = setup_logging(cfg.logging, output_dir)

    try:
        log_event(
            logger,
            "Audit start",
            event="audit_start",
            input=str(input_path),
            output=str(output_dir),
            rules_only=rules_only,
        )
        articles = load_articles(input_path)
        engine = build_engine(cfg)

        if show_progress:
            progress = Progress(
                SpinnerColumn(),
                TextColumn("{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                TimeRemainingColumn(),
                console=console,
            )
            with progress:
                audit_task = progress.add_task("Audit", total=len(articles))
                batch = _audit(
                    engine,
                    articles,
                    rule_ids,
                    rules_only,
                    on_complete=lambda _article: progress.advance(audit_task, 1),
                )
        else:
            batch = _audit(engine, articles, rule_ids, rules_only)

        by_id = {article.id: article for article in articles}
        title = f"Knowledge Base Audit - {input_path.stem}"
        md_path = output_dir / "report.md"
        html_path = output_dir / "report.html"

        if output_format == "html":
            primary = html_path
            render_html(batch, by_id, html_path, title)
        else:
            primary = md_path
            render_markdown(batch, by_id, md_path, title)
            if cfg.output.include_html:
                render_html(batch, by_id, html_path, title)
        if cfg.output.include_json:
            render_json(batch, output_dir / "report.json")

        _render_summary(batch, console)
        log_event(
            logger,
            "Audit complete",
            event="audit_complete",
            output=str(primary),
            total=batch.total_articles,
            issues=total_issues(batch),
        )
        return primary
    finally:
        close_logging(logger)


def _audit(
    engine,
    articles: list[Article],
    rule_ids: list[str] | None,
    rules_only: bool,
    on_complete=None,
) -> BatchAuditResult | BatchAdvancedReport:
    if rules_only:
        return engine.audit_multiple_articles(articles, rule_ids, on_complete=on_complete)
    return engine.batch_analyze_advanced(articles, rule_ids=rule_ids, on_complete=on_complete)


def _render_summary(batch: BatchAuditResult | BatchAdvancedReport, console: Console) -> None:
    """Display audit totals to the console."""
    counts = ", ".join(f"{name}={count}" for name, count in severity_counts(batch).items())
    console.print(
        "[bold]Audit summary[/bold]: "
        f"articles={batch.total_articles}, issues={total_issues(batch)}"
        + (f" ({counts})" if counts else "")
    )
    if isinstance(batch, BatchAdvancedReport):
        console.print(f"Average confidence: {batch.average_confidence:.2f}")
