"""
Command-line interface for the knowledge-base auditor.

Uses Typer to provide an ``audit`` command that writes reports for an
article export, and a ``rules`` command that lists the built-in rules.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from .config import load_config
from .errors import AuditError
from .rules.factory import build_engine
from .runner import run_audit

app = typer.Typer(add_completion=False)
console = Console()


@app.command()
def audit(
    input: Path = typer.Option(..., "--input", "-i", exists=True, readable=True),
    output: Path = typer.Option(Path("out"), "--output", "-o"),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True),
    rule: list[str] | None = typer.Option(
        None, "--rule", "-r", help="Only run these rule ids (repeatable)."
    ),
    rules_only: bool = typer.Option(
        False, "--rules-only", help="Skip similarity, structure, semantic and duplicate analysis."
    ),
    threshold: float | None = typer.Option(
        None, "--threshold", min=0.0, max=1.0, help="Similarity reporting threshold."
    ),
    concurrency: int | None = typer.Option(
        None, "--concurrency", min=1, help="Number of articles audited in parallel."
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
    progress: bool = typer.Option(True, "--progress/--no-progress"),
):
    """Audit a knowledge-base export.

    Reads an article export JSON, runs every enabled rule and the advanced
    analyses, and writes report.md (and optionally report.html and
    report.json) to the output directory.

    Args:
        input: Path to the article export JSON
        output: Directory for reports and the run log
        config: Optional path to YAML config file
        rule: Rule ids to run; all enabled rules when omitted
        rules_only: Skip the advanced analyses
        threshold: Override the similarity threshold
        concurrency: Override batch concurrency
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        progress: Whether to show progress bar
    """
    cfg = load_config(str(config) if config else None)

    if threshold is not None:
        cfg.similarity.threshold = threshold
    if concurrency is not None:
        cfg.engine.batch_concurrency = concurrency
    if log_level:
        cfg.logging.level = log_level

    try:
        output_path = run_audit(
            input,
            output,
            cfg,
            show_progress=progress,
            console=console,
            rule_ids=rule or None,
            rules_only=rules_only,
        )
    except (AuditError, ValueError) as exc:
        console.print(f"[red]Audit failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    console.print(f"Report generated: {output_path}")


@app.command()
def rules(
    config: Path | None = typer.Option(None, "--config", "-c", exists=True),
):
    """List the registered rules."""
    cfg = load_config(str(config) if config else None)
    engine = build_engine(cfg)

    table = Table(title="Audit rules")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Severity")
    table.add_column("Enabled")
    for summary in engine.get_rules():
        table.add_row(
            summary["id"],
            summary["name"],
            summary["category"],
            summary["severity"],
            "yes" if summary["enabled"] else "no",
        )
    console.print(table)


if __name__ == "__main__":
    app()
