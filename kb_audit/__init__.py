"""
Knowledge-base content auditor.

This package audits knowledge-base article exports for content-quality
defects and near-duplicate redundancy, and writes Markdown/HTML/JSON
reports with per-article issues and consolidation recommendations.

Main entry point is the CLI via `kb-audit audit` command.

Example:
    $ kb-audit audit -i articles.json -o output/
"""

__all__ = ["__version__", "Article", "build_engine", "parse_articles_json"]
__version__ = "0.1.0"

from .core.types import Article
from .input.json_parser import parse_articles_json
from .rules.factory import build_engine
