"""JSON parser for knowledge-base article exports.

The export format uses a top-level ``articles`` array; each entry carries
id, title, content, category, tags, lastModified and optionally
description, excerpt and url.
"""

from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
from pathlib import Path
from typing import Any

from ..core.types import Article

logger = logging.getLogger(__name__)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp string into a timezone-aware datetime."""
    raw = value.strip()
    if raw.endswith("Z"):
        raw = f"{raw[:-1]}+00:00"
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_articles_json(data: dict[str, Any]) -> list[Article]:
    """Parse an article export into a list of Article objects.

    The export structure:
        {
            "articles": [
                {
                    "id": "kb-101",
                    "title": "Getting Started",
                    "content": "# Welcome ...",
                    "category": "onboarding",
                    "tags": ["setup", "basics"],
                    "lastModified": "2025-03-01T09:00:00Z",
                    "description": "Optional meta description",
                    "url": "https://help.example.com/kb-101"
                }
            ]
        }

    Args:
        data: The parsed JSON content as a dictionary

    Returns:
        A list of Article objects. Entries without an id are skipped with a
        warning; an unparseable lastModified is dropped with a warning.

    Raises:
        ValueError: If the JSON is missing the 'articles' key
    """
    if not isinstance(data, dict) or "articles" not in data:
        raise ValueError("Invalid JSON format: missing 'articles' key")
    if not isinstance(data["articles"], list):
        raise ValueError("Invalid JSON format: 'articles' must be a list")

    articles: list[Article] = []
    seen: set[str] = set()

    for index, item in enumerate(data["articles"]):
        if not isinstance(item, dict):
            logger.warning(f"Skipping article at index {index}: not an object")
            continue

        article_id = item.get("id")
        if article_id is None or not str(article_id).strip():
            logger.warning(f"Skipping article at index {index}: missing id")
            continue
        article_id = str(article_id).strip()
        if article_id in seen:
            logger.warning(f"Skipping article {article_id}: duplicate id")
            continue
        seen.add(article_id)

        last_modified = None
        raw_modified = item.get("lastModified")
        if isinstance(raw_modified, str) and raw_modified.strip():
            try:
                last_modified = parse_timestamp(raw_modified)
            except ValueError:
                logger.warning(f"Article {article_id}: invalid lastModified {raw_modified!r}")

        tags = item.get("tags") or []
        if isinstance(tags, str):
            tags = [tags]

        articles.append(
            Article(
                id=article_id,
                title=item.get("title") or "",
                content=item.get("content") or "",
                category=item.get("category") or "",
                tags=frozenset(str(tag) for tag in tags if str(tag).strip()),
                last_modified=last_modified,
                description=item.get("description") or None,
                excerpt=item.get("excerpt") or None,
                url=item.get("url") or None,
            )
        )

    return articles


def load_articles(path: Path) -> list[Article]:
    """Read an export file from disk and parse it."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    return parse_articles_json(data)
