import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from kb_audit.input import load_articles, parse_articles_json
from kb_audit.input.json_parser import parse_timestamp


def test_parse_articles_json_maps_fields() -> None:
    articles = parse_articles_json(
        {
            "articles": [
                {
                    "id": "kb-101",
                    "title": "Getting Started",
                    "content": "# Welcome",
                    "category": "onboarding",
                    "tags": ["setup", "basics"],
                    "lastModified": "2025-03-01T09:00:00Z",
                    "description": "",
                    "excerpt": "Start here",
                    "url": "https://help.example.com/kb-101",
                }
            ]
        }
    )

    assert len(articles) == 1
    article = articles[0]
    assert article.id == "kb-101"
    assert article.tags == frozenset({"setup", "basics"})
    assert article.last_modified == datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)
    assert article.description is None
    assert article.excerpt == "Start here"


def test_parse_articles_json_skips_bad_entries() -> None:
    articles = parse_articles_json(
        {
            "articles": [
                "not an object",
                {"title": "No id"},
                {"id": "  "},
                {"id": 7, "title": "Numeric id", "tags": "solo"},
                {"id": "7", "title": "Duplicate"},
                {"id": "kb-2", "lastModified": "yesterday"},
            ]
        }
    )

    assert [article.id for article in articles] == ["7", "kb-2"]
    assert articles[0].title == "Numeric id"
    assert articles[0].tags == frozenset({"solo"})
    assert articles[1].last_modified is None
    assert articles[1].content == ""


def test_parse_articles_json_rejects_bad_shape() -> None:
    with pytest.raises(ValueError, match="missing 'articles'"):
        parse_articles_json({"items": []})
    with pytest.raises(ValueError, match="must be a list"):
        parse_articles_json({"articles": {"id": "kb-1"}})


def test_parse_timestamp_treats_naive_as_utc() -> None:
    assert parse_timestamp("2025-01-02T03:04:05") == datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert parse_timestamp("2025-01-02T03:04:05+02:00").utcoffset().total_seconds() == 7200


def test_load_articles_reads_file(tmp_path: Path) -> None:
    path = tmp_path / "export.json"
    path.write_text(json.dumps({"articles": [{"id": "kb-1", "title": "T"}]}), encoding="utf-8")

    articles = load_articles(path)

    assert [article.title for article in articles] == ["T"]
