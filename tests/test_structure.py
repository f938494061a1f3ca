from __future__ import annotations

from kb_audit.analyzers.structure import (
    StructuralAnalyzer,
    count_images,
    count_links,
    parse_headings,
    parse_lists,
)
from kb_audit.core.types import Article


def _analyze(content: str):
    return StructuralAnalyzer().analyze(Article(id="kb-1", content=content))


def test_score_is_floored_at_zero():
    report = _analyze("# A\n### B\n" * 21)

    assert len(report.hierarchy_issues) == 21
    assert report.score == 0


def test_recommendations_follow_priority_order():
    content = "# Title\n\n### Sub\n\n![](img.png)\n\n" + "word " * 120

    report = _analyze(content)

    assert [rec["type"] for rec in report.recommendations] == [
        "accessibility",
        "heading_hierarchy",
        "paragraph_length",
    ]
    assert report.paragraphs.long == 1
    assert report.score == 82


def test_html_heading_skip_is_reported():
    report = _analyze("<h1>Intro</h1><p>Hello</p><h3>Deep</h3>")

    assert [(h.level, h.text) for h in report.headings] == [(1, "Intro"), (3, "Deep")]
    assert report.hierarchy_issues[0]["type"] == "hierarchy_skip"
    assert report.max_depth == 3
    assert report.paragraphs.total == 1
    assert report.score == 88


def test_clean_document_scores_full_marks():
    report = _analyze("")

    assert report.score == 100
    assert report.recommendations == []
    assert report.to_dict()["list_structure"]["average_items_per_list"] == 0


def test_headings_from_html_and_markdown_are_ordered():
    headings = parse_headings("## Setup\n\n<h3>Details</h3>\n\n# Final")

    assert [(h.level, h.text) for h in headings] == [(2, "Setup"), (3, "Details"), (1, "Final")]


def test_markdown_lists():
    blocks = parse_lists("- one\n- two\n  - nested\n\n1. first\n2. second")

    assert [(b.kind, b.item_count, b.nested) for b in blocks] == [
        ("ul", 3, True),
        ("ol", 2, False),
    ]


def test_html_lists():
    blocks = parse_lists("<ul><li>a</li><li>b<ol><li>c</li></ol></li></ul>")

    assert len(blocks) == 1
    assert blocks[0].kind == "ul"
    assert blocks[0].nested is True
    assert blocks[0].source == "html"


def test_link_classification():
    stats = count_links(
        '[Docs](/docs/setup) and [Site](https://example.org) <a href="//cdn.example.org/x">cdn</a>'
    )

    assert stats.internal == 1
    assert stats.external == 2


def test_image_alt_counts():
    stats = count_images('![Logo](logo.png) ![](blank.png) <img src="x.png">')

    assert stats.with_alt == 1
    assert stats.without_alt == 2
