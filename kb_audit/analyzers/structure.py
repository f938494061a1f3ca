"""Document structure analysis.

Parses headings, lists, paragraphs, links and images from HTML and Markdown
content and turns them into a 0-100 structural score plus prioritized
recommendations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Any

from bs4 import BeautifulSoup

from ..core.profile import strip_markup
from ..core.types import Article

_HTML_HEADING_RE = re.compile(r"<h([1-6])\b[^>]*>(.*?)</h\1\s*>", re.IGNORECASE | re.DOTALL)
_MD_HEADING_RE = re.compile(r"^[ \t]{0,3}(#{1,6})[ \t]+(.+?)[ \t#]*$", re.MULTILINE)
_HTML_LIST_BLOCK_RE = re.compile(r"<(ul|ol)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_MD_LIST_ITEM_RE = re.compile(r"^([ \t]*)([-*+]|\d+[.)])[ \t]+\S")
_PARAGRAPH_HTML_SPLIT_RE = re.compile(r"</p\s*>|<br\s*/?>", re.IGNORECASE)
_PARAGRAPH_MD_SPLIT_RE = re.compile(r"\n[ \t]*\n")
_HTML_PARAGRAPH_HINT_RE = re.compile(r"<p\b|<br\s*/?>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]*>")
_MD_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(([^)]*)\)")
_MD_LINK_RE = re.compile(r"(?<!!)\[([^\]]*)\]\(([^)]*)\)")
_EXTERNAL_URL_RE = re.compile(r"^\s*(?:https?:)?//", re.IGNORECASE)

SHORT_PARAGRAPH_WORDS = 20
LONG_PARAGRAPH_WORDS = 100

HIERARCHY_SKIP_PENALTY = 10
SHORT_PARAGRAPH_PENALTY = 2
LONG_PARAGRAPH_PENALTY = 3
MISSING_ALT_PENALTY = 5


@dataclass
class Heading:
    level: int
    text: str
    position: int

    def to_dict(self) -> dict[str, Any]:
        return {"level": self.level, "text": self.text, "position": self.position}


@dataclass
class ListBlock:
    """One list block; ``kind`` is "ul" or "ol"."""

    kind: str
    item_count: int
    nested: bool
    source: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind,
            "item_count": self.item_count,
            "nested": self.nested,
            "source": self.source,
        }


@dataclass
class ParagraphStats:
    total: int = 0
    average_words: float = 0.0
    short: int = 0
    long: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_paragraphs": self.total,
            "average_words_per_paragraph": round(self.average_words, 2),
            "short_paragraphs": self.short,
            "long_paragraphs": self.long,
        }


@dataclass
class LinkStats:
    internal: int = 0
    external: int = 0

    @property
    def total(self) -> int:
        return self.internal + self.external

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_links": self.total,
            "internal_links": self.internal,
            "external_links": self.external,
        }


@dataclass
class ImageStats:
    with_alt: int = 0
    without_alt: int = 0

    @property
    def total(self) -> int:
        return self.with_alt + self.without_alt

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_images": self.total,
            "images_with_alt": self.with_alt,
            "images_without_alt": self.without_alt,
        }


@dataclass
class StructuralReport:
    """Structure analysis of one article.

    Attributes:
        article_id: Id of the analyzed article
        headings: Headings in document order
        hierarchy_issues: One entry per heading that skips a level
        lists: List blocks found in the content
        paragraphs: Paragraph length statistics
        links: Internal/external link counts
        images: Image counts with and without alt text
        score: Structural score clamped to [0, 100]
        recommendations: Fixes in priority order
    """

    article_id: str
    headings: list[Heading] = field(default_factory=list)
    hierarchy_issues: list[dict[str, Any]] = field(default_factory=list)
    lists: list[ListBlock] = field(default_factory=list)
    paragraphs: ParagraphStats = field(default_factory=ParagraphStats)
    links: LinkStats = field(default_factory=LinkStats)
    images: ImageStats = field(default_factory=ImageStats)
    score: float = 100.0
    recommendations: list[dict[str, str]] = field(default_factory=list)

    @property
    def max_depth(self) -> int:
        return max((heading.level for heading in self.headings), default=0)

    def element_counts(self) -> tuple[int, int, int]:
        """Return (headings, lists, images) counts used for structural overlap."""
        return len(self.headings), len(self.lists), self.images.total

    def to_dict(self) -> dict[str, Any]:
        total_items = sum(block.item_count for block in self.lists)
        return {
            "article_id": self.article_id,
            "heading_hierarchy": {
                "headings": [heading.to_dict() for heading in self.headings],
                "hierarchy_issues": list(self.hierarchy_issues),
                "max_depth": self.max_depth,
                "total_headings": len(self.headings),
            },
            "list_structure": {
                "lists": [block.to_dict() for block in self.lists],
                "total_lists": len(self.lists),
                "average_items_per_list": (total_items / len(self.lists)) if self.lists else 0,
            },
            "paragraph_structure": self.paragraphs.to_dict(),
            "link_distribution": self.links.to_dict(),
            "image_distribution": self.images.to_dict(),
            "structural_score": self.score,
            "recommendations": list(self.recommendations),
        }


class StructuralAnalyzer:
    """Stateless structure analyzer; safe to share between threads."""

    def analyze(self, article: Article) -> StructuralReport:
        content = article.content or ""
        headings = parse_headings(content)
        report = StructuralReport(
            article_id=article.id,
            headings=headings,
            hierarchy_issues=find_hierarchy_issues(headings),
            lists=parse_lists(content),
            paragraphs=analyze_paragraphs(content),
            links=count_links(content),
            images=count_images(content),
        )
        report.score = structural_score(report)
        report.recommendations = structural_recommendations(report)
        return report


def parse_headings(content: str) -> list[Heading]:
    headings: list[Heading] = []
    for match in _HTML_HEADING_RE.finditer(content):
        text = _TAG_RE.sub("", match.group(2)).strip()
        headings.append(Heading(level=int(match.group(1)), text=text, position=match.start()))
    for match in _MD_HEADING_RE.finditer(content):
        headings.append(
            Heading(level=len(match.group(1)), text=match.group(2).strip(), position=match.start())
        )
    headings.sort(key=lambda heading: heading.position)
    return headings


def find_hierarchy_issues(headings: list[Heading]) -> list[dict[str, Any]]:
    issues = []
    for previous, current in zip(headings, headings[1:]):
        if current.level > previous.level + 1:
            issues.append(
                {
                    "type": "hierarchy_skip",
                    "position": current.position,
                    "description": (
                        f"Heading level {current.level} follows {previous.level}, "
                        "skipping intermediate levels"
                    ),
                }
            )
    return issues


def parse_lists(content: str) -> list[ListBlock]:
    blocks: list[ListBlock] = []
    if "<" in content:
        soup = BeautifulSoup(content, "html.parser")
        for node in soup.find_all(["ul", "ol"]):
            if node.find_parent(["ul", "ol"]) is not None:
                continue
            blocks.append(
                ListBlock(
                    kind=node.name,
                    item_count=len(node.find_all("li")),
                    nested=node.find(["ul", "ol"]) is not None,
                    source="html",
                )
            )
    blocks.extend(_parse_markdown_lists(content))
    return blocks


def _parse_markdown_lists(content: str) -> list[ListBlock]:
    blocks: list[ListBlock] = []
    current: list[tuple[int, str]] = []

    def _flush() -> None:
        if not current:
            return
        indents = [indent for indent, _ in current]
        kind = "ol" if current[0][1][0].isdigit() else "ul"
        blocks.append(
            ListBlock(
                kind=kind,
                item_count=len(current),
                nested=max(indents) > min(indents),
                source="markdown",
            )
        )
        current.clear()

    for line in content.splitlines():
        match = _MD_LIST_ITEM_RE.match(line)
        if match:
            indent = len(match.group(1).expandtabs(4))
            current.append((indent, match.group(2)))
        else:
            _flush()
    _flush()
    return blocks


def analyze_paragraphs(content: str) -> ParagraphStats:
    prose = _HTML_HEADING_RE.sub("\n\n", content)
    prose = _MD_HEADING_RE.sub("\n", prose)
    prose = _HTML_LIST_BLOCK_RE.sub("\n\n", prose)
    prose = "\n".join(
        "" if _MD_LIST_ITEM_RE.match(line) else line for line in prose.splitlines()
    )

    if _HTML_PARAGRAPH_HINT_RE.search(prose):
        blocks = _PARAGRAPH_HTML_SPLIT_RE.split(prose)
    else:
        blocks = _PARAGRAPH_MD_SPLIT_RE.split(prose)

    word_counts = []
    for block in blocks:
        words = len(strip_markup(block).split())
        if words:
            word_counts.append(words)

    if not word_counts:
        return ParagraphStats()
    return ParagraphStats(
        total=len(word_counts),
        average_words=sum(word_counts) / len(word_counts),
        short=sum(1 for count in word_counts if count < SHORT_PARAGRAPH_WORDS),
        long=sum(1 for count in word_counts if count > LONG_PARAGRAPH_WORDS),
    )


def count_links(content: str) -> LinkStats:
    stats = LinkStats()
    urls = [match.group(2) for match in _MD_LINK_RE.finditer(content)]
    if "<" in content:
        soup = BeautifulSoup(content, "html.parser")
        urls.extend(str(node.get("href", "")) for node in soup.find_all("a", href=True))
    for url in urls:
        if _EXTERNAL_URL_RE.match(url):
            stats.external += 1
        else:
            stats.internal += 1
    return stats


def count_images(content: str) -> ImageStats:
    stats = ImageStats()
    alts = [match.group(1) for match in _MD_IMAGE_RE.finditer(content)]
    if "<" in content:
        soup = BeautifulSoup(content, "html.parser")
        alts.extend(str(node.get("alt") or "") for node in soup.find_all("img"))
    for alt in alts:
        if alt.strip():
            stats.with_alt += 1
        else:
            stats.without_alt += 1
    return stats


def structural_score(report: StructuralReport) -> float:
    score = 100
    score -= HIERARCHY_SKIP_PENALTY * len(report.hierarchy_issues)
    score -= SHORT_PARAGRAPH_PENALTY * report.paragraphs.short
    score -= LONG_PARAGRAPH_PENALTY * report.paragraphs.long
    score -= MISSING_ALT_PENALTY * report.images.without_alt
    return float(min(100, max(0, score)))


def structural_recommendations(report: StructuralReport) -> list[dict[str, str]]:
    recommendations = []
    if report.images.without_alt > 0:
        recommendations.append(
            {
                "type": "accessibility",
                "priority": "high",
                "message": "Add alt text to images for better accessibility",
            }
        )
    if report.hierarchy_issues:
        recommendations.append(
            {
                "type": "heading_hierarchy",
                "priority": "medium",
                "message": "Fix heading hierarchy by ensuring proper level progression",
            }
        )
    if report.paragraphs.long > 0:
        recommendations.append(
            {
                "type": "paragraph_length",
                "priority": "low",
                "message": "Consider breaking down long paragraphs for better readability",
            }
        )
    elif report.paragraphs.short > 0:
        recommendations.append(
            {
                "type": "paragraph_length",
                "priority": "low",
                "message": "Consider expanding or merging very short paragraphs",
            }
        )
    return recommendations
