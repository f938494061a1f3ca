"""Search optimization checks: length, headings, keywords, meta data, images, links."""

from __future__ import annotations

import re
from typing import Any

from ...core.context import ExecutionContext
from ...core.types import Article, Issue
from ..base import BaseRule, Finding

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$", re.MULTILINE)
_WORD_RE = re.compile(r"\b\w+\b")
_TITLE_CLEAN_RE = re.compile(r"[^\w\s]")
_MD_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\([^)]+\)")
_MD_LINK_RE = re.compile(r"(?<!!)\[([^\]]+)\]\(([^)]+)\)")

TITLE_STOPWORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with",
        "by", "is", "are", "was", "were", "how", "what", "when", "where", "why",
    }
)

MIN_TITLE_CHARS = 30
MAX_TITLE_CHARS = 60
KEYWORDS_CHECKED = 3


def extract_keywords(title: str, tags: frozenset[str] | set[str] | list[str]) -> list[str]:
    """Keywords from meaningful title words followed by sorted tags, de-duplicated."""
    keywords = []
    if title:
        for word in _TITLE_CLEAN_RE.sub("", title.lower()).split():
            if len(word) > 2 and word not in TITLE_STOPWORDS:
                keywords.append(word)
    keywords.extend(tag.lower() for tag in sorted(tags or ()))
    return list(dict.fromkeys(keywords))


def heading_hierarchy_ok(levels: list[int]) -> bool:
    """True when no heading is more than one level deeper than the one before it.

    The article title counts as the H1, so content may open with an H2.
    """
    if not levels:
        return False
    previous = 1
    for level in levels:
        if level > previous + 1:
            return False
        previous = level
    return True


class SEOOptimizationRule(BaseRule):
    id = "seo-optimization"
    name = "SEO Optimization Analysis"
    description = (
        "Evaluates content for search engine optimization including keywords, "
        "structure, and meta information"
    )
    category = "seo"
    severity = "low"
    version = "1.0.0"
    tags = ("seo", "keywords", "optimization", "structure")
    configurable = True
    max_suggestions = 8
    default_config = {
        "check_keyword_density": True,
        "max_keyword_density": 0.03,
        "min_keyword_density": 0.005,
        "check_heading_structure": True,
        "check_meta_elements": True,
        "check_internal_links": True,
        "check_image_alt_text": True,
        "min_content_length": 300,
        "max_content_length": 2500,
    }

    def evaluate(self, context: ExecutionContext) -> Issue | None:
        article = context.article
        content = article.content or ""
        if not content:
            return None

        keywords = extract_keywords(article.title, article.tags)
        findings: list[Finding] = []

        length = self._check_length(context.metadata.word_count)
        if length:
            findings.append(length)
        if self.config["check_heading_structure"]:
            heading = self._check_headings(content)
            if heading:
                findings.append(heading)
        if self.config["check_keyword_density"] and keywords:
            findings.extend(self._check_keywords(content, keywords))
        if self.config["check_meta_elements"]:
            findings.extend(self._check_meta(article))
        if self.config["check_image_alt_text"]:
            images = self._check_images(content)
            if images:
                findings.append(images)
        if self.config["check_internal_links"]:
            links = self._check_internal_links(content)
            if links:
                findings.append(links)

        return self.consolidate(findings, target_keywords=keywords[:KEYWORDS_CHECKED])

    def _check_length(self, word_count: int) -> Finding | None:
        if word_count < self.config["min_content_length"]:
            return Finding(
                "Content too short for SEO",
                f"Content has {word_count} words. SEO typically favors longer, more "
                "comprehensive content.",
                [
                    f"Expand content to at least {self.config['min_content_length']} words",
                    "Add more detailed explanations and examples",
                    "Include relevant background information",
                    "Add FAQ or troubleshooting sections",
                ],
                severity="medium",
                details={"word_count": word_count},
            )
        if word_count > self.config["max_content_length"]:
            return Finding(
                "Content may be too long",
                f"Very long content ({word_count} words) may affect user engagement and SEO.",
                [
                    "Consider breaking into multiple focused articles",
                    "Use clear headings to improve scanability",
                    "Add a table of contents for navigation",
                    "Ensure content density remains high throughout",
                ],
                severity="low",
                details={"word_count": word_count},
            )
        return None

    def _check_headings(self, content: str) -> Finding | None:
        levels = [len(marks) for marks, _ in _HEADING_RE.findall(content)]
        if not levels:
            return Finding(
                "Missing heading structure",
                "Content lacks heading structure, which is important for SEO and readability.",
                [
                    "Add H2 and H3 headings to structure content",
                    "Use headings to break up long sections",
                    "Include target keywords in headings where appropriate",
                    "Create a logical hierarchy of information",
                ],
                severity="medium",
            )
        if not heading_hierarchy_ok(levels):
            return Finding(
                "Poor heading hierarchy",
                "Heading structure doesn't follow proper hierarchy (H1 -> H2 -> H3, etc.).",
                [
                    "Organize headings in proper hierarchy",
                    "Use H1 for main title, H2 for sections, H3 for subsections",
                    "Avoid skipping heading levels",
                    "Ensure logical content flow",
                ],
                severity="medium",
                details={"heading_count": len(levels), "has_h1": 1 in levels},
            )
        return None

    def _check_keywords(self, content: str, keywords: list[str]) -> list[Finding]:
        words = _WORD_RE.findall(content.lower())
        if not words:
            return []
        findings = []
        for keyword in keywords[:KEYWORDS_CHECKED]:
            occurrences = sum(1 for word in words if keyword in word)
            density = occurrences / len(words)
            details = {
                "keyword": keyword,
                "occurrences": occurrences,
                "density": round(density * 100, 1),
            }
            if density < self.config["min_keyword_density"]:
                findings.append(
                    Finding(
                        "Low keyword density",
                        f'Keyword "{keyword}" appears only {occurrences} times '
                        f"({density * 100:.1f}% density).",
                        [
                            "Include target keywords more naturally in content",
                            "Use keywords in headings and subheadings",
                            "Add keyword variations and synonyms",
                            "Ensure keywords appear in the first paragraph",
                        ],
                        severity="low",
                        details=details,
                    )
                )
            elif density > self.config["max_keyword_density"]:
                findings.append(
                    Finding(
                        "Keyword over-optimization",
                        f'Keyword "{keyword}" appears {occurrences} times '
                        f"({density * 100:.1f}% density), which may be excessive.",
                        [
                            "Reduce keyword repetition to avoid over-optimization",
                            "Use natural language and keyword variations",
                            "Focus on content quality over keyword density",
                            "Consider using synonyms and related terms",
                        ],
                        severity="medium",
                        details=details,
                    )
                )
        return findings

    def _check_meta(self, article: Article) -> list[Finding]:
        findings = []
        if article.title:
            length = len(article.title)
            if length < MIN_TITLE_CHARS:
                findings.append(
                    Finding(
                        "Title too short",
                        "Title is shorter than recommended for SEO (30-60 characters).",
                        [
                            "Expand title to 30-60 characters",
                            "Include primary keywords in title",
                            "Make title descriptive and compelling",
                            "Consider user search intent",
                        ],
                        severity="medium",
                        details={"title_length": length},
                    )
                )
            elif length > MAX_TITLE_CHARS:
                findings.append(
                    Finding(
                        "Title too long",
                        "Title may be truncated in search results (over 60 characters).",
                        [
                            "Shorten title to under 60 characters",
                            "Place important keywords at the beginning",
                            "Remove unnecessary words and phrases",
                            "Maintain clarity and relevance",
                        ],
                        severity="medium",
                        details={"title_length": length},
                    )
                )
        if not article.description and not article.excerpt:
            findings.append(
                Finding(
                    "Missing meta description",
                    "Article lacks a meta description, which is important for search results.",
                    [
                        "Add a compelling meta description (150-160 characters)",
                        "Include primary keywords naturally",
                        "Summarize the article's value proposition",
                        "Make it actionable and click-worthy",
                    ],
                    severity="high",
                )
            )
        return findings

    def _check_images(self, content: str) -> Finding | None:
        alts = _MD_IMAGE_RE.findall(content)
        if not alts:
            return None
        missing = [alt for alt in alts if not alt.strip()]
        if not missing:
            return None
        return Finding(
            "Images missing alt text",
            f"Found {len(missing)} images without proper alt text.",
            [
                "Add descriptive alt text to all images",
                "Include relevant keywords in alt text naturally",
                "Describe image content for accessibility",
                "Keep alt text concise but informative",
            ],
            severity="medium",
            details={"total_images": len(alts), "missing_alt": len(missing)},
        )

    def _check_internal_links(self, content: str) -> Finding | None:
        urls = [url for _, url in _MD_LINK_RE.findall(content)]
        internal = [url for url in urls if not url.startswith("http")]
        if urls and not internal:
            return Finding(
                "No internal links found",
                "Content has external links but no internal links to other articles.",
                [
                    "Add links to related articles in your knowledge base",
                    "Link to relevant documentation or guides",
                    "Use descriptive anchor text for internal links",
                    "Create content clusters through strategic linking",
                ],
                severity="low",
                details={"total_links": len(urls)},
            )
        return None

    def validate_config(self, config: dict[str, Any]) -> bool:
        return (
            0 < config["max_keyword_density"] <= 1
            and 0 <= config["min_keyword_density"] < config["max_keyword_density"]
            and config["min_content_length"] > 0
            and config["max_content_length"] > config["min_content_length"]
        )
