"""Content quality: length, readability, grammar, structure and formatting."""

from __future__ import annotations

import re
from typing import Any

from ...core.context import ExecutionContext
from ...core.types import Issue
from ..base import BaseRule, Finding

_MD_HEADER_RE = re.compile(r"^#+\s+(.+)$", re.MULTILINE)
_HTML_HEADER_RE = re.compile(r"<h[1-6]\b", re.IGNORECASE)
_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")
_CODE_CONTENT_RE = re.compile(r"```|`[^`]+`|\$\(|\$\{|function\s*\(|class\s+\w+|def\s+\w+")
_CODE_BLOCK_RE = re.compile(r"```[\s\S]*?```|`[^`\n]+`|<code\b|<pre\b", re.IGNORECASE)
_RAW_URL_RE = re.compile(r"https?://[^\s)\"'<>]+")
_FORMATTED_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]+\)|<a\s[^>]*href=", re.IGNORECASE)
_LIST_CONTENT_RE = re.compile(r"^\s*[-*+]\s+|^\s*\d+\.\s+", re.MULTILINE)
_WELL_FORMED_LIST_RE = re.compile(r"^[-*+]\s+.+$|^\d+\.\s+.+$", re.MULTILINE)


class ContentQualityRule(BaseRule):
    id = "content-quality"
    name = "Content Quality Assessment"
    description = "Evaluates content for readability, structure, grammar, and overall quality"
    category = "content-quality"
    severity = "medium"
    version = "1.1.0"
    tags = ("quality", "readability", "grammar", "structure")
    configurable = True
    max_suggestions = 8
    default_config = {
        "min_word_count": 50,
        "max_word_count": 5000,
        "min_readability_score": 30,
        "max_readability_score": 90,
        "check_grammar": True,
        "check_structure": True,
        "check_formatting": True,
        "require_headers": True,
        "min_header_count": 1,
        "max_sentence_length": 25,
    }

    def evaluate(self, context: ExecutionContext) -> Issue | None:
        content = context.article.content or ""
        findings: list[Finding] = []

        length = self._check_length(context.metadata.word_count)
        if length:
            findings.append(length)

        if content:
            readability = self._check_readability(content)
            if readability:
                findings.append(readability)
            if self.config["check_grammar"]:
                findings.extend(self._check_grammar(context))
            if self.config["check_structure"]:
                structure = self._check_structure(content)
                if structure:
                    findings.append(structure)
            if self.config["check_formatting"]:
                findings.extend(self._check_formatting(content))

        return self.consolidate(
            findings,
            word_count=context.metadata.word_count,
            content_length=context.metadata.content_length,
        )

    def _check_length(self, word_count: int) -> Finding | None:
        if word_count < self.config["min_word_count"]:
            return Finding(
                "Content too short",
                f"Article contains only {word_count} words, which may not provide sufficient detail.",
                [
                    "Expand the content with more detailed explanations",
                    "Add examples and use cases",
                    "Include troubleshooting steps if applicable",
                    "Consider merging with related content",
                ],
                severity="medium",
                details={"word_count": word_count},
            )
        if word_count > self.config["max_word_count"]:
            return Finding(
                "Content very lengthy",
                f"Article contains {word_count} words, which may overwhelm readers.",
                [
                    "Consider breaking into multiple articles",
                    "Use headers to improve scanability",
                    "Remove redundant information",
                    "Create a summary or overview section",
                ],
                severity="low",
                details={"word_count": word_count},
            )
        return None

    def _check_readability(self, content: str) -> Finding | None:
        score = self.readability_score(content)
        if score < self.config["min_readability_score"]:
            return Finding(
                "Poor readability",
                f"Content has a low readability score ({round(score)}), indicating it may be "
                "difficult to read.",
                [
                    "Use shorter sentences and simpler words",
                    "Break up long paragraphs",
                    "Add bullet points and lists",
                    "Use active voice instead of passive",
                    "Define technical terms",
                ],
                severity="high",
                details={"readability_score": round(score)},
            )
        if score > self.config["max_readability_score"]:
            return Finding(
                "Content may be too simple",
                f"Content has a very high readability score ({round(score)}), which might lack "
                "necessary detail.",
                [
                    "Add more detailed explanations",
                    "Include technical specifics where appropriate",
                    "Ensure content depth matches user needs",
                    "Consider adding advanced sections",
                ],
                severity="low",
                details={"readability_score": round(score)},
            )
        return None

    def _check_grammar(self, context: ExecutionContext) -> list[Finding]:
        content = context.article.content or ""
        findings = []
        problems = self.check_basic_grammar(content)
        if problems:
            findings.append(
                Finding(
                    "Grammar and formatting issues",
                    "Content contains potential grammar or formatting problems.",
                    [
                        "Review content for grammar errors",
                        "Check punctuation and capitalization",
                        "Use consistent formatting throughout",
                        "Consider using a grammar checking tool",
                    ],
                    severity="medium",
                    details={"problems": problems[:3]},
                )
            )

        limit = self.config["max_sentence_length"]
        long_sentences = [s for s in context.content_sentences() if len(s.split()) > limit]
        if long_sentences:
            findings.append(
                Finding(
                    "Overly long sentences",
                    f"Found {len(long_sentences)} sentences that may be too long for easy reading.",
                    [
                        "Break long sentences into shorter ones",
                        "Use conjunctions to separate ideas",
                        "Consider using bullet points for lists",
                        "Aim for 15-20 words per sentence",
                    ],
                    severity="medium",
                    details={"long_sentence_count": len(long_sentences)},
                )
            )
        return findings

    def _check_structure(self, content: str) -> Finding | None:
        header_count = len(_MD_HEADER_RE.findall(content)) + len(_HTML_HEADER_RE.findall(content))
        if self.config["require_headers"] and header_count < self.config["min_header_count"]:
            return Finding(
                "Poor content structure",
                "Content lacks proper header structure for easy navigation.",
                [
                    "Add descriptive headers to organize content",
                    "Use H2 and H3 tags for main sections",
                    "Create a logical hierarchy of information",
                    "Consider adding a table of contents for long articles",
                ],
                severity="medium",
                details={"header_count": header_count},
            )

        paragraphs = [p for p in _PARAGRAPH_SPLIT_RE.split(content) if p.strip()]
        if len(paragraphs) < 2 and "<p" not in content.lower():
            return Finding(
                "Lacks proper structure",
                "Content appears to be a single block without proper paragraph breaks.",
                [
                    "Break content into logical paragraphs",
                    "Add an introduction paragraph",
                    "Include a conclusion or summary",
                    "Use white space for better readability",
                ],
                severity="high",
                details={"paragraph_count": len(paragraphs)},
            )
        return None

    def _check_formatting(self, content: str) -> list[Finding]:
        findings = []
        if _CODE_CONTENT_RE.search(content) and not _CODE_BLOCK_RE.search(content):
            findings.append(
                Finding(
                    "Unformatted code content",
                    "Content appears to contain code that is not properly formatted.",
                    [
                        "Use code blocks (```) for multi-line code",
                        "Use inline code (`) for short code snippets",
                        "Add syntax highlighting where appropriate",
                        "Ensure code examples are properly indented",
                    ],
                    severity="medium",
                )
            )

        if _RAW_URL_RE.search(content) and not _FORMATTED_LINK_RE.search(content):
            findings.append(
                Finding(
                    "Unformatted URLs",
                    "Content contains raw URLs that should be formatted as links.",
                    [
                        "Format URLs as proper markdown links",
                        "Use descriptive link text instead of raw URLs",
                        "Ensure all external links work correctly",
                        "Consider using relative links for internal content",
                    ],
                    severity="low",
                )
            )

        if _LIST_CONTENT_RE.search(content) and not _WELL_FORMED_LIST_RE.search(content):
            findings.append(
                Finding(
                    "Poor list formatting",
                    "Lists in the content may not be properly formatted.",
                    [
                        "Use consistent list formatting (- or *)",
                        "Ensure proper spacing after list markers",
                        "Use numbered lists for sequential steps",
                        "Use bullet points for non-sequential items",
                    ],
                    severity="low",
                )
            )
        return findings

    def validate_config(self, config: dict[str, Any]) -> bool:
        return (
            config["min_word_count"] > 0
            and config["max_word_count"] > config["min_word_count"]
            and config["min_readability_score"] >= 0
            and config["max_readability_score"] <= 100
            and config["max_sentence_length"] > 5
        )
