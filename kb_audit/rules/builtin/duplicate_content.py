"""Detects repetition inside a single article."""

from __future__ import annotations

from collections import Counter
import re
from typing import Any

from ...core.context import ExecutionContext
from ...core.types import Issue
from ..base import BaseRule, Finding

_MD_HEADER_RE = re.compile(r"^#+\s+(.+)$", re.MULTILINE)
_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_WORD_RE = re.compile(r"\b\w+\b")
_PUNCTUATION_RE = re.compile(r"[^\w\s]")

MIN_CONTENT_CHARS = 100
MIN_SENTENCE_CHARS = 20
MIN_PHRASE_CHARS = 10
MIN_PHRASE_OCCURRENCES = 3


def word_jaccard(first: str, second: str) -> float:
    a = set(_WORD_RE.findall(first.lower()))
    b = set(_WORD_RE.findall(second.lower()))
    union = a | b
    return len(a & b) / len(union) if union else 0.0


class DuplicateContentRule(BaseRule):
    id = "duplicate-content"
    name = "Duplicate Content Detection"
    description = "Identifies repeated content sections, similar text blocks, and redundant information"
    category = "content-quality"
    severity = "medium"
    version = "1.0.0"
    tags = ("duplicate", "repetition", "redundancy", "content")
    configurable = True
    default_config = {
        "min_similarity_threshold": 0.8,
        "min_text_length": 50,
        "check_headers": True,
        "check_paragraphs": True,
        "check_sentences": True,
        "ignore_common_phrases": True,
        "common_phrases": [
            "thank you", "please note", "for more information",
            "if you have questions", "contact support", "getting started",
        ],
    }

    def evaluate(self, context: ExecutionContext) -> Issue | None:
        content = context.article.content or ""
        if len(content) < MIN_CONTENT_CHARS:
            return None

        findings: list[Finding] = []
        if self.config["check_headers"]:
            headers = self._check_headers(content)
            if headers:
                findings.append(headers)
        if self.config["check_paragraphs"]:
            findings.extend(self._check_paragraphs(content))
        if self.config["check_sentences"]:
            findings.extend(self._check_sentences(content))
        findings.extend(self._check_repetitive_phrases(content))
        return self.consolidate(findings)

    def _check_headers(self, content: str) -> Finding | None:
        headers = [header.strip().lower() for header in _MD_HEADER_RE.findall(content)]
        if len(headers) < 2:
            return None
        duplicates = [
            {"text": text, "count": count} for text, count in Counter(headers).items() if count > 1
        ]
        if not duplicates:
            return None
        return Finding(
            "Duplicate headers detected",
            f"Found {len(duplicates)} headers that are identical or very similar.",
            [
                "Review header names for uniqueness",
                "Use more specific header text",
                "Combine sections with similar headers",
                "Create a clear content hierarchy",
            ],
            severity="medium",
            details={"duplicate_headers": duplicates[:3]},
        )

    def _check_paragraphs(self, content: str) -> list[Finding]:
        paragraphs = [
            p.strip()
            for p in _PARAGRAPH_SPLIT_RE.split(content)
            if len(p.strip()) > self.config["min_text_length"]
        ]
        threshold = self.config["min_similarity_threshold"]
        similar = []
        for i, first in enumerate(paragraphs):
            for second in paragraphs[i + 1:]:
                similarity = word_jaccard(first, second)
                if similarity >= threshold:
                    similar.append(
                        {
                            "similarity": round(similarity * 100),
                            "text1": first[:100] + "...",
                            "text2": second[:100] + "...",
                        }
                    )
        if not similar:
            return []
        return [
            Finding(
                "Similar paragraphs detected",
                f"Found {len(similar)} pairs of paragraphs with high similarity.",
                [
                    "Review similar paragraphs for redundancy",
                    "Combine or consolidate repetitive content",
                    "Ensure each paragraph adds unique value",
                    "Consider creating reusable content blocks",
                ],
                severity="medium",
                details={"similar_paragraphs": similar[:2]},
            )
        ]

    def _check_sentences(self, content: str) -> list[Finding]:
        sentences = [
            s.strip() for s in _SENTENCE_SPLIT_RE.split(content) if len(s.strip()) > MIN_SENTENCE_CHARS
        ]
        normalized = Counter(_PUNCTUATION_RE.sub("", s.lower()).strip() for s in sentences)
        duplicates = [
            {"sentence": text[:80] + "...", "occurrences": count}
            for text, count in normalized.items()
            if count > 1 and len(text) > MIN_SENTENCE_CHARS
        ]
        if not duplicates:
            return []
        return [
            Finding(
                "Duplicate sentences found",
                f"Found {len(duplicates)} sentences that are repeated exactly.",
                [
                    "Remove duplicate sentences",
                    "Vary sentence structure when conveying similar information",
                    "Use references instead of repeating information",
                    "Check for copy-paste errors",
                ],
                severity="high",
                details={"duplicate_sentences": duplicates[:3]},
            )
        ]

    def _check_repetitive_phrases(self, content: str) -> list[Finding]:
        words = _WORD_RE.findall(content.lower())
        phrases = Counter(
            phrase
            for phrase in (" ".join(words[i:i + 3]) for i in range(len(words) - 2))
            if len(phrase) > MIN_PHRASE_CHARS
        )
        repeated = sorted(
            ((phrase, count) for phrase, count in phrases.items() if count >= MIN_PHRASE_OCCURRENCES),
            key=lambda item: (-item[1], item[0]),
        )
        if self.config["ignore_common_phrases"]:
            common = [phrase.lower() for phrase in self.config["common_phrases"]]
            repeated = [(p, c) for p, c in repeated if not any(item in p for item in common)]
        if not repeated:
            return []
        return [
            Finding(
                "Repetitive phrases detected",
                f"Found {len(repeated)} phrases that are repeated frequently.",
                [
                    "Vary language to avoid repetitive phrasing",
                    "Use synonyms and alternative expressions",
                    "Review content for necessary repetition",
                    "Consider creating a glossary for repeated terms",
                ],
                severity="low",
                details={
                    "repetitive_phrases": [
                        {"phrase": phrase, "occurrences": count} for phrase, count in repeated[:3]
                    ]
                },
            )
        ]

    def validate_config(self, config: dict[str, Any]) -> bool:
        return (
            0 < config["min_similarity_threshold"] <= 1
            and config["min_text_length"] > 0
            and isinstance(config["common_phrases"], list)
        )
