"""Detects problematic links: dev/staging hosts, malformed URLs, poor link text."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
import re
from typing import Any
from urllib.parse import urlsplit

from ...core.context import ExecutionContext
from ...core.types import Issue
from ..base import BaseRule, Finding

_MD_LINK_RE = re.compile(r"\[([^\]]*)\]\(([^)]+)\)")
_RAW_URL_RE = re.compile(
    r"https?://(?:www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b[-a-zA-Z0-9()@:%_+.~#?&/=]*"
)
_HTML_LINK_RE = re.compile(
    r"<a\s+(?:[^>]*?\s+)?href=([\"'])(.*?)\1[^>]*>(.*?)</a>", re.IGNORECASE | re.DOTALL
)

POOR_LINK_TEXT = frozenset({"here", "click here", "link", "this", "read more"})
MAX_URL_LENGTH = 2000


@dataclass(frozen=True)
class Link:
    kind: str
    text: str
    url: str


def extract_links(content: str) -> list[Link]:
    """Collect Markdown, raw and HTML links in that order."""
    links = [Link("markdown", m.group(1), m.group(2)) for m in _MD_LINK_RE.finditer(content)]
    markdown_urls = {link.url for link in links}
    for match in _RAW_URL_RE.finditer(content):
        url = match.group(0)
        if url in markdown_urls or _inside_attribute(content, match.start()):
            continue
        links.append(Link("raw", url, url))
    links.extend(Link("html", m.group(3), m.group(2)) for m in _HTML_LINK_RE.finditer(content))
    return links


def _inside_attribute(content: str, index: int) -> bool:
    # Raw-URL matches that are really href="..." values belong to the HTML pass.
    return index > 0 and content[index - 1] in "\"'("


class BrokenLinksRule(BaseRule):
    id = "broken-links"
    name = "Broken Links Detection"
    description = "Identifies potentially broken links, malformed URLs, and link-related issues"
    category = "technical"
    severity = "high"
    version = "1.0.0"
    tags = ("links", "urls", "navigation", "technical")
    configurable = True
    default_config = {
        "check_link_formatting": True,
        "suspicious_domains": [
            "localhost", "127.0.0.1", "192.168.", "10.0.0.",
            "staging.", "test.", "dev.", "demo.",
        ],
        "deprecated_domains": ["example.com", "test.com", "localhost.com"],
    }

    def evaluate(self, context: ExecutionContext) -> Issue | None:
        content = context.article.content or ""
        if not content:
            return None
        links = extract_links(content)
        if not links:
            return None

        findings: list[Finding] = []
        findings.extend(self._check_urls(links))
        if self.config["check_link_formatting"]:
            findings.extend(self._check_link_formatting(links))
        findings.extend(self._check_duplicate_links(links))
        return self.consolidate(findings, total_links_found=len(links))

    def analyze_url(self, url: str) -> list[str]:
        problems = []
        lowered = url.lower()
        for domain in self.config["suspicious_domains"]:
            if domain in lowered:
                problems.append(f"Contains suspicious domain: {domain}")
        for domain in self.config["deprecated_domains"]:
            if domain in lowered:
                problems.append(f"Uses deprecated domain: {domain}")

        if lowered.startswith(("http://", "https://")):
            try:
                parts = urlsplit(url)
                hostname = parts.hostname
            except ValueError:
                problems.append("Malformed URL structure")
            else:
                if not hostname:
                    problems.append("Empty hostname")
                if "//" in parts.path:
                    problems.append("Contains double slashes in path")
            if " " in url:
                problems.append("Contains unencoded spaces")

        if url.startswith("http://") and "localhost" not in lowered:
            problems.append("Uses insecure HTTP protocol")
        if len(url) > MAX_URL_LENGTH:
            problems.append("URL is extremely long")
        return problems

    def _check_urls(self, links: list[Link]) -> list[Finding]:
        problematic = []
        for link in links:
            problems = self.analyze_url(link.url)
            if problems:
                problematic.append({"url": link.url, "problems": problems})
        if not problematic:
            return []
        return [
            Finding(
                "Problematic URLs detected",
                f"Found {len(problematic)} links that may be broken or problematic.",
                [
                    "Review and update problematic URLs",
                    "Test all external links for accessibility",
                    "Replace development/staging URLs with production URLs",
                    "Remove or fix malformed URLs",
                    "Consider using relative paths for internal links",
                ],
                severity="high",
                details={"problematic_count": len(problematic), "examples": problematic[:3]},
            )
        ]

    def _check_link_formatting(self, links: list[Link]) -> list[Finding]:
        findings = []
        raw = [link for link in links if link.kind == "raw"]
        if raw:
            findings.append(
                Finding(
                    "Unformatted URLs",
                    f"Found {len(raw)} raw URLs that should be formatted as proper links.",
                    [
                        "Convert raw URLs to markdown links with descriptive text",
                        "Use meaningful link text instead of displaying URLs",
                        "Follow accessibility guidelines for link text",
                        "Consider shortening very long URLs",
                    ],
                    severity="medium",
                    details={"raw_url_count": len(raw), "examples": [link.url for link in raw[:3]]},
                )
            )

        poor = []
        for link in links:
            if link.kind != "markdown":
                continue
            text = link.text.lower().strip()
            if text in POOR_LINK_TEXT or text == link.url.lower() or len(text) < 3:
                poor.append(link)
        if poor:
            findings.append(
                Finding(
                    "Poor link text",
                    f"Found {len(poor)} links with non-descriptive text.",
                    [
                        "Use descriptive text that indicates link destination",
                        'Avoid generic phrases like "click here" or "read more"',
                        "Make link text meaningful out of context",
                        "Follow accessibility best practices for link text",
                    ],
                    severity="medium",
                    details={
                        "poor_link_count": len(poor),
                        "examples": [{"text": link.text, "url": link.url} for link in poor[:3]],
                    },
                )
            )
        return findings

    def _check_duplicate_links(self, links: list[Link]) -> list[Finding]:
        counts = Counter(link.url.lower() for link in links)
        duplicates = [{"url": url, "count": count} for url, count in counts.items() if count > 1]
        if not duplicates:
            return []
        return [
            Finding(
                "Duplicate links detected",
                f"Found {len(duplicates)} URLs that appear multiple times in the content.",
                [
                    "Review duplicate links for necessity",
                    "Consider consolidating repetitive links",
                    "Use internal references instead of repeating URLs",
                    "Ensure duplicate links serve different purposes",
                ],
                severity="low",
                details={"duplicate_count": len(duplicates), "examples": duplicates[:3]},
            )
        ]

    def validate_config(self, config: dict[str, Any]) -> bool:
        return isinstance(config["suspicious_domains"], list) and isinstance(
            config["deprecated_domains"], list
        )
