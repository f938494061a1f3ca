"""Per-call execution context handed to every rule."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import math
import re
import time
from typing import Callable

from .types import Article

_IMAGE_RE = re.compile(r"!\[.*?\]\(.*?\)|<img.*?>", re.IGNORECASE)
_LINK_RE = re.compile(r"\[.*?\]\(.*?\)|<a.*?href.*?>", re.IGNORECASE)
_NON_WORD_RE = re.compile(r"[^\w\s]")
_SENTENCE_END_RE = re.compile(r"[.!?]+")
_URL_RE = re.compile(
    r"https?://(?:www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b[-a-zA-Z0-9()@:%_+.~#?&/=]*"
)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ContextMetadata:
    """Derived article metadata.

    Attributes:
        word_count: Whitespace-separated word count of the raw content
        content_length: Character length of the raw content
        has_images: Whether Markdown or HTML images are present
        has_links: Whether Markdown or HTML links are present
        last_modified: Article modification time, if known
        age_days: Whole days since last_modified (rounded up), 0 if unknown
    """

    word_count: int
    content_length: int
    has_images: bool
    has_links: bool
    last_modified: datetime | None
    age_days: int


@dataclass
class ExecutionContext:
    """Snapshot of one article plus metadata, discarded after the call."""

    article: Article
    metadata: ContextMetadata
    started_at: float = field(default_factory=time.perf_counter)

    @classmethod
    def from_article(cls, article: Article, clock: Clock = utc_now) -> "ExecutionContext":
        content = article.content or ""
        metadata = ContextMetadata(
            word_count=len(content.split()),
            content_length=len(content),
            has_images=bool(_IMAGE_RE.search(content)),
            has_links=bool(_LINK_RE.search(content)),
            last_modified=article.last_modified,
            age_days=_age_in_days(article.last_modified, clock()),
        )
        return cls(article=article, metadata=metadata)

    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.started_at) * 1000.0

    def content_words(self) -> list[str]:
        content = self.article.content or ""
        return [word for word in _NON_WORD_RE.sub(" ", content.lower()).split() if word]

    def content_sentences(self) -> list[str]:
        content = self.article.content or ""
        return [part.strip() for part in _SENTENCE_END_RE.split(content) if part.strip()]

    def extract_links(self) -> list[str]:
        return _URL_RE.findall(self.article.content or "")


def _age_in_days(last_modified: datetime | None, now: datetime) -> int:
    if last_modified is None:
        return 0
    # Naive timestamps are treated as UTC.
    if last_modified.tzinfo is None:
        last_modified = last_modified.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    seconds = abs((now - last_modified).total_seconds())
    return math.ceil(seconds / 86400)
