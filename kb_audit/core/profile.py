"""
Content profile building for similarity comparison.

A profile is the normalized, tokenized and stemmed view of one article's
content. It is built once per article per analysis call and is the sole
input to every similarity metric.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import re

from bs4 import BeautifulSoup
from nltk.stem.porter import PorterStemmer
from nltk.tokenize import RegexpTokenizer

_MD_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
_MD_LINK_RE = re.compile(r"\[([^\]]*)\]\([^)]*\)")
_MD_HEADING_RE = re.compile(r"^\s{0,3}#{1,6}\s*", re.MULTILINE)
_MD_LIST_MARKER_RE = re.compile(r"^\s*(?:[-*+]|\d+\.)\s+", re.MULTILINE)
_MD_EMPHASIS_RE = re.compile(r"[*_`~]+")
_WHITESPACE_RE = re.compile(r"\s+")
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")

_TOKENIZER = RegexpTokenizer(r"[a-z0-9]+")
_STEMMER = PorterStemmer()


@dataclass(frozen=True)
class ContentProfile:
    """Normalized representation of one article's content.

    Attributes:
        raw_text: Markup-free, whitespace-collapsed, lowercased text
        plain_text: Same text with original casing (used by entity extraction)
        tokens: Word tokens of raw_text, in order
        stemmed_tokens: Porter stem of each token, aligned with tokens
        sentences: raw_text split on terminal punctuation
    """

    raw_text: str
    plain_text: str
    tokens: tuple[str, ...]
    stemmed_tokens: tuple[str, ...]
    sentences: tuple[str, ...]


def strip_markup(content: str) -> str:
    """Remove HTML tags and Markdown syntax, keeping visible text.

    Whitespace is collapsed to single spaces; casing is preserved.
    """
    if not content:
        return ""
    text = content
    if "<" in text and ">" in text:
        soup = BeautifulSoup(text, "html.parser")
        for tag in soup(["script", "style"]):
            tag.decompose()
        text = soup.get_text(" ")
    text = _MD_IMAGE_RE.sub(r" \1 ", text)
    text = _MD_LINK_RE.sub(r" \1 ", text)
    text = _MD_HEADING_RE.sub("", text)
    text = _MD_LIST_MARKER_RE.sub("", text)
    text = _MD_EMPHASIS_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


@lru_cache(maxsize=65536)
def stem(token: str) -> str:
    return _STEMMER.stem(token)


def tokenize(text: str) -> list[str]:
    """Split lowercased text into alphanumeric word tokens."""
    return _TOKENIZER.tokenize(text.lower())


def split_sentences(text: str) -> list[str]:
    return [part.strip() for part in _SENTENCE_SPLIT_RE.split(text) if part.strip()]


def build_profile(content: str | None) -> ContentProfile:
    """Build a ContentProfile from raw marked-up content.

    Args:
        content: Raw article content (HTML and/or Markdown). None is treated
            as empty content.

    Returns:
        ContentProfile with normalized text, tokens, stems and sentences.
        Empty content yields an all-empty profile.
    """
    plain = strip_markup(content or "")
    raw = plain.lower()
    tokens = tokenize(raw)
    return ContentProfile(
        raw_text=raw,
        plain_text=plain,
        tokens=tuple(tokens),
        stemmed_tokens=tuple(stem(token) for token in tokens),
        sentences=tuple(split_sentences(raw)),
    )
