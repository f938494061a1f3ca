"""
Heuristic semantic and readability analysis.

Entity extraction here is deliberately lightweight: keyword frequency,
capitalization patterns and a few cue words. It is advisory only. When
extraction cannot run, SemanticAnalyzer.analyze returns a report flagged
``degraded`` instead of raising.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
import logging
import re
from typing import Any

from ..core.profile import strip_markup, tokenize
from ..core.types import Article
from ..errors import ExtractionError

logger = logging.getLogger(__name__)

STOPWORDS = frozenset(
    {
        "a", "about", "above", "after", "again", "against", "all", "also", "am", "an",
        "and", "any", "are", "as", "at", "be", "because", "been", "before", "being",
        "below", "between", "both", "but", "by", "can", "could", "did", "do", "does",
        "doing", "down", "during", "each", "few", "for", "from", "further", "had",
        "has", "have", "having", "he", "her", "here", "hers", "herself", "him",
        "himself", "his", "how", "if", "in", "into", "is", "it", "its", "itself",
        "just", "may", "me", "might", "more", "most", "must", "my", "myself", "no",
        "nor", "not", "now", "of", "off", "on", "once", "only", "or", "other", "our",
        "ours", "ourselves", "out", "over", "own", "same", "shall", "she", "should",
        "so", "some", "such", "than", "that", "the", "their", "theirs", "them",
        "themselves", "then", "there", "these", "they", "this", "those", "through",
        "to", "too", "under", "until", "up", "very", "was", "we", "were", "what",
        "when", "where", "which", "while", "who", "whom", "why", "will", "with",
        "would", "you", "your", "yours", "yourself", "yourselves",
    }
)

POSITIVE_WORDS = frozenset({"good", "great", "excellent", "amazing", "helpful", "useful"})
NEGATIVE_WORDS = frozenset({"bad", "poor", "terrible", "awful", "useless", "difficult"})

READABILITY_BANDS = (
    (90, "Very Easy"),
    (80, "Easy"),
    (70, "Fairly Easy"),
    (60, "Standard"),
    (50, "Fairly Difficult"),
    (30, "Difficult"),
)

_CAPITALIZED_PHRASE_RE = re.compile(r"\b[A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)+\b")
_HONORIFIC_RE = re.compile(r"\b(?:Mr|Mrs|Ms|Dr|Prof)\.?[ \t]+([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)?)")
_BYLINE_RE = re.compile(r"\b[Bb]y[ \t]+([A-Z][a-z]+[ \t]+[A-Z][a-z]+)\b")
_PLACE_RE = re.compile(r"\b(?:in|at|from|near)[ \t]+([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)*)")
_ORG_SUFFIX_RE = re.compile(r"\b((?:[A-Z][\w&]*[ \t]+)+(?:Inc|Ltd|Corp|LLC|GmbH)\b\.?)")
_ACRONYM_RE = re.compile(r"\b[A-Z]{2,6}\b")
_SENTENCE_SEGMENT_RE = re.compile(r"[.!?]+")
_WORD_RE = re.compile(r"[a-z]+")
_VOWEL_GROUP_RE = re.compile(r"[aeiouy]+")


@dataclass
class Entities:
    """Coarse entity classes extracted from one text."""

    topics: list[str] = field(default_factory=list)
    people: list[str] = field(default_factory=list)
    places: list[str] = field(default_factory=list)
    organizations: list[str] = field(default_factory=list)


@dataclass
class Sentiment:
    positive: int = 0
    negative: int = 0

    @property
    def neutral(self) -> bool:
        return self.positive == self.negative

    @property
    def score(self) -> float:
        return (self.positive - self.negative) / (self.positive + self.negative + 1)

    def to_dict(self) -> dict[str, Any]:
        return {
            "positive": self.positive,
            "negative": self.negative,
            "neutral": self.neutral,
            "score": self.score,
        }


@dataclass
class ReadabilityReport:
    """Flesch Reading Ease result.

    Attributes:
        score: Flesch score clamped to [0, 100]
        level: Qualitative band for the score
        words: Word count (at least 1)
        sentences: Sentence count (at least 1)
        syllables: Approximate syllable count
    """

    score: float
    level: str
    words: int
    sentences: int
    syllables: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "level": self.level,
            "metrics": {
                "words": self.words,
                "sentences": self.sentences,
                "syllables": self.syllables,
            },
        }


@dataclass
class SemanticReport:
    """Semantic analysis of one article.

    A degraded report carries ``degraded=True``, an ``error`` message and
    ``basic_metrics`` only; entity lists are empty and sentiment/readability
    are None.
    """

    article_id: str
    topics: list[str] = field(default_factory=list)
    people: list[str] = field(default_factory=list)
    places: list[str] = field(default_factory=list)
    organizations: list[str] = field(default_factory=list)
    sentiment: Sentiment | None = None
    readability: ReadabilityReport | None = None
    key_phrases: list[str] = field(default_factory=list)
    basic_metrics: dict[str, int] = field(default_factory=dict)
    degraded: bool = False
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "article_id": self.article_id,
            "topics": list(self.topics),
            "people": list(self.people),
            "places": list(self.places),
            "organizations": list(self.organizations),
            "sentiment": self.sentiment.to_dict() if self.sentiment else None,
            "readability": self.readability.to_dict() if self.readability else None,
            "key_phrases": list(self.key_phrases),
            "basic_metrics": dict(self.basic_metrics),
            "fallback": self.degraded,
            "error": self.error,
        }


def extract_entities(text: str, max_chars: int = 200000, max_topics: int = 10) -> Entities:
    """Extract topics, people, places and organizations from plain text.

    Args:
        text: Markup-free text with original casing
        max_chars: Texts longer than this raise ExtractionError
        max_topics: Number of keyword topics to keep

    Returns:
        Entities with de-duplicated lists in first-seen order. Topics are
        lowercased; names keep their casing.

    Raises:
        ExtractionError: If the text is too long to extract from
    """
    if len(text) > max_chars:
        raise ExtractionError(
            f"Text length {len(text)} exceeds extraction limit of {max_chars} characters"
        )

    counts = Counter(
        token
        for token in tokenize(text)
        if len(token) >= 3 and not token.isdigit() and token not in STOPWORDS
    )
    keywords = [
        word
        for word, count in sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        if count >= 2
    ][:max_topics]

    phrases = []
    for match in _CAPITALIZED_PHRASE_RE.finditer(text):
        if _at_sentence_start(text, match.start()):
            continue
        phrase = _trim_stopwords(match.group(0))
        if phrase and " " in phrase:
            phrases.append(phrase.lower())

    people = [match.group(1) for match in _HONORIFIC_RE.finditer(text)]
    people.extend(match.group(1) for match in _BYLINE_RE.finditer(text))

    places = []
    for match in _PLACE_RE.finditer(text):
        place = _trim_stopwords(match.group(1))
        if place:
            places.append(place)

    organizations = [match.group(1).strip() for match in _ORG_SUFFIX_RE.finditer(text)]
    organizations.extend(match.group(0) for match in _ACRONYM_RE.finditer(text))

    return Entities(
        topics=_unique(keywords + phrases),
        people=_unique(people),
        places=_unique(places),
        organizations=_unique(organizations),
    )


def overlap(first: list[str], second: list[str]) -> float:
    """Case-insensitive Jaccard overlap; empty-vs-empty is 1, one empty side is 0."""
    if not first and not second:
        return 1.0
    if not first or not second:
        return 0.0
    a = {item.lower() for item in first}
    b = {item.lower() for item in second}
    return len(a & b) / len(a | b)


def analyze_sentiment(tokens: list[str]) -> Sentiment:
    sentiment = Sentiment()
    for token in tokens:
        if token in POSITIVE_WORDS:
            sentiment.positive += 1
        elif token in NEGATIVE_WORDS:
            sentiment.negative += 1
    return sentiment


def count_syllables(text: str) -> int:
    """Approximate syllables with vowel clusters, minus a silent trailing e."""
    total = 0
    for word in _WORD_RE.findall(text.lower()):
        syllables = len(_VOWEL_GROUP_RE.findall(word))
        if word.endswith("e") and syllables > 1:
            syllables -= 1
        total += max(1, syllables)
    return total


def readability_level(score: float) -> str:
    for threshold, label in READABILITY_BANDS:
        if score >= threshold:
            return label
    return "Very Difficult"


def calculate_readability(content: str) -> ReadabilityReport:
    """Compute a clamped Flesch Reading Ease score for marked-up content."""
    text = strip_markup(content or "")
    words = max(1, len(text.split()))
    sentences = max(1, len([part for part in _SENTENCE_SEGMENT_RE.split(text) if part.strip()]))
    syllables = count_syllables(text)
    raw = 206.835 - 1.015 * (words / sentences) - 84.6 * (syllables / words)
    score = max(0.0, min(100.0, raw))
    return ReadabilityReport(
        score=score,
        level=readability_level(score),
        words=words,
        sentences=sentences,
        syllables=syllables,
    )


def extract_key_phrases(tokens: list[str], limit: int = 10) -> list[str]:
    """Return the most frequent bigrams of adjacent non-stopword tokens."""
    counts: Counter[str] = Counter()
    for first, second in zip(tokens, tokens[1:]):
        if first in STOPWORDS or second in STOPWORDS:
            continue
        if len(first) < 3 or len(second) < 3:
            continue
        counts[f"{first} {second}"] += 1
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [phrase for phrase, count in ranked if count >= 2][:limit]


class SemanticAnalyzer:
    """Runs entity extraction, sentiment and readability for one article.

    Attributes:
        max_extraction_chars: Extraction limit passed to extract_entities
        max_topics: Number of keyword topics to keep
    """

    def __init__(self, max_extraction_chars: int = 200000, max_topics: int = 10):
        self.max_extraction_chars = max_extraction_chars
        self.max_topics = max_topics

    def extract(self, text: str) -> Entities:
        return extract_entities(text, self.max_extraction_chars, self.max_topics)

    def analyze(self, article: Article) -> SemanticReport:
        """Full semantic report; any failure yields a degraded report instead of raising."""
        content = article.content or ""
        text = strip_markup(content)
        basic_metrics = {"word_count": len(text.split()), "character_count": len(content)}
        try:
            entities = self.extract(text)
            tokens = tokenize(text)
            return SemanticReport(
                article_id=article.id,
                topics=entities.topics,
                people=entities.people,
                places=entities.places,
                organizations=entities.organizations,
                sentiment=analyze_sentiment(tokens),
                readability=calculate_readability(content),
                key_phrases=extract_key_phrases(tokens),
                basic_metrics=basic_metrics,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Semantic analysis degraded for %s: %s",
                article.id,
                exc,
                extra={"event": "semantic_degraded", "article_id": article.id},
            )
            return SemanticReport(
                article_id=article.id,
                basic_metrics=basic_metrics,
                degraded=True,
                error=f"Semantic analysis failed: {exc}",
            )


def _at_sentence_start(text: str, index: int) -> bool:
    preceding = text[:index].rstrip()
    return not preceding or preceding[-1] in ".!?:\n"


def _trim_stopwords(phrase: str) -> str:
    words = phrase.split()
    while words and words[0].lower() in STOPWORDS:
        words.pop(0)
    return " ".join(words)


def _unique(items: list[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for item in items:
        key = item.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(item)
    return result
