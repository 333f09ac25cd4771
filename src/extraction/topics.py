"""Heuristic topic detection over a chunk of transcript text.

Three weighted passes score candidate phrases:

* repeated 2- and 3-word phrases (+2),
* the phrase following an introductory cue such as "talking about" (+3),
* simple noun-phrase shapes such as "Risk management" or "the pricing model" (+1).

Scores for the same exact phrase are summed across passes and the highest
scoring phrases are returned.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import Protocol

from src.extraction.chunking import Chunk, chunk_text

MAX_TOPICS = 10

REPEATED_PHRASE_WEIGHT = 2
INTRO_PHRASE_WEIGHT = 3
NOUN_PHRASE_WEIGHT = 1

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_NON_WORD = re.compile(r"[^\w\s]")

_INTRO_PATTERNS: list[re.Pattern[str]] = [
    re.compile(
        r"(?:talk|talking|discuss|discussing|focus|focusing|about|regarding)\s+([a-z0-9\s]{3,30})",
        re.IGNORECASE,
    ),
    re.compile(
        r"(?:main|key|important)\s+(?:topic|point|issue|concern)\s+(?:is|was|being)\s+([a-z0-9\s]{3,30})",
        re.IGNORECASE,
    ),
    re.compile(r"(?:related to|concerning|with regards to)\s+([a-z0-9\s]{3,30})", re.IGNORECASE),
]

_NOUN_PHRASE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"[A-Z][a-z]+\s+(?:[a-z]+ing|[a-z]+ment|[a-z]+tion)"),  # "Risk management"
    re.compile(r"[A-Z][a-z]+\s+[A-Z][a-z]+"),  # "Health Insurance"
    re.compile(r"(?:the|our|your|their)\s+[a-z]+\s+[a-z]+", re.IGNORECASE),  # "the pricing model"
]


class TopicDetector(Protocol):
    """Anything that can name the topics of a chunk."""

    def detect(self, chunk: Chunk) -> list[str]: ...


def find_repeated_phrases(text: str) -> Counter[str]:
    """Count every 2- and 3-word window of meaningful words in *text*.

    Text is lowercased and stripped of punctuation; words of two characters
    or fewer are dropped before windowing, and phrases of five characters
    or fewer are ignored.
    """
    words = [w for w in _NON_WORD.sub("", text.lower()).split() if len(w) > 2]
    counts: Counter[str] = Counter()
    for size in (2, 3):
        for i in range(len(words) - size + 1):
            phrase = " ".join(words[i : i + size])
            if len(phrase) > 5:
                counts[phrase] += 1
    return counts


class HeuristicTopicDetector:
    """Rule-table topic detector; pure and deterministic."""

    def __init__(self, max_topics: int = MAX_TOPICS) -> None:
        self.max_topics = max_topics

    def detect(self, chunk: Chunk) -> list[str]:
        if not chunk:
            return []

        text = chunk_text(chunk)
        # dict keeps first-insertion order for the stable tie-break below
        scores: dict[str, int] = {}

        for phrase, count in find_repeated_phrases(text).items():
            if count > 1:
                scores[phrase] = scores.get(phrase, 0) + REPEATED_PHRASE_WEIGHT

        sentences = [s for s in _SENTENCE_SPLIT.split(text) if s.strip()]
        for sentence in sentences:
            for pattern in _INTRO_PATTERNS:
                match = pattern.search(sentence)
                if not match:
                    continue
                topic = match.group(1).strip()
                if len(topic) > 3:
                    scores[topic] = scores.get(topic, 0) + INTRO_PHRASE_WEIGHT

        for pattern in _NOUN_PHRASE_PATTERNS:
            for match in pattern.finditer(text):
                phrase = match.group(0)
                if len(phrase) > 5:
                    scores[phrase] = scores.get(phrase, 0) + NOUN_PHRASE_WEIGHT

        ranked = sorted(scores.items(), key=lambda item: item[1], reverse=True)
        return [phrase for phrase, _ in ranked[: self.max_topics]]


_default_detector = HeuristicTopicDetector()


def detect_topics(chunk: Chunk) -> list[str]:
    """Return up to ten topics for *chunk* using the default detector."""
    return _default_detector.detect(chunk)
