"""Word-frequency analysis over translated headlines.

Headers are normalised to Latin letters and whitespace, split into tokens and
filtered (length, stop words, digits, short acronyms). Words seen more than
twice across all headers are reported, most frequent first; ties keep the
order in which the words were first seen.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Tuple

from elpais_opinion.core.models import WordFrequencyTable, repetition_rate
from elpais_opinion.infra.logging import log_processing_step

REPEAT_THRESHOLD = 2
MIN_WORD_LENGTH = 3
ACRONYM_MAX_LENGTH = 4

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "is", "are", "was", "were", "be", "been", "being",
        "have", "has", "had", "do", "does", "did", "will", "would", "could",
        "should", "may", "might", "can", "this", "that", "these", "those",
        "i", "you", "he", "she", "it", "we", "they", "me", "him", "her", "us", "them",
    }
)

_NON_LETTER = re.compile(r"[^a-zA-ZáéíóúñÁÉÍÓÚÑ\s]")
_SPACES = re.compile(r"\s+")
_DIGIT = re.compile(r"\d")

__all__ = [
    "STOP_WORDS",
    "normalize_header",
    "tokenize",
    "is_valid_word",
    "analyze",
    "repetition_rate",
]


def normalize_header(text: Optional[str]) -> str:
    if not text:
        return ""
    cleaned = _NON_LETTER.sub(" ", text)
    return _SPACES.sub(" ", cleaned).strip()


def is_valid_word(token: str) -> bool:
    """Check one raw (original casing) token."""
    word = token.lower()
    if len(word) < MIN_WORD_LENGTH:
        return False
    if word in STOP_WORDS:
        return False
    if _DIGIT.search(word):
        return False
    # short all-caps tokens are taken as acronyms
    if token.isupper() and len(token) <= ACRONYM_MAX_LENGTH:
        return False
    return True


def tokenize(header: Optional[str]) -> List[str]:
    """Lower-cased valid tokens of one header, in order."""
    normalized = normalize_header(header)
    if not normalized:
        return []
    return [tok.lower() for tok in normalized.split() if is_valid_word(tok)]


def _count(headers: Iterable[Optional[str]]) -> Tuple[Dict[str, Tuple[int, int]], int, int]:
    # word -> (count, discovery index)
    counts: Dict[str, Tuple[int, int]] = {}
    total = 0
    analyzed = 0
    for header in headers:
        if not header or not header.strip():
            continue
        analyzed += 1
        for word in tokenize(header):
            total += 1
            seen = counts.get(word)
            if seen is None:
                counts[word] = (1, len(counts))
            else:
                counts[word] = (seen[0] + 1, seen[1])
    return counts, total, analyzed


def analyze(headers: Optional[Iterable[Optional[str]]]) -> WordFrequencyTable:
    """Rank the words repeated more than twice across ``headers``."""
    counts, total, analyzed = _count(headers or [])
    repeated = [
        (word, count, order)
        for word, (count, order) in counts.items()
        if count > REPEAT_THRESHOLD
    ]
    repeated.sort(key=lambda e: (-e[1], e[2]))
    table = WordFrequencyTable(
        entries=tuple((word, count) for word, count, _ in repeated),
        headers_analyzed=analyzed,
        total_words=total,
        unique_words=len(counts),
    )
    log_processing_step(
        "analyzer",
        "words",
        "analysis done",
        {
            "headers": analyzed,
            "total_words": total,
            "unique_words": len(counts),
            "repeated_words": table.repeated_words,
        },
    )
    return table
