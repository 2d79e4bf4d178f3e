from __future__ import annotations

import re
from typing import List

STOP_WORDS = frozenset({
    "a", "an", "the", "and", "or", "but", "of", "is", "are", "was", "were",
    "be", "been", "it", "its", "this", "that", "these", "those", "with", "for",
    "at", "by", "from", "as", "so", "i", "my", "our", "your", "their", "some",
    "very", "just", "about", "into", "than", "then", "there", "they", "we", "you",
})

_APOSTROPHES = re.compile(r"['’]")
_NON_WORD = re.compile(r"[^\w\s]")


def normalize(text: str) -> str:
    """Lowercase, drop apostrophes, replace other punctuation with spaces."""
    lowered = _APOSTROPHES.sub("", text.lower())
    return " ".join(_NON_WORD.sub(" ", lowered).split())


def tokenize(text: str) -> List[str]:
    return [t for t in normalize(text).split() if t not in STOP_WORDS]


def normalize_phrase(text: str) -> str:
    """Normalized, stop-word free form used to compare keywords with patterns."""
    return " ".join(tokenize(text))


def keyword_candidates(text: str) -> List[str]:
    """Unigrams plus every contiguous bigram and trigram, in text order."""
    tokens = tokenize(text)
    candidates: List[str] = list(tokens)
    for size in (2, 3):
        for i in range(len(tokens) - size + 1):
            candidates.append(" ".join(tokens[i:i + size]))
    return candidates


def word_fragments(text: str, min_length: int = 3) -> List[str]:
    """Whole words of at least `min_length` characters, stop-words kept."""
    return [w for w in normalize(text).split() if len(w) >= min_length]


def fragments_overlap(a: str, b: str) -> bool:
    return a == b or a in b or b in a
