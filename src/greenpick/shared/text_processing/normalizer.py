"""
Text normalization helpers shared by the keyword matcher and the test encoders.

Normalization lowercases, strips punctuation and collapses whitespace so that
"Classify, product images!" and "classify product   images" compare equal.
"""

import re
from typing import FrozenSet, List

from ...core.constants import MAX_NGRAM_SIZE

_PUNCTUATION_RE = re.compile(r"[^\w\s]|_")
_WHITESPACE_RE = re.compile(r"\s+")

STOPWORDS: FrozenSet[str] = frozenset({
    "a", "an", "the", "and", "or", "of", "to", "in", "on", "for", "by",
    "with", "into", "from", "at", "as", "is", "are", "be", "it", "its",
    "this", "that", "these", "those", "i", "we", "my", "our", "me", "you",
    "your", "them", "they", "want", "need", "would", "like", "some", "any",
    "can", "could", "should", "please", "help", "using",
})


def normalize_text(text: str) -> str:
    """Lowercase `text`, replace punctuation with spaces and collapse whitespace."""
    text = _PUNCTUATION_RE.sub(" ", text.lower())
    return _WHITESPACE_RE.sub(" ", text).strip()


def tokenize(text: str, drop_stopwords: bool = True) -> List[str]:
    """
    Split text into normalized words.

    Args:
        text: Raw or normalized text.
        drop_stopwords: Whether to remove words from `STOPWORDS`.

    Returns:
        Words in their original order.
    """
    words = normalize_text(text).split()
    if drop_stopwords:
        words = [w for w in words if w not in STOPWORDS]
    return words


def generate_ngrams(tokens: List[str], max_n: int = MAX_NGRAM_SIZE) -> List[str]:
    """
    Build all contiguous n-grams of 1..max_n words, shortest first.

    >>> generate_ngrams(["object", "detection", "model"], 2)
    ['object', 'detection', 'model', 'object detection', 'detection model']
    """
    ngrams = []
    for n in range(1, max_n + 1):
        for i in range(len(tokens) - n + 1):
            ngrams.append(" ".join(tokens[i:i + n]))
    return ngrams
