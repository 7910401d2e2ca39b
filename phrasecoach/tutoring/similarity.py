#!/usr/bin/env python3
"""
Lexical similarity between a learner's utterance and a target expression.

Cheap bag-of-words overlap with a containment short-circuit. The engine's
thresholds are calibrated against exactly this score.
"""

import re
from typing import Set


CORRECT_THRESHOLD = 0.8
CLOSE_THRESHOLD = 0.6
MIN_TOKEN_LENGTH = 3

_PUNCTUATION = re.compile(r'[^\w\s]')


def normalize(text: str) -> str:
    """Strip punctuation, lowercase, trim"""
    return _PUNCTUATION.sub('', text or '').lower().strip()


def tokenize(normalized: str) -> Set[str]:
    """Whitespace tokens, dropping anything shorter than MIN_TOKEN_LENGTH"""
    return {word for word in normalized.split() if len(word) >= MIN_TOKEN_LENGTH}


def score(a: str, b: str) -> float:
    """
    Similarity in [0, 1].

    1.0 when either normalized string contains the other, otherwise the share
    of significant words they have in common relative to the longer side.
    """
    clean_a = normalize(a)
    clean_b = normalize(b)

    # The empty string is a substring of everything
    if not clean_a or not clean_b:
        return 0.0

    if clean_a in clean_b or clean_b in clean_a:
        return 1.0

    words_a = tokenize(clean_a)
    words_b = tokenize(clean_b)
    if not words_a or not words_b:
        return 0.0

    return len(words_a & words_b) / max(len(words_a), len(words_b))


def is_correct(similarity: float) -> bool:
    return similarity >= CORRECT_THRESHOLD


def is_close(similarity: float) -> bool:
    return CLOSE_THRESHOLD <= similarity < CORRECT_THRESHOLD
