"""
Deterministic local embedding based on feature-hashed bag-of-words.
"""

import re
from collections import Counter
from typing import List

from .logging_config import get_logger
from .vector_math import l2_normalize

logger = get_logger(__name__)

# Anything that is not a letter or digit of any script, underscore or whitespace
_NON_WORD = re.compile(r'[^\w\s]')
_WHITESPACE = re.compile(r'\s+')

# Multipliers that spread each token over three buckets
BUCKET_MULTIPLIERS = (1, 17, 31)


def preprocess_text(text: str, max_chars: int = 8000) -> str:
    """Normalize text before embedding.

    Lower-cases, replaces punctuation and symbols with spaces while keeping
    letters of every script, collapses whitespace and truncates.

    Args:
        text: Raw input text
        max_chars: Maximum length of the returned text

    Returns:
        Normalized text, possibly empty
    """
    if not text:
        return ''
    cleaned = _NON_WORD.sub(' ', text.lower())
    cleaned = _WHITESPACE.sub(' ', cleaned).strip()
    return cleaned[:max_chars]


def fingerprint(text: str) -> int:
    """32-bit polynomial rolling hash (h * 31 + code point), absolute value.

    Args:
        text: Text to hash

    Returns:
        Non-negative integer below 2**31 + 1
    """
    value = 0
    for char in text:
        value = (value * 31 + ord(char)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return abs(value)


class LocalEmbed:
    """Feature-hashing encoder that needs no network and never fails."""

    def __init__(self, dimension: int):
        """
        Initialize the local encoder.

        Args:
            dimension: Length of produced vectors
        """
        if dimension <= 0:
            raise ValueError(f'Embedding dimension must be positive, got {dimension}')
        self.dimension = dimension

    def zero_vector(self) -> List[float]:
        return [0.0] * self.dimension

    def embed(self, text: str) -> List[float]:
        """
        Embed preprocessed text.

        Each distinct token adds count/total_tokens at three hashed positions,
        then the vector is L2-normalized.

        Args:
            text: Preprocessed text

        Returns:
            Unit-length vector, or the zero vector for empty input
        """
        tokens = text.split()
        if not tokens:
            return self.zero_vector()

        vector = self.zero_vector()
        total = len(tokens)
        for token, count in Counter(tokens).items():
            token_hash = fingerprint(token)
            weight = count / total
            for multiplier in BUCKET_MULTIPLIERS:
                vector[(token_hash * multiplier) % self.dimension] += weight

        logger.debug(f'Local embedding built from {total} tokens ({len(set(tokens))} distinct)')
        return l2_normalize(vector)
