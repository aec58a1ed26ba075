"""
Similarity ranker combining cosine similarity with confidence, recency and category signals.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from ..models.core import Cue, SearchResult
from ..utils.logging_config import get_logger
from ..utils.timestamp_utils import days_since, utc_now
from ..utils.vector_math import cosine_similarity

logger = get_logger(__name__)

DAYS_PER_YEAR = 365
MIN_RECENCY_WEIGHT = 0.5
DEFAULT_MIN_RELEVANCE = 0.1


@dataclass(frozen=True)
class CategoryBoostRule:
    """Multiplies relevance of cues in a category when the query matches a pattern."""
    category: str
    pattern: re.Pattern
    factor: float

    def applies(self, cue: Cue, query_text: str) -> bool:
        return cue.category == self.category and bool(self.pattern.search(query_text))


DEFAULT_BOOST_RULES: Tuple[CategoryBoostRule, ...] = (
    CategoryBoostRule(category='communication',
                      pattern=re.compile(r'explain|explanation|describe|clarify|설명', re.IGNORECASE),
                      factor=1.2),
    CategoryBoostRule(category='technical',
                      pattern=re.compile(
                          r'\b(?:code|coding|program\w*|develop\w*|debug\w*|software|api|function|framework|'
                          r'library|react|hooks?|python|javascript|typescript|java|sql|database|algorithm)\b'
                          r'|코드|프로그래밍|개발',
                          re.IGNORECASE),
                      factor=1.3),
)


def confidence_weight(cue: Cue) -> float:
    """Weight in [0.5, 1.0] growing with cue confidence."""
    return 0.5 + 0.5 * cue.confidence


def recency_weight(cue: Cue, now: datetime) -> float:
    """Weight in [0.5, 1.0] decaying linearly over a year since last reinforcement."""
    return max(MIN_RECENCY_WEIGHT, 1 - days_since(cue.last_reinforced, now) / DAYS_PER_YEAR)


class SimilarityRanker:
    """Scores candidate cues against a query vector and returns the best ones."""

    def __init__(self,
                 boost_rules: Sequence[CategoryBoostRule] = DEFAULT_BOOST_RULES,
                 min_relevance: float = DEFAULT_MIN_RELEVANCE):
        """
        Initialize the ranker.

        Args:
            boost_rules: Category boost table
            min_relevance: Results at or below this relevance are dropped
        """
        self.boost_rules = tuple(boost_rules)
        self.min_relevance = min_relevance

    def category_boost(self, cue: Cue, query_text: str) -> float:
        boost = 1.0
        if not query_text:
            return boost
        for rule in self.boost_rules:
            if rule.applies(cue, query_text):
                boost *= rule.factor
        return boost

    def relevance(self, cue: Cue, similarity: float, query_text: str = '', now: Optional[datetime] = None) -> float:
        """
        Composite relevance of a cue, clamped to [0, 1].

        Args:
            cue: Candidate cue
            similarity: Cosine similarity between query and cue vectors
            query_text: Raw query used for category boosts
            now: Reference time for recency (uses current time if None)

        Returns:
            Relevance score
        """
        if now is None:
            now = utc_now()
        score = similarity * confidence_weight(cue) * recency_weight(cue, now) * self.category_boost(cue, query_text)
        return max(0.0, min(1.0, score))

    def rank(self,
             query_vector: Sequence[float],
             candidates: Sequence[Tuple[Cue, Sequence[float]]],
             limit: int,
             query_text: str = '',
             now: Optional[datetime] = None) -> List[SearchResult]:
        """
        Rank candidate cues against the query.

        Args:
            query_vector: Encoded query
            candidates: (cue, vector) pairs
            limit: Maximum number of results
            query_text: Raw query used for category boosts
            now: Reference time for recency (uses current time if None)

        Returns:
            Results sorted by relevance descending, then cue key ascending
        """
        if limit <= 0:
            raise ValueError(f'limit must be positive, got {limit}')
        if not candidates:
            return []
        if now is None:
            now = utc_now()

        results = []
        for cue, vector in candidates:
            if len(vector) != len(query_vector):
                logger.warning(f'Dimension mismatch for cue {cue.key}: {len(vector)} != {len(query_vector)}')
                similarity = 0.0
            else:
                similarity = cosine_similarity(query_vector, vector)

            score = self.relevance(cue, similarity, query_text, now)
            logger.debug(f'Cue {cue.key}: similarity={similarity:.3f}, relevance={score:.3f}')

            if score > self.min_relevance:
                results.append(SearchResult(cue=cue, similarity=similarity, relevance=score))

        results.sort(key=lambda result: (-result.relevance, result.cue.key))
        return results[:limit]
