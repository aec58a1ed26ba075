"""
Context assembly: ranked cues to a bounded personalization summary and prompt.
"""

from typing import Dict, List, Sequence

from ..models.core import RAGContext, SearchResult

EMPTY_SUMMARY = 'Keep chatting so your assistant can learn your preferences.'
GENERAL_SUMMARY = 'General learning pattern'
SUMMARY_SEPARATOR = ' | '
KEYS_PER_GROUP = 2

CATEGORY_LABELS = {
    'communication': 'Communication style',
    'technical': 'Technical preference',
    'personal': 'Personal trait',
}

PROMPT_PREAMBLE = 'You are an AI assistant who knows the user\'s personal traits well.'
PROMPT_GUIDELINES = (
    '- Tailor the answer to the personalization details above',
    '- Match the explanation to the user\'s learning style and preferences',
)
PROMPT_CLOSING = 'Using the personalization details above, give a friendly and helpful answer.'


def empty_context() -> RAGContext:
    return RAGContext(cues=[], summary=EMPTY_SUMMARY, personality_factors=[], confidence=0.0)


def category_label(category: str) -> str:
    if category in CATEGORY_LABELS:
        return CATEGORY_LABELS[category]
    return category.replace('_', ' ').strip().capitalize() or GENERAL_SUMMARY


class ContextAssembler:
    """Pure transformation of search results into a RAGContext."""

    def __init__(self, max_summary_groups: int = 4, max_personality_factors: int = 5):
        self.max_summary_groups = max_summary_groups
        self.max_personality_factors = max_personality_factors

    def summarize(self, results: Sequence[SearchResult]) -> str:
        """Group cue keys by category in order of first appearance, two keys per group."""
        groups: Dict[str, List[str]] = {}
        for result in results:
            cue = result.cue
            keys = groups.setdefault(cue.category, [])
            if len(keys) < KEYS_PER_GROUP:
                keys.append(cue.key)

        parts = [
            f'{category_label(category)}: {", ".join(keys)}'
            for category, keys in list(groups.items())[:self.max_summary_groups]
        ]
        return SUMMARY_SEPARATOR.join(parts) or GENERAL_SUMMARY

    def personality_factors(self, results: Sequence[SearchResult]) -> List[str]:
        return [f'{result.cue.type.value}: {result.cue.key}' for result in results[:self.max_personality_factors]]

    @staticmethod
    def overall_confidence(results: Sequence[SearchResult]) -> float:
        if not results:
            return 0.0
        total = sum((result.relevance + result.cue.confidence) / 2 for result in results)
        return max(0.0, min(1.0, total / len(results)))

    def assemble(self, results: Sequence[SearchResult]) -> RAGContext:
        """
        Build the personalization context.

        Args:
            results: Ranked search results, best first

        Returns:
            RAGContext; the default empty context when there are no results
        """
        if not results:
            return empty_context()

        return RAGContext(cues=[result.cue for result in results],
                          summary=self.summarize(results),
                          personality_factors=self.personality_factors(results),
                          confidence=self.overall_confidence(results))


def render_basic_prompt(query: str) -> str:
    """Prompt used when no personalization is available."""
    return f'Give a friendly and helpful answer to the user\'s question.\n\nQuestion: {query}\n\nAnswer:'


def render_prompt(context: RAGContext, query: str) -> str:
    """
    Render a model-ready prompt from a context and the original query.

    Args:
        context: Assembled personalization context
        query: User query

    Returns:
        Prompt text
    """
    if context.is_empty:
        return render_basic_prompt(query)

    lines = [PROMPT_PREAMBLE, '', '**User personalization:**', context.summary, '']

    if context.personality_factors:
        lines.append('**Traits and preferences:**')
        lines.extend(f'- {factor}' for factor in context.personality_factors)
        lines.append('')

    lines.append('**Response guidelines:**')
    lines.extend(PROMPT_GUIDELINES)
    lines.append(f'- Confidence: {context.confidence * 100:.1f}%')
    lines.append('')
    lines.extend(['**User question:**', query, '', PROMPT_CLOSING])

    return '\n'.join(lines)
