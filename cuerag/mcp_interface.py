"""
MCP Interface Layer exposing personalization retrieval to agents.
"""
from typing import Any, Dict, Optional

from fastmcp import FastMCP

from cuerag.models.core import RAGContext
from cuerag.services.retrieval import RetrievalCore
from cuerag.utils.config import config
from cuerag.utils.logging_config import get_logger

logger = get_logger(__name__)

# Initialize FastMCP application
mcp = FastMCP('Personal Cue Retrieval')
_core: Optional[RetrievalCore] = None


def get_core() -> RetrievalCore:
    """Retrieval core wired against the configured OpenSearch cue index."""
    global _core
    if _core is None:
        _core = RetrievalCore.with_opensearch(config)
    return _core


def context_to_dict(context: RAGContext) -> Dict[str, Any]:
    return {
        'summary': context.summary,
        'personality_factors': context.personality_factors,
        'confidence': context.confidence,
        'used_cue_keys': context.used_cue_keys,
    }


@mcp.tool()
def build_personal_context(user_id: str, query: str, max_cues: int = 5) -> Dict[str, Any]:
    """Build the personalization context for a user's query.

    Args:
        user_id: User ID
        query: Natural language query
        max_cues: Maximum number of cues to include (default: 5)

    Returns:
        Dictionary with summary, personality factors, confidence and used cue keys
    """
    if not user_id or not user_id.strip():
        raise ValueError('User ID is required')

    context = get_core().build_context(user_id, query, max_cues)
    logger.debug(f'MCP context used {len(context.cues)} cues for user {user_id}')
    return context_to_dict(context)


@mcp.tool()
def personalized_prompt(user_id: str, query: str) -> str:
    """Render a model-ready prompt personalized for the user.

    Args:
        user_id: User ID
        query: Natural language query

    Returns:
        Prompt text
    """
    if not user_id or not user_id.strip():
        raise ValueError('User ID is required')

    return get_core().facade.build_prompt(user_id, query)


if __name__ == '__main__':
    mcp.run(transport=config.mcp.transport, host=config.mcp.host, port=config.mcp.port)
