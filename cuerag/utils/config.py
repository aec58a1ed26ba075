"""
Configuration management for the embedding provider, cache and retrieval settings.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass
class EmbedConfig:
    """Configuration for text embedding (remote provider and local fallback)."""
    provider: str  # 'bedrock' or 'none'
    region: str
    model_id: str
    dimension: int
    max_input_chars: int
    timeout_seconds: float
    retry_attempts: int
    retry_delay: float
    remote_cooldown_seconds: float = 30.0


@dataclass
class CacheConfig:
    """Configuration for the in-process embedding cache."""
    limit: int


@dataclass
class RetrievalConfig:
    """Configuration for cue ranking and context assembly."""
    candidate_pool: int
    min_relevance: float
    default_max_cues: int
    prompt_max_cues: int
    max_summary_groups: int
    max_personality_factors: int


@dataclass
class ReinforcementConfig:
    """Configuration for cue reinforcement."""
    step: float
    ceiling: float


@dataclass
class OpenSearchConfig:
    """Configuration for the OpenSearch cue store."""
    endpoint: str
    port: int
    region: str
    index_name: str


@dataclass
class MCPConfig:
    """Configuration for MCP interface."""
    transport: str
    host: str
    port: int


@dataclass
class AppConfig:
    """Main application configuration."""
    environment: str
    log_level: str
    embed: EmbedConfig
    cache: CacheConfig
    retrieval: RetrievalConfig
    reinforcement: ReinforcementConfig
    opensearch: OpenSearchConfig
    mcp: MCPConfig


def load_config() -> AppConfig:
    """Load configuration from environment variables with defaults."""
    environment = os.getenv('ENVIRONMENT', 'development')

    # Embedding configuration
    embed_config = EmbedConfig(provider=os.getenv('EMBED_PROVIDER', 'none').lower(),
                               region=os.getenv('BEDROCK_EMBED_AWS_REGION', 'us-east-1'),
                               model_id=os.getenv('BEDROCK_EMBED_MODEL_ID', 'amazon.titan-embed-text-v2:0'),
                               dimension=int(os.getenv('EMBED_DIMENSION', '1024')),
                               max_input_chars=int(os.getenv('EMBED_MAX_INPUT_CHARS', '8000')),
                               timeout_seconds=float(os.getenv('EMBED_TIMEOUT_SECONDS', '3.0')),
                               retry_attempts=int(os.getenv('BEDROCK_EMBED_RETRY_ATTEMPTS', '2')),
                               retry_delay=float(os.getenv('BEDROCK_EMBED_RETRY_DELAY', '0.5')),
                               remote_cooldown_seconds=float(os.getenv('EMBED_REMOTE_COOLDOWN_SECONDS', '30.0')))

    # Embedding cache configuration
    cache_config = CacheConfig(limit=int(os.getenv('EMBED_CACHE_LIMIT', '1000')))

    # Retrieval configuration
    retrieval_config = RetrievalConfig(candidate_pool=int(os.getenv('RETRIEVAL_CANDIDATE_POOL', '100')),
                                       min_relevance=float(os.getenv('RETRIEVAL_MIN_RELEVANCE', '0.1')),
                                       default_max_cues=int(os.getenv('RETRIEVAL_DEFAULT_MAX_CUES', '5')),
                                       prompt_max_cues=int(os.getenv('RETRIEVAL_PROMPT_MAX_CUES', '7')),
                                       max_summary_groups=int(os.getenv('RETRIEVAL_MAX_SUMMARY_GROUPS', '4')),
                                       max_personality_factors=int(os.getenv('RETRIEVAL_MAX_PERSONALITY_FACTORS', '5')))

    # Reinforcement configuration
    reinforcement_config = ReinforcementConfig(step=float(os.getenv('REINFORCEMENT_STEP', '0.1')),
                                               ceiling=float(os.getenv('REINFORCEMENT_CEILING', '0.95')))

    # Cue store configuration
    opensearch_config = OpenSearchConfig(endpoint=os.getenv('OPENSEARCH_ENDPOINT', 'localhost'),
                                         port=int(os.getenv('OPENSEARCH_PORT', '443')),
                                         region=os.getenv('OPENSEARCH_AWS_REGION', 'us-east-1'),
                                         index_name=os.getenv('OPENSEARCH_INDEX', 'personal_cues'))

    # MCP configuration
    mcp_config = MCPConfig(transport=os.getenv('MCP_TRANSPORT', 'sse'),
                           host=os.getenv('MCP_HOST', '127.0.0.1'),
                           port=int(os.getenv('MCP_PORT', '8000')))

    return AppConfig(environment=environment,
                     log_level=os.getenv('LOG_LEVEL', 'INFO'),
                     embed=embed_config,
                     cache=cache_config,
                     retrieval=retrieval_config,
                     reinforcement=reinforcement_config,
                     opensearch=opensearch_config,
                     mcp=mcp_config)


# Global configuration instance
config = load_config()
