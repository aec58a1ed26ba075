"""
Retrieval facade: fetch cues, encode, rank and assemble personalization context.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..models.core import Cue, CueAnalysis, RAGContext, SearchResult
from ..utils.config import AppConfig
from ..utils.json_utils import payload_to_text
from ..utils.logging_config import get_logger
from ..utils.opensearch_client import OpenSearchClient
from ..utils.timestamp_utils import utc_now
from .context_assembler import ContextAssembler, empty_context, render_prompt
from .cue_analytics import analyze_cues
from .embedding_cache import EmbeddingCache
from .fact_store import FactStore, FactStoreError, InMemoryFactStore, OpenSearchFactStore
from .reinforcement import ReinforcementWorker
from .similarity_ranker import SimilarityRanker
from .vector_encoder import EmbeddingProvider, VectorEncoder

logger = get_logger(__name__)

ANALYSIS_POOL = 1000


def cue_text(cue: Cue) -> str:
    """Text embedded for a cue: key, type, category and flattened payload."""
    parts = [cue.key, cue.type.value, cue.category, payload_to_text(cue.payload)]
    return ' '.join(part for part in parts if part)


class RetrievalFacade:
    """Builds personalization context for one query at a time."""

    def __init__(self,
                 fact_store: FactStore,
                 cache: EmbeddingCache,
                 ranker: SimilarityRanker,
                 assembler: ContextAssembler,
                 candidate_pool: int = 100,
                 prompt_max_cues: int = 7):
        self.fact_store = fact_store
        self.cache = cache
        self.ranker = ranker
        self.assembler = assembler
        self.candidate_pool = candidate_pool
        self.prompt_max_cues = prompt_max_cues

    def _fetch_candidates(self, owner_id: str) -> List[Cue]:
        try:
            cues = self.fact_store.list_cues(owner_id, limit=self.candidate_pool)
        except FactStoreError as e:
            logger.warning(f'Fact store unavailable for {owner_id}, continuing without cues: {e}')
            return []
        except Exception as e:
            logger.error(f'Unexpected fact store error for {owner_id}, continuing without cues: {e}')
            return []
        return list(cues or [])[:self.candidate_pool]

    def search(self, owner_id: str, query_text: str, limit: int = 10, now: Optional[datetime] = None) -> List[SearchResult]:
        """
        Rank an owner's cues against a query.

        Args:
            owner_id: Cue owner
            query_text: Free-text query
            limit: Maximum number of results
            now: Reference time for recency (uses current time if None)

        Returns:
            Search results, best first

        Raises:
            ValueError: If owner_id is empty or limit is not positive
        """
        if not owner_id or not owner_id.strip():
            raise ValueError('owner_id is required')
        if limit <= 0:
            raise ValueError(f'limit must be positive, got {limit}')

        if not query_text or not query_text.strip():
            logger.debug('Empty query provided for cue search')
            return []

        cues = self._fetch_candidates(owner_id)
        if not cues:
            logger.debug(f'No cues found for {owner_id}')
            return []

        try:
            query_vector = self.cache.get_or_compute(query_text)
            candidates = [(cue, self.cache.get_or_compute(cue_text(cue))) for cue in cues]
            results = self.ranker.rank(query_vector, candidates, limit, query_text=query_text, now=now)
        except Exception as e:
            logger.error(f'Unexpected error during cue search for {owner_id}: {e}')
            return []

        logger.debug(f'Cue search for {owner_id} kept {len(results)} of {len(cues)} cues')
        return results

    def build_context(self, owner_id: str, query_text: str, max_cues: int = 5, now: Optional[datetime] = None) -> RAGContext:
        """
        Build the personalization context for a query.

        Args:
            owner_id: Cue owner
            query_text: Free-text query
            max_cues: Maximum number of cues in the context
            now: Reference time for recency (uses current time if None)

        Returns:
            RAGContext; the default empty context when nothing is relevant

        Raises:
            ValueError: If owner_id is empty or max_cues is not positive
        """
        if max_cues <= 0:
            raise ValueError(f'max_cues must be positive, got {max_cues}')

        results = self.search(owner_id, query_text, max_cues, now=now)
        if not results:
            return empty_context()

        context = self.assembler.assemble(results)
        logger.info(f'Built context for {owner_id}: {len(context.cues)} cues, confidence {context.confidence:.3f}')
        return context

    def build_prompt(self, owner_id: str, query_text: str, max_cues: Optional[int] = None) -> str:
        """Build the context and render it into a model-ready prompt."""
        if max_cues is None:
            max_cues = self.prompt_max_cues
        context = self.build_context(owner_id, query_text, max_cues)
        return render_prompt(context, query_text)

    def analyze_user(self, owner_id: str, now: Optional[datetime] = None) -> CueAnalysis:
        """
        Aggregate statistics over an owner's cues.

        Raises:
            FactStoreError: If the fact store cannot be read
        """
        cues = self.fact_store.list_cues(owner_id, limit=ANALYSIS_POOL)
        return analyze_cues(cues, now)


@dataclass
class RetrievalCore:
    """Every retrieval component, wired once at startup and shared by reference."""
    config: AppConfig
    encoder: VectorEncoder
    cache: EmbeddingCache
    ranker: SimilarityRanker
    assembler: ContextAssembler
    fact_store: FactStore
    facade: RetrievalFacade
    reinforcement: ReinforcementWorker

    @classmethod
    def from_config(cls,
                    config: AppConfig,
                    fact_store: Optional[FactStore] = None,
                    provider: Optional[EmbeddingProvider] = None) -> 'RetrievalCore':
        """
        Wire the core from configuration.

        Args:
            config: Application configuration
            fact_store: Cue store; an in-memory store when None
            provider: Remote embedding provider; built from config when None

        Returns:
            RetrievalCore
        """
        encoder = VectorEncoder.from_config(config.embed, provider=provider)
        cache = EmbeddingCache(encoder, limit=config.cache.limit)
        ranker = SimilarityRanker(min_relevance=config.retrieval.min_relevance)
        assembler = ContextAssembler(max_summary_groups=config.retrieval.max_summary_groups,
                                     max_personality_factors=config.retrieval.max_personality_factors)
        if fact_store is None:
            fact_store = InMemoryFactStore()

        facade = RetrievalFacade(fact_store,
                                 cache,
                                 ranker,
                                 assembler,
                                 candidate_pool=config.retrieval.candidate_pool,
                                 prompt_max_cues=config.retrieval.prompt_max_cues)
        reinforcement = ReinforcementWorker(fact_store, step=config.reinforcement.step, ceiling=config.reinforcement.ceiling)

        logger.info('Initialized RetrievalCore')
        return cls(config=config,
                   encoder=encoder,
                   cache=cache,
                   ranker=ranker,
                   assembler=assembler,
                   fact_store=fact_store,
                   facade=facade,
                   reinforcement=reinforcement)

    @classmethod
    def with_opensearch(cls, config: AppConfig, provider: Optional[EmbeddingProvider] = None) -> 'RetrievalCore':
        """Wire the core against the configured OpenSearch cue index."""
        store = OpenSearchFactStore(OpenSearchClient(config.opensearch))
        return cls.from_config(config, fact_store=store, provider=provider)

    def build_context(self, owner_id: str, query_text: str, max_cues: Optional[int] = None) -> RAGContext:
        if max_cues is None:
            max_cues = self.config.retrieval.default_max_cues
        return self.facade.build_context(owner_id, query_text, max_cues)

    def system_status(self) -> Dict[str, Any]:
        """Cache statistics and provider availability."""
        return {
            'embedding': {
                'dimension': self.encoder.dimension,
                'remote_available': self.encoder.remote_available,
                'remote_failures': self.encoder.remote_failures,
                'cache': self.cache.stats(),
            },
            'fact_store': type(self.fact_store).__name__,
            'timestamp': utc_now().isoformat(),
        }
