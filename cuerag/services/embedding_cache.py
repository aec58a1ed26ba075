"""
Bounded, thread-safe embedding cache keyed by text fingerprint.
"""

import threading
from collections import OrderedDict
from concurrent.futures import Future
from typing import Any, Dict, List

from ..utils.local_embed import fingerprint
from ..utils.logging_config import get_logger
from .vector_encoder import VectorEncoder

logger = get_logger(__name__)


class EmbeddingCache:
    """Maps text fingerprints to vectors with first-in-first-out eviction.

    Lookups and insert-and-evict run under one lock. A miss registers an
    in-flight future so that concurrent requests for the same fingerprint wait
    for a single encoder call.
    """

    def __init__(self, encoder: VectorEncoder, limit: int = 1000):
        """
        Initialize the cache.

        Args:
            encoder: Encoder used on cache misses
            limit: Maximum number of cached vectors
        """
        if limit <= 0:
            raise ValueError(f'Cache limit must be positive, got {limit}')

        self.encoder = encoder
        self.limit = limit
        self._entries: 'OrderedDict[int, List[float]]' = OrderedDict()
        self._pending: Dict[int, Future] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def key_for(self, text: str) -> int:
        """Fingerprint of the text after encoder preprocessing."""
        return fingerprint(self.encoder.preprocess(text))

    def get_or_compute(self, text: str) -> List[float]:
        """
        Return the cached vector for text, encoding it on a miss.

        Vectors produced by the local fallback while a remote provider is
        configured are returned but not stored, so they never mix with remote
        vectors once the provider recovers.

        Args:
            text: Raw text

        Returns:
            Embedding vector, a copy owned by the caller
        """
        key = self.key_for(text)

        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                self.hits += 1
                return list(cached)

            pending = self._pending.get(key)
            if pending is None:
                self.misses += 1
                pending = Future()
                self._pending[key] = pending
                owner = True
            else:
                owner = False

        if not owner:
            return list(pending.result())

        try:
            vector, fallback = self.encoder.encode_with_origin(text)
        except BaseException as e:
            with self._lock:
                del self._pending[key]
            pending.set_exception(e)
            raise

        with self._lock:
            if fallback:
                logger.debug(f'Not caching fallback embedding {key}')
            else:
                self._entries[key] = list(vector)
                self._evict_overflow()
            del self._pending[key]
        pending.set_result(vector)
        return list(vector)

    def _evict_overflow(self) -> None:
        # Caller holds the lock
        while len(self._entries) > self.limit:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f'Evicted embedding {evicted} from cache')

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, text: object) -> bool:
        if not isinstance(text, str):
            return False
        key = self.key_for(text)
        with self._lock:
            return key in self._entries

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def stats(self) -> Dict[str, Any]:
        """Cache size, hit counters and approximate memory footprint."""
        with self._lock:
            # Self-heal if the size invariant was ever broken
            if len(self._entries) > self.limit:
                logger.warning(f'Embedding cache above limit ({len(self._entries)} > {self.limit}), evicting')
                self._evict_overflow()
            size = len(self._entries)
            lookups = self.hits + self.misses
            return {
                'size': size,
                'limit': self.limit,
                'hits': self.hits,
                'misses': self.misses,
                'hit_rate': self.hits / lookups if lookups else 0.0,
                'memory_bytes': size * self.encoder.dimension * 8,
            }
