"""
Vector encoder: remote embedding provider with a deterministic local fallback.
"""

import threading
import time
from typing import List, Optional, Protocol, Tuple

from ..utils.bedrock_embed import BedrockEmbed, BedrockEmbedError
from ..utils.config import EmbedConfig
from ..utils.local_embed import LocalEmbed, preprocess_text
from ..utils.logging_config import get_logger
from ..utils.vector_math import l2_normalize

logger = get_logger(__name__)


class EmbeddingProvider(Protocol):
    """Remote embedding provider contract."""

    def embed(self, text: str) -> List[float]:
        ...


class VectorEncoder:
    """Turns text into fixed-size unit vectors and never raises.

    The remote provider is tried first through try_remote(); encode_with_origin()
    is the only place that falls back to the local feature-hashing encoder. After
    a failed call the provider is skipped for remote_cooldown seconds.
    """

    def __init__(self,
                 dimension: int,
                 provider: Optional[EmbeddingProvider] = None,
                 max_input_chars: int = 8000,
                 remote_cooldown: float = 30.0):
        """
        Initialize the encoder.

        Args:
            dimension: Length of every produced vector
            provider: Optional remote provider; local encoding only when None
            max_input_chars: Truncation length applied during preprocessing
            remote_cooldown: Seconds to skip the provider after a failed call
        """
        self.dimension = dimension
        self.provider = provider
        self.max_input_chars = max_input_chars
        self.remote_cooldown = remote_cooldown
        self.local = LocalEmbed(dimension)
        self.remote_failures = 0
        self._remote_retry_at = 0.0
        self._state_lock = threading.Lock()

        mode = type(provider).__name__ if provider is not None else 'local only'
        logger.info(f'Initialized VectorEncoder (dimension={dimension}, provider={mode})')

    @classmethod
    def from_config(cls, config: EmbedConfig, provider: Optional[EmbeddingProvider] = None) -> 'VectorEncoder':
        """Build an encoder, creating the Bedrock provider when configured."""
        if provider is None and config.provider == 'bedrock':
            try:
                provider = BedrockEmbed(config)
            except Exception as e:
                logger.warning(f'Bedrock Embed unavailable, using local embeddings: {e}')
                provider = None
        elif provider is None and config.provider not in ('', 'none', 'local'):
            logger.warning(f'Unknown embedding provider {config.provider!r}, using local embeddings')

        return cls(config.dimension,
                   provider=provider,
                   max_input_chars=config.max_input_chars,
                   remote_cooldown=config.remote_cooldown_seconds)

    @property
    def remote_available(self) -> bool:
        return self.provider is not None

    def preprocess(self, text: str) -> str:
        return preprocess_text(text, self.max_input_chars)

    def try_remote(self, clean_text: str) -> List[float]:
        """
        Embed with the remote provider.

        Args:
            clean_text: Preprocessed, non-empty text

        Returns:
            Unit-length vector of the configured dimension

        Raises:
            BedrockEmbedError: If no provider is configured or the call fails
        """
        if self.provider is None:
            raise BedrockEmbedError('No remote embedding provider configured')

        try:
            vector = self.provider.embed(clean_text)
        except BedrockEmbedError:
            raise
        except Exception as e:
            raise BedrockEmbedError(f'Remote embedding failed: {e}')

        if len(vector) != self.dimension:
            raise BedrockEmbedError(f'Remote embedding has {len(vector)} dimensions, expected {self.dimension}')
        return l2_normalize(vector)

    def _remote_cooling_down(self) -> bool:
        with self._state_lock:
            return time.monotonic() < self._remote_retry_at

    def _record_remote_failure(self, reason: str, cooldown: bool) -> None:
        with self._state_lock:
            self.remote_failures += 1
            if cooldown:
                self._remote_retry_at = time.monotonic() + self.remote_cooldown
        logger.warning(f'Remote embedding unavailable, falling back to local encoder: {reason}')

    def encode_with_origin(self, text: str) -> Tuple[List[float], bool]:
        """
        Encode text and report whether the local fallback stood in for the provider.

        Args:
            text: Raw text

        Returns:
            (vector, fallback) where fallback is True when a configured provider was skipped or failed
        """
        clean_text = self.preprocess(text)
        if not clean_text:
            logger.debug('Empty text provided for encoding, returning zero vector')
            return self.local.zero_vector(), False

        if self.provider is None:
            return self.local.embed(clean_text), False

        if self._remote_cooling_down():
            with self._state_lock:
                self.remote_failures += 1
            logger.debug('Remote embedding cooling down after a failure, using local encoder')
            return self.local.embed(clean_text), True

        try:
            return self.try_remote(clean_text), False
        except BedrockEmbedError as e:
            self._record_remote_failure(str(e), cooldown=self.remote_cooldown > 0)

        return self.local.embed(clean_text), True

    def encode(self, text: str) -> List[float]:
        """
        Encode text into a vector of the configured dimension.

        Args:
            text: Raw text

        Returns:
            Unit-length vector, or the zero vector when the text carries no tokens
        """
        vector, _ = self.encode_with_origin(text)
        return vector

    def encode_batch(self, texts: List[str]) -> List[List[float]]:
        """Encode several texts, preserving order."""
        if not texts:
            return []
        return [self.encode(text) for text in texts]
