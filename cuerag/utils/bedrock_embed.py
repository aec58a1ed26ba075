"""
Amazon Bedrock embedding client wrapper with timeout, retry logic and error handling.
"""

import json
import random
import time
from typing import List

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from .config import EmbedConfig
from .logging_config import get_logger

logger = get_logger(__name__)

# Output sizes accepted by Titan text embeddings v2
TITAN_DIMENSIONS = (256, 512, 1024)


class BedrockEmbedError(Exception):
    """Custom exception for Bedrock embedding errors."""
    pass


class BedrockEmbed:
    """Amazon Bedrock embedding client used as the remote embedding provider."""

    def __init__(self, config: EmbedConfig, client=None):
        """
        Initialize Bedrock embedding client.

        Args:
            config: EmbedConfig instance with connection parameters
            client: Optional pre-built bedrock-runtime client
        """
        self.config = config
        self.model_id = config.model_id
        self.output_embedding_length = config.dimension

        if 'titan' in self.model_id.lower() and config.dimension not in TITAN_DIMENSIONS:
            logger.warning(f'Titan models support dimensions {TITAN_DIMENSIONS}, configured {config.dimension}')

        # Every call is bounded by the connect/read timeout; retries are handled here
        self.bedrock = client or boto3.client(service_name='bedrock-runtime',
                                              region_name=config.region,
                                              config=BotoConfig(connect_timeout=config.timeout_seconds,
                                                                read_timeout=config.timeout_seconds,
                                                                retries={'max_attempts': 0}))

        logger.info(f'Initialized Bedrock Embed client with model: {self.model_id}')

    def _call_with_retry(self, data: dict) -> dict:
        """
        Make a Bedrock API call with retry logic.

        Args:
            data: Request data dictionary

        Returns:
            Response dictionary from Bedrock API

        Raises:
            BedrockEmbedError: If all retry attempts fail
        """
        body = json.dumps(data)
        attempts = max(1, self.config.retry_attempts)

        for attempt in range(attempts):
            try:
                logger.debug(f'Bedrock Embed request attempt {attempt + 1}/{attempts}')

                response = self.bedrock.invoke_model(body=body,
                                                     modelId=self.model_id,
                                                     accept='application/json',
                                                     contentType='application/json')

                result = json.loads(response.get('body').read())
                logger.debug('Bedrock Embed request successful')
                return result

            except (ClientError, BotoCoreError) as e:
                logger.warning(f'Bedrock Embed attempt {attempt + 1}/{attempts} failed: {e}')

                if attempt < attempts - 1:
                    # Exponential backoff with jitter
                    delay = self.config.retry_delay * (2**attempt) + random.uniform(0, self.config.retry_delay)
                    time.sleep(delay)
                else:
                    raise BedrockEmbedError(f'Bedrock Embed failed after {attempts} attempts: {e}')

            except Exception as e:
                logger.error(f'Unexpected error in Bedrock Embed: {e}')
                raise BedrockEmbedError(f'Unexpected Bedrock Embed error: {e}')

        raise BedrockEmbedError(f'Bedrock Embed failed after {attempts} attempts')

    def embed(self, text: str) -> List[float]:
        """
        Generate an embedding for text.

        Args:
            text: Preprocessed text to embed

        Returns:
            List of embedding values of the configured dimension

        Raises:
            BedrockEmbedError: If embedding generation fails or the vector has the wrong size
        """
        if not text or not text.strip():
            raise BedrockEmbedError('Empty text provided for embedding')

        model = self.model_id.lower()
        if 'titan' in model:
            data = {'inputText': text, 'dimensions': self.output_embedding_length, 'normalize': True}
            response = self._call_with_retry(data)
            embedding = response.get('embedding')

        elif 'cohere' in model:
            data = {'input_type': 'search_document', 'texts': [text]}
            response = self._call_with_retry(data)
            embeddings = response.get('embeddings') or []
            embedding = embeddings[0] if embeddings else None

        else:
            raise BedrockEmbedError(f'Unsupported model for embedding: {self.model_id}')

        if not embedding:
            raise BedrockEmbedError('Bedrock Embed returned no embedding')
        if len(embedding) != self.output_embedding_length:
            raise BedrockEmbedError(
                f'Bedrock Embed returned {len(embedding)} dimensions, expected {self.output_embedding_length}')

        return [float(value) for value in embedding]

    def health_check(self) -> bool:
        """
        Perform a health check on the Bedrock embedding service.

        Returns:
            True if service is healthy, False otherwise
        """
        try:
            test_embedding = self.embed('test')
            return len(test_embedding) == self.output_embedding_length

        except Exception as e:
            logger.error(f'Bedrock Embed health check failed: {e}')
            return False
