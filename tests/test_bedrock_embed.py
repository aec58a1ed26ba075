"""Tests for the Bedrock embedding provider."""

import io
import json
from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError

from cuerag.services.vector_encoder import VectorEncoder
from cuerag.utils.bedrock_embed import BedrockEmbed, BedrockEmbedError
from cuerag.utils.config import EmbedConfig
from cuerag.utils.local_embed import LocalEmbed

DIMENSION = 256


def embed_config(model_id='amazon.titan-embed-text-v2:0', retry_attempts=1):
    return EmbedConfig(provider='bedrock',
                       region='us-east-1',
                       model_id=model_id,
                       dimension=DIMENSION,
                       max_input_chars=8000,
                       timeout_seconds=1.0,
                       retry_attempts=retry_attempts,
                       retry_delay=0.0)


def response(payload):
    return {'body': io.BytesIO(json.dumps(payload).encode('utf-8'))}


def throttled():
    return ClientError({'Error': {'Code': 'ThrottlingException', 'Message': 'Rate exceeded'}}, 'InvokeModel')


class TestBedrockEmbed:
    """Tests for BedrockEmbed."""

    def test_titan_request(self):
        client = Mock()
        client.invoke_model.return_value = response({'embedding': [0.1] * DIMENSION})

        vector = BedrockEmbed(embed_config(), client=client).embed('react hooks')

        assert len(vector) == DIMENSION
        body = json.loads(client.invoke_model.call_args.kwargs['body'])
        assert body == {'inputText': 'react hooks', 'dimensions': DIMENSION, 'normalize': True}

    def test_cohere_request(self):
        client = Mock()
        client.invoke_model.return_value = response({'embeddings': [[0.2] * DIMENSION]})

        vector = BedrockEmbed(embed_config(model_id='cohere.embed-multilingual-v3'), client=client).embed('react')

        assert vector == [0.2] * DIMENSION

    def test_retries_then_succeeds(self):
        client = Mock()
        client.invoke_model.side_effect = [throttled(), response({'embedding': [0.1] * DIMENSION})]

        vector = BedrockEmbed(embed_config(retry_attempts=2), client=client).embed('react')

        assert len(vector) == DIMENSION
        assert client.invoke_model.call_count == 2

    def test_exhausted_retries_raise(self):
        client = Mock()
        client.invoke_model.side_effect = throttled()

        with pytest.raises(BedrockEmbedError):
            BedrockEmbed(embed_config(retry_attempts=2), client=client).embed('react')
        assert client.invoke_model.call_count == 2

    def test_wrong_dimension_raises(self):
        client = Mock()
        client.invoke_model.return_value = response({'embedding': [0.1] * 8})

        with pytest.raises(BedrockEmbedError):
            BedrockEmbed(embed_config(), client=client).embed('react')

    def test_unsupported_model(self):
        with pytest.raises(BedrockEmbedError):
            BedrockEmbed(embed_config(model_id='acme.embed'), client=Mock()).embed('react')

    def test_empty_text_raises(self):
        with pytest.raises(BedrockEmbedError):
            BedrockEmbed(embed_config(), client=Mock()).embed('  ')

    def test_health_check(self):
        client = Mock()
        client.invoke_model.side_effect = throttled()
        assert BedrockEmbed(embed_config(), client=client).health_check() is False

    def test_encoder_falls_back_on_bedrock_failure(self):
        client = Mock()
        client.invoke_model.side_effect = throttled()
        encoder = VectorEncoder(DIMENSION, provider=BedrockEmbed(embed_config(), client=client))

        assert encoder.encode('react hooks') == LocalEmbed(DIMENSION).embed('react hooks')

    def test_encoder_stops_calling_bedrock_after_failure(self):
        client = Mock()
        client.invoke_model.side_effect = throttled()
        encoder = VectorEncoder(DIMENSION, provider=BedrockEmbed(embed_config(retry_attempts=2), client=client))

        for i in range(100):
            encoder.encode(f'react topic {i}')

        assert client.invoke_model.call_count == 2
        assert encoder.remote_failures == 100
