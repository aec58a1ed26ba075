"""Tests for the vector encoder and local feature hashing."""

import time

import pytest

from cuerag.services.vector_encoder import VectorEncoder
from cuerag.utils.bedrock_embed import BedrockEmbedError
from cuerag.utils.config import EmbedConfig
from cuerag.utils.local_embed import LocalEmbed, fingerprint, preprocess_text
from cuerag.utils.vector_math import magnitude

from .conftest import DIMENSION, FailingProvider


class StaticProvider:
    """Remote provider returning a fixed vector."""

    def __init__(self, vector):
        self.vector = vector
        self.calls = []

    def embed(self, text):
        self.calls.append(text)
        return list(self.vector)


def embed_config(provider='none', dimension=DIMENSION):
    return EmbedConfig(provider=provider,
                       region='us-east-1',
                       model_id='amazon.titan-embed-text-v2:0',
                       dimension=dimension,
                       max_input_chars=8000,
                       timeout_seconds=1.0,
                       retry_attempts=1,
                       retry_delay=0.0)


class TestPreprocess:
    """Tests for preprocess_text."""

    def test_lowercases_and_strips_symbols(self):
        assert preprocess_text('Hello,   World!! (React)') == 'hello world react'

    def test_keeps_native_letters(self):
        assert preprocess_text('리액트 훅을 설명해줘!') == '리액트 훅을 설명해줘'

    def test_keeps_underscores(self):
        assert preprocess_text('prefers_react') == 'prefers_react'

    def test_truncates(self):
        assert preprocess_text('a' * 50, max_chars=10) == 'a' * 10

    def test_empty(self):
        assert preprocess_text('') == ''
        assert preprocess_text('  !!  ') == ''


class TestFingerprint:
    """Tests for the 32-bit polynomial hash."""

    def test_known_values(self):
        assert fingerprint('') == 0
        assert fingerprint('a') == 97
        assert fingerprint('ab') == 97 * 31 + 98

    def test_stays_within_32_bits(self):
        assert 0 <= fingerprint('a much longer piece of text that overflows 32 bits') <= 2**31

    def test_stable(self):
        assert fingerprint('react hooks') == fingerprint('react hooks')


class TestLocalEmbed:
    """Tests for the feature-hashed bag-of-words encoder."""

    def test_unit_length(self):
        vector = LocalEmbed(DIMENSION).embed('how do i use react hooks')
        assert len(vector) == DIMENSION
        assert magnitude(vector) == pytest.approx(1.0)

    def test_three_buckets_per_token(self):
        vector = LocalEmbed(DIMENSION).embed('react')
        token_hash = fingerprint('react')
        buckets = {token_hash % DIMENSION, (token_hash * 17) % DIMENSION, (token_hash * 31) % DIMENSION}
        assert {i for i, value in enumerate(vector) if value > 0} == buckets

    def test_deterministic(self):
        encoder = LocalEmbed(DIMENSION)
        assert encoder.embed('same words here') == encoder.embed('same words here')

    def test_invalid_dimension(self):
        with pytest.raises(ValueError):
            LocalEmbed(0)


class TestVectorEncoder:
    """Tests for VectorEncoder."""

    @pytest.mark.parametrize('text', ['', '   ', '!!!', 'a', 'react hooks', '설명 ' * 5000])
    def test_fixed_dimension_for_any_input(self, text):
        assert len(VectorEncoder(DIMENSION).encode(text)) == DIMENSION

    def test_empty_text_is_zero_vector(self):
        assert magnitude(VectorEncoder(DIMENSION).encode('   ')) == 0.0

    def test_local_only_without_provider(self):
        encoder = VectorEncoder(DIMENSION)
        assert not encoder.remote_available
        assert encoder.encode('React Hooks!') == LocalEmbed(DIMENSION).embed('react hooks')

    def test_remote_vector_is_normalized(self):
        provider = StaticProvider([2.0] + [0.0] * (DIMENSION - 1))
        encoder = VectorEncoder(DIMENSION, provider=provider)

        vector = encoder.encode('Hello, React!')

        assert provider.calls == ['hello react']
        assert vector[0] == pytest.approx(1.0)
        assert magnitude(vector) == pytest.approx(1.0)

    def test_provider_error_falls_back_to_local(self):
        provider = FailingProvider()
        encoder = VectorEncoder(DIMENSION, provider=provider)

        vector = encoder.encode('react hooks')

        assert provider.calls == 1
        assert encoder.remote_failures == 1
        assert vector == LocalEmbed(DIMENSION).embed('react hooks')

    def test_failed_provider_is_skipped_during_cooldown(self):
        provider = FailingProvider()
        encoder = VectorEncoder(DIMENSION, provider=provider, remote_cooldown=60)

        vectors = [encoder.encode(f'react hooks {i}') for i in range(5)]

        assert provider.calls == 1
        assert encoder.remote_failures == 5
        assert vectors[0] == LocalEmbed(DIMENSION).embed('react hooks 0')

    def test_provider_is_retried_after_cooldown(self, monkeypatch):
        provider = FailingProvider()
        encoder = VectorEncoder(DIMENSION, provider=provider, remote_cooldown=60)
        clock = [1000.0]
        monkeypatch.setattr(time, 'monotonic', lambda: clock[0])

        encoder.encode('react')
        clock[0] += 30
        encoder.encode('react')
        assert provider.calls == 1

        clock[0] += 31
        encoder.encode('react')
        assert provider.calls == 2

    def test_encode_with_origin_flags_fallback(self):
        assert VectorEncoder(DIMENSION).encode_with_origin('react')[1] is False
        assert VectorEncoder(DIMENSION, provider=FailingProvider()).encode_with_origin('react')[1] is True
        assert VectorEncoder(DIMENSION, provider=FailingProvider()).encode_with_origin('')[1] is False

    def test_wrong_remote_dimension_falls_back(self):
        encoder = VectorEncoder(DIMENSION, provider=StaticProvider([1.0, 0.0, 0.0]))

        vector = encoder.encode('react hooks')

        assert len(vector) == DIMENSION
        assert encoder.remote_failures == 1

    def test_empty_text_skips_provider(self):
        provider = FailingProvider()
        VectorEncoder(DIMENSION, provider=provider).encode('')
        assert provider.calls == 0

    def test_try_remote_without_provider_raises(self):
        with pytest.raises(BedrockEmbedError):
            VectorEncoder(DIMENSION).try_remote('react')

    def test_encode_batch_preserves_order(self):
        encoder = VectorEncoder(DIMENSION)
        assert encoder.encode_batch(['a b', 'c d']) == [encoder.encode('a b'), encoder.encode('c d')]
        assert encoder.encode_batch([]) == []

    def test_from_config_local(self):
        encoder = VectorEncoder.from_config(embed_config())
        assert encoder.dimension == DIMENSION
        assert not encoder.remote_available

    def test_from_config_uses_injected_provider(self):
        provider = StaticProvider([1.0] * DIMENSION)
        encoder = VectorEncoder.from_config(embed_config(provider='bedrock'), provider=provider)
        assert encoder.provider is provider
