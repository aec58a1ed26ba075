"""Shared fixtures for retrieval core tests."""

from datetime import datetime, timedelta, timezone

import pytest

from cuerag.models.core import Cue, CueType, EvidenceQuality
from cuerag.services.fact_store import InMemoryFactStore
from cuerag.services.vector_encoder import VectorEncoder

NOW = datetime.now(timezone.utc).replace(microsecond=0)
DIMENSION = 768


def make_cue(key,
             category='technical',
             confidence=0.5,
             days_ago=0,
             cue_type=CueType.PREFERENCE,
             payload=None,
             owner_id='user-1'):
    reinforced = NOW - timedelta(days=days_ago)
    return Cue(id=f'cue-{key}',
               owner_id=owner_id,
               key=key,
               type=cue_type,
               category=category,
               payload=payload,
               confidence=confidence,
               evidence_quality=EvidenceQuality.MEDIUM,
               first_observed=reinforced - timedelta(days=1),
               last_reinforced=reinforced)


class CountingEncoder(VectorEncoder):
    """Encoder that counts encode calls."""

    def __init__(self, dimension=DIMENSION, provider=None, remote_cooldown=30.0):
        super().__init__(dimension, provider=provider, remote_cooldown=remote_cooldown)
        self.calls = 0

    def encode_with_origin(self, text):
        self.calls += 1
        return super().encode_with_origin(text)


class FailingProvider:
    """Remote provider that always errors."""

    def __init__(self):
        self.calls = 0

    def embed(self, text):
        self.calls += 1
        raise ConnectionError('provider unreachable')


@pytest.fixture
def store():
    return InMemoryFactStore()


@pytest.fixture
def scenario_cues():
    return [
        make_cue('prefers_react', category='technical', confidence=0.9, days_ago=0, payload={'framework': 'react'}),
        make_cue('likes_coffee', category='personal', confidence=0.3, days_ago=400, payload={'drink': 'coffee'}),
    ]
