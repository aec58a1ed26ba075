"""
Fact store contract and adapters that own persisted cues.
"""

import threading
from typing import Any, Dict, List, Optional, Protocol, Tuple

from ..models.core import Cue, CueType, EvidenceQuality
from ..utils.logging_config import get_logger
from ..utils.opensearch_client import OpenSearchClient, OpenSearchError
from ..utils.timestamp_utils import to_datetime

logger = get_logger(__name__)


class FactStoreError(Exception):
    """Custom exception for fact store errors."""
    pass


class FactStore(Protocol):
    """Persistence owning cues. Read-only from the retrieval path."""

    def list_cues(self, owner_id: str, limit: Optional[int] = None) -> List[Cue]:
        ...

    def get_cue(self, owner_id: str, key: str, cue_type: CueType) -> Optional[Cue]:
        ...

    def upsert_cue(self, cue: Cue) -> None:
        ...


def cue_document_id(owner_id: str, key: str, cue_type: CueType) -> str:
    """Deterministic id enforcing one cue per (owner, key, type)."""
    return f'{owner_id}:{CueType(cue_type).value}:{key}'


class InMemoryFactStore:
    """Thread-safe in-process store, used for development and tests."""

    def __init__(self):
        self._cues: Dict[Tuple[str, str, CueType], Cue] = {}
        self._lock = threading.Lock()

    def list_cues(self, owner_id: str, limit: Optional[int] = None) -> List[Cue]:
        with self._lock:
            cues = [cue for (owner, _, _), cue in self._cues.items() if owner == owner_id]
        cues.sort(key=lambda cue: cue.last_reinforced, reverse=True)
        return cues if limit is None else cues[:limit]

    def get_cue(self, owner_id: str, key: str, cue_type: CueType) -> Optional[Cue]:
        with self._lock:
            return self._cues.get((owner_id, key, CueType(cue_type)))

    def upsert_cue(self, cue: Cue) -> None:
        with self._lock:
            self._cues[(cue.owner_id, cue.key, cue.type)] = cue


def cue_to_document(cue: Cue) -> Dict[str, Any]:
    return {
        'id': cue.id,
        'owner_id': cue.owner_id,
        'key': cue.key,
        'type': cue.type.value,
        'category': cue.category,
        'payload': cue.payload,
        'confidence': cue.confidence,
        'evidence_quality': cue.evidence_quality.value,
        'first_observed': cue.first_observed.isoformat(),
        'last_reinforced': cue.last_reinforced.isoformat(),
    }


def document_to_cue(doc: Dict[str, Any]) -> Cue:
    """Build a Cue from a stored document, clamping out-of-range confidence."""
    confidence = max(0.0, min(1.0, float(doc.get('confidence', 0.5))))
    first_observed = to_datetime(doc.get('first_observed') or doc.get('last_reinforced'))
    last_reinforced = to_datetime(doc['last_reinforced']) if doc.get('last_reinforced') else first_observed
    return Cue(id=doc.get('id', ''),
               owner_id=doc.get('owner_id', ''),
               key=doc.get('key', ''),
               type=CueType(doc.get('type', CueType.CONTEXT.value)),
               category=doc.get('category', ''),
               payload=doc.get('payload'),
               confidence=confidence,
               evidence_quality=EvidenceQuality(doc.get('evidence_quality', EvidenceQuality.MEDIUM.value)),
               first_observed=first_observed,
               last_reinforced=last_reinforced)


class OpenSearchFactStore:
    """Fact store backed by an OpenSearch index of cue documents."""

    def __init__(self, client: OpenSearchClient):
        """
        Initialize the store.

        Args:
            client: OpenSearchClient bound to the cue index
        """
        self.client = client

        try:
            self.client.create_index_if_not_exists()
        except OpenSearchError as e:
            logger.warning(f'Failed to create OpenSearch cue index: {e}')

        logger.info('Initialized OpenSearchFactStore')

    def list_cues(self, owner_id: str, limit: Optional[int] = None) -> List[Cue]:
        """
        List an owner's cues, most recently reinforced first.

        Raises:
            FactStoreError: If the search fails
        """
        try:
            documents = self.client.search_by_owner(owner_id, size=limit or 100)
        except OpenSearchError as e:
            raise FactStoreError(f'Listing cues failed: {e}')

        cues = []
        for doc in documents:
            try:
                cues.append(document_to_cue(doc))
            except (TypeError, ValueError) as e:
                logger.warning(f'Skipping malformed cue document {doc.get("id")}: {e}')
        return cues

    def get_cue(self, owner_id: str, key: str, cue_type: CueType) -> Optional[Cue]:
        try:
            doc = self.client.get_document(cue_document_id(owner_id, key, cue_type))
        except OpenSearchError as e:
            raise FactStoreError(f'Getting cue failed: {e}')
        return document_to_cue(doc) if doc else None

    def upsert_cue(self, cue: Cue) -> None:
        try:
            self.client.index_document(cue_document_id(cue.owner_id, cue.key, cue.type), cue_to_document(cue))
        except OpenSearchError as e:
            raise FactStoreError(f'Upserting cue failed: {e}')
