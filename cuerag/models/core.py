"""
Core data models for the personalization retrieval core.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Union


class CueType(str, Enum):
    """Kind of personal fact a cue describes."""
    PREFERENCE = 'preference'
    BEHAVIOR = 'behavior'
    PATTERN = 'pattern'
    SKILL = 'skill'
    CONTEXT = 'context'


class EvidenceQuality(str, Enum):
    """Strength of the evidence a cue was extracted from."""
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'


@dataclass
class Cue:
    """A personal fact about one user.

    Cues are owned by the fact store. The retrieval core reads them and asks for
    reinforcement through events; it never mutates storage directly. The pair
    (key, type) is unique per owner.
    """
    id: str
    owner_id: str
    key: str  # Short semantic label, e.g. prefers_react
    type: CueType
    category: str  # Free-form grouping, e.g. technical
    payload: Union[Mapping[str, Any], str, None]
    confidence: float
    evidence_quality: EvidenceQuality
    first_observed: datetime
    last_reinforced: datetime

    def __post_init__(self):
        self.type = CueType(self.type)
        self.evidence_quality = EvidenceQuality(self.evidence_quality)
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f'Cue confidence must be within [0, 1], got {self.confidence}')


@dataclass
class SearchResult:
    """A cue scored against one query. Transient."""
    cue: Cue
    similarity: float  # Cosine similarity in [-1, 1]
    relevance: float  # Composite score in [0, 1]


@dataclass
class RAGContext:
    """Personalization context handed to prompt construction."""
    cues: List[Cue]
    summary: str
    personality_factors: List[str]
    confidence: float

    @property
    def used_cue_keys(self) -> List[str]:
        return [cue.key for cue in self.cues]

    @property
    def is_empty(self) -> bool:
        return not self.cues


@dataclass(frozen=True)
class ReinforcementEvent:
    """Repeated evidence for an existing cue, emitted after a response is served."""
    owner_id: str
    key: str
    type: CueType
    observed_at: datetime


@dataclass
class CueAnalysis:
    """Aggregate view over one user's cues."""
    total_cues: int
    category_distribution: Dict[str, int] = field(default_factory=dict)
    confidence_distribution: Dict[str, float] = field(default_factory=dict)
    recent_activity: Dict[str, float] = field(default_factory=dict)
    recommendations: List[str] = field(default_factory=list)
