"""
Aggregate statistics over a user's cues.
"""

from collections import Counter
from datetime import datetime
from typing import Optional, Sequence

from ..models.core import Cue, CueAnalysis
from ..utils.timestamp_utils import SECONDS_PER_DAY, ensure_aware, utc_now

HIGH_CONFIDENCE = 0.8
LOW_CONFIDENCE = 0.5
MIN_HEALTHY_CUES = 10
MAX_LOW_CONFIDENCE_SHARE = 0.3


def analyze_cues(cues: Sequence[Cue], now: Optional[datetime] = None) -> CueAnalysis:
    """
    Summarize category spread, confidence and recent activity of a cue set.

    Args:
        cues: Cues of one owner
        now: Reference time (uses current time if None)

    Returns:
        CueAnalysis
    """
    if now is None:
        now = utc_now()
    now = ensure_aware(now)

    confidences = [cue.confidence for cue in cues]
    confidence_distribution = {
        'average': sum(confidences) / len(confidences) if confidences else 0.0,
        'high': sum(1 for value in confidences if value > HIGH_CONFIDENCE),
        'medium': sum(1 for value in confidences if LOW_CONFIDENCE <= value <= HIGH_CONFIDENCE),
        'low': sum(1 for value in confidences if value < LOW_CONFIDENCE),
    }

    ages = [(now - ensure_aware(cue.last_reinforced)).total_seconds() / SECONDS_PER_DAY for cue in cues]
    last_month = sum(1 for age in ages if age < 30)
    recent_activity = {
        'last_week': sum(1 for age in ages if age < 7),
        'last_month': last_month,
        'activity_rate': last_month / max(len(cues), 1),
    }

    recommendations = []
    if len(cues) < MIN_HEALTHY_CUES:
        recommendations.append('Keep chatting to improve personalization.')
    if confidence_distribution['low'] > len(cues) * MAX_LOW_CONFIDENCE_SHARE:
        recommendations.append('Consistent behaviour will raise the confidence of your cues.')

    return CueAnalysis(total_cues=len(cues),
                       category_distribution=dict(Counter(cue.category for cue in cues)),
                       confidence_distribution=confidence_distribution,
                       recent_activity=recent_activity,
                       recommendations=recommendations)
