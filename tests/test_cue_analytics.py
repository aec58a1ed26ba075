"""Tests for cue analytics."""

import pytest

from cuerag.services.cue_analytics import analyze_cues

from .conftest import NOW, make_cue


class TestAnalyzeCues:
    """Tests for analyze_cues."""

    def test_empty(self):
        analysis = analyze_cues([], NOW)

        assert analysis.total_cues == 0
        assert analysis.confidence_distribution['average'] == 0.0
        assert analysis.recent_activity['activity_rate'] == 0.0
        assert analysis.recommendations == ['Keep chatting to improve personalization.']

    def test_distributions(self):
        cues = [
            make_cue('a', category='technical', confidence=0.9, days_ago=2),
            make_cue('b', category='technical', confidence=0.6, days_ago=10),
            make_cue('c', category='personal', confidence=0.4, days_ago=45),
            make_cue('d', category='communication', confidence=0.8, days_ago=200),
        ]

        analysis = analyze_cues(cues, NOW)

        assert analysis.category_distribution == {'technical': 2, 'personal': 1, 'communication': 1}
        assert analysis.confidence_distribution['average'] == pytest.approx(0.675)
        assert analysis.confidence_distribution['high'] == 1
        assert analysis.confidence_distribution['medium'] == 2
        assert analysis.confidence_distribution['low'] == 1
        assert analysis.recent_activity['last_week'] == 1
        assert analysis.recent_activity['last_month'] == 2
        assert analysis.recent_activity['activity_rate'] == pytest.approx(0.5)

    def test_low_confidence_recommendation(self):
        cues = [make_cue(f'cue_{i}', confidence=0.2 if i < 4 else 0.9) for i in range(10)]

        recommendations = analyze_cues(cues, NOW).recommendations

        assert recommendations == ['Consistent behaviour will raise the confidence of your cues.']
