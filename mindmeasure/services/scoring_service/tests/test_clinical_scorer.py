"""Tests for ClinicalScorer."""
import pytest

from mindmeasure.shared.models import ClinicalResponses
from mindmeasure.services.scoring_service.clinical_scorer import (
    ClinicalScorer,
    calculate_clinical_scores,
)
from mindmeasure.services.scoring_service.config import ScoringConfig, ScreeningThresholds


@pytest.fixture
def scorer():
    return ClinicalScorer()


class TestTotals:

    def test_mixed_answers(self, scorer):
        scores = scorer.score(
            ClinicalResponses(phq2_q1=0, phq2_q2=1, gad2_q1=2, gad2_q2=3),
            mood_score=7,
        )

        assert scores.phq2_total == 1
        assert scores.gad2_total == 5
        assert scores.mood_scale == 7
        assert scores.phq2_positive_screen is False
        assert scores.gad2_positive_screen is True

    def test_missing_mood_uses_neutral_midpoint(self, scorer):
        scores = scorer.score(ClinicalResponses())

        assert scores.mood_scale == 5


class TestPositiveScreen:
    """Cut-off is a total of 3 or more."""

    @pytest.mark.parametrize("q1,q2,expected", [
        (1, 1, False),
        (2, 1, True),
        (0, 3, True),
        (3, 3, True),
    ])
    def test_phq2_cutoff(self, scorer, q1, q2, expected):
        scores = scorer.score(ClinicalResponses(phq2_q1=q1, phq2_q2=q2), mood_score=5)
        assert scores.phq2_positive_screen is expected

    @pytest.mark.parametrize("q1,q2,expected", [
        (0, 2, False),
        (1, 2, True),
    ])
    def test_gad2_cutoff(self, scorer, q1, q2, expected):
        scores = scorer.score(ClinicalResponses(gad2_q1=q1, gad2_q2=q2), mood_score=5)
        assert scores.gad2_positive_screen is expected

    def test_custom_thresholds(self):
        scorer = ClinicalScorer(ScoringConfig(
            thresholds=ScreeningThresholds(PHQ2_POSITIVE_MIN=2, GAD2_POSITIVE_MIN=4),
        ))

        scores = scorer.score(ClinicalResponses(phq2_q1=1, phq2_q2=1, gad2_q1=2, gad2_q2=1))

        assert scores.phq2_positive_screen is True
        assert scores.gad2_positive_screen is False


def test_convenience_function():
    scores = calculate_clinical_scores(ClinicalResponses(phq2_q1=3), mood_score=9)

    assert scores.phq2_total == 3
    assert scores.mood_scale == 9
