"""Clinical scorer - PHQ-2/GAD-2 totals and positive screens.

Inputs are guaranteed in range by the extractor; out-of-range values are a
caller contract violation and are rejected by the record types themselves.
"""
from typing import Optional

from mindmeasure.shared.models import ClinicalResponses, ClinicalScores
from .config import ScoringConfig


class ClinicalScorer:
    """Converts extracted responses into validated clinical sub-scores."""

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or ScoringConfig()

    def score(
        self,
        responses: ClinicalResponses,
        mood_score: Optional[int] = None,
    ) -> ClinicalScores:
        """Calculate totals and screening flags.

        Missing mood falls back to the neutral midpoint, unlike missing
        frequency items which the extractor already defaulted to 0.

        Args:
            responses: Four 0-3 item answers
            mood_score: Self-reported mood 1-10, or None

        Returns:
            ClinicalScores with totals in 0-6
        """
        phq2_total = responses.phq2_q1 + responses.phq2_q2
        gad2_total = responses.gad2_q1 + responses.gad2_q2
        mood_scale = mood_score if mood_score is not None else self.config.neutral_mood

        return ClinicalScores(
            phq2_total=phq2_total,
            gad2_total=gad2_total,
            mood_scale=mood_scale,
            phq2_positive_screen=phq2_total >= self.config.thresholds.PHQ2_POSITIVE_MIN,
            gad2_positive_screen=gad2_total >= self.config.thresholds.GAD2_POSITIVE_MIN,
        )


def calculate_clinical_scores(
    responses: ClinicalResponses,
    mood_score: Optional[int] = None,
) -> ClinicalScores:
    """Score with the default configuration."""
    return ClinicalScorer().score(responses, mood_score)
