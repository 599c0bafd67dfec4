"""Composite fusion engine - the Mind Measure 0-100 wellbeing score.

Formula:
- PHQ-2 and GAD-2 totals are inverted onto 0-100 (0 symptoms -> 100)
- Mood 1-10 is scaled linearly onto 10-100 (not inverted)
- Weighted sum 25% PHQ-2 + 25% GAD-2 + 50% mood, clamped and rounded once

The per-component contributions are rounded independently for display and
can disagree with the total by a point or two. Stored records depend on this,
so it is kept as is.
"""
import logging
from typing import Optional

from mindmeasure.shared.models import ClinicalScores, MindMeasureComposite
from mindmeasure.shared.utils import clamp, round_half_up
from .config import MOOD_MAX, MOOD_MIN, ScoringConfig

logger = logging.getLogger(__name__)


class CompositeFusionEngine:
    """Fuses clinical sub-scores into one bounded wellbeing score."""

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or ScoringConfig()
        self._max_total = 2 * self.config.max_item_score

    def fuse(self, clinical: ClinicalScores) -> MindMeasureComposite:
        """Calculate the composite for one set of clinical scores.

        Args:
            clinical: Output of the clinical scorer

        Returns:
            MindMeasureComposite with score in 0-100
        """
        weights = self.config.composite_weights

        phq2_score = self._invert_total(clinical.phq2_total)
        gad2_score = self._invert_total(clinical.gad2_total)
        mood_score = self._scale_mood(clinical.mood_scale)

        fused = (
            phq2_score * weights.phq2 +
            gad2_score * weights.gad2 +
            mood_score * weights.mood
        )
        score = round_half_up(clamp(fused, 0.0, 100.0))

        composite = MindMeasureComposite(
            score=score,
            phq2_component=round_half_up(phq2_score * weights.phq2),
            gad2_component=round_half_up(gad2_score * weights.gad2),
            mood_component=round_half_up(mood_score * weights.mood),
        )

        logger.info(
            "COMPOSITE_CALCULATED",
            extra={
                "score": composite.score,
                "phq2_total": clinical.phq2_total,
                "gad2_total": clinical.gad2_total,
                "mood_scale": clinical.mood_scale,
                "fused_raw": round(fused, 3),
            }
        )
        return composite

    def _invert_total(self, total: int) -> float:
        return max(0.0, 100.0 - (total / self._max_total) * 100.0)

    def _scale_mood(self, mood_scale: int) -> float:
        return (clamp(mood_scale, MOOD_MIN, MOOD_MAX) / MOOD_MAX) * 100.0


def calculate_mind_measure_composite(clinical: ClinicalScores) -> MindMeasureComposite:
    """Fuse with the default weights."""
    return CompositeFusionEngine().fuse(clinical)
