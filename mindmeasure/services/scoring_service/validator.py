"""Assessment validator - readiness checks before a result is persisted.

Zero is a legitimate answer ("not at all") and must never be read as
missing. Only absent, non-numeric or NaN values fail the question check.
"""
import logging
import math
from typing import Any

from mindmeasure.shared.models import AssessmentState, FREQUENCY_ITEMS, ValidationResult

logger = logging.getLogger(__name__)


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a valid answer
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value)


class AssessmentValidator:
    """Checks completeness and consistency of assessment data. Never raises."""

    def validate(self, state: AssessmentState) -> ValidationResult:
        """Run all readiness checks.

        Args:
            state: Transcript, responses, mood and session timestamps

        Returns:
            ValidationResult with the overall flag and each sub-check
        """
        has_transcript = isinstance(state.transcript, str) and len(state.transcript.strip()) > 0

        has_duration = (
            _is_number(state.started_at)
            and _is_number(state.ended_at)
            and state.ended_at > state.started_at
        )

        responses = state.phq_responses or {}
        has_all_questions = all(
            _is_number(responses.get(item.value)) for item in FREQUENCY_ITEMS
        )

        has_mood = _is_number(state.mood_score)

        result = ValidationResult(
            has_transcript=has_transcript,
            has_duration=has_duration,
            has_all_questions=has_all_questions,
            has_mood=has_mood,
        )

        if result.is_valid:
            logger.info("ASSESSMENT_VALIDATED", extra={"is_valid": True})
        else:
            logger.warning(
                "ASSESSMENT_VALIDATION_FAILED",
                extra={"is_valid": False, "failed_checks": result.failed_checks}
            )
        return result


def validate_assessment_data(state: AssessmentState) -> ValidationResult:
    """Validate with a fresh validator."""
    return AssessmentValidator().validate(state)
