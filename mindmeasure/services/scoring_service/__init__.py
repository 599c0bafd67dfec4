"""Scoring Service: clinical scoring of assessment conversations.

Turns the transcript of a baseline or check-in conversation into validated
PHQ-2/GAD-2 sub-scores and the Mind Measure 0-100 wellbeing composite.

Components:
- transcript_parser.py: Speaker-tagged transcript -> turns / user utterances
- response_extractor.py: Utterances -> PHQ-2, GAD-2 and mood answers
- clinical_scorer.py: Answers -> totals and positive screens
- composite.py: Clinical scores -> Mind Measure composite (25/25/50)
- validator.py: Readiness checks before persistence
- pipeline.py: End-to-end finalization, including baseline enrichment

Usage:
    from mindmeasure.services.scoring_service import AssessmentScoringPipeline
    pipeline = AssessmentScoringPipeline()
    scoring = pipeline.score_transcript(transcript)
    scoring.composite.score
"""

from .config import ScoringConfig, CompositeWeights, ScreeningThresholds
from .transcript_parser import TranscriptParser, parse_user_utterances
from .response_extractor import (
    ClinicalResponseExtractor,
    ExtractedAssessment,
    ExtractionMode,
    parse_frequency_response,
    parse_mood_response,
)
from .clinical_scorer import ClinicalScorer, calculate_clinical_scores
from .composite import CompositeFusionEngine, calculate_mind_measure_composite
from .validator import AssessmentValidator, validate_assessment_data
from .pipeline import AssessmentScoringPipeline, FinalizedAssessment, TranscriptScoring

__all__ = [
    "ScoringConfig",
    "CompositeWeights",
    "ScreeningThresholds",
    "TranscriptParser",
    "parse_user_utterances",
    "ClinicalResponseExtractor",
    "ExtractedAssessment",
    "ExtractionMode",
    "parse_frequency_response",
    "parse_mood_response",
    "ClinicalScorer",
    "calculate_clinical_scores",
    "CompositeFusionEngine",
    "calculate_mind_measure_composite",
    "AssessmentValidator",
    "validate_assessment_data",
    "AssessmentScoringPipeline",
    "FinalizedAssessment",
    "TranscriptScoring",
]
