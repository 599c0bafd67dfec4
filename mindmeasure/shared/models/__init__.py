"""Shared domain models for the Mind Measure scoring core."""
from .assessment import (
    Speaker,
    AssessmentType,
    ModelVersion,
    ClinicalItem,
    FREQUENCY_ITEMS,
    Turn,
    ClinicalResponses,
    ClinicalScores,
    MindMeasureComposite,
    MultimodalFeatureScores,
    CapturedMedia,
    MultimodalBreakdown,
    HybridAssessmentResult,
    AssessmentState,
    ValidationResult,
)

__all__ = [
    "Speaker",
    "AssessmentType",
    "ModelVersion",
    "ClinicalItem",
    "FREQUENCY_ITEMS",
    "Turn",
    "ClinicalResponses",
    "ClinicalScores",
    "MindMeasureComposite",
    "MultimodalFeatureScores",
    "CapturedMedia",
    "MultimodalBreakdown",
    "HybridAssessmentResult",
    "AssessmentState",
    "ValidationResult",
]
