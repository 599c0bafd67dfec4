"""Assessment domain models for the Mind Measure scoring core.

This file defines the enums and immutable records that flow through the
baseline/check-in scoring pipeline: transcript turns, extracted clinical
responses, derived clinical scores, the Mind Measure composite, multimodal
feature scores and the final persisted assessment result.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


class Speaker(Enum):
    """Speaker role tagged on each transcript line."""
    AGENT = "agent"
    USER = "user"


class AssessmentType(Enum):
    """Kind of assessment being finalized."""
    BASELINE = "baseline"   # First/reference assessment, eligible for enrichment
    CHECKIN = "checkin"     # Later check-ins, clinical-only


class ModelVersion(Enum):
    """Tag distinguishing clinical-only from hybrid scoring."""
    CLINICAL = "v1.0-clinical"
    MULTIMODAL = "v1.1-multimodal"


class ClinicalItem(Enum):
    """Questions asked during the assessment conversation.

    Values double as the stable question tags agents may embed in their
    turns (e.g. ``[phq2_q1]``).
    """
    PHQ2_Q1 = "phq2_q1"     # Little interest or pleasure in doing things
    PHQ2_Q2 = "phq2_q2"     # Feeling down, depressed, or hopeless
    GAD2_Q1 = "gad2_q1"     # Feeling nervous, anxious, or on edge
    GAD2_Q2 = "gad2_q2"     # Not being able to stop or control worrying
    MOOD = "mood"           # Self-reported mood, 1-10


FREQUENCY_ITEMS: Tuple[ClinicalItem, ...] = (
    ClinicalItem.PHQ2_Q1,
    ClinicalItem.PHQ2_Q2,
    ClinicalItem.GAD2_Q1,
    ClinicalItem.GAD2_Q2,
)


@dataclass(frozen=True)
class Turn:
    """A single speaker-tagged line of a conversation transcript."""
    speaker: Speaker
    text: str


@dataclass(frozen=True)
class ClinicalResponses:
    """PHQ-2 and GAD-2 item answers on the 0-3 frequency scale.

    0 = "not at all", 1 = "several days", 2 = "more than half the days",
    3 = "nearly every day".
    """
    phq2_q1: int = 0
    phq2_q2: int = 0
    gad2_q1: int = 0
    gad2_q2: int = 0

    def __post_init__(self):
        for item in FREQUENCY_ITEMS:
            value = getattr(self, item.value)
            if not 0 <= value <= 3:
                raise ValueError(f"{item.value} must be 0-3, got {value}")

    def to_dict(self) -> Dict[str, int]:
        return {item.value: getattr(self, item.value) for item in FREQUENCY_ITEMS}


@dataclass(frozen=True)
class ClinicalScores:
    """Validated short-form clinical sub-scores and screening flags."""
    phq2_total: int             # 0-6
    gad2_total: int             # 0-6
    mood_scale: int             # 1-10, 5 when mood was unavailable
    phq2_positive_screen: bool
    gad2_positive_screen: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phq2_total": self.phq2_total,
            "gad2_total": self.gad2_total,
            "mood_scale": self.mood_scale,
            "phq2_positive_screen": self.phq2_positive_screen,
            "gad2_positive_screen": self.gad2_positive_screen,
        }


@dataclass(frozen=True)
class MindMeasureComposite:
    """Fused 0-100 wellbeing score with its weighted contributions.

    Components are rounded independently of ``score`` and may differ from
    it by a point or two.
    """
    score: int
    phq2_component: int
    gad2_component: int
    mood_component: int

    def __post_init__(self):
        if not 0 <= self.score <= 100:
            raise ValueError(f"Composite score must be 0-100, got {self.score}")

    def to_dict(self) -> Dict[str, int]:
        return {
            "score": self.score,
            "phq2_component": self.phq2_component,
            "gad2_component": self.gad2_component,
            "mood_component": self.mood_component,
        }


def _is_usable_score(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value) and 0.0 <= value <= 100.0


@dataclass(frozen=True)
class MultimodalFeatureScores:
    """Externally computed audio/visual wellbeing proxies (0-100).

    Either score may be absent when capture failed or was declined.
    """
    audio_score: Optional[float] = None
    visual_score: Optional[float] = None
    confidence: Optional[float] = None  # 0.0 to 1.0 when supplied

    def __post_init__(self):
        if self.confidence is not None and not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be 0.0-1.0, got {self.confidence}")

    @property
    def is_complete(self) -> bool:
        """Both modalities present, finite and within range."""
        return _is_usable_score(self.audio_score) and _is_usable_score(self.visual_score)


@dataclass(frozen=True)
class CapturedMedia:
    """References to media captured during the assessment conversation.

    Only object keys travel through the core; the media itself is uploaded
    by the client straight to storage.
    """
    audio_key: Optional[str] = None
    video_frame_keys: Tuple[str, ...] = ()
    duration_seconds: float = 0.0
    started_at: Optional[int] = None    # epoch milliseconds
    ended_at: Optional[int] = None

    @property
    def has_audio(self) -> bool:
        return bool(self.audio_key)

    @property
    def has_video(self) -> bool:
        return len(self.video_frame_keys) > 0


@dataclass(frozen=True)
class MultimodalBreakdown:
    """How the final score was produced from clinical and multimodal signal."""
    enabled: bool
    model_version: ModelVersion
    clinical_score: int
    clinical_weight: float
    multimodal_weight: float
    final_score: int
    confidence: float
    audio_score: Optional[int] = None
    visual_score: Optional[int] = None
    multimodal_score: Optional[int] = None
    processing_time_ms: float = 0.0
    warnings: Tuple[str, ...] = ()

    def __post_init__(self):
        if not 0 <= self.final_score <= 100:
            raise ValueError(f"Final score must be 0-100, got {self.final_score}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "model_version": self.model_version.value,
            "clinical_score": self.clinical_score,
            "clinical_weight": self.clinical_weight,
            "audio_score": self.audio_score,
            "visual_score": self.visual_score,
            "multimodal_score": self.multimodal_score,
            "multimodal_weight": self.multimodal_weight,
            "final_score": self.final_score,
            "confidence": round(self.confidence, 3),
            "processing_time_ms": round(self.processing_time_ms, 2),
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class HybridAssessmentResult:
    """Final persisted assessment record.

    Created once at completion and never mutated. The storage layer writes
    ``to_dict()`` verbatim; dashboards and reports read it back later.
    """
    assessment_id: str
    assessment_type: AssessmentType
    final_score: int
    model_version: ModelVersion
    responses: ClinicalResponses
    clinical_scores: ClinicalScores
    composite: MindMeasureComposite
    enrichment: Optional[MultimodalBreakdown] = None

    def __post_init__(self):
        if not 0 <= self.final_score <= 100:
            raise ValueError(f"Final score must be 0-100, got {self.final_score}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON structure consumed by storage and dashboards."""
        clinical = self.clinical_scores.to_dict()
        clinical.update(self.responses.to_dict())

        composite = self.composite.to_dict()
        composite["weighting"] = "PHQ-2: 25%, GAD-2: 25%, Mood: 50%"

        analysis: Dict[str, Any] = {
            "assessment_type": self.assessment_type.value,
            "clinical_scores": clinical,
            "mind_measure_composite": composite,
        }
        if self.enrichment is not None:
            analysis["multimodal_enrichment"] = self.enrichment.to_dict()

        return {
            "score": self.final_score,
            "final_score": self.final_score,
            "model_version": self.model_version.value,
            "analysis": analysis,
        }


@dataclass
class AssessmentState:
    """Transient bundle checked by the validator before persistence.

    Responses are kept as a plain mapping because upstream data may be
    incomplete or corrupted; that is exactly what validation looks for.
    """
    transcript: Optional[str]
    phq_responses: Mapping[str, Any] = field(default_factory=dict)
    mood_score: Optional[float] = None
    started_at: Optional[int] = None    # epoch milliseconds
    ended_at: Optional[int] = None


@dataclass(frozen=True)
class ValidationResult:
    """Itemized readiness check for an assessment."""
    has_transcript: bool
    has_duration: bool
    has_all_questions: bool
    has_mood: bool

    @property
    def is_valid(self) -> bool:
        return (
            self.has_transcript
            and self.has_duration
            and self.has_all_questions
            and self.has_mood
        )

    @property
    def failed_checks(self) -> List[str]:
        """Names of the checks that did not pass."""
        return [name for name, ok in self.details.items() if not ok]

    @property
    def details(self) -> Dict[str, bool]:
        return {
            "hasTranscript": self.has_transcript,
            "hasDuration": self.has_duration,
            "hasAllQuestions": self.has_all_questions,
            "hasMood": self.has_mood,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {"isValid": self.is_valid, "details": self.details}
