"""Assessment finalization pipeline.

Wires the scoring components together at the end of a conversation:

    transcript -> parser -> extractor -> clinical scorer -> composite
               -> (baseline only) multimodal enrichment
               -> validator -> HybridAssessmentResult

Finalization never raises for parse ambiguity, enrichment failures or
incomplete data. The caller receives the result together with the
validation report and decides whether to persist it.
"""
import logging
import time
from dataclasses import dataclass
from typing import Optional

from mindmeasure.shared.models import (
    AssessmentState,
    AssessmentType,
    CapturedMedia,
    ClinicalScores,
    HybridAssessmentResult,
    MindMeasureComposite,
    ModelVersion,
    MultimodalBreakdown,
    ValidationResult,
)
from mindmeasure.shared.utils import hash_pii, hash_text_for_audit, require_pii_salt
from mindmeasure.services.enrichment_service.adapter import (
    MultimodalEnrichmentAdapter,
    clinical_only_breakdown,
)
from .clinical_scorer import ClinicalScorer
from .composite import CompositeFusionEngine
from .config import ScoringConfig
from .response_extractor import ClinicalResponseExtractor, ExtractedAssessment
from .validator import AssessmentValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TranscriptScoring:
    """Clinical-only scoring of one transcript."""
    extraction: ExtractedAssessment
    clinical_scores: ClinicalScores
    composite: MindMeasureComposite


@dataclass(frozen=True)
class FinalizedAssessment:
    """Everything produced when an assessment completes."""
    result: HybridAssessmentResult
    validation: ValidationResult
    extraction: ExtractedAssessment

    @property
    def is_valid(self) -> bool:
        return self.validation.is_valid


class AssessmentScoringPipeline:
    """Scores and finalizes baseline and check-in assessments.

    Holds no per-assessment state, so one instance can finalize many
    assessments concurrently.
    """

    def __init__(
        self,
        config: Optional[ScoringConfig] = None,
        extractor: Optional[ClinicalResponseExtractor] = None,
        enrichment_adapter: Optional[MultimodalEnrichmentAdapter] = None,
    ):
        """Initialize pipeline with its components.

        Args:
            config: Scoring configuration
            extractor: Response extractor (injected for testing)
            enrichment_adapter: Multimodal adapter; baseline assessments fall
                back to clinical-only scoring when omitted

        Raises:
            RuntimeError: If the PII salt has not been configured
        """
        require_pii_salt()
        self.config = config or ScoringConfig()
        self.extractor = extractor or ClinicalResponseExtractor()
        self.scorer = ClinicalScorer(self.config)
        self.fusion = CompositeFusionEngine(self.config)
        self.validator = AssessmentValidator()
        self.enrichment_adapter = enrichment_adapter

        logger.info(
            "SCORING_PIPELINE_INITIALIZED",
            extra={
                "phq2_weight": self.config.composite_weights.phq2,
                "gad2_weight": self.config.composite_weights.gad2,
                "mood_weight": self.config.composite_weights.mood,
                "enrichment_enabled": enrichment_adapter is not None,
            }
        )

    def score_transcript(self, transcript: str) -> TranscriptScoring:
        """Parse, extract, score and fuse a transcript. Pure and synchronous."""
        extraction = self.extractor.extract(transcript or "")
        clinical = self.scorer.score(extraction.responses, extraction.mood_score)
        composite = self.fusion.fuse(clinical)
        return TranscriptScoring(
            extraction=extraction,
            clinical_scores=clinical,
            composite=composite,
        )

    async def finalize(
        self,
        assessment_id: str,
        user_id: str,
        transcript: str,
        started_at: Optional[int],
        ended_at: Optional[int],
        assessment_type: AssessmentType = AssessmentType.BASELINE,
        media: Optional[CapturedMedia] = None,
    ) -> FinalizedAssessment:
        """Finalize one assessment.

        Args:
            assessment_id: Assessment identifier
            user_id: User identifier (hashed for logging)
            transcript: Full conversation transcript
            started_at: Session start, epoch milliseconds
            ended_at: Session end, epoch milliseconds
            assessment_type: Baseline assessments are eligible for enrichment
            media: Captured media references, None if capture was declined

        Returns:
            FinalizedAssessment with result and validation report

        Logs:
            - ASSESSMENT_FINALIZE_STARTED
            - ASSESSMENT_FINALIZED
        """
        start_time = time.perf_counter()
        try:
            user_id_hash = hash_pii(user_id)
        except RuntimeError:
            # Salt was present at construction; without it the id stays out of logs
            user_id_hash = None

        logger.info(
            "ASSESSMENT_FINALIZE_STARTED",
            extra={
                "assessment_id": assessment_id,
                "user_id_hash": user_id_hash,
                "assessment_type": assessment_type.value,
                "transcript_hash": hash_text_for_audit(transcript or ""),
                "transcript_length": len(transcript or ""),
            }
        )

        scoring = self.score_transcript(transcript)

        validation = self.validator.validate(AssessmentState(
            transcript=transcript,
            phq_responses=scoring.extraction.responses.to_dict(),
            mood_score=scoring.extraction.mood_score,
            started_at=started_at,
            ended_at=ended_at,
        ))

        enrichment = await self._enrich(
            assessment_id=assessment_id,
            user_id=user_id,
            assessment_type=assessment_type,
            clinical_score=scoring.composite.score,
            media=media,
        )

        if enrichment is not None:
            final_score = enrichment.final_score
            model_version = enrichment.model_version
        else:
            final_score = scoring.composite.score
            model_version = ModelVersion.CLINICAL

        result = HybridAssessmentResult(
            assessment_id=assessment_id,
            assessment_type=assessment_type,
            final_score=final_score,
            model_version=model_version,
            responses=scoring.extraction.responses,
            clinical_scores=scoring.clinical_scores,
            composite=scoring.composite,
            enrichment=enrichment,
        )

        logger.info(
            "ASSESSMENT_FINALIZED",
            extra={
                "assessment_id": assessment_id,
                "user_id_hash": user_id_hash,
                "final_score": final_score,
                "clinical_score": scoring.composite.score,
                "model_version": model_version.value,
                "phq2_positive_screen": scoring.clinical_scores.phq2_positive_screen,
                "gad2_positive_screen": scoring.clinical_scores.gad2_positive_screen,
                "is_valid": validation.is_valid,
                "latency_ms": (time.perf_counter() - start_time) * 1000,
            }
        )

        return FinalizedAssessment(
            result=result,
            validation=validation,
            extraction=scoring.extraction,
        )

    async def _enrich(
        self,
        assessment_id: str,
        user_id: str,
        assessment_type: AssessmentType,
        clinical_score: int,
        media: Optional[CapturedMedia],
    ) -> Optional[MultimodalBreakdown]:
        # Check-ins are always clinical-only
        if assessment_type != AssessmentType.BASELINE:
            return None

        if self.enrichment_adapter is None:
            return clinical_only_breakdown(
                clinical_score,
                warnings=["Multimodal enrichment not configured - using clinical score only"],
            )

        outcome = await self.enrichment_adapter.enrich(
            assessment_id=assessment_id,
            user_id=user_id,
            clinical_score=clinical_score,
            media=media,
        )
        return outcome.breakdown
