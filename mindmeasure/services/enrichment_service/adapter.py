"""Multimodal enrichment adapter - 70/30 hybrid baseline scoring.

Blends the clinical composite with externally computed audio/visual scores:

    multimodal = (audio + visual) / 2
    final      = round(clinical * 0.70 + multimodal * 0.30)

Enrichment can never block an assessment. Declined permissions, missing
media, timeouts, provider errors and malformed responses all resolve to the
clinical-only path (final = clinical, v1.0-clinical) with a warning.

Lifecycle per assessment:
    CAPTURING -> ENRICHING -> ENRICHED | DEGRADED -> SCORED
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from mindmeasure.shared.models import (
    CapturedMedia,
    ModelVersion,
    MultimodalBreakdown,
    MultimodalFeatureScores,
)
from mindmeasure.shared.utils import clamp, hash_pii, require_pii_salt, round_half_up
from .config import EnrichmentConfig, HybridWeights
from .providers import EnrichmentError, EnrichmentProvider, EnrichmentRequest, build_provider

logger = logging.getLogger(__name__)

# Confidence when no multimodal signal was available at all
CLINICAL_ONLY_CONFIDENCE = 0.7
# Confidence when enrichment was attempted and failed
FAILED_ENRICHMENT_CONFIDENCE = 0.5

# Clinical scores outside this band are more likely to reflect inaccurate answers
EXTREME_CLINICAL_LOW = 20
EXTREME_CLINICAL_HIGH = 95
EXTREME_CLINICAL_PENALTY = 0.9


class EnrichmentState(Enum):
    """State machine for one assessment's enrichment."""
    CAPTURING = "capturing"
    ENRICHING = "enriching"
    ENRICHED = "enriched"
    DEGRADED = "degraded"   # Not a failure: scoring continues clinical-only
    SCORED = "scored"


ALLOWED_TRANSITIONS: Dict[EnrichmentState, FrozenSet[EnrichmentState]] = {
    EnrichmentState.CAPTURING: frozenset({EnrichmentState.ENRICHING}),
    EnrichmentState.ENRICHING: frozenset({EnrichmentState.ENRICHED, EnrichmentState.DEGRADED}),
    EnrichmentState.ENRICHED: frozenset({EnrichmentState.SCORED}),
    EnrichmentState.DEGRADED: frozenset({EnrichmentState.SCORED}),
    EnrichmentState.SCORED: frozenset(),
}


class InvalidStateTransition(Exception):
    """An enrichment session was moved along an edge that does not exist."""


@dataclass
class EnrichmentSession:
    """Mutable state tracker for one assessment."""
    assessment_id: str
    state: EnrichmentState = EnrichmentState.CAPTURING
    history: List[EnrichmentState] = field(default_factory=lambda: [EnrichmentState.CAPTURING])

    def transition(self, new_state: EnrichmentState) -> None:
        if new_state not in ALLOWED_TRANSITIONS[self.state]:
            raise InvalidStateTransition(
                f"{self.assessment_id}: {self.state.value} -> {new_state.value} not allowed"
            )
        self.state = new_state
        self.history.append(new_state)


@dataclass(frozen=True)
class EnrichmentOutcome:
    """Result of enriching one baseline assessment."""
    breakdown: MultimodalBreakdown
    states: Tuple[EnrichmentState, ...]

    @property
    def final_score(self) -> int:
        return self.breakdown.final_score

    @property
    def degraded(self) -> bool:
        return EnrichmentState.DEGRADED in self.states


def clinical_only_breakdown(
    clinical_score: int,
    warnings: Sequence[str] = (),
    processing_time_ms: float = 0.0,
    failed: bool = False,
) -> MultimodalBreakdown:
    """Breakdown for the degraded path: the clinical score carries 100%."""
    clinical = round_half_up(clinical_score)
    return MultimodalBreakdown(
        enabled=False,
        model_version=ModelVersion.CLINICAL,
        clinical_score=clinical,
        clinical_weight=1.0,
        multimodal_weight=0.0,
        final_score=clinical,
        confidence=FAILED_ENRICHMENT_CONFIDENCE if failed else CLINICAL_ONLY_CONFIDENCE,
        processing_time_ms=processing_time_ms,
        warnings=tuple(warnings),
    )


class MultimodalEnrichmentAdapter:
    """Blends clinical scores with multimodal signal, degrading gracefully."""

    def __init__(
        self,
        provider: Optional[EnrichmentProvider] = None,
        config: Optional[EnrichmentConfig] = None,
        weights: Optional[HybridWeights] = None,
    ):
        """Initialize adapter.

        Args:
            provider: Enrichment client (injected for testing); built from
                config when omitted
            config: Enrichment configuration
            weights: Clinical/multimodal weight split

        Raises:
            RuntimeError: If the PII salt has not been configured
        """
        require_pii_salt()
        self.config = config or EnrichmentConfig()
        self.provider = provider if provider is not None else build_provider(self.config)
        self.weights = weights or HybridWeights()

        logger.info(
            "ENRICHMENT_ADAPTER_INITIALIZED",
            extra={
                "provider": self.provider.name if self.provider else None,
                "timeout_seconds": self.config.timeout_seconds,
                "clinical_weight": self.weights.clinical,
                "multimodal_weight": self.weights.multimodal,
            }
        )

    async def enrich(
        self,
        assessment_id: str,
        user_id: str,
        clinical_score: int,
        media: Optional[CapturedMedia] = None,
    ) -> EnrichmentOutcome:
        """Enrich a baseline assessment. Never raises for enrichment failures.

        Args:
            assessment_id: Assessment identifier
            user_id: User identifier (hashed before it leaves this process)
            clinical_score: Mind Measure composite, 0-100
            media: References to captured audio/video, None if capture was
                declined or failed

        Returns:
            EnrichmentOutcome with the final breakdown and visited states
        """
        start_time = time.perf_counter()
        session = EnrichmentSession(assessment_id=assessment_id)
        user_id_hash: Optional[str] = None
        warnings: List[str] = []
        feature_scores: Optional[MultimodalFeatureScores] = None
        failed = False

        session.transition(EnrichmentState.ENRICHING)

        if media is None or not (media.has_audio or media.has_video):
            warnings.append("No multimodal data captured - using clinical score only")
        elif self.provider is None:
            warnings.append("Multimodal enrichment disabled - using clinical score only")
        else:
            if not media.has_audio:
                warnings.append("No audio data available")
            if not media.has_video:
                warnings.append("No video data available")

            try:
                user_id_hash = hash_pii(user_id)
            except RuntimeError as e:
                # The raw id must never reach the provider
                failed = True
                warnings.append(f"Multimodal enrichment skipped: {e}")
            else:
                feature_scores, failed = await self._fetch(
                    assessment_id, user_id_hash, clinical_score, media, warnings,
                )

        processing_ms = (time.perf_counter() - start_time) * 1000
        breakdown = self.blend(
            clinical_score=clinical_score,
            feature_scores=feature_scores,
            warnings=warnings,
            processing_time_ms=processing_ms,
            failed=failed,
        )

        session.transition(
            EnrichmentState.ENRICHED if breakdown.enabled else EnrichmentState.DEGRADED
        )
        session.transition(EnrichmentState.SCORED)

        log_extra = {
            "assessment_id": assessment_id,
            "user_id_hash": user_id_hash,
            "clinical_score": clinical_score,
            "final_score": breakdown.final_score,
            "model_version": breakdown.model_version.value,
            "processing_time_ms": processing_ms,
        }
        if breakdown.enabled:
            logger.info("ENRICHMENT_COMPLETED", extra=log_extra)
        else:
            logger.warning("ENRICHMENT_DEGRADED", extra={**log_extra, "warnings": list(breakdown.warnings)})

        return EnrichmentOutcome(breakdown=breakdown, states=tuple(session.history))

    async def _fetch(
        self,
        assessment_id: str,
        user_id_hash: str,
        clinical_score: int,
        media: CapturedMedia,
        warnings: List[str],
    ) -> Tuple[Optional[MultimodalFeatureScores], bool]:
        """Single provider attempt. Returns (scores, failed); appends warnings."""
        request = EnrichmentRequest(
            assessment_id=assessment_id,
            user_id_hash=user_id_hash,
            clinical_score=clinical_score,
            media=media,
        )
        try:
            feature_scores = await asyncio.wait_for(
                self.provider.fetch_feature_scores(request),
                timeout=self.config.timeout_seconds,
            )
        except asyncio.TimeoutError:
            warnings.append(
                f"Multimodal enrichment timed out after {self.config.timeout_seconds}s"
            )
            return None, True
        except EnrichmentError as e:
            warnings.append(f"Multimodal enrichment failed: {e}")
            return None, True
        except Exception as e:
            warnings.append(f"Multimodal enrichment failed unexpectedly: {type(e).__name__}")
            logger.error(
                "ENRICHMENT_PROVIDER_ERROR",
                extra={
                    "assessment_id": assessment_id,
                    "error": str(e),
                    "error_type": type(e).__name__,
                }
            )
            return None, True

        if not isinstance(feature_scores, MultimodalFeatureScores):
            warnings.append(
                f"Multimodal enrichment returned {type(feature_scores).__name__}"
                " - using clinical score only"
            )
            logger.error(
                "ENRICHMENT_PROVIDER_ERROR",
                extra={
                    "assessment_id": assessment_id,
                    "error": "unexpected result type",
                    "error_type": type(feature_scores).__name__,
                }
            )
            return None, True

        return feature_scores, False

    def blend(
        self,
        clinical_score: int,
        feature_scores: Optional[MultimodalFeatureScores],
        warnings: Optional[Sequence[str]] = None,
        processing_time_ms: float = 0.0,
        failed: bool = False,
    ) -> MultimodalBreakdown:
        """Combine clinical and multimodal scores. Pure; no I/O.

        Blending only happens when both modalities are present. Anything less
        yields the clinical-only breakdown.
        """
        warnings = list(warnings or [])
        clinical = round_half_up(clinical_score)

        if feature_scores is None or not feature_scores.is_complete:
            if feature_scores is not None:
                if feature_scores.audio_score is None:
                    warnings.append("Audio score unavailable - using clinical score only")
                if feature_scores.visual_score is None:
                    warnings.append("Visual score unavailable - using clinical score only")
                if feature_scores.audio_score is not None and feature_scores.visual_score is not None:
                    warnings.append("Multimodal scores out of range - using clinical score only")
            return clinical_only_breakdown(
                clinical,
                warnings=warnings,
                processing_time_ms=processing_time_ms,
                failed=failed,
            )

        audio = feature_scores.audio_score
        visual = feature_scores.visual_score
        multimodal = (audio + visual) / 2
        final = round_half_up(clamp(
            clinical_score * self.weights.clinical + multimodal * self.weights.multimodal,
            0.0,
            100.0,
        ))

        return MultimodalBreakdown(
            enabled=True,
            model_version=ModelVersion.MULTIMODAL,
            clinical_score=clinical,
            clinical_weight=self.weights.clinical,
            multimodal_weight=self.weights.multimodal,
            final_score=final,
            confidence=self._confidence(clinical_score, feature_scores.confidence),
            audio_score=round_half_up(audio),
            visual_score=round_half_up(visual),
            multimodal_score=round_half_up(multimodal),
            processing_time_ms=processing_time_ms,
            warnings=tuple(warnings),
        )

    def _confidence(self, clinical_score: float, reported: Optional[float]) -> float:
        confidence = 1.0 if reported is None else reported
        if clinical_score < EXTREME_CLINICAL_LOW or clinical_score > EXTREME_CLINICAL_HIGH:
            confidence *= EXTREME_CLINICAL_PENALTY
        return clamp(confidence, 0.0, 1.0)
